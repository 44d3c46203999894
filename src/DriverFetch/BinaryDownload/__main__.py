"""Allow ``python -m DriverFetch.BinaryDownload``."""

from DriverFetch.BinaryDownload.cli import app

if __name__ == "__main__":
    app()
