"""Filesystem and archive helpers for the binary downloader."""

from .filesystem import extract_binary, filename_from_url, is_bare_gzip, sanitize_filename

__all__ = [
    "extract_binary",
    "filename_from_url",
    "is_bare_gzip",
    "sanitize_filename",
]
