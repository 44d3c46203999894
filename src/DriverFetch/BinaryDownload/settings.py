# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.settings",
#   "purpose": "Run configuration models, defaults, and environment overrides",
#   "sections": [
#     {"id": "loggingconfiguration", "name": "LoggingConfiguration", "anchor": "class-loggingconfiguration", "kind": "class"},
#     {"id": "runconfiguration", "name": "RunConfiguration", "anchor": "class-runconfiguration", "kind": "class"},
#     {"id": "environmentoverrides", "name": "EnvironmentOverrides", "anchor": "class-environmentoverrides", "kind": "class"},
#     {"id": "format-validation-error", "name": "format_validation_error", "anchor": "function-format-validation-error", "kind": "function"},
#     {"id": "apply-env-overrides", "name": "apply_env_overrides", "anchor": "function-apply-env-overrides", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Configuration models for the binary downloader.

:class:`RunConfiguration` holds every process-scoped switch the orchestrator
reads: where archives and binaries go, how many attempts each artifact gets,
network timeouts, and the overwrite, hashing, and proxy policies.  Values are
fixed once the orchestrator is constructed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import platformdirs
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

__all__ = [
    "DEFAULT_DOWNLOAD_DIRECTORY",
    "DEFAULT_ROOT_DIRECTORY",
    "EnvironmentOverrides",
    "LoggingConfiguration",
    "RunConfiguration",
    "apply_env_overrides",
    "format_validation_error",
]

DEFAULT_DOWNLOAD_DIRECTORY = Path(platformdirs.user_cache_dir("driverfetch")) / "archives"
DEFAULT_ROOT_DIRECTORY = Path("selenium_standalone_binaries")

logger = logging.getLogger("DriverFetch.BinaryDownload")


class LoggingConfiguration(BaseModel):
    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    max_log_size_mb: int = Field(default=10, gt=0, description="Maximum size of rotated log files")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return upper

    model_config = {"validate_assignment": True}


class RunConfiguration(BaseModel):
    """Process-scoped settings for one download run.

    Attributes:
        root_directory: Destination root for extracted binaries.
        download_directory: Working directory for downloaded archives.
        retry_attempts: Download attempts per artifact; values below one are
            coerced to one with a warning.
        retry_delay_sec: Pause between attempts of the same artifact.
        connect_timeout_sec: TCP/TLS connect timeout for each attempt.
        read_timeout_sec: Socket read timeout for each attempt.
        overwrite_existing: Re-extract binaries that already exist.
        check_file_hash: Verify archives against their expected digest.
        use_system_proxy: Honour proxy settings from the environment.

    Examples:
        >>> RunConfiguration(retry_attempts=0).retry_attempts
        1
    """

    root_directory: Path = Field(default=DEFAULT_ROOT_DIRECTORY)
    download_directory: Path = Field(default=DEFAULT_DOWNLOAD_DIRECTORY)
    retry_attempts: int = Field(default=1)
    retry_delay_sec: float = Field(default=0.0, ge=0.0, le=300.0)
    connect_timeout_sec: float = Field(default=15.0, gt=0, le=600)
    read_timeout_sec: float = Field(default=15.0, gt=0, le=3600)
    overwrite_existing: bool = Field(default=False)
    check_file_hash: bool = Field(default=True)
    use_system_proxy: bool = Field(default=True)

    @field_validator("retry_attempts", mode="before")
    @classmethod
    def coerce_retry_attempts(cls, value: Any) -> int:
        try:
            attempts = int(value)
        except (TypeError, ValueError):
            attempts = 0
        if attempts < 1:
            logger.warning(
                "Invalid number of retry attempts specified, defaulting to '1'...",
                extra={"stage": "config", "configured": value},
            )
            return 1
        return attempts

    @field_validator("root_directory", "download_directory", mode="before")
    @classmethod
    def expand_directory(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        return value

    def ensure_directories(self) -> None:
        """Raise when either directory points at an existing regular file."""

        for label, path in (
            ("root directory", self.root_directory),
            ("download directory", self.download_directory),
        ):
            if path.exists() and not path.is_dir():
                raise ConfigurationError(f"The {label} '{path}' is a file, not a directory")

    model_config = {"validate_assignment": True}


class EnvironmentOverrides(BaseSettings):
    retry_attempts: Optional[int] = Field(default=None, alias="DRIVERFETCH_RETRY_ATTEMPTS")
    connect_timeout_sec: Optional[float] = Field(
        default=None, alias="DRIVERFETCH_CONNECT_TIMEOUT_SEC"
    )
    read_timeout_sec: Optional[float] = Field(default=None, alias="DRIVERFETCH_READ_TIMEOUT_SEC")
    root_directory: Optional[Path] = Field(default=None, alias="DRIVERFETCH_ROOT_DIRECTORY")
    download_directory: Optional[Path] = Field(
        default=None, alias="DRIVERFETCH_DOWNLOAD_DIRECTORY"
    )
    log_level: Optional[str] = Field(default=None, alias="DRIVERFETCH_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_prefix="DRIVERFETCH_", case_sensitive=False, extra="ignore"
    )


def format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``location: message`` lines."""

    messages = []
    for error in exc.errors():
        location = " -> ".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}")
    return "\n  ".join(messages)


def apply_env_overrides(
    config: RunConfiguration, logging_config: Optional[LoggingConfiguration] = None
) -> None:
    """Apply ``DRIVERFETCH_*`` environment variables on top of ``config``.

    Raises:
        ConfigurationError: If a variable cannot be parsed or its value is
            outside the range the configuration accepts.
    """

    try:
        env = EnvironmentOverrides()
        for field in (
            "retry_attempts",
            "connect_timeout_sec",
            "read_timeout_sec",
            "root_directory",
            "download_directory",
        ):
            value = getattr(env, field)
            if value is not None:
                setattr(config, field, value)
                logger.info("Config overridden: %s=%s", field, value, extra={"stage": "config"})
        if env.log_level is not None and logging_config is not None:
            logging_config.level = env.log_level
            logger.info(
                "Config overridden: log_level=%s", env.log_level, extra={"stage": "config"}
            )
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid DRIVERFETCH_* environment override:\n  " + format_validation_error(exc)
        ) from exc
