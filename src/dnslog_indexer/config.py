"""
Configuration dataclasses for the DNS log indexer.

This module defines the configuration structures used throughout the system,
covering log parsing, the domain store, report output, progress display and
logging, plus environment-variable overrides (optionally read from a .env file).
"""

import os
from dataclasses import dataclass, field, replace
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .exceptions import ConfigError


DEFAULT_LOG_PATH = Path("dnsmasq.log")
DEFAULT_DB_PATH = Path("unique_domains.db")
DEFAULT_BY_DOMAIN_FILENAME = "unique_domains.txt"
DEFAULT_BY_FIRST_SEEN_FILENAME = "unique_domains_by_first_seen.txt"

# Fastest refresh the progress display is allowed to use
MIN_PROGRESS_INTERVAL = 0.25

VALID_LOG_LEVELS = ("debug", "info", "warn", "error")
VALID_OUTPUT_FORMATS = ("json", "text", "both")
VALID_DISPLAY_MODES = ("key", "domain")


@dataclass
class ParserConfig:
    """How log timestamps without a year are interpreted."""

    reference_year: Optional[int] = None  # None: current year at run start
    timezone: str = "UTC"


@dataclass
class StorageConfig:
    """Location of the durable domain store."""

    db_path: Path = DEFAULT_DB_PATH


@dataclass
class ReportConfig:
    """Report output configuration."""

    output_dir: Path = Path(".")
    by_domain_filename: str = DEFAULT_BY_DOMAIN_FILENAME
    by_first_seen_filename: str = DEFAULT_BY_FIRST_SEEN_FILENAME
    display: str = "key"  # 'key' or 'domain'
    unicode: bool = False  # Decode xn-- labels for display
    timezone: str = "local"


@dataclass
class ProgressConfig:
    """Progress display configuration."""

    enabled: bool = True
    interval_seconds: float = MIN_PROGRESS_INTERVAL


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    log_path: Path = DEFAULT_LOG_PATH
    parser: ParserConfig = field(default_factory=ParserConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Resolve a configured timezone name.

    Args:
        name: 'local' (or None/empty) for the system zone, 'UTC', or an IANA name

    Returns:
        A tzinfo, or None meaning the local system zone

    Raises:
        ConfigError: If the zone name is unknown
    """
    if not name or name.lower() == "local":
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(
            code="invalid_timezone",
            message=f"Unknown timezone: {name}",
            details={"timezone": name, "error": str(e)},
        )


def validate_config(config: SystemConfig) -> None:
    """
    Check configuration values that the dataclasses cannot enforce.

    Raises:
        ConfigError: On the first invalid value found
    """
    if config.logging.level not in VALID_LOG_LEVELS:
        raise ConfigError(
            code="invalid_log_level",
            message=f"Invalid log level: {config.logging.level}",
            details={"allowed": list(VALID_LOG_LEVELS)},
        )
    if config.logging.output_format not in VALID_OUTPUT_FORMATS:
        raise ConfigError(
            code="invalid_output_format",
            message=f"Invalid output format: {config.logging.output_format}",
            details={"allowed": list(VALID_OUTPUT_FORMATS)},
        )
    if config.reports.display not in VALID_DISPLAY_MODES:
        raise ConfigError(
            code="invalid_display_mode",
            message=f"Invalid display mode: {config.reports.display}",
            details={"allowed": list(VALID_DISPLAY_MODES)},
        )
    interval = config.progress.interval_seconds
    if (
        isinstance(interval, bool)
        or not isinstance(interval, (int, float))
        or interval < MIN_PROGRESS_INTERVAL
    ):
        raise ConfigError(
            code="invalid_progress_interval",
            message=f"Progress interval must be a number of at least {MIN_PROGRESS_INTERVAL}s",
            details={"interval_seconds": interval},
        )
    year = config.parser.reference_year
    if year is not None and (
        isinstance(year, bool) or not isinstance(year, int) or not 1970 <= year <= 9999
    ):
        raise ConfigError(
            code="invalid_reference_year",
            message=f"Reference year must be an integer from 1970 to 9999: {year!r}",
            details={"reference_year": year},
        )
    for name in (config.parser.timezone, config.reports.timezone):
        if name is not None and not isinstance(name, str):
            raise ConfigError(
                code="invalid_timezone",
                message=f"Timezone must be a name: {name!r}",
                details={"timezone": name},
            )
        resolve_timezone(name)


def _bool_env(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(
    config: SystemConfig,
    env_file: Optional[Path] = None,
    environ: Optional[dict] = None,
) -> SystemConfig:
    """
    Return a copy of ``config`` with DNSLOG_* environment variables applied.

    Args:
        config: Base configuration
        env_file: .env file loaded before reading the environment
            (defaults to .env in the working directory; a missing file is ignored)
        environ: Mapping to read instead of os.environ (for testing)

    Returns:
        New SystemConfig with overrides applied
    """
    if environ is None:
        load_dotenv(dotenv_path=env_file or Path.cwd() / ".env")
        environ = os.environ

    log_path = environ.get("DNSLOG_PATH")
    db_path = environ.get("DNSLOG_DB")
    output_dir = environ.get("DNSLOG_OUTPUT_DIR")
    level = environ.get("DNSLOG_LOG_LEVEL")
    progress = environ.get("DNSLOG_PROGRESS")

    return replace(
        config,
        log_path=Path(log_path) if log_path else config.log_path,
        storage=replace(
            config.storage,
            db_path=Path(db_path) if db_path else config.storage.db_path,
        ),
        reports=replace(
            config.reports,
            output_dir=Path(output_dir) if output_dir else config.reports.output_dir,
        ),
        progress=replace(
            config.progress,
            enabled=_bool_env(progress) if progress else config.progress.enabled,
        ),
        logging=replace(
            config.logging,
            level=level.lower() if level else config.logging.level,
        ),
    )
