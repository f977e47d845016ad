"""
Command-line interface for the DNS log indexer.

This module provides the main CLI entry point with commands for:
- run: Parse a log, merge it into the domain store and export reports
- ingest: Parse a log and merge it into the domain store
- export: Write reports from the domain store
- config: Configuration management
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger, create_logger
from .config import (
    DEFAULT_BY_DOMAIN_FILENAME,
    DEFAULT_BY_FIRST_SEEN_FILENAME,
    DEFAULT_DB_PATH,
    DEFAULT_LOG_PATH,
    LoggingConfig,
    ParserConfig,
    ProgressConfig,
    ReportConfig,
    StorageConfig,
    SystemConfig,
    apply_env_overrides,
    validate_config,
)
from .exceptions import ConfigError, DnsLogIndexError
from .pipeline import IngestPipeline


DEFAULT_CONFIG_PATH = Path.home() / ".dnslog_indexer" / "config.json"


def create_default_config(
    log_path: Optional[Path] = None,
    db_path: Optional[Path] = None,
) -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        log_path: Path to the dnsmasq log
        db_path: Path to the SQLite domain store

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        log_path=log_path or DEFAULT_LOG_PATH,
        parser=ParserConfig(),
        storage=StorageConfig(db_path=db_path or DEFAULT_DB_PATH),
        reports=ReportConfig(),
        progress=ProgressConfig(),
        logging=LoggingConfig(),
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        parser_data = data.get("parser", {})
        parser = ParserConfig(
            reference_year=parser_data.get("reference_year"),
            timezone=parser_data.get("timezone", "UTC"),
        )

        storage_data = data.get("storage", {})
        storage = StorageConfig(
            db_path=Path(storage_data.get("db_path", DEFAULT_DB_PATH)),
        )

        reports_data = data.get("reports", {})
        reports = ReportConfig(
            output_dir=Path(reports_data.get("output_dir", ".")),
            by_domain_filename=reports_data.get("by_domain_filename", DEFAULT_BY_DOMAIN_FILENAME),
            by_first_seen_filename=reports_data.get(
                "by_first_seen_filename", DEFAULT_BY_FIRST_SEEN_FILENAME
            ),
            display=reports_data.get("display", "key"),
            unicode=reports_data.get("unicode", False),
            timezone=reports_data.get("timezone", "local"),
        )

        progress_data = data.get("progress", {})
        progress = ProgressConfig(
            enabled=progress_data.get("enabled", True),
            interval_seconds=progress_data.get("interval_seconds", 0.25),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        return SystemConfig(
            log_path=Path(data.get("log_path", DEFAULT_LOG_PATH)),
            parser=parser,
            storage=storage,
            reports=reports,
            progress=progress,
            logging=logging_config,
        )

    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None
    except OSError as e:
        print(f"Error reading config: {e}", file=sys.stderr)
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: SystemConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "log_path": str(config.log_path),
            "parser": {
                "reference_year": config.parser.reference_year,
                "timezone": config.parser.timezone,
            },
            "storage": {
                "db_path": str(config.storage.db_path),
            },
            "reports": {
                "output_dir": str(config.reports.output_dir),
                "by_domain_filename": config.reports.by_domain_filename,
                "by_first_seen_filename": config.reports.by_first_seen_filename,
                "display": config.reports.display,
                "unicode": config.reports.unicode,
                "timezone": config.reports.timezone,
            },
            "progress": {
                "enabled": config.progress.enabled,
                "interval_seconds": config.progress.interval_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def build_config(args: argparse.Namespace) -> SystemConfig:
    """
    Resolve configuration from defaults, config file, environment and flags.

    Raises:
        ConfigError: If the config file cannot be loaded or a value is invalid
    """
    config = None
    if getattr(args, "config", None):
        config = load_config_from_file(Path(args.config))
        if config is None:
            raise ConfigError(
                code="config_load",
                message=f"Could not load config from {args.config}",
                details={"path": args.config},
            )
    if config is None:
        config = create_default_config()

    config = apply_env_overrides(config)

    # Command line flags win over everything else
    if getattr(args, "log", None):
        config = replace(config, log_path=Path(args.log))
    if getattr(args, "db", None):
        config = replace(config, storage=replace(config.storage, db_path=Path(args.db)))
    if getattr(args, "year", None) is not None:
        config = replace(config, parser=replace(config.parser, reference_year=args.year))
    if getattr(args, "log_timezone", None):
        config = replace(config, parser=replace(config.parser, timezone=args.log_timezone))
    if getattr(args, "output_dir", None):
        config = replace(config, reports=replace(config.reports, output_dir=Path(args.output_dir)))
    if getattr(args, "display", None):
        config = replace(config, reports=replace(config.reports, display=args.display))
    if getattr(args, "unicode", False):
        config = replace(config, reports=replace(config.reports, unicode=True))
    if getattr(args, "timezone", None):
        config = replace(config, reports=replace(config.reports, timezone=args.timezone))
    if getattr(args, "no_progress", False):
        config = replace(config, progress=replace(config.progress, enabled=False))
    if getattr(args, "verbose", False):
        config = replace(config, logging=replace(config.logging, level="debug"))

    validate_config(config)
    return config


def _run_command(args: argparse.Namespace, action: str) -> int:
    """Build config and logger, run ``action`` and map errors to an exit code."""
    logger: Optional[AuditLogger] = None
    try:
        config = build_config(args)
        logger = create_logger(
            level=config.logging.level,
            output_format=config.logging.output_format,
        )
        pipeline = IngestPipeline(config, logger=logger)

        if action == "run":
            result = pipeline.run()
            print(f"Processed {result.ingest.lines_processed} lines, "
                  f"{result.ingest.unique_domains} unique domains")
        elif action == "ingest":
            result, merged = pipeline.ingest()
            print(f"Processed {result.lines_processed} lines, merged {merged} domains")
        else:
            for report in pipeline.export():
                print(f"Saved {report.rows} unique domains to {report.path}")
        return 0

    except DnsLogIndexError as e:
        if logger is None:
            logger = create_logger(level="error")
        logger.log_error("cli", f"{action} failed", error=e)
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the 'run' command."""
    return _run_command(args, "run")


def cmd_ingest(args: argparse.Namespace) -> int:
    """Handle the 'ingest' command."""
    return _run_command(args, "ingest")


def cmd_export(args: argparse.Namespace) -> int:
    """Handle the 'export' command."""
    return _run_command(args, "export")


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Log file: {config.log_path}")
        print(f"  Domain store: {config.storage.db_path}")
        print(f"  Reference year: {config.parser.reference_year or 'current'}")
        print(f"  Log timezone: {config.parser.timezone}")
        print(f"  Report directory: {config.reports.output_dir}")
        print(f"  Report display: {config.reports.display}")
        print(f"  Progress: {config.progress.enabled}")
        print(f"  Log level: {config.logging.level}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        if save_config_to_file(create_default_config(), config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1
        try:
            validate_config(config)
        except ConfigError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db", "-d",
        help=f"Path to the domain store (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "log",
        nargs="?",
        help=f"Path to the dnsmasq log (default: {DEFAULT_LOG_PATH})",
    )
    parser.add_argument(
        "--year",
        type=int,
        help="Year to assign to log timestamps (default: current year)",
    )
    parser.add_argument(
        "--log-timezone",
        help="Timezone the log timestamps are written in (default: UTC)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress line",
    )


def _add_report_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-dir", "-o",
        help="Directory for report files (default: current directory)",
    )
    parser.add_argument(
        "--display",
        choices=["key", "domain"],
        help="Print reversed keys or original domains (default: key)",
    )
    parser.add_argument(
        "--unicode",
        action="store_true",
        help="Decode IDNA (xn--) labels in reports",
    )
    parser.add_argument(
        "--timezone", "-t",
        help="Timezone for report timestamps (default: local)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="dnslog-indexer",
        description="Index the domains queried in a dnsmasq log by first and last seen time",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'run' command
    run_parser = subparsers.add_parser(
        "run",
        help="Parse a log, update the domain store and export reports",
    )
    _add_scan_arguments(run_parser)
    _add_report_arguments(run_parser)
    _add_common_arguments(run_parser)
    run_parser.set_defaults(func=cmd_run)

    # 'ingest' command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Parse a log and update the domain store",
    )
    _add_scan_arguments(ingest_parser)
    _add_common_arguments(ingest_parser)
    ingest_parser.set_defaults(func=cmd_ingest)

    # 'export' command
    export_parser = subparsers.add_parser(
        "export",
        help="Export reports from the domain store",
    )
    _add_report_arguments(export_parser)
    _add_common_arguments(export_parser)
    export_parser.set_defaults(func=cmd_export)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
