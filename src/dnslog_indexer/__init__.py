"""
DNS Log Indexer - first/last-seen index of domains queried through dnsmasq.

This package parses dnsmasq query logs, aggregates every queried domain under
a label-reversed key with its first and last query time, and merges the result
idempotently into a SQLite store that can be exported as sorted text reports.
"""

__version__ = "0.1.0"
__author__ = "DNS Log Indexer Team"

from dnslog_indexer.exceptions import (
    DnsLogIndexError,
    InputError,
    StorageError,
    ExportError,
    ConfigError,
)
from dnslog_indexer.enums import (
    LogLevel,
    ReportOrder,
    DisplayMode,
)
from dnslog_indexer.models import (
    Observation,
    DomainRecord,
    IngestResult,
    ReportSummary,
)
from dnslog_indexer.config import (
    ParserConfig,
    StorageConfig,
    ReportConfig,
    ProgressConfig,
    LoggingConfig,
    SystemConfig,
    apply_env_overrides,
    resolve_timezone,
    validate_config,
)
from dnslog_indexer.audit_logger import (
    AuditLogger,
    LogEntry,
    create_logger,
)
from dnslog_indexer.line_parser import (
    LineParser,
    parse_line,
)
from dnslog_indexer.domain_key import (
    reverse_domain,
    domain_from_key,
)
from dnslog_indexer.aggregator import (
    Aggregator,
)
from dnslog_indexer.domain_store import (
    DomainStore,
)
from dnslog_indexer.progress import (
    ProgressMonitor,
    ScanCursor,
)
from dnslog_indexer.report_writer import (
    ReportWriter,
    format_timestamp,
    write_report,
)
from dnslog_indexer.pipeline import (
    IngestPipeline,
    RunResult,
)
from dnslog_indexer.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "DnsLogIndexError",
    "InputError",
    "StorageError",
    "ExportError",
    "ConfigError",
    # Enums
    "LogLevel",
    "ReportOrder",
    "DisplayMode",
    # Models
    "Observation",
    "DomainRecord",
    "IngestResult",
    "ReportSummary",
    # Configuration
    "ParserConfig",
    "StorageConfig",
    "ReportConfig",
    "ProgressConfig",
    "LoggingConfig",
    "SystemConfig",
    "apply_env_overrides",
    "resolve_timezone",
    "validate_config",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    "create_logger",
    # Line Parser
    "LineParser",
    "parse_line",
    # Domain Keys
    "reverse_domain",
    "domain_from_key",
    # Aggregator
    "Aggregator",
    # Domain Store
    "DomainStore",
    # Progress
    "ProgressMonitor",
    "ScanCursor",
    # Reports
    "ReportWriter",
    "format_timestamp",
    "write_report",
    # Pipeline
    "IngestPipeline",
    "RunResult",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
