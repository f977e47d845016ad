"""
Property-based tests for configuration handling.

Covers validation, timezone resolution, environment overrides and the JSON
config file used by the CLI.
"""

import tempfile
from datetime import timezone
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dnslog_indexer.cli import (
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)
from dnslog_indexer.config import (
    LoggingConfig,
    ParserConfig,
    ProgressConfig,
    ReportConfig,
    StorageConfig,
    SystemConfig,
    apply_env_overrides,
    resolve_timezone,
    validate_config,
)
from dnslog_indexer.exceptions import ConfigError


path_part_strategy = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789_-"),
    min_size=1,
    max_size=20,
)


@st.composite
def system_config_strategy(draw) -> SystemConfig:
    """Generate valid SystemConfig objects."""
    return SystemConfig(
        log_path=Path(draw(path_part_strategy) + ".log"),
        parser=ParserConfig(
            reference_year=draw(st.one_of(st.none(), st.integers(min_value=1970, max_value=2100))),
            timezone=draw(st.sampled_from(["UTC", "local"])),
        ),
        storage=StorageConfig(db_path=Path(draw(path_part_strategy) + ".db")),
        reports=ReportConfig(
            output_dir=Path(draw(path_part_strategy)),
            by_domain_filename=draw(path_part_strategy) + ".txt",
            by_first_seen_filename=draw(path_part_strategy) + ".txt",
            display=draw(st.sampled_from(["key", "domain"])),
            unicode=draw(st.booleans()),
            timezone=draw(st.sampled_from(["UTC", "local"])),
        ),
        progress=ProgressConfig(
            enabled=draw(st.booleans()),
            interval_seconds=draw(st.floats(min_value=0.25, max_value=10.0)),
        ),
        logging=LoggingConfig(
            level=draw(st.sampled_from(["debug", "info", "warn", "error"])),
            output_format=draw(st.sampled_from(["json", "text", "both"])),
        ),
    )


class TestConfigFileProperty:
    """Saved configuration loads back unchanged."""

    @given(config=system_config_strategy())
    @settings(max_examples=50, deadline=None)
    def test_save_then_load(self, config: SystemConfig) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            assert save_config_to_file(config, path)
            assert load_config_from_file(path) == config

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert load_config_from_file(Path(tmpdir) / "nope.json") is None

    def test_invalid_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            assert load_config_from_file(path) is None

    def test_partial_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text('{"log_path": "/var/log/dnsmasq.log"}', encoding="utf-8")
            config = load_config_from_file(path)

            assert config.log_path == Path("/var/log/dnsmasq.log")
            assert config.storage == create_default_config().storage
            assert config.reports == ReportConfig()


class TestValidation:
    """Values the dataclasses cannot enforce are checked."""

    def test_defaults_are_valid(self) -> None:
        validate_config(create_default_config())

    @pytest.mark.parametrize("config, code", [
        (SystemConfig(logging=LoggingConfig(level="loud")), "invalid_log_level"),
        (SystemConfig(logging=LoggingConfig(output_format="xml")), "invalid_output_format"),
        (SystemConfig(reports=ReportConfig(display="both")), "invalid_display_mode"),
        (SystemConfig(progress=ProgressConfig(interval_seconds=0.01)), "invalid_progress_interval"),
        (SystemConfig(parser=ParserConfig(reference_year=1900)), "invalid_reference_year"),
        (SystemConfig(parser=ParserConfig(timezone="Mars/Olympus")), "invalid_timezone"),
        (SystemConfig(parser=ParserConfig(reference_year="2026")), "invalid_reference_year"),
        (SystemConfig(parser=ParserConfig(reference_year=True)), "invalid_reference_year"),
        (SystemConfig(progress=ProgressConfig(interval_seconds="fast")), "invalid_progress_interval"),
        (SystemConfig(reports=ReportConfig(timezone=5)), "invalid_timezone"),
    ])
    def test_invalid_values(self, config: SystemConfig, code: str) -> None:
        with pytest.raises(ConfigError) as excinfo:
            validate_config(config)
        assert excinfo.value.code == code


class TestTimezones:

    def test_local(self) -> None:
        assert resolve_timezone("local") is None
        assert resolve_timezone(None) is None

    def test_utc(self) -> None:
        assert resolve_timezone("UTC") is timezone.utc
        assert resolve_timezone("utc") is timezone.utc

    def test_unknown(self) -> None:
        with pytest.raises(ConfigError):
            resolve_timezone("Nowhere/Special")


class TestEnvironmentOverrides:
    """DNSLOG_* variables override file and default values."""

    def test_overrides_applied(self) -> None:
        config = apply_env_overrides(create_default_config(), environ={
            "DNSLOG_PATH": "/var/log/dnsmasq.log",
            "DNSLOG_DB": "/srv/domains.db",
            "DNSLOG_OUTPUT_DIR": "/srv/reports",
            "DNSLOG_LOG_LEVEL": "DEBUG",
            "DNSLOG_PROGRESS": "off",
        })

        assert config.log_path == Path("/var/log/dnsmasq.log")
        assert config.storage.db_path == Path("/srv/domains.db")
        assert config.reports.output_dir == Path("/srv/reports")
        assert config.logging.level == "debug"
        assert config.progress.enabled is False

    def test_empty_environment_changes_nothing(self) -> None:
        base = create_default_config()
        assert apply_env_overrides(base, environ={}) == base

    def test_dotenv_file(self, monkeypatch) -> None:
        monkeypatch.delenv("DNSLOG_DB", raising=False)
        with tempfile.TemporaryDirectory() as tmpdir:
            env_file = Path(tmpdir) / ".env"
            env_file.write_text("DNSLOG_DB=/from/dotenv.db\n", encoding="utf-8")
            try:
                config = apply_env_overrides(create_default_config(), env_file=env_file)
            finally:
                monkeypatch.delenv("DNSLOG_DB", raising=False)

            assert config.storage.db_path == Path("/from/dotenv.db")
