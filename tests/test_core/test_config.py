"""Tests for config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from llmguardian.core.config import (
    CONFIG_FILENAME,
    DEFAULT_BACKUP_SUFFIX,
    GuardianConfig,
    default_config_toml,
    load_config,
)


class TestLoadConfig:
    def test_defaults_when_no_config_file(self, tmp_path: Path):
        """Without an llm-guardian.toml, load_config should return defaults."""
        config = load_config(tmp_path)

        assert isinstance(config, GuardianConfig)
        assert config.scan.analyzers == ["hallucination", "code-quality", "security", "performance"]
        assert config.scan.max_file_lines == 600
        assert config.scan.max_function_lines == 150
        assert config.scan.warn_any_count == 3
        assert config.scan.registry_ttl_seconds == 300.0
        assert config.fix.categories == ["hallucination", "code-quality"]
        assert config.fix.max_concurrency == 3
        assert config.fix.min_confidence == 0.0
        assert config.fix.backup_suffix == DEFAULT_BACKUP_SUFFIX
        assert config.validate.type_check is True
        assert config.validate.tests is True
        assert config.validate.lint is False

    def test_defaults_exclude_patterns(self, tmp_path: Path):
        """Default config should exclude dependency and build directories."""
        config = load_config(tmp_path)

        assert "node_modules/" in config.exclude
        assert ".git/" in config.exclude
        assert "dist/" in config.exclude

    def test_loads_scan_section(self, tmp_path: Path):
        """Scan section should override defaults key by key."""
        (tmp_path / CONFIG_FILENAME).write_text("""\
[scan]
analyzers = ["security"]
max_file_lines = 300
offline = true
""")
        config = load_config(tmp_path)

        assert config.scan.analyzers == ["security"]
        assert config.scan.max_file_lines == 300
        assert config.scan.offline is True
        # Untouched keys keep their defaults
        assert config.scan.max_function_lines == 150

    def test_loads_general_section(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text('[general]\nexclude = ["vendor/"]\n')
        config = load_config(tmp_path)

        assert config.exclude == ["vendor/"]

    def test_loads_fix_section_with_ai_table(self, tmp_path: Path):
        """Fix section and its [fix.ai] sub-table should both apply."""
        (tmp_path / CONFIG_FILENAME).write_text("""\
[fix]
min_confidence = 0.8
engine = "anthropic"
create_backups = false

[fix.ai]
model = "claude-test"
max_tokens = 500
""")
        config = load_config(tmp_path)

        assert config.fix.min_confidence == 0.8
        assert config.fix.engine == "anthropic"
        assert config.fix.create_backups is False
        assert config.fix.model == "claude-test"
        assert config.fix.max_tokens == 500

    def test_loads_validate_commands(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("""\
[validate]
lint = true
timeout_seconds = 5

[validate.commands]
test = ["pytest", "-x"]
""")
        config = load_config(tmp_path)

        assert config.validate.lint is True
        assert config.validate.timeout_seconds == 5
        assert config.validate.commands == {"test": ["pytest", "-x"]}

    def test_invalid_toml_raises(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("[scan\nbroken")

        with pytest.raises(Exception):
            load_config(tmp_path)


class TestDefaultConfigToml:
    def test_rendered_defaults_load_back_to_defaults(self, tmp_path: Path):
        """`config --init` output should parse to the built-in defaults."""
        (tmp_path / CONFIG_FILENAME).write_text(default_config_toml())

        assert load_config(tmp_path) == GuardianConfig()
