"""
Unit tests for configuration loading.

Tests follow the Given/When/Then pattern for clarity.
"""

import pytest

from mintwatch.config import PROJECTS, load_config, require
from mintwatch.errors import ConfigError


class TestLoadConfig:
    """Tests for reading the flat YAML config file."""

    def test_reads_flat_mapping(self, tmp_path):
        """
        Given a YAML file with API keys
        When loading it
        Then every value should come back as a string
        """
        # Given
        path = tmp_path / "config.yaml"
        path.write_text("es_key: ABC123\ncon_key: 42\nlog_file:\n")

        # When
        config = load_config(str(path))

        # Then
        assert config == {"es_key": "ABC123", "con_key": "42", "log_file": ""}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot be opened"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_empty_file_gives_empty_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    @pytest.mark.parametrize("content", ["- a\n- b\n", "es_key: [1, 2]\n", "es_key: {a: 1}\n"])
    def test_rejects_non_flat_documents(self, tmp_path, content):
        """
        Given a YAML document that is not a flat key-value mapping
        When loading it
        Then a ConfigError should be raised
        """
        # Given
        path = tmp_path / "config.yaml"
        path.write_text(content)

        # When / Then
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_rejects_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("es_key: [unclosed\n")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config(str(path))


class TestRequire:
    """Tests for required keys with environment fallback."""

    def test_returns_config_value(self):
        assert require({"es_key": "abc"}, "es_key") == "abc"

    def test_falls_back_to_environment(self, monkeypatch):
        """
        Given a key missing from the file but set in the environment
        When requiring it
        Then the upper-cased environment variable should be used
        """
        # Given
        monkeypatch.setenv("ES_KEY", "from-env")

        # When / Then
        assert require({}, "es_key") == "from-env"

    def test_missing_everywhere_raises(self, monkeypatch):
        """
        Given a key missing from both config and environment
        When requiring it
        Then a ConfigError naming the key should be raised
        """
        # Given
        monkeypatch.delenv("ES_KEY", raising=False)

        # When / Then
        with pytest.raises(ConfigError, match="es_key"):
            require({"es_key": ""}, "es_key")


class TestProjects:
    """Tests for the named report registry."""

    def test_migration_is_a_fixed_supply_report(self):
        project = PROJECTS["migration"]
        assert project.max_supply == 6900
        assert project.address == "0x4BB33f6E69fd62cf3abbcC6F1F43b94A5D572C2B"

    def test_erc721_report_needs_an_address(self):
        project = PROJECTS["erc721_mint_act"]
        assert project.address is None
        assert project.label is None
