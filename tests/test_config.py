"""Tests for list_foreach/config: settings and run options."""

import pytest

from list_foreach.config.options import RunOptions
from list_foreach.config.settings import Settings
from list_foreach.core.errors import ConfigurationError
from list_foreach.core.types import InputFormat, OutputFormat


class TestSettings:
    """Tests for environment-backed settings."""

    def test_defaults(self):
        """Defaults: one worker, unlimited rate, unlimited retries."""
        settings = Settings(_env_file=None)

        assert settings.parallelism == 1
        assert settings.rate_limit_per_minute == 0
        assert settings.max_retries is None
        assert settings.billing_project is None

    def test_environment_override(self, monkeypatch):
        """LIST_FOREACH_* variables override defaults."""
        monkeypatch.setenv("LIST_FOREACH_PARALLELISM", "8")
        monkeypatch.setenv("LIST_FOREACH_BILLING_PROJECT", "billing-proj")
        monkeypatch.setenv("LIST_FOREACH_MAX_RETRIES", "5")

        settings = Settings(_env_file=None)

        assert settings.parallelism == 8
        assert settings.billing_project == "billing-proj"
        assert settings.max_retries == 5

    def test_invalid_environment(self, monkeypatch):
        """Out-of-range values are rejected by validation."""
        monkeypatch.setenv("LIST_FOREACH_PARALLELISM", "0")

        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestRunOptions:
    """Tests for RunOptions validation and construction."""

    def test_defaults(self):
        """Default options describe a sequential dry run."""
        options = RunOptions()

        assert options.execute is False
        assert options.parallelism == 1
        assert options.input_format == InputFormat.JSON
        assert options.output_format == OutputFormat.JSON

    def test_collection_options_exclusive(self):
        """--collection and --auto-collection cannot be combined."""
        with pytest.raises(ConfigurationError, match="exclusive"):
            RunOptions(collection="items", auto_collection=True)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"parallelism": 0},
            {"rate_limit_per_minute": -1},
            {"max_retries": -1},
            {"http_timeout": 0},
            {"backoff_jitter": 1.5},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            RunOptions(**overrides)

    def test_format_strings_coerced(self):
        """Format names are converted to enums."""
        options = RunOptions(input_format="yaml", output_format="yaml")

        assert options.input_format is InputFormat.YAML
        assert options.output_format is OutputFormat.YAML

    def test_from_settings(self):
        """Settings provide defaults; non-None overrides win."""
        settings = Settings(_env_file=None, parallelism=4, billing_project="from-settings")

        options = RunOptions.from_settings(settings, parallelism=None, billing_project="from-cli", execute=True)

        assert options.parallelism == 4
        assert options.billing_project == "from-cli"
        assert options.execute is True

    def test_from_settings_unknown_option(self):
        with pytest.raises(ConfigurationError, match="unknown option"):
            RunOptions.from_settings(Settings(_env_file=None), colour="red")
