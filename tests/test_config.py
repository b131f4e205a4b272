"""Tests for vcsflow.lib.config and envparse modules."""

import pytest
from pathlib import Path
from unittest.mock import patch

from vcsflow.lib.config import Settings, load_settings, settings_from_env
from vcsflow.lib.constants import AUTH_ERROR_MESSAGES, DEFAULT_READY_MAX_POLLS
from vcsflow.lib.envparse import parse_env
from vcsflow.lib.errors import ConfigError
from vcsflow.workflow.auth_retry import RetryPolicy


class TestParseEnv:
    """KEY=value parsing."""

    def test_basic(self):
        text = "# comment\n\nREADY_MAX_POLLS=10\nDEFAULT_REMOTE = 'upstream'\n"
        assert parse_env(text) == {"READY_MAX_POLLS": "10", "DEFAULT_REMOTE": "upstream"}

    def test_export_and_trailing_comment(self):
        text = "export READY_MAX_POLLS=60  # one minute\nNEW_BRANCH_PREFIX=\"nb #1\"\n"
        assert parse_env(text) == {"READY_MAX_POLLS": "60", "NEW_BRANCH_PREFIX": "nb #1"}

    def test_repeated_key_keeps_last(self, caplog):
        assert parse_env("DEFAULT_REMOTE=a\nDEFAULT_REMOTE=b\n") == {"DEFAULT_REMOTE": "b"}
        assert "set again" in caplog.text

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="Line 1"):
            parse_env("READY_MAX_POLLS")

    def test_lowercase_key_rejected(self):
        with pytest.raises(ValueError, match="Invalid key"):
            parse_env("remote=origin")

    @pytest.mark.parametrize("value", ["$(rm -rf /)", "`id`", "a;b", "a | b", "${HOME}"])
    def test_forbidden_patterns(self, value):
        with pytest.raises(ValueError, match="Forbidden"):
            parse_env(f"DEFAULT_REMOTE={value}")


class TestSettingsFromEnv:
    """Schema validation and conversion."""

    def test_empty_gives_defaults(self):
        settings = settings_from_env({})
        assert settings == Settings()
        assert settings.ready_max_polls == DEFAULT_READY_MAX_POLLS
        assert settings.max_auth_retries is None

    def test_values_converted(self):
        settings = settings_from_env({
            "READY_POLL_INTERVAL": "0.5",
            "READY_MAX_POLLS": "20",
            "MAX_AUTH_RETRIES": "3",
            "DESKTOP_NOTIFICATIONS": "true",
            "NEW_BRANCH_PREFIX": "nb/publish",
        })
        assert settings.ready_poll_interval == 0.5
        assert settings.ready_max_polls == 20
        assert settings.max_auth_retries == 3
        assert settings.desktop_notifications is True
        assert settings.new_branch_prefix == "nb/publish"

    def test_zero_retries_means_unbounded(self):
        assert settings_from_env({"MAX_AUTH_RETRIES": "0"}).max_auth_retries is None

    def test_extra_auth_messages_are_appended(self):
        settings = settings_from_env({"AUTH_ERROR_MESSAGES": "token expired, HTTP 403"})
        assert settings.auth_error_messages == AUTH_ERROR_MESSAGES + ("token expired", "HTTP 403")

    def test_all_problems_reported(self):
        with pytest.raises(ConfigError) as exc:
            settings_from_env({"READY_MAX_POLLS": "x", "GIT_TIMEOUT": "y"})
        assert "GIT_TIMEOUT" in str(exc.value)
        assert "READY_MAX_POLLS" in str(exc.value)

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Invalid settings"):
            settings_from_env({"MERGE_MODE": "local"})

    def test_bad_number(self):
        with pytest.raises(ConfigError, match="READY_MAX_POLLS"):
            settings_from_env({"READY_MAX_POLLS": "0"})

    def test_retry_policy(self):
        assert RetryPolicy.from_settings(Settings()).allows(100)
        policy = RetryPolicy.from_settings(Settings(max_auth_retries=2))
        assert policy.allows(1)
        assert not policy.allows(2)


class TestLoadSettings:
    """Settings file discovery."""

    def test_missing_default_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path) == Settings()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path, tmp_path / "nope.env")

    def test_reads_repo_file(self, tmp_path):
        (tmp_path / ".vcsflow.env").write_text("DEFAULT_REMOTE=upstream\n")
        settings = load_settings(tmp_path)
        assert settings.default_remote == "upstream"
        assert settings.source == tmp_path / ".vcsflow.env"

    @patch("vcsflow.lib.config.envparse.load_env")
    def test_parse_error_becomes_config_error(self, mock_load_env, tmp_path):
        (tmp_path / ".vcsflow.env").write_text("")
        mock_load_env.side_effect = ValueError("Line 1: Forbidden pattern in value")
        with pytest.raises(ConfigError, match="Forbidden"):
            load_settings(tmp_path)

    def test_fake_path_without_file(self):
        assert load_settings(Path("/fake/project")).source is None
