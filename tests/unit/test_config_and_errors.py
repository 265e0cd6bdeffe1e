# =============================================================================
# tests/unit/test_config_and_errors.py
# Unit Tests for Settings, Exceptions, Handlers and Logging
# =============================================================================

import logging
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from cleantrack_core.config import SyncSettings, load_settings
from cleantrack_core.errors import (
    CleanTrackError,
    ConfigurationError,
    DuplicateAreaError,
    AreaValidationError,
    ErrorContext,
    RemoteStoreError,
    TaskValidationError,
    handle_error,
    rerun_after,
    safe_execute,
    show_flash,
)
from cleantrack_core.logging import LogContext, setup_logging


class TestLoadSettings:
    """Test settings resolution order"""

    def test_secrets_take_precedence(self):
        settings = load_settings(
            secrets={
                "supabase": {"url": "https://a.supabase.co", "key": "anon"},
                "cleantrack": {"tasks_table": "cleaning_tasks", "reseed_on_empty_remote": "false"},
            },
            environ={"SUPABASE_URL": "https://env.supabase.co"},
        )

        assert settings.supabase_url == "https://a.supabase.co"
        assert settings.remote_configured
        assert settings.tasks_table == "cleaning_tasks"
        assert settings.reseed_on_empty_remote is False

    def test_environment_fallback(self, tmp_path):
        settings = load_settings(
            secrets={},
            environ={
                "SUPABASE_URL": "https://env.supabase.co",
                "SUPABASE_ANON_KEY": "anon",
                "CLEANTRACK_DB_PATH": str(tmp_path / "x.db"),
            },
        )

        assert settings.supabase_key == "anon"
        assert settings.local_db_path == tmp_path / "x.db"

    def test_defaults_run_local_only(self):
        settings = load_settings(secrets={}, environ={})

        assert not settings.remote_configured
        assert settings.areas_table == "areas"
        assert settings.propagation_workers == 1
        assert settings.reseed_on_empty_remote is True

    def test_negative_workers_rejected(self):
        with pytest.raises(ConfigurationError):
            SyncSettings(propagation_workers=-1)

    def test_non_integer_workers_rejected(self):
        with pytest.raises(ConfigurationError):
            load_settings(secrets={"cleantrack": {"propagation_workers": "many"}}, environ={})

    def test_path_is_coerced(self):
        assert isinstance(SyncSettings(local_db_path="a/b.db").local_db_path, Path)


class TestExceptions:
    """Test the exception hierarchy"""

    def test_to_dict(self):
        error = RemoteStoreError("down", table="tasks", operation="list")
        data = error.to_dict()

        assert data["code"] == "SYNC_001"
        assert data["details"] == {"table": "tasks", "operation": "list"}
        assert str(error).startswith("[SYNC_001] down")

    def test_duplicate_area_is_validation_error(self):
        error = DuplicateAreaError("Lobby")
        assert isinstance(error, AreaValidationError)
        assert error.code == "AREA_001"
        assert error.details["name"] == "Lobby"

    def test_configuration_error_not_recoverable(self):
        assert ConfigurationError("bad").recoverable is False

    def test_unset_context_is_not_recorded(self):
        error = TaskValidationError("Task id is required", field="id")

        assert error.details == {"field": "id"}
        assert str(error) == "[DATA_001] Task id is required (field='id')"

    def test_explicit_details_merge_with_context(self):
        error = RemoteStoreError("down", table="tasks", operation="upsert", key="t1")
        assert error.details == {"table": "tasks", "operation": "upsert", "key": "t1"}

    def test_recoverable_override(self):
        assert RemoteStoreError("down", recoverable=False).recoverable is False
        assert str(RemoteStoreError("down")) == "[SYNC_001] down"


class TestHandlers:
    """Test Streamlit-facing error handling"""

    @pytest.fixture
    def fake_st(self, monkeypatch):
        st = MagicMock()
        st.session_state = {}
        monkeypatch.setattr("cleantrack_core.errors.handlers.st", st)
        return st

    def test_error_context_suppresses_and_reports(self, fake_st):
        with ErrorContext("Adding area") as ctx:
            raise DuplicateAreaError("Lobby")

        assert ctx.failed
        fake_st.error.assert_called_once_with("Error: Area name already exists!")

    def test_remote_error_is_a_warning(self, fake_st):
        handle_error(RemoteStoreError("timeout", table="tasks"))

        fake_st.warning.assert_called_once_with("Server unavailable, working offline: timeout")
        fake_st.error.assert_not_called()

    def test_error_context_success_message(self, fake_st):
        with ErrorContext("Adding area", show_success=True, success_message="Area added") as ctx:
            pass

        assert not ctx.failed
        fake_st.success.assert_called_once_with("Area added")

    def test_non_recoverable_context_reraises(self, fake_st):
        with pytest.raises(ValueError):
            with ErrorContext("Critical step", recoverable=False):
                raise ValueError("boom")

    def test_safe_execute_returns_default(self, fake_st):
        def fail():
            raise CleanTrackError("nope")

        assert safe_execute(fail, default=[], show_user_message=False) == []
        fake_st.error.assert_not_called()

    def test_safe_execute_reraise(self, fake_st):
        with pytest.raises(ZeroDivisionError):
            safe_execute(lambda: 1 / 0, reraise=True, show_user_message=False)

    def test_successful_action_reruns_with_message(self, fake_st):
        with ErrorContext("Deleting task") as action:
            pass
        rerun_after(action, "Task deleted")

        fake_st.rerun.assert_called_once_with()
        fake_st.success.assert_not_called()

        show_flash()
        show_flash()
        fake_st.success.assert_called_once_with("Task deleted")

    def test_failed_action_does_not_rerun(self, fake_st):
        with ErrorContext("Adding area") as action:
            raise DuplicateAreaError("Lobby")
        rerun_after(action, "Area added")

        fake_st.rerun.assert_not_called()
        assert fake_st.session_state == {}


class TestLogging:
    """Test logging setup"""

    def test_setup_writes_log_file(self, tmp_path):
        setup_logging(level=logging.DEBUG, log_dir=tmp_path, log_filename="test.log")
        logging.getLogger("cleantrack_core.test").info("hello")

        assert "hello" in (tmp_path / "test.log").read_text()
        assert logging.getLogger("httpx").level == logging.WARNING
        logging.getLogger().handlers.clear()

    def test_log_context_times_operation(self, caplog):
        logger = logging.getLogger("cleantrack_core.timing")
        with caplog.at_level(logging.INFO):
            with LogContext(logger, "Loading") as ctx:
                pass

        assert ctx.elapsed >= 0
        assert "Loading... started" in caplog.text
        assert "Loading... completed" in caplog.text

    def test_log_context_summary(self, caplog):
        logger = logging.getLogger("cleantrack_core.timing")
        with caplog.at_level(logging.INFO):
            with LogContext(logger, "Loading tasks") as step:
                step.summary = "5 tasks"

        assert caplog.records[-1].getMessage().endswith(": 5 tasks")

    def test_log_context_offline_failure_is_a_warning(self, caplog):
        logger = logging.getLogger("cleantrack_core.timing")
        with caplog.at_level(logging.INFO):
            with pytest.raises(RemoteStoreError):
                with LogContext(logger, "Uploading"):
                    raise RemoteStoreError("timeout", table="tasks")

        failure = caplog.records[-1]
        assert failure.levelno == logging.WARNING
        assert failure.exc_info is None

    def test_log_context_unexpected_failure_is_an_error(self, caplog):
        logger = logging.getLogger("cleantrack_core.timing")
        with caplog.at_level(logging.INFO):
            with pytest.raises(KeyError):
                with LogContext(logger, "Uploading"):
                    raise KeyError("id")

        failure = caplog.records[-1]
        assert failure.levelno == logging.ERROR
        assert failure.exc_info is not None

    def test_level_name_and_environment(self, monkeypatch):
        from cleantrack_core.logging.config import _resolve_level

        assert _resolve_level("debug") == logging.DEBUG
        assert _resolve_level("nonsense") == logging.INFO
        monkeypatch.setenv("CLEANTRACK_LOG_LEVEL", "WARNING")
        assert _resolve_level(None) == logging.WARNING
