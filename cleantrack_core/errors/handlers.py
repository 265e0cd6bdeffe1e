# =============================================================================
# cleantrack_core/errors/handlers.py
# Surfacing Errors in the Streamlit UI
# =============================================================================

from __future__ import annotations
import logging
from typing import Any, Callable, Optional, TypeVar
import streamlit as st

from cleantrack_core.logging import get_logger
from .exceptions import (
    AreaValidationError,
    CleanTrackError,
    RemoteStoreError,
    TaskValidationError,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Rejected user input: shown to the user, logged without a traceback
USER_INPUT_ERRORS = (AreaValidationError, TaskValidationError)


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Log an exception and tell the user about it.

    - input validation errors: st.error, logged at WARNING
    - remote store errors: st.warning, the app keeps working locally
    - everything else: st.error, logged at ERROR with traceback

    Args:
        error: The exception to handle
        show_user_message: Whether to display anything in the UI
        log_error: Whether to log the error
        user_message: Text to show instead of the error's own message
    """
    tracked = isinstance(error, CleanTrackError)
    message = user_message or (error.message if tracked else str(error))
    code = error.code if tracked else "UNKNOWN"

    if log_error:
        if isinstance(error, USER_INPUT_ERRORS):
            logger.warning(f"[{code}] {message}")
        else:
            logger.log(
                logging.WARNING if isinstance(error, RemoteStoreError) else logging.ERROR,
                f"[{code}] {message}",
                exc_info=error,
            )

    if not show_user_message:
        return

    if isinstance(error, RemoteStoreError):
        st.warning(f"Server unavailable, working offline: {message}")
    elif tracked and not error.recoverable:
        st.error(f"Critical Error: {message}. Please contact support.")
    else:
        st.error(f"Error: {message}")

    if tracked and error.details and st.session_state.get("debug_mode", False):
        with st.expander("Error Details", expanded=False):
            st.json(error.to_dict())


def safe_execute(
    func: Callable[..., T],
    *args: Any,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    show_user_message: bool = True,
    **kwargs: Any,
) -> Optional[T]:
    """
    Call ``func`` and return ``default`` if it raises.

    Usage:
        pdf = safe_execute(
            export_tasks_pdf, tasks, title,
            error_message="Failed to build PDF report",
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, show_user_message=show_user_message, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Wraps one user action (a button press, a form submit).

    Usage:
        with ErrorContext("Adding area") as action:
            service.add_area(area)
        rerun_after(action, "Area added")

    A DuplicateAreaError raised inside shows "Error: Area name already exists!"
    and is swallowed; with ``recoverable=False`` it propagates after reporting.
    """

    def __init__(
        self,
        operation: str,
        recoverable: bool = True,
        show_success: bool = False,
        success_message: Optional[str] = None,
    ):
        self.operation = operation
        self.recoverable = recoverable
        self.show_success = show_success
        self.success_message = success_message
        self.error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Action started: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.info(f"Action done: {self.operation}")
            if self.show_success:
                st.success(self.success_message or f"{self.operation} completed")
            return False

        if not issubclass(exc_type, Exception):
            return False

        self.error = exc_val
        handle_error(
            exc_val,
            user_message=None if isinstance(exc_val, CleanTrackError) else f"Error during: {self.operation}",
        )
        return self.recoverable


# Message carried across a rerun; st.success drawn before st.rerun() is lost
FLASH_KEY = "cleantrack_flash"


def rerun_after(action: ErrorContext, message: Optional[str] = None) -> None:
    """
    Redraw the page after a successful mutation so every view built earlier
    in the script reflects the new collections. Does nothing if it failed.
    """
    if action.failed:
        return
    if message:
        st.session_state[FLASH_KEY] = message
    st.rerun()


def show_flash() -> None:
    """Show (once) the message left by ``rerun_after``."""
    message = st.session_state.pop(FLASH_KEY, None)
    if message:
        st.success(message)
