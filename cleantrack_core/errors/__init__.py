# =============================================================================
# cleantrack_core/errors/__init__.py
# Centralized Error Handling for CleanTrack
# =============================================================================

from .exceptions import (
    CleanTrackError,
    RemoteStoreError,
    LocalCacheError,
    AreaValidationError,
    DuplicateAreaError,
    TaskValidationError,
    ExportError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
    rerun_after,
    show_flash,
)

__all__ = [
    # Exceptions
    "CleanTrackError",
    "RemoteStoreError",
    "LocalCacheError",
    "AreaValidationError",
    "DuplicateAreaError",
    "TaskValidationError",
    "ExportError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "rerun_after",
    "show_flash",
]
