# =============================================================================
# cleantrack_core/errors/exceptions.py
# Custom Exception Hierarchy for CleanTrack
# =============================================================================
"""
Codes by layer:

    SYNC_*    remote store and local snapshot failures (the app keeps running)
    AREA_*    rejected area edits
    DATA_*    task records that fail validation (user input or remote rows)
    EXPORT_*  report files that cannot be built
    CONFIG_*  settings that make the process unusable
"""

from typing import Any, Dict, Optional


class CleanTrackError(Exception):
    """
    Base exception for all CleanTrack errors.

    Subclasses set ``default_code`` / ``default_recoverable`` and pass the
    record they were handling as keyword context (``table="tasks"``,
    ``field="date"``); context left as None is not recorded.
    """

    default_code = "CT_000"
    default_recoverable = True

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details or {})
        self.details.update({key: value for key, value in context.items() if value is not None})
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.code}] {self.message}"
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"[{self.code}] {self.message} ({context})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# STORAGE LAYER EXCEPTIONS
# =============================================================================

class RemoteStoreError(CleanTrackError):
    """A Supabase call failed, or no Supabase project is configured"""

    default_code = "SYNC_001"

    def __init__(self, message: str, table: Optional[str] = None, operation: Optional[str] = None, **kwargs):
        super().__init__(message, table=table, operation=operation, **kwargs)


class LocalCacheError(CleanTrackError):
    """A local snapshot cannot be read or decoded"""

    default_code = "SYNC_002"

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(message, key=key, **kwargs)


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class AreaValidationError(CleanTrackError):
    """An area edit rejected before it reaches storage"""

    default_code = "AREA_002"

    def __init__(self, message: str, name: Optional[str] = None, **kwargs):
        super().__init__(message, name=name, **kwargs)


class DuplicateAreaError(AreaValidationError):
    """Area names are primary keys"""

    default_code = "AREA_001"

    def __init__(self, name: str, **kwargs):
        super().__init__("Area name already exists!", name=name, **kwargs)


class TaskValidationError(CleanTrackError):
    default_code = "DATA_001"

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None, **kwargs):
        super().__init__(message, field=field, value=value, **kwargs)


# =============================================================================
# REPORTING / CONFIGURATION EXCEPTIONS
# =============================================================================

class ExportError(CleanTrackError):
    """A CSV or PDF report cannot be produced"""

    default_code = "EXPORT_001"

    def __init__(self, message: str, export_format: Optional[str] = None, **kwargs):
        super().__init__(message, format=export_format, **kwargs)


class ConfigurationError(CleanTrackError):
    """Settings that leave the app unable to start"""

    default_code = "CONFIG_001"
    default_recoverable = False

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, config_key=config_key, expected_type=expected_type, **kwargs)
