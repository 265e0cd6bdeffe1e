# =============================================================================
# cleantrack_core/config.py
# Runtime Settings for CleanTrack
# =============================================================================
"""
Settings are resolved in this order:

1. Streamlit secrets (``.streamlit/secrets.toml``)::

       [supabase]
       url = "https://your-project.supabase.co"
       key = "your-anon-key"

       [cleantrack]
       tasks_table = "tasks"
       areas_table = "areas"
       local_db_path = "local_data/cleantrack.db"
       reseed_on_empty_remote = true

2. Environment variables: ``SUPABASE_URL``, ``SUPABASE_KEY`` (or
   ``SUPABASE_ANON_KEY``), ``CLEANTRACK_DB_PATH``.

3. Built-in defaults.

Missing Supabase credentials are not an error: the app then runs local-only
and every remote call is reported as failed.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import streamlit as st

from cleantrack_core.errors import ConfigurationError
from cleantrack_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "local_data" / "cleantrack.db"


@dataclass(frozen=True)
class SyncSettings:
    """Everything the sync layer needs to be wired up."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    tasks_table: str = "tasks"
    areas_table: str = "areas"
    local_db_path: Path = field(default=DEFAULT_DB_PATH)
    # 1 keeps remote writes in submission order; 0 runs them inline
    propagation_workers: int = 1
    # An empty remote list falls back to cache/seed instead of wiping them
    reseed_on_empty_remote: bool = True

    def __post_init__(self):
        if self.propagation_workers < 0:
            raise ConfigurationError(
                "propagation_workers cannot be negative",
                config_key="propagation_workers",
                expected_type="int >= 0",
            )
        object.__setattr__(self, "local_db_path", Path(self.local_db_path))

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def with_overrides(self, **overrides: Any) -> SyncSettings:
        return replace(self, **overrides)


def _read_secrets() -> Dict[str, Dict[str, Any]]:
    """Pull the [supabase] and [cleantrack] tables out of Streamlit secrets."""
    sections: Dict[str, Dict[str, Any]] = {}
    try:
        for name in ("supabase", "cleantrack"):
            if name in st.secrets:
                sections[name] = dict(st.secrets[name])
    except Exception as e:
        # st.secrets raises when no secrets.toml exists at all
        logger.debug(f"Streamlit secrets not available: {e}")
    return sections


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def load_settings(
    secrets: Optional[Mapping[str, Mapping[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncSettings:
    """
    Resolve settings from secrets, then environment, then defaults.

    Args:
        secrets: Secret sections to use instead of ``st.secrets``
        environ: Environment mapping to use instead of ``os.environ``

    Returns:
        SyncSettings
    """
    sections = _read_secrets() if secrets is None else {k: dict(v) for k, v in secrets.items()}
    env = os.environ if environ is None else environ

    supabase = sections.get("supabase", {})
    app = sections.get("cleantrack", {})

    url = supabase.get("url") or env.get("SUPABASE_URL")
    key = supabase.get("key") or env.get("SUPABASE_KEY") or env.get("SUPABASE_ANON_KEY")
    db_path = app.get("local_db_path") or env.get("CLEANTRACK_DB_PATH") or DEFAULT_DB_PATH

    try:
        workers = int(app.get("propagation_workers", 1))
    except (TypeError, ValueError):
        raise ConfigurationError(
            "propagation_workers must be an integer",
            config_key="propagation_workers",
            expected_type="int",
        )

    settings = SyncSettings(
        supabase_url=url,
        supabase_key=key,
        tasks_table=app.get("tasks_table", "tasks"),
        areas_table=app.get("areas_table", "areas"),
        local_db_path=Path(db_path),
        propagation_workers=workers,
        reseed_on_empty_remote=_as_bool(app.get("reseed_on_empty_remote", True)),
    )

    if not settings.remote_configured:
        logger.warning("Supabase credentials not configured - running local-only")
    return settings
