# =============================================================================
# cleantrack_core/offline/remote_gateway.py
# Supabase Collection Gateway
# =============================================================================
"""
Request/response access to the two remote collections.

Every call is an independent network request. Failures of any kind (network
errors, non-success responses, no client configured) surface as
``RemoteStoreError``; the sync service decides what to do with them.

SQL schema for Supabase:

    CREATE TABLE tasks (
      id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
      date DATE NOT NULL,
      area TEXT NOT NULL,
      category TEXT,
      job_description TEXT NOT NULL,
      assignee TEXT NOT NULL,
      status TEXT NOT NULL,
      remarks TEXT,
      photo_before TEXT,
      photo_progress TEXT,
      photo_after TEXT,
      created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    );

    CREATE TABLE areas (
      name TEXT PRIMARY KEY,
      category TEXT NOT NULL,
      created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    );
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from supabase import Client, create_client

from cleantrack_core.config import SyncSettings
from cleantrack_core.errors import RemoteStoreError

logger = logging.getLogger(__name__)


def create_supabase_client(settings: SyncSettings) -> Optional[Client]:
    """
    Build a Supabase client from settings.

    Returns:
        Supabase client instance or None if not configured
    """
    if not settings.remote_configured:
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


class SupabaseCollectionGateway:
    """
    list/upsert/delete over one Supabase table.

    Records in and out are wire records (flat column names).
    """

    BATCH_SIZE = 1000  # PostgREST default row limit

    def __init__(self, client: Optional[Client], table: str, key_column: str):
        self.client = client
        self.table = table
        self.key_column = key_column

    def is_connected(self) -> bool:
        return self.client is not None

    def _require_client(self, operation: str) -> Client:
        if self.client is None:
            raise RemoteStoreError(
                "Remote store is not configured",
                table=self.table,
                operation=operation,
            )
        return self.client

    def list(self) -> List[Dict[str, Any]]:
        """
        Fetch every record of the table, paging past the server row limit.

        Raises:
            RemoteStoreError: on any failure
        """
        client = self._require_client("list")
        records: List[Dict[str, Any]] = []
        offset = 0

        try:
            while True:
                response = (
                    client.table(self.table)
                    .select("*")
                    .range(offset, offset + self.BATCH_SIZE - 1)
                    .execute()
                )
                batch = response.data or []
                records.extend(batch)
                if len(batch) < self.BATCH_SIZE:
                    break
                offset += self.BATCH_SIZE
        except Exception as e:
            raise RemoteStoreError(
                f"Error fetching data from {self.table}: {e}",
                table=self.table,
                operation="list",
            ) from e

        logger.debug(f"Fetched {len(records)} rows from {self.table}")
        return records

    def upsert(self, record: Dict[str, Any]) -> None:
        """Insert or replace one record keyed by ``key_column``."""
        client = self._require_client("upsert")
        try:
            client.table(self.table).upsert(record, on_conflict=self.key_column).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error upserting into {self.table}: {e}",
                table=self.table,
                operation="upsert",
                key=record.get(self.key_column),
            ) from e

    def delete(self, key: Any) -> None:
        """Delete the record whose ``key_column`` equals ``key``."""
        client = self._require_client("delete")
        try:
            client.table(self.table).delete().eq(self.key_column, key).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Error deleting from {self.table}: {e}",
                table=self.table,
                operation="delete",
                key=key,
            ) from e


class TaskGateway(SupabaseCollectionGateway):
    """Gateway for the ``tasks`` table, keyed by ``id``."""

    def __init__(self, client: Optional[Client], table: str = "tasks"):
        super().__init__(client, table, key_column="id")


class AreaGateway(SupabaseCollectionGateway):
    """Gateway for the ``areas`` table, keyed by ``name``."""

    def __init__(self, client: Optional[Client], table: str = "areas"):
        super().__init__(client, table, key_column="name")
