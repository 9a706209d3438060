"""Download event repository: the analytics event sink and its aggregate queries."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from update_registry.db.database import Database
from update_registry.models.analytics import DownloadEvent
from update_registry.timeutil import to_db

logger = logging.getLogger(__name__)

# Columns that may be grouped on; guards the f-string in group_counts.
GROUPABLE_COLUMNS = frozenset({"version", "platform", "ip_country"})

# Prefix lengths of the stored ISO timestamp that identify an hour / a day.
HOUR_PREFIX = 13  # 2024-01-15T10
DAY_PREFIX = 10  # 2024-01-15


class DownloadRepository:
    """Repository for download events.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def insert(self, event: DownloadEvent) -> DownloadEvent:
        """Append a download event.

        Args:
            event: Event to store.

        Returns:
            Stored event.
        """
        if not event.id:
            event.id = str(uuid.uuid4())

        await self.db.execute(
            """
            INSERT INTO download_events (
                id, artifact_id, installer_id, app_id, platform, version,
                ip_country, download_type, downloaded_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.artifact_id,
                event.installer_id,
                event.app_id,
                event.platform,
                event.version,
                event.ip_country,
                event.download_type.value,
                to_db(event.downloaded_at),
            ),
        )
        await self.db.commit()
        return event

    def _where(
        self,
        app_id: str,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> tuple[str, tuple]:
        clause = "WHERE app_id = ?"
        params: tuple = (app_id,)
        if start is not None:
            clause += " AND downloaded_at >= ?"
            params += (to_db(start),)
        if end is not None:
            clause += " AND downloaded_at <= ?"
            params += (to_db(end),)
        return clause, params

    async def count(
        self,
        app_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count events of an app within optional bounds (inclusive)."""
        where, params = self._where(app_id, start, end)
        row = await self.db.fetch_one(f"SELECT COUNT(*) AS total FROM download_events {where}", params)
        return row["total"]

    async def group_counts(
        self,
        app_id: str,
        column: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[tuple[Optional[str], int]]:
        """Count events grouped by one column, largest group first.

        Args:
            app_id: App ID.
            column: One of GROUPABLE_COLUMNS.
            start: Inclusive lower bound.
            end: Inclusive upper bound.

        Returns:
            List of (value, count).
        """
        if column not in GROUPABLE_COLUMNS:
            raise ValueError(f"Cannot group download events by '{column}'")

        where, params = self._where(app_id, start, end)
        rows = await self.db.fetch_all(
            f"""
            SELECT {column} AS value, COUNT(*) AS total FROM download_events {where}
            GROUP BY {column} ORDER BY total DESC, value
            """,
            params,
        )
        return [(row["value"], row["total"]) for row in rows]

    async def bucket_counts(
        self,
        app_id: str,
        since: datetime,
        prefix_length: int,
    ) -> dict[str, int]:
        """Count events per time bucket.

        Buckets are identified by the leading ``prefix_length`` characters
        of the stored UTC timestamp (HOUR_PREFIX or DAY_PREFIX).

        Returns:
            Mapping of bucket prefix to count.
        """
        rows = await self.db.fetch_all(
            """
            SELECT substr(downloaded_at, 1, ?) AS bucket, COUNT(*) AS total
            FROM download_events
            WHERE app_id = ? AND downloaded_at >= ?
            GROUP BY bucket
            """,
            (prefix_length, app_id, to_db(since)),
        )
        return {row["bucket"]: row["total"] for row in rows}

    async def platform_counts_for_version(self, app_id: str, version: str) -> list[tuple[str, int]]:
        """Count events of one app version grouped by platform."""
        rows = await self.db.fetch_all(
            """
            SELECT platform, COUNT(*) AS total FROM download_events
            WHERE app_id = ? AND version = ?
            GROUP BY platform ORDER BY total DESC, platform
            """,
            (app_id, version),
        )
        return [(row["platform"], row["total"]) for row in rows]
