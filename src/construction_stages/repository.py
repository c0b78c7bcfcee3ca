"""
Construction Stage Repository

SQLite storage for construction stages. Every operation opens its own
connection, so one repository can serve concurrent requests.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .main import StageStatus

logger = logging.getLogger(__name__)

# API field name -> table column
COLUMNS: Dict[str, str] = {
    "name": "name",
    "startDate": "start_date",
    "endDate": "end_date",
    "duration": "duration",
    "durationUnit": "durationUnit",
    "color": "color",
    "externalId": "externalId",
    "status": "status",
}

SELECT_STAGE = """
    SELECT
        ID as id,
        name,
        strftime('%Y-%m-%dT%H:%M:%SZ', start_date) as startDate,
        strftime('%Y-%m-%dT%H:%M:%SZ', end_date) as endDate,
        duration,
        durationUnit,
        color,
        externalId,
        status
    FROM construction_stages
"""


class ConstructionStageRepository:
    """Reads and writes rows of the construction_stages table"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._initialized = False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if not self._initialized:
            self.init_schema()

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create the table if it does not exist yet"""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS construction_stages (
                        ID INTEGER PRIMARY KEY AUTOINCREMENT,
                        name VARCHAR(255) NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT,
                        duration REAL,
                        durationUnit TEXT,
                        color TEXT,
                        externalId VARCHAR(255),
                        status TEXT NOT NULL DEFAULT 'NEW'
                    )
                    """
                )
        finally:
            conn.close()

        self._initialized = True
        logger.debug(f"Schema ready in {self.db_path}")

    def list_all(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(SELECT_STAGE + " ORDER BY ID").fetchall()
        return [dict(row) for row in rows]

    def get(self, stage_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(SELECT_STAGE + " WHERE ID = :id", {"id": stage_id}).fetchone()
        return dict(row) if row else None

    def find_active(self, stage_id: int) -> Optional[Dict[str, Any]]:
        """Like get(), but ignores stages already marked DELETED"""
        with self._connect() as conn:
            row = conn.execute(
                SELECT_STAGE + " WHERE ID = :id AND status IS NOT :deleted",
                {"id": stage_id, "deleted": StageStatus.DELETED.value},
            ).fetchone()
        return dict(row) if row else None

    def insert(self, values: Mapping[str, Any]) -> int:
        """Insert a stage from API field names; returns the new id"""
        params = {column: values.get(name) for name, column in COLUMNS.items()}
        columns = ", ".join(params)
        placeholders = ", ".join(f":{column}" for column in params)

        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO construction_stages ({columns}) VALUES ({placeholders})",
                params,
            )
            stage_id = cursor.lastrowid

        logger.info("Created construction stage", extra={"stage_id": stage_id})
        return stage_id

    def update_columns(self, stage_id: int, values: Mapping[str, Any]) -> bool:
        """
        Update the given API fields of a stage.

        Unknown fields and None values are skipped. Returns True when a row
        was updated.
        """
        params: Dict[str, Any] = {}
        for name, value in values.items():
            column = COLUMNS.get(name)
            if column is None or value is None:
                continue
            params[column] = value

        if not params:
            return self.get(stage_id) is not None

        changed = sorted(params)
        assignments = ", ".join(f"{column} = :{column}" for column in changed)
        params["id"] = stage_id

        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE construction_stages SET {assignments} WHERE ID = :id",
                params,
            )
            updated = cursor.rowcount > 0

        if updated:
            logger.info(
                f"Updated construction stage columns: {', '.join(changed)}",
                extra={"stage_id": stage_id},
            )
        return updated

    def mark_deleted(self, stage_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE construction_stages SET status = :status WHERE ID = :id",
                {"status": StageStatus.DELETED.value, "id": stage_id},
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Marked construction stage as deleted", extra={"stage_id": stage_id})
        return deleted
