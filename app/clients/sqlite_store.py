"""SQLite-backed relational store for analyses and AI configurations."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Iterable, List, Optional
from uuid import uuid4

from app.schemas import (
    AnalysisConfiguration,
    AnalysisRecord,
    AnalysisRequest,
    AnalysisStatus,
)

_ANALYSIS_JSON_COLUMNS = ("requirements", "restrictions", "documentation")
_ANALYSIS_RESULT_COLUMNS = (
    "hs_code",
    "tariff_rate",
    "requirements",
    "restrictions",
    "documentation",
    "estimated_processing_time",
    "confidence_score",
    "analysis_text",
    "completed_at",
)
_CONFIG_JSON_COLUMNS = ("category_instructions", "focus_areas", "validation_rules")
_CONFIG_COLUMNS = (
    "name",
    "description",
    "system_role",
    "analysis_depth",
    "temperature",
    "max_tokens",
    "category_instructions",
    "focus_areas",
    "custom_instructions",
    "response_format",
    "validation_rules",
    "fallback_behavior",
    "created_by",
)


class StoreError(RuntimeError):
    """Raised when the underlying database rejects an operation."""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_directory(db_path: Path) -> None:
    if db_path.parent and not db_path.parent.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)


def _encode(column: str, value: Any, json_columns: Iterable[str]) -> Any:
    if column in json_columns and value is not None:
        return json.dumps(value)
    if hasattr(value, "value"):  # enum members
        return value.value
    return value


class SQLiteStore:
    """Tables ``analyses`` and ``ai_configurations`` in a single SQLite file."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        _ensure_directory(self._db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS analyses (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    product_name TEXT NOT NULL,
                    product_description TEXT,
                    product_category TEXT,
                    origin_country TEXT,
                    destination_country TEXT,
                    product_image_path TEXT,
                    product_image_url TEXT,
                    hs_code TEXT,
                    tariff_rate REAL,
                    requirements TEXT,
                    restrictions TEXT,
                    documentation TEXT,
                    estimated_processing_time TEXT,
                    confidence_score REAL,
                    analysis_text TEXT,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    completed_at TEXT
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_analyses_user "
                "ON analyses (user_id, created_at)"
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_configurations (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    is_active INTEGER NOT NULL DEFAULT 0,
                    system_role TEXT,
                    analysis_depth TEXT,
                    temperature REAL,
                    max_tokens INTEGER,
                    category_instructions TEXT,
                    focus_areas TEXT,
                    custom_instructions TEXT,
                    response_format TEXT,
                    validation_rules TEXT,
                    fallback_behavior TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    created_by TEXT
                )
                """
            )

    # -- analyses -----------------------------------------------------------

    def insert_analysis(self, *, user_id: str, request: AnalysisRequest) -> AnalysisRecord:
        now = _utcnow()
        analysis_id = uuid4().hex
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO analyses (
                    id, user_id, product_name, product_description,
                    product_category, origin_country, destination_country,
                    status, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    analysis_id,
                    user_id,
                    request.product_name,
                    request.product_description,
                    request.product_category,
                    request.origin_country,
                    request.destination_country,
                    AnalysisStatus.PENDING.value,
                    now,
                    now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM analyses WHERE id = ?", (analysis_id,)
            ).fetchone()
        return self._row_to_analysis(row)

    def attach_image(self, analysis_id: str, *, path: str, url: str) -> bool:
        """Link a stored image to a record that has not reached a terminal status."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE analyses
                SET product_image_path = ?, product_image_url = ?, updated_at = ?
                WHERE id = ? AND status IN (?, ?)
                """,
                (
                    path,
                    url,
                    _utcnow(),
                    analysis_id,
                    AnalysisStatus.PENDING.value,
                    AnalysisStatus.PROCESSING.value,
                ),
            )
        return cursor.rowcount == 1

    def transition_analysis(
        self,
        analysis_id: str,
        *,
        to_status: AnalysisStatus,
        from_statuses: Iterable[AnalysisStatus],
        fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Compare-and-set the status, optionally writing result columns.

        Returns ``False`` when the record is missing or no longer in one of
        ``from_statuses``.
        """
        allowed = [status.value for status in from_statuses]
        if not allowed:
            return False
        updates: Dict[str, Any] = {}
        for column, value in (fields or {}).items():
            if column not in _ANALYSIS_RESULT_COLUMNS:
                raise ValueError(f"Column {column!r} cannot be written on transition")
            updates[column] = _encode(column, value, _ANALYSIS_JSON_COLUMNS)
        updates["status"] = to_status.value
        updates["updated_at"] = _utcnow()

        assignments = ", ".join(f"{column} = ?" for column in updates)
        placeholders = ", ".join("?" for _ in allowed)
        with self._transaction() as conn:
            cursor = conn.execute(
                f"UPDATE analyses SET {assignments} "
                f"WHERE id = ? AND status IN ({placeholders})",
                (*updates.values(), analysis_id, *allowed),
            )
        return cursor.rowcount == 1

    def get_analysis(self, analysis_id: str) -> Optional[AnalysisRecord]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM analyses WHERE id = ?", (analysis_id,)
            ).fetchone()
        if not row:
            return None
        return self._row_to_analysis(row)

    def list_analyses(self, user_id: str) -> List[AnalysisRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM analyses WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_analysis(row) for row in rows]

    def delete_analysis(self, analysis_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM analyses WHERE id = ?", (analysis_id,))
        return cursor.rowcount == 1

    # -- AI configurations --------------------------------------------------

    def get_active_configuration(self) -> Optional[AnalysisConfiguration]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM ai_configurations WHERE is_active = 1 "
                "ORDER BY updated_at DESC LIMIT 1"
            ).fetchone()
        if not row:
            return None
        return self._row_to_configuration(row)

    def list_configurations(self) -> List[AnalysisConfiguration]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM ai_configurations ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_configuration(row) for row in rows]

    def get_configuration(self, config_id: str) -> Optional[AnalysisConfiguration]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM ai_configurations WHERE id = ?", (config_id,)
            ).fetchone()
        if not row:
            return None
        return self._row_to_configuration(row)

    def insert_configuration(self, fields: Dict[str, Any]) -> AnalysisConfiguration:
        now = _utcnow()
        config_id = uuid4().hex
        values = {
            column: _encode(column, fields[column], _CONFIG_JSON_COLUMNS)
            for column in _CONFIG_COLUMNS
            if column in fields
        }
        values.setdefault("name", "")
        columns = ["id", *values, "is_active", "created_at", "updated_at"]
        params = [config_id, *values.values(), 0, now, now]
        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO ai_configurations ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                params,
            )
            row = conn.execute(
                "SELECT * FROM ai_configurations WHERE id = ?", (config_id,)
            ).fetchone()
        return self._row_to_configuration(row)

    def update_configuration(
        self, config_id: str, fields: Dict[str, Any]
    ) -> Optional[AnalysisConfiguration]:
        updates = {
            column: _encode(column, value, _CONFIG_JSON_COLUMNS)
            for column, value in fields.items()
            if column in _CONFIG_COLUMNS
        }
        updates["updated_at"] = _utcnow()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        with self._transaction() as conn:
            cursor = conn.execute(
                f"UPDATE ai_configurations SET {assignments} WHERE id = ?",
                (*updates.values(), config_id),
            )
            if cursor.rowcount != 1:
                return None
            row = conn.execute(
                "SELECT * FROM ai_configurations WHERE id = ?", (config_id,)
            ).fetchone()
        return self._row_to_configuration(row)

    def deactivate_configuration(self, config_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE ai_configurations SET is_active = 0, updated_at = ? WHERE id = ?",
                (_utcnow(), config_id),
            )
        return cursor.rowcount == 1

    def activate_configuration(self, config_id: str) -> bool:
        """Make ``config_id`` the only active configuration in one statement."""
        with self._transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM ai_configurations WHERE id = ?", (config_id,)
            ).fetchone()
            if not exists:
                return False
            conn.execute(
                """
                UPDATE ai_configurations
                SET is_active = (id = ?),
                    updated_at = CASE WHEN id = ? THEN ? ELSE updated_at END
                """,
                (config_id, config_id, _utcnow()),
            )
        return True

    def delete_configuration(self, config_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM ai_configurations WHERE id = ?", (config_id,)
            )
        return cursor.rowcount == 1

    # -- row mapping --------------------------------------------------------

    @staticmethod
    def _row_to_analysis(row: sqlite3.Row) -> AnalysisRecord:
        data = dict(row)
        try:
            for column in _ANALYSIS_JSON_COLUMNS:
                if data.get(column):
                    data[column] = json.loads(data[column])
            return AnalysisRecord(**data)
        except ValueError as exc:
            raise StoreError(f"Corrupt analysis row {data.get('id')}: {exc}") from exc

    @staticmethod
    def _row_to_configuration(row: sqlite3.Row) -> AnalysisConfiguration:
        data = dict(row)
        try:
            for column in _CONFIG_JSON_COLUMNS:
                data[column] = json.loads(data[column]) if data.get(column) else None
            data["is_active"] = bool(data["is_active"])
            cleaned = {key: value for key, value in data.items() if value is not None}
            return AnalysisConfiguration(**cleaned)
        except ValueError as exc:
            raise StoreError(f"Corrupt AI configuration row {data.get('id')}: {exc}") from exc


__all__ = ["SQLiteStore", "StoreError"]
