"""Persistence layer for players, ADP observations and daily values."""

from __future__ import annotations

import json
import os
import sqlite3
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from dynval.models import AdpObservation, DailyValueRecord, PlayerRecord

_TREND_FIELDS = {"trend_7d", "trend_30d"}
_VALUE_COLUMNS = (
    "market_value",
    "projection_score",
    "age_score",
    "risk_score",
    "dynasty_value",
    "trend_7d",
    "trend_30d",
)


@dataclass
class ValueRow:
    """Daily value joined with the player's identity, for read APIs."""

    record: DailyValueRecord
    name: str
    position: str
    team: str
    age: Optional[float]


class ValueStore:
    """Simple SQLite-backed store for the valuation tables.

    Each public method opens its own connection and commits once, so a
    call is one transaction.
    """

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        env_db = os.getenv("DYNVAL_DB_PATH")
        if env_db:
            if env_db.startswith("file:"):
                self.db_path: Path | str = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        elif isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                pos TEXT NOT NULL,
                team TEXT NOT NULL DEFAULT '',
                age_years REAL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                as_of_date TEXT NOT NULL,
                source TEXT NOT NULL,
                player_id TEXT NOT NULL,
                raw_value REAL NOT NULL,
                position TEXT,
                meta_json TEXT NOT NULL,
                PRIMARY KEY (as_of_date, source, player_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS value_daily (
                as_of_date TEXT NOT NULL,
                player_id TEXT NOT NULL,
                market_value REAL,
                projection_score REAL,
                age_score REAL,
                risk_score REAL,
                dynasty_value REAL,
                trend_7d REAL,
                trend_30d REAL,
                PRIMARY KEY (as_of_date, player_id)
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS value_daily_player ON value_daily (player_id, as_of_date)")
        conn.commit()

    def upsert_players(self, players: Iterable[PlayerRecord]) -> int:
        payload = [(p.player_id, p.name, p.position, p.team, p.age) for p in players]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO players (id, name, pos, team, age_years)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    pos = excluded.pos,
                    team = excluded.team,
                    age_years = excluded.age_years
                """,
                payload,
            )
            conn.commit()
        return len(payload)

    def get_player(self, player_id: str) -> Optional[PlayerRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        if row is None:
            return None
        return PlayerRecord(
            player_id=row["id"],
            name=row["name"],
            position=row["pos"],
            team=row["team"] or "",
            age=row["age_years"],
        )

    def upsert_observations(self, observations: Iterable[AdpObservation]) -> int:
        payload = [
            (
                obs.as_of.isoformat(),
                obs.source,
                obs.player_id,
                obs.raw_value,
                obs.position,
                json.dumps(obs.metadata, sort_keys=True, default=str),
            )
            for obs in observations
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO snapshots (as_of_date, source, player_id, raw_value, position, meta_json)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(as_of_date, source, player_id) DO UPDATE SET
                    raw_value = excluded.raw_value,
                    position = excluded.position,
                    meta_json = excluded.meta_json
                """,
                payload,
            )
            conn.commit()
        return len(payload)

    def list_observations(self, as_of: date, *, source: Optional[str] = None) -> List[AdpObservation]:
        query = "SELECT * FROM snapshots WHERE as_of_date = ?"
        params: list[str] = [as_of.isoformat()]
        if source:
            query += " AND source = ?"
            params.append(source)
        query += " ORDER BY raw_value ASC, player_id ASC"
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [
            AdpObservation(
                as_of=date.fromisoformat(row["as_of_date"]),
                source=row["source"],
                player_id=row["player_id"],
                raw_value=row["raw_value"],
                position=row["position"],
                metadata=json.loads(row["meta_json"]),
            )
            for row in rows
        ]

    def upsert_values(self, records: Iterable[DailyValueRecord]) -> int:
        payload = [
            (
                rec.as_of.isoformat(),
                rec.player_id,
                rec.market_value,
                rec.projection_score,
                rec.age_score,
                rec.risk_score,
                rec.dynasty_value,
                rec.trend_7d,
                rec.trend_30d,
            )
            for rec in records
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO value_daily (
                    as_of_date, player_id, market_value, projection_score,
                    age_score, risk_score, dynasty_value, trend_7d, trend_30d
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(as_of_date, player_id) DO UPDATE SET
                    market_value = excluded.market_value,
                    projection_score = excluded.projection_score,
                    age_score = excluded.age_score,
                    risk_score = excluded.risk_score,
                    dynasty_value = excluded.dynasty_value,
                    trend_7d = excluded.trend_7d,
                    trend_30d = excluded.trend_30d
                """,
                payload,
            )
            conn.commit()
        return len(payload)

    def get_values(self, as_of: date, player_ids: Optional[Sequence[str]] = None) -> List[DailyValueRecord]:
        query = "SELECT * FROM value_daily WHERE as_of_date = ?"
        params: list[str] = [as_of.isoformat()]
        if player_ids is not None:
            if not player_ids:
                return []
            placeholders = ", ".join("?" for _ in player_ids)
            query += f" AND player_id IN ({placeholders})"
            params.extend(player_ids)
        query += " ORDER BY player_id"
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_value(row) for row in rows]

    def list_values(self, as_of: date, *, limit: Optional[int] = None) -> List[ValueRow]:
        """Values for ``as_of`` joined with players, best dynasty value first."""

        query = """
            SELECT v.*, p.name, p.pos, p.team, p.age_years
            FROM value_daily v
            JOIN players p ON p.id = v.player_id
            WHERE v.as_of_date = ?
            ORDER BY v.dynasty_value IS NULL, v.dynasty_value DESC, v.player_id ASC
        """
        params: list[str | int] = [as_of.isoformat()]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [
            ValueRow(
                record=self._row_to_value(row),
                name=row["name"],
                position=row["pos"],
                team=row["team"] or "",
                age=row["age_years"],
            )
            for row in rows
        ]

    def latest_as_of(self) -> Optional[date]:
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(as_of_date) AS latest FROM value_daily").fetchone()
        if row is None or row["latest"] is None:
            return None
        return date.fromisoformat(row["latest"])

    def list_dates(self) -> List[date]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT as_of_date FROM value_daily ORDER BY as_of_date DESC"
            ).fetchall()
        return [date.fromisoformat(row["as_of_date"]) for row in rows]

    def history(self, start: date, end: date) -> List[Tuple[str, Optional[float]]]:
        """``(player_id, dynasty_value)`` rows with ``start <= as_of < end``."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT player_id, dynasty_value FROM value_daily
                WHERE as_of_date >= ? AND as_of_date < ?
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchall()
        return [(row["player_id"], row["dynasty_value"]) for row in rows]

    def update_trends(self, as_of: date, field: str, deltas: Mapping[str, Optional[float]]) -> int:
        if field not in _TREND_FIELDS:
            raise KeyError(f"Unknown trend field {field!r}")
        payload = [(delta, as_of.isoformat(), player_id) for player_id, delta in deltas.items()]
        with self._connect() as conn:
            conn.executemany(
                f"UPDATE value_daily SET {field} = ? WHERE as_of_date = ? AND player_id = ?",
                payload,
            )
            conn.commit()
        return len(payload)

    def delete_values_except(self, as_of: date) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM value_daily WHERE as_of_date != ?", (as_of.isoformat(),))
            conn.commit()
            return cursor.rowcount

    def delete_values_before(self, cutoff: date) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM value_daily WHERE as_of_date < ?", (cutoff.isoformat(),))
            conn.commit()
            return cursor.rowcount

    def delete_null_values(self, as_of: date) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM value_daily WHERE as_of_date = ? AND dynasty_value IS NULL",
                (as_of.isoformat(),),
            )
            conn.commit()
            return cursor.rowcount

    def _row_to_value(self, row: sqlite3.Row) -> DailyValueRecord:
        return DailyValueRecord(
            as_of=date.fromisoformat(row["as_of_date"]),
            player_id=row["player_id"],
            **{column: row[column] for column in _VALUE_COLUMNS},
        )


__all__ = ["ValueRow", "ValueStore"]
