"""ADP adapters and identity reconciliation across source ID systems."""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx
from pydantic import ValidationError

from dynval.errors import FetchError
from dynval.models import AdpRow, RosterEntry

from .http import gather_all, get_json, get_response


logger = logging.getLogger(__name__)

FFC_ADP_URL = "https://fantasyfootballcalculator.com/api/v1/adp/dynasty?teams=12"
PLAYER_IDS_URL = "https://raw.githubusercontent.com/dynastyprocess/data/master/files/db_playerids.csv"

SOURCE_KIND_MARKET = "market"
SOURCE_KIND_SYNTHETIC = "synthetic"

_NAME_SUFFIX_TOKENS = {"jr", "sr", "ii", "iii", "iv", "v"}


def normalize_name(name: str) -> str:
    """Case and punctuation-insensitive join key for player names."""

    cleaned = re.sub(r"[^a-z0-9]+", " ", name.lower())
    tokens = [tok for tok in cleaned.split() if tok and tok not in _NAME_SUFFIX_TOKENS]
    return "".join(tokens)


@dataclass(frozen=True)
class UnmatchedAdp:
    """ADP entry whose name had no identifier in the reconciliation table."""

    name: str
    adp: float
    position: Optional[str] = None


@dataclass
class AdpFetch:
    rows: List[AdpRow]
    source_tag: str
    source_kind: str = SOURCE_KIND_MARKET
    unmatched: List[UnmatchedAdp] = field(default_factory=list)


def _finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_id_table(csv_text: str, *, name_column: str = "name", id_column: str = "sleeper_id") -> Dict[str, str]:
    """Map normalized names to roster identifiers from an ID crosswalk CSV."""

    reader = csv.DictReader(StringIO(csv_text))
    if reader.fieldnames is None or name_column not in reader.fieldnames or id_column not in reader.fieldnames:
        raise ValueError(f"ID table must contain {name_column!r} and {id_column!r} columns")
    table: Dict[str, str] = {}
    for row in reader:
        name = (row.get(name_column) or "").strip()
        player_id = (row.get(id_column) or "").strip()
        if not name or not player_id or player_id.upper() == "NA":
            continue
        table[normalize_name(name)] = player_id
    return table


def reconcile_by_name(
    entries: Iterable[Mapping[str, Any]],
    id_table: Mapping[str, str],
    *,
    source_tag: str,
) -> tuple[List[AdpRow], List[UnmatchedAdp]]:
    """Join ``{name, position, adp}`` entries onto roster identifiers.

    Entries with a non-finite ADP are dropped; names missing from
    ``id_table`` are returned as unmatched for a later best-effort pass.
    """

    rows: List[AdpRow] = []
    unmatched: List[UnmatchedAdp] = []
    for entry in entries:
        name = str(entry.get("name") or "").strip()
        adp = _finite_float(entry.get("adp"))
        if not name or adp is None:
            continue
        position = entry.get("position") or None
        player_id = id_table.get(normalize_name(name))
        if player_id is None:
            unmatched.append(UnmatchedAdp(name=name, adp=adp, position=position))
            continue
        rows.append(
            AdpRow(
                player_id=player_id,
                adp=adp,
                position=position,
                metadata={"name": name, "source": source_tag},
            )
        )
    rows.sort(key=lambda row: row.adp)
    return rows, unmatched


def match_by_roster_name(
    unmatched: Sequence[UnmatchedAdp],
    roster: Mapping[str, RosterEntry],
    *,
    source_tag: str,
) -> List[AdpRow]:
    """Second-chance join of unmatched names against the roster's names.

    Ambiguous names (several roster players share the key) are skipped.
    """

    if not unmatched:
        return []
    index: Dict[str, Optional[str]] = {}
    for player_id, entry in roster.items():
        key = normalize_name(entry.display_name)
        if not key:
            continue
        index[key] = None if key in index else player_id

    rows: List[AdpRow] = []
    for miss in unmatched:
        player_id = index.get(normalize_name(miss.name))
        if player_id is None:
            continue
        rows.append(
            AdpRow(
                player_id=player_id,
                adp=miss.adp,
                position=miss.position,
                metadata={"name": miss.name, "source": source_tag, "matched_by": "roster_name"},
            )
        )
    return rows


class FantasyCalculatorAdpSource:
    """Dynasty ADP from Fantasy Football Calculator joined via DynastyProcess IDs."""

    source_tag = "ffc_adp"
    source_kind = SOURCE_KIND_MARKET
    requires_roster = False

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        adp_url: str = FFC_ADP_URL,
        ids_url: str = PLAYER_IDS_URL,
    ):
        self._client = client
        self._adp_url = adp_url
        self._ids_url = ids_url

    async def fetch(self, roster: Mapping[str, RosterEntry] | None = None) -> AdpFetch:
        payload, ids_response = await gather_all(
            get_json(self._client, self._adp_url, source="ffc_adp"),
            get_response(self._client, self._ids_url, source="dynastyprocess_ids"),
        )
        players = payload.get("players", []) if isinstance(payload, Mapping) else []
        try:
            id_table = parse_id_table(ids_response.text)
        except ValueError as exc:
            raise FetchError("dynastyprocess_ids", str(exc)) from exc

        rows, unmatched = reconcile_by_name(players, id_table, source_tag=self.source_tag)
        logger.info(
            "Fetched %d ADP entries (%d joined, %d unmatched names)",
            len(players),
            len(rows),
            len(unmatched),
        )
        return AdpFetch(rows=rows, source_tag=self.source_tag, source_kind=self.source_kind, unmatched=unmatched)


class StaticAdpSource:
    """ADP rows already keyed by roster identifier."""

    source_kind = SOURCE_KIND_MARKET
    requires_roster = False

    def __init__(self, rows: Iterable[Mapping[str, Any] | AdpRow], *, source_tag: str = "static_adp"):
        self.source_tag = source_tag
        self._rows = [_coerce_row(row) for row in rows]

    async def fetch(self, roster: Mapping[str, RosterEntry] | None = None) -> AdpFetch:
        rows = [row for row in self._rows if row is not None]
        return AdpFetch(rows=sorted(rows, key=lambda r: r.adp), source_tag=self.source_tag)


def _coerce_row(row: Mapping[str, Any] | AdpRow) -> Optional[AdpRow]:
    if isinstance(row, AdpRow):
        return row
    player_id = row.get("player_id") or row.get("playerId")
    adp = _finite_float(row.get("adp"))
    if not player_id or adp is None:
        logger.debug("Dropping ADP row without id or finite adp: %s", dict(row))
        return None
    try:
        return AdpRow(player_id=str(player_id), adp=adp, position=row.get("position") or None)
    except ValidationError as exc:
        logger.debug("Dropping invalid ADP row %s: %s", dict(row), exc)
        return None


def load_adp_csv(path: Path) -> List[AdpRow]:
    """Read ``player_id,adp[,position]`` rows from a CSV file."""

    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [_coerce_row({k.strip(): (v or "").strip() for k, v in row.items() if k}) for row in reader]
    return [row for row in rows if row is not None]
