from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from docmaster.core.errors import UnknownEntityKindError
from docmaster.domain.models import RECORD_TYPES


Clock = Callable[[], datetime]

_CREATED_FIELD = "created_at"
_UPDATED_FIELD = "updated_at"


def utc_now() -> datetime:
    # Keep every stored timestamp timezone-aware UTC.
    return datetime.now(timezone.utc)


@dataclass
class _Table:
    record_type: type
    rows: dict[int, Any] = field(default_factory=dict)
    next_id: int = 1

    @property
    def tracks_updates(self) -> bool:
        return any(f.name == _UPDATED_FIELD for f in dataclasses.fields(self.record_type))


class EntityStore:
    """In-memory repository owning every domain record for the process lifetime.

    Records are frozen dataclasses. Each write replaces the stored record with a
    single dict assignment, so a concurrent reader sees either the previous or
    the next record and never a partial one. Lookups of absent ids return None
    instead of raising; callers translate that into a not-found response.

    The store performs no uniqueness or referential checks.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._tables = {kind: _Table(record_type) for kind, record_type in RECORD_TYPES.items()}

    def now(self) -> datetime:
        return self._clock()

    def _table(self, kind: str) -> _Table:
        try:
            return self._tables[kind]
        except KeyError:
            raise UnknownEntityKindError(f"Unknown entity kind: {kind}") from None

    def create(self, kind: str, **fields: Any) -> Any:
        table = self._table(kind)
        now = self.now()
        record_id = table.next_id
        table.next_id += 1
        fields.setdefault(_CREATED_FIELD, now)
        if table.tracks_updates:
            fields.setdefault(_UPDATED_FIELD, fields[_CREATED_FIELD])
        record = table.record_type(id=record_id, **fields)
        table.rows[record_id] = record
        return record

    def get(self, kind: str, record_id: int) -> Any | None:
        return self._table(kind).rows.get(record_id)

    def list(self, kind: str, where: Callable[[Any], bool] | None = None) -> list[Any]:
        # Dict order is insertion order, which later sorts rely on for stable ties.
        rows = list(self._table(kind).rows.values())
        if where is None:
            return rows
        return [row for row in rows if where(row)]

    def update(self, kind: str, record_id: int, **fields: Any) -> Any | None:
        # Shallow field replacement; ids and creation stamps are never rewritten.
        table = self._table(kind)
        record = table.rows.get(record_id)
        if record is None:
            return None
        fields.pop("id", None)
        fields.pop(_CREATED_FIELD, None)
        if table.tracks_updates:
            fields[_UPDATED_FIELD] = self.now()
        updated = dataclasses.replace(record, **fields)
        table.rows[record_id] = updated
        return updated

    def delete(self, kind: str, record_id: int) -> bool:
        return self._table(kind).rows.pop(record_id, None) is not None

    def count(self, kind: str) -> int:
        return len(self._table(kind).rows)
