"""
Soft-delete state.

Storage keeps three flat columns (``esta_eliminada``,
``eliminado_por_uid``, ``eliminado_en``); services reason about the
two-state variant below.  :func:`to_columns` is the only place that knows
how a state maps to those columns, so "restore clears exactly these three
fields" cannot drift between services.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

DELETED_FLAG = "esta_eliminada"
DELETED_BY = "eliminado_por_uid"
DELETED_AT = "eliminado_en"

SOFT_DELETE_COLUMNS = (DELETED_FLAG, DELETED_BY, DELETED_AT)


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    by: str
    at: datetime


DeletionState = Union[Active, Deleted]


def deleted_now(by: str) -> Deleted:
    return Deleted(by=by, at=datetime.now(timezone.utc))


def to_columns(state: DeletionState) -> dict[str, Any]:
    if isinstance(state, Deleted):
        return {DELETED_FLAG: True, DELETED_BY: state.by, DELETED_AT: state.at}
    return {DELETED_FLAG: False, DELETED_BY: None, DELETED_AT: None}

