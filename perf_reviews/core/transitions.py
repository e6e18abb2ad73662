"""
Explicit status transition tables.

Each entity declares its allowed (predecessor -> successors) pairs and every
status write goes through ``ensure_transition``; anything not in the table is
rejected.
"""
import enum
from typing import Mapping, Type, Iterable

from perf_reviews.core.exceptions import InvalidStateTransition

TransitionTable = Mapping[enum.Enum, Iterable[enum.Enum]]


def can_transition(table: TransitionTable, current: enum.Enum, target: enum.Enum) -> bool:
    return target in table.get(current, ())


def ensure_transition(
    table: TransitionTable,
    current: enum.Enum,
    target: enum.Enum,
    error_cls: Type[InvalidStateTransition] = InvalidStateTransition,
    entity: str = "record",
) -> enum.Enum:
    if not can_transition(table, current, target):
        raise error_cls(
            f"Cannot move {entity} from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )
    return target
