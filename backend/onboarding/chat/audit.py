"""Append-only audit trail of helper invocations for one conversation."""

from __future__ import annotations

import copy
from collections.abc import Iterator
from typing import Any

from .types import ToolCallRecord, ToolName


class AuditTrail:
    """Ordered tool-call records with no removal operation."""

    def __init__(self, records: list[ToolCallRecord] | None = None) -> None:
        self._records: list[ToolCallRecord] = list(records or [])

    def record(
        self,
        name: ToolName,
        input: dict[str, Any],
        output: dict[str, Any],
        state_after: str,
    ) -> ToolCallRecord:
        entry = ToolCallRecord(
            name=name,
            input=copy.deepcopy(input),
            output=copy.deepcopy(output),
            state_after=state_after,
        )
        self._records.append(entry)
        return entry

    def records(self) -> tuple[ToolCallRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ToolCallRecord]:
        return iter(tuple(self._records))

    def __deepcopy__(self, memo: dict[int, Any]) -> AuditTrail:
        # Records are frozen, so a working copy can share them.
        return AuditTrail(self._records)
