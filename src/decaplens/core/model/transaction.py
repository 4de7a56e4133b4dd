"""Transaction — an ordered batch of edits replayed atomically."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from .edit import AddNode, Edit, EditNode, RemoveNode

UNKNOWN_AUTHOR = "<unknown-author>"


def _now_millis() -> int:
    return int(time.time() * 1000)


class Transaction(BaseModel):
    """A commit in the project history.

    Only ``id`` and ``edits`` take part in the analysis; ``date`` (epoch
    milliseconds) and ``author`` are carried for reporting.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, description="Opaque transaction identifier.")
    date: int = Field(default_factory=_now_millis, ge=0)
    author: str = UNKNOWN_AUTHOR
    edits: tuple[Edit, ...] = ()

    def edit_counts(self) -> dict[str, int]:
        """Return how many edits of each kind this transaction holds."""
        counts = {"added": 0, "removed": 0, "edited": 0}
        for edit in self.edits:
            match edit:
                case AddNode():
                    counts["added"] += 1
                case RemoveNode():
                    counts["removed"] += 1
                case EditNode():
                    counts["edited"] += 1
        return counts


__all__ = ["Transaction", "UNKNOWN_AUTHOR"]
