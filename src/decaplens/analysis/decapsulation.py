"""
Decapsulation records.

For a field ``version`` introduced in some transaction, any later transaction
that introduces ``getVersion``, ``setVersion`` or ``isVersion`` in the same
scope *decapsulates* it. This module defines the value types that describe
those events:

- :class:`NodeRef`          — a node id plus the transaction that introduced it.
- :class:`Decapsulation`    — one ``(field, accessor, transaction)`` triple.
- :class:`DecapsulationSet` — a field plus the insertion-ordered set of
  accessors currently considered to decapsulate it.

Design Notes
------------
- ``NodeRef`` and ``Decapsulation`` are frozen dataclasses: equality and hashing
  are structural, never by identity.
- ``DecapsulationSet`` is mutable but only ever written by the tracker that
  owns it; callers get read-only views.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class NodeRef:
    """
    A source node identified together with the transaction that added it.

    Attributes
    ----------
    id : str
        Fully qualified node id, e.g. ``"Main.java:getVersion()"``.
    transaction_id : str
        Id of the transaction in which the node was added.
    """

    id: str
    transaction_id: str

    def __str__(self) -> str:
        return f"{self.id} ({self.transaction_id})"

    def to_payload(self) -> dict[str, str]:
        return {"id": self.id, "transaction": self.transaction_id}


@dataclass(frozen=True, slots=True)
class Decapsulation:
    """A getter or setter added for an existing field in a later transaction."""

    field_id: str
    accessor_id: str
    transaction_id: str


class DecapsulationSet:
    """
    The accessors that decapsulate a single field.

    Accessors are kept in insertion order; adding an identical
    :class:`NodeRef` twice is a no-op.
    """

    __slots__ = ("_field", "_accessors")

    def __init__(self, field: NodeRef, accessors: tuple[NodeRef, ...] = ()) -> None:
        self._field = field
        # dict as an insertion-ordered set
        self._accessors: dict[NodeRef, None] = dict.fromkeys(accessors)

    @property
    def field(self) -> NodeRef:
        """The decapsulated field."""
        return self._field

    @property
    def accessors(self) -> tuple[NodeRef, ...]:
        """The decapsulating accessors, in the order they were recorded."""
        return tuple(self._accessors)

    @property
    def is_decapsulated(self) -> bool:
        """True if at least one accessor currently decapsulates the field."""
        return bool(self._accessors)

    def add_accessor(self, accessor: NodeRef) -> None:
        """Record ``accessor`` as decapsulating this field."""
        self._accessors[accessor] = None

    def remove_accessor(self, accessor_id: str) -> bool:
        """Forget the accessor with ``accessor_id``.

        Returns
        -------
        bool
            ``True`` if an accessor was removed.
        """
        for accessor in self._accessors:
            if accessor.id == accessor_id:
                del self._accessors[accessor]
                return True
        return False

    def copy(self) -> DecapsulationSet:
        """Return an independent set with the same field and accessors."""
        return DecapsulationSet(self._field, self.accessors)

    def decapsulations(self) -> tuple[Decapsulation, ...]:
        """Return the recorded events as ``(field, accessor, transaction)`` triples."""
        return tuple(
            Decapsulation(self._field.id, a.id, a.transaction_id) for a in self._accessors
        )

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-safe dict describing this set."""
        return {
            "field": self._field.to_payload(),
            "accessors": [a.to_payload() for a in self._accessors],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecapsulationSet):
            return NotImplemented
        return self._field == other._field and self.accessors == other.accessors

    def __repr__(self) -> str:
        inner = ", ".join(str(a) for a in self._accessors)
        return f"DecapsulationSet({self._field}: [{inner}])"


__all__ = ["Decapsulation", "DecapsulationSet", "NodeRef"]
