"""Decapsulation analysis over a replayed project history.

Currently exposed:

- :func:`analyze` — fold a transaction stream into per-field decapsulation sets.
- :func:`replay` — the same fold, returning the tracker itself.
- :class:`DecapsulationTracker` — the incremental, one-transaction-at-a-time engine.
"""

from __future__ import annotations

from .accessors import field_id_for_accessor, field_name_for_accessor
from .decapsulation import Decapsulation, DecapsulationSet, NodeRef
from .tracker import DecapsulationTracker, analyze, replay

__all__ = [
    "Decapsulation",
    "DecapsulationSet",
    "DecapsulationTracker",
    "NodeRef",
    "analyze",
    "field_id_for_accessor",
    "field_name_for_accessor",
    "replay",
]
