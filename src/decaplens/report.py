"""
Rendering of decapsulation results.

The tracker's output is a mapping ``field id -> DecapsulationSet``. Only fields
with at least one accessor left at the end of the history are reported; fields
whose accessors were all removed again reflect their final, not historical,
state and are omitted.

Console format
--------------
    - Main.java:version (0)
      - Main.java:getVersion() (1)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.markup import escape

from decaplens.analysis.decapsulation import Decapsulation, DecapsulationSet


def decapsulated_fields(records: Mapping[str, DecapsulationSet]) -> list[DecapsulationSet]:
    """Return the sets that still hold at least one accessor."""
    return [s for s in records.values() if s.is_decapsulated]


def iter_decapsulations(records: Mapping[str, DecapsulationSet]) -> list[Decapsulation]:
    """Flatten ``records`` into ``(field, accessor, transaction)`` triples."""
    return [d for s in records.values() for d in s.decapsulations()]


def to_payload(
    records: Mapping[str, DecapsulationSet], *, include_all: bool = False
) -> list[dict[str, Any]]:
    """Return a JSON-safe list describing the reported fields."""
    sets = list(records.values()) if include_all else decapsulated_fields(records)
    return [s.to_payload() for s in sets]


def render_console(
    records: Mapping[str, DecapsulationSet],
    console: Console,
    *,
    include_all: bool = False,
) -> None:
    """Print one block per reported field followed by a summary line."""
    sets = list(records.values()) if include_all else decapsulated_fields(records)
    if not sets:
        console.print("[dim]No decapsulations found.[/dim]")
        return

    for decapsulation_set in sets:
        style = "bold" if decapsulation_set.is_decapsulated else "dim"
        console.print(f"[{style}]- {escape(str(decapsulation_set.field))}[/{style}]")
        for accessor in decapsulation_set.accessors:
            console.print(f"  - [yellow]{escape(str(accessor))}[/yellow]")

    events = iter_decapsulations(records)
    fields = len(decapsulated_fields(records))
    console.print(
        f"\n[bold green]{fields}[/bold green] decapsulated field(s), "
        f"[bold green]{len(events)}[/bold green] accessor(s) out of {len(records)} tracked."
    )


__all__ = ["decapsulated_fields", "iter_decapsulations", "render_console", "to_payload"]
