"""
Edits: the mutations a transaction applies to the source entity tree.

``Edit`` is a closed union discriminated by ``type``:

- :class:`AddNode`    — a node (with all its descendants) becomes part of the tree.
- :class:`RemoveNode` — the node at ``id`` and everything beneath it is deleted.
- :class:`EditNode`   — an existing type, function or variable is modified in
  place (modifiers, supertypes, body or initializer lines). Its id, and so its
  position in the tree, never changes.

The value-level edits used by :class:`EditNode` (:class:`SetEdit`,
:class:`LineAdd`, :class:`LineRemove`) know how to apply themselves and raise
:class:`~decaplens.core.errors.InvalidHistoryError` when they do not fit the
value they are applied to.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from decaplens.core.errors import InvalidHistoryError

from .entity import SourceNode

# --------------------------------------------------------------------------- #
# Value edits
# --------------------------------------------------------------------------- #


class SetEdit(BaseModel):
    """Add and remove elements of an unordered collection (e.g. modifiers)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    add: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()

    def apply(self, values: tuple[str, ...]) -> tuple[str, ...]:
        """Return ``values`` with removals dropped and additions appended."""
        current = list(values)
        for value in self.remove:
            if value not in current:
                raise InvalidHistoryError(f"cannot remove missing element {value!r}")
            current.remove(value)
        for value in self.add:
            if value in current:
                raise InvalidHistoryError(f"cannot add duplicate element {value!r}")
            current.append(value)
        return tuple(current)


class LineAdd(BaseModel):
    """Insert ``value`` so that it ends up at position ``index``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["add"] = "add"
    index: int = Field(ge=0)
    value: str


class LineRemove(BaseModel):
    """Delete the line at position ``index``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["remove"] = "remove"
    index: int = Field(ge=0)


ListEdit = Annotated[LineAdd | LineRemove, Field(discriminator="type")]


def apply_list_edits(values: tuple[str, ...], edits: Sequence[ListEdit]) -> tuple[str, ...]:
    """Apply ``edits`` in order to ``values`` and return the resulting lines."""
    lines = list(values)
    for edit in edits:
        match edit:
            case LineAdd(index=index, value=value):
                if index > len(lines):
                    raise InvalidHistoryError(f"line index {index} out of range for insert")
                lines.insert(index, value)
            case LineRemove(index=index):
                if index >= len(lines):
                    raise InvalidHistoryError(f"line index {index} out of range for removal")
                del lines[index]
    return tuple(lines)


# --------------------------------------------------------------------------- #
# Project edits
# --------------------------------------------------------------------------- #


class AddNode(BaseModel):
    """Insert ``node`` and all of its descendants into the tree."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["add_node"] = "add_node"
    node: SourceNode

    @property
    def id(self) -> str:
        return self.node.id


class RemoveNode(BaseModel):
    """Delete the node at ``id`` together with its whole subtree."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["remove_node"] = "remove_node"
    id: str = Field(min_length=1)


class EditNode(BaseModel):
    """Modify the attributes of an existing type, function or variable.

    Only the attributes that exist on the edited node's kind may be set:
    ``supertypes`` for types, ``body`` for functions, ``initializer`` for
    variables. ``modifiers`` applies to all three.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["edit_node"] = "edit_node"
    id: str = Field(min_length=1)
    modifiers: SetEdit | None = None
    supertypes: SetEdit | None = None
    body: tuple[ListEdit, ...] = ()
    initializer: tuple[ListEdit, ...] = ()


Edit = Annotated[AddNode | RemoveNode | EditNode, Field(discriminator="type")]


__all__ = [
    "AddNode",
    "Edit",
    "EditNode",
    "LineAdd",
    "LineRemove",
    "ListEdit",
    "RemoveNode",
    "SetEdit",
    "apply_list_edits",
]
