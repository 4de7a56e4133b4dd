"""
Project snapshot: a queryable materialization of the source tree.

A :class:`Project` reflects exactly the transactions fully applied to it so
far. It stores every node *shallowly* (children stripped) in an id index and
keeps the ordered child ids of each container separately, so that inserting or
deleting a subtree only touches the affected entries. :meth:`Project.find`
re-assembles the full subtree on demand.

Contract
--------
- ``find(id)`` is a pure read.
- ``apply(edits)`` applies every edit in order. Later edits may reference nodes
  inserted by earlier edits of the same batch.
- Applying an edit that does not fit the current state raises
  :class:`~decaplens.core.errors.InvalidHistoryError`. A batch is all or
  nothing: edits of the batch applied before the offending one are undone.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from functools import partial
from typing import cast

from decaplens.core.errors import InvalidHistoryError

from .edit import AddNode, Edit, EditNode, RemoveNode, apply_list_edits
from .entity import (
    SourceFunction,
    SourceNode,
    SourceType,
    SourceUnit,
    SourceVariable,
    walk_source_tree,
    with_children,
)
from .transaction import Transaction


def _is_container(node: SourceNode) -> bool:
    return isinstance(node, SourceUnit | SourceType)


class Project:
    """
    Mutable, single-writer snapshot of a project's source tree.

    Attributes
    ----------
    _nodes : dict[str, SourceNode]
        Every present node, keyed by id, with its children stripped.
    _children : dict[str, list[str]]
        Ordered child ids for every present unit and type.
    _units : list[str]
        Ordered ids of the top-level units.
    """

    __slots__ = ("_nodes", "_children", "_units")

    def __init__(self, units: Iterable[SourceUnit] = ()) -> None:
        self._nodes: dict[str, SourceNode] = {}
        self._children: dict[str, list[str]] = {}
        self._units: list[str] = []
        for unit in units:
            self._add(unit)

    # ------------------------------- Queries --------------------------------

    def find(self, node_id: str) -> SourceNode | None:
        """Return the node with ``node_id`` (with its subtree) or ``None``."""
        if node_id not in self._nodes:
            return None
        return self._materialize(node_id)

    lookup = find

    @property
    def units(self) -> tuple[SourceUnit, ...]:
        """The current top-level units, in insertion order."""
        units: list[SourceUnit] = []
        for unit_id in self._units:
            units.append(cast(SourceUnit, self._materialize(unit_id)))
        return tuple(units)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[str]:
        """Iterate over the ids of every present node (no particular order)."""
        return iter(self._nodes)

    def _materialize(self, node_id: str) -> SourceNode:
        node = self._nodes[node_id]
        if not _is_container(node):
            return node
        children = tuple(self._materialize(c) for c in self._children[node_id])
        return with_children(node, children)  # type: ignore[arg-type]

    # ------------------------------- Updates --------------------------------

    def apply(self, edits: Iterable[Edit]) -> None:
        """
        Apply ``edits`` in order, all or nothing.

        Each successful edit leaves an undo step behind. If a later edit of the
        batch raises :class:`InvalidHistoryError`, the steps run in reverse
        before the error propagates, so the snapshot is unchanged.
        """
        undo: list[Callable[[], object]] = []
        try:
            for edit in edits:
                match edit:
                    case AddNode(node=node):
                        self._add(node)
                        undo.append(partial(self._remove, node.id))
                    case RemoveNode(id=node_id):
                        undo.append(self._remove(node_id))
                    case EditNode():
                        undo.append(self._edit(edit))
        except InvalidHistoryError:
            for step in reversed(undo):
                step()
            raise

    def apply_transaction(self, transaction: Transaction) -> None:
        """Apply all edits of ``transaction``."""
        self.apply(transaction.edits)

    def _add(self, node: SourceNode, position: int | None = None) -> None:
        subtree = walk_source_tree(node)
        seen: set[str] = set()
        for n in subtree:
            if n.id in self._nodes or n.id in seen:
                raise InvalidHistoryError(f"cannot add {n.id!r}: node already exists")
            seen.add(n.id)

        parent = node.parent_id
        if isinstance(node, SourceUnit):
            siblings = self._units
        elif parent is None or parent not in self._nodes:
            raise InvalidHistoryError(f"cannot add {node.id!r}: parent {parent!r} does not exist")
        elif not _is_container(self._nodes[parent]):
            raise InvalidHistoryError(
                f"cannot add {node.id!r}: parent {parent!r} is a {self._nodes[parent].kind}"
            )
        else:
            siblings = self._children[parent]
        if position is None:
            siblings.append(node.id)
        else:
            siblings.insert(position, node.id)

        for n in subtree:
            if _is_container(n):
                self._nodes[n.id] = with_children(n, ())
                self._children[n.id] = [c.id for c in n.children]
            else:
                self._nodes[n.id] = n

    def _remove(self, node_id: str) -> Callable[[], object]:
        """Detach ``node_id`` with its subtree; return the step that restores it."""
        if node_id not in self._nodes:
            raise InvalidHistoryError(f"cannot remove {node_id!r}: node does not exist")

        removed = self._materialize(node_id)
        parent = removed.parent_id
        siblings = self._units if parent is None else self._children[parent]
        position = siblings.index(node_id)
        del siblings[position]

        stack = [node_id]
        while stack:
            current = stack.pop()
            del self._nodes[current]
            stack.extend(self._children.pop(current, ()))
        return partial(self._add, removed, position)

    def _edit(self, edit: EditNode) -> Callable[[], object]:
        """Replace the edited node; return the step that puts the old one back."""
        node = self._nodes.get(edit.id)
        if node is None:
            raise InvalidHistoryError(f"cannot edit {edit.id!r}: node does not exist")

        update: dict[str, tuple[str, ...]] = {}
        match node:
            case SourceUnit():
                raise InvalidHistoryError(f"cannot edit unit {edit.id!r}")
            case SourceType():
                _reject_fields(edit, "body", "initializer")
                if edit.supertypes is not None:
                    update["supertypes"] = edit.supertypes.apply(node.supertypes)
            case SourceFunction():
                _reject_fields(edit, "supertypes", "initializer")
                update["body"] = apply_list_edits(node.body, edit.body)
            case SourceVariable():
                _reject_fields(edit, "supertypes", "body")
                update["initializer"] = apply_list_edits(node.initializer, edit.initializer)
        if edit.modifiers is not None:
            update["modifiers"] = edit.modifiers.apply(node.modifiers)
        self._nodes[edit.id] = node.model_copy(update=update)
        return partial(self._nodes.__setitem__, edit.id, node)


def _reject_fields(edit: EditNode, *names: str) -> None:
    """Raise if ``edit`` sets any attribute the edited node kind does not have."""
    for name in names:
        if getattr(edit, name):
            raise InvalidHistoryError(f"cannot edit {name} of {edit.id!r}")


__all__ = ["Project"]
