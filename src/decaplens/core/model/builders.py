"""
Fluent builders for source trees and transactions.

Histories are usually produced by a history provider, but tests and scripts
need a compact way to write one by hand. Every builder method returns the
builder itself, and nested structures are configured through callables that
receive the nested builder:

>>> tx = transaction("0", lambda t: t
...     .author("<author>")
...     .add_source_unit("Main.java", lambda u: u.variable("version")))
>>> [e.id for e in tx.edits]
['Main.java']

Whole histories are assembled by :func:`decaplens.repository.builders.repository`.

Ids passed to ``add_*`` / ``edit_*`` / ``remove_node`` are fully qualified;
names passed to ``type`` / ``function`` / ``variable`` are local to the
enclosing unit or type.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Self, TypeVar

from .edit import AddNode, Edit, EditNode, LineAdd, LineRemove, ListEdit, RemoveNode, SetEdit
from .entity import (
    SourceEntity,
    SourceFunction,
    SourceNode,
    SourceType,
    SourceUnit,
    SourceVariable,
    child_id,
)
from .transaction import UNKNOWN_AUTHOR, Transaction

B = TypeVar("B")


def _configure(builder: B, configure: Callable[[B], object] | None) -> B:
    if configure is not None:
        configure(builder)
    return builder


# --------------------------------------------------------------------------- #
# Source nodes
# --------------------------------------------------------------------------- #


class VariableBuilder:
    def __init__(self, node_id: str) -> None:
        self._id = node_id
        self._modifiers: list[str] = []
        self._initializer: list[str] = []

    def modifiers(self, *modifiers: str) -> VariableBuilder:
        self._modifiers.extend(modifiers)
        return self

    def initializer(self, *lines: str) -> VariableBuilder:
        self._initializer.extend(lines)
        return self

    def build(self) -> SourceVariable:
        return SourceVariable(
            id=self._id,
            modifiers=tuple(self._modifiers),
            initializer=tuple(self._initializer),
        )


class FunctionBuilder:
    def __init__(self, node_id: str) -> None:
        self._id = node_id
        self._modifiers: list[str] = []
        self._parameters: list[str] = []
        self._body: list[str] = []

    def modifiers(self, *modifiers: str) -> FunctionBuilder:
        self._modifiers.extend(modifiers)
        return self

    def parameters(self, *parameters: str) -> FunctionBuilder:
        self._parameters.extend(parameters)
        return self

    def body(self, *lines: str) -> FunctionBuilder:
        self._body.extend(lines)
        return self

    def build(self) -> SourceFunction:
        return SourceFunction(
            id=self._id,
            modifiers=tuple(self._modifiers),
            parameters=tuple(self._parameters),
            body=tuple(self._body),
        )


class _ContainerBuilder:
    """Shared ``type`` / ``function`` / ``variable`` declarations."""

    def __init__(self, node_id: str) -> None:
        self._id = node_id
        self._children: list[TypeBuilder | FunctionBuilder | VariableBuilder] = []

    def type(self, name: str, configure: Callable[[TypeBuilder], object] | None = None) -> Self:
        self._children.append(_configure(TypeBuilder(child_id(self._id, name)), configure))
        return self

    def function(
        self, signature: str, configure: Callable[[FunctionBuilder], object] | None = None
    ) -> Self:
        self._children.append(
            _configure(FunctionBuilder(child_id(self._id, signature)), configure)
        )
        return self

    def variable(
        self, name: str, configure: Callable[[VariableBuilder], object] | None = None
    ) -> Self:
        self._children.append(_configure(VariableBuilder(child_id(self._id, name)), configure))
        return self

    def _build_children(self) -> tuple[SourceEntity, ...]:
        return tuple(child.build() for child in self._children)


class TypeBuilder(_ContainerBuilder):
    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self._modifiers: list[str] = []
        self._supertypes: list[str] = []

    def modifiers(self, *modifiers: str) -> TypeBuilder:
        self._modifiers.extend(modifiers)
        return self

    def supertypes(self, *supertypes: str) -> TypeBuilder:
        self._supertypes.extend(supertypes)
        return self

    def build(self) -> SourceType:
        return SourceType(
            id=self._id,
            modifiers=tuple(self._modifiers),
            supertypes=tuple(self._supertypes),
            members=self._build_children(),
        )


class UnitBuilder(_ContainerBuilder):
    def build(self) -> SourceUnit:
        return SourceUnit(id=self._id, entities=self._build_children())


# --------------------------------------------------------------------------- #
# Edits
# --------------------------------------------------------------------------- #


class SetEditBuilder:
    def __init__(self) -> None:
        self._add: list[str] = []
        self._remove: list[str] = []

    def add(self, value: str) -> SetEditBuilder:
        self._add.append(value)
        return self

    def remove(self, value: str) -> SetEditBuilder:
        self._remove.append(value)
        return self

    def build(self) -> SetEdit:
        return SetEdit(add=tuple(self._add), remove=tuple(self._remove))


class ListEditBuilder:
    def __init__(self) -> None:
        self._edits: list[ListEdit] = []

    def add(self, index: int, value: str) -> ListEditBuilder:
        self._edits.append(LineAdd(index=index, value=value))
        return self

    def remove(self, index: int) -> ListEditBuilder:
        self._edits.append(LineRemove(index=index))
        return self

    def build(self) -> tuple[ListEdit, ...]:
        return tuple(self._edits)


class EditBuilder:
    """Collects the attribute edits of one :class:`EditNode`."""

    def __init__(self, node_id: str) -> None:
        self._id = node_id
        self._modifiers: SetEdit | None = None
        self._supertypes: SetEdit | None = None
        self._body: tuple[ListEdit, ...] = ()
        self._initializer: tuple[ListEdit, ...] = ()

    def modifiers(self, configure: Callable[[SetEditBuilder], object]) -> EditBuilder:
        self._modifiers = _configure(SetEditBuilder(), configure).build()
        return self

    def supertypes(self, configure: Callable[[SetEditBuilder], object]) -> EditBuilder:
        self._supertypes = _configure(SetEditBuilder(), configure).build()
        return self

    def body(self, configure: Callable[[ListEditBuilder], object]) -> EditBuilder:
        self._body = _configure(ListEditBuilder(), configure).build()
        return self

    def initializer(self, configure: Callable[[ListEditBuilder], object]) -> EditBuilder:
        self._initializer = _configure(ListEditBuilder(), configure).build()
        return self

    def build(self) -> EditNode:
        return EditNode(
            id=self._id,
            modifiers=self._modifiers,
            supertypes=self._supertypes,
            body=self._body,
            initializer=self._initializer,
        )


# --------------------------------------------------------------------------- #
# Transactions and repositories
# --------------------------------------------------------------------------- #


class TransactionBuilder:
    def __init__(self, transaction_id: str) -> None:
        self._id = transaction_id
        self._date: int | None = None
        self._author = UNKNOWN_AUTHOR
        self._edits: list[Edit] = []

    def date(self, millis: int) -> TransactionBuilder:
        self._date = millis
        return self

    def author(self, author: str) -> TransactionBuilder:
        self._author = author
        return self

    def add_source_unit(
        self, path: str, configure: Callable[[UnitBuilder], object] | None = None
    ) -> TransactionBuilder:
        return self._add(_configure(UnitBuilder(path), configure).build())

    def add_type(
        self, node_id: str, configure: Callable[[TypeBuilder], object] | None = None
    ) -> TransactionBuilder:
        return self._add(_configure(TypeBuilder(node_id), configure).build())

    def add_function(
        self, node_id: str, configure: Callable[[FunctionBuilder], object] | None = None
    ) -> TransactionBuilder:
        return self._add(_configure(FunctionBuilder(node_id), configure).build())

    def add_variable(
        self, node_id: str, configure: Callable[[VariableBuilder], object] | None = None
    ) -> TransactionBuilder:
        return self._add(_configure(VariableBuilder(node_id), configure).build())

    def edit_type(
        self, node_id: str, configure: Callable[[EditBuilder], object]
    ) -> TransactionBuilder:
        return self._edit(node_id, configure)

    def edit_function(
        self, node_id: str, configure: Callable[[EditBuilder], object]
    ) -> TransactionBuilder:
        return self._edit(node_id, configure)

    def edit_variable(
        self, node_id: str, configure: Callable[[EditBuilder], object]
    ) -> TransactionBuilder:
        return self._edit(node_id, configure)

    def remove_node(self, node_id: str) -> TransactionBuilder:
        self._edits.append(RemoveNode(id=node_id))
        return self

    def _add(self, node: SourceNode) -> TransactionBuilder:
        self._edits.append(AddNode(node=node))
        return self

    def _edit(
        self, node_id: str, configure: Callable[[EditBuilder], object]
    ) -> TransactionBuilder:
        self._edits.append(_configure(EditBuilder(node_id), configure).build())
        return self

    def build(self) -> Transaction:
        if self._date is None:
            return Transaction(id=self._id, author=self._author, edits=tuple(self._edits))
        return Transaction(
            id=self._id, date=self._date, author=self._author, edits=tuple(self._edits)
        )


def transaction(
    transaction_id: str, configure: Callable[[TransactionBuilder], object] | None = None
) -> Transaction:
    """Build a single :class:`Transaction`."""
    return _configure(TransactionBuilder(transaction_id), configure).build()


__all__ = [
    "EditBuilder",
    "FunctionBuilder",
    "TransactionBuilder",
    "TypeBuilder",
    "UnitBuilder",
    "VariableBuilder",
    "transaction",
]
