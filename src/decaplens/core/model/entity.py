"""
Source entity tree: the versioned data model replayed by the analysis.

A project is a forest of :class:`SourceUnit` nodes (one per source file). Units
contain types, functions and variables; types contain further members. Every
node carries a globally unique, hierarchical identifier:

    Main.java                       unit
    Main.java:Main                  type  ``Main`` declared in the unit
    Main.java:Main:getVersion()     function, identified by its signature
    Main.java:Main:version          variable (field)

Child ids are formed as ``parent_id + ENTITY_SEPARATOR + local_name``. The
separator is only recognised outside parentheses, so a signature such as
``f(x: Int)`` is a single segment.

Design Notes
------------
- **Closed sum type**: ``SourceNode`` is a pydantic discriminated union over the
  ``kind`` literal; consumers dispatch with ``match``.
- **Immutability**: models are frozen and use tuples for ordered collections.
  A :class:`~decaplens.core.model.project.Project` produces updated copies
  instead of mutating nodes in place.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENTITY_SEPARATOR = ":"


# --------------------------------------------------------------------------- #
# Identifier helpers
# --------------------------------------------------------------------------- #


def _last_separator(node_id: str) -> int:
    """Return the index of the last top-level separator in ``node_id`` or -1."""
    depth = 0
    where = -1
    for i, ch in enumerate(node_id):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == ENTITY_SEPARATOR and depth == 0:
            where = i
    return where


def parent_id(node_id: str) -> str | None:
    """Return the id of the parent of ``node_id``, or ``None`` for a unit id."""
    where = _last_separator(node_id)
    return node_id[:where] if where != -1 else None


def local_name(node_id: str) -> str:
    """Return the last segment of ``node_id`` (the node's non-qualified name)."""
    return node_id[_last_separator(node_id) + 1 :]


def child_id(parent: str, name: str) -> str:
    """Return the id of the child called ``name`` declared inside ``parent``."""
    return f"{parent}{ENTITY_SEPARATOR}{name}"


# --------------------------------------------------------------------------- #
# Node models
# --------------------------------------------------------------------------- #


class _SourceNodeBase(BaseModel):
    """Fields and helpers shared by every node kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, description="Fully qualified, globally unique id.")

    @property
    def name(self) -> str:
        """The non-qualified name of this node."""
        return local_name(self.id)

    @property
    def parent_id(self) -> str | None:
        """The id of the enclosing node, or ``None`` for units."""
        return parent_id(self.id)

    @property
    def children(self) -> tuple[SourceEntity, ...]:
        """Direct children of this node, in declaration order."""
        return ()


class SourceVariable(_SourceNodeBase):
    """A variable declared in a unit or type (a field, in the analysis)."""

    kind: Literal["variable"] = "variable"
    modifiers: tuple[str, ...] = ()
    initializer: tuple[str, ...] = Field(default=(), description="Initializer source lines.")


class SourceFunction(_SourceNodeBase):
    """A function or method. Its local name is the full signature."""

    kind: Literal["function"] = "function"
    modifiers: tuple[str, ...] = ()
    parameters: tuple[str, ...] = ()
    body: tuple[str, ...] = Field(default=(), description="Body source lines.")

    @property
    def signature(self) -> str:
        """The non-qualified signature, e.g. ``getVersion()``."""
        return self.name


class SourceType(_SourceNodeBase):
    """A type declaration (class, interface, enum, ...) with nested members."""

    kind: Literal["type"] = "type"
    modifiers: tuple[str, ...] = ()
    supertypes: tuple[str, ...] = ()
    members: tuple[SourceEntity, ...] = ()

    @property
    def children(self) -> tuple[SourceEntity, ...]:
        return self.members

    @model_validator(mode="after")
    def _members_are_nested(self) -> SourceType:
        _check_nested(self.id, self.members)
        return self


class SourceUnit(_SourceNodeBase):
    """A compilation unit, identified by its path. Units have no parent."""

    kind: Literal["unit"] = "unit"
    entities: tuple[SourceEntity, ...] = ()

    @property
    def children(self) -> tuple[SourceEntity, ...]:
        return self.entities

    @field_validator("id")
    @classmethod
    def _is_top_level(cls, v: str) -> str:
        if parent_id(v) is not None:
            raise ValueError(f"unit id must not contain {ENTITY_SEPARATOR!r}: {v!r}")
        return v

    @model_validator(mode="after")
    def _entities_are_nested(self) -> SourceUnit:
        _check_nested(self.id, self.entities)
        return self


def _check_nested(container_id: str, children: tuple[SourceEntity, ...]) -> None:
    """Reject children whose id is not directly below ``container_id``."""
    for child in children:
        if child.parent_id != container_id:
            raise ValueError(f"{child.id!r} is not a direct child of {container_id!r}")


SourceEntity = Annotated[
    SourceType | SourceFunction | SourceVariable,
    Field(discriminator="kind"),
]
SourceNode = Annotated[
    SourceUnit | SourceType | SourceFunction | SourceVariable,
    Field(discriminator="kind"),
]

SourceType.model_rebuild()
SourceUnit.model_rebuild()


# --------------------------------------------------------------------------- #
# Traversal
# --------------------------------------------------------------------------- #


def walk_source_tree(node: SourceNode) -> list[SourceNode]:
    """Return ``node`` followed by all of its descendants, in pre-order."""
    out: list[SourceNode] = []
    stack: list[SourceNode] = [node]
    while stack:
        current = stack.pop()
        out.append(current)
        stack.extend(reversed(current.children))
    return out


def with_children(node: SourceNode, children: tuple[SourceEntity, ...]) -> SourceNode:
    """Return a copy of container ``node`` holding ``children``.

    Raises
    ------
    TypeError
        If ``node`` is a function or variable, which cannot contain entities.
    """
    match node:
        case SourceUnit():
            return node.model_copy(update={"entities": children})
        case SourceType():
            return node.model_copy(update={"members": children})
        case SourceFunction() | SourceVariable():
            raise TypeError(f"{node.kind} {node.id!r} cannot contain entities")


__all__ = [
    "ENTITY_SEPARATOR",
    "SourceEntity",
    "SourceFunction",
    "SourceNode",
    "SourceType",
    "SourceUnit",
    "SourceVariable",
    "child_id",
    "local_name",
    "parent_id",
    "walk_source_tree",
    "with_children",
]
