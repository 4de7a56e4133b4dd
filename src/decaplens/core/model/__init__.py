"""Versioned source model: entities, edits, transactions and project snapshots."""

from __future__ import annotations

from .edit import AddNode, Edit, EditNode, LineAdd, LineRemove, RemoveNode, SetEdit
from .entity import (
    ENTITY_SEPARATOR,
    SourceEntity,
    SourceFunction,
    SourceNode,
    SourceType,
    SourceUnit,
    SourceVariable,
    walk_source_tree,
)
from .project import Project
from .transaction import Transaction

__all__ = [
    "ENTITY_SEPARATOR",
    "AddNode",
    "Edit",
    "EditNode",
    "LineAdd",
    "LineRemove",
    "Project",
    "RemoveNode",
    "SetEdit",
    "SourceEntity",
    "SourceFunction",
    "SourceNode",
    "SourceType",
    "SourceUnit",
    "SourceVariable",
    "Transaction",
    "walk_source_tree",
]
