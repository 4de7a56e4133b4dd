"""
Decapsulation tracker: incremental analysis over a project history.

The tracker is a left fold over transactions in commit order. For each
transaction it first *visits* every edit against the snapshot as it was
before the transaction, then applies the whole batch to the snapshot.

Visiting before applying is what excludes same-transaction decapsulations: a
field created together with its accessors (inline getters/setters written at
creation time) is not a smell, and only a lookup against the pre-transaction
snapshot can tell the two situations apart.

Visit rules
-----------
``AddNode``
    For every node in the added subtree: a variable starts a fresh
    :class:`DecapsulationSet`; a function whose name matches an accessor of a
    field that already existed *and* is tracked is recorded on that field.
``RemoveNode``
    The subtree is resolved in the pre-transaction snapshot. A removed variable
    drops its whole set; a removed accessor is taken back out of its field's
    set (an undo, not a new event).
``EditNode``
    No effect: in-place edits never change a node's id or kind.

Stopping the fold early is always valid: the records then answer "which
decapsulations exist as of that transaction".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import assert_never

from decaplens.core.errors import InvalidHistoryError
from decaplens.core.model.edit import AddNode, Edit, EditNode, RemoveNode
from decaplens.core.model.entity import (
    SourceFunction,
    SourceNode,
    SourceType,
    SourceUnit,
    SourceVariable,
    walk_source_tree,
)
from decaplens.core.model.project import Project
from decaplens.core.model.transaction import Transaction
from decaplens.core.settings import get_logger

from .accessors import field_id_for_accessor
from .decapsulation import DecapsulationSet, NodeRef

logger = get_logger(__name__)


class _StagedRecords:
    """
    Copy-on-write view of the tracker's records for one transaction.

    Reads fall through to the committed records; writes stay local until
    :meth:`commit`. A rejected transaction simply drops its overlay.
    """

    __slots__ = ("_base", "_changes", "_fresh")

    def __init__(self, base: dict[str, DecapsulationSet]) -> None:
        self._base = base
        # ``None`` marks a record dropped in this transaction
        self._changes: dict[str, DecapsulationSet | None] = {}
        self._fresh: set[str] = set()

    def get(self, field_id: str) -> DecapsulationSet | None:
        if field_id in self._changes:
            return self._changes[field_id]
        return self._base.get(field_id)

    def writable(self, field_id: str) -> DecapsulationSet | None:
        """Return a record that may be mutated without touching the committed one."""
        record = self.get(field_id)
        if record is not None and field_id not in self._changes:
            record = record.copy()
            self._changes[field_id] = record
        return record

    def start(self, record: DecapsulationSet) -> None:
        self._changes[record.field.id] = record
        self._fresh.add(record.field.id)

    def drop(self, field_id: str) -> None:
        self._changes[field_id] = None
        self._fresh.discard(field_id)

    def commit(self) -> None:
        """Write the changes back; fields started here go to the end of the order."""
        for field_id, record in self._changes.items():
            if record is None or field_id in self._fresh:
                self._base.pop(field_id, None)
            if record is not None:
                self._base[field_id] = record


class DecapsulationTracker:
    """
    Owns a :class:`Project` snapshot and the per-field decapsulation records.

    Attributes
    ----------
    _project : Project
        Snapshot of the tree as of the last fully processed transaction.
    _records : dict[str, DecapsulationSet]
        Decapsulation sets keyed by field id, in the order fields were added.
    _processed : int
        Number of transactions processed so far.
    """

    __slots__ = ("_project", "_records", "_processed")

    def __init__(self) -> None:
        self._project = Project()
        self._records: dict[str, DecapsulationSet] = {}
        self._processed = 0

    # ------------------------------- Queries --------------------------------

    @property
    def records(self) -> Mapping[str, DecapsulationSet]:
        """Read-only view of the decapsulation sets keyed by field id."""
        return MappingProxyType(self._records)

    @property
    def project(self) -> Project:
        """The snapshot as of the last processed transaction. Do not mutate."""
        return self._project

    @property
    def transactions_processed(self) -> int:
        return self._processed

    def decapsulated(self) -> list[DecapsulationSet]:
        """Return the sets with at least one accessor, in field order."""
        return [s for s in self._records.values() if s.is_decapsulated]

    # ------------------------------- Fold step ------------------------------

    def process(self, transaction: Transaction) -> None:
        """Visit every edit of ``transaction``, then apply them to the snapshot.

        A transaction is processed whole or not at all: if it is rejected,
        the records, the snapshot and the processed count are left as they
        were after the previous transaction.

        Raises
        ------
        InvalidHistoryError
            If an edit does not fit the snapshot it is replayed against.
        """
        staged = _StagedRecords(self._records)
        try:
            for edit in transaction.edits:
                self._visit(edit, transaction.id, staged)
            self._project.apply(transaction.edits)
        except InvalidHistoryError as e:
            logger.warning("rejected transaction %s: %s", transaction.id, e)
            raise
        staged.commit()
        self._processed += 1
        logger.debug(
            "processed transaction %s (%d edits, %d fields tracked)",
            transaction.id,
            len(transaction.edits),
            len(self._records),
        )

    def _visit(self, edit: Edit, transaction_id: str, staged: _StagedRecords) -> None:
        match edit:
            case AddNode(node=node):
                self._visit_added(node, transaction_id, staged)
            case RemoveNode(id=node_id):
                self._visit_removed(node_id, staged)
            case EditNode():
                pass
            case _:
                assert_never(edit)

    def _visit_added(
        self, node: SourceNode, transaction_id: str, staged: _StagedRecords
    ) -> None:
        for n in walk_source_tree(node):
            match n:
                case SourceVariable():
                    staged.start(DecapsulationSet(NodeRef(n.id, transaction_id)))
                case SourceFunction():
                    record = self._tracked_field_for(n, staged)
                    if record is not None:
                        record.add_accessor(NodeRef(n.id, transaction_id))
                        logger.debug(
                            "decapsulation: %s by %s in %s",
                            record.field.id,
                            n.id,
                            transaction_id,
                        )
                case SourceUnit() | SourceType():
                    pass

    def _visit_removed(self, node_id: str, staged: _StagedRecords) -> None:
        root = self._project.find(node_id)
        if root is None:
            raise InvalidHistoryError(
                f"cannot remove {node_id!r}: node does not exist before this transaction"
            )
        for n in walk_source_tree(root):
            match n:
                case SourceVariable():
                    staged.drop(n.id)
                case SourceFunction():
                    record = self._tracked_field_for(n, staged)
                    if record is not None and record.remove_accessor(n.id):
                        logger.debug("undo decapsulation: %s by %s", record.field.id, n.id)
                case SourceUnit() | SourceType():
                    pass

    def _tracked_field_for(
        self, function: SourceFunction, staged: _StagedRecords
    ) -> DecapsulationSet | None:
        """Return a writable record of the pre-existing field ``function`` accesses."""
        field_id = field_id_for_accessor(function)
        if field_id is None or field_id not in self._project:
            return None
        return staged.writable(field_id)


def replay(
    transactions: Iterable[Transaction],
    *,
    until: str | None = None,
) -> DecapsulationTracker:
    """Fold ``transactions`` into a fresh tracker and return it.

    Parameters
    ----------
    transactions:
        The project history in commit order. May be lazily produced.
    until:
        Optional transaction id; the fold stops right after processing it.
        If the id never occurs the whole history is processed and a warning
        is logged.
    """
    tracker = DecapsulationTracker()
    reached = False
    for transaction in transactions:
        tracker.process(transaction)
        if until is not None and transaction.id == until:
            reached = True
            break
    if until is not None and not reached:
        logger.warning("transaction %s never occurred; replayed the whole history", until)
    logger.info(
        "analyzed %d transactions: %d fields tracked, %d decapsulated",
        tracker.transactions_processed,
        len(tracker.records),
        len(tracker.decapsulated()),
    )
    return tracker


def analyze(
    transactions: Iterable[Transaction],
    *,
    until: str | None = None,
) -> dict[str, DecapsulationSet]:
    """Replay ``transactions`` in order and return the decapsulation sets by field id.

    Parameters
    ----------
    transactions:
        The project history in commit order. May be lazily produced.
    until:
        Optional transaction id; the fold stops right after processing it.

    Returns
    -------
    dict[str, DecapsulationSet]
        Every tracked field, including those without accessors. A field is
        decapsulated iff its set is non-empty.
    """
    return dict(replay(transactions, until=until).records)


__all__ = ["DecapsulationTracker", "analyze", "replay"]
