"""
Project history providers.

- :class:`Repository` — an ordered, in-memory history of transactions.
- :class:`PersistentRepository` — a JSON store for a :class:`Repository`.

Storage layout
--------------
- Default directory: ``DECAPLENS_STORE_DIR`` setting, ``.decaplens/`` otherwise
- File:              ``<store_dir>/history.json``
- Content:           ``{"format": 1, "transactions": [...]}`` as dumped by
  pydantic from the :class:`~decaplens.core.model.transaction.Transaction` models

Usage
-----
>>> store = PersistentRepository(tmp_dir)
>>> path = store.persist(repository)
>>> store.load().history == repository.history
True
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

from decaplens.core.errors import InvalidHistoryError, RepositoryNotFoundError
from decaplens.core.model.project import Project
from decaplens.core.model.transaction import Transaction
from decaplens.core.settings import get_logger, load_settings

logger = get_logger(__name__)

HISTORY_FILE = "history.json"


class Repository:
    """An immutable project history: transactions in commit order.

    Raises
    ------
    InvalidHistoryError
        If two transactions share an id.
    """

    __slots__ = ("_history",)

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        history = tuple(transactions)
        seen: set[str] = set()
        for transaction in history:
            if transaction.id in seen:
                raise InvalidHistoryError(f"duplicate transaction id {transaction.id!r}")
            seen.add(transaction.id)
        self._history = history

    @property
    def history(self) -> tuple[Transaction, ...]:
        return self._history

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def snapshot(self) -> Project:
        """Replay the whole history and return the resulting project state."""
        project = Project()
        for transaction in self._history:
            project.apply_transaction(transaction)
        return project


class _HistoryDocument(BaseModel):
    """On-disk envelope of a persisted history."""

    format: Literal[1] = 1
    transactions: list[Transaction]


def _default_dir() -> Path:
    """Return the configured store directory."""
    return load_settings().store_dir


class PersistentRepository:
    """Persist and load a :class:`Repository` as a JSON document."""

    def __init__(self, store_dir: Path | None = None) -> None:
        self.store_dir: Path = store_dir if store_dir is not None else _default_dir()

    @property
    def path(self) -> Path:
        return self.store_dir / HISTORY_FILE

    def exists(self) -> bool:
        return self.path.is_file()

    def persist(self, repository: Repository) -> Path:
        """Write ``repository`` to disk, replacing any previous history."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        document = _HistoryDocument(transactions=list(repository.history))
        with self.path.open("w", encoding="utf-8") as f:
            f.write(document.model_dump_json(indent=2))
            f.write("\n")
        logger.info("persisted %d transactions to %s", len(repository), self.path)
        return self.path

    def load(self) -> Repository:
        """Read the persisted history.

        Raises
        ------
        RepositoryNotFoundError
            If nothing was persisted under :attr:`store_dir`.
        InvalidHistoryError
            If the stored document is not a valid history.
        """
        if not self.exists():
            raise RepositoryNotFoundError(f"repository was not persisted: {self.path}")
        try:
            document = _HistoryDocument.model_validate_json(self.path.read_bytes())
        except ValidationError as exc:
            raise InvalidHistoryError(f"corrupt history store {self.path}: {exc}") from exc
        logger.info("loaded %d transactions from %s", len(document.transactions), self.path)
        return Repository(document.transactions)

    def clean(self) -> None:
        """Delete the store directory, if present."""
        if self.store_dir.exists():
            shutil.rmtree(self.store_dir)


__all__ = ["HISTORY_FILE", "PersistentRepository", "Repository"]
