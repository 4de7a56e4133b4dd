"""
Fluent builder for whole histories.

>>> repo = repository(lambda r: r
...     .transaction("0", lambda t: t
...         .author("<author>")
...         .add_source_unit("Main.java", lambda u: u.variable("version")))
...     .transaction("1", lambda t: t
...         .add_function("Main.java:getVersion()")))
>>> [t.id for t in repo]
['0', '1']
"""

from __future__ import annotations

from collections.abc import Callable

from decaplens.core.model.builders import TransactionBuilder, transaction
from decaplens.core.model.transaction import Transaction

from .store import Repository


class RepositoryBuilder:
    def __init__(self) -> None:
        self._transactions: list[Transaction] = []

    def transaction(
        self, transaction_id: str, configure: Callable[[TransactionBuilder], object] | None = None
    ) -> RepositoryBuilder:
        self._transactions.append(transaction(transaction_id, configure))
        return self

    def build(self) -> Repository:
        return Repository(self._transactions)


def repository(configure: Callable[[RepositoryBuilder], object] | None = None) -> Repository:
    """Build a :class:`Repository` from a sequence of ``transaction(...)`` calls."""
    builder = RepositoryBuilder()
    if configure is not None:
        configure(builder)
    return builder.build()


__all__ = ["RepositoryBuilder", "repository"]
