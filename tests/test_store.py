"""Unit tests for the in-memory repository and the JSON history store."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

from decaplens.core.errors import InvalidHistoryError, RepositoryNotFoundError
from decaplens.core.model.builders import transaction
from decaplens.core.model.edit import EditNode
from decaplens.core.settings import load_settings
from decaplens.repository.builders import repository
from decaplens.repository.store import HISTORY_FILE, PersistentRepository, Repository


def _repo() -> Repository:
    return repository(
        lambda r: r.transaction(
            "1",
            lambda t: t.date(123)
            .author("<author>")
            .add_source_unit("Main.java", lambda u: u.variable("version"))
            .add_source_unit("Test.java"),
        )
        .transaction(
            "2",
            lambda t: t.remove_node("Test.java").edit_variable(
                "Main.java:version", lambda e: e.initializer(lambda i: i.add(0, "1"))
            ),
        )
    )


def test_duplicate_transaction_ids_are_rejected() -> None:
    with pytest.raises(InvalidHistoryError):
        Repository([transaction("1"), transaction("1")])


def test_snapshot_replays_history() -> None:
    project = _repo().snapshot()
    assert [u.id for u in project.units] == ["Main.java"]
    assert "Main.java:version" in project


def test_persist_then_load(tmp_path: Path) -> None:
    repo = _repo()
    store = PersistentRepository(tmp_path / ".decaplens")
    path = store.persist(repo)
    assert path == tmp_path / ".decaplens" / HISTORY_FILE

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["format"] == 1
    assert [t["id"] for t in payload["transactions"]] == ["1", "2"]

    loaded = store.load()
    assert loaded.history == repo.history
    assert isinstance(loaded.history[1].edits[1], EditNode)


def test_load_missing_store_raises(tmp_path: Path) -> None:
    with pytest.raises(RepositoryNotFoundError):
        PersistentRepository(tmp_path / "nowhere").load()


def test_load_corrupt_store_raises(tmp_path: Path) -> None:
    (tmp_path / HISTORY_FILE).write_text('{"transactions": [{"edits": []}]}', encoding="utf-8")
    with pytest.raises(InvalidHistoryError):
        PersistentRepository(tmp_path).load()


def test_clean_removes_store(tmp_path: Path) -> None:
    store = PersistentRepository(tmp_path / ".decaplens")
    store.persist(_repo())
    store.clean()
    assert not store.exists()
    store.clean()  # no-op when absent


def test_default_store_dir_comes_from_settings(tmp_path: Path, monkeypatch: Any) -> None:
    monkeypatch.setenv("DECAPLENS_STORE_DIR", str(tmp_path / "custom"))
    load_settings.cache_clear()
    try:
        assert PersistentRepository().store_dir == tmp_path / "custom"
    finally:
        monkeypatch.delenv("DECAPLENS_STORE_DIR", raising=False)
        load_settings.cache_clear()


def test_core_builders_do_not_import_the_repository_layer() -> None:
    code = (
        "import sys\n"
        "import decaplens.core.model.builders\n"
        "assert 'decaplens.repository.store' not in sys.modules\n"
    )
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr


def test_repository_builder_yields_repository() -> None:
    repo = _repo()
    assert isinstance(repo, Repository)
    assert [t.id for t in repo] == ["1", "2"]
