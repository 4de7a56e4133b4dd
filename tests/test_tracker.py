"""
Tests for the decapsulation tracker.

These verify the replay invariants:

1. Same-transaction accessors are never counted.
2. Removing an accessor undoes its decapsulation.
3. Removing a field forgets its record.
4. The traversal order within one added/removed subtree does not matter.
5. The end-to-end ``Main.java`` history yields exactly one decapsulation.
6. A rejected transaction leaves no partial records or snapshot changes.
"""

from __future__ import annotations

from typing import Any

import pytest

from decaplens.analysis import tracker as tracker_module
from decaplens.analysis.decapsulation import DecapsulationSet, NodeRef
from decaplens.analysis.tracker import DecapsulationTracker, analyze, replay
from decaplens.core.errors import InvalidHistoryError
from decaplens.core.model.builders import transaction
from decaplens.core.model.entity import walk_source_tree
from decaplens.repository.builders import repository
from decaplens.repository.store import Repository


def _main_history() -> Repository:
    return repository(
        lambda r: r.transaction(
            "0",
            lambda t: t.date(0)
            .author("<author>")
            .add_source_unit("Main.java", lambda u: u.variable("version")),
        )
        .transaction("1", lambda t: t.add_function("Main.java:getVersion()"))
        .transaction(
            "2",
            lambda t: t.add_function(
                "Main.java:setVersion()", lambda f: f.modifiers("private", "static")
            ).edit_function(
                "Main.java:setVersion()",
                lambda e: e.modifiers(
                    lambda m: m.remove("private").remove("static").add("public")
                ).body(lambda b: b.add(0, "{ version = 1; }")),
            ),
        )
        .transaction("3", lambda t: t.remove_node("Main.java:setVersion()"))
        .transaction(
            "4",
            lambda t: t.add_type("Main.java:Main", lambda ty: ty.function("isVersion()")),
        )
    )


def test_simple_decapsulation() -> None:
    expected = {
        "Main.java:version": DecapsulationSet(
            NodeRef("Main.java:version", "0"),
            (NodeRef("Main.java:getVersion()", "1"),),
        )
    }
    assert analyze(_main_history()) == expected


def test_setter_is_recorded_until_it_is_removed() -> None:
    records = analyze(_main_history(), until="2")
    assert records["Main.java:version"].accessors == (
        NodeRef("Main.java:getVersion()", "1"),
        NodeRef("Main.java:setVersion()", "2"),
    )


def test_nested_accessor_does_not_match_outer_field() -> None:
    tracker = DecapsulationTracker()
    for t in _main_history():
        tracker.process(t)
    assert "Main.java:Main:isVersion()" in tracker.project
    assert [s.field.id for s in tracker.decapsulated()] == ["Main.java:version"]
    assert tracker.transactions_processed == 5


def test_no_same_transaction_decapsulation() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0",
            lambda t: t.add_source_unit(
                "A.java", lambda u: u.variable("x").function("getX()")
            ).add_function("A.java:setX(int)"),
        ).transaction("1", lambda t: t.add_function("A.java:isX()"))
    )
    records = analyze(repo)
    assert records["A.java:x"].accessors == (NodeRef("A.java:isX()", "1"),)


def test_accessor_removal_undoes_decapsulation() -> None:
    repo = repository(
        lambda r: r.transaction(
            "A", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x"))
        )
        .transaction("B", lambda t: t.add_function("A.java:getX()"))
        .transaction("C", lambda t: t.remove_node("A.java:getX()"))
    )
    records = analyze(repo)
    assert records["A.java:x"] == DecapsulationSet(NodeRef("A.java:x", "A"))
    assert not records["A.java:x"].is_decapsulated


def test_field_removal_forgets_history() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x"))
        )
        .transaction("1", lambda t: t.add_function("A.java:getX()"))
        .transaction("2", lambda t: t.remove_node("A.java:x"))
        .transaction("3", lambda t: t.add_function("A.java:run()"))
    )
    assert "A.java:x" not in analyze(repo)


def test_readded_field_starts_with_fresh_record() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x"))
        )
        .transaction("1", lambda t: t.add_function("A.java:getX()"))
        .transaction("2", lambda t: t.remove_node("A.java:x"))
        .transaction("3", lambda t: t.add_variable("A.java:x"))
        .transaction("4", lambda t: t.add_function("A.java:setX()"))
    )
    records = analyze(repo)
    assert records["A.java:x"] == DecapsulationSet(
        NodeRef("A.java:x", "3"), (NodeRef("A.java:setX()", "4"),)
    )


def test_removing_a_unit_drops_all_its_fields() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x").variable("y"))
        )
        .transaction("1", lambda t: t.add_function("A.java:getX()"))
        .transaction("2", lambda t: t.remove_node("A.java"))
    )
    assert analyze(repo) == {}


def _order_history() -> Repository:
    return repository(
        lambda r: r.transaction(
            "0",
            lambda t: t.add_source_unit(
                "A.java", lambda u: u.type("A", lambda a: a.variable("x").variable("y"))
            ),
        )
        .transaction(
            "1",
            lambda t: t.add_function("A.java:A:getX()").add_type(
                "A.java:A:Inner", lambda i: i.variable("z").function("getZ()")
            ),
        )
        .transaction("2", lambda t: t.add_function("A.java:A:Inner:setZ()"))
        .transaction("3", lambda t: t.remove_node("A.java:A:Inner"))
        .transaction(
            "4",
            lambda t: t.add_type(
                "A.java:A:Box", lambda b: b.function("isY()").variable("w")
            ).add_function("A.java:A:isY()"),
        )
    )


def test_traversal_order_independence(monkeypatch: Any) -> None:
    """Reversing the walk of every added/removed subtree yields the same records."""
    forward = analyze(_order_history())

    monkeypatch.setattr(
        tracker_module,
        "walk_source_tree",
        lambda node: list(reversed(walk_source_tree(node))),
    )
    backward = analyze(_order_history())

    assert forward == backward
    assert set(forward) == {"A.java:A:x", "A.java:A:y", "A.java:A:Box:w"}
    assert forward["A.java:A:x"].accessors == (NodeRef("A.java:A:getX()", "1"),)
    assert forward["A.java:A:y"].accessors == (NodeRef("A.java:A:isY()", "4"),)
    assert not forward["A.java:A:Box:w"].is_decapsulated


def test_until_stops_the_fold() -> None:
    records = analyze(_main_history(), until="0")
    assert records == {"Main.java:version": DecapsulationSet(NodeRef("Main.java:version", "0"))}


def test_records_view_is_read_only() -> None:
    tracker = DecapsulationTracker()
    with pytest.raises(TypeError):
        tracker.records["x"] = DecapsulationSet(NodeRef("x", "0"))  # type: ignore[index]


def test_removing_missing_node_is_invalid_history() -> None:
    repo = repository(lambda r: r.transaction("0", lambda t: t.remove_node("Ghost.java")))
    with pytest.raises(InvalidHistoryError):
        analyze(repo)


def test_removing_node_added_in_same_transaction_is_invalid_history() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0", lambda t: t.add_source_unit("A.java").remove_node("A.java")
        )
    )
    with pytest.raises(InvalidHistoryError):
        analyze(repo)


def test_readding_present_node_is_invalid_history() -> None:
    repo = repository(
        lambda r: r.transaction("0", lambda t: t.add_source_unit("A.java"))
        .transaction("1", lambda t: t.add_source_unit("A.java"))
    )
    with pytest.raises(InvalidHistoryError):
        analyze(repo)


def test_rejected_transaction_leaves_no_partial_state() -> None:
    tracker = DecapsulationTracker()
    tracker.process(
        transaction("0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x")))
    )

    with pytest.raises(InvalidHistoryError):
        tracker.process(
            transaction("1", lambda t: t.add_function("A.java:getX()").add_source_unit("A.java"))
        )

    assert tracker.records["A.java:x"] == DecapsulationSet(NodeRef("A.java:x", "0"))
    assert "A.java:getX()" not in tracker.project
    assert tracker.transactions_processed == 1

    tracker.process(transaction("2", lambda t: t.add_function("A.java:getX()")))
    assert tracker.records["A.java:x"].accessors == (NodeRef("A.java:getX()", "2"),)
    assert tracker.transactions_processed == 2


def test_rejected_transaction_keeps_removed_field() -> None:
    tracker = DecapsulationTracker()
    tracker.process(
        transaction("0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x")))
    )
    tracker.process(transaction("1", lambda t: t.add_function("A.java:getX()")))

    with pytest.raises(InvalidHistoryError):
        tracker.process(
            transaction("2", lambda t: t.remove_node("A.java:x").remove_node("Ghost.java"))
        )

    assert tracker.records["A.java:x"].accessors == (NodeRef("A.java:getX()", "1"),)
    assert "A.java:x" in tracker.project


def test_field_readded_in_one_transaction_moves_to_the_end() -> None:
    repo = repository(
        lambda r: r.transaction(
            "0", lambda t: t.add_source_unit("A.java", lambda u: u.variable("x").variable("y"))
        ).transaction("1", lambda t: t.remove_node("A.java:x").add_variable("A.java:x"))
    )
    records = analyze(repo)
    assert list(records) == ["A.java:y", "A.java:x"]
    assert records["A.java:x"].field == NodeRef("A.java:x", "1")


def test_replay_reports_transactions_processed() -> None:
    assert replay(_main_history(), until="1").transactions_processed == 2


def test_replay_with_unknown_until_processes_everything() -> None:
    tracker = replay(_main_history(), until="missing")
    assert tracker.transactions_processed == 5
    assert [s.field.id for s in tracker.decapsulated()] == ["Main.java:version"]
