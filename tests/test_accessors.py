"""Tests for accessor-name matching (pure, state-independent)."""

from __future__ import annotations

import pytest

from decaplens.analysis.accessors import (
    decapitalize,
    field_id_for_accessor,
    field_name_for_accessor,
    remove_signature,
)
from decaplens.core.model.entity import SourceFunction


@pytest.mark.parametrize(
    ("signature", "expected"),
    [
        ("getVersion()", "version"),
        ("isEnabled()", "enabled"),
        ("setX()", "x"),
        ("setX(int)", "x"),
        ("get()", None),
        ("set", None),
        ("is()", None),
        ("isA", "a"),
        ("get_value()", "_value"),
        ("getURL()", "uRL"),
        ("compute()", None),
        ("", None),
        ("(get)", None),
    ],
)
def test_field_name_for_accessor(signature: str, expected: str | None) -> None:
    assert field_name_for_accessor(signature) == expected


def test_remove_signature() -> None:
    assert remove_signature("getX(int, String)") == "getX"
    assert remove_signature("getX") == "getX"
    assert remove_signature("") == ""


def test_decapitalize_only_touches_upper_case_letters() -> None:
    assert decapitalize("Version") == "version"
    assert decapitalize("version") == "version"
    assert decapitalize("1st") == "1st"
    assert decapitalize("") == ""


def test_field_id_is_in_accessor_scope() -> None:
    accessor = SourceFunction(id="Main.java:Main:getVersion()")
    assert field_id_for_accessor(accessor) == "Main.java:Main:version"


def test_field_id_for_non_accessor_is_none() -> None:
    assert field_id_for_accessor(SourceFunction(id="Main.java:run()")) is None
