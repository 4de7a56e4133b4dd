"""Accessor-name matching.

Maps a function signature to the local name of the field it would access:

    getVersion()  -> version
    setX(int)     -> x
    isEnabled()   -> enabled
    get()         -> None   (bare name too short)
    compute()     -> None

Matching is purely lexical and independent of any project state. Names that
are empty or otherwise malformed simply fail the prefix checks.
"""

from __future__ import annotations

from decaplens.core.model.entity import SourceFunction, child_id

_TWO_CHAR_PREFIXES = ("is",)
_THREE_CHAR_PREFIXES = ("get", "set")


def remove_signature(signature: str) -> str:
    """Return ``signature`` without the parameter list (from the first ``(``)."""
    where = signature.find("(")
    return signature if where == -1 else signature[:where]


def decapitalize(name: str) -> str:
    """Lower-case the first character of ``name`` if it is an upper-case letter."""
    if name and name[0].isupper():
        return name[0].lower() + name[1:]
    return name


def field_name_for_accessor(signature: str) -> str | None:
    """Return the field name accessed by ``signature``, or ``None``."""
    name = remove_signature(signature)
    if len(name) > 3 and name.startswith(_THREE_CHAR_PREFIXES):
        return decapitalize(name[3:])
    if len(name) > 2 and name.startswith(_TWO_CHAR_PREFIXES):
        return decapitalize(name[2:])
    return None


def field_id_for_accessor(accessor: SourceFunction) -> str | None:
    """Return the qualified id of the field ``accessor`` would access, or ``None``.

    The candidate field lives in the same scope as the accessor.
    """
    field_name = field_name_for_accessor(accessor.signature)
    scope = accessor.parent_id
    if field_name is None or scope is None:
        return None
    return child_id(scope, field_name)


__all__ = [
    "decapitalize",
    "field_id_for_accessor",
    "field_name_for_accessor",
    "remove_signature",
]
