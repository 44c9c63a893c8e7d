"""Helpers for multilingual fields."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from inedit_cms.config.content import FALLBACK_LOCALE

LocalizedText = Dict[str, str]
LocalizedField = Union[Mapping[str, Any], str, None]


def resolve(field: LocalizedField, locale: str) -> str:
    """Return the display string of ``field`` for ``locale``.

    Plain strings pass through unchanged. Maps fall back to English, then to
    an empty string. Never raises.
    """

    if isinstance(field, str):
        return field
    if not isinstance(field, Mapping):
        return ""
    return field.get(locale) or field.get(FALLBACK_LOCALE) or ""


def display_text(field: LocalizedField, locale: str) -> str:
    """Resolve ``field`` and, when nothing matched, use any populated locale."""

    value = resolve(field, locale)
    if value or not isinstance(field, Mapping):
        return value
    return _first_value(field)


def representative_value(field: LocalizedField) -> str:
    """Return the English value if present, else the first populated one."""

    if isinstance(field, str):
        return field
    if not isinstance(field, Mapping):
        return ""
    return field.get(FALLBACK_LOCALE) or _first_value(field)


def merge_localized(current: Optional[Mapping[str, Any]], patch: Optional[Mapping[str, Any]]) -> LocalizedText:
    """Lay the locales of ``patch`` over ``current`` without dropping others."""

    merged: LocalizedText = dict(current) if isinstance(current, Mapping) else {}
    if patch:
        merged.update(patch)
    return merged


def build_category_tree(categories: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Nest categories under their parents.

    Categories whose ``parent_id`` matches no category are returned as roots,
    and so are categories caught in a parent cycle.
    """

    nodes: Dict[str, Dict[str, Any]] = {}
    ordered: List[Dict[str, Any]] = []
    for category in categories:
        node = {**category, "children": []}
        nodes[str(category.get("id"))] = node
        ordered.append(node)

    parents: Dict[str, Optional[str]] = {}
    for node_id, node in nodes.items():
        parent_id = node.get("parent_id")
        parents[node_id] = str(parent_id) if parent_id and str(parent_id) in nodes else None

    roots: List[Dict[str, Any]] = []
    for node in ordered:
        node_id = str(node.get("id"))
        parent_id = parents.get(node_id)
        if parent_id is None or _in_cycle(node_id, parents):
            roots.append(node)
        else:
            nodes[parent_id]["children"].append(node)
    return roots


def _in_cycle(node_id: str, parents: Mapping[str, Optional[str]]) -> bool:
    seen = set()
    current = parents.get(node_id)
    while current is not None and current not in seen:
        if current == node_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def _first_value(field: Mapping[str, Any]) -> str:
    for value in field.values():
        if isinstance(value, str) and value:
            return value
    return ""


__all__ = [
    "LocalizedText",
    "build_category_tree",
    "display_text",
    "merge_localized",
    "representative_value",
    "resolve",
]
