"""
Ordering resolver for PromptBook navigation.

Each directory may contain a _meta.json declaring the order and display
titles of its children:

    {
        "index": "Home",
        "---general": {"type": "separator", "title": "General Purpose"},
        "review": "Review",
        "debug": {"title": "Debugging"}
    }

A list form is also accepted:

    ["review", {"name": "debug", "title": "Debugging"}]

Declared entries come first, in declared order. Children found on disk but
not declared are appended in scan order. A declared entry with no matching
child is an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from .errors import ValidationError

SEPARATOR_PREFIX = "---"
SEPARATOR_TYPE = "separator"


@dataclass(frozen=True)
class OrderingEntry:
    """One declared entry of an ordering config."""
    identifier: str
    title: Optional[str] = None
    separator: bool = False


@dataclass(frozen=True)
class OrderingConfig:
    """Declared order of a directory's children."""
    entries: Tuple[OrderingEntry, ...] = ()
    source: Optional[Path] = None

    def title_for(self, identifier: str) -> Optional[str]:
        for entry in self.entries:
            if entry.identifier == identifier and not entry.separator:
                return entry.title
        return None


@dataclass(frozen=True)
class ResolvedChild:
    """A child in final order. Separators carry no item."""
    identifier: str
    item: Any = None
    title: Optional[str] = None
    separator: bool = False


def resolve_order(
    children: Sequence[Any],
    config: Optional[OrderingConfig] = None,
    key: Optional[Callable[[Any], str]] = None,
) -> List[ResolvedChild]:
    """Reconcile declared ordering with the children actually present.

    Args:
        children: Children in scan order (identifiers, or any objects with key)
        config: Ordering config for the directory, or None
        key: Maps a child to its identifier (default: the child itself)

    Returns:
        Children in final order, with title overrides and separators

    Raises:
        ValidationError: If a declared entry matches no child, or an
            identifier is declared twice

    Example:
        >>> config = OrderingConfig((OrderingEntry("c"), OrderingEntry("a")))
        >>> [r.identifier for r in resolve_order(["a", "b", "c"], config)]
        ['c', 'a', 'b']
    """
    key = key or (lambda child: child)

    if config is None:
        return [ResolvedChild(identifier=key(child), item=child) for child in children]

    resolved = []
    declared = set()

    for entry in config.entries:
        if entry.separator:
            resolved.append(ResolvedChild(
                identifier=entry.identifier, title=entry.title, separator=True
            ))
            continue

        if entry.identifier in declared:
            raise ValidationError(
                f"ordering entry '{entry.identifier}' is declared more than once",
                config.source,
            )
        declared.add(entry.identifier)

        matches = [child for child in children if key(child) == entry.identifier]
        if not matches:
            raise ValidationError(
                f"ordering entry '{entry.identifier}' does not match any file or directory",
                config.source,
            )
        for child in matches:
            resolved.append(ResolvedChild(
                identifier=entry.identifier, item=child, title=entry.title
            ))

    for child in children:
        if key(child) not in declared:
            resolved.append(ResolvedChild(identifier=key(child), item=child))

    return resolved


def load_ordering_config(path: Optional[Union[str, Path]]) -> Optional[OrderingConfig]:
    """Load a _meta.json file.

    Args:
        path: Path to the config file, or None when the directory has none

    Returns:
        OrderingConfig, or None if path is None

    Raises:
        ValidationError: If the file is unreadable, not JSON, or has the wrong shape
    """
    if path is None:
        return None

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ValidationError(f"cannot read ordering config: {exc}", path) from exc

    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except ValueError as exc:
        raise ValidationError(f"malformed ordering config: {exc}", path) from exc

    return parse_ordering_config(data, source=path)


def parse_ordering_config(data: Any, source: Optional[Path] = None) -> OrderingConfig:
    """Build an OrderingConfig from decoded JSON (object or list form)."""
    if isinstance(data, dict):
        entries = [_entry_from_pair(k, v, source) for k, v in data.items()]
    elif isinstance(data, list):
        entries = [_entry_from_item(item, source) for item in data]
    else:
        raise ValidationError(
            f"ordering config must be an object or a list, got {type(data).__name__}",
            source,
        )
    return OrderingConfig(entries=tuple(entries), source=source)


def _entry_from_pair(identifier: str, value: Any, source: Optional[Path]) -> OrderingEntry:
    separator = identifier.startswith(SEPARATOR_PREFIX)

    if value is None:
        return OrderingEntry(identifier, separator=separator)
    if isinstance(value, str):
        return OrderingEntry(identifier, title=value, separator=separator)
    if isinstance(value, dict):
        title = value.get("title")
        if title is not None and not isinstance(title, str):
            raise ValidationError(f"title of '{identifier}' must be a string", source)
        separator = separator or value.get("type") == SEPARATOR_TYPE
        return OrderingEntry(identifier, title=title, separator=separator)

    raise ValidationError(
        f"entry '{identifier}' must be a title string, null or an object", source
    )


def _entry_from_item(item: Any, source: Optional[Path]) -> OrderingEntry:
    if isinstance(item, str):
        return OrderingEntry(item, separator=item.startswith(SEPARATOR_PREFIX))
    if isinstance(item, dict):
        identifier = item.get("name")
        if not isinstance(identifier, str) or not identifier:
            raise ValidationError("list entries must have a string 'name'", source)
        return _entry_from_pair(
            identifier, {k: v for k, v in item.items() if k != "name"}, source
        )

    raise ValidationError(f"invalid ordering entry: {item!r}", source)


def _reject_duplicate_keys(pairs):
    seen = {}
    for key, value in pairs:
        if key in seen:
            raise ValueError(f"duplicate key '{key}'")
        seen[key] = value
    return seen
