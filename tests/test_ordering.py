"""Tests for the ordering resolver and _meta.json loading.

The resolver is pure, so most tests use plain identifier lists.
"""

import json

import pytest

from promptbook.errors import ValidationError
from promptbook.ordering import (
    OrderingConfig,
    OrderingEntry,
    load_ordering_config,
    parse_ordering_config,
    resolve_order,
)


def config(*identifiers, **titles):
    return OrderingConfig(tuple(OrderingEntry(i, title=titles.get(i)) for i in identifiers))


class TestResolveOrder:
    def test_declared_first_then_disk_order(self):
        resolved = resolve_order(["a", "b", "c"], config("c", "a"))
        assert [r.identifier for r in resolved] == ["c", "a", "b"]

    def test_no_config_keeps_disk_order(self):
        resolved = resolve_order(["b", "a", "c"])
        assert [r.identifier for r in resolved] == ["b", "a", "c"]
        assert all(r.title is None for r in resolved)

    def test_empty_config_keeps_disk_order(self):
        resolved = resolve_order(["b", "a"], OrderingConfig())
        assert [r.identifier for r in resolved] == ["b", "a"]

    def test_undeclared_children_never_dropped(self):
        resolved = resolve_order(["a", "b", "c", "d"], config("d"))
        assert sorted(r.identifier for r in resolved) == ["a", "b", "c", "d"]

    def test_title_overrides(self):
        resolved = resolve_order(["a", "b"], config("b", "a", b="Bee"))
        assert [(r.identifier, r.title) for r in resolved] == [("b", "Bee"), ("a", None)]

    def test_missing_child_is_error(self):
        with pytest.raises(ValidationError) as info:
            resolve_order(["a", "b"], config("a", "ghost"))
        assert "ghost" in str(info.value)

    def test_duplicate_declaration_is_error(self):
        with pytest.raises(ValidationError):
            resolve_order(["a"], config("a", "a"))

    def test_separators_need_no_child(self):
        cfg = OrderingConfig((
            OrderingEntry("---top", title="Top", separator=True),
            OrderingEntry("b"),
        ))
        resolved = resolve_order(["a", "b"], cfg)
        assert [(r.identifier, r.separator) for r in resolved] == [
            ("---top", True), ("b", False), ("a", False),
        ]
        assert resolved[0].item is None

    def test_key_function_and_shared_identifiers(self):
        children = [("a", 1), ("b", 2), ("a", 3)]
        resolved = resolve_order(children, config("a"), key=lambda c: c[0])
        assert [r.item for r in resolved] == [("a", 1), ("a", 3), ("b", 2)]


class TestParseOrderingConfig:
    def test_object_form(self):
        cfg = parse_ordering_config({
            "index": "Home",
            "---general": {"type": "separator", "title": "General"},
            "review": None,
            "debug": {"title": "Debugging"},
        })
        assert [(e.identifier, e.title, e.separator) for e in cfg.entries] == [
            ("index", "Home", False),
            ("---general", "General", True),
            ("review", None, False),
            ("debug", "Debugging", False),
        ]
        assert cfg.title_for("debug") == "Debugging"
        assert cfg.title_for("---general") is None

    def test_list_form(self):
        cfg = parse_ordering_config(["b", {"name": "a", "title": "A"}, {"name": "sep", "type": "separator"}])
        assert [(e.identifier, e.title, e.separator) for e in cfg.entries] == [
            ("b", None, False),
            ("a", "A", False),
            ("sep", None, True),
        ]

    @pytest.mark.parametrize("data", ["text", 3, [1], [{"title": "no name"}], {"a": 5}, {"a": {"title": 1}}])
    def test_invalid_shapes(self, data):
        with pytest.raises(ValidationError):
            parse_ordering_config(data)


class TestLoadOrderingConfig:
    def test_none_path(self):
        assert load_ordering_config(None) is None

    def test_reads_file(self, tmp_path):
        path = tmp_path / "_meta.json"
        path.write_text(json.dumps({"b": "Bee", "a": "Ay"}))
        cfg = load_ordering_config(path)
        assert [e.identifier for e in cfg.entries] == ["b", "a"]
        assert cfg.source == path

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "_meta.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError) as info:
            load_ordering_config(path)
        assert info.value.path == path

    def test_duplicate_keys(self, tmp_path):
        path = tmp_path / "_meta.json"
        path.write_text('{"a": "One", "a": "Two"}')
        with pytest.raises(ValidationError):
            load_ordering_config(path)
