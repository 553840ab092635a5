"""
Integration tests: build trees, serialize, read them back, and account for
every node's lifetime.
"""

import gc
import json
import re
import weakref

import pytest

from jsonvalue.dom import Array, Boolean, Null, Number, Object, String, from_python
from jsonvalue.formats.json import parse_json


def build_sample():
    """{"x": [true, null]} built through the construction API."""
    return Object([(String("x"), Array([Boolean(True), Null()]))])


class ReleaseCounter:
    """Counts reclaimed nodes via weakref.finalize."""

    def __init__(self):
        self.tracked = 0
        self.released = 0

    def track(self, root):
        for node in root.depth_first():
            weakref.finalize(node, self._on_release)
            self.tracked += 1
        return root

    def _on_release(self):
        self.released += 1


class TestSampleDocument:
    def test_serialized_shape(self):
        assert build_sample().to_string() == '{"x":[true, null]}'

    def test_components_appear_once_in_order(self):
        text = build_sample().to_string()
        assert text.count('"x"') == 1
        assert text.count("true") == 1
        assert text.count("null") == 1
        assert re.fullmatch(r'\{"x":\[true, null\]\}', text)

    def test_standard_json_reader_agrees(self):
        assert json.loads(build_sample().to_string()) == {"x": [True, None]}

    def test_parses_back_to_equal_tree(self):
        tree = build_sample()
        assert parse_json(tree.to_string()) == tree


class TestRoundTrip:
    @pytest.mark.parametrize(
        "data",
        [
            None,
            True,
            0,
            -3.25,
            "plain",
            'quote " slash / back \\ tab \t newline \n',
            "unicode é 😀",
            [],
            {},
            [1, [2, [3, []]], {"k": None}],
            {"z": {"y": {"x": [False, 1.0, "s"]}}, "a": []},
        ],
    )
    def test_parse_of_render_is_identity(self, data):
        tree = from_python(data)
        text = tree.to_string()
        assert parse_json(text) == tree
        assert json.loads(text) == data

    def test_clone_mutation_does_not_leak(self):
        tree = from_python({"list": [1, 2], "obj": {"k": "v"}})
        before = tree.to_string()
        duplicate = tree.clone()
        duplicate["list"].append(Number(3))
        duplicate["obj"]["k"] = String("changed")
        del duplicate["list"][0]
        assert tree.to_string() == before
        assert duplicate.to_string() != before


class TestLifecycle:
    def setup_method(self):
        self.counter = ReleaseCounter()

    def test_destroying_root_releases_every_node(self):
        root = self.counter.track(from_python({"a": [1, [2, {"b": None}]], "c": "s"}))
        del root
        gc.collect()
        assert self.counter.released == self.counter.tracked

    def test_assign_releases_old_tree_once(self):
        target = Array()
        self.counter.track(target.assign(from_python([[1, 2], {"k": [True]}])))
        old_nodes = self.counter.tracked - 1
        target.assign(Array([Null()]))
        gc.collect()
        assert self.counter.released == old_nodes
        del target
        gc.collect()
        assert self.counter.released == self.counter.tracked

    def test_self_assign_releases_only_replaced_nodes(self):
        target = from_python([1, [2]])
        self.counter.track(target)
        target.assign(target)
        gc.collect()
        assert self.counter.released == self.counter.tracked - 1
        assert target.to_string() == "[1, [2]]"

    def test_overwrite_releases_displaced_subtree(self):
        root = from_python({"k": [1, 2, 3]})
        self.counter.track(root["k"])
        root["k"] = Null()
        gc.collect()
        assert self.counter.released == self.counter.tracked
        assert root.to_string() == '{"k":null}'

    def test_clone_shares_nothing(self):
        tree = from_python([[1], {"a": [2]}])
        duplicate = tree.clone()
        self.counter.track(tree)
        del tree
        gc.collect()
        assert self.counter.released == self.counter.tracked
        assert duplicate.to_string() == '[[1], {"a":[2]}]'
