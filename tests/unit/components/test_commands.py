"""Unit tests for node tree commands, driven through CommandHistory."""

import pytest

from mindcanvas.commands.node import (
    AddNodeCommand,
    MacroCommand,
    MoveNodeCommand,
    RemoveNodeCommand,
    SetExpandedCommand,
    SetTextCommand,
    TagCommand,
    UpdateStyleCommand,
)
from mindcanvas.dom import MindNode, check_invariants
from mindcanvas.history import CommandHistory


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def root():
    return MindNode({
        "id": "root",
        "children": [
            {"id": "a", "text": "A", "children": [{"id": "a1"}, {"id": "a2"}]},
            {"id": "b", "text": "B"},
        ],
    })


@pytest.fixture
def history():
    return CommandHistory(max_stack_size=50)


def ids(nodes):
    return [n.id for n in nodes]


class TestAddRemove:
    def test_add_undo_redo(self, root, history):
        cmd = AddNodeCommand(root, {"id": "c", "text": "C"}, 1)
        history.execute(cmd)
        assert ids(root.children) == ["a", "c", "b"]
        history.undo()
        assert ids(root.children) == ["a", "b"]
        assert cmd.node.parent is None
        history.redo()
        assert ids(root.children) == ["a", "c", "b"]
        assert root.children[1] is cmd.node

    def test_add_appends_by_default(self, root, history):
        history.execute(AddNodeCommand(root, {"id": "c"}))
        assert root.children[-1].id == "c"

    def test_remove_restores_position(self, root, history):
        a = root.find_by_id("a")
        history.execute(RemoveNodeCommand(a))
        assert ids(root.children) == ["b"]
        history.undo()
        assert ids(root.children) == ["a", "b"]
        assert a.parent is root
        assert ids(a.children) == ["a1", "a2"]
        history.redo()
        assert ids(root.children) == ["b"]

    def test_remove_root_is_harmless(self, root, history):
        history.execute(RemoveNodeCommand(root))
        history.undo()
        assert root.parent is None
        assert root.count() == 5


class TestMove:
    def test_move_undo_restores_old_slot(self, root, history):
        a1 = root.find_by_id("a1")
        b = root.find_by_id("b")
        history.execute(MoveNodeCommand(a1, b))
        assert a1.parent is b
        history.undo()
        assert a1.parent is root.find_by_id("a")
        assert ids(a1.parent.children) == ["a1", "a2"]
        assert check_invariants(root) == []
        history.redo()
        assert a1.parent is b

    def test_rejected_move_is_noop(self, root, history):
        a = root.find_by_id("a")
        before = root.to_json()
        cmd = MoveNodeCommand(a, root.find_by_id("a2"))
        history.execute(cmd)
        assert cmd.moved is False
        assert root.to_json() == before
        history.undo()
        assert root.to_json() == before


class TestSetText:
    def test_undo_redo(self, root, history):
        b = root.find_by_id("b")
        history.execute(SetTextCommand(b, "Bee"))
        assert b.text == "Bee"
        history.undo()
        assert b.text == "B"
        history.redo()
        assert b.text == "Bee"

    def test_keystrokes_coalesce(self, root, history):
        clock = FakeClock()
        b = root.find_by_id("b")
        for i, text in enumerate(["B1", "B12", "B123"]):
            clock.now = i * 0.3
            history.execute(SetTextCommand(b, text, merge_window=1.0, clock=clock))
        assert history.undo_stack_size == 1
        assert b.text == "B123"
        history.undo()
        assert b.text == "B"
        history.redo()
        assert b.text == "B123"

    def test_pause_breaks_merge(self, root, history):
        clock = FakeClock()
        b = root.find_by_id("b")
        history.execute(SetTextCommand(b, "B1", merge_window=1.0, clock=clock))
        clock.now = 5.0
        history.execute(SetTextCommand(b, "B12", merge_window=1.0, clock=clock))
        assert history.undo_stack_size == 2

    def test_different_nodes_do_not_merge(self, root, history):
        clock = FakeClock()
        history.execute(SetTextCommand(root.find_by_id("a"), "x", clock=clock))
        history.execute(SetTextCommand(root.find_by_id("b"), "y", clock=clock))
        assert history.undo_stack_size == 2

    def test_rich_text(self, root, history):
        b = root.find_by_id("b")
        runs = [{"text": "bold", "bold": True}]
        history.execute(SetTextCommand(b, runs))
        runs[0]["text"] = "mutated"
        assert b.plain_text() == "bold"


class TestStyleAndState:
    def test_update_style(self, root, history):
        b = root.find_by_id("b")
        original = dict(b.style)
        history.execute(UpdateStyleCommand(b, {"backgroundColor": "#ff0000", "fontSize": 22}))
        assert b.style["backgroundColor"] == "#ff0000"
        history.undo()
        assert b.style == original

    def test_set_expanded(self, root, history):
        a = root.find_by_id("a")
        cmd = SetExpandedCommand(a, False)
        assert cmd.name == "Collapse node"
        history.execute(cmd)
        assert not a.expanded
        history.undo()
        assert a.expanded

    def test_tag_add_and_remove(self, root, history):
        b = root.find_by_id("b")
        history.execute(TagCommand(b, "urgent"))
        assert b.tags == ["urgent"]
        history.execute(TagCommand(b, "urgent", add=False))
        assert b.tags == []
        history.undo()
        history.undo()
        assert b.tags == []

    def test_tag_undo_only_reverts_real_change(self, root, history):
        b = root.find_by_id("b")
        b.add_tag("keep")
        history.execute(TagCommand(b, "keep"))
        history.undo()
        assert b.tags == ["keep"]


class TestMacro:
    def test_batch_is_one_step(self, root, history):
        b = root.find_by_id("b")
        macro = MacroCommand("Restyle and rename", [
            SetTextCommand(b, "Renamed"),
            UpdateStyleCommand(b, {"shape": "circle"}),
            AddNodeCommand(b, {"id": "b1"}),
        ])
        history.execute(macro)
        assert history.undo_stack_size == 1
        assert b.text == "Renamed" and b.style["shape"] == "circle" and ids(b.children) == ["b1"]
        history.undo()
        assert b.text == "B" and b.style["shape"] == "rounded" and b.children == []
        history.redo()
        assert b.text == "Renamed" and ids(b.children) == ["b1"]
        assert history.get_history() == [{"name": "Restyle and rename", "type": "undo"}]
