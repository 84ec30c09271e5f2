"""
UAT: Tree Invariants Under Editing

Validates that arbitrary editing sessions never corrupt the document and
that the history can always walk back to where it started.

Acceptance criteria:
- after every operation the tree is acyclic, each node has one parent,
  parent/child links agree, ids are unique and tags hold no duplicates
- moving a node under itself or a descendant is refused and changes nothing
- undoing every command restores the initial snapshot exactly
"""

import random

from mindcanvas.commands.node import (
    AddNodeCommand,
    MoveNodeCommand,
    RemoveNodeCommand,
    SetTextCommand,
    TagCommand,
    UpdateStyleCommand,
)
from mindcanvas.dom import MindNode, check_invariants
from mindcanvas.history import CommandHistory


def random_command(rng, root):
    nodes = list(root.walk())
    node = rng.choice(nodes)
    op = rng.choice(["add", "add", "remove", "move", "text", "tag", "style"])

    if op == "add":
        return AddNodeCommand(node, {"text": f"n{rng.randrange(1000)}"}, rng.randrange(-1, 5))
    if op == "remove" and node is not root:
        return RemoveNodeCommand(node)
    if op == "move" and node is not root:
        return MoveNodeCommand(node, rng.choice(nodes), rng.randrange(0, 4))
    if op == "tag":
        return TagCommand(node, rng.choice(["a", "b", "c"]), add=rng.random() < 0.7)
    if op == "style":
        return UpdateStyleCommand(node, {"shape": rng.choice(["circle", "diamond", "rounded"])})
    return SetTextCommand(node, f"t{rng.randrange(1000)}", merge_window=0)


def test_random_sessions_keep_invariants():
    """Random edits, then full undo, across several seeds."""
    for seed in range(20):
        rng = random.Random(seed)
        root = MindNode({"id": "root", "text": "Root", "children": [{"text": "first"}]})
        snapshot = root.to_json()
        history = CommandHistory(max_stack_size=1000)

        for step in range(150):
            history.execute(random_command(rng, root))
            problems = check_invariants(root)
            assert problems == [], f"seed {seed} step {step}: {problems}"

        while history.undo():
            assert check_invariants(root) == []
        assert root.to_json() == snapshot, f"seed {seed}: undo did not restore the tree"

        while history.redo():
            assert check_invariants(root) == []


def test_moves_into_own_subtree_are_refused():
    """Every self/descendant target is rejected and leaves the tree untouched."""
    rng = random.Random(42)
    root = MindNode({"id": "root"})
    for _ in range(60):
        parent = rng.choice(list(root.walk()))
        parent.add_child({"text": "x"})

    for node in list(root.walk()):
        for target in list(node.walk()):
            before = root.to_json()
            assert node.move_to(target) is False
            assert root.to_json() == before
    assert check_invariants(root) == []
