"""
Scope tracking tests.
"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from scope import Scope, fork, resolve


class TestScope(unittest.TestCase):
    """Declaration versus reassignment."""

    def test_first_binding_declares(self):
        line, scope = resolve(Scope(), "total", "0")
        self.assertEqual(line.text, "let total = 0;")
        self.assertIn("total", scope)

    def test_second_binding_reassigns(self):
        _, scope = resolve(Scope(), "total", "0")
        line, again = resolve(scope, "total", "1")
        self.assertEqual(line.text, "total = 1;")
        self.assertEqual(again, scope)

    def test_scope_is_immutable(self):
        empty = Scope()
        _, declared = resolve(empty, "x", "1")
        self.assertNotIn("x", empty)
        self.assertIn("x", declared)

    def test_seeded_parameters(self):
        scope = Scope.seeded(["sheet", "row"])
        line, _ = resolve(scope, "sheet", "other")
        self.assertEqual(line.text, "sheet = other;")

    def test_fork_adds_bindings_without_touching_parent(self):
        parent = Scope.seeded(["a"])
        child = fork(parent, "item")
        self.assertIn("a", child)
        self.assertIn("item", child)
        self.assertNotIn("item", parent)


if __name__ == "__main__":
    unittest.main()
