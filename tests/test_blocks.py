"""
Program structure loading tests.
"""

import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from blocks import (
    Block,
    NestingDepthError,
    StructureError,
    load_program,
    load_program_file,
    load_program_json,
)


def _program(*blocks, name="main"):
    return {"functions": {"f1": {"name": name, "parameters": [], "blocks": list(blocks)}}}


class TestLoader(unittest.TestCase):
    """Editor JSON to frozen model."""

    def test_minimal_program(self):
        program = load_program(_program({"type": "display.logOutput", "params": {"message": "1"}}))
        function = program.functions["f1"]
        self.assertTrue(function.is_entry_point)
        self.assertEqual(function.blocks[0].tag, "display.logOutput")
        self.assertEqual(function.blocks[0].params["message"], "1")
        self.assertEqual(program.html_components, ())
        self.assertFalse(program.has_html_components)

    def test_block_fields(self):
        raw = {
            "type": "flow.if",
            "params": {"condition": "ready"},
            "variableName": "unused",
            "sourceRef": "sheet",
            "childBlocks": [{"type": "ui.alert"}],
            "elseBlocks": [{"type": "ui.prompt"}],
            "hasElse": True,
        }
        block = load_program(_program(raw)).functions["f1"].blocks[0]
        self.assertEqual(block.output_name, "unused")
        self.assertEqual(block.source_ref, "sheet")
        self.assertEqual([child.tag for child in block.body], ["ui.alert"])
        self.assertEqual([child.tag for child in block.else_body], ["ui.prompt"])
        self.assertTrue(block.has_else)

    def test_literal_conversion(self):
        raw = {"type": "flow.for", "params": {"start": 0, "end": 2.0, "step": 0.5, "counterName": None}}
        block = load_program(_program(raw)).functions["f1"].blocks[0]
        self.assertEqual(block.params["start"], "0")
        self.assertEqual(block.params["end"], "2")
        self.assertEqual(block.params["step"], "0.5")
        self.assertNotIn("counterName", block.params)

        raw = {"type": "variables.declareVariable", "params": {"name": "flag", "value": True}}
        block = load_program(_program(raw)).functions["f1"].blocks[0]
        self.assertEqual(block.params["value"], "true")

    def test_nested_value_block(self):
        raw = {"type": "flow.while", "params": {"condition": {"type": "logic.not", "params": {"condition": "done"}}}}
        block = load_program(_program(raw)).functions["f1"].blocks[0]
        nested = block.params["condition"]
        self.assertIsInstance(nested, Block)
        self.assertEqual(nested.tag, "logic.not")
        self.assertEqual(block.children(), (nested,))

    def test_null_blocks_skipped(self):
        program = load_program(_program(None, {"type": "ui.alert"}))
        self.assertEqual(len(program.functions["f1"].blocks), 1)

    def test_missing_type_kept_as_empty_tag(self):
        program = load_program(_program({"params": {}}))
        self.assertEqual(program.functions["f1"].blocks[0].tag, "")

    def test_function_name_defaults_to_id(self):
        program = load_program({"functions": {"helper": {"blocks": []}}})
        self.assertEqual(program.functions["helper"].name, "helper")

    def test_components(self):
        data = {
            "functions": {},
            "htmlComponents": [{"type": "button", "properties": {"color": "red"}}, {"id": "lbl", "type": "label"}],
            "hasHtmlComponents": True,
        }
        program = load_program(data)
        first, second = program.html_components
        self.assertEqual(first.identifier, "component1")
        self.assertEqual(dict(first.properties), {"color": "red"})
        self.assertEqual(second.identifier, "lbl")
        self.assertIsNone(second.properties)
        self.assertTrue(program.has_html_components)


class TestLoaderErrors(unittest.TestCase):
    """Malformed payloads are rejected with StructureError."""

    def test_not_an_object(self):
        with self.assertRaises(StructureError):
            load_program([])

    def test_functions_must_be_mapping(self):
        with self.assertRaises(StructureError):
            load_program({"functions": []})

    def test_blocks_must_be_list(self):
        with self.assertRaises(StructureError):
            load_program({"functions": {"f1": {"name": "main", "blocks": {}}}})

    def test_bad_param_value(self):
        with self.assertRaises(StructureError):
            load_program(_program({"type": "ui.alert", "params": {"message": ["a"]}}))

    def test_component_without_type(self):
        with self.assertRaises(StructureError):
            load_program({"htmlComponents": [{"id": "x"}]})

    def test_invalid_json(self):
        with self.assertRaises(StructureError):
            load_program_json("{not json")

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(StructureError):
                load_program_file(Path(tmp) / "missing.json")

    def test_nesting_bound(self):
        innermost = {"type": "ui.alert"}
        middle = {"type": "flow.while", "childBlocks": [innermost]}
        outer = {"type": "flow.while", "childBlocks": [middle]}
        load_program(_program(outer), max_depth=3)
        with self.assertRaises(NestingDepthError):
            load_program(_program(outer), max_depth=2)

    def test_raised_bound_reports_depth_error(self):
        raw = {"type": "ui.alert"}
        for _ in range(1500):
            raw = {"type": "flow.while", "childBlocks": [raw]}
        with self.assertRaises(NestingDepthError):
            load_program(_program(raw), max_depth=5000)

    def test_nesting_error_is_structure_error(self):
        self.assertTrue(issubclass(NestingDepthError, StructureError))


class TestLoadFile(unittest.TestCase):
    def test_round_trip_from_disk(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "program.json"
            path.write_text(json.dumps(_program({"type": "ui.alert"})), encoding="utf-8")
            program = load_program_file(path)
        self.assertEqual(program.functions["f1"].blocks[0].tag, "ui.alert")


if __name__ == "__main__":
    unittest.main()
