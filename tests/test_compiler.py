"""
Command-line and file compilation tests.
"""

import contextlib
import io
import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from compiler import compile_file, compile_source, editor_palette, main

PROGRAM = {
    "functions": {
        "f1": {
            "name": "main",
            "parameters": [],
            "blocks": [
                {"type": "spreadsheet.getActiveSheet"},
                {"type": "display.logOutput", "params": {"message": '"done"'}},
            ],
        }
    }
}


class TestCompile(unittest.TestCase):
    """Library entry points."""

    def test_compile_source(self):
        code = compile_source(json.dumps(PROGRAM))
        self.assertIn("  let sheet = SpreadsheetApp.getActiveSheet();\n", code)
        self.assertIn('  console.log("done");\n', code)

    def test_compile_file_with_export(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            source = root / "budget.json"
            source.write_text(json.dumps(PROGRAM), encoding="utf-8")
            output = root / "build" / "Code.gs"
            html_path = root / "export.html"

            result = compile_file(source, output, html_path=html_path)

            self.assertTrue(result.success)
            self.assertEqual(output.read_text(encoding="utf-8"), result.source_text)
            document = html_path.read_text(encoding="utf-8")
            self.assertIn("<title>budget</title>", document)
            self.assertIn("Download Code.gs", document)

    def test_compile_file_without_export(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            source = root / "program.json"
            source.write_text(json.dumps(PROGRAM), encoding="utf-8")
            self.assertIsNone(compile_file(source, root / "Code.gs"))
            self.assertTrue((root / "Code.gs").exists())

    def test_editor_palette(self):
        palette = editor_palette()
        self.assertEqual(palette["functions"]["math"]["category"], "Math")
        self.assertEqual(len(palette["htmlComponents"]), 6)


class TestMain(unittest.TestCase):
    """argparse front end."""

    def test_catalog_flag(self):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            self.assertEqual(main(["--catalog"]), 0)
        palette = json.loads(stdout.getvalue())
        self.assertIn("functions", palette)
        self.assertIn("htmlComponents", palette)

    def test_compiles_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            source = root / "program.json"
            source.write_text(json.dumps(PROGRAM), encoding="utf-8")
            output = root / "Code.gs"
            self.assertEqual(main([str(source), str(output), "--indent", "4"]), 0)
            self.assertIn("    console.log", output.read_text(encoding="utf-8"))

    def test_missing_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                main([str(Path(tmp) / "missing.json"), str(Path(tmp) / "Code.gs")])

    def test_missing_arguments(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                main([])


if __name__ == "__main__":
    unittest.main()
