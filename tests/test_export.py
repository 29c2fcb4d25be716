"""
Export packaging tests.
"""

import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from export import (
    DEFAULT_PROJECT_NAME,
    SUCCESS_MESSAGE,
    ExportError,
    ExportResult,
    package,
    write_export,
)


class TestPackage(unittest.TestCase):
    """Wrapping generated code in a downloadable page."""

    def test_success(self):
        source = "if (a < b && c > d) {}\n"
        result = package(source, "Budget")
        self.assertTrue(result.success)
        self.assertEqual(result.message, SUCCESS_MESSAGE)
        self.assertEqual(result.source_text, source)
        self.assertIn("if (a &lt; b &amp;&amp; c &gt; d) {}", result.wrapper_document)
        self.assertIn("<title>Budget</title>", result.wrapper_document)
        self.assertIn("Download Code.gs", result.wrapper_document)

    def test_title_escaped(self):
        result = package("", "My <App>")
        self.assertIn("<title>My &lt;App&gt;</title>", result.wrapper_document)

    def test_default_project_name(self):
        result = package("x")
        self.assertIn(f"<h1>{DEFAULT_PROJECT_NAME}</h1>", result.wrapper_document)

    def test_artifact_literal_cannot_close_script(self):
        result = package("x", artifact_name="</script>.gs")
        self.assertIn('a.download = "<\\/script>.gs";', result.wrapper_document)

    def test_failure_is_reported_not_raised(self):
        with self.assertLogs("export", level="ERROR"):
            result = package(12345)
        self.assertFalse(result.success)
        self.assertTrue(result.message.startswith("Error creating project:"))
        self.assertIsNone(result.wrapper_document)


class TestWriteExport(unittest.TestCase):
    def test_writes_document(self):
        result = package("console.log(1);\n", "Demo")
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out" / "export.html"
            write_export(result, path)
            self.assertEqual(path.read_text(encoding="utf-8"), result.wrapper_document)

    def test_refuses_failed_result(self):
        failed = ExportResult(success=False, message="Error creating project: boom", source_text="")
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ExportError):
                write_export(failed, Path(tmp) / "export.html")


if __name__ == "__main__":
    unittest.main()
