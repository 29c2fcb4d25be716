from __future__ import annotations

"""
Minimal valid program structure, as saved by the block editor:

{
  "functions": {
    "f1": {"name": "helper", "parameters": ["sheet"], "blocks": [
      {"type": "spreadsheet.getRange", "sourceRef": "sheet", "params": {"row": "2"}}
    ]},
    "f2": {"name": "main", "parameters": [], "blocks": [
      {"type": "spreadsheet.getActiveSheet", "sourceRef": "SpreadsheetApp"},
      {"type": "display.logOutput", "params": {"message": "\\"done\\""}}
    ]}
  }
}

Usage:
python compiler.py program.json Code.gs
python compiler.py program.json Code.gs --html export.html --project-name "Budget"
python compiler.py --catalog
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from blocks import MAX_NESTING_DEPTH, ProgramStructure, load_program_file, load_program_json
from catalog import catalog_to_editor_dict, get_html_components
from codegen import CodegenOptions, generate_code
from export import ExportResult, package, write_export

logger = logging.getLogger(__name__)


def compile_program(program: ProgramStructure, options: CodegenOptions | None = None) -> str:
    return generate_code(program, options=options)


def compile_source(source_text: str, options: CodegenOptions | None = None) -> str:
    options = options or CodegenOptions()
    program = load_program_json(source_text, max_depth=options.max_depth)
    return generate_code(program, options=options)


def compile_file(
    input_path: Path,
    output_path: Path,
    options: CodegenOptions | None = None,
    html_path: Path | None = None,
    project_name: str | None = None,
) -> ExportResult | None:
    options = options or CodegenOptions()
    program = load_program_file(input_path, max_depth=options.max_depth)
    code = generate_code(program, options=options)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(code, encoding="utf-8")
    logger.info("Wrote %s", output_path)
    if html_path is None:
        return None
    result = package(code, project_name or input_path.stem, artifact_name=output_path.name)
    write_export(result, html_path)
    logger.info("Wrote %s", html_path)
    return result


def editor_palette() -> dict:
    return {
        "functions": catalog_to_editor_dict(),
        "htmlComponents": [template.to_editor_dict() for template in get_html_components()],
    }


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile a visual block program into Google Apps Script")
    parser.add_argument("input", type=Path, nargs="?", help="Path to the program structure JSON")
    parser.add_argument("output", type=Path, nargs="?", help="Path to the generated .gs file")
    parser.add_argument("--html", type=Path, default=None, help="Also write a downloadable HTML wrapper here.")
    parser.add_argument("--project-name", default=None, help="Title used in the HTML wrapper.")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_NESTING_DEPTH,
        help="Maximum block nesting depth before generation is refused.",
    )
    parser.add_argument("--indent", type=int, default=2, help="Spaces per indentation level.")
    parser.add_argument(
        "--catalog",
        action="store_true",
        help="Print the operation catalog and component templates as JSON and exit.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.catalog:
        json.dump(editor_palette(), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0
    if args.input is None or args.output is None:
        parser.error("the following arguments are required: input, output")

    input_path: Path = args.input
    output_path: Path = args.output
    if not input_path.exists() or not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: '{input_path}'")

    options = CodegenOptions(indent_width=args.indent, max_depth=args.max_depth)
    compile_file(
        input_path=input_path,
        output_path=output_path,
        options=options,
        html_path=args.html,
        project_name=args.project_name,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
