from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_NAME = "Code.gs"
DEFAULT_PROJECT_NAME = "Generated Apps Script"
SUCCESS_MESSAGE = "Code generated successfully. Click the links to download the file."


class ExportError(ValueError):
    """Raised when writing an export that failed to package."""


@dataclass(frozen=True)
class ExportResult:
    success: bool
    message: str
    source_text: str
    wrapper_document: str | None = None


_WRAPPER = Template(
    """<!DOCTYPE html>
<html>
<head>
  <title>$title</title>
  <script>
    function downloadCode() {
      const blob = new Blob([document.getElementById('codeContent').textContent], {type: 'text/javascript'});
      const url = URL.createObjectURL(blob);
      const a = document.createElement('a');
      a.href = url;
      a.download = $artifact_literal;
      document.body.appendChild(a);
      a.click();
      document.body.removeChild(a);
      URL.revokeObjectURL(url);
    }
  </script>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; }
    pre { background-color: #f5f5f5; padding: 15px; border-radius: 5px; overflow: auto; }
    .button { background-color: #4CAF50; color: white; padding: 10px 20px; border: none;
             border-radius: 4px; cursor: pointer; margin: 10px 0; }
    .instructions { background-color: #e9f7ef; padding: 15px; border-radius: 5px; margin-bottom: 20px; }
  </style>
</head>
<body>
  <h1>$title</h1>

  <div class="instructions">
    <h2>How to use this code:</h2>
    <ol>
      <li>Click the "Download $artifact" button below</li>
      <li>In Google Sheets, go to Extensions &gt; Apps Script</li>
      <li>Replace the content in the $artifact file with this code</li>
      <li>Save the project</li>
      <li>Run the function you want to execute</li>
    </ol>
  </div>

  <button class="button" onclick="downloadCode()">Download $artifact</button>

  <h2>Code Preview:</h2>
  <pre id="codeContent">$code</pre>

  <button class="button" onclick="downloadCode()">Download $artifact</button>
</body>
</html>
"""
)


def package(
    source_text: str,
    project_name: str | None = None,
    artifact_name: str = DEFAULT_ARTIFACT_NAME,
) -> ExportResult:
    try:
        document = _build_wrapper(source_text, project_name or DEFAULT_PROJECT_NAME, artifact_name)
    except Exception as exc:
        logger.exception("Failed to build the download wrapper for '%s'.", project_name)
        return ExportResult(success=False, message=f"Error creating project: {exc}", source_text=source_text)
    logger.info("Packaged %d character(s) of generated code as '%s'.", len(source_text), artifact_name)
    return ExportResult(success=True, message=SUCCESS_MESSAGE, source_text=source_text, wrapper_document=document)


def write_export(result: ExportResult, output_path: Path) -> None:
    if not result.success or result.wrapper_document is None:
        raise ExportError(result.message)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.wrapper_document, encoding="utf-8")


def _build_wrapper(source_text: str, project_name: str, artifact_name: str) -> str:
    artifact = html.escape(artifact_name)
    return _WRAPPER.substitute(
        title=html.escape(project_name),
        artifact=artifact,
        artifact_literal=json.dumps(artifact_name).replace("</", "<\\/"),
        code=html.escape(source_text, quote=False),
    )
