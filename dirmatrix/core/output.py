import json
import math
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence
import structlog

from dirmatrix.core.metadata import MatrixEntry
from dirmatrix.exceptions import OutputError

log = structlog.get_logger(__name__)

MATRIX_OUTPUT_KEY = "matrix"


def build_matrix(directories: Sequence[str], entries: Optional[List[MatrixEntry]] = None) -> Dict[str, Any]:
    # {"include": [...]} when metadata entries were built, else {"directory": [...]}.
    if entries is not None:
        return {"include": list(entries)}
    return {"directory": list(directories)}


def _replace_non_finite(value: Any) -> Any:
    # nan and infinities have no json literal; they are written as null.
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _replace_non_finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_replace_non_finite(item) for item in value]
    return value


def serialize_matrix(matrix: Dict[str, Any]) -> str:
    # compact json; yaml-only scalar types such as dates are written as strings.
    try:
        return json.dumps(
            _replace_non_finite(matrix), separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=str
        )
    except (TypeError, ValueError) as e:
        raise OutputError(f"failed to serialize matrix: {e}") from e


def write_pipeline_output(key: str, value: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Appends `key=value` to the file named by GITHUB_OUTPUT.
    Returns False (nothing written) when not running under a pipeline that provides one.
    """
    env = os.environ if environ is None else environ
    output_path = env.get("GITHUB_OUTPUT", "").strip()
    if not output_path:
        log.debug("no_pipeline_output_file_configured", key=key)
        return False
    record = f"{key}={value}\n"
    try:
        with open(output_path, "a", encoding="utf-8") as handle:
            handle.write(record)
    except OSError as e:
        raise OutputError(f"failed to write pipeline output '{key}' to '{output_path}': {e}") from e
    log.info("pipeline_output_written", key=key, path=output_path)
    return True


def _escape_workflow_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def signal_failure(message: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    # emits an ::error:: workflow command when running inside github actions.
    env = os.environ if environ is None else environ
    if env.get("GITHUB_ACTIONS", "").lower() != "true":
        return False
    sys.stdout.write(f"::error::{_escape_workflow_data(message)}\n")
    sys.stdout.flush()
    return True


def write_to_stdout(text_content: str):
    # writes text to standard output.
    try:
        sys.stdout.write(text_content)
        sys.stdout.flush()
    except (OSError, UnicodeEncodeError) as e:
        log.warning("stdout_write_failed_trying_binary_fallback", error=str(e))
        sys.stdout.buffer.write(text_content.encode("utf-8", errors="replace"))
        sys.stdout.buffer.flush()


def write_to_file(output_file_path: Path, text_content: str):
    # writes text content to the specified file path.
    log.info("writing_output_to_file", path=str(output_file_path))
    try:
        output_file_path.write_text(text_content, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"failed to write to file '{output_file_path}': {e}") from e
