# dirmatrix/core/metadata.py
"""
Per-directory metadata enrichment.

Each surviving directory may carry a metadata file (json or yaml) whose
top-level keys are merged onto its matrix entry. Every problem with a single
file (missing, unreadable, unparsable, unsupported extension) is logged as a
warning and the entry is emitted with only its `directory` key.
"""
import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog
import yaml

from dirmatrix.core.outcome import Outcome
from dirmatrix.exceptions import MetadataError
from dirmatrix.util import strip_utf8_bom

log = structlog.get_logger(__name__)

DIRECTORY_KEY = "directory"

MatrixEntry = Dict[str, Any]
MetadataParser = Callable[[str], Any]


def _parse_json(content: str) -> Any:
    return json.loads(content)


def _parse_yaml(content: str) -> Any:
    return yaml.safe_load(content)


FORMAT_PARSERS: Dict[str, MetadataParser] = {
    "json": _parse_json,
    "yaml": _parse_yaml,
}

EXTENSION_FORMATS: Dict[str, str] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def metadata_format_for(file_name: str) -> Optional[str]:
    # "json", "yaml", or None for an unsupported extension.
    return EXTENSION_FORMATS.get(Path(file_name).suffix.lower())


def parse_metadata(content: str, fmt: str) -> Dict[str, Any]:
    """
    Parses `content` in format `fmt` into a mapping.
    An empty document is an empty mapping; any other non-mapping is an error.

    Raises:
        MetadataError: unknown format, syntax error, or non-mapping document.
    """
    parser = FORMAT_PARSERS.get(fmt)
    if parser is None:
        raise MetadataError(f"Unsupported metadata format: {fmt}")
    try:
        data = parser(content)
    except (ValueError, yaml.YAMLError) as e:
        raise MetadataError(str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MetadataError(f"expected a mapping at the top level, got {type(data).__name__}")
    return data


def load_metadata(dir_path: Path, metadata_file: str) -> Outcome[Dict[str, Any]]:
    metadata_path = dir_path / metadata_file
    log.debug("checking_for_metadata_file", path=str(metadata_path))

    if not metadata_path.is_file():
        return Outcome.failure(f"Metadata file not found for directory {dir_path.name}: {metadata_path}")

    fmt = metadata_format_for(metadata_file)
    if fmt is None:
        ext = Path(metadata_file).suffix.lower() or "(none)"
        return Outcome.failure(f"Unsupported metadata file format: {ext}. Skipping metadata for {dir_path.name}.")

    try:
        content = strip_utf8_bom(metadata_path.read_bytes()).decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Outcome.failure(f"Failed to read metadata file for directory {dir_path.name}: {e}")

    try:
        metadata = parse_metadata(content, fmt)
    except MetadataError as e:
        return Outcome.failure(f"Failed to parse metadata file for directory {dir_path.name}: {e}")

    log.debug("parsed_metadata", directory=dir_path.name, format=fmt, keys=len(metadata))
    return Outcome.success(metadata)


def build_entry(dir_name: str, metadata: Dict[str, Any]) -> MatrixEntry:
    # the entry's own name always wins over a `directory` key in the metadata.
    entry: MatrixEntry = {DIRECTORY_KEY: dir_name}
    for key, value in metadata.items():
        if key == DIRECTORY_KEY:
            log.warning("directory_key_in_metadata_ignored", directory=dir_name, ignored_value=value)
            continue
        entry[str(key)] = value
    return entry


def enrich_directories(root_path: Path, dir_names: Iterable[str], metadata_file: str) -> List[MatrixEntry]:
    log.debug("reading_metadata_for_directories", metadata_file=metadata_file)
    entries: List[MatrixEntry] = []
    for dir_name in dir_names:
        outcome = load_metadata(root_path / dir_name, metadata_file)
        metadata = outcome.unwrap_or({}, log, "metadata_unavailable", directory=dir_name)
        entries.append(build_entry(dir_name, metadata))
    return entries
