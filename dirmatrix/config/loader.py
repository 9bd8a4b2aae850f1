# dirmatrix/config/loader.py
"""
Handles loading and merging of default configurations from TOML files.
"""
import toml
from pathlib import Path
from typing import Dict, Any, Optional
import structlog

from dirmatrix.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".dirmatrix.toml", "dirmatrix.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "dirmatrix"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

# maps keys in the toml file to MatrixConfig attribute names.
CONFIG_KEY_TO_MATRIXCONFIG_ATTR_MAP: Dict[str, str] = {
    "path": "root_path",
    "include_hidden": "include_hidden",
    "exclude": "exclude",
    "filter": "filter_pattern",
    "metadata_file": "metadata_file",
    "changed_only": "changed_only",
    "change_backend": "change_backend",
    "api_url": "api_url",
    "request_timeout": "request_timeout",
    "base_ref": "base_ref",
    "output_file": "output_file",
}


def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Could not read config file {file_path}: {e}") from e
    if file_path.name == "pyproject.toml":
        return data.get("tool", {}).get("dirmatrix", {})
    return data


def load_and_merge_configs(project_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Reads the user-level config and the first project config found in
    `project_dir` (default: cwd). Project values override user values;
    profile tables from both are merged by name.
    """
    project_dir = project_dir or Path.cwd()
    merged_toml_data: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        merged_toml_data.update(_load_toml_file_data(USER_CONFIG_FILE))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if not candidate.is_file():
            continue
        project_settings = _load_toml_file_data(candidate)
        if not project_settings:
            continue
        log.info("loading_project_local_config", path=str(candidate))
        user_profiles = merged_toml_data.get("profiles", {})
        project_profiles = project_settings.pop("profiles", {})
        if isinstance(user_profiles, dict) and isinstance(project_profiles, dict):
            user_profiles.update(project_profiles)
            merged_toml_data["profiles"] = user_profiles
        elif isinstance(project_profiles, dict):
            merged_toml_data["profiles"] = project_profiles
        merged_toml_data.update(project_settings)
        break

    if not merged_toml_data:
        log.debug("no_configuration_files_loaded")
    return merged_toml_data


def resolve_config_values(raw_toml: Dict[str, Any], profile_name: Optional[str] = None) -> Dict[str, Any]:
    """Turns merged toml data (plus an optional profile) into MatrixConfig keyword arguments."""
    values: Dict[str, Any] = {}
    for toml_key, attr in CONFIG_KEY_TO_MATRIXCONFIG_ATTR_MAP.items():
        if toml_key in raw_toml:
            values[attr] = raw_toml[toml_key]

    if profile_name:
        profile_values = raw_toml.get("profiles", {}).get(profile_name)
        if profile_values is None:
            raise ConfigError(f"Config profile '{profile_name}' not found")
        log.info("applying_profile_settings", profile=profile_name)
        for toml_key, attr in CONFIG_KEY_TO_MATRIXCONFIG_ATTR_MAP.items():
            if toml_key in profile_values:
                values[attr] = profile_values[toml_key]

    unknown = sorted(k for k in raw_toml if k not in CONFIG_KEY_TO_MATRIXCONFIG_ATTR_MAP and k != "profiles")
    if unknown:
        log.warning("unknown_config_keys_ignored", keys=unknown)
    return values
