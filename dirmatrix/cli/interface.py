# dirmatrix/cli/interface.py
import sys
from dataclasses import fields as dataclass_fields
from pathlib import Path
from typing import Any, Dict

import click
from click.core import ParameterSource
from click_option_group import optgroup
import structlog

from dirmatrix import __version__ as app_version
from dirmatrix.cli.console_output import print_cli_summary_output
from dirmatrix.config.loader import load_and_merge_configs, resolve_config_values
from dirmatrix.config.settings import MatrixConfig, ChangeBackend, DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from dirmatrix.core.changes.context import EventContext
from dirmatrix.core.output import (
    MATRIX_OUTPUT_KEY, signal_failure, write_pipeline_output, write_to_file, write_to_stdout,
)
from dirmatrix.core.pipeline import MatrixGenerator
from dirmatrix.exceptions import DirMatrixError
from dirmatrix.logging_setup import configure_logging

log = structlog.get_logger(__name__)

# cli parameters that are not MatrixConfig fields.
NON_CONFIG_PARAMS = {"verbosity_level", "force_json_logs", "active_config_profile_name", "console_show_summary", "change_backend_str"}
EXPLICIT_SOURCES = (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT)


def _build_config(ctx: click.Context, cli_params: Dict[str, Any]) -> MatrixConfig:
    # layering: dataclass defaults < toml config < toml profile < explicit cli options.
    raw_toml = load_and_merge_configs()
    effective_options = resolve_config_values(raw_toml, cli_params.get("active_config_profile_name"))

    valid_fields = {f.name for f in dataclass_fields(MatrixConfig) if f.init}
    for name, value in cli_params.items():
        if name in NON_CONFIG_PARAMS or name not in valid_fields:
            continue
        if ctx.get_parameter_source(name) in EXPLICIT_SOURCES:
            effective_options[name] = list(value) if isinstance(value, tuple) else value

    if ctx.get_parameter_source("change_backend_str") in EXPLICIT_SOURCES:
        effective_options["change_backend"] = ChangeBackend.from_string(cli_params["change_backend_str"])

    return MatrixConfig(**effective_options)


def _publish(config: MatrixConfig, matrix_json: str):
    write_pipeline_output(MATRIX_OUTPUT_KEY, matrix_json)
    if config.output_file:
        write_to_file(config.output_file, matrix_json + "\n")
    write_to_stdout(matrix_json + "\n")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("root_path", required=False, type=click.Path(path_type=Path))
@optgroup.group("Filtering Options", help="Control which subdirectories end up in the matrix.")
@optgroup.option("--include-hidden", "include_hidden", is_flag=True, default=False, help="Include directories whose names start with a dot.")
@optgroup.option("-e", "--exclude", "exclude", multiple=True, help="Directory names to skip (comma-separated, repeatable).")
@optgroup.option("-f", "--filter", "filter_pattern", default=None, help="Only keep directory names matching this regular expression.")
@optgroup.group("Metadata Options", help="Attach per-directory metadata to matrix entries.")
@optgroup.option("-m", "--metadata-file", "metadata_file", default=None, help="Name of a .json/.yaml/.yml file read from each directory. Switches output to the 'include' shape.")
@optgroup.group("Change Detection", help="Restrict the matrix to directories touched by the triggering change.")
@optgroup.option("--changed-only", "changed_only", is_flag=True, default=False, help="Only keep directories containing changed files.")
@optgroup.option("--change-backend", "change_backend_str", type=click.Choice([b.value for b in ChangeBackend]), default=ChangeBackend.API.value, help="Where changed files come from: the GitHub api or a local git diff.")
@optgroup.option("--token", "token", envvar="GITHUB_TOKEN", default=None, help="Bearer token for the GitHub api. Default: $GITHUB_TOKEN.")
@optgroup.option("--api-url", "api_url", envvar="GITHUB_API_URL", default=DEFAULT_API_URL, help="GitHub api base url. Default: $GITHUB_API_URL or https://api.github.com.")
@optgroup.option("--request-timeout", "request_timeout", type=float, default=DEFAULT_REQUEST_TIMEOUT, help="Seconds before an api request is abandoned.")
@optgroup.option("--event-name", "event_name", default=None, help="Triggering event (push, pull_request, ...). Default: $GITHUB_EVENT_NAME.")
@optgroup.option("--repository", "repository", default=None, help="owner/name of the repository. Default: $GITHUB_REPOSITORY.")
@optgroup.option("--sha", "sha", default=None, help="Commit sha for push events. Default: $GITHUB_SHA.")
@optgroup.option("--before", "before", default=None, help="Previous head sha for push diffs (git backend). Default: from the event payload.")
@optgroup.option("--pr-number", "pr_number", type=int, default=None, help="Pull request number. Default: from the event payload.")
@optgroup.option("--base-ref", "base_ref", default=None, help="Pull request base branch (git backend). Default: $GITHUB_BASE_REF.")
@optgroup.group("Output & Application Behavior", help="Where the matrix goes, configuration profiles and logging.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Also write the matrix json to this file.")
@optgroup.option("--console-summary/--no-console-summary", "console_show_summary", default=False, help="Show a summary of the selected directories on stderr.")
@optgroup.option("--config-profile", "active_config_profile_name", default=None, help="Load a profile from config file(s).")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="dirmatrix", prog_name="dirmatrix", help="Show version and exit.")
@click.pass_context
def main_cli(ctx: click.Context, **cli_params: Any):
    """dirmatrix: emit a CI build matrix from the subdirectories of ROOT_PATH,
    optionally enriched with per-directory metadata and limited to changed directories."""

    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs", False))

    log.debug("cli_command_invoked", params={k: v for k, v in cli_params.items() if k != "token"})

    try:
        config = _build_config(ctx, cli_params)
        context = EventContext.from_environment(config) if config.changed_only else None
        result = MatrixGenerator(config, context=context).generate()
        _publish(config, result.to_json())
        if cli_params.get("console_show_summary"):
            print_cli_summary_output(config, result)
    except DirMatrixError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        signal_failure(str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        signal_failure(str(e))
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(1)
