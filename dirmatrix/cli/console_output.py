# dirmatrix/cli/console_output.py
"""
Handles printing summary information to the console (stderr) during CLI execution.
"""
import click
import structlog

from dirmatrix.config.settings import MatrixConfig
from dirmatrix.core.pipeline import MatrixResult

log = structlog.get_logger(__name__)

def print_cli_summary_output(config: MatrixConfig, result: MatrixResult):
    """Prints the selected directories, and the metadata keys attached to each, to stderr."""
    log.debug("console_summary_output_requested")

    click.secho("--- Matrix Summary ---", fg="cyan", err=True)
    click.echo(f"Root: {config.root_path}", err=True)
    mode = "include (with metadata)" if result.entries is not None else "directory"
    click.echo(f"Output shape: {mode}", err=True)
    click.echo(f"Directories selected: {len(result.directories)}", err=True)

    if result.entries is not None:
        for entry in result.entries:
            extra_keys = sorted(k for k in entry if k != "directory")
            suffix = f" [{', '.join(extra_keys)}]" if extra_keys else ""
            click.echo(f"  - {entry['directory']}{suffix}", err=True)
    else:
        for name in result.directories:
            click.echo(f"  - {name}", err=True)

    if not result.directories:
        click.secho("Matrix is empty.", fg="yellow", err=True)
