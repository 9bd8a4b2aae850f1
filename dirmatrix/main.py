# dirmatrix/main.py
"""Main entry point for the dirmatrix CLI application."""

from dirmatrix.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="dirmatrix")

if __name__ == '__main__':
    entrypoint()
