"""modelmux CLI entrypoint."""

from __future__ import annotations

import logging

import click

from modelmux import __version__


@click.group()
@click.version_option(version=__version__, prog_name="modelmux")
@click.option("--log-level", default="WARNING", show_default=True, help="Python logging level.")
def main(log_level: str) -> None:
    """modelmux - one chat interface over many model backends."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


# Register subcommands
from modelmux.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
