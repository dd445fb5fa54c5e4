"""CLI entry point."""

from __future__ import annotations

import sys


def main() -> None:
    """Main entry point for the CLI."""
    import importlib.util

    if importlib.util.find_spec("rich_click") is None:
        print("CLI dependencies not installed. Run: pip install seatkeeper")
        sys.exit(1)

    _run_cli()


def build_cli():
    """Build the root command group."""
    import rich_click as click

    click.rich_click.USE_RICH_MARKUP = True
    click.rich_click.USE_MARKDOWN = True
    click.rich_click.SHOW_ARGUMENTS = True
    click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
    click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
    click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
    click.rich_click.ERRORS_EPILOGUE = ""
    click.rich_click.MAX_WIDTH = 100

    @click.group()
    @click.version_option(package_name="seatkeeper")
    def cli():
        """Seatkeeper - one worker process per graphical login session.

        Watches systemd-logind and starts the configured worker for every
        graphical session, with that session's environment. The worker is
        stopped when the session ends.

        **Commands:**

            seatkeeper run            Run the lifecycle manager

            seatkeeper sessions       List logind sessions

            seatkeeper environment    Show a session's reconstructed environment
        """
        pass

    from seatkeeper.frontends.cli.service import environment, run, sessions

    cli.add_command(run)
    cli.add_command(sessions)
    cli.add_command(environment)
    return cli


def _run_cli() -> None:
    build_cli()()


if __name__ == "__main__":
    main()
