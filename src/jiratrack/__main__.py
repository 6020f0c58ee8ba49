"""Entry point for jiratrack.

Run with: jiratrack [--config PATH] [--debug]
"""

import typing as t
from pathlib import Path

import typer

from jiratrack import __version__
from jiratrack import configure_logging
from jiratrack import get_logger
from jiratrack.config import Config
from jiratrack.exceptions import ConfigError
from jiratrack.jira import JiraClient
from jiratrack.ui.app import JiraTrackApp

app = typer.Typer(
    help="Browse your assigned Jira issues and log time against them.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{__version__}")
        raise typer.Exit()


@app.command()
def main(
    config_path: t.Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to the YAML config file"),
    ] = None,
    debug: t.Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
    version: t.Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Launch the worklog TUI."""
    configure_logging(debug=debug)
    logger = get_logger()
    logger.info("Starting jiratrack", version=__version__, debug_mode=debug)

    try:
        config = Config.load(config_path)
    except ConfigError as e:
        logger.error("Configuration error", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    client = JiraClient.from_config(config)
    jira_app = JiraTrackApp(client, site=config.atlassian_url)
    jira_app.run()

    logger.info("jiratrack exited", return_code=jira_app.return_code)
    raise typer.Exit(jira_app.return_code or 0)


if __name__ == "__main__":
    app()
