"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

from enum import Enum

import typer
from rich.console import Console
from rich.table import Table

from fernmock import __version__
from fernmock.base_mock_server import BaseMockServer
from fernmock.core.config import AppConfig, ServerConfig, init_app_config
from fernmock.core.logging import get_logger
from fernmock.graphql_mock_server import GraphQLMockServer
from fernmock.jira_mock_server import JiraMockServer
from fernmock.pm_mock_server import PMMockServer

# Initialize console for rich output
console = Console()

# Initialize the CLI app
app = typer.Typer(help="Fern Mocks - PM tool emulators")

logger = get_logger("fernmock.cli")

DEFAULT_SERVE_PORT = 8080


class EmulatorKind(str, Enum):
    JIRA = "jira"
    GRAPHQL = "graphql"
    PM = "pm"


EMULATORS: dict[EmulatorKind, type[BaseMockServer]] = {
    EmulatorKind.JIRA: JiraMockServer,
    EmulatorKind.GRAPHQL: GraphQLMockServer,
    EmulatorKind.PM: PMMockServer,
}


def configure_app(debug: bool = False) -> AppConfig:
    """
    Configure the application with the specified settings.

    Args:
    ----
        debug: Whether to enable debug mode

    """
    config = init_app_config(debug=debug)
    config.configure_logging()
    return config


def version_callback(value: bool):
    if value:
        console.print(f"Fern Mocks version: {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode with verbose logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the application version and exit",
    ),
):
    """
    Fern Mocks - emulated JIRA, GraphQL connector and generic PM endpoints.

    Use --debug to enable verbose logging.
    """
    configure_app(debug=debug)


@app.command("serve")
def serve(
    emulator: EmulatorKind = typer.Argument(..., help="Emulator to run"),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(DEFAULT_SERVE_PORT, "--port", help="Port to bind"),
    public_url: str | None = typer.Option(
        None, "--public-url", help="URL advertised in generated links"
    ),
):
    """
    Run one emulator in the foreground until interrupted.
    """
    try:
        server_config = ServerConfig.from_env(host=host, port=port, public_url=public_url)
    except ValueError as e:
        console.print(f"Invalid listener settings: {e}", style="red")
        raise typer.Exit(code=1)

    server = EMULATORS[emulator](server_config)
    console.print(
        f"Serving {emulator.value} emulator on http://{host}:{port}", style="green"
    )
    logger.info(f"Serving {emulator.value} emulator", context={"host": host, "port": port})
    server.serve_forever()


@app.command("routes")
def list_routes(emulator: EmulatorKind = typer.Argument(..., help="Emulator to describe")):
    """
    List the routes an emulator answers.
    """
    server_class = EMULATORS[emulator]

    table = Table(title=f"{emulator.value} emulator routes")
    table.add_column("Method")
    table.add_column("Path")
    table.add_column("Description")

    for method, path, description in server_class.routes:
        table.add_row(method, path, description)

    console.print(table)


@app.command("version")
def show_version():
    """
    Show the application version.
    """
    console.print(f"Fern Mocks version: {__version__}")


if __name__ == "__main__":
    app()
