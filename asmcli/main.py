"""Main entry point for the asmcli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import logging
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from asmcli.core.command_handler import EXIT_FAILURE, CommandHandler
from asmcli.core.services.lookup_service import LookupService

# --- Domain Layer ---
from asmcli.domain.exceptions import ConfigurationError

# --- Infrastructure Layer ---
from asmcli.infrastructure.api.client import AppleSchoolManagerClient
from asmcli.infrastructure.cli.display import ConsoleDisplay, CsvDisplay
from asmcli.infrastructure.config.settings import (
    get_config, get_credentials, get_rate_limit_enabled, get_timeout_seconds, load_configuration,
)
from asmcli.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(csv_output: bool = False, rate_limit: Optional[bool] = None, verbose: bool = False) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command run.

    This acts as the Composition Root.

    Raises:
        typer.Exit: If the configuration is incomplete; the error has
            already been displayed.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First, then logging from it
    load_configuration()
    log_level = logging.DEBUG if verbose else resolve_log_level(get_config('logging.level', 'WARNING'))
    setup_logging(
        log_level=log_level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )

    # 2. UI
    dependencies['ui'] = CsvDisplay() if csv_output else ConsoleDisplay()

    # 3. API client
    try:
        key_id, client_id, private_key_path = get_credentials()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        dependencies['ui'].display_error(str(e))
        raise typer.Exit(code=EXIT_FAILURE)

    dependencies['client'] = AppleSchoolManagerClient(
        key_id=key_id,
        client_id=client_id,
        private_key_path=private_key_path,
        rate_limit=get_rate_limit_enabled() if rate_limit is None else rate_limit,
        timeout_seconds=get_timeout_seconds(),
    )

    # 4. Core services
    dependencies['lookup_service'] = LookupService(client=dependencies['client'], ui=dependencies['ui'])
    dependencies['command_handler'] = CommandHandler(
        lookup_service=dependencies['lookup_service'],
        ui=dependencies['ui'],
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="asm",
    help="Apple School Manager CLI Tool: look up devices, MDM servers and warranty coverage.",
    add_completion=False,
    no_args_is_help=True,
)


def _run(ctx: typer.Context, csv_output: bool, action) -> None:
    options = ctx.obj or {}
    dependencies = create_dependencies(
        csv_output=csv_output,
        rate_limit=options.get('rate_limit'),
        verbose=options.get('verbose', False),
    )
    with dependencies['client']:
        exit_code = action(dependencies['command_handler'])
    if exit_code:
        raise typer.Exit(code=exit_code)


# --- CLI Commands ---

CsvOption = Annotated[
    bool,
    typer.Option("--csv", help="Output results in CSV format."),
]


@app.command()
def lookup(
    ctx: typer.Context,
    serial_numbers: Annotated[
        Optional[List[str]],
        typer.Argument(metavar="SERIAL...", help="One or more device serial numbers."),
    ] = None,
    csv_output: CsvOption = False,
):
    """Look up devices by serial number."""
    _run(ctx, csv_output, lambda handler: handler.handle_lookup(serial_numbers or []))


@app.command(name="server-devices")
def server_devices(
    ctx: typer.Context,
    mdm_server_id: Annotated[str, typer.Argument(help="MDM server id.")],
    csv_output: CsvOption = False,
):
    """List every device assigned to an MDM server."""
    _run(ctx, csv_output, lambda handler: handler.handle_server_devices(mdm_server_id))


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    rate_limit: Annotated[
        Optional[bool],
        typer.Option("--rate-limit/--no-rate-limit", help="Space API requests one second apart (default: ASM_RATE_LIMIT or on)."),
    ] = None,
):
    """Configuration is read from ASM_KEY_ID, ASM_CLIENT_ID and ASM_PRIVATE_KEY_PATH
    (environment, .env, or ~/.asm/config.yaml)."""
    ctx.obj = {'verbose': verbose, 'rate_limit': rate_limit}


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
