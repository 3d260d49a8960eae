"""Main CLI entry point for tradejournal.

This module provides the main click group, lazy loading of command
modules, and the helpers those modules share.
"""

import click
from rich.console import Console
from rich.panel import Panel

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when one of their commands is
    actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # Commands whose name shadows a builtin are registered under another attribute
        attr = getattr(module, cmd_name, None)
        if isinstance(attr, click.Command):
            cmd = attr
        else:
            cmd = None
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if isinstance(attr, click.Command) and attr.name == cmd_name:
                    cmd = attr
                    break

            if cmd is None:
                raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    # Position lifecycle
    "open": "tradejournal.cli.positions",
    "exit": "tradejournal.cli.positions",
    "edit": "tradejournal.cli.positions",
    "delete": "tradejournal.cli.positions",
    "positions": "tradejournal.cli.positions",
    "show": "tradejournal.cli.positions",
    # Analytics
    "stats": "tradejournal.cli.portfolio",
    "pnl": "tradejournal.cli.portfolio",
    "strategies": "tradejournal.cli.portfolio",
    "yearly": "tradejournal.cli.portfolio",
    "durations": "tradejournal.cli.portfolio",
    # Valuation
    "value": "tradejournal.cli.value",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def get_gateway():
    """Build the gateway from the user's configuration."""
    from tradejournal.config import get_cache_hours, get_db_path, load_config
    from tradejournal.db.store import DataStore
    from tradejournal.gateway import AnalyticsGateway

    config = load_config()
    gateway = AnalyticsGateway(
        DataStore(get_db_path(config)),
        valuation_cache_hours=get_cache_hours(config),
    )
    gateway.purge_valuation_cache()
    return gateway


def get_owner_id() -> str:
    from tradejournal.config import get_owner_id as owner_from_config, load_config

    return owner_from_config(load_config())


def fail(message: str, title: str = "Error") -> None:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def signed(value: float) -> str:
    """Format a P&L value with sign and color markup."""
    color = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else ""
    return f"[{color}]{sign}{value:,.2f}[/{color}]"


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="tradejournal")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """tradejournal - track trades, realized P&L and stock valuations.

    Record positions and their partial exits, review portfolio
    analytics, and estimate intrinsic values from fundamentals.

    \b
    Quick Start:
      tradejournal open AAPL 100 150.25   # Record a new position
      tradejournal exit <id> 40 162.10    # Close part of it
      tradejournal stats                  # Portfolio analytics
    """
    from tradejournal.config import get_log_level, load_config, setup_logging
    from tradejournal.errors import ConfigError

    ctx.ensure_object(dict)
    try:
        level = "DEBUG" if verbose else get_log_level(load_config())
    except ConfigError as e:
        fail(str(e), title="Configuration Error")
    setup_logging(level)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
