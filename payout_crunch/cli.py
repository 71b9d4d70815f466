"""
Command line entry point.
"""

import asyncio
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from payout_crunch import __version__
from payout_crunch.core.config import CrunchSettings
from payout_crunch.core.logging import setup_logging
from payout_crunch.scheduler.main import CrunchService, main

console = Console()
app = typer.Typer(help="Automatically claim staking rewards for a set of validator stashes")


def load_settings(chain: Optional[str] = None) -> CrunchSettings:
    try:
        if chain:
            return CrunchSettings(chain=chain)
        return CrunchSettings()
    except ValidationError as e:
        console.print(f"❌ Invalid configuration:\n{e}")
        raise typer.Exit(code=1)


@app.command()
def once(chain: Optional[str] = typer.Option(None, help="Network to crunch")):
    """Claim rewards once and exit."""
    asyncio.run(main(load_settings(chain), "once"))


@app.command()
def flakes(
    mode: str = typer.Argument("turbo", help="daily or turbo"),
    chain: Optional[str] = typer.Option(None, help="Network to crunch")
):
    """Claim rewards on a fixed interval."""
    if mode not in ("daily", "turbo"):
        console.print("❌ Mode must be 'daily' or 'turbo'")
        raise typer.Exit(code=1)
    asyncio.run(main(load_settings(chain), mode))


@app.command()
def era(chain: Optional[str] = typer.Option(None, help="Network to crunch")):
    """Claim rewards every time an era is paid."""
    asyncio.run(main(load_settings(chain), "era"))


@app.command()
def view(chain: Optional[str] = typer.Option(None, help="Network to inspect")):
    """Show claimed and unclaimed rewards without submitting anything."""
    settings = load_settings(chain)

    async def _view():
        setup_logging(settings)
        service = CrunchService(settings)
        try:
            return await service.inspect()
        finally:
            await service.close()

    validators = asyncio.run(_view())

    table = Table(title=f"Stashes on {settings.chain}")
    table.add_column("Name")
    table.add_column("Stash")
    table.add_column("Active")
    table.add_column("Claimed")
    table.add_column("Unclaimed")
    table.add_column("Warnings")
    for v in validators:
        table.add_row(
            v.name,
            v.stash,
            "🟢" if v.is_active else "🔴",
            str(len(v.claimed)),
            ", ".join(f"{u.era}/{u.page}" for u in v.unclaimed) or "-",
            "; ".join(v.warnings),
        )
    console.print(table)


@app.command()
def config():
    """Show the effective configuration."""
    settings = load_settings()
    secrets = {"telegram_bot_token", "github_pat"}

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in settings.model_dump().items():
        if name in secrets and value:
            value = "***"
        table.add_row(name, str(value))
    console.print(table)


@app.command()
def version():
    """Show the version."""
    console.print(f"payout-crunch v{__version__}")


if __name__ == "__main__":
    app()
