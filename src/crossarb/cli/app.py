"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from crossarb.config import ConfigurationError, get_settings
from crossarb.config.settings import configure_logging

app = typer.Typer(
    name="crossarb",
    help="crossarb - Cross-venue prediction market arbitrage (Kalshi / Polymarket).",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    try:
        settings = get_settings(profile, config_dir)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}")
        raise typer.Exit(1)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from crossarb.cli import run_cmd, scan  # noqa: E402

app.command("run")(run_cmd.run)
app.command("scan")(scan.scan)
app.command("match")(scan.match)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
