"""
prompt-manager CLI entry point.
"""

import logging

import click

from prompt_manager.config.app import load_config
from prompt_manager.errors import ConfigurationError

from .prompts import keywords, list_prompts, render, search, show

logger = logging.getLogger(__name__)


def setup_logging(level: str = "warning") -> None:
    """
    Configure logging for CLI.

    Args:
        level: Log level name (debug, info, warning, error)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to custom configuration file",
)
@click.option(
    "--prompts-dir",
    type=click.Path(file_okay=False),
    help="Use file storage rooted at this directory",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, prompts_dir: str | None, verbose: bool) -> None:
    """prompt-manager - render parameterized prompt templates."""
    overrides = {}
    if prompts_dir:
        overrides["storage.backend"] = "filesystem"
        overrides["storage.prompts_dir"] = prompts_dir

    try:
        app_config = load_config(config, overrides)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    setup_logging("debug" if verbose else app_config.logging.level)

    ctx.ensure_object(dict)
    ctx.obj["config"] = app_config


# Register commands
cli.add_command(render)
cli.add_command(show)
cli.add_command(keywords)
cli.add_command(list_prompts)
cli.add_command(search)


def main() -> None:
    cli(obj={})
