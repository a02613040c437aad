"""
Prompt commands: render, show, keywords, list, search.
"""

import logging
from typing import Any

import click

from prompt_manager.config.app import AppConfig
from prompt_manager.errors import ConfigurationError, PromptManagerError
from prompt_manager.prompts.loader import PromptLoader
from prompt_manager.prompts.pipeline import collect_keywords
from prompt_manager.storage import create_storage

logger = logging.getLogger(__name__)


def get_loader(ctx: click.Context) -> PromptLoader:
    """Build a loader from the configuration stored on the context."""
    config: AppConfig = ctx.obj["config"]
    try:
        return PromptLoader(create_storage(config.storage), config.render)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def _parse_params(values: tuple[str, ...]) -> list[tuple[str, str]]:
    parsed = []
    for item in values:
        token, sep, value = item.partition("=")
        if not sep or not token:
            raise click.BadParameter(f"Expected TOKEN=VALUE, got: {item}", param_hint="--param")
        parsed.append((token, value))
    return parsed


@click.command()
@click.argument("prompt_id")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    metavar="TOKEN=VALUE",
    help="Keyword value, e.g. -p '[NAME]=Alice' (repeatable)",
)
@click.option(
    "--expressions/--no-expressions",
    default=None,
    help="Evaluate <%= %> expression blocks",
)
@click.option("--env/--no-env", default=None, help="Substitute $ENV references")
@click.option("--strict", is_flag=True, help="Fail if a keyword has no value")
@click.option("--save", is_flag=True, help="Append the given values to the saved history")
@click.pass_context
def render(
    ctx: click.Context,
    prompt_id: str,
    params: tuple[str, ...],
    expressions: bool | None,
    env: bool | None,
    strict: bool,
    save: bool,
) -> None:
    """Render a prompt and print the result."""
    loader = get_loader(ctx)
    new_values = _parse_params(params)

    overrides: dict[str, Any] = {}
    if expressions is not None:
        overrides["evaluate_expressions"] = expressions
    if env is not None:
        overrides["substitute_env_vars"] = env
    if strict:
        overrides["missing_parameters"] = "error"

    try:
        prompt = loader.load(prompt_id)
        for token, value in new_values:
            prompt.parameters.append(token, value)
        result = prompt.render(storage=loader.storage, **overrides)
        if save:
            loader.save(prompt)
    except PromptManagerError as e:
        raise click.ClickException(str(e)) from e

    click.echo(result.text)
    if result.unresolved:
        click.echo(f"Unresolved keywords: {', '.join(result.unresolved)}", err=True)


@click.command()
@click.argument("prompt_id")
@click.pass_context
def show(ctx: click.Context, prompt_id: str) -> None:
    """Print the raw text of a prompt."""
    loader = get_loader(ctx)
    try:
        click.echo(loader.storage.load(prompt_id), nl=False)
    except PromptManagerError as e:
        raise click.ClickException(str(e)) from e


@click.command()
@click.argument("prompt_id")
@click.pass_context
def keywords(ctx: click.Context, prompt_id: str) -> None:
    """List the keywords a prompt needs, with their current values."""
    loader = get_loader(ctx)
    try:
        prompt = loader.load(prompt_id)
        tokens = collect_keywords(prompt, loader.storage)
    except PromptManagerError as e:
        raise click.ClickException(str(e)) from e

    for token in tokens:
        if token in prompt.parameters:
            click.echo(f"{token} = {prompt.parameters.current(token)}")
        else:
            click.echo(f"{token} (no value)")


@click.command("list")
@click.pass_context
def list_prompts(ctx: click.Context) -> None:
    """List prompt ids."""
    loader = get_loader(ctx)
    for prompt_id in loader.list_prompts():
        click.echo(prompt_id)


@click.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """List prompts whose text contains QUERY."""
    loader = get_loader(ctx)
    try:
        matches = loader.search(query)
    except PromptManagerError as e:
        raise click.ClickException(str(e)) from e
    for prompt_id in matches:
        click.echo(prompt_id)
