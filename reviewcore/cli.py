"""Command-line entry point for reviewcore."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from loguru import logger

from reviewcore.config import load_code_review_config
from reviewcore.display import render_prioritization
from reviewcore.exceptions import ConfigurationError
from reviewcore.models.pull_request import OrganizationAndTeamData
from reviewcore.models.suggestion import CodeSuggestion
from reviewcore.suggestions.policy import PrioritizationPolicy
from reviewcore.suggestions.ranking import ensure_suggestion_ids


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path}: invalid JSON: {e}") from e


def load_suggestions(path: Path) -> list[CodeSuggestion]:
    """Read suggestions from a JSON list or a ``{"suggestions": [...]}`` object.

    Suggestions without an id are given one.

    Raises:
        click.ClickException: If the file is not valid JSON, has no
            suggestion list, or carries an unknown status value.
    """
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("suggestions", data.get("codeSuggestions"))
    if not isinstance(data, list):
        raise click.ClickException(f"{path}: expected a list of suggestions")
    try:
        suggestions = [
            CodeSuggestion.from_dict(item) for item in data if isinstance(item, dict)
        ]
    except ValueError as e:
        raise click.ClickException(f"{path}: invalid suggestion: {e}") from e
    return ensure_suggestion_ids(suggestions)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """Suggestion prioritization for AI code review."""
    logger.remove()
    if verbose:
        logger.add(click.get_text_stream("stderr"), level="DEBUG")


@cli.command()
@click.argument(
    "suggestions_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_json",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Code review configuration as JSON (camelCase or snake_case keys).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
)
@click.option("--pr", "pr_number", type=int, default=0, help="Pull request number.")
def prioritize(
    suggestions_json: Path,
    config_json: Path | None,
    output_format: str,
    pr_number: int,
) -> None:
    """Run the prioritization policy over SUGGESTIONS_JSON."""
    suggestions = load_suggestions(suggestions_json)
    raw_config = _read_json(config_json) if config_json else None
    try:
        config = load_code_review_config(raw_config)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    result = PrioritizationPolicy().prioritize(
        OrganizationAndTeamData(),
        config.suggestion_control,
        pr_number,
        suggestions,
    )

    if output_format == "json":
        payload = {
            "prioritized": [s.to_dict() for s in result.prioritized_suggestions],
            "discarded": [s.to_dict() for s in result.discarded_suggestions],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(render_prioritization(result), nl=False)
