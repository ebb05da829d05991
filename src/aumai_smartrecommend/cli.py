"""CLI entry point for aumai-smartrecommend."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from aumai_smartrecommend.classifier import detect_task_type
from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.engine import SmartRecommendationEngine
from aumai_smartrecommend.memory import (
    HybridSearchProvider,
    InMemoryToolIndex,
    KeywordSearchProvider,
    VectorSearchProvider,
)
from aumai_smartrecommend.models import (
    SmartRecommendationResult,
    TaskSpec,
    ToolRecord,
    UserPreferences,
)
from aumai_smartrecommend.search import CandidateSearch

_TASK_LIST = TypeAdapter(list[TaskSpec])


def _load_index(tools_dir: str) -> InMemoryToolIndex:
    """Build an index from every tool definition JSON file in *tools_dir*."""
    index = InMemoryToolIndex()
    loaded_count = 0

    for tool_file in sorted(Path(tools_dir).glob("*.json")):
        try:
            raw = json.loads(tool_file.read_text(encoding="utf-8"))
            index.add_tool(ToolRecord.model_validate(raw))
            loaded_count += 1
        except (OSError, ValueError) as exc:
            click.echo(f"  Skipping {tool_file.name}: {exc}", err=True)

    if loaded_count == 0:
        click.echo(f"No tool definitions loaded from {tools_dir}.", err=True)
    index.build_index()
    return index


def _build_engine(index: InMemoryToolIndex) -> SmartRecommendationEngine:
    config = EngineConfig.from_env()
    search = CandidateSearch(
        providers=[
            HybridSearchProvider(index),
            VectorSearchProvider(index),
            KeywordSearchProvider(index),
        ],
        catalog=index,
        knowledge_base=index,
        config=config,
    )
    return SmartRecommendationEngine(search, config)


def _echo_result(result: SmartRecommendationResult) -> None:
    if result.tool_id is None:
        click.echo(f"  {result.task_name}: no suitable tool found ({result.reason})")
        return
    click.echo(
        f"  {result.task_name} -> {result.tool_name} "
        f"(score={result.final_score:.4f}, type={result.task_type.value})\n"
        f"      {result.reason}"
    )


@click.group()
@click.version_option(package_name="aumai-smartrecommend")
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
def main(log_level: str) -> None:
    """AumAI SmartRecommend: search-then-rerank tool recommendations."""
    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("classify")
@click.argument("task_text")
def classify_cmd(task_text: str) -> None:
    """Print the task type detected for TASK_TEXT."""
    click.echo(detect_task_type(task_text).value)


@main.command("recommend")
@click.option(
    "--tools-dir",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Directory containing tool definition JSON files.",
)
@click.option("--task", required=True, help="Natural-language task description.")
@click.option(
    "--category",
    "categories",
    multiple=True,
    help="Only consider tools in this category (repeatable).",
)
@click.option("--free-only", is_flag=True, help="Only consider free tools.")
@click.option(
    "--output-format",
    default="text",
    type=click.Choice(["text", "json"]),
    show_default=True,
)
def recommend_cmd(
    tools_dir: str,
    task: str,
    categories: tuple[str, ...],
    free_only: bool,
    output_format: str,
) -> None:
    """Recommend the best tool for a single task."""
    engine = _build_engine(_load_index(tools_dir))
    preferences = UserPreferences(categories=list(categories), free_tools_only=free_only)
    result = asyncio.run(engine.get_smart_recommendation(task, preferences))

    if output_format == "json":
        click.echo(json.dumps(result.to_payload(), indent=2))
    else:
        _echo_result(result)


@main.command("batch")
@click.option(
    "--tools-dir",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Directory containing tool definition JSON files.",
)
@click.option(
    "--tasks-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help='JSON list of tasks, e.g. [{"id": "t1", "name": "Write a blog post"}].',
)
@click.option("--workflow-id", default=None, help="Identifier logged with the batch.")
@click.option(
    "--output-format",
    default="text",
    type=click.Choice(["text", "json"]),
    show_default=True,
)
def batch_cmd(
    tools_dir: str, tasks_file: str, workflow_id: str | None, output_format: str
) -> None:
    """Recommend tools for every task in TASKS_FILE concurrently."""
    try:
        tasks = _TASK_LIST.validate_json(Path(tasks_file).read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint="--tasks-file") from exc

    if not tasks:
        raise click.BadParameter("at least one task is required", param_hint="--tasks-file")

    engine = _build_engine(_load_index(tools_dir))
    results = asyncio.run(engine.process_tasks_in_parallel(tasks, workflow_id=workflow_id))

    if output_format == "json":
        click.echo(json.dumps([result.to_payload() for result in results], indent=2))
    else:
        for result in results:
            _echo_result(result)


if __name__ == "__main__":
    main()
