"""
Command Line Interface for SiteForge
"""

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.artifact import ChunkProgress, Provenance
from .core.config import Config
from .core.errors import ConfigurationError, ProjectNotFoundError
from .generation.complexity import analyze_complexity
from .generation.fallback_templates import FallbackTemplateStore
from .generation.planner import create_project_chunks, estimate_project_cost
from .orchestrator import GenerationOrchestrator, TurnOutcome
from .storage.project_store import JsonProjectStore
from .utils.logging_utils import setup_logging

console = Console()

STATUS_STYLES = {"processing": "cyan", "completed": "green", "error": "red"}


def load_config(config_path) -> Config:
    """Explicit path, else ./config.yaml if present, else defaults + environment"""
    if config_path:
        return Config.from_yaml(config_path)
    if Path("config.yaml").exists():
        return Config.from_yaml("config.yaml")
    return Config.default()


def print_progress(event: ChunkProgress):
    style = STATUS_STYLES.get(event.status, "white")
    line = f"[{event.current_chunk}/{event.total_chunks}] {event.description}: {event.status}"
    if event.error:
        line += f" ({event.error})"
    console.print(line, style=style)


def write_files(outcome: TurnOutcome, output_dir: Path) -> int:
    for relative_path, content in outcome.artifact.files.items():
        target = (output_dir / relative_path).resolve()
        if output_dir.resolve() not in target.parents:
            console.print(f"⚠️ Skipping path outside output directory: {relative_path}", style="yellow")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return len(outcome.artifact.files)


async def run_turn(config: Config, store: JsonProjectStore, message: str, **kwargs) -> TurnOutcome:
    """Build the orchestrator inside the running loop and handle one message"""
    orchestrator = GenerationOrchestrator(config, store=store)
    try:
        return await orchestrator.handle_message(message, on_progress=print_progress, **kwargs)
    finally:
        await orchestrator.client.aclose()


def report_outcome(outcome: TurnOutcome):
    if not outcome.success:
        console.print(f"❌ {outcome.error}", style="bold red")
        return

    if outcome.provenance == Provenance.FALLBACK:
        console.print(f"📦 {outcome.error or 'Backend unavailable'}", style="yellow")

    table = Table(title="Project")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Request type", outcome.request_type.value)
    table.add_row("Provenance", outcome.provenance.value)
    table.add_row("Files", str(len(outcome.artifact.files)))
    table.add_row("Pages", ", ".join(outcome.artifact.pages))
    table.add_row("Features", ", ".join(outcome.artifact.features))
    console.print(table)

    failed = [r for r in outcome.chunk_results if not r.succeeded]
    if failed:
        console.print(f"⚠️ {len(failed)} chunk(s) failed:", style="yellow")
        for result in failed:
            console.print(f"  • chunk {result.chunk_id} ({result.kind.value}): {result.error}", style="yellow")

    console.print(f"✅ {outcome.change_summary}", style="bold green")


@click.group()
@click.version_option(version="0.1.0", prog_name="SiteForge")
@click.option('--config-path', '-c', type=click.Path(), help='Path to configuration file')
@click.option('--log-file', type=click.Path(), help='Log file (default: logs/siteforge_<timestamp>.log)')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging on the console')
@click.pass_context
def main(ctx, config_path, log_file, verbose):
    """SiteForge: generate projects from a free-text description"""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['log_file'] = log_file
    ctx.obj['verbose'] = verbose


def _config(ctx) -> Config:
    try:
        return load_config(ctx.obj.get('config_path'))
    except FileNotFoundError as e:
        console.print(f"❌ {e}", style="bold red")
        sys.exit(1)


@main.command()
@click.option('--save-config', '-s', type=click.Path(), help='Save configuration to file')
@click.pass_context
def setup(ctx, save_config):
    """Validate configuration and show a summary"""
    console.print(Panel.fit("🚀 SiteForge Setup", style="bold blue"))
    config = _config(ctx)

    errors = config.validate()
    if errors:
        console.print("❌ Configuration errors found:", style="bold red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        if not config.api.openai_api_key:
            console.print("\n💡 Set your key: export OPENAI_API_KEY='sk-...'", style="yellow")
            console.print("   or run offline with demo templates: export SITEFORGE_OFFLINE=1", style="yellow")
        sys.exit(1)

    console.print("✅ Configuration validated successfully!", style="bold green")
    for key, value in config.summary().items():
        console.print(f"  {key}: {value}")

    if save_config:
        config.save_to_file(save_config)
        console.print(f"💾 Configuration saved to: {save_config}", style="green")


@main.command()
@click.argument('description')
@click.pass_context
def plan(ctx, description):
    """Show how a request would be chunked and what it would cost"""
    config = _config(ctx)
    analysis = analyze_complexity(description, config.classification)
    chunks = create_project_chunks(description, config.classification, analysis)
    estimate = estimate_project_cost(chunks)

    console.print(f"Words: {analysis.word_count}, complexity keyword: {analysis.has_complex_feature_keyword}, "
                  f"chunking: {analysis.needs_chunking}")

    table = Table(title="Chunk plan")
    table.add_column("#", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("Description")
    table.add_column("Est. tokens", justify="right")
    for chunk in chunks:
        table.add_row(str(chunk.id), chunk.kind.value, chunk.human_description, str(chunk.estimated_tokens))
    console.print(table)

    console.print(f"≈ {estimate.total_tokens} tokens, ${estimate.estimated_cost:.3f}, "
                  f"~{estimate.estimated_seconds}s for {estimate.total_chunks} chunks")


@main.command()
@click.argument('description')
@click.option('--project', '-p', 'project_name', default=None, help='Project name')
@click.option('--output', '-o', type=click.Path(file_okay=False), help='Write generated files here')
@click.pass_context
def generate(ctx, description, project_name, output):
    """Generate a new project from a description"""
    config = _config(ctx)
    setup_logging(ctx.obj.get('log_file'), ctx.obj.get('verbose'))

    store = JsonProjectStore(config.data.projects_dir)
    project_name = project_name or description[:40]
    project_id = store.create_project(project_name)
    try:
        outcome = asyncio.run(run_turn(
            config, store, description, history=[], project_name=project_name, project_id=project_id,
        ))
    except ConfigurationError as e:
        console.print(f"❌ {e}", style="bold red")
        sys.exit(1)
    report_outcome(outcome)
    if not outcome.success:
        sys.exit(1)

    output_dir = Path(output or Path(config.data.output_dir) / project_id)
    written = write_files(outcome, output_dir)
    console.print(f"💾 Project {project_id}: {written} files written to {output_dir}", style="green")


@main.command()
@click.argument('project_id')
@click.argument('message')
@click.option('--output', '-o', type=click.Path(file_okay=False), help='Write the updated files here')
@click.pass_context
def chat(ctx, project_id, message, output):
    """Send a follow-up request for a stored project"""
    config = _config(ctx)
    setup_logging(ctx.obj.get('log_file'), ctx.obj.get('verbose'))

    store = JsonProjectStore(config.data.projects_dir)
    try:
        outcome = asyncio.run(run_turn(config, store, message, project_id=project_id))
    except (ProjectNotFoundError, ConfigurationError) as e:
        console.print(f"❌ {e}", style="bold red")
        sys.exit(1)
    report_outcome(outcome)
    if not outcome.success:
        sys.exit(1)

    if output:
        written = write_files(outcome, Path(output))
        console.print(f"💾 {written} files written to {output}", style="green")


@main.command()
@click.pass_context
def projects(ctx):
    """List stored projects"""
    config = _config(ctx)
    store = JsonProjectStore(config.data.projects_dir)

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Versions", justify="right")
    table.add_column("Updated")
    for project in store.list_projects():
        table.add_row(project["id"], project["name"] or "", str(project["versions"]), project["updated_at"] or "")
    console.print(table)


@main.command()
@click.pass_context
def templates(ctx):
    """List fallback template categories"""
    config = _config(ctx)
    store = FallbackTemplateStore.from_yaml(config.data.templates_path)

    table = Table(title="Fallback templates")
    table.add_column("Category", style="cyan")
    table.add_column("Pages")
    table.add_column("Files", justify="right")
    for category in store.categories:
        artifact = store.get(category)
        table.add_row(category, ", ".join(artifact.pages), str(len(artifact.files)))
    console.print(table)


if __name__ == '__main__':
    main()
