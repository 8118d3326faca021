"""argus CLI interface.

Commands:
- init: Write a default .argus.yaml
- scan: Analyze a repository and generate context files
- sync: Regenerate context files using the formats in .argus.yaml
- watch: Regenerate context files whenever the repository changes
- version: Print the version

Global options:
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON lines log output
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from argus import __version__
from argus.analyzers.base import AnalysisCancelledError
from argus.analyzers.walker import WalkerError
from argus.config import (
    CONFIG_FILE_NAME,
    ArgusConfig,
    ConfigValidationError,
    config_exists,
    create_default_config,
    load_config,
    suggest_fix,
    validate_config,
)
from argus.generators import GeneratedFile, create_generators, resolve_formats, write_outputs
from argus.generators.monorepo import MonorepoOverviewGenerator
from argus.incremental import IncrementalEngine
from argus.llm import Enricher, EnrichmentError
from argus.models.analysis import Analysis, Convention, ConventionCategory
from argus.monorepo import MonorepoAnalyzer, WorkspaceResult
from argus.pipeline import AnalysisPipeline, PipelineError, PipelineOptions
from argus.utils.logging import configure_from_cli, get_logger
from argus.watch import Watcher

app = typer.Typer(
    name="argus",
    help="Analyze a codebase and generate context files for AI coding assistants",
    add_completion=False,
    no_args_is_help=True,
)

_logger = get_logger()

# Batch of files to write under one output root
OutputBatch = tuple[list[GeneratedFile], Path]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"argus {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """argus - codebase context generator.

    Scans a repository once and writes CLAUDE.md, .cursorrules, Copilot
    instructions and similar files from what it finds.
    """
    ctx.obj = {"verbose": verbose, "quiet": quiet, "ci": ci}
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)


# =============================================================================
# Shared helpers
# =============================================================================


def _apply_verbose(ctx: typer.Context, verbose: bool) -> None:
    # Command-level --verbose, for "argus scan . -v" as well as "argus -v scan ."
    if not verbose:
        return
    flags = ctx.obj or {}
    configure_from_cli(verbose=True, quiet=flags.get("quiet", False), ci=flags.get("ci", False))


def _resolve_root(path: Path) -> Path:
    root = path.resolve()
    if not root.is_dir():
        _logger.error(f"Not a directory: {root}")
        raise typer.Exit(1)
    return root


def _load_validated_config(root: Path) -> ArgusConfig:
    try:
        config = load_config(root)
        validate_config(config)
    except ConfigValidationError as e:
        _logger.error(str(e))
        hint = suggest_fix(e)
        if hint:
            _logger.error(hint)
        raise typer.Exit(1)
    except ValueError as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)

    if config.config_path:
        _logger.debug(f"Loaded config from: {config.config_path}")
    return config


def _pipeline_options(config: ArgusConfig) -> PipelineOptions:
    return PipelineOptions(
        ignore_patterns=list(config.ignore),
        custom_conventions=list(config.custom_conventions),
        overrides=dict(config.overrides),
    )


def _analyze(root: Path, config: ArgusConfig) -> Analysis:
    try:
        return AnalysisPipeline().run(root, _pipeline_options(config))
    except (ValueError, WalkerError) as e:
        _logger.error(f"Invalid repository: {e}")
        raise typer.Exit(1)
    except PipelineError as e:
        _logger.error(f"Analysis failed: {e}")
        raise typer.Exit(1)
    except AnalysisCancelledError:
        _logger.error("Analysis cancelled")
        raise typer.Exit(1)


def _enrich(analysis: Analysis, config: ArgusConfig) -> None:
    enricher = Enricher.from_config(config.ai)
    if not enricher.is_available():
        _logger.warning(f"AI enrichment skipped: no model server reachable at {config.ai.endpoint}")
        return
    _logger.info(f"Running AI enrichment with {config.ai.model} at {config.ai.endpoint}")
    try:
        enricher.enrich(analysis)
    except EnrichmentError as e:
        _logger.warning(f"AI enrichment skipped: {e}")


def _render(analysis: Analysis, config: ArgusConfig, formats: list[str]) -> list[GeneratedFile]:
    try:
        generators = create_generators(formats, config.claude_code)
        return [f for generator in generators for f in generator.generate(analysis)]
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _write(
    batches: list[OutputBatch],
    dry_run: bool,
    merge_existing: bool,
    add_custom: bool,
) -> None:
    paths = []
    try:
        for files, output_root in batches:
            paths.extend(
                write_outputs(
                    files,
                    output_root,
                    dry_run=dry_run,
                    merge_existing=merge_existing,
                    add_custom=add_custom,
                )
            )
    except OSError as e:
        _logger.error(f"Failed to write output: {e}")
        raise typer.Exit(1)

    if dry_run:
        typer.echo("Dry run - files that would be written:")
    for path in paths:
        typer.echo(f"  {path}")


def _summarize(analysis: Analysis) -> None:
    stack = analysis.tech_stack
    if stack.languages:
        _logger.info("Languages: " + ", ".join(lang.name for lang in stack.languages))
    if stack.frameworks:
        _logger.info("Frameworks: " + ", ".join(fw.name for fw in stack.frameworks))
    _logger.info(
        f"Found {len(analysis.conventions)} conventions, {len(analysis.commands)} commands, "
        f"{len(analysis.endpoints)} endpoints"
    )
    info = analysis.monorepo_info
    if info is not None and info.is_monorepo:
        tool = f" ({info.tool})" if info.tool else ""
        _logger.info(f"Monorepo{tool} with {len(info.packages)} package groups")


# =============================================================================
# Monorepo output
# =============================================================================


def _analyze_workspaces(root: Path, config: ArgusConfig, analysis: Analysis) -> list[WorkspaceResult]:
    # Root overrides (project name, description) describe the whole repository
    options = PipelineOptions(
        ignore_patterns=list(config.ignore),
        custom_conventions=list(config.custom_conventions),
    )
    try:
        results = MonorepoAnalyzer(root, options).analyze(
            analysis.monorepo_info, max_concurrency=config.monorepo.max_concurrent
        )
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    for result in results:
        override = config.monorepo.workspace_overrides.get(result.path)
        if result.ok and override and override.custom_conventions:
            result.analysis.conventions.extend(
                Convention(category=ConventionCategory.CUSTOM, description=text)
                for text in override.custom_conventions
            )
        if not result.ok:
            _logger.warning(f"Skipping workspace {result.path}: {result.error}")
    return results


def _workspace_batches(
    root: Path,
    config: ArgusConfig,
    analysis: Analysis,
    formats: list[str],
    output_root: Path,
) -> list[OutputBatch] | None:
    """Outputs for every workspace plus the root; None if no workspace resolved."""
    results = _analyze_workspaces(root, config, analysis)
    if not any(result.ok for result in results):
        _logger.warning("No workspaces could be analyzed, generating single-project output")
        return None

    _logger.info(f"Generating context for {sum(r.ok for r in results)} workspaces")
    batches: list[OutputBatch] = []
    for result in results:
        if not result.ok:
            continue
        override = config.monorepo.workspace_overrides.get(result.path)
        ws_formats = override.output if override and override.output else formats
        batches.append((_render(result.analysis, config, ws_formats), output_root / result.path))

    root_files = _render(analysis, config, formats)
    if config.monorepo.root_overview:
        overview = MonorepoOverviewGenerator(results, per_workspace=True)
        try:
            overview_files = overview.generate(analysis)
        except ValueError as e:
            _logger.error(str(e))
            raise typer.Exit(1)
        root_files = overview_files + [f for f in root_files if f.path != "CLAUDE.md"]
    batches.append((root_files, output_root))
    return batches


def _output_batches(
    root: Path,
    config: ArgusConfig,
    analysis: Analysis,
    formats: list[str],
    output_root: Path,
    per_workspace: bool,
) -> list[OutputBatch]:
    info = analysis.monorepo_info
    if per_workspace and info is not None and info.is_monorepo:
        batches = _workspace_batches(root, config, analysis, formats, output_root)
        if batches is not None:
            return batches
    return [(_render(analysis, config, formats), output_root)]


# =============================================================================
# Shared options
# =============================================================================

VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose output with timestamps",
    ),
]
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        "-n",
        help="List files without writing them",
    ),
]
MergeOption = Annotated[
    bool,
    typer.Option(
        "--merge/--no-merge",
        "-m",
        help="Keep custom sections of existing Markdown outputs",
    ),
]
AddCustomOption = Annotated[
    bool,
    typer.Option(
        "--add-custom",
        help="Add a placeholder custom section to Markdown outputs",
    ),
]
FormatOption = Annotated[
    str | None,
    typer.Option(
        "--format",
        "-f",
        help="Output format: claude, claude-code, cursor, copilot, continue, all",
    ),
]


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    path: Annotated[Path, typer.Argument(help="Repository root")] = Path("."),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing configuration file",
        ),
    ] = False,
) -> None:
    """Write a default .argus.yaml.

    Exit codes:
        0: Config written
        1: Config already exists (without --force) or could not be written
    """
    root = _resolve_root(path)
    if config_exists(root) and not force:
        _logger.error(f"{CONFIG_FILE_NAME} already exists in {root} (use --force to overwrite)")
        raise typer.Exit(1)

    target = root / CONFIG_FILE_NAME
    try:
        target.write_text(create_default_config(), encoding="utf-8")
    except OSError as e:
        _logger.error(f"Failed to write {target}: {e}")
        raise typer.Exit(1)
    typer.echo(f"Created {target}")


# =============================================================================
# scan command
# =============================================================================


@app.command()
def scan(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Repository root")] = Path("."),
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory (defaults to the repository root)",
        ),
    ] = None,
    format: FormatOption = None,
    dry_run: DryRunOption = False,
    ai: Annotated[
        bool,
        typer.Option(
            "--ai",
            help="Enrich the analysis with a local LLM",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the analysis as JSON instead of writing files",
        ),
    ] = False,
    monorepo: Annotated[
        bool,
        typer.Option(
            "--monorepo",
            help="Generate context files inside every workspace of a monorepo",
        ),
    ] = False,
    merge: MergeOption = True,
    add_custom: AddCustomOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Analyze a repository and generate context files.

    Exit codes:
        0: Files generated (or listed with --dry-run)
        1: Error during analysis or generation
    """
    _apply_verbose(ctx, verbose)
    root = _resolve_root(path)
    config = _load_validated_config(root)

    _logger.info(f"Analyzing repository: {root}")
    analysis = _analyze(root, config)
    _summarize(analysis)

    if ai or config.ai.enabled:
        _enrich(analysis, config)

    if json_output:
        typer.echo(json.dumps(analysis.to_dict(), indent=2))
        return

    formats = [format] if format else list(config.output)
    batches = _output_batches(
        root,
        config,
        analysis,
        formats,
        (output or root).resolve(),
        per_workspace=monorepo or config.monorepo.per_workspace,
    )
    _write(batches, dry_run, merge, add_custom)


# =============================================================================
# sync command
# =============================================================================


@app.command()
def sync(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Repository root")] = Path("."),
    dry_run: DryRunOption = False,
    merge: MergeOption = True,
    add_custom: AddCustomOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Regenerate context files using the formats listed in .argus.yaml.

    Exit codes:
        0: Files regenerated
        1: No configuration file, or an error during analysis or generation
    """
    _apply_verbose(ctx, verbose)
    root = _resolve_root(path)
    if not config_exists(root):
        _logger.error(f"No {CONFIG_FILE_NAME} found in {root} (run 'argus init' first)")
        raise typer.Exit(1)

    config = _load_validated_config(root)
    _logger.info(f"Syncing {', '.join(config.output)} for {root}")
    analysis = _analyze(root, config)

    if config.ai.enabled:
        _enrich(analysis, config)

    batches = _output_batches(
        root, config, analysis, list(config.output), root, per_workspace=config.monorepo.per_workspace
    )
    _write(batches, dry_run, merge, add_custom)


# =============================================================================
# watch command
# =============================================================================


@app.command()
def watch(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Repository root")] = Path("."),
    format: FormatOption = None,
    merge: MergeOption = True,
    add_custom: AddCustomOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Watch a repository and regenerate context files on every change.

    Runs until interrupted with Ctrl+C.

    Exit codes:
        0: Stopped by the user
        1: Invalid configuration or the initial analysis failed
    """
    _apply_verbose(ctx, verbose)
    root = _resolve_root(path)
    config = _load_validated_config(root)
    formats = [format] if format else list(config.output)
    try:
        resolve_formats(formats)
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    def reload_options() -> PipelineOptions:
        reloaded = load_config(root)
        try:
            validate_config(reloaded)
        except ConfigValidationError as e:
            raise ValueError(str(e)) from e
        return _pipeline_options(reloaded)

    def regenerate(analysis: Analysis) -> None:
        generators = create_generators(formats, config.claude_code)
        files = [f for generator in generators for f in generator.generate(analysis)]
        write_outputs(files, root, merge_existing=merge, add_custom=add_custom)

    engine = IncrementalEngine(root, _pipeline_options(config))
    watcher = Watcher(engine, regenerate, reload_options=reload_options, report=typer.echo)

    typer.echo(f"Watching {root} (Ctrl+C to stop)")
    try:
        watcher.run()
    except (ValueError, WalkerError, PipelineError) as e:
        _logger.error(f"Analysis failed: {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("Stopped watching")


# =============================================================================
# version command
# =============================================================================


@app.command()
def version() -> None:
    """Print the version string."""
    typer.echo(f"argus {__version__}")


if __name__ == "__main__":
    app()
