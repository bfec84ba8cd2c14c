"""specparity check command - run the RSpecParity checks."""

import json
from pathlib import Path

import click

from specparity.config import load_config
from specparity.core.errors import SpecParityError
from specparity.core.logging import clear_run_id, configure_logging, set_run_id
from specparity.core.progress import pluralize, status
from specparity.lint import AnalysisOps, AnalysisResult


def _display_path(path: str, repo_root: Path) -> str:
    try:
        return Path(path).relative_to(repo_root).as_posix()
    except ValueError:
        return path


def _print_text(result: AnalysisResult, repo_root: Path) -> None:
    for diagnostic in result.diagnostics:
        location = f"{_display_path(diagnostic.path, repo_root)}:{diagnostic.line}"
        if diagnostic.column is not None:
            location += f":{diagnostic.column + 1}"
        click.echo(f"{location}: [{diagnostic.source}] {diagnostic.message}")

    for failed in result.files:
        if failed.status == "error":
            status(f"{_display_path(failed.path, repo_root)}: {failed.error_detail}", style="error")

    summary = (
        f"{pluralize(result.files_checked, 'file')} checked, "
        f"{pluralize(result.total_diagnostics, 'offense')}"
    )
    status(summary, style="success" if result.status == "clean" else "warning")


@click.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root holding app/, spec/ and .specparity.yml",
)
@click.option(
    "--check",
    "checks",
    multiple=True,
    help="Check ID to run, e.g. RSpecParity/FileHasSpec (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check_command(
    ctx: click.Context,
    paths: tuple[Path, ...],
    root: Path,
    checks: tuple[str, ...],
    as_json: bool,
) -> None:
    """Check Ruby files against their specs.

    PATHS are files or directories to check (default: the project root).
    Exits with status 1 when any offense is found.
    """
    repo_root = root.resolve()
    try:
        config = load_config(repo_root)
    except SpecParityError as e:
        raise click.ClickException(str(e)) from e

    verbose = bool((ctx.obj or {}).get("verbose"))
    if not verbose:
        configure_logging(config=config.logging)

    set_run_id()
    try:
        ops = AnalysisOps(repo_root, config)
        result = ops.check(
            paths=[str(p.resolve()) for p in paths] or None,
            checks=list(checks) or None,
        )
    except SpecParityError as e:
        raise click.ClickException(str(e)) from e
    finally:
        clear_run_id()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_text(result, repo_root)

    if result.total_diagnostics:
        ctx.exit(1)
