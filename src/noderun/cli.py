from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from noderun import launcher
from noderun.actions.engine import RecordingEngine
from noderun.actions.local import LocalEngine
from noderun.config import build_context, load_build_file, run_build_file
from noderun.errors import ActionFailedError, BuildConfigurationError
from noderun.linker.roots import node_modules_root_for

app = typer.Typer(help="noderun CLI")

LOGGER_NAME = "noderun"


def configure_logging(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[noderun] %(message)s"))
        logger.addHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


def _fail(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _load(build_file: Path):
    try:
        return load_build_file(build_file)
    except FileNotFoundError:
        _fail(f"Build file not found: {build_file}")
    except (BuildConfigurationError, ValidationError) as exc:
        _fail(f"Invalid build file {build_file}:\n{exc}")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging(verbose)


# -----------------------------
# Planning
# -----------------------------

@app.command()
def plan(
    build_file: Path = typer.Argument(..., help="YAML build file"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the plan JSON here"),
):
    """Plan the build file's action without running it; print it as JSON."""
    build = _load(build_file)
    engine = RecordingEngine()
    try:
        action = run_build_file(build, engine)
    except BuildConfigurationError as exc:
        _fail(str(exc))

    doc = {
        "action": action.to_dict(),
        "files": {p: json.loads(c) for p, c in engine.files.items()},
    }
    text = json.dumps(doc, indent=2)
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n")
        typer.secho(f"Wrote {out}", fg=typer.colors.GREEN)
    else:
        typer.echo(text)


@app.command()
def root(build_file: Path = typer.Argument(..., help="YAML build file")):
    """Print the node_modules root implied by the rule's data and deps."""
    build = _load(build_file)
    try:
        ctx = build_context(build, RecordingEngine())
        typer.echo(node_modules_root_for(ctx))
    except BuildConfigurationError as exc:
        _fail(str(exc))


# -----------------------------
# Execution
# -----------------------------

@app.command()
def run(
    build_file: Path = typer.Argument(..., help="YAML build file"),
    exec_root: Path = typer.Option(Path("."), "--exec-root", "-C", help="Directory actions run in"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the action script only"),
):
    """Run the build file's action locally."""
    build = _load(build_file)
    engine = LocalEngine(exec_root, dry_run=dry_run)
    try:
        action = run_build_file(build, engine)
    except BuildConfigurationError as exc:
        _fail(str(exc))
    except ActionFailedError as exc:
        _fail(str(exc))

    if dry_run:
        typer.echo("\n--- ACTION DRY RUN ---\n")
        typer.echo(engine.last_preview())
        return
    typer.secho(f"{action.mnemonic} for {action.label} done", fg=typer.colors.GREEN)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def launch(ctx: typer.Context):
    """Run a program, honouring the --bazel_* manifest and capture flags."""
    code = launcher.main(list(ctx.args))
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
