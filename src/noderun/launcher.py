"""
noderun | launcher.py

Process-side half of the flag contract injected by run_node.

    noderun-launch [--bazel_* flags] program [args...]

The --bazel_* flags may appear anywhere and are removed before the program
runs. The manifest path is handed to the program through
BAZEL_NODE_MODULES_MANIFEST; resolving modules from it is the program's
job.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import jsonschema

from noderun.actions.run_node import (
    CAPTURE_EXIT_CODE_FLAG,
    CAPTURE_STDERR_FLAG,
    CAPTURE_STDOUT_FLAG,
    MANIFEST_FLAG,
)
from noderun.linker.manifest import MANIFEST_SCHEMA

MANIFEST_ENV = "BAZEL_NODE_MODULES_MANIFEST"
CANNOT_START_EXIT_CODE = 127

log = logging.getLogger("noderun.launcher")


@dataclass
class LauncherOptions:
    manifest: Optional[Path] = None
    stdout: Optional[Path] = None
    stderr: Optional[Path] = None
    exit_code: Optional[Path] = None


_FLAG_FIELDS = {
    MANIFEST_FLAG: "manifest",
    CAPTURE_STDOUT_FLAG: "stdout",
    CAPTURE_STDERR_FLAG: "stderr",
    CAPTURE_EXIT_CODE_FLAG: "exit_code",
}


def parse_launcher_args(argv: Sequence[str]) -> Tuple[LauncherOptions, List[str]]:
    opts = LauncherOptions()
    remaining: List[str] = []
    for arg in argv:
        flag, sep, value = arg.partition("=")
        if sep and flag in _FLAG_FIELDS:
            if not value:
                raise ValueError(f"{flag} requires a path")
            setattr(opts, _FLAG_FIELDS[flag], Path(value))
        else:
            remaining.append(arg)
    return opts, remaining


def load_manifest(path: Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Missing module mappings manifest: {path}")
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON") from e
    jsonschema.validate(instance=doc, schema=MANIFEST_SCHEMA)
    return doc


def launch(argv: Sequence[str], env: Optional[Dict[str, str]] = None) -> int:
    """
    Run the wrapped program and return the exit status for the launcher.

    With an exit-code capture file the real status is written there and
    0 is returned.
    """
    opts, command = parse_launcher_args(argv)
    if not command:
        raise ValueError("No program given to launch")

    child_env = dict(os.environ if env is None else env)
    if opts.manifest is not None:
        doc = load_manifest(opts.manifest)
        child_env[MANIFEST_ENV] = str(opts.manifest)
        log.debug("manifest %s: root=%r", opts.manifest, doc["root"])

    with ExitStack() as stack:
        stdout = stderr = None
        if opts.stdout is not None:
            opts.stdout.parent.mkdir(parents=True, exist_ok=True)
            stdout = stack.enter_context(opts.stdout.open("wb"))
        if opts.stderr is not None:
            opts.stderr.parent.mkdir(parents=True, exist_ok=True)
            stderr = stack.enter_context(opts.stderr.open("wb"))

        try:
            proc = subprocess.run(command, env=child_env, stdout=stdout, stderr=stderr)
            returncode = proc.returncode
        except OSError as exc:
            if opts.exit_code is None:
                raise
            # same status a shell reports for a command it cannot run
            log.error("cannot start %s: %s", command[0], exc)
            if stderr is not None:
                stderr.write(f"noderun-launch: {exc}\n".encode("utf-8"))
            returncode = CANNOT_START_EXIT_CODE

    if opts.exit_code is not None:
        opts.exit_code.parent.mkdir(parents=True, exist_ok=True)
        opts.exit_code.write_text(str(returncode), encoding="utf-8")
        return 0

    return returncode


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        return launch(args)
    except (ValueError, OSError, jsonschema.ValidationError) as exc:
        print(f"noderun-launch: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
