# noderun/actions/local.py

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jinja2

from noderun.actions.context import File
from noderun.actions.engine import ActionSubmission
from noderun.errors import ActionFailedError

Pathish = Union[str, Path]

log = logging.getLogger("noderun.engine")

STATE_DIRNAME = ".noderun"
ACTIONS_DIRNAME = "actions"
ACTION_LOG = "actions.jsonl"
ACTION_TEMPLATE = "action.sh.j2"

TEMPLATE_ROOT = Path(__file__).resolve().parents[1] / "templates"


def _timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


def _command_path(path: str) -> str:
    # bare relative paths would be looked up on PATH by bash
    if os.path.isabs(path) or path.startswith("./") or path.startswith("../"):
        return path
    return "./" + path


class LocalEngine:
    """
    Runs actions as bash scripts directly inside ``exec_root``.

    Every action is rendered to .noderun/actions/<mnemonic>-<n>.sh and
    logged to .noderun/actions.jsonl. There is no sandbox and no cache:
    declared inputs are expected to already exist under the exec root.
    """

    jenv = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_ROOT)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    jenv.filters["shquote"] = lambda v: shlex.quote(str(v))

    def __init__(self, exec_root: Pathish, dry_run: bool = False) -> None:
        self.exec_root = Path(exec_root).resolve()
        self.dry_run = dry_run
        self.counter = 0
        self.previews: list[str] = []
        self.preview_files: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    @property
    def state_dir(self) -> Path:
        return self.exec_root / STATE_DIRNAME

    def resolve(self, f: File) -> Path:
        return self.exec_root / f.path

    # ------------------------------------------------------------------
    # Engine protocol
    # ------------------------------------------------------------------
    def write_file(self, output: File, content: str) -> None:
        if self.dry_run:
            log.debug("dry run: not writing %s", output.path)
            self.preview_files[output.path] = content
            return
        path = self.resolve(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def render_script(self, action: ActionSubmission) -> str:
        argv = [_command_path(action.executable.path), *action.arguments]
        return self.jenv.get_template(ACTION_TEMPLATE).render(
            label=action.label,
            mnemonic=action.mnemonic,
            exec_root=str(self.exec_root),
            env=sorted(action.env.items()),
            command=" ".join(shlex.quote(a) for a in argv),
        )

    def submit(self, action: ActionSubmission) -> None:
        script_text = self.render_script(action)

        if self.dry_run:
            log.info("dry run: %s for %s", action.mnemonic, action.label)
            self.previews.append(script_text)
            return

        self.counter += 1
        script = self.state_dir / ACTIONS_DIRNAME / f"{action.mnemonic}-{self.counter}.sh"
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(script_text, encoding="utf-8")

        for out in action.outputs:
            self.resolve(out).parent.mkdir(parents=True, exist_ok=True)

        log.info("running %s for %s", action.mnemonic, action.label)
        started = time.monotonic()
        proc = subprocess.run(
            ["bash", str(script)],
            cwd=str(self.exec_root),
            env={"PATH": os.environ.get("PATH", "")},
        )
        elapsed = time.monotonic() - started

        missing = [o.path for o in action.outputs if not self.resolve(o).exists()]
        self._append_record(
            {
                "time": _timestamp(),
                "label": action.label,
                "mnemonic": action.mnemonic,
                "script": str(script.relative_to(self.exec_root)),
                "returncode": proc.returncode,
                "seconds": round(elapsed, 3),
                "missing_outputs": missing,
            }
        )

        if proc.returncode != 0 or missing:
            raise ActionFailedError(action.mnemonic, proc.returncode, missing)

    # ------------------------------------------------------------------
    def _append_record(self, record: Dict[str, Any]) -> None:
        path = self.state_dir / ACTION_LOG
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")

    def read_records(self) -> list[Dict[str, Any]]:
        path = self.state_dir / ACTION_LOG
        if not path.exists():
            return []
        out = []
        with path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(json.loads(line))
        return out

    def last_preview(self) -> Optional[str]:
        return self.previews[-1] if self.previews else None
