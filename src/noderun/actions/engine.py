# noderun/actions/engine.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from noderun.actions.context import File
from noderun.providers.depset import Depset

log = logging.getLogger("noderun.engine")


@dataclass(frozen=True)
class ActionSubmission:
    """
    A fully planned process invocation, as handed to an execution engine.

    Invariants:
    - inputs covers everything the process may read
    - outputs covers everything the engine must find afterwards
    """

    label: str
    mnemonic: str
    executable: File
    inputs: Depset
    outputs: Tuple[File, ...]
    arguments: Tuple[str, ...]
    env: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def argv(self) -> List[str]:
        return [self.executable.path, *self.arguments]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "mnemonic": self.mnemonic,
            "executable": self.executable.path,
            "inputs": sorted(f.path for f in self.inputs),
            "outputs": [f.path for f in self.outputs],
            "arguments": list(self.arguments),
            "env": dict(sorted(self.env.items())),
            "options": self.options,
        }


class ExecutionEngine(Protocol):
    def write_file(self, output: File, content: str) -> None:
        """Materialise a generated file (e.g. a manifest)."""

    def submit(self, action: ActionSubmission) -> None:
        """Schedule and run one action."""


class RecordingEngine:
    """
    Keeps writes and submissions in memory. Used for planning (the
    `plan` command) and in tests.
    """

    def __init__(self) -> None:
        self.files: Dict[str, str] = {}
        self.actions: List[ActionSubmission] = []

    def write_file(self, output: File, content: str) -> None:
        log.debug("write %s (%d bytes)", output.path, len(content))
        self.files[output.path] = content

    def submit(self, action: ActionSubmission) -> None:
        log.info("planned %s for %s", action.mnemonic, action.label)
        self.actions.append(action)

    @property
    def last(self) -> Optional[ActionSubmission]:
        return self.actions[-1] if self.actions else None
