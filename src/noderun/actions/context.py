# noderun/actions/context.py

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from noderun.errors import BuildConfigurationError, ExecutableReferenceError
from noderun.linker.args import expand_arguments
from noderun.providers.depset import Depset
from noderun.providers.info import Target

if TYPE_CHECKING:
    from noderun.actions.engine import ActionSubmission, ExecutionEngine


# ---------------------------------------------------------------------------
# Files and labels
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class File:
    """A build artifact, addressed by its path relative to the exec root."""

    path: str

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path)


@dataclass(frozen=True)
class Label:
    workspace: str
    package: str
    name: str

    @classmethod
    def parse(cls, text: str, default_workspace: str = "") -> "Label":
        """
        Accepts "@ws//pkg:name", "//pkg:name" and "//pkg" (name = last
        package segment).
        """
        s = text.strip()
        workspace = default_workspace
        if s.startswith("@"):
            if "//" not in s:
                raise BuildConfigurationError(f"Invalid label '{text}'")
            workspace, s = s[1:].split("//", 1)
            s = "//" + s
        if not s.startswith("//"):
            raise BuildConfigurationError(f"Invalid label '{text}': expected '//'")
        body = s[2:]
        if ":" in body:
            package, name = body.split(":", 1)
        else:
            package, name = body, body.rsplit("/", 1)[-1]
        if not name:
            raise BuildConfigurationError(f"Invalid label '{text}': empty target name")
        return cls(workspace=workspace, package=package, name=name)

    def __str__(self) -> str:
        prefix = f"@{self.workspace}" if self.workspace else ""
        return f"{prefix}//{self.package}:{self.name}"


# ---------------------------------------------------------------------------
# Build-wide configuration (passed in, never read from os.environ)
# ---------------------------------------------------------------------------

def _frozen(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class BuildConfiguration:
    """
    compilation_mode: fastbuild | dbg | opt
    defines:          values from --define=FOO=BAR
    default_shell_env: values from --action_env=FOO=BAR
    """

    compilation_mode: str = "fastbuild"
    bin_dir: str = "bazel-out/bin"
    defines: Mapping[str, str] = field(default_factory=dict)
    default_shell_env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.compilation_mode not in {"fastbuild", "dbg", "opt"}:
            raise BuildConfigurationError(
                f"Invalid compilation_mode '{self.compilation_mode}'. "
                "Expected 'fastbuild', 'dbg' or 'opt'."
            )
        object.__setattr__(self, "defines", _frozen(self.defines))
        object.__setattr__(self, "default_shell_env", _frozen(self.default_shell_env))

    @property
    def var(self) -> Mapping[str, str]:
        merged: Dict[str, str] = {
            "COMPILATION_MODE": self.compilation_mode,
            "BINDIR": self.bin_dir,
        }
        merged.update(self.defines)
        return MappingProxyType(merged)


# ---------------------------------------------------------------------------
# Executable lookup
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExecutableBinding:
    """An executable attribute: the target (for providers) and its artifact."""

    target: Target
    artifact: File


# ---------------------------------------------------------------------------
# Action factory
# ---------------------------------------------------------------------------

class Actions:
    """Declares files and forwards writes/runs to an execution engine."""

    def __init__(self, engine: "ExecutionEngine", label: Label, bin_dir: str) -> None:
        self.engine = engine
        self.label = label
        self.bin_dir = bin_dir

    def declare_file(self, name: str) -> File:
        return File(posixpath.join(self.bin_dir, self.label.package, name))

    def write(self, output: File, content: str) -> None:
        self.engine.write_file(output, content)

    def run(
        self,
        *,
        outputs,
        inputs,
        arguments,
        executable: File,
        env: Optional[Mapping[str, str]] = None,
        mnemonic: Optional[str] = None,
        **options: Any,
    ) -> "ActionSubmission":
        from noderun.actions.engine import ActionSubmission

        action = ActionSubmission(
            label=str(self.label),
            mnemonic=mnemonic or "Action",
            executable=executable,
            inputs=Depset.coerce(inputs),
            outputs=tuple(outputs),
            arguments=tuple(expand_arguments(arguments)),
            env=dict(env or {}),
            options=dict(options),
        )
        self.engine.submit(action)
        return action


# ---------------------------------------------------------------------------
# Rule context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleContext:
    label: Label
    workspace_name: str
    configuration: BuildConfiguration
    actions: Actions
    data: Tuple[Target, ...] = ()
    deps: Tuple[Target, ...] = ()
    executables: Mapping[str, ExecutableBinding] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "deps", tuple(self.deps))
        object.__setattr__(self, "executables", MappingProxyType(dict(self.executables)))

    @property
    def var(self) -> Mapping[str, str]:
        return self.configuration.var

    @property
    def bin_dir(self) -> str:
        return self.configuration.bin_dir

    def executable(self, name: Any) -> ExecutableBinding:
        """Resolve an executable attribute by its name, e.g. "compiler"."""
        if not isinstance(name, str):
            raise ExecutableReferenceError(
                "run_node requires that executable be provided as a string, "
                "eg. 'my_executable' rather than the executable file itself; "
                f"got {type(name).__name__}"
            )
        try:
            return self.executables[name]
        except KeyError:
            known = ", ".join(sorted(self.executables)) or "<none>"
            raise ExecutableReferenceError(
                f"{self.label} has no executable attribute '{name}' (known: {known})"
            ) from None
