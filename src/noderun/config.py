# noderun/config.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from noderun.actions.context import (
    Actions,
    BuildConfiguration,
    ExecutableBinding,
    File,
    Label,
    RuleContext,
)
from noderun.actions.engine import ActionSubmission, ExecutionEngine
from noderun.actions.run_node import run_node
from noderun.errors import BuildConfigurationError
from noderun.providers.depset import Depset
from noderun.providers.info import (
    DefaultInfo,
    ExternalNpmPackageInfo,
    LinkablePackageInfo,
    Target,
    make_target,
    node_runtime_deps_info,
)
from noderun.schemas.models import BuildFile, TargetModel

log = logging.getLogger("noderun.config")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_build_file(path: Path) -> BuildFile:
    """
    Read a YAML build file:

      workspace: my_wksp
      defines: {FOO: bar}
      targets:
        "@npm//typescript":
          files: [external/npm/node_modules/typescript/lib/tsc.js]
          external_package: {workspace: npm}
        "//tools:tsc":
          executable: tools/tsc.sh
          runtime_deps: {data: ["@npm//typescript"]}
      rule:
        label: //app:compile
        executables: {compiler: "//tools:tsc"}
      run:
        executable: compiler
        arguments: [--outDir, bazel-out/bin/app]
    """
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise FileNotFoundError(path)

    with path.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise BuildConfigurationError(f"{path}: malformed YAML\n{e}") from e
    if not isinstance(raw, dict):
        raise BuildConfigurationError(f"{path}: build file must be a mapping")
    return BuildFile.model_validate(raw)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

class _TargetResolver:
    """Materialises Targets on demand; runtime_deps may reference others."""

    def __init__(self, models: Dict[str, TargetModel]) -> None:
        self.models = models
        self.resolved: Dict[str, Target] = {}
        self.in_progress: Set[str] = set()

    def get(self, label: str) -> Target:
        if label in self.resolved:
            return self.resolved[label]
        if label not in self.models:
            raise BuildConfigurationError(f"Unknown target '{label}'")
        if label in self.in_progress:
            raise BuildConfigurationError(f"Dependency cycle through '{label}'")

        self.in_progress.add(label)
        try:
            target = self._build(label, self.models[label])
        finally:
            self.in_progress.discard(label)

        self.resolved[label] = target
        return target

    def get_all(self, labels: List[str]) -> List[Target]:
        return [self.get(lbl) for lbl in labels]

    def _build(self, label: str, m: TargetModel) -> Target:
        files = Depset(direct=[File(p) for p in m.files])
        providers: List[Any] = [DefaultInfo(files=files)]

        if m.external_package:
            providers.append(
                ExternalNpmPackageInfo(
                    workspace=m.external_package.workspace,
                    path=m.external_package.path,
                    sources=files,
                )
            )
        if m.linkable_package:
            providers.append(
                LinkablePackageInfo(
                    package_name=m.linkable_package.package_name,
                    path=m.linkable_package.path,
                )
            )
        if m.runtime_deps:
            rd = m.runtime_deps
            direct = [File(m.executable)] if m.executable else []
            providers.append(
                node_runtime_deps_info(
                    data=self.get_all(rd.data),
                    deps=self.get_all(rd.deps),
                    pkgs=None if rd.pkgs is None else self.get_all(rd.pkgs),
                    direct_files=direct + list(files),
                )
            )
        return make_target(label, *providers)


# ---------------------------------------------------------------------------
# Context + run
# ---------------------------------------------------------------------------

def build_context(build_file: BuildFile, engine: ExecutionEngine) -> RuleContext:
    resolver = _TargetResolver(build_file.targets)

    configuration = BuildConfiguration(
        compilation_mode=build_file.compilation_mode,
        bin_dir=build_file.bin_dir,
        defines=build_file.defines,
        default_shell_env=build_file.action_env,
    )
    label = Label.parse(build_file.rule.label)

    executables: Dict[str, ExecutableBinding] = {}
    for attr, target_label in build_file.rule.executables.items():
        model = build_file.targets.get(target_label)
        if model is None:
            raise BuildConfigurationError(
                f"Executable attribute '{attr}' points at unknown target '{target_label}'"
            )
        if not model.executable:
            raise BuildConfigurationError(
                f"Target '{target_label}' (attribute '{attr}') is not executable"
            )
        executables[attr] = ExecutableBinding(
            target=resolver.get(target_label),
            artifact=File(model.executable),
        )

    return RuleContext(
        label=label,
        workspace_name=build_file.workspace,
        configuration=configuration,
        actions=Actions(engine, label, configuration.bin_dir),
        data=resolver.get_all(build_file.rule.data),
        deps=resolver.get_all(build_file.rule.deps),
        executables=executables,
    )


def run_build_file(build_file: BuildFile, engine: ExecutionEngine) -> ActionSubmission:
    """Perform the build file's `run` block through run_node."""
    ctx = build_context(build_file, engine)
    r = build_file.run

    def declared(name: Optional[str]) -> Optional[File]:
        return ctx.actions.declare_file(name) if name else None

    kwargs: Dict[str, Any] = {
        "outputs": [ctx.actions.declare_file(o) for o in r.outputs],
        "env": dict(r.env),
        "configuration_env_vars": list(r.configuration_env_vars),
        "stdout": declared(r.stdout),
        "stderr": declared(r.stderr),
        "exit_code_out": declared(r.exit_code_out),
        "link_workspace_root": r.link_workspace_root,
        "mnemonic": r.mnemonic,
    }
    if r.progress_message:
        kwargs["progress_message"] = r.progress_message

    log.debug("running %s from build file for %s", r.executable, ctx.label)
    return run_node(
        ctx,
        [File(p) for p in r.inputs],
        list(r.arguments),
        r.executable,
        **kwargs,
    )
