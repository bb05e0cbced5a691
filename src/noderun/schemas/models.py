from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ExternalPackageModel(_Strict):
    # ExternalNpmPackageInfo
    workspace: str
    path: str = ""


class LinkablePackageModel(_Strict):
    # LinkablePackageInfo
    package_name: str
    path: str


class RuntimeDepsModel(_Strict):
    # NodeRuntimeDepsInfo; pkgs defaults to data
    data: List[str] = Field(default_factory=list)
    deps: List[str] = Field(default_factory=list)
    pkgs: Optional[List[str]] = None


class TargetModel(_Strict):
    files: List[str] = Field(default_factory=list)
    executable: Optional[str] = None
    external_package: Optional[ExternalPackageModel] = None
    linkable_package: Optional[LinkablePackageModel] = None
    runtime_deps: Optional[RuntimeDepsModel] = None


class RuleModel(_Strict):
    label: str
    data: List[str] = Field(default_factory=list)
    deps: List[str] = Field(default_factory=list)
    executables: Dict[str, str] = Field(default_factory=dict)


class RunModel(_Strict):
    # outputs / capture files are names declared in the rule's package
    executable: str
    inputs: List[str] = Field(default_factory=list)
    arguments: List[str] = Field(default_factory=list)
    outputs: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    configuration_env_vars: List[str] = Field(default_factory=list)
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    exit_code_out: Optional[str] = None
    link_workspace_root: bool = False
    mnemonic: Optional[str] = None
    progress_message: Optional[str] = None


class BuildFile(_Strict):
    workspace: str = "__main__"
    bin_dir: str = "bazel-out/bin"
    compilation_mode: str = "fastbuild"
    defines: Dict[str, str] = Field(default_factory=dict)
    action_env: Dict[str, str] = Field(default_factory=dict)
    targets: Dict[str, TargetModel] = Field(default_factory=dict)
    rule: RuleModel
    run: RunModel
