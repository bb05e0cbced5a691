from dataclasses import FrozenInstanceError

import pytest

from helpers import npm_pkg, plain
from noderun.actions.context import File
from noderun.providers.depset import Depset
from noderun.providers.info import (
    DefaultInfo,
    ExternalNpmPackageInfo,
    NodeRuntimeDepsInfo,
    Target,
    make_target,
    node_runtime_deps_info,
)


def test_capability_lookup():
    t = npm_pkg("@npm//typescript", "npm", "external/npm/node_modules/typescript/index.js")
    assert ExternalNpmPackageInfo in t
    assert NodeRuntimeDepsInfo not in t
    assert t[ExternalNpmPackageInfo].workspace == "npm"
    assert t.get(NodeRuntimeDepsInfo) is None
    with pytest.raises(KeyError, match="does not provide NodeRuntimeDepsInfo"):
        t[NodeRuntimeDepsInfo]


def test_provider_key_must_match_instance():
    with pytest.raises(TypeError, match="provider keyed by"):
        Target("//a:b", {ExternalNpmPackageInfo: DefaultInfo()})


def test_runtime_deps_are_transitively_closed():
    leaf = plain("//lib:leaf", "lib/leaf.js")
    mid_info = node_runtime_deps_info(data=[leaf], direct_files=[File("lib/mid.js")])
    mid = make_target("//lib:mid", mid_info)
    top = node_runtime_deps_info(data=[mid], deps=[plain("//lib:other", "lib/other.js", "lib/leaf.js")])

    assert top.runtime_files.as_set() == {
        File("lib/leaf.js"),
        File("lib/mid.js"),
        File("lib/other.js"),
    }
    # no duplicates even though leaf.js is reachable twice
    assert len(top.runtime_files) == 3


def test_linked_packages_default_to_data_first_seen_order():
    a = npm_pkg("@npm//a", "npm")
    b = npm_pkg("@npm//b", "npm")
    info = node_runtime_deps_info(data=[b, a, b], deps=[plain("//x:y")])
    assert [t.label for t in info.linked_packages] == ["@npm//b", "@npm//a"]


def test_explicit_pkgs_override_data():
    a = npm_pkg("@npm//a", "npm")
    info = node_runtime_deps_info(data=[plain("//x:y")], pkgs=[a])
    assert info.linked_packages == (a,)


def test_descriptor_is_frozen():
    info = NodeRuntimeDepsInfo(deps=Depset(["f"]))
    with pytest.raises(FrozenInstanceError):
        info.deps = Depset()
