"""
Module-resolution linker: root computation, manifests and argument lists.
"""
from .args import Args, add_arg
from .roots import compute_node_modules_root, node_modules_root_for
from .manifest import MANIFEST_SCHEMA, write_node_modules_manifest
