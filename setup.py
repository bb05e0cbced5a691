from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/noderun").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".")}

setup(
    name="node-run",
    version="0.1.0",
    description="Run node programs against a module mappings manifest instead of a node_modules tree",
    python_requires=">=3.9",
    include_package_data=True,
    package_data={"noderun": ["templates/*.j2"]},
    install_requires=[
        "typer>=0.9",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "Jinja2>=3.0",
        "jsonschema>=4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "noderun=noderun.cli:app",
            "noderun-launch=noderun.launcher:main",
        ],
    },
    **pkg_args
)
