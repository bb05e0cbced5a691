# noderun/linker/args.py

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Union


class Args:
    """
    Incrementally built argument list for an action.

    Values are formatted lazily with ``format`` (a %-style pattern such as
    "--out=%s") when the list is expanded.
    """

    def __init__(self) -> None:
        self._items: List[tuple] = []

    def add(self, value: Any, format: Optional[str] = None) -> "Args":
        self._items.append((value, format))
        return self

    def add_all(self, values: Iterable[Any], format_each: Optional[str] = None) -> "Args":
        for v in values:
            self._items.append((v, format_each))
        return self

    def copy(self) -> "Args":
        dup = Args()
        dup._items = list(self._items)
        return dup

    def to_list(self) -> List[str]:
        out = []
        for value, fmt in self._items:
            s = value.path if hasattr(value, "path") else str(value)
            out.append(fmt % s if fmt else s)
        return out

    def __len__(self) -> int:
        return len(self._items)


Arguments = Union[List[Any], Args]


def add_arg(arguments: Arguments, arg: str) -> None:
    """Append ``arg`` to either a plain list or an Args builder."""
    if isinstance(arguments, Args):
        arguments.add(arg)
    elif isinstance(arguments, list):
        arguments.append(arg)
    else:
        raise TypeError(
            f"arguments must be a list or Args, got {type(arguments).__name__}"
        )


def copy_arguments(arguments: Optional[Arguments]) -> Arguments:
    if arguments is None:
        return []
    if isinstance(arguments, Args):
        return arguments.copy()
    if isinstance(arguments, (list, tuple)):
        return list(arguments)
    raise TypeError(
        f"arguments must be a list or Args, got {type(arguments).__name__}"
    )


def expand_arguments(arguments: Arguments) -> List[str]:
    if isinstance(arguments, Args):
        return arguments.to_list()
    return [a.path if hasattr(a, "path") else str(a) for a in arguments]
