# noderun/providers/depset.py

from __future__ import annotations

from typing import Any, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple


class Depset:
    """
    Immutable, deduplicated set built from direct items and child depsets.

    Construction never copies children, so folding a large dependency set
    into a new one costs O(len(direct) + len(transitive)). The flattened
    view is computed once, on first use:

      • children are walked left to right, then the direct items
      • every item is emitted the first time it is seen
      • a child shared by several parents is walked only once
    """

    __slots__ = ("_direct", "_transitive", "_flat", "_members")

    def __init__(
        self,
        direct: Optional[Iterable[Any]] = None,
        transitive: Optional[Iterable["Depset"]] = None,
    ) -> None:
        self._direct: Tuple[Any, ...] = tuple(direct or ())
        children = tuple(transitive or ())
        for child in children:
            if not isinstance(child, Depset):
                raise TypeError(
                    f"Depset transitive entries must be Depsets, got {type(child).__name__}"
                )
        # empty children contribute nothing
        self._transitive: Tuple[Depset, ...] = tuple(c for c in children if c)
        self._flat: Optional[Tuple[Any, ...]] = None
        self._members: Optional[FrozenSet[Any]] = None

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def coerce(cls, value: "Depset | Sequence[Any] | None") -> "Depset":
        """Accept a depset, a plain list/tuple, or None."""
        if value is None:
            return cls()
        if isinstance(value, Depset):
            return value
        if isinstance(value, (list, tuple)):
            return cls(direct=value)
        raise TypeError(
            f"Expected a list or Depset, got {type(value).__name__}"
        )

    # ------------------------------------------------------------------
    # Flattening
    # ------------------------------------------------------------------
    def to_list(self) -> List[Any]:
        if self._flat is None:
            self._flat = self._flatten()
        return list(self._flat)

    def _flatten(self) -> Tuple[Any, ...]:
        seen_items = set()
        seen_nodes = set()
        out: List[Any] = []

        # (node, children_done)
        stack: List[Tuple[Depset, bool]] = [(self, False)]
        while stack:
            node, children_done = stack.pop()
            if children_done:
                for item in node._direct:
                    if item not in seen_items:
                        seen_items.add(item)
                        out.append(item)
                continue

            if id(node) in seen_nodes:
                continue
            seen_nodes.add(id(node))

            if node._flat is not None and node is not self:
                for item in node._flat:
                    if item not in seen_items:
                        seen_items.add(item)
                        out.append(item)
                continue

            stack.append((node, True))
            for child in reversed(node._transitive):
                stack.append((child, False))

        return tuple(out)

    def as_set(self) -> FrozenSet[Any]:
        if self._members is None:
            self._members = frozenset(self.to_list())
        return self._members

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())

    def __len__(self) -> int:
        if self._flat is None:
            self._flat = self._flatten()
        return len(self._flat)

    def __bool__(self) -> bool:
        return bool(self._direct) or bool(self._transitive)

    def __contains__(self, item: Any) -> bool:
        return item in self.as_set()

    def __repr__(self) -> str:
        return f"Depset({self.to_list()!r})"
