"""In-memory ontology graph.

Built once per analysis batch. Every list it hands out is sorted by id, so
two graphs built from the same tags iterate identically regardless of the
order the store returned them in.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from semtag.core.errors import OntologyError

BRANCH_MAX_HOPS = 6


@dataclass(frozen=True)
class OntologyNode:
    id: str
    name: str
    kind: str
    description: str = ""
    parent_id: str | None = None
    aliases: tuple[str, ...] = field(default_factory=tuple)


class OntologyGraph:
    """Parent/child maps, memoized depths and sorted roots for a tag forest.

    Construction validates the forest: duplicate ids, dangling parents and
    parent cycles raise OntologyError instead of being silently dropped.
    """

    def __init__(self, nodes: Iterable[OntologyNode]) -> None:
        by_id: dict[str, OntologyNode] = {}
        for node in nodes:
            if not node.id:
                raise OntologyError.empty_id(node.name)
            if node.id in by_id:
                raise OntologyError.duplicate_id(node.id)
            by_id[node.id] = node

        self._by_id = dict(sorted(by_id.items()))
        self._children: dict[str, list[str]] = {}
        for node in self._by_id.values():
            if node.parent_id is None:
                continue
            if node.parent_id not in self._by_id:
                raise OntologyError.unknown_parent(node.id, node.parent_id)
            self._children.setdefault(node.parent_id, []).append(node.id)
        for kids in self._children.values():
            kids.sort()

        self._roots = sorted(n.id for n in self._by_id.values() if n.parent_id is None)
        self._depth: dict[str, int] = {}
        for node_id in self._by_id:
            self._resolve_depth(node_id)
        self._max_depth = max(self._depth.values(), default=0)

    def _resolve_depth(self, node_id: str) -> int:
        if node_id in self._depth:
            return self._depth[node_id]

        # Walk up until a root or an already-resolved ancestor
        chain: list[str] = []
        seen: set[str] = set()
        cur: str | None = node_id
        base = -1
        while cur is not None:
            if cur in self._depth:
                base = self._depth[cur]
                break
            if cur in seen:
                cycle_start = chain.index(cur)
                raise OntologyError.cycle([*chain[cycle_start:], cur])
            seen.add(cur)
            chain.append(cur)
            cur = self._by_id[cur].parent_id

        for offset, ancestor in enumerate(reversed(chain), start=1):
            self._depth[ancestor] = base + offset
        return self._depth[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[OntologyNode]:
        return iter(self._by_id.values())

    @property
    def nodes(self) -> list[OntologyNode]:
        return list(self._by_id.values())

    @property
    def roots(self) -> list[str]:
        return list(self._roots)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def parents_with_children(self) -> list[str]:
        return sorted(self._children)

    def get(self, node_id: str) -> OntologyNode | None:
        return self._by_id.get(node_id)

    def children(self, node_id: str) -> list[str]:
        return list(self._children.get(node_id, ()))

    def depth(self, node_id: str) -> int:
        """Depth of a node; 0 for roots and for ids not in the graph."""
        return self._depth.get(node_id, 0)

    def branch_of(self, node_id: str) -> str:
        """Top-level branch containing a node.

        Returns the ancestor directly below the root (a root maps to
        itself). Walks at most BRANCH_MAX_HOPS levels.
        """
        cur = node_id
        prev = node_id
        for _ in range(BRANCH_MAX_HOPS):
            node = self._by_id.get(cur)
            if node is None or node.parent_id is None:
                return prev
            prev = cur
            cur = node.parent_id
        return prev
