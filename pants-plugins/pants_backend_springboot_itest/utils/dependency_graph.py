"""Selection of artifacts from a resolved dependency graph.

A resolver hands back a graph of coordinates and their direct dependencies
(for instance the entries of a Coursier lockfile). Selection walks that graph
from the requested roots, either stopping at the roots or following direct
dependencies breadth-first, and prunes every subtree an exclusion names.

Exclusions are applied here rather than trusted to the resolver, so the same
policy holds whether the graph came from a fresh resolve or from a committed
lockfile.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Sequence

from pants_backend_springboot_itest.exceptions import DependencyResolutionError
from pants_backend_springboot_itest.utils.exclusions import is_excluded
from pants_backend_springboot_itest.utils.maven import (
    Exclusion,
    MavenCoordinate,
    MavenDependency,
)


@dataclass(frozen=True)
class GraphNode:
    coordinate: MavenCoordinate
    direct_dependencies: tuple[MavenCoordinate, ...] = ()


class DependencyGraph:
    """Resolved coordinates indexed by group, artifact, classifier and packaging."""

    def __init__(self, nodes: Iterable[GraphNode]) -> None:
        self._nodes: dict[tuple, GraphNode] = {}
        self._by_key: dict[tuple[str, str], list[GraphNode]] = {}
        for node in nodes:
            self._nodes[node.coordinate.exclusion_key] = node
            self._by_key.setdefault(node.coordinate.key, []).append(node)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, coordinate: MavenCoordinate) -> bool:
        return self.find(coordinate) is not None

    def find(self, coordinate: MavenCoordinate) -> GraphNode | None:
        node = self._nodes.get(coordinate.exclusion_key)
        if node is not None:
            return node
        # Fall back to group:artifact when it identifies a single artifact
        candidates = self._by_key.get(coordinate.key, [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    def select(
        self,
        roots: Sequence[MavenDependency],
        transitive: bool = True,
        global_exclusions: Sequence[Exclusion] = (),
    ) -> list[MavenCoordinate]:
        """Select the artifacts to materialize for `roots`.

        Every root is kept. With `transitive`, the direct dependencies of each
        root are followed breadth-first; a dependency matching the root's own
        exclusions or `global_exclusions` is dropped together with its subtree.
        The result is in first-seen order and holds each artifact once.

        Raises:
            DependencyResolutionError: if a root is not part of the graph.
        """
        selected: dict[tuple, MavenCoordinate] = {}

        for root in roots:
            node = self.find(root.coordinate)
            if node is None:
                raise DependencyResolutionError(
                    f"Dependency {root.coordinate.to_canonical_form()} was not resolved"
                )
            selected.setdefault(node.coordinate.exclusion_key, node.coordinate)
            if not transitive:
                continue

            exclusions = (*root.exclusions, *global_exclusions)
            visited = {node.coordinate.exclusion_key}
            queue = deque(node.direct_dependencies)
            while queue:
                dependency = queue.popleft()
                if is_excluded(dependency, exclusions):
                    continue
                child = self.find(dependency)
                if child is None:
                    raise DependencyResolutionError(
                        f"Transitive dependency {dependency.to_canonical_form()} of "
                        f"{root.coordinate.to_canonical_form()} was not resolved"
                    )
                child_key = child.coordinate.exclusion_key
                if child_key in visited:
                    continue
                visited.add(child_key)
                selected.setdefault(child_key, child.coordinate)
                queue.extend(child.direct_dependencies)

        return list(selected.values())
