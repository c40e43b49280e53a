"""Maven dependency resolution through Coursier.

Resolution produces a graph of coordinates from one of two sources:

1. Online: a fresh Coursier resolve of the requested coordinates, carrying
   each coordinate's exclusions.
2. Offline: the committed lockfile of the target's JVM resolve, without any
   network resolution.

Either way the graph is then walked by `DependencyGraph.select`, which applies
the exclusions itself, and the selected jars are fetched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pants.engine.fs import PathGlobs
from pants.engine.intrinsics import get_digest_contents, path_globs_to_digest
from pants.engine.rules import collect_rules, concurrently, implicitly, rule
from pants.jvm.resolve.common import ArtifactRequirement, ArtifactRequirements, Coordinate
from pants.jvm.resolve.coursier_fetch import (
    CoursierLockfileEntry,
    CoursierResolvedLockfile,
    coursier_fetch_one_coord,
    coursier_resolve_lockfile,
)
from pants.jvm.subsystems import JvmSubsystem
from pants.util.logging import LogLevel
from pants.util.strutil import pluralize

from pants_backend_springboot_itest.exceptions import DependencyResolutionError
from pants_backend_springboot_itest.utils.dependency_graph import DependencyGraph, GraphNode
from pants_backend_springboot_itest.utils.maven import (
    Exclusion,
    MavenCoordinate,
    MavenDependency,
    ResolvedArtifact,
    Scope,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MavenResolveRequest:
    """Request to resolve Maven dependencies to artifact files."""

    dependencies: tuple[MavenDependency, ...]
    resolve_name: str
    transitive: bool = True
    offline: bool = False
    global_exclusions: tuple[Exclusion, ...] = ()


@dataclass(frozen=True)
class ResolvedArtifacts:
    artifacts: tuple[ResolvedArtifact, ...]

    @property
    def coordinates(self) -> tuple[MavenCoordinate, ...]:
        return tuple(artifact.coordinate for artifact in self.artifacts)


def to_maven_coordinate(coord: Coordinate) -> MavenCoordinate:
    return MavenCoordinate(
        group_id=coord.group,
        artifact_id=coord.artifact,
        version=coord.version,
        packaging=coord.packaging or "jar",
        classifier=coord.classifier,
    )


def to_artifact_requirement(dependency: MavenDependency) -> ArtifactRequirement:
    coordinate = dependency.coordinate
    if not coordinate.version:
        raise DependencyResolutionError(
            f"Cannot resolve {coordinate.to_canonical_form()}: no version given"
        )
    excludes = frozenset(exclusion.to_spec() for exclusion in dependency.exclusions)
    return ArtifactRequirement(
        coordinate=Coordinate(
            group=coordinate.group_id,
            artifact=coordinate.artifact_id,
            version=coordinate.version,
            packaging=coordinate.packaging,
            classifier=coordinate.classifier,
        ),
        excludes=excludes or None,
    )


def lockfile_graph(lockfile: CoursierResolvedLockfile) -> DependencyGraph:
    return DependencyGraph(
        GraphNode(
            coordinate=to_maven_coordinate(entry.coord),
            direct_dependencies=tuple(
                to_maven_coordinate(dep) for dep in entry.direct_dependencies
            ),
        )
        for entry in lockfile.entries
    )


def select_lockfile_entries(
    lockfile: CoursierResolvedLockfile, request: MavenResolveRequest
) -> list[tuple[CoursierLockfileEntry, Scope]]:
    """Lockfile entries to fetch for `request`, each with its scope.

    Roots keep their requested scope; everything pulled in transitively is
    a runtime dependency.
    """
    graph = lockfile_graph(lockfile)
    selected = graph.select(
        request.dependencies,
        transitive=request.transitive,
        global_exclusions=request.global_exclusions,
    )

    entries_by_key = {
        to_maven_coordinate(entry.coord).exclusion_key: entry for entry in lockfile.entries
    }
    root_scopes: dict[tuple, Scope] = {}
    for dependency in request.dependencies:
        node = graph.find(dependency.coordinate)
        if node is not None:
            root_scopes.setdefault(node.coordinate.exclusion_key, dependency.scope)

    return [
        (entries_by_key[c.exclusion_key], root_scopes.get(c.exclusion_key, Scope.RUNTIME))
        for c in selected
    ]


@rule(desc="Resolve Maven dependencies", level=LogLevel.DEBUG)
async def resolve_maven_dependencies(
    request: MavenResolveRequest,
    jvm: JvmSubsystem,
) -> ResolvedArtifacts:
    if not request.dependencies:
        return ResolvedArtifacts(())

    if request.offline:
        lockfile_path = jvm.resolves.get(request.resolve_name)
        if lockfile_path is None:
            raise DependencyResolutionError(
                f"Offline resolution needs a lockfile, but the JVM resolve "
                f"'{request.resolve_name}' is not configured."
            )
        lockfile_digest = await path_globs_to_digest(PathGlobs([lockfile_path]))
        lockfile_contents = await get_digest_contents(lockfile_digest)
        if not lockfile_contents:
            raise DependencyResolutionError(
                f"Offline resolution needs a lockfile, but {lockfile_path} does not exist."
            )
        lockfile = CoursierResolvedLockfile.from_serialized(lockfile_contents[0].content)
    else:
        requirements = ArtifactRequirements(
            to_artifact_requirement(dependency) for dependency in request.dependencies
        )
        lockfile = await coursier_resolve_lockfile(requirements, **implicitly())

    selected = select_lockfile_entries(lockfile, request)
    logger.debug(
        f"Fetching {pluralize(len(selected), 'artifact')} for "
        f"{pluralize(len(request.dependencies), 'dependency')}"
    )

    classpath_entries = await concurrently(
        coursier_fetch_one_coord(entry, **implicitly()) for entry, _ in selected
    )
    contents = await concurrently(
        get_digest_contents(classpath_entry.digest) for classpath_entry in classpath_entries
    )

    artifacts = []
    for (entry, scope), file_contents in zip(selected, contents):
        if not file_contents:
            raise DependencyResolutionError(f"No file was fetched for {entry.coord.to_coord_str()}")
        coordinate = to_maven_coordinate(entry.coord)
        artifacts.append(
            ResolvedArtifact(
                coordinate=coordinate,
                scope=scope,
                file_name=coordinate.file_name,
                content=file_contents[0].content,
            )
        )
    return ResolvedArtifacts(tuple(artifacts))


def rules():
    return collect_rules()
