"""Engine-independent steps of the packaging pipeline.

The packaging run is a strict linear sequence:

    render descriptors -> anchor version -> optional scopes (skippable)
    -> exclude -> final transitive resolve -> exclude loader file
    -> assemble archive -> build environment

Resolution itself happens in the engine; every step in between is a pure
function here, so the policy can be exercised without a resolver.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Sequence

from pants_backend_springboot_itest.config import LOADER_FILE_PATTERN
from pants_backend_springboot_itest.exceptions import AnchorVersionError, NoDependenciesError
from pants_backend_springboot_itest.utils.exclusions import (
    common_exclusions,
    exclude_files_matching,
    exclusions_for_dependency,
    filter_dependencies,
)
from pants_backend_springboot_itest.utils.itest_config import ITestConfig
from pants_backend_springboot_itest.utils.maven import (
    RUNTIME_SCOPES,
    Exclusion,
    MavenCoordinate,
    MavenDependency,
    ResolvedArtifact,
    Scope,
)
from pants_backend_springboot_itest.utils.pom import PomModel

logger = logging.getLogger(__name__)


def requested_scopes(config: ITestConfig) -> tuple[Scope, ...]:
    """Optional scopes to import from the module descriptor, in order."""
    scopes = []
    if config.include_test_dependencies or config.unit_test_enabled:
        scopes.append(Scope.TEST)
    if config.include_provided_dependencies:
        scopes.append(Scope.PROVIDED)
    return tuple(scopes)


def scoped_dependencies_xml(
    module_pom: PomModel,
    scopes: Iterable[Scope],
    managed_by: Sequence[PomModel] = (),
) -> str:
    """Dependency block injected into the resolver descriptor template."""
    return "".join(module_pom.dependency_block(scope, managed_by) for scope in scopes)


def collect_requirements(
    pom: PomModel,
    scopes: Iterable[Scope],
    extra: Sequence[MavenDependency] = (),
) -> list[MavenDependency]:
    """Dependencies of `pom` in `scopes`, followed by `extra`.

    Raises:
        NoDependenciesError: if there is nothing to resolve.
    """
    scopes = tuple(scopes)
    dependencies = [*pom.dependencies_for(scopes), *extra]
    if not dependencies:
        names = ", ".join(scope.value for scope in scopes)
        raise NoDependenciesError(f"No dependencies declared for scopes: {names}")
    return dependencies


def anchor_candidates(
    module_pom: PomModel,
    anchor_group: str,
    inherited_properties: Mapping[str, str] | None = None,
    managed_by: Sequence[PomModel] = (),
) -> tuple[MavenDependency, ...]:
    """Runtime dependencies of the module on the anchor group, versions pinned.

    Versions come from the module descriptor or the dependency management of
    `managed_by`. When the module belongs to the anchor group itself, a
    dependency still lacking a version gets the module's own version, which
    it shares with the rest of the family. Dependencies whose version stays
    unknown are left out.
    """
    module_version = None
    if module_pom.group_id == anchor_group:
        module_version = module_pom.version

    candidates = []
    for dep in module_pom.dependencies_for(RUNTIME_SCOPES, inherited_properties, managed_by):
        coordinate = dep.coordinate
        if coordinate.group_id != anchor_group:
            continue
        version = coordinate.version
        if not version or "${" in version:
            version = module_version
        if not version or "${" in version:
            logger.debug(f"No version known for anchor dependency {coordinate}")
            continue
        candidates.append(replace(dep, coordinate=coordinate.with_version(version)))
    return tuple(candidates)


def find_anchor_version(
    coordinates: Iterable[MavenCoordinate], anchor_group: str
) -> str | None:
    """Version of the first resolved coordinate belonging to `anchor_group`."""
    for coordinate in coordinates:
        if coordinate.group_id == anchor_group and coordinate.version:
            return coordinate.version
    return None


def require_anchor_version(version: str | None, module_name: str) -> str:
    if not version:
        raise AnchorVersionError(
            f"Cannot determine the current version of the {module_name} component"
        )
    logger.debug(f"Resolved version: {version}")
    return version


def additional_dependencies(config: ITestConfig, anchor_version: str) -> list[MavenDependency]:
    """The configured extra coordinates, requested in the runtime scope.

    Coordinates written without a version get the anchor version.
    """
    dependencies = []
    for canonical_form in config.additional_dependencies:
        coordinate = MavenCoordinate.parse(canonical_form)
        if not coordinate.version:
            coordinate = coordinate.with_version(anchor_version)
        dependencies.append(MavenDependency(coordinate, Scope.RUNTIME))
    return dependencies


def scoped_module_dependencies(
    config: ITestConfig,
    resolved: Iterable[ResolvedArtifact],
    module_pom: PomModel,
) -> list[MavenDependency]:
    """Turn the optional-scope resolution into runtime dependencies.

    Logging artifacts and user exclusions are discarded. Each survivor
    carries the common exclusions merged with those the module descriptor
    declares for it.
    """
    common = common_exclusions(config.maven_exclusions)
    coordinates = filter_dependencies(
        (artifact.coordinate for artifact in resolved),
        user_exclusions=config.maven_exclusions,
    )
    return [
        MavenDependency(
            coordinate,
            Scope.RUNTIME,
            exclusions_for_dependency(coordinate, module_pom, common),
        )
        for coordinate in coordinates
    ]


def final_roots(
    application_pom: PomModel,
    module_dependencies: Sequence[MavenDependency],
) -> list[MavenDependency]:
    """Runtime dependencies of the application descriptor plus the module's."""
    return [*application_pom.dependencies_for(RUNTIME_SCOPES), *module_dependencies]


def final_exclusions(config: ITestConfig) -> tuple[Exclusion, ...]:
    return common_exclusions(config.maven_exclusions)


def screen_final_coordinates(
    config: ITestConfig, coordinates: Iterable[MavenCoordinate]
) -> list[MavenCoordinate]:
    """Drop denylisted and user-excluded artifacts from the final selection."""
    return filter_dependencies(
        coordinates, user_exclusions=config.maven_exclusions, kind="dependency"
    )


def library_files(artifacts: Iterable[ResolvedArtifact]) -> list[tuple[str, bytes]]:
    """File name and content of each artifact to embed, loader jar removed.

    The boot loader is part of the outer archive already, so it must not be
    embedded a second time.
    """
    contents: dict[str, bytes] = {}
    names: list[str] = []
    for artifact in artifacts:
        if artifact.file_name in contents:
            continue
        names.append(artifact.file_name)
        contents[artifact.file_name] = artifact.content

    exclude_files_matching(names, LOADER_FILE_PATTERN)
    return [(name, contents[name]) for name in names]
