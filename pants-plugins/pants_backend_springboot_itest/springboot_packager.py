"""Assembly of Spring Boot nested-jar archives for integration testing.

The rule in this module runs the packaging pipeline for one
`springboot_itest_archive` target:

1. Render the application descriptor (and, when test or provided scopes are
   requested, the dependency-resolver descriptor) from classpath templates
2. Determine the anchor version: pinned property, target field, or a
   non-transitive resolution of the module's own `pom.xml`
3. Resolve the module's test/provided dependencies without transitivity and
   discard logging frameworks and user exclusions
4. Resolve the application descriptor plus every module dependency
   transitively, with the common exclusions
5. Drop the boot loader jar, which the outer harness already provides
6. Assemble the archive and the system properties of the test process

Every step is fail-fast: an error aborts the run and no archive is produced.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from pants.base.build_root import BuildRoot
from pants.base.glob_match_error_behavior import GlobMatchErrorBehavior
from pants.engine.addresses import Addresses
from pants.engine.fs import CreateDigest, Digest, FileContent, MergeDigests, PathGlobs
from pants.engine.internals.graph import transitive_targets
from pants.engine.intrinsics import (
    create_digest,
    get_digest_contents,
    merge_digests,
    path_globs_to_digest,
)
from pants.engine.rules import collect_rules, concurrently, implicitly, rule
from pants.engine.target import TransitiveTargetsRequest
from pants.jvm.classpath import classpath as classpath_get
from pants.jvm.subsystems import JvmSubsystem
from pants.util.frozendict import FrozenDict
from pants.util.logging import LogLevel

from pants_backend_springboot_itest.config import (
    APPLICATION_POM_TEMPLATE,
    MODULE_POM_NAME,
    RESOLVER_POM_TEMPLATE,
)
from pants_backend_springboot_itest.dependency_resolution import (
    MavenResolveRequest,
    resolve_maven_dependencies,
)
from pants_backend_springboot_itest.exceptions import NoDependenciesError
from pants_backend_springboot_itest.subsystems.springboot_itest import SpringBootITestSubsystem
from pants_backend_springboot_itest.target_types import SpringBootITestArchiveFieldSet
from pants_backend_springboot_itest.utils.archive import ClasspathResources, assemble
from pants_backend_springboot_itest.utils.environment import build_environment
from pants_backend_springboot_itest.utils.itest_config import (
    ITestConfig,
    ITestConfigBuilder,
    resolve_anchor_version,
)
from pants_backend_springboot_itest.utils.maven import ResolvedArtifact
from pants_backend_springboot_itest.utils.pipeline import (
    additional_dependencies,
    anchor_candidates,
    collect_requirements,
    final_exclusions,
    final_roots,
    find_anchor_version,
    library_files,
    require_anchor_version,
    requested_scopes,
    scoped_dependencies_xml,
    scoped_module_dependencies,
    screen_final_coordinates,
)
from pants_backend_springboot_itest.utils.pom import PomPropertyResolver, parse_pom
from pants_backend_springboot_itest.utils.templates import (
    application_pom_path,
    render_application_pom,
    render_resolver_pom,
    resolver_pom_path,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpringBootPackageRequest:
    field_set: SpringBootITestArchiveFieldSet
    output_path: str


@dataclass(frozen=True)
class SpringBootClassPath:
    """The assembled archive and what the test process needs alongside it.

    Attributes:
        digest: The archive at `archive_path` plus the rendered descriptors
        archive_path: Path of the archive inside `digest`
        descriptor_paths: Paths of the rendered descriptors inside `digest`
        system_properties: System properties to pass to the test process
        library_files: File names embedded under BOOT-INF/lib
    """

    digest: Digest
    archive_path: str
    descriptor_paths: tuple[str, ...]
    system_properties: FrozenDict[str, str]
    library_files: tuple[str, ...]


def itest_config_from_field_set(
    field_set: SpringBootITestArchiveFieldSet,
    properties: Mapping[str, str],
) -> ITestConfig:
    """Snapshot the target's configuration, then apply ambient overrides."""
    builder = (
        ITestConfigBuilder(field_set.module.value)
        .module_base_path(field_set.module_base_path.value or field_set.address.spec_path)
        .maven_group(field_set.maven_group.value)
        .maven_version(field_set.maven_version.value)
        .use_custom_log(field_set.use_custom_log.value)
        .include_provided_dependencies(field_set.include_provided_dependencies.value)
        .include_test_dependencies(field_set.include_test_dependencies.value)
        .unit_test_enabled(field_set.unit_test_enabled.value)
        .maven_offline_resolution(field_set.maven_offline_resolution.value)
    )
    for name, target_name in (field_set.resources.value or {}).items():
        builder.resource(name, target_name)
    for dependency in field_set.additional_dependencies.value or ():
        builder.dependency(dependency)
    for exclusion in field_set.maven_exclusions.value or ():
        builder.exclusion(exclusion)
    for key, value in (field_set.system_properties.value or {}).items():
        builder.system_property(key, value)
    return builder.from_properties(properties).build()


@rule(desc="Assemble Spring Boot integration-test archive", level=LogLevel.DEBUG)
async def assemble_springboot_classpath(
    request: SpringBootPackageRequest,
    subsystem: SpringBootITestSubsystem,
    jvm: JvmSubsystem,
) -> SpringBootClassPath:
    field_set = request.field_set
    properties = dict(subsystem.properties)
    config = itest_config_from_field_set(field_set, properties)
    resolve_name = field_set.resolve.normalized_value(jvm)
    offline = config.maven_offline_resolution
    base_path = config.module_base_path

    # The classpath of the dependencies supplies templates, resources and harness classes
    trans_targets = await transitive_targets(
        TransitiveTargetsRequest([field_set.address]), **implicitly()
    )
    dependency_addresses = Addresses(tgt.address for tgt in trans_targets.dependencies)
    harness_classpath = await classpath_get(**implicitly({dependency_addresses: Addresses}))

    module_pom_file = os.path.normpath(os.path.join(base_path, MODULE_POM_NAME))
    parent_pom_file = os.path.normpath(subsystem.parent_pom)
    spring_boot_parent_file = os.path.normpath(
        subsystem.spring_boot_parent_pom or subsystem.parent_pom
    )
    descriptor_files = sorted({module_pom_file, parent_pom_file, spring_boot_parent_file})

    merged_classpath, descriptor_digest = await concurrently(
        merge_digests(MergeDigests(harness_classpath.digests())),
        path_globs_to_digest(
            PathGlobs(
                descriptor_files,
                glob_match_error_behavior=GlobMatchErrorBehavior.error,
                description_of_origin=f"the `springboot_itest_archive` target {field_set.address}",
            )
        ),
    )
    classpath_contents, descriptor_contents = await concurrently(
        get_digest_contents(merged_classpath),
        get_digest_contents(descriptor_digest),
    )

    descriptors_by_path = {fc.path: fc.content for fc in descriptor_contents}
    module_pom = parse_pom(descriptors_by_path[module_pom_file])
    parent_pom = parse_pom(descriptors_by_path[parent_pom_file])
    parent_resolver = PomPropertyResolver(parent_pom)
    spring_boot_resolver = PomPropertyResolver(
        parse_pom(descriptors_by_path[spring_boot_parent_file])
    )
    resources = ClasspathResources((fc.path, fc.content) for fc in classpath_contents)

    # Render the application descriptor
    application_pom_text = render_application_pom(
        resources.get_resource(APPLICATION_POM_TEMPLATE).decode("utf-8"),
        spring_boot_resolver,
        config.module_name,
    )
    application_pom = parse_pom(application_pom_text)
    rendered = {application_pom_path(base_path): application_pom_text}

    # Determine the anchor version
    anchor_version = resolve_anchor_version(config, properties, subsystem.anchor_key)
    if anchor_version is None:
        anchor_dependencies = anchor_candidates(
            module_pom,
            subsystem.anchor_group,
            parent_resolver.properties,
            managed_by=(parent_pom,),
        )
        if anchor_dependencies:
            resolved_module = await resolve_maven_dependencies(
                MavenResolveRequest(
                    dependencies=anchor_dependencies,
                    resolve_name=resolve_name,
                    transitive=False,
                    offline=offline,
                ),
                **implicitly(),
            )
            anchor_version = find_anchor_version(
                resolved_module.coordinates, subsystem.anchor_group
            )
    anchor_version = require_anchor_version(anchor_version, config.module_name)

    # Test and provided scopes, declared directly by the module
    scoped_artifacts: tuple[ResolvedArtifact, ...] = ()
    scopes = requested_scopes(config)
    if scopes:
        resolver_pom_text = render_resolver_pom(
            resources.get_resource(RESOLVER_POM_TEMPLATE).decode("utf-8"),
            parent_resolver,
            scoped_dependencies_xml(module_pom, scopes, managed_by=(parent_pom,)),
        )
        rendered[resolver_pom_path(base_path)] = resolver_pom_text
        try:
            optional_dependencies = collect_requirements(parse_pom(resolver_pom_text), scopes)
        except NoDependenciesError as e:
            logger.debug(
                f"Error while getting dependencies for test or optional scopes. Message={e}"
            )
            optional_dependencies = []

        if optional_dependencies:
            resolved_scoped = await resolve_maven_dependencies(
                MavenResolveRequest(
                    dependencies=tuple(optional_dependencies),
                    resolve_name=resolve_name,
                    transitive=False,
                    offline=offline,
                ),
                **implicitly(),
            )
            scoped_artifacts = resolved_scoped.artifacts

    module_dependencies = [
        *additional_dependencies(config, anchor_version),
        *scoped_module_dependencies(config, scoped_artifacts, module_pom),
    ]

    # Final transitive resolution
    resolved = await resolve_maven_dependencies(
        MavenResolveRequest(
            dependencies=tuple(final_roots(application_pom, module_dependencies)),
            resolve_name=resolve_name,
            transitive=True,
            offline=offline,
            global_exclusions=final_exclusions(config),
        ),
        **implicitly(),
    )
    kept = set(screen_final_coordinates(config, resolved.coordinates))
    files = library_files(a for a in resolved.artifacts if a.coordinate in kept)

    archive = assemble(
        config,
        files,
        resources,
        support_packages=tuple(subsystem.support_packages),
        shared_packages=tuple(subsystem.shared_packages),
    )
    canonical_base_path = os.path.realpath(os.path.join(BuildRoot().path, base_path))
    system_properties = build_environment(config, properties, canonical_base_path)

    digest = await create_digest(
        CreateDigest(
            [
                FileContent(request.output_path, archive.to_zip_bytes()),
                *(
                    FileContent(path, text.encode("utf-8"))
                    for path, text in rendered.items()
                ),
            ]
        )
    )

    return SpringBootClassPath(
        digest=digest,
        archive_path=request.output_path,
        descriptor_paths=tuple(rendered),
        system_properties=FrozenDict(system_properties),
        library_files=tuple(name for name, _ in files),
    )


def rules():
    return collect_rules()
