from __future__ import annotations

import logging
import os

from pants.core.goals.package import BuiltPackage, BuiltPackageArtifact, PackageFieldSet
from pants.engine.fs import CreateDigest, FileContent, MergeDigests
from pants.engine.intrinsics import create_digest, merge_digests
from pants.engine.rules import collect_rules, implicitly, rule
from pants.engine.unions import UnionRule
from pants.util.logging import LogLevel
from pants.util.strutil import pluralize

from pants_backend_springboot_itest.springboot_packager import (
    SpringBootPackageRequest,
    assemble_springboot_classpath,
)
from pants_backend_springboot_itest.target_types import SpringBootITestArchiveFieldSet
from pants_backend_springboot_itest.utils.environment import to_properties_file

logger = logging.getLogger(__name__)


def system_properties_path(archive_path: str) -> str:
    """Sidecar file holding the system properties of the test process."""
    return f"{os.path.splitext(archive_path)[0]}.properties"


@rule(desc="Package Spring Boot integration-test archive", level=LogLevel.DEBUG)
async def package_springboot_itest_archive(
    field_set: SpringBootITestArchiveFieldSet,
) -> BuiltPackage:
    """Package a module as a Spring Boot nested-jar archive.

    The package holds the archive, a `.properties` file with the system
    properties to pass to the test process, and the rendered descriptors
    under `<module base path>/target/`.
    """
    output_filename = field_set.output_path.value_or_default(file_ending="jar")

    classpath = await assemble_springboot_classpath(
        SpringBootPackageRequest(field_set, output_filename), **implicitly()
    )

    properties_filename = system_properties_path(output_filename)
    properties_digest = await create_digest(
        CreateDigest(
            [
                FileContent(
                    properties_filename,
                    to_properties_file(classpath.system_properties).encode("utf-8"),
                )
            ]
        )
    )
    digest = await merge_digests(MergeDigests([classpath.digest, properties_digest]))

    return BuiltPackage(
        digest=digest,
        artifacts=(
            BuiltPackageArtifact(
                relpath=output_filename,
                extra_log_lines=(
                    f"    embeds {pluralize(len(classpath.library_files), 'dependency')}",
                ),
            ),
            BuiltPackageArtifact(relpath=properties_filename),
            *(BuiltPackageArtifact(relpath=path) for path in classpath.descriptor_paths),
        ),
    )


def rules():
    return [
        *collect_rules(),
        UnionRule(PackageFieldSet, SpringBootITestArchiveFieldSet),
    ]
