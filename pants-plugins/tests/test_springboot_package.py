"""Tests for packaging `springboot_itest_archive` targets through the engine.

The module under test declares no Maven dependencies and the application
template asks for none, so every resolution step is skipped and no
repository is contacted.
"""

from __future__ import annotations

import io
import zipfile
from textwrap import dedent

import pytest

from pants.build_graph.address import Address
from pants.core.goals.package import BuiltPackage
from pants.core.target_types import ResourcesGeneratorTarget, ResourceTarget
from pants.core.target_types import rules as core_target_types_rules
from pants.core.util_rules import config_files, external_tool, source_files, stripped_source_files, system_binaries
from pants.engine.fs import DigestContents
from pants.engine.internals.scheduler import ExecutionError
from pants.engine.rules import QueryRule
from pants.jvm import classpath, jvm_common, non_jvm_dependencies
from pants.jvm import resources as jvm_resources
from pants.jvm.goals import lockfile
from pants.jvm.resolve import coursier_fetch, jvm_tool
from pants.jvm.resolve.coursier_setup import rules as coursier_setup_rules
from pants.jvm.util_rules import rules as jdk_util_rules
from pants.testutil.rule_runner import PYTHON_BOOTSTRAP_ENV, RuleRunner

from pants_backend_springboot_itest import register
from pants_backend_springboot_itest.exceptions import AnchorVersionError
from pants_backend_springboot_itest.target_types import SpringBootITestArchiveFieldSet

_JVM_RESOLVES = {
    "jvm-default": "3rdparty/jvm/default.lock",
}

EMPTY_LOCKFILE = dedent(
    """\
    # This lockfile was autogenerated by Pants. To regenerate, run:
    #
    #    pants generate-lockfiles --resolve=jvm-default
    #
    # --- BEGIN PANTS LOCKFILE METADATA: DO NOT EDIT OR REMOVE ---
    # {
    #   "version": 1,
    #   "generated_with_requirements": []
    # }
    # --- END PANTS LOCKFILE METADATA ---

    entries = []
    """
)

PARENT_POM = dedent(
    """\
    <project>
        <groupId>org.apache.camel</groupId>
        <artifactId>camel-parent</artifactId>
        <version>2.18.0</version>
        <properties>
            <spring-boot-version>1.4.1.RELEASE</spring-boot-version>
        </properties>
    </project>
    """
)

MODULE_POM = dedent(
    """\
    <project>
        <parent>
            <groupId>org.apache.camel</groupId>
            <artifactId>components</artifactId>
            <version>2.18.0</version>
        </parent>
        <artifactId>camel-ftp</artifactId>
    </project>
    """
)

APPLICATION_POM_TEMPLATE = dedent(
    """\
    <project>
        <groupId>org.apache.camel.itest</groupId>
        <artifactId>#{module}-itest</artifactId>
        <version>1.0</version>
        <properties>
            <spring-boot-version>${spring-boot-version}</spring-boot-version>
        </properties>
    </project>
    """
)

RESOLVER_POM_TEMPLATE = dedent(
    """\
    <project>
        <groupId>org.apache.camel.itest</groupId>
        <artifactId>dependency-resolver</artifactId>
        <version>1.0</version>
        <dependencies>
    <!-- DEPENDENCIES -->
        </dependencies>
    </project>
    """
)


@pytest.fixture
def rule_runner() -> RuleRunner:
    rule_runner = RuleRunner(
        target_types=[
            *register.target_types(),
            ResourceTarget,
            ResourcesGeneratorTarget,
        ],
        rules=[
            *register.rules(),
            *classpath.rules(),
            *config_files.rules(),
            *core_target_types_rules(),
            *coursier_fetch.rules(),
            *coursier_setup_rules(),
            *external_tool.rules(),
            *jdk_util_rules(),
            *jvm_common.rules(),
            *jvm_resources.rules(),
            *jvm_tool.rules(),
            *lockfile.rules(),
            *non_jvm_dependencies.rules(),
            *source_files.rules(),
            *stripped_source_files.rules(),
            *system_binaries.rules(),
            QueryRule(BuiltPackage, [SpringBootITestArchiveFieldSet]),
        ],
    )
    rule_runner.set_options(
        [
            f"--jvm-resolves={repr(_JVM_RESOLVES)}",
            "--jvm-default-resolve=jvm-default",
            "--source-root-patterns=['/harness']",
        ],
        env_inherit=PYTHON_BOOTSTRAP_ENV,
    )
    return rule_runner


def write_module(rule_runner: RuleRunner, archive_build: str) -> None:
    rule_runner.write_files(
        {
            "3rdparty/jvm/default.lock": EMPTY_LOCKFILE,
            "parent/pom.xml": PARENT_POM,
            "components/camel-ftp/pom.xml": MODULE_POM,
            "components/camel-ftp/BUILD": archive_build,
            "harness/BUILD": 'resources(name="templates", sources=["*.xml", "*.MF"])\n',
            "harness/BOOT-MANIFEST.MF": "Manifest-Version: 1.0\nMain-Class: org.springframework.boot.loader.JarLauncher\n",
            "harness/spring-logback.xml": "<configuration/>\n",
            "harness/application-pom.xml": APPLICATION_POM_TEMPLATE,
            "harness/dependency-resolver-pom.xml": RESOLVER_POM_TEMPLATE,
        }
    )


def build_package(rule_runner: RuleRunner) -> tuple[BuiltPackage, dict[str, bytes]]:
    target = rule_runner.get_target(Address("components/camel-ftp", target_name="itest"))
    field_set = SpringBootITestArchiveFieldSet.create(target)
    result = rule_runner.request(BuiltPackage, [field_set])
    contents = rule_runner.request(DigestContents, [result.digest])
    return result, {fc.path: fc.content for fc in contents}


def test_package_archive_without_maven_dependencies(rule_runner: RuleRunner) -> None:
    """Test that the archive, the properties file and both descriptors are packaged."""
    write_module(
        rule_runner,
        dedent(
            """\
            springboot_itest_archive(
                name="itest",
                module="camel-ftp",
                maven_version="2.18.0",
                include_test_dependencies=True,
                dependencies=["harness:templates"],
            )
            """
        ),
    )

    result, files = build_package(rule_runner)

    archive_path = result.artifacts[0].relpath
    assert archive_path.endswith(".jar")
    with zipfile.ZipFile(io.BytesIO(files[archive_path])) as archive:
        names = archive.namelist()
        manifest = archive.read("META-INF/MANIFEST.MF")
    assert "BOOT-INF/classes/spring-logback.xml" in names
    assert "BOOT-INF/lib/" in names
    assert not any(name.startswith("BOOT-INF/lib/") and name.endswith(".jar") for name in names)
    assert b"JarLauncher" in manifest

    properties_path = result.artifacts[1].relpath
    assert properties_path == archive_path[: -len(".jar")] + ".properties"
    assert "javax.xml.accessExternalDTD=all" in files[properties_path].decode("utf-8").splitlines()

    application_pom = files["components/camel-ftp/target/itest-spring-boot-pom.xml"].decode("utf-8")
    assert "<artifactId>camel-ftp-itest</artifactId>" in application_pom
    assert "<spring-boot-version>1.4.1.RELEASE</spring-boot-version>" in application_pom
    assert "components/camel-ftp/target/itest-spring-boot-dependency-resolver-pom.xml" in files
    assert {a.relpath for a in result.artifacts[2:]} == {
        "components/camel-ftp/target/itest-spring-boot-pom.xml",
        "components/camel-ftp/target/itest-spring-boot-dependency-resolver-pom.xml",
    }


def test_package_fails_without_anchor_version(rule_runner: RuleRunner) -> None:
    """Test that no archive is produced when the anchor version cannot be determined."""
    write_module(
        rule_runner,
        dedent(
            """\
            springboot_itest_archive(
                name="itest",
                module="camel-ftp",
                dependencies=["harness:templates"],
            )
            """
        ),
    )

    target = rule_runner.get_target(Address("components/camel-ftp", target_name="itest"))
    field_set = SpringBootITestArchiveFieldSet.create(target)

    with pytest.raises(ExecutionError) as exc_info:
        rule_runner.request(BuiltPackage, [field_set])

    assert len(exc_info.value.wrapped_exceptions) == 1
    wrapped_exc = exc_info.value.wrapped_exceptions[0]
    assert isinstance(wrapped_exc, AnchorVersionError)
    assert "camel-ftp" in str(wrapped_exc)
