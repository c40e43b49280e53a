from __future__ import annotations

from dataclasses import dataclass

from pants.core.goals.package import PackageFieldSet
from pants.engine.rules import collect_rules
from pants.engine.target import (
    COMMON_TARGET_FIELDS,
    BoolField,
    DictStringToStringField,
    StringField,
    StringSequenceField,
    Target,
)
from pants.jvm.target_types import (
    JvmDependenciesField,
    JvmJdkField,
    JvmResolveField,
    OutputPathField,
)

from pants_backend_springboot_itest.config import DEFAULT_ANCHOR_GROUP


class SpringBootITestModuleField(StringField):
    alias = "module"
    required = True
    help = (
        "Name of the module under test. Substituted for the `#{module}` marker of the "
        "application descriptor template. Example: 'camel-ftp'."
    )


class SpringBootITestModuleBasePathField(StringField):
    alias = "module_base_path"
    help = (
        "Directory, relative to the build root, holding the module's `pom.xml`. "
        "Rendered descriptors are written to its `target/` subdirectory. "
        "Defaults to the directory of this target."
    )


class SpringBootITestMavenGroupField(StringField):
    alias = "maven_group"
    default = DEFAULT_ANCHOR_GROUP
    help = "Maven group of the module under test."


class SpringBootITestMavenVersionField(StringField):
    alias = "maven_version"
    help = (
        "Version of the anchor dependency. Only consulted when the "
        "`[springboot-itest].properties` option does not pin it; when neither does, "
        "it is read from the module's `pom.xml`."
    )


class SpringBootITestUseCustomLogField(BoolField):
    alias = "use_custom_log"
    default = True
    help = "If true, add `spring-logback.xml` from the classpath to BOOT-INF/classes."


class SpringBootITestIncludeProvidedDependenciesField(BoolField):
    alias = "include_provided_dependencies"
    default = False
    help = "If true, embed the dependencies the module declares in the `provided` scope."


class SpringBootITestIncludeTestDependenciesField(BoolField):
    alias = "include_test_dependencies"
    default = False
    help = "If true, embed the dependencies the module declares in the `test` scope."


class SpringBootITestUnitTestEnabledField(BoolField):
    alias = "unit_test_enabled"
    default = False
    help = (
        "If true, run the module's own unit tests inside the archive: test-scoped "
        "dependencies are embedded and the module directories are passed to the test "
        "process as `container.user.dir` and `container.test.resources.dir`."
    )


class SpringBootITestMavenOfflineResolutionField(BoolField):
    alias = "maven_offline_resolution"
    default = False
    help = (
        "If true, do not resolve dependencies over the network: artifacts are taken "
        "from the lockfile of this target's JVM resolve."
    )


class SpringBootITestResourcesField(DictStringToStringField):
    alias = "itest_resources"
    help = (
        "Classpath resources to copy into the archive, mapped to their name under "
        "BOOT-INF/classes. Example: `{'application-test.properties': 'application.properties'}`."
    )


class SpringBootITestAdditionalDependenciesField(StringSequenceField):
    alias = "additional_dependencies"
    help = (
        "Extra Maven coordinates (`group:artifact[:packaging[:classifier]]:version`) to "
        "embed with their transitive dependencies. A coordinate given as "
        "`group:artifact` gets the anchor version."
    )


class SpringBootITestMavenExclusionsField(StringSequenceField):
    alias = "maven_exclusions"
    help = (
        "`group:artifact` pairs never to embed, in addition to the logging frameworks "
        "that are always excluded."
    )


class SpringBootITestSystemPropertiesField(DictStringToStringField):
    alias = "system_properties"
    help = "System properties passed to the test process, overriding any other source."


class SpringBootITestArchiveTarget(Target):
    alias = "springboot_itest_archive"
    core_fields = (
        *COMMON_TARGET_FIELDS,
        JvmDependenciesField,
        SpringBootITestModuleField,
        SpringBootITestModuleBasePathField,
        SpringBootITestMavenGroupField,
        SpringBootITestMavenVersionField,
        SpringBootITestUseCustomLogField,
        SpringBootITestIncludeProvidedDependenciesField,
        SpringBootITestIncludeTestDependenciesField,
        SpringBootITestUnitTestEnabledField,
        SpringBootITestMavenOfflineResolutionField,
        SpringBootITestResourcesField,
        SpringBootITestAdditionalDependenciesField,
        SpringBootITestMavenExclusionsField,
        SpringBootITestSystemPropertiesField,
        JvmResolveField,
        JvmJdkField,
        OutputPathField,
    )
    help = (
        "A module packaged as a Spring Boot nested-jar archive for integration testing.\n\n"
        "The module's Maven dependencies are resolved and embedded under BOOT-INF/lib, "
        "logging frameworks excluded. The `dependencies` field supplies the harness "
        "support classes, the descriptor templates and the resources copied into the "
        "archive."
    )


@dataclass(frozen=True)
class SpringBootITestArchiveFieldSet(PackageFieldSet):
    """FieldSet for packaging a springboot_itest_archive target."""

    required_fields = (
        SpringBootITestModuleField,
        JvmResolveField,
    )

    module: SpringBootITestModuleField
    module_base_path: SpringBootITestModuleBasePathField
    maven_group: SpringBootITestMavenGroupField
    maven_version: SpringBootITestMavenVersionField
    use_custom_log: SpringBootITestUseCustomLogField
    include_provided_dependencies: SpringBootITestIncludeProvidedDependenciesField
    include_test_dependencies: SpringBootITestIncludeTestDependenciesField
    unit_test_enabled: SpringBootITestUnitTestEnabledField
    maven_offline_resolution: SpringBootITestMavenOfflineResolutionField
    resources: SpringBootITestResourcesField
    additional_dependencies: SpringBootITestAdditionalDependenciesField
    maven_exclusions: SpringBootITestMavenExclusionsField
    system_properties: SpringBootITestSystemPropertiesField
    resolve: JvmResolveField
    output_path: OutputPathField


def rules():
    return [
        *collect_rules(),
    ]
