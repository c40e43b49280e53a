"""Subsystem for Spring Boot integration-test packaging options."""

from __future__ import annotations

from pants.engine.rules import collect_rules
from pants.option.option_types import DictOption, StrListOption, StrOption
from pants.option.subsystem import Subsystem
from pants.util.strutil import softwrap

from pants_backend_springboot_itest.config import (
    CONFIG_PREFIX,
    DEFAULT_ANCHOR_ARTIFACT,
    DEFAULT_ANCHOR_GROUP,
    DEFAULT_SHARED_PACKAGES,
    DEFAULT_SUPPORT_PACKAGES,
)
from pants_backend_springboot_itest.utils.itest_config import anchor_property_key


class SpringBootITestSubsystem(Subsystem):
    options_scope = "springboot-itest"
    name = "Spring Boot integration tests"
    help = softwrap(
        """
        Options controlling how `springboot_itest_archive` targets are packaged into
        Spring Boot nested-jar archives for integration testing.
        """
    )

    properties = DictOption[str](
        default={},
        help=softwrap(
            f"""
            Process-wide configuration properties visible to every packaging run.

            Keys starting with `{CONFIG_PREFIX}` override the configuration of the
            archive targets (for example `{CONFIG_PREFIX}mavenOfflineResolution`) and are
            forwarded to the test process as system properties.

            The anchor version may be pinned here with the
            `{anchor_property_key()}` key.
            """
        ),
    )

    anchor_group = StrOption(
        default=DEFAULT_ANCHOR_GROUP,
        help="Group id of the anchor dependency, whose version drives the framework family.",
    )

    anchor_artifact = StrOption(
        default=DEFAULT_ANCHOR_ARTIFACT,
        help="Artifact id of the anchor dependency.",
    )

    parent_pom = StrOption(
        default="parent/pom.xml",
        help=softwrap(
            """
            Path, relative to the build root, of the parent descriptor whose properties
            fill the `${...}` placeholders of the dependency-resolver template.
            """
        ),
    )

    spring_boot_parent_pom = StrOption(
        default=None,
        help=softwrap(
            """
            Path, relative to the build root, of the descriptor whose properties fill the
            placeholders of the application template. Defaults to `parent_pom`.
            """
        ),
    )

    support_packages = StrListOption(
        default=list(DEFAULT_SUPPORT_PACKAGES),
        help="Packages whose compiled classes are copied to the top level of the archive.",
    )

    shared_packages = StrListOption(
        default=list(DEFAULT_SHARED_PACKAGES),
        help=softwrap(
            """
            Packages whose compiled classes are also copied under BOOT-INF/classes, so
            the embedded application classloader can see them.
            """
        ),
    )

    @property
    def anchor_key(self) -> str:
        return anchor_property_key(self.anchor_group, self.anchor_artifact)


def rules():
    return collect_rules()
