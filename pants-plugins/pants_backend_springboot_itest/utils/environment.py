"""System properties forwarded to the spawned test process."""

from __future__ import annotations

import logging
import os
from typing import Mapping

from pants_backend_springboot_itest.config import (
    CONFIG_PREFIX,
    TEST_CLASSES_DIR,
    XML_PARSER_PROPERTIES,
)
from pants_backend_springboot_itest.utils.itest_config import ITestConfig

logger = logging.getLogger(__name__)


def build_environment(
    config: ITestConfig,
    ambient_properties: Mapping[object, object],
    canonical_base_path: str,
    prefix: str = CONFIG_PREFIX,
) -> dict[str, str]:
    """Compute the system properties of the test process.

    In order, later entries overriding earlier ones:
    1. the XML parser relaxation flags
    2. when unit tests are enabled, the module and test-resources directories
    3. every ambient property whose key starts with `prefix`
    4. the system properties explicitly configured for the module

    Ambient entries whose key or value is not a string are skipped.
    """
    environment = dict(XML_PARSER_PROPERTIES)

    if config.unit_test_enabled:
        environment["container.user.dir"] = canonical_base_path
        environment["container.test.resources.dir"] = os.path.join(
            canonical_base_path, TEST_CLASSES_DIR
        )

    for key, value in ambient_properties.items():
        if not isinstance(key, str) or not isinstance(value, str):
            logger.debug(f"Skipping non-string property {key!r}")
            continue
        if key.startswith(prefix):
            environment[key] = value

    environment.update(config.system_properties)
    return environment


def to_properties_file(properties: Mapping[str, str]) -> str:
    """Serialize properties in java.util.Properties text format."""

    def escape(text: str, is_key: bool) -> str:
        out = []
        for index, char in enumerate(text):
            if char == "\\":
                out.append("\\\\")
            elif char == "\n":
                out.append("\\n")
            elif char == "\r":
                out.append("\\r")
            elif char == "\t":
                out.append("\\t")
            elif char in "=:#!" or (char == " " and (is_key or index == 0)):
                out.append("\\" + char)
            else:
                out.append(char)
        return "".join(out)

    return "".join(
        f"{escape(key, True)}={escape(value, False)}\n"
        for key, value in sorted(properties.items())
    )
