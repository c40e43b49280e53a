"""Rendering of the application and dependency-resolver descriptor templates.

Both templates contain `${...}` placeholders which are resolved against the
property table of a parent descriptor. The application template additionally
carries a `#{module}` marker, and the resolver template a
`<!-- DEPENDENCIES -->` marker that receives a block of dependency XML.
"""

from __future__ import annotations

import os
import re
from typing import Callable

from pants_backend_springboot_itest.config import (
    APPLICATION_POM_NAME,
    BUILD_OUTPUT_DIR,
    DEPENDENCIES_MARKER,
    MODULE_MARKER,
    RESOLVER_POM_NAME,
)

_PLACEHOLDER = re.compile(r"(\$\{[^}]*\})")

PropertyResolver = Callable[[str], str]


def find_placeholders(text: str) -> list[str]:
    """Return the distinct `${...}` tokens of `text`, in order of first use."""
    return list(dict.fromkeys(_PLACEHOLDER.findall(text)))


def render(template: str, resolve_property: PropertyResolver) -> str:
    """Replace every placeholder of `template` with its resolved value.

    Each distinct token is resolved exactly once. Any resolution failure
    propagates, so a partially rendered descriptor is never returned.
    """
    resolved = {token: resolve_property(token) for token in find_placeholders(template)}
    rendered = template
    for token, value in resolved.items():
        rendered = rendered.replace(token, value)
    return rendered


def render_application_pom(
    template: str, resolve_property: PropertyResolver, module_name: str
) -> str:
    return render(template, resolve_property).replace(MODULE_MARKER, module_name)


def render_resolver_pom(
    template: str, resolve_property: PropertyResolver, dependencies_xml: str
) -> str:
    """Inject `dependencies_xml` at the marker, then render the whole text.

    Placeholders inside the injected block are resolved like the rest.
    """
    return render(template.replace(DEPENDENCIES_MARKER, dependencies_xml), resolve_property)


def application_pom_path(module_base_path: str) -> str:
    return os.path.join(module_base_path, BUILD_OUTPUT_DIR, APPLICATION_POM_NAME)


def resolver_pom_path(module_base_path: str) -> str:
    return os.path.join(module_base_path, BUILD_OUTPUT_DIR, RESOLVER_POM_NAME)
