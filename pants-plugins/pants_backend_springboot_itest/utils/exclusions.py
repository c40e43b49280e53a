"""Dependency exclusion policy.

Two complementary mechanisms keep unwanted artifacts out of the archive:

- a static denylist of logging-framework artifacts, which would otherwise
  conflict with the logging setup of the test harness
- user exclusions (`groupId:artifactId`) taken from the test configuration

On top of that, the exclusions a module declares on its own dependencies are
re-read from the module descriptor before each dependency is resolved further,
and the boot loader jar is removed by file name once the flat artifact list is
known.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from pants_backend_springboot_itest.config import COMMON_EXCLUSIONS, LOGGING_ARTIFACT_PATTERNS
from pants_backend_springboot_itest.utils.maven import Exclusion, MavenCoordinate
from pants_backend_springboot_itest.utils.pom import PomModel

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = tuple(re.compile(p) for p in LOGGING_ARTIFACT_PATTERNS)


def common_exclusions(user_exclusions: Iterable[str] = ()) -> tuple[Exclusion, ...]:
    """The logging exclusions followed by the user-configured ones."""
    exclusions = [Exclusion.parse(spec) for spec in COMMON_EXCLUSIONS]
    for spec in user_exclusions:
        exclusion = Exclusion.parse(spec)
        if exclusion not in exclusions:
            exclusions.append(exclusion)
    return tuple(exclusions)


def is_valid_test_dependency(
    coordinate: MavenCoordinate,
    user_exclusions: Iterable[str] = (),
    patterns: Sequence[re.Pattern] = DEFAULT_PATTERNS,
    kind: str = "test dependency",
) -> bool:
    valid = not any(p.fullmatch(coordinate.artifact_id) for p in patterns)

    if valid and f"{coordinate.group_id}:{coordinate.artifact_id}" in set(user_exclusions):
        valid = False

    if not valid:
        logger.debug(f"Discarded {kind} {coordinate.to_canonical_form()}")

    return valid


def filter_dependencies(
    candidates: Iterable[MavenCoordinate],
    patterns: Sequence[re.Pattern] = DEFAULT_PATTERNS,
    user_exclusions: Iterable[str] = (),
    kind: str = "test dependency",
) -> list[MavenCoordinate]:
    """Drop every candidate matching the denylist or a user exclusion.

    Each discarded candidate is logged as a `kind`.
    """
    exclusions = frozenset(user_exclusions)
    return [c for c in candidates if is_valid_test_dependency(c, exclusions, patterns, kind)]


def exclusions_for_dependency(
    coordinate: MavenCoordinate,
    module_pom: PomModel,
    common: Sequence[Exclusion],
) -> tuple[Exclusion, ...]:
    """Exclusions to apply when resolving `coordinate` transitively.

    The module descriptor is the source of truth: whatever it declares for
    this group:artifact is merged into the common exclusions, since the
    resolver cannot be relied upon to carry exclusion directives through.
    """
    declared = module_pom.exclusions_for(coordinate.group_id, coordinate.artifact_id)
    if not declared:
        return tuple(common)

    merged = list(common)
    for spec in sorted(declared):
        exclusion = Exclusion.parse(spec)
        if exclusion not in merged:
            merged.append(exclusion)
    return tuple(merged)


def is_excluded(coordinate: MavenCoordinate, exclusions: Iterable[Exclusion]) -> bool:
    return any(exclusion.matches(coordinate) for exclusion in exclusions)


def exclude_files_matching(file_names: list[str], regex: str) -> bool:
    """Remove, in place, every file name fully matching `regex`.

    Returns:
        True if at least one file was removed.
    """
    pattern = re.compile(regex)
    kept = [name for name in file_names if not pattern.fullmatch(name)]
    removed = len(file_names) - len(kept)
    if removed:
        logger.debug(f"Excluded {removed} dependency file(s) matching {regex}")
    file_names[:] = kept
    return removed > 0
