"""Maven coordinate, scope and exclusion value types.

These types are shared by the descriptor parser, the exclusion engine, the
dependency graph and the archive assembler. They carry no Pants types so they
can be used (and tested) outside of the engine.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from pants_backend_springboot_itest.exceptions import InvalidCoordinateError


class Scope(enum.Enum):
    """Resolution-time classification of a dependency."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    PROVIDED = "provided"
    SYSTEM = "system"
    IMPORT = "import"

    @classmethod
    def parse(cls, value: str | None) -> Scope:
        if not value or not value.strip():
            return cls.COMPILE
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidCoordinateError(f"Unknown Maven scope: {value!r}")


RUNTIME_SCOPES = frozenset({Scope.COMPILE, Scope.RUNTIME})


@dataclass(frozen=True)
class MavenCoordinate:
    """A resolvable Maven artifact.

    Canonical forms follow the ShrinkWrap resolver convention:

        groupId:artifactId
        groupId:artifactId:version
        groupId:artifactId:packaging:version
        groupId:artifactId:packaging:classifier:version
    """

    group_id: str
    artifact_id: str
    version: str | None = None
    packaging: str = "jar"
    classifier: str | None = None

    @classmethod
    def parse(cls, canonical_form: str) -> MavenCoordinate:
        parts = [part.strip() for part in canonical_form.strip().split(":")]
        if len(parts) < 2 or len(parts) > 5 or not all(parts):
            raise InvalidCoordinateError(
                f"Invalid Maven coordinate {canonical_form!r}, expected "
                "groupId:artifactId[:packaging[:classifier]][:version]"
            )

        if len(parts) == 2:
            group, artifact = parts
            return cls(group, artifact)
        if len(parts) == 3:
            group, artifact, version = parts
            return cls(group, artifact, version)
        if len(parts) == 4:
            group, artifact, packaging, version = parts
            return cls(group, artifact, version, packaging)
        group, artifact, packaging, classifier, version = parts
        return cls(group, artifact, version, packaging, classifier)

    @property
    def key(self) -> tuple[str, str]:
        return (self.group_id, self.artifact_id)

    @property
    def exclusion_key(self) -> tuple[str, str, str | None, str]:
        """Identity used when matching coordinates regardless of version."""
        return (self.group_id, self.artifact_id, self.classifier, self.packaging)

    @property
    def file_name(self) -> str:
        """File name of the artifact inside a Maven local repository."""
        if not self.version:
            raise InvalidCoordinateError(
                f"Coordinate {self.to_canonical_form()} has no version"
            )
        classifier = f"-{self.classifier}" if self.classifier else ""
        return f"{self.artifact_id}-{self.version}{classifier}.{self.packaging}"

    def with_version(self, version: str) -> MavenCoordinate:
        return MavenCoordinate(
            self.group_id, self.artifact_id, version, self.packaging, self.classifier
        )

    def to_canonical_form(self) -> str:
        parts = [self.group_id, self.artifact_id]
        if self.classifier:
            parts.extend([self.packaging, self.classifier])
        elif self.packaging != "jar":
            parts.append(self.packaging)
        if self.version:
            parts.append(self.version)
        return ":".join(parts)

    def __str__(self) -> str:
        return self.to_canonical_form()


@dataclass(frozen=True)
class Exclusion:
    """A directive removing a transitive dependency from a resolved graph.

    A `group_id` of "*" matches any group, so artifactId-only patterns such as
    "log4j" or "*:log4j" are supported.
    """

    group_id: str
    artifact_id: str

    @classmethod
    def parse(cls, value: str) -> Exclusion:
        parts = [part.strip() for part in value.strip().split(":")]
        if len(parts) == 1 and parts[0]:
            return cls("*", parts[0])
        if len(parts) == 2 and all(parts):
            return cls(parts[0], parts[1])
        raise InvalidCoordinateError(
            f"Invalid Maven exclusion {value!r}, expected groupId:artifactId"
        )

    def matches(self, coordinate: MavenCoordinate) -> bool:
        if self.artifact_id not in ("*", coordinate.artifact_id):
            return False
        return self.group_id in ("*", coordinate.group_id)

    def to_spec(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def __str__(self) -> str:
        return self.to_spec()


@dataclass(frozen=True)
class MavenDependency:
    """A coordinate requested in a given scope, with its own exclusions."""

    coordinate: MavenCoordinate
    scope: Scope = Scope.COMPILE
    exclusions: tuple[Exclusion, ...] = ()
    optional: bool = False


@dataclass(frozen=True)
class ResolvedArtifact:
    """A resolved artifact together with the bytes of its file."""

    coordinate: MavenCoordinate
    scope: Scope
    file_name: str
    content: bytes = b""
