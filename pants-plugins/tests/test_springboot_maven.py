"""Tests for Maven coordinate, scope and exclusion types."""

from __future__ import annotations

import pytest

from pants_backend_springboot_itest.exceptions import InvalidCoordinateError
from pants_backend_springboot_itest.utils.maven import Exclusion, MavenCoordinate, Scope


def test_parse_group_artifact_version():
    coord = MavenCoordinate.parse("org.apache.camel:camel-core:2.18.0")
    assert coord == MavenCoordinate("org.apache.camel", "camel-core", "2.18.0")
    assert coord.packaging == "jar"
    assert coord.classifier is None


def test_parse_without_version():
    coord = MavenCoordinate.parse("org.apache.camel:camel-ftp")
    assert coord.version is None
    assert coord.key == ("org.apache.camel", "camel-ftp")


def test_parse_packaging_and_classifier():
    coord = MavenCoordinate.parse("com.example:lib:test-jar:tests:1.0")
    assert coord.packaging == "test-jar"
    assert coord.classifier == "tests"
    assert coord.version == "1.0"

    coord = MavenCoordinate.parse("com.example:bom:pom:1.0")
    assert coord.packaging == "pom"
    assert coord.classifier is None


@pytest.mark.parametrize("value", ["", "just-a-name", "a::1.0", "a:b:c:d:e:f"])
def test_parse_rejects_malformed_coordinates(value: str):
    with pytest.raises(InvalidCoordinateError):
        MavenCoordinate.parse(value)


def test_canonical_form_round_trips_through_parse():
    for canonical in (
        "org.apache.camel:camel-core:2.18.0",
        "com.example:lib:jar:tests:1.0",
        "com.example:bom:pom:1.0",
        "com.example:unversioned",
    ):
        assert MavenCoordinate.parse(canonical).to_canonical_form() == canonical


def test_file_name_follows_local_repository_layout():
    assert MavenCoordinate("g", "spring-boot-loader", "2.1.3").file_name == "spring-boot-loader-2.1.3.jar"
    assert MavenCoordinate("g", "lib", "1.0", "jar", "tests").file_name == "lib-1.0-tests.jar"


def test_file_name_requires_version():
    with pytest.raises(InvalidCoordinateError):
        MavenCoordinate("g", "a").file_name


def test_exclusion_key_ignores_version():
    a = MavenCoordinate("g", "a", "1.0")
    b = MavenCoordinate("g", "a", "2.0")
    assert a.exclusion_key == b.exclusion_key
    assert a.exclusion_key != MavenCoordinate("g", "a", "1.0", "jar", "tests").exclusion_key


def test_with_version():
    coord = MavenCoordinate.parse("org.apache.camel:camel-ftp").with_version("2.18.0")
    assert coord.to_canonical_form() == "org.apache.camel:camel-ftp:2.18.0"


def test_exclusion_matching():
    exclusion = Exclusion.parse("org.slf4j:slf4j-simple")
    assert exclusion.matches(MavenCoordinate("org.slf4j", "slf4j-simple", "1.7.21"))
    assert not exclusion.matches(MavenCoordinate("org.slf4j", "slf4j-api", "1.7.21"))
    assert not exclusion.matches(MavenCoordinate("other", "slf4j-simple", "1.7.21"))


def test_artifact_only_exclusion_matches_any_group():
    for spec in ("log4j", "*:log4j"):
        exclusion = Exclusion.parse(spec)
        assert exclusion.group_id == "*"
        assert exclusion.matches(MavenCoordinate("log4j", "log4j", "1.2.17"))
        assert exclusion.matches(MavenCoordinate("org.other", "log4j", "1.0"))


def test_exclusion_rejects_malformed_spec():
    with pytest.raises(InvalidCoordinateError):
        Exclusion.parse("a:b:c")


def test_scope_parse():
    assert Scope.parse(None) is Scope.COMPILE
    assert Scope.parse("") is Scope.COMPILE
    assert Scope.parse("TEST") is Scope.TEST
    assert Scope.parse(" provided ") is Scope.PROVIDED
    with pytest.raises(InvalidCoordinateError):
        Scope.parse("bogus")
