"""Tests for the nested-jar archive model and its assembly."""

import io
import zipfile

import pytest

from pants_backend_springboot_itest.exceptions import ResourceNotFoundError
from pants_backend_springboot_itest.utils.archive import (
    Archive,
    ClasspathResources,
    add_dependencies,
    assemble,
)
from pants_backend_springboot_itest.utils.itest_config import ITestConfigBuilder


# ===== Helper functions =====


def create_jar_bytes(files: dict[str, bytes]) -> bytes:
    """Create an in-memory JAR with the given contents."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as jar:
        for path, content in files.items():
            jar.writestr(path, content)
    return buffer.getvalue()


MANIFEST = b"Manifest-Version: 1.0\nMain-Class: org.springframework.boot.loader.JarLauncher\n"


def harness_resources(**extra: bytes) -> ClasspathResources:
    harness_jar = create_jar_bytes(
        {
            "BOOT-MANIFEST.MF": MANIFEST,
            "spring-logback.xml": b"<configuration/>",
            "application-pom.xml": b"<project/>",
            "org/apache/camel/itest/springboot/ITestConfig.class": b"config",
            "org/apache/camel/itest/springboot/util/Helper.class": b"helper",
            "org/apache/camel/itest/springboot/README.txt": b"not a class",
            "org/jboss/shrinkwrap/api/Archive.class": b"shrinkwrap",
            "org/springframework/boot/loader/JarLauncher.class": b"launcher",
        }
    )
    entries = [("harness.jar", harness_jar)]
    entries.extend((name, content) for name, content in extra.items())
    return ClasspathResources(entries)


def config(**overrides):
    builder = ITestConfigBuilder("camel-ftp")
    for name, value in overrides.items():
        getattr(builder, name)(value)
    return builder.build()


# ===== Tests for Archive =====


def test_archive_add_replaces_existing_entry():
    """Test that a second write wins and keeps the entry's position."""
    archive = Archive()
    archive.add(b"one", "a/b.txt").add(b"x", "c.txt").add(b"two", "/a//b.txt")

    assert archive.paths() == ["a/b.txt", "c.txt"]
    assert archive["a/b.txt"] == b"two"
    assert len(archive) == 2


def test_archive_rejects_root_path():
    with pytest.raises(ValueError):
        Archive().add(b"x", "/")


def test_archive_directories_are_not_files():
    archive = Archive().add_directories("BOOT-INF/lib", "BOOT-INF/classes", "BOOT-INF/lib")
    assert archive.paths() == ["BOOT-INF/lib", "BOOT-INF/classes"]
    assert list(archive.files()) == []
    assert archive.library_entries() == []


def test_to_zip_bytes_layout_and_compression():
    archive = (
        Archive()
        .add(MANIFEST, "META-INF/MANIFEST.MF")
        .add_directories("BOOT-INF/lib", "BOOT-INF/classes")
        .add(b"jar-bytes", "BOOT-INF/lib/camel-core-2.18.0.jar")
        .add(b"<configuration/>", "BOOT-INF/classes/spring-logback.xml")
    )

    with zipfile.ZipFile(io.BytesIO(archive.to_zip_bytes())) as zf:
        names = zf.namelist()
        assert names.index("META-INF/") < names.index("META-INF/MANIFEST.MF")
        assert "BOOT-INF/" in names
        assert names.count("BOOT-INF/lib/") == 1
        assert zf.getinfo("META-INF/MANIFEST.MF").compress_type == zipfile.ZIP_STORED
        assert zf.getinfo("BOOT-INF/lib/camel-core-2.18.0.jar").compress_type == zipfile.ZIP_STORED
        assert zf.getinfo("BOOT-INF/classes/spring-logback.xml").compress_type == zipfile.ZIP_DEFLATED
        assert zf.read("BOOT-INF/lib/camel-core-2.18.0.jar") == b"jar-bytes"


# ===== Tests for ClasspathResources =====


def test_first_classpath_entry_wins():
    first = create_jar_bytes({"a.txt": b"first"})
    second = create_jar_bytes({"a.txt": b"second", "b.txt": b"only-second"})
    resources = ClasspathResources([("first.jar", first), ("second.jar", second)])

    assert resources.get_resource("a.txt") == b"first"
    assert resources.get_resource("/b.txt") == b"only-second"


def test_loose_files_and_invalid_jars():
    resources = ClasspathResources(
        [("spring-logback.xml", b"<configuration/>"), ("broken.jar", b"not a zip")]
    )
    assert "spring-logback.xml" in resources
    assert "broken.jar" not in resources


def test_get_resource_missing():
    with pytest.raises(ResourceNotFoundError, match="missing.xml"):
        harness_resources().get_resource("missing.xml")


def test_scan_package():
    resources = harness_resources()
    assert [name for name, _ in resources.scan_package("org.apache.camel.itest.springboot")] == [
        "org/apache/camel/itest/springboot/ITestConfig.class",
        "org/apache/camel/itest/springboot/util/Helper.class",
    ]
    assert [
        name for name, _ in resources.scan_package("org.apache.camel.itest.springboot", recursive=False)
    ] == ["org/apache/camel/itest/springboot/ITestConfig.class"]
    assert resources.scan_package("org.nothing.here") == []


# ===== Tests for assembly =====


def test_add_dependencies_deduplicates_by_file_name():
    """Test that a file listed twice produces a single nested jar."""
    archive = add_dependencies(
        Archive(),
        [("camel-core-2.18.0.jar", b"first"), ("commons-net-3.5.jar", b"net"), ("camel-core-2.18.0.jar", b"second")],
    )
    assert archive.library_entries() == [
        "BOOT-INF/lib/camel-core-2.18.0.jar",
        "BOOT-INF/lib/commons-net-3.5.jar",
    ]
    assert archive["BOOT-INF/lib/camel-core-2.18.0.jar"] == b"first"


def test_assemble_layout():
    archive = assemble(
        config(),
        [("camel-core-2.18.0.jar", b"core")],
        harness_resources(),
    )

    assert archive.paths()[0] == "META-INF/MANIFEST.MF"
    assert archive["META-INF/MANIFEST.MF"] == MANIFEST
    assert archive["BOOT-INF/classes/spring-logback.xml"] == b"<configuration/>"
    assert archive.library_entries() == ["BOOT-INF/lib/camel-core-2.18.0.jar"]

    # Support classes at the top level
    assert "org/jboss/shrinkwrap/api/Archive.class" in archive
    assert "org/springframework/boot/loader/JarLauncher.class" in archive
    assert "org/apache/camel/itest/springboot/README.txt" not in archive

    # Shared classes at the top level and under BOOT-INF/classes
    assert "org/apache/camel/itest/springboot/ITestConfig.class" in archive
    assert "BOOT-INF/classes/org/apache/camel/itest/springboot/ITestConfig.class" in archive
    assert "BOOT-INF/classes/org/apache/camel/itest/springboot/util/Helper.class" in archive
    assert "BOOT-INF/classes/org/jboss/shrinkwrap/api/Archive.class" not in archive


def test_assemble_without_custom_log():
    archive = assemble(config(use_custom_log=False), [], harness_resources())
    assert "BOOT-INF/classes/spring-logback.xml" not in archive
    assert "BOOT-INF/classes" in archive
    assert "BOOT-INF/lib" in archive


def test_assemble_copies_configured_resources():
    builder = ITestConfigBuilder("camel-ftp").resource("application-test.properties", "application.properties")
    builder.resource("users.properties")
    resources = harness_resources(**{"application-test.properties": b"a=b", "users.properties": b"u=p"})

    archive = assemble(builder.build(), [], resources)

    assert archive["BOOT-INF/classes/application.properties"] == b"a=b"
    assert archive["BOOT-INF/classes/users.properties"] == b"u=p"


def test_assemble_fails_without_manifest():
    resources = ClasspathResources([("spring-logback.xml", b"<configuration/>")])
    with pytest.raises(ResourceNotFoundError, match="BOOT-MANIFEST.MF"):
        assemble(config(), [], resources)


def test_assemble_fails_on_missing_resource():
    builder = ITestConfigBuilder("camel-ftp").resource("missing.properties")
    with pytest.raises(ResourceNotFoundError):
        assemble(builder.build(), [], harness_resources())
