"""In-memory Spring Boot nested-jar archive and its assembly.

The archive produced for an integration test has the layout of an executable
Spring Boot jar:

    META-INF/MANIFEST.MF     the boot manifest
    BOOT-INF/lib/*.jar       every resolved dependency, as a nested jar
    BOOT-INF/classes/**      application classes and resources
    <package>/**.class       harness support classes, on the top-level classpath

Classes of the shared packages are written twice: at the top level for the
classloader running the harness, and under BOOT-INF/classes for the
classloader of the embedded application.
"""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from typing import Iterable, Iterator, Sequence

from pants_backend_springboot_itest.config import (
    CLASSES_FOLDER,
    CUSTOM_LOG_RESOURCE,
    DEFAULT_SHARED_PACKAGES,
    DEFAULT_SUPPORT_PACKAGES,
    LIB_FOLDER,
    MANIFEST_PATH,
    MANIFEST_RESOURCE,
)
from pants_backend_springboot_itest.exceptions import ResourceNotFoundError
from pants_backend_springboot_itest.utils.itest_config import ITestConfig

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    normalized = posixpath.normpath("/" + path.replace("\\", "/")).lstrip("/")
    return "" if normalized == "." else normalized


class Archive:
    """Insertion-ordered mapping of archive paths to contents.

    Directory markers map to None. Adding an existing path replaces its
    content in place (last write wins) and keeps its original position.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes | None] = {}

    def __contains__(self, path: str) -> bool:
        return _normalize(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, path: str) -> bytes | None:
        return self._entries[_normalize(path)]

    def add(self, content: bytes, path: str) -> Archive:
        target = _normalize(path)
        if not target:
            raise ValueError("Cannot add content at the archive root")
        if self._entries.get(target) is not None:
            logger.debug(f"Overwriting archive entry {target}")
        self._entries[target] = content
        return self

    def add_directory(self, path: str) -> Archive:
        target = _normalize(path)
        if target and target not in self._entries:
            self._entries[target] = None
        return self

    def add_directories(self, *paths: str) -> Archive:
        for path in paths:
            self.add_directory(path)
        return self

    def paths(self) -> list[str]:
        return list(self._entries)

    def files(self) -> Iterator[tuple[str, bytes]]:
        for path, content in self._entries.items():
            if content is not None:
                yield path, content

    def entries_under(self, folder: str) -> list[str]:
        prefix = _normalize(folder) + "/"
        return [
            path for path, content in self._entries.items()
            if content is not None and path.startswith(prefix)
        ]

    def library_entries(self) -> list[str]:
        return self.entries_under(LIB_FOLDER)

    def to_zip_bytes(self) -> bytes:
        """Export the archive in zip format.

        Nested jars and the manifest are stored uncompressed, as the Spring
        Boot launcher requires for nested jars; everything else is deflated.
        Parent directories are emitted before their first file.
        """
        buffer = io.BytesIO()
        written: set[str] = set()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:

            def write_dirs(path: str) -> None:
                parent = posixpath.dirname(path)
                if not parent:
                    return
                write_dirs(parent)
                name = parent + "/"
                if name not in written:
                    zf.writestr(name, b"")
                    written.add(name)

            for path, content in self._entries.items():
                write_dirs(path)
                if content is None:
                    name = path + "/"
                    if name not in written:
                        zf.writestr(name, b"")
                        written.add(name)
                    continue
                stored = path == MANIFEST_PATH or path.startswith(LIB_FOLDER + "/")
                zf.writestr(
                    path,
                    content,
                    compress_type=zipfile.ZIP_STORED if stored else zipfile.ZIP_DEFLATED,
                )
                written.add(path)
        return buffer.getvalue()


class ClasspathResources:
    """A classpath seen through the eyes of a classloader.

    Entries are (path, content) pairs in classpath order. Jar entries are
    searched inside; any other entry is a loose resource at its own path.
    The first entry providing a resource wins.
    """

    def __init__(self, entries: Iterable[tuple[str, bytes]]) -> None:
        self._resources: dict[str, bytes] = {}
        for path, content in entries:
            if path.endswith(".jar"):
                self._add_jar(path, content)
            else:
                self._resources.setdefault(_normalize(path), content)

    def _add_jar(self, path: str, content: bytes) -> None:
        try:
            with zipfile.ZipFile(io.BytesIO(content), "r") as jar:
                for info in jar.infolist():
                    if info.is_dir():
                        continue
                    name = _normalize(info.filename)
                    if name not in self._resources:
                        self._resources[name] = jar.read(info)
        except zipfile.BadZipFile:
            logger.debug(f"Skipping classpath entry {path}: not a valid jar")

    def __contains__(self, name: str) -> bool:
        return _normalize(name) in self._resources

    def get_resource(self, name: str) -> bytes:
        try:
            return self._resources[_normalize(name)]
        except KeyError:
            raise ResourceNotFoundError(f"Resource {name} was not found on the classpath")

    def scan_package(self, package: str, recursive: bool = True) -> list[tuple[str, bytes]]:
        """Compiled classes of `package`, sorted by path."""
        prefix = package.replace(".", "/").strip("/") + "/"
        found = []
        for name, content in self._resources.items():
            if not name.endswith(".class") or not name.startswith(prefix):
                continue
            if not recursive and "/" in name[len(prefix):]:
                continue
            found.append((name, content))
        return sorted(found)


def add_dependencies(archive: Archive, files: Iterable[tuple[str, bytes]]) -> Archive:
    """Add each dependency file once, as a nested jar under BOOT-INF/lib."""
    unique: dict[str, bytes] = {}
    for file_name, content in files:
        unique.setdefault(file_name, content)
    for file_name, content in unique.items():
        logger.debug(f"Adding spring-boot dependency: {file_name}")
        archive.add(content, f"{LIB_FOLDER}/{file_name}")
    return archive


def add_packages(
    archive: Archive,
    resources: ClasspathResources,
    packages: Iterable[str],
    prefix: str = "",
) -> Archive:
    for package in packages:
        classes = resources.scan_package(package)
        if not classes:
            logger.debug(f"No classes found for package {package}")
        for path, content in classes:
            archive.add(content, posixpath.join(prefix, path) if prefix else path)
    return archive


def assemble(
    config: ITestConfig,
    library_files: Sequence[tuple[str, bytes]],
    resources: ClasspathResources,
    support_packages: Sequence[str] = DEFAULT_SUPPORT_PACKAGES,
    shared_packages: Sequence[str] = DEFAULT_SHARED_PACKAGES,
) -> Archive:
    """Build the nested-jar archive for a test run.

    Raises:
        ResourceNotFoundError: if the manifest, the custom log configuration
            (when enabled) or a configured resource is not on the classpath.
    """
    archive = Archive()
    archive.add(resources.get_resource(MANIFEST_RESOURCE), MANIFEST_PATH)
    archive.add_directories(LIB_FOLDER, CLASSES_FOLDER)

    if config.use_custom_log:
        archive.add(
            resources.get_resource(CUSTOM_LOG_RESOURCE),
            f"{CLASSES_FOLDER}/{CUSTOM_LOG_RESOURCE}",
        )

    for source, target in config.resources.items():
        archive.add(resources.get_resource(source), f"{CLASSES_FOLDER}/{target}")

    add_dependencies(archive, library_files)

    add_packages(archive, resources, support_packages)
    add_packages(archive, resources, shared_packages, prefix=CLASSES_FOLDER)
    return archive
