"""Tests for copying staged resources by file name pattern."""

import pytest

from pants_backend_springboot_itest.exceptions import ResourceNotFoundError
from pants_backend_springboot_itest.utils.resources import copy_resource


def test_copy_first_match_in_name_order(tmp_path):
    source = tmp_path / "source"
    source.mkdir()
    (source / "camel-core-2.18.1.jar").write_bytes(b"newer")
    (source / "camel-core-2.18.0.jar").write_bytes(b"older")
    (source / "camel-ftp-2.18.0.jar").write_bytes(b"ftp")

    copied = copy_resource(source, r"camel-core-.*\.jar", tmp_path / "target" / "lib")

    assert copied == tmp_path / "target" / "lib" / "camel-core-2.18.0.jar"
    assert copied.read_bytes() == b"older"
    assert sorted(p.name for p in (tmp_path / "target" / "lib").iterdir()) == ["camel-core-2.18.0.jar"]


def test_copy_requires_full_match(tmp_path):
    (tmp_path / "camel-core-2.18.0.jar.sha1").write_text("abc")
    with pytest.raises(ResourceNotFoundError, match="No file matching regex"):
        copy_resource(tmp_path, r"camel-core-.*\.jar", tmp_path / "target")


def test_copy_from_missing_folder(tmp_path):
    with pytest.raises(ResourceNotFoundError):
        copy_resource(tmp_path / "missing", r".*", tmp_path / "target")
