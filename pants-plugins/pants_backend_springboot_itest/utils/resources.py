"""Test-support helpers for staging resources on disk."""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from pants_backend_springboot_itest.exceptions import ResourceNotFoundError


def copy_resource(folder: str | Path, file_name_regex: str, target_folder: str | Path) -> Path:
    """Copy the first file of `folder` whose name matches `file_name_regex`.

    Candidates are considered in name order. The target folder is created if
    needed.

    Raises:
        ResourceNotFoundError: if no file name matches.
    """
    pattern = re.compile(file_name_regex)
    source = Path(folder)
    candidates = sorted(
        path for path in (source.iterdir() if source.is_dir() else ())
        if pattern.fullmatch(path.name)
    )
    if not candidates:
        raise ResourceNotFoundError(f"No file matching regex {file_name_regex} has been found")

    target = Path(target_folder)
    target.mkdir(parents=True, exist_ok=True)
    return Path(shutil.copy2(candidates[0], target / candidates[0].name))
