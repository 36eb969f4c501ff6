"""Locate external command-line tools such as `pdftotext` and `gcloud`.

Copies shipped inside the application bundle win over PATH, so a frozen build
can carry its own Poppler binaries even when an older system copy exists.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import sys


def resolve_executable(command_name: str) -> str:
    """Return a path for `command_name`, or the bare name when nothing is found.

    Lookup order is the bundle's `bin/` directory, the bundle root, then PATH.
    Returning the bare name lets `subprocess` raise its native missing-binary
    error.
    """

    name = command_name.strip()
    if not name:
        return command_name
    located = find_executable(name)
    return located if located is not None else name


def find_executable(command_name: str) -> str | None:
    """Return the resolved executable path, or `None` when it cannot be found."""

    name = command_name.strip()
    if not name:
        return None
    bundled = _bundled_executable(name)
    if bundled is not None:
        return bundled
    return shutil.which(name)


def _bundled_executable(name: str) -> str | None:
    root = _app_root()
    variants = (name,) if name.lower().endswith(".exe") else (name, f"{name}.exe")
    for directory in (root / "bin", root):
        for variant in variants:
            candidate = directory / variant
            if candidate.is_file():
                return str(candidate)
    return None


def _app_root() -> Path:
    """Return the bundle directory when frozen, else the source checkout root."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]
