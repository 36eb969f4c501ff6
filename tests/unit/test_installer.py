"""Unit tests for Poppler detection and package-manager installation."""

from __future__ import annotations

import subprocess

import pytest

from pdf_translator.errors import InstallError
from pdf_translator.installer import PopplerInstaller

_VERSION_BANNER = "pdftotext version 24.02.0\nCopyright 2005-2024 The Poppler Developers\n"


class _Runner:
    """Subprocess double that answers `pdftotext -v` and install commands."""

    def __init__(self, installed: bool, install_returncode: int = 0) -> None:
        self.installed = installed
        self.install_returncode = install_returncode
        self.commands: list[list[str]] = []

    def __call__(self, command: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        self.commands.append(command)
        if command[-1] == "-v":
            if not self.installed:
                raise FileNotFoundError("pdftotext")
            return subprocess.CompletedProcess(command, 0, stdout="", stderr=_VERSION_BANNER)
        if self.install_returncode == 0:
            self.installed = True
        return subprocess.CompletedProcess(
            command, self.install_returncode, stdout="", stderr="E: Unable to locate package"
        )


def test_already_installed_poppler_is_reported() -> None:
    runner = _Runner(installed=True)
    installer = PopplerInstaller(platform="linux", runner=runner, locate=lambda name: None)

    report = installer.run()

    assert report.already_installed is True
    assert report.package_manager is None
    assert report.version_line == "pdftotext version 24.02.0"
    assert len(runner.commands) == 1


@pytest.mark.parametrize(
    ("platform", "available", "expected_command"),
    [
        ("linux", {"yum"}, ["sudo", "yum", "install", "-y", "poppler-utils"]),
        ("linux", {"apt", "pacman"}, ["sudo", "apt", "install", "-y", "poppler-utils"]),
        ("darwin", {"brew"}, ["brew", "install", "poppler"]),
        ("win32", {"choco"}, ["choco", "install", "poppler", "-y"]),
    ],
)
def test_missing_poppler_is_installed_with_platform_manager(
    platform: str, available: set[str], expected_command: list[str]
) -> None:
    runner = _Runner(installed=False)
    installer = PopplerInstaller(
        platform=platform,
        runner=runner,
        locate=lambda name: f"/usr/bin/{name}" if name in available else None,
    )

    report = installer.run()

    assert report.already_installed is False
    assert report.package_manager == expected_command[1 if expected_command[0] == "sudo" else 0]
    assert expected_command in runner.commands


def test_no_package_manager_raises_install_error() -> None:
    installer = PopplerInstaller(
        platform="linux", runner=_Runner(installed=False), locate=lambda name: None
    )

    with pytest.raises(InstallError, match="No supported package manager"):
        installer.run()


def test_failed_install_command_raises_install_error() -> None:
    installer = PopplerInstaller(
        platform="linux",
        runner=_Runner(installed=False, install_returncode=100),
        locate=lambda name: "/usr/bin/apt" if name == "apt" else None,
    )

    with pytest.raises(InstallError, match="Unable to locate package"):
        installer.run()
