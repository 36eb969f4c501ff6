"""Poppler (`pdftotext`) detection and installation.

Responsibilities:
- Detect whether the Poppler `pdftotext` tool is available.
- Pick a supported package manager for the current platform and install Poppler.

Key types:
- `PopplerInstaller`: check-then-install workflow.
- `InstallReport`: outcome of one install invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
import subprocess
import sys
from typing import Callable

from .errors import InstallError
from .runtime_tools import find_executable, resolve_executable

_LINUX_MANAGERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("apt", ("sudo", "apt", "install", "-y", "poppler-utils")),
    ("yum", ("sudo", "yum", "install", "-y", "poppler-utils")),
    ("pacman", ("sudo", "pacman", "-S", "--noconfirm", "poppler")),
)
_MACOS_MANAGERS = (("brew", ("brew", "install", "poppler")),)
_WINDOWS_MANAGERS = (("choco", ("choco", "install", "poppler", "-y")),)


@dataclass(frozen=True, slots=True)
class InstallReport:
    """Outcome of an install request.

    Attributes:
        already_installed: Poppler was found before anything was installed.
        package_manager: Manager used for installation, when one ran.
        version_line: First line of `pdftotext -v` after the run, if available.
    """

    already_installed: bool
    package_manager: str | None = None
    version_line: str = ""


class PopplerInstaller:
    """Check for Poppler and install it with the platform package manager."""

    def __init__(
        self,
        platform: str | None = None,
        runner: Callable[..., subprocess.CompletedProcess[str]] | None = None,
        locate: Callable[[str], str | None] | None = None,
    ) -> None:
        self.platform = platform if platform is not None else sys.platform
        self._runner = runner if runner is not None else subprocess.run
        self._locate = locate if locate is not None else find_executable

    def check(self) -> str | None:
        """Return the Poppler version line, or `None` when it is not installed."""

        try:
            result = self._runner(
                [resolve_executable("pdftotext"), "-v"],
                check=False,
                capture_output=True,
                text=True,
            )
        except OSError:
            return None
        # pdftotext prints its version banner on stderr
        output = f"{result.stderr}\n{result.stdout}"
        if "Poppler" not in output and "poppler" not in output:
            return None
        for line in output.splitlines():
            if line.strip():
                return line.strip()
        return None

    def package_manager(self) -> tuple[str, tuple[str, ...]]:
        """Return the first available package manager and its install command."""

        for name, command in self._candidates():
            if self._locate(name) is not None:
                return name, command
        raise InstallError(
            "No supported package manager found "
            f"({', '.join(name for name, _ in self._candidates()) or 'none for this platform'}). "
            "Install Poppler manually so that `pdftotext` is on PATH."
        )

    def run(self) -> InstallReport:
        """Install Poppler unless it is already present."""

        version = self.check()
        if version is not None:
            return InstallReport(already_installed=True, version_line=version)

        manager, command = self.package_manager()
        try:
            result = self._runner(list(command), check=False, capture_output=True, text=True)
        except OSError as exc:
            raise InstallError(f"Could not start `{manager}`: {exc}") from exc
        if result.returncode != 0:
            details = (result.stderr or result.stdout or "").strip() or "unknown error"
            raise InstallError(f"Installing Poppler with `{manager}` failed: {details}")

        version = self.check()
        if version is None:
            raise InstallError(
                f"`{manager}` finished but `pdftotext` is still not available on PATH."
            )
        return InstallReport(
            already_installed=False, package_manager=manager, version_line=version
        )

    def _candidates(self) -> tuple[tuple[str, tuple[str, ...]], ...]:
        if self.platform.startswith("linux"):
            return _LINUX_MANAGERS
        if self.platform == "darwin":
            return _MACOS_MANAGERS
        if self.platform.startswith("win"):
            return _WINDOWS_MANAGERS
        return ()
