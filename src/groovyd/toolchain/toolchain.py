"""Toolchain handles for the Groovy compiler.

A compilation unit points at up to two Groovy installations (a plain Groovy
distribution and a framework distribution that bundles its own Groovy) and
at a JDK used to run the compiler process.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class ToolchainError(Exception):
    """Raised when toolchain operations fail."""

    pass


@dataclass(frozen=True)
class Toolchain:
    """Install roots used to run the compiler for one unit.

    Attributes:
        groovy_home: Primary Groovy install root ("" when not configured)
        framework_home: Secondary framework install root ("" when not configured)
        jdk_home: JDK install root, None when the unit has no JDK
    """

    groovy_home: str = ""
    framework_home: str = ""
    jdk_home: Optional[Path] = None

    @property
    def is_configured(self) -> bool:
        """True when at least one install root is set."""
        return bool(self.groovy_home or self.framework_home)

    def select_root(self) -> Optional[str]:
        """Pick the install root whose lib/ directory feeds the classpath.

        The framework root takes precedence when it is non-empty. An empty
        framework root means there is no secondary toolchain.

        Returns:
            Chosen root normalized to forward slashes, or None if neither is set
        """
        root = self.framework_home or self.groovy_home
        if not root:
            return None
        return root.replace("\\", "/").rstrip("/")

    def lib_dir(self) -> Optional[str]:
        """Get the ``<root>/lib`` path (forward slashes), or None."""
        root = self.select_root()
        if root is None:
            return None
        return f"{root}/lib"

    @property
    def has_jdk(self) -> bool:
        return self.jdk_home is not None

    def get_vm_executable(self) -> Path:
        """Get the path to the JDK's ``java`` launcher.

        Returns:
            Path to the VM launcher

        Raises:
            ToolchainError: If no JDK is configured
        """
        if self.jdk_home is None:
            raise ToolchainError("No JDK configured for this toolchain")

        exe_suffix = ".exe" if sys.platform == "win32" else ""
        return Path(self.jdk_home) / "bin" / f"java{exe_suffix}"
