"""
Driver settings.

Settings that do not belong to any single compilation unit: where the
driver's own runtime archive lives, which entry point the child process runs,
how much heap it gets and whether it runs under the profiler.

Two settings can be overridden from the environment, using exactly these
keys:
    groovy.compiler.Xmx       heap size passed as -Xmx (default 400m)
    profile.groovy.compiler   "true" launches the child under the profiler
"""

import codecs
import locale
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from ..toolchain.library_filter import RequiredLibraryFilter

XMX_PROPERTY = "groovy.compiler.Xmx"
PROFILE_PROPERTY = "profile.groovy.compiler"

DEFAULT_XMX = "400m"
DEFAULT_ENTRY_POINT = "org.groovyd.rt.GroovycRunner"
DEFAULT_RESOURCE_PATTERNS: Tuple[str, ...] = (
    "*.properties",
    "*.xml",
    "*.gif",
    "*.png",
    "*.jpeg",
    "*.jpg",
    "*.html",
    "*.dtd",
    "*.tld",
    "*.ftl",
)

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


def platform_charset() -> str:
    """Get the platform default charset name."""
    return locale.getpreferredencoding(False)


def same_charset(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two charset names by codec identity (``utf8`` == ``UTF-8``)."""
    if first is None or second is None:
        return first == second
    try:
        return codecs.lookup(first).name == codecs.lookup(second).name
    except LookupError:
        return first.lower() == second.lower()


@dataclass
class DriverSettings:
    """Configuration for the compiler driver.

    Attributes:
        xmx: Child heap size (the value after -Xmx)
        profile: Launch the child under the profiling agent
        runtime_jar: Driver runtime archive, always first on the classpath
        profiler_jar: Profiler controller archive added when profiling
        native_lib_dir: Directory passed as java.library.path when profiling
        entry_point: Main class the child process runs
        work_dir: Directory for parameter files (system temp dir if None)
        ide_charset: Charset the IDE uses for sources (platform default if None)
        library_allow_list: Substrings RequiredLibraryFilter accepts
    """

    xmx: str = DEFAULT_XMX
    profile: bool = False
    runtime_jar: Path = _PACKAGE_DIR / "rt" / "groovyd-rt.jar"
    profiler_jar: Path = _PACKAGE_DIR / "rt" / "yjp-controller-api-redist.jar"
    native_lib_dir: Path = _PACKAGE_DIR / "rt" / "bin"
    entry_point: str = DEFAULT_ENTRY_POINT
    work_dir: Optional[Path] = None
    ide_charset: Optional[str] = None
    library_allow_list: Tuple[str, ...] = RequiredLibraryFilter.DEFAULT_ALLOW_LIST

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides
    ) -> "DriverSettings":
        """Create settings, applying environment overrides.

        Args:
            environ: Environment mapping (defaults to os.environ)
            **overrides: Explicit field values, applied last

        Returns:
            DriverSettings instance
        """
        if environ is None:
            environ = os.environ

        values = {}
        xmx = environ.get(XMX_PROPERTY)
        if xmx:
            values["xmx"] = xmx
        if environ.get(PROFILE_PROPERTY) == "true":
            values["profile"] = True

        values.update(overrides)
        return cls(**values)

    def effective_charset(self) -> str:
        """Get the IDE charset, falling back to the platform default."""
        return self.ide_charset or platform_charset()

    def create_library_filter(self) -> RequiredLibraryFilter:
        return RequiredLibraryFilter(self.library_allow_list)
