"""Toolchain handling for groovyd.

This module describes the Groovy/JDK installations a unit compiles with and
the heuristic used to pick runtime archives out of a distribution.
"""

from .library_filter import RequiredLibraryFilter
from .toolchain import Toolchain, ToolchainError

__all__ = [
    "RequiredLibraryFilter",
    "Toolchain",
    "ToolchainError",
]
