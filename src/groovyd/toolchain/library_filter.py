"""Required library filter.

Decides which archives from a Groovy distribution's lib/ directory belong on
the compiler process classpath. Matching is a name heuristic, not a
dependency resolver: false positives are acceptable.
"""

from typing import Iterable, Optional, Tuple


class RequiredLibraryFilter:
    """Accepts archive names whose stem contains an allow-listed substring.

    The version suffix (``-2.4.7`` in ``groovy-all-2.4.7.jar``) is stripped
    before matching, and matching is case-insensitive.

    Usage:
        library_filter = RequiredLibraryFilter()
        library_filter.accepts("Groovy-All-2.4.jar")  # True
        library_filter.accepts("foo.jar")             # False
    """

    DEFAULT_ALLOW_LIST: Tuple[str, ...] = (
        "groovy",   # language runtime
        "asm",      # bytecode toolkit
        "antlr",    # grammar runtime
        "junit",    # test framework
        "jline",    # line editing
        "ant",      # build tool runtime
        "commons",  # common utilities
    )

    ARCHIVE_EXTENSION = ".jar"

    def __init__(self, allow_list: Optional[Iterable[str]] = None):
        """Initialize the filter.

        Args:
            allow_list: Substrings to accept (defaults to DEFAULT_ALLOW_LIST)
        """
        if allow_list is None:
            allow_list = self.DEFAULT_ALLOW_LIST
        self.allow_list = tuple(entry.lower() for entry in allow_list)

    @classmethod
    def strip_version(cls, stem: str) -> str:
        """Remove a trailing ``-<digit>...`` version suffix from a stem."""
        index = stem.rfind("-")
        if index != -1 and len(stem) > index + 1 and stem[index + 1].isdigit():
            return stem[:index]
        return stem

    def accepts(self, file_name: str) -> bool:
        """Check whether an archive should be put on the classpath.

        Args:
            file_name: Bare file name (no directory part)

        Returns:
            True if the name is an archive matching the allow-list
        """
        name = file_name.lower()
        if not name.endswith(self.ARCHIVE_EXTENSION):
            return False

        stem = self.strip_version(name[: -len(self.ARCHIVE_EXTENSION)])
        return any(required in stem for required in self.allow_list)

    __call__ = accepts
