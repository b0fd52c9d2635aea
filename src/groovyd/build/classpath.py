"""Classpath resolution for the compiler process.

Two classpaths are built per compilation unit:
- The process classpath, passed with -cp to the child VM: the driver's
  runtime archive, runtime archives picked from the Groovy distribution's
  lib/ directory, and the unit's own library archives.
- The compilation classpath, written to the parameter file: every classpath
  root of the unit plus its main output directory.

Both are deduplicated with the first occurrence winning, so the child sees
the same order on every run.
"""

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from ..model import CompilationUnit
from ..toolchain.library_filter import RequiredLibraryFilter
from .project_model import IProjectModel

JAR_SEPARATOR = "!/"


def normalize_path(path: str) -> str:
    """Normalize a path to forward slashes."""
    return str(path).replace("\\", "/")


def strip_archive_suffix(path: str) -> str:
    """Strip an intra-archive suffix (``lib/a.jar!/`` -> ``lib/a.jar``)."""
    index = path.find(JAR_SEPARATOR)
    if index > 0:
        return path[:index]
    return path


class Classpath:
    """Ordered, duplicate-free list of classpath entries."""

    def __init__(self, entries: Optional[Iterable[str]] = None):
        self._entries: List[str] = []
        self._seen = set()
        if entries:
            self.extend(entries)

    def add(self, entry: str) -> None:
        """Append an entry unless it is already present."""
        entry = normalize_path(entry)
        if not entry or entry in self._seen:
            return
        self._seen.add(entry)
        self._entries.append(entry)

    def extend(self, entries: Iterable[str]) -> None:
        for entry in entries:
            self.add(entry)

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def to_string(self) -> str:
        """Join entries with the host path separator."""
        return os.pathsep.join(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        return isinstance(entry, str) and normalize_path(entry) in self._seen

    def __repr__(self) -> str:
        return f"Classpath({self._entries!r})"


class ClasspathResolver:
    """Resolves process and compilation classpaths for compilation units.

    Usage:
        resolver = ClasspathResolver(runtime_jar=Path("rt/groovyd-rt.jar"))
        classpath = resolver.resolve_process_classpath(unit, model)
        print(classpath.to_string())
    """

    def __init__(
        self,
        runtime_jar: Path,
        library_filter: Optional[RequiredLibraryFilter] = None,
        profiler_jar: Optional[Path] = None
    ):
        """Initialize the resolver.

        Args:
            runtime_jar: Driver runtime archive, always the first entry
            library_filter: Filter for lib/ archives (default allow-list if None)
            profiler_jar: Profiler archive appended when profiling is enabled
        """
        self.runtime_jar = runtime_jar
        self.library_filter = library_filter or RequiredLibraryFilter()
        self.profiler_jar = profiler_jar

    def find_toolchain_libraries(self, unit: CompilationUnit) -> List[str]:
        """List the accepted archives of the unit's toolchain lib/ directory.

        Returns:
            Sorted archive paths, empty when the directory does not exist
        """
        lib_path = unit.toolchain.lib_dir()
        if lib_path is None:
            return []

        lib_dir = Path(lib_path)
        if not lib_dir.is_dir():
            return []

        return [
            normalize_path(str(child))
            for child in sorted(lib_dir.iterdir(), key=lambda p: p.name)
            if self.library_filter.accepts(child.name)
        ]

    @staticmethod
    def unit_library_archives(unit: CompilationUnit) -> List[str]:
        """Get the unit's archive classpath entries without archive suffixes."""
        archives = []
        for entry in unit.classpath:
            path = normalize_path(entry)
            if JAR_SEPARATOR in path:
                archives.append(strip_archive_suffix(path))
            elif path.lower().endswith(RequiredLibraryFilter.ARCHIVE_EXTENSION):
                archives.append(path)
        return archives

    def resolve_process_classpath(
        self,
        unit: CompilationUnit,
        model: IProjectModel,
        profile: bool = False
    ) -> Classpath:
        """Build the -cp value for the child VM.

        Args:
            unit: Compilation unit
            model: Project model (library roots are read in its read scope)
            profile: Append the profiler archive

        Returns:
            Classpath starting with the runtime archive
        """
        classpath = Classpath([str(self.runtime_jar)])
        classpath.extend(self.find_toolchain_libraries(unit))

        with model.read_action():
            classpath.extend(self.unit_library_archives(unit))

        if profile and self.profiler_jar is not None:
            classpath.add(str(self.profiler_jar))

        return classpath

    def resolve_compilation_classpath(
        self,
        unit: CompilationUnit,
        model: IProjectModel
    ) -> Classpath:
        """Build the classpath the child compiles against.

        Args:
            unit: Compilation unit
            model: Project model (read inside its read scope)

        Returns:
            Classpath of every unit root followed by the main output directory
        """
        with model.read_action():
            classpath = Classpath(strip_archive_suffix(normalize_path(entry)) for entry in unit.classpath)

        if unit.output_dir:
            classpath.add(unit.output_dir)
        return classpath
