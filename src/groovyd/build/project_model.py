"""Interfaces to the host project.

The driver never owns the project model. It reads it through the interfaces
below:
- IProjectModel: units, file classification, declared types, file index
- IResourceCopier: handles files that are not compiled
- IValidationReporter: shows configuration problems to the operator
- ICompileContext: receives compiler diagnostics
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from ..model import CompilationUnit, CompiledArtifact, CompilerDiagnostic, Severity


class IProjectModel(ABC):
    """Interface to the host's module/project model.

    Reads of mutable project state (declared types, classpath roots) must
    happen inside read_action(). The default scope is a reentrant lock shared
    with writers that call write_action().
    """

    def __init__(self):
        self._model_lock = threading.RLock()

    @contextmanager
    def read_action(self) -> Iterator[None]:
        """Scoped, reentrant read access to the model."""
        with self._model_lock:
            yield

    @contextmanager
    def write_action(self) -> Iterator[None]:
        """Scoped exclusive access for model mutation."""
        with self._model_lock:
            yield

    @abstractmethod
    def get_unit_for_file(self, path: str) -> Optional[CompilationUnit]:
        """Get the unit a file belongs to, or None if it belongs to none."""
        pass

    @abstractmethod
    def is_test_source(self, unit: CompilationUnit, path: str) -> bool:
        """Check whether a file lies in the unit's test source roots."""
        pass

    @abstractmethod
    def is_resource_file(self, path: str) -> bool:
        """Check whether a file is a plain resource (copied, not compiled)."""
        pass

    @abstractmethod
    def get_declared_types(self, path: str) -> List[str]:
        """Get fully-qualified top-level type names declared in a source.

        Must be called inside read_action().
        """
        pass

    @abstractmethod
    def is_compiler_enabled(self, unit: CompilationUnit) -> bool:
        """Check whether the unit's Groovy files go through this compiler."""
        pass

    def try_setup_toolchain(self, unit: CompilationUnit) -> bool:
        """Give the model a chance to configure a missing toolchain.

        Returns:
            True if a toolchain is now configured for the unit
        """
        return False

    @abstractmethod
    def find_file(self, path: Path) -> Optional[Path]:
        """Resolve a path reported by the compiler through the file index."""
        pass


class IResourceCopier(ABC):
    """Handles files routed away from the compiler."""

    @abstractmethod
    def copy(
        self,
        unit: CompilationUnit,
        files: Sequence[str]
    ) -> Tuple[Set[CompiledArtifact], Set[Path]]:
        """Copy resources of a unit.

        Returns:
            Tuple of (copied artifacts, files to revisit later)
        """
        pass


class IValidationReporter(ABC):
    """Shows configuration errors to the operator."""

    @abstractmethod
    def show_error(self, title: str, message: str) -> None:
        pass


class LoggingValidationReporter(IValidationReporter):
    """Reports configuration errors through logging."""

    def __init__(self):
        self.errors: List[Tuple[str, str]] = []

    def show_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))
        logging.error(f"{title}: {message}")


class ICompileContext(ABC):
    """Receives diagnostics produced during a compile."""

    @abstractmethod
    def add_message(self, diagnostic: CompilerDiagnostic) -> None:
        pass


class MessageCollector(ICompileContext):
    """Compile context that keeps diagnostics in memory, in arrival order."""

    def __init__(self):
        self.messages: List[CompilerDiagnostic] = []

    def add_message(self, diagnostic: CompilerDiagnostic) -> None:
        self.messages.append(diagnostic)

    def get_messages(self, severity: Optional[Severity] = None) -> List[CompilerDiagnostic]:
        """Get collected diagnostics, optionally only one severity."""
        if severity is None:
            return list(self.messages)
        return [message for message in self.messages if message.severity is severity]

    @property
    def error_count(self) -> int:
        return len(self.get_messages(Severity.ERROR))
