"""
Data model shared by the compiler driver components.

This module defines the records that flow between the project model, the
request encoder, the output handler and the result aggregator:
- Compilation units and the files handed to the compiler
- Compiler diagnostics and their severity
- Compiled artifacts and the terminal batch result
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

from .toolchain.toolchain import Toolchain


class Severity(Enum):
    """Compiler message severity."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    STATISTICS = "statistics"

    @classmethod
    def from_category(cls, category: Optional[str]) -> "Severity":
        """Map a child process category token to a Severity.

        Unknown or missing tokens map to ERROR so unexpected child output
        stays visible.
        """
        for severity in cls:
            if severity.value == category:
                return severity
        return cls.ERROR


@dataclass(frozen=True)
class CompilationUnit:
    """A module of the host project compiled in one child process.

    Attributes:
        name: Unit identifier (module name)
        toolchain: Groovy/framework/JDK install roots for the unit
        classpath: Ordered compile classpath entries (archives may carry a
            ``!/`` intra-archive suffix)
        output_dir: Output directory for main artifacts
        test_output_dir: Output directory for test artifacts
        encoding: Source encoding override, None for the IDE default
        framework_injection: Whether dynamic type injection is enabled
    """

    name: str
    toolchain: Toolchain
    classpath: Tuple[str, ...] = ()
    output_dir: str = ""
    test_output_dir: str = ""
    encoding: Optional[str] = None
    framework_injection: bool = False


@dataclass(frozen=True)
class SourceFile:
    """A file passed to the compiler.

    ``declared_types`` lists the fully-qualified top-level types of a main
    source; it is None for test sources, which carry no type block.
    """

    path: str
    is_test: bool = False
    declared_types: Optional[Tuple[str, ...]] = None


@dataclass
class CompileRequest:
    """Everything the parameter file says about one unit's compilation."""

    unit: CompilationUnit
    files: List[SourceFile]
    classpath: str
    encoding: Optional[str] = None

    @property
    def framework_injection(self) -> bool:
        return self.unit.framework_injection

    @property
    def output_dir(self) -> str:
        return self.unit.output_dir

    @property
    def test_output_dir(self) -> str:
        return self.unit.test_output_dir


@dataclass(frozen=True)
class CompilerDiagnostic:
    """A message reported by the compiler.

    Line and column are 1-based; both are -1 when the message carries no
    position.
    """

    severity: Severity
    message: str
    url: Optional[str] = None
    line: int = -1
    column: int = -1

    @property
    def has_position(self) -> bool:
        return self.line >= 0 and self.column >= 0


@dataclass(frozen=True)
class CompiledArtifact:
    """A source file the compiler produced output for."""

    output_path: str
    source_path: str


@dataclass(frozen=True)
class BatchResult:
    """Terminal result of one driver invocation."""

    compiled: FrozenSet[CompiledArtifact] = field(default_factory=frozenset)
    to_recompile: FrozenSet[Path] = field(default_factory=frozenset)

    @property
    def compiled_sources(self) -> FrozenSet[str]:
        return frozenset(artifact.source_path for artifact in self.compiled)
