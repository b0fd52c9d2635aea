"""Parameter file protocol.

The compiler process reads what to compile from a line-oriented parameter
file. Directives appear in a fixed order:

    SRC_FILE                   one block per file, in input order
    /abs/path/A.groovy
    com.example.A              declared top-level types (main sources only)
    END
    TEST_FILE                  test sources carry no type block
    /abs/path/ATest.groovy
    CLASSPATH
    <compilation classpath>
    IS_GRAILS
    true|false
    ENCODING                   optional, only when it differs from the platform default
    <charset>
    OUTPUTPATH
    <main output dir>
    TEST_OUTPUTPATH
    <test output dir>
"""

import logging
import locale
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.settings import platform_charset, same_charset
from ..model import CompilationUnit, CompileRequest, SourceFile
from .project_model import IProjectModel

SRC_FILE = "SRC_FILE"
TEST_FILE = "TEST_FILE"
END = "END"
CLASSPATH = "CLASSPATH"
IS_GRAILS = "IS_GRAILS"
ENCODING = "ENCODING"
OUTPUTPATH = "OUTPUTPATH"
TEST_OUTPUTPATH = "TEST_OUTPUTPATH"


class RequestEncodingError(Exception):
    """Raised when a parameter file cannot be written or read."""

    pass


def build_source_files(
    model: IProjectModel,
    unit: CompilationUnit,
    paths: Sequence[str]
) -> List[SourceFile]:
    """Classify files and collect the types declared by main sources.

    Type lookup reads the project model and runs inside its read scope.

    Args:
        model: Project model
        unit: Compilation unit the files belong to
        paths: Files to compile, in order

    Returns:
        SourceFile list in input order
    """
    files = []
    for path in paths:
        if model.is_test_source(unit, path):
            files.append(SourceFile(path=path, is_test=True))
            continue

        with model.read_action():
            declared = tuple(model.get_declared_types(path))
        files.append(SourceFile(path=path, is_test=False, declared_types=declared))
    return files


class RequestEncoder:
    """Writes CompileRequest objects to parameter files."""

    def __init__(self, work_dir: Optional[Path] = None, default_charset: Optional[str] = None):
        """Initialize the encoder.

        Args:
            work_dir: Directory for parameter files (system temp dir if None)
            default_charset: Platform charset (detected if None)
        """
        self.work_dir = work_dir
        self.default_charset = default_charset or platform_charset()

    def encode_lines(self, request: CompileRequest) -> List[str]:
        """Render a request as parameter file lines (without newlines)."""
        lines: List[str] = []

        for source in request.files:
            lines.append(TEST_FILE if source.is_test else SRC_FILE)
            lines.append(source.path)
            if not source.is_test:
                lines.extend(source.declared_types or ())
                lines.append(END)

        lines.append(CLASSPATH)
        lines.append(request.classpath)

        lines.append(IS_GRAILS)
        lines.append("true" if request.framework_injection else "false")

        if request.encoding and not same_charset(request.encoding, self.default_charset):
            lines.append(ENCODING)
            lines.append(request.encoding)

        lines.append(OUTPUTPATH)
        lines.append(request.output_dir)

        lines.append(TEST_OUTPUTPATH)
        lines.append(request.test_output_dir)
        return lines

    def create_parameter_file(self) -> Path:
        """Create an empty parameter file.

        Raises:
            RequestEncodingError: If the file cannot be created
        """
        try:
            if self.work_dir is not None:
                self.work_dir.mkdir(parents=True, exist_ok=True)
            handle = tempfile.NamedTemporaryFile(
                prefix="toCompile", suffix="", dir=self.work_dir, delete=False
            )
            handle.close()
            return Path(handle.name)
        except OSError as e:
            raise RequestEncodingError(f"Failed to create parameter file: {e}") from e

    def write(self, request: CompileRequest, path: Optional[Path] = None) -> Path:
        """Write a request to a parameter file.

        Args:
            request: Request to encode
            path: Target file (a new temp file if None)

        Returns:
            Path to the written parameter file

        Raises:
            RequestEncodingError: If the file cannot be opened or written
        """
        if path is None:
            path = self.create_parameter_file()

        logging.debug(f"Running groovyc on: {[source.path for source in request.files]}")

        try:
            with open(path, "w", encoding=locale.getpreferredencoding(False), buffering=1) as f:
                for line in self.encode_lines(request):
                    f.write(line)
                    f.write("\n")
        except (OSError, UnicodeEncodeError) as e:
            raise RequestEncodingError(f"Failed to write parameter file {path}: {e}") from e

        return path


@dataclass
class ParameterFile:
    """Decoded contents of a parameter file."""

    files: List[SourceFile] = field(default_factory=list)
    classpath: str = ""
    framework_injection: bool = False
    encoding: Optional[str] = None
    output_dir: str = ""
    test_output_dir: str = ""


class RequestDecoder:
    """Reads parameter files written by RequestEncoder."""

    def decode_lines(self, lines: Sequence[str]) -> ParameterFile:
        """Parse parameter file lines.

        Raises:
            RequestEncodingError: On an unknown directive or truncated block
        """
        result = ParameterFile()
        i = 0

        def value_after(tag: str) -> str:
            if i + 1 >= len(lines):
                raise RequestEncodingError(f"Missing value after {tag}")
            return lines[i + 1]

        while i < len(lines):
            tag = lines[i]
            if tag == SRC_FILE:
                path = value_after(tag)
                i += 2
                types = []
                while i < len(lines) and lines[i] != END:
                    types.append(lines[i])
                    i += 1
                if i >= len(lines):
                    raise RequestEncodingError(f"Unterminated type block for {path}")
                result.files.append(SourceFile(path=path, is_test=False, declared_types=tuple(types)))
                i += 1
            elif tag == TEST_FILE:
                result.files.append(SourceFile(path=value_after(tag), is_test=True))
                i += 2
            elif tag == CLASSPATH:
                result.classpath = value_after(tag)
                i += 2
            elif tag == IS_GRAILS:
                result.framework_injection = value_after(tag).strip() == "true"
                i += 2
            elif tag == ENCODING:
                result.encoding = value_after(tag)
                i += 2
            elif tag == OUTPUTPATH:
                result.output_dir = value_after(tag)
                i += 2
            elif tag == TEST_OUTPUTPATH:
                result.test_output_dir = value_after(tag)
                i += 2
            elif tag == "":
                i += 1
            else:
                raise RequestEncodingError(f"Unknown directive at line {i + 1}: {tag!r}")

        return result

    def read(self, path: Path) -> ParameterFile:
        """Read and parse a parameter file.

        Raises:
            RequestEncodingError: If the file cannot be read or parsed
        """
        try:
            with open(path, "r", encoding=locale.getpreferredencoding(False)) as f:
                lines = f.read().splitlines()
        except OSError as e:
            raise RequestEncodingError(f"Failed to read parameter file {path}: {e}") from e
        return self.decode_lines(lines)
