"""CLI utility functions for groovyd.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Diagnostic formatting
- Path validation
"""

import sys
from pathlib import Path

from groovyd.model import CompilerDiagnostic, Severity


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Cannot compile", "Compilation failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting.

        Args:
            error: The FileNotFoundError to handle
        """
        ErrorFormatter.print_error("Error: File not found", str(error))
        print("Make sure you're in a groovyd project directory with a groovyd.ini file.")
        sys.exit(1)

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Compilation interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class DiagnosticFormatter:
    """Renders compiler diagnostics as compiler-style lines."""

    LABELS = {
        Severity.ERROR: "error",
        Severity.WARNING: "warning",
        Severity.INFORMATION: "info",
        Severity.STATISTICS: "stats",
    }

    @staticmethod
    def format(diagnostic: CompilerDiagnostic) -> str:
        """Format a diagnostic.

        Examples:
            /src/A.groovy:3:7: error: unexpected token: }
            warning: deprecated option
        """
        label = DiagnosticFormatter.LABELS[diagnostic.severity]
        location = ""
        if diagnostic.url:
            location = diagnostic.url
            if diagnostic.has_position:
                location += f":{diagnostic.line}:{diagnostic.column}"
            location += ": "
        return f"{location}{label}: {diagnostic.message.rstrip()}"

    @staticmethod
    def print_diagnostic(diagnostic: CompilerDiagnostic) -> None:
        line = DiagnosticFormatter.format(diagnostic)
        if diagnostic.severity is Severity.ERROR:
            print(f"{ErrorFormatter.RED}{line}{ErrorFormatter.RESET}")
        elif diagnostic.severity is Severity.WARNING:
            print(f"{ErrorFormatter.YELLOW}{line}{ErrorFormatter.RESET}")
        else:
            print(line)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Args:
            project_dir: Path to validate

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not project_dir.is_dir():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}")
            sys.exit(2)

    @staticmethod
    def validate_file(path: Path) -> None:
        """Validate that a file exists.

        Raises:
            SystemExit: If path doesn't exist or isn't a file
        """
        if not path.is_file():
            print(f"{ErrorFormatter.RED}✗ Error: File does not exist: {path}{ErrorFormatter.RESET}")
            sys.exit(2)
