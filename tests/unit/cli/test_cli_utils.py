"""Unit tests for CLI utilities."""

import pytest

from groovyd.cli_utils import DiagnosticFormatter, ErrorFormatter, PathValidator
from groovyd.model import CompilerDiagnostic, Severity


class TestDiagnosticFormatter:
    """Tests for DiagnosticFormatter class."""

    def test_format_with_position(self):
        """Test a diagnostic with file and position."""
        diagnostic = CompilerDiagnostic(Severity.ERROR, "unexpected token: }", "/p/A.groovy", 3, 7)
        assert DiagnosticFormatter.format(diagnostic) == "/p/A.groovy:3:7: error: unexpected token: }"

    def test_format_without_position(self):
        diagnostic = CompilerDiagnostic(Severity.WARNING, "deprecated", "/p/A.groovy")
        assert DiagnosticFormatter.format(diagnostic) == "/p/A.groovy: warning: deprecated"

    def test_format_without_url(self):
        """Test that trailing newlines from unparsed output are trimmed."""
        diagnostic = CompilerDiagnostic(Severity.ERROR, "Exception in thread main\n")
        assert DiagnosticFormatter.format(diagnostic) == "error: Exception in thread main"

    @pytest.mark.parametrize("severity", list(Severity))
    def test_every_severity_has_label(self, severity):
        assert DiagnosticFormatter.format(CompilerDiagnostic(severity, "m")).endswith(": m")

    def test_print_error_is_colored(self, capsys):
        DiagnosticFormatter.print_diagnostic(CompilerDiagnostic(Severity.ERROR, "boom"))
        out = capsys.readouterr().out
        assert ErrorFormatter.RED in out
        assert "error: boom" in out


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_print_error(self, capsys):
        ErrorFormatter.print_error("Cannot compile", "details")
        out = capsys.readouterr().out
        assert "Cannot compile" in out
        assert "details" in out

    def test_keyboard_interrupt_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130

    def test_unexpected_error_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_unexpected_error(RuntimeError("bad"))
        assert exc_info.value.code == 1
        assert "RuntimeError: bad" in capsys.readouterr().out


class TestPathValidator:
    """Tests for PathValidator class."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(tmp_path / "missing")
        assert exc_info.value.code == 2

    def test_file_is_not_a_directory(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(path)
        assert exc_info.value.code == 2

    def test_valid_directory(self, tmp_path):
        PathValidator.validate_project_dir(tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_file(tmp_path / "params")
        assert exc_info.value.code == 2
