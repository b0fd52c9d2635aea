"""Unit tests for compiler process launching."""

import io
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import psutil
import pytest

from groovyd.build.classpath import Classpath
from groovyd.build.output_handler import CompilerOutputParser, format_recompile
from groovyd.build.process_launcher import (
    PROFILER_AGENT,
    CompilerProcessHandler,
    ProcessLaunchError,
    ProcessLauncher,
    locale_options,
)
from groovyd.config.settings import DriverSettings


class TestLocaleOptions:
    """Test cases for locale flags."""

    def test_language_and_country(self):
        with patch("locale.getlocale", return_value=("de_DE", "UTF-8")):
            assert locale_options("UTF-8") == [
                "-Duser.language=de",
                "-Duser.country=DE",
                "-Duser.region=DE",
                "-Dfile.encoding=UTF-8",
            ]

    def test_language_only(self):
        with patch("locale.getlocale", return_value=("fr", None)):
            assert locale_options("ISO-8859-1") == ["-Duser.language=fr", "-Dfile.encoding=ISO-8859-1"]

    def test_unknown_locale(self):
        """Test the fallback language when the locale is unset."""
        with patch("locale.getlocale", return_value=(None, None)):
            assert locale_options("UTF-8") == ["-Duser.language=en", "-Dfile.encoding=UTF-8"]


class TestBuildCommandLine:
    """Test cases for ProcessLauncher.build_command_line."""

    @pytest.fixture
    def classpath(self):
        return Classpath(["/rt/groovyd-rt.jar", "/groovy/lib/groovy.jar"])

    def _build(self, settings, classpath):
        launcher = ProcessLauncher(settings)
        with patch("locale.getlocale", return_value=("en_US", "UTF-8")):
            return launcher.build_command_line(Path("/jdk/bin/java"), classpath, Path("/tmp/toCompile1"))

    def test_default_order(self, classpath):
        """Test the argument order without profiling."""
        settings = DriverSettings.from_environment({})
        cmd = self._build(settings, classpath)

        assert cmd[0] == str(Path("/jdk/bin/java"))
        assert cmd[1:3] == ["-cp", classpath.to_string()]
        assert cmd[3] == "-Xmx400m"
        assert cmd[4] == "-XX:+HeapDumpOnOutOfMemoryError"
        assert cmd[5] == "-Duser.language=en"
        assert cmd[-2] == settings.entry_point
        assert cmd[-1] == str(Path("/tmp/toCompile1"))
        assert PROFILER_AGENT not in cmd

    def test_heap_size_from_environment(self, classpath):
        """Test the groovy.compiler.Xmx override."""
        settings = DriverSettings.from_environment({"groovy.compiler.Xmx": "1g"})
        cmd = self._build(settings, classpath)
        assert "-Xmx1g" in cmd
        assert "-Xmx400m" not in cmd

    def test_profiling_flags_precede_classpath(self, classpath):
        """Test that profiling flags come right after the executable."""
        settings = DriverSettings.from_environment({"profile.groovy.compiler": "true"})
        cmd = self._build(settings, classpath)

        assert cmd[1] == f"-Djava.library.path={settings.native_lib_dir}"
        assert cmd[2] == "-Dprofile.groovy.compiler=true"
        assert cmd[3] == PROFILER_AGENT
        assert cmd[4] == "-cp"

    def test_profiling_requires_exact_value(self, classpath):
        settings = DriverSettings.from_environment({"profile.groovy.compiler": "TRUE"})
        assert not settings.profile


class TestCompilerProcessHandler:
    """Test cases for CompilerProcessHandler."""

    def _fake_process(self, output: str, exit_code: int = 0):
        process = MagicMock()
        process.pid = 4242
        process.stdout = io.StringIO(output)
        process.wait.return_value = exit_code
        return process

    def test_wait_for_drains_output(self):
        """Test that every line reaches the parser before wait_for returns."""
        parser = CompilerOutputParser()
        process = self._fake_process("noise\n" + format_recompile("/p/A.groovy") + "\n", exit_code=1)
        handler = CompilerProcessHandler(process, "java", parser)

        assert handler.wait_for() == 1
        assert parser.is_finished
        assert parser.get_to_recompile_files() == frozenset({Path("/p/A.groovy")})
        assert parser.get_unparsed_output() == "noise\n"

    def test_interrupt_destroys_process(self):
        """Test that an interrupted wait kills the process tree."""
        process = self._fake_process("")
        process.wait.side_effect = KeyboardInterrupt
        handler = CompilerProcessHandler(process, "java", CompilerOutputParser())

        with patch.object(handler, "destroy_process") as destroy:
            with pytest.raises(KeyboardInterrupt):
                handler.wait_for()
            destroy.assert_called_once()

    def test_destroy_missing_process(self):
        handler = CompilerProcessHandler(self._fake_process(""), "java", CompilerOutputParser())
        with patch("psutil.Process", side_effect=psutil.NoSuchProcess(4242)):
            assert handler.destroy_process() == 0

    def test_destroy_kills_tree(self):
        """Test that children are terminated with the root."""
        child = MagicMock()
        root = MagicMock()
        root.children.return_value = [child]
        handler = CompilerProcessHandler(self._fake_process(""), "java", CompilerOutputParser())

        with patch("psutil.Process", return_value=root), \
                patch("psutil.wait_procs", return_value=([child], [root])):
            assert handler.destroy_process() == 2

        child.terminate.assert_called_once()
        root.terminate.assert_called_once()
        root.kill.assert_called_once()


class TestLaunch:
    """Test cases for ProcessLauncher.launch."""

    def test_missing_executable(self, tmp_path):
        """Test that a start failure raises ProcessLaunchError."""
        launcher = ProcessLauncher(DriverSettings.from_environment({}))
        with pytest.raises(ProcessLaunchError):
            launcher.launch([str(tmp_path / "no-such-java")], CompilerOutputParser())

    def test_run_python_child(self):
        """Test a real child process end to end."""
        launcher = ProcessLauncher(DriverSettings.from_environment({}))
        parser = CompilerOutputParser()
        script = (
            "import sys; sys.stdout.write('%%rc/p/A.groovy%%/rc\\n'); sys.stdout.flush(); "
            "sys.stderr.write('oops\\n'); sys.exit(3)"
        )

        exit_code = launcher.run([sys.executable, "-c", script], parser)

        assert exit_code == 3
        assert parser.get_to_recompile_files() == frozenset({Path("/p/A.groovy")})
        assert parser.get_unparsed_output() == "oops\n"
