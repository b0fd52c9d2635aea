"""Compiler process launching.

This module builds the child VM command line, starts the process with its
stderr merged into stdout, and drains the output on a reader thread while
the caller blocks waiting for exit.

Design:
    - The reader thread starts before the caller waits, so a child filling
      its output pipe never deadlocks the driver
    - wait_for() returns only after the reader has seen end of stream, so
      records printed right before exit are never lost
    - destroy_process() kills the whole process tree (psutil)
"""

import locale
import logging
import shlex
import subprocess
import threading
from pathlib import Path
from typing import List, Optional

import psutil

from ..config.settings import DriverSettings
from .classpath import Classpath
from .output_handler import CompilerOutputParser

PROFILER_AGENT = "-agentlib:yjpagent=disablej2ee,disablecounts,disablealloc,sessionname=GroovyCompiler"


class ProcessLaunchError(Exception):
    """Raised when the compiler process cannot be started."""

    pass


def locale_options(charset: str) -> List[str]:
    """Get VM flags that pin the child's locale and file encoding.

    Args:
        charset: Charset the child uses for its output

    Returns:
        List of -D flags
    """
    language_tag, _encoding = locale.getlocale()
    language, _, country = (language_tag or "").partition("_")

    options = [f"-Duser.language={language or 'en'}"]
    if country:
        options.append(f"-Duser.country={country}")
        options.append(f"-Duser.region={country}")
    options.append(f"-Dfile.encoding={charset}")
    return options


class CompilerProcessHandler:
    """Owns a running compiler process and the thread draining its output."""

    def __init__(
        self,
        process: subprocess.Popen,
        command_line: str,
        output_parser: CompilerOutputParser
    ):
        """Initialize the handler.

        Args:
            process: Started process with stdout piped in text mode
            command_line: Printable command line, for logging
            output_parser: Parser fed with everything the process prints
        """
        self.process = process
        self.command_line = command_line
        self.output_parser = output_parser
        self._reader: Optional[threading.Thread] = None

    def start_notify(self) -> None:
        """Start draining process output on a background thread."""
        if self._reader is not None:
            return
        self._reader = threading.Thread(
            target=self._read_output,
            name=f"groovyc-output-{self.process.pid}",
            daemon=True,
        )
        self._reader.start()

    def _read_output(self) -> None:
        stream = self.process.stdout
        if stream is None:
            return
        try:
            for chunk in iter(stream.readline, ""):
                self.output_parser.notify_text(chunk)
        except (OSError, ValueError) as e:
            logging.warning(f"Stopped reading compiler output: {e}")
        finally:
            stream.close()

    def wait_for(self) -> int:
        """Block until the process exits and its output is fully parsed.

        Returns:
            Process exit code
        """
        if self._reader is None:
            self.start_notify()

        try:
            exit_code = self.process.wait()
        except KeyboardInterrupt:
            self.destroy_process()
            raise

        if self._reader is None:
            raise ProcessLaunchError(f"Output reader for {self.command_line} was not started")
        self._reader.join()
        self.output_parser.finish()
        logging.debug(f"groovyc exited with code {exit_code}")
        return exit_code

    def destroy_process(self) -> int:
        """Kill the process and all of its children.

        Returns:
            Number of processes terminated
        """
        try:
            root = psutil.Process(self.process.pid)
            processes = root.children(recursive=True) + [root]
        except psutil.NoSuchProcess:
            return 0

        killed = 0
        for proc in reversed(processes):
            try:
                proc.terminate()
                killed += 1
            except psutil.NoSuchProcess:
                pass
            except psutil.Error as e:
                logging.warning(f"Failed to terminate compiler process {proc.pid}: {e}")

        _gone, alive = psutil.wait_procs(processes, timeout=3)
        for proc in alive:
            try:
                proc.kill()
                logging.warning(f"Force killed compiler process {proc.pid}")
            except psutil.NoSuchProcess:
                pass
        return killed


class ProcessLauncher:
    """Builds compiler command lines and starts compiler processes."""

    def __init__(self, settings: Optional[DriverSettings] = None):
        """Initialize the launcher.

        Args:
            settings: Driver settings (defaults read from the environment)
        """
        self.settings = settings or DriverSettings.from_environment()

    def build_command_line(
        self,
        vm_executable: Path,
        classpath: Classpath,
        parameter_file: Path
    ) -> List[str]:
        """Build the child VM command line.

        Args:
            vm_executable: Path to the java launcher
            classpath: Process classpath (profiler archive already included
                when profiling)
            parameter_file: Parameter file written by the request encoder

        Returns:
            Command as an argument list
        """
        settings = self.settings
        cmd = [str(vm_executable)]

        if settings.profile:
            cmd.append(f"-Djava.library.path={settings.native_lib_dir}")
            cmd.append("-Dprofile.groovy.compiler=true")
            cmd.append(PROFILER_AGENT)

        cmd.extend(["-cp", classpath.to_string()])
        cmd.append(f"-Xmx{settings.xmx}")
        cmd.append("-XX:+HeapDumpOnOutOfMemoryError")
        cmd.extend(locale_options(self.output_charset))
        cmd.append(settings.entry_point)
        cmd.append(str(parameter_file))
        return cmd

    @property
    def output_charset(self) -> str:
        """Charset the child is told to use, and the driver decodes with."""
        return locale.getpreferredencoding(False)

    def launch(self, cmd: List[str], output_parser: CompilerOutputParser) -> CompilerProcessHandler:
        """Start the compiler process.

        Args:
            cmd: Command line from build_command_line()
            output_parser: Parser for the combined output

        Returns:
            Handler whose output thread is already running

        Raises:
            ProcessLaunchError: If the process cannot be started
        """
        command_line = shlex.join(cmd)
        logging.debug(f"Starting compiler: {command_line}")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding=self.output_charset,
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise ProcessLaunchError(f"Failed to start compiler process: {e}") from e

        handler = CompilerProcessHandler(process, command_line, output_parser)
        handler.start_notify()
        return handler

    def run(self, cmd: List[str], output_parser: CompilerOutputParser) -> int:
        """Start the compiler process and wait for it to finish.

        Returns:
            Process exit code

        Raises:
            ProcessLaunchError: If the process cannot be started
        """
        handler = self.launch(cmd, output_parser)
        return handler.wait_for()
