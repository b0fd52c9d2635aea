"""
Groovy compiler driver.

This module runs one compile invocation over a set of files:
1. Group files by compilation unit
2. Route plain resources to the resource copier
3. For each unit, in order:
   a. Resolve the process and compilation classpaths
   b. Write the parameter file
   c. Launch the compiler and drain its output until it exits
   d. Report diagnostics and merge the unit's results
4. Return the aggregated BatchResult

Failures of one unit (bad configuration, parameter file, filesystem errors,
process start) are logged and reported as an error diagnostic. That unit
contributes no results; other units still compile.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..config.settings import DriverSettings
from ..model import BatchResult, CompilationUnit, CompiledArtifact, CompileRequest, CompilerDiagnostic, Severity
from ..toolchain.toolchain import ToolchainError
from .aggregator import CompileResultAggregator
from .classpath import ClasspathResolver
from .output_handler import CompilerOutputParser
from .process_launcher import ProcessLaunchError, ProcessLauncher
from .project_model import (
    ICompileContext,
    IProjectModel,
    IResourceCopier,
    IValidationReporter,
    LoggingValidationReporter,
    MessageCollector,
)
from .request_encoder import RequestEncoder, RequestEncodingError, build_source_files

UnitResult = Tuple[Set[CompiledArtifact], Set[Path]]


class GroovyCompilerDriver:
    """Drives the out-of-process Groovy compiler.

    Example usage:
        driver = GroovyCompilerDriver(model, settings=DriverSettings.from_environment())
        if driver.validate_configuration(files):
            context = MessageCollector()
            result = driver.compile(files, context)
            for diagnostic in context.messages:
                print(diagnostic.message)
    """

    DESCRIPTION = "groovy compiler"
    GROOVY_EXTENSIONS = (".groovy", ".gvy", ".gy", ".gsh")

    def __init__(
        self,
        model: IProjectModel,
        settings: Optional[DriverSettings] = None,
        resource_copier: Optional[IResourceCopier] = None,
        reporter: Optional[IValidationReporter] = None,
        launcher: Optional[ProcessLauncher] = None
    ):
        """Initialize the driver.

        Args:
            model: Project model supplying units and file classification
            settings: Driver settings (read from the environment if None)
            resource_copier: Handler for resource files (resources are
                skipped when None)
            reporter: Receives configuration errors (logging if None)
            launcher: Process launcher (built from settings if None)
        """
        self.model = model
        self.settings = settings or DriverSettings.from_environment()
        self.resource_copier = resource_copier
        self.reporter = reporter or LoggingValidationReporter()
        self.launcher = launcher or ProcessLauncher(self.settings)
        self.resolver = ClasspathResolver(
            runtime_jar=self.settings.runtime_jar,
            library_filter=self.settings.create_library_filter(),
            profiler_jar=self.settings.profiler_jar,
        )
        self.encoder = RequestEncoder(work_dir=self.settings.work_dir)

    def is_compilable_file(self, path: str) -> bool:
        """Check whether a file is a Groovy source."""
        result = str(path).lower().endswith(self.GROOVY_EXTENSIONS)
        if result:
            logging.debug(f"compilable file: {path}")
        return result

    def _group_by_unit(self, files: Sequence[str]) -> Dict[CompilationUnit, List[str]]:
        groups: Dict[CompilationUnit, List[str]] = {}
        with self.model.read_action():
            for path in files:
                unit = self.model.get_unit_for_file(path)
                if unit is None:
                    logging.warning(f"Skipping {path}: not part of any compilation unit")
                    continue
                groups.setdefault(unit, []).append(path)
        return groups

    def compile(self, files: Sequence[str], context: Optional[ICompileContext] = None) -> BatchResult:
        """Compile files, one unit at a time.

        Args:
            files: Files to compile (and resources to copy)
            context: Receives diagnostics (a MessageCollector if None)

        Returns:
            Aggregated result of the whole invocation
        """
        logging.debug("running groovyc")
        if context is None:
            context = MessageCollector()

        aggregator = CompileResultAggregator()

        for unit, unit_files in self._group_by_unit(files).items():
            to_compile: List[str] = []
            to_copy: List[str] = []
            if self.model.is_compiler_enabled(unit):
                for path in unit_files:
                    (to_copy if self.model.is_resource_file(path) else to_compile).append(path)
            else:
                to_copy.extend(unit_files)

            if to_compile:
                aggregator.begin_unit(unit.name)
                result = self._compile_unit(unit, to_compile, context)
                if result is not None:
                    aggregator.add_unit_result(*result)

            if to_copy:
                if self.resource_copier is None:
                    logging.debug(f"No resource copier; skipping {len(to_copy)} file(s) of '{unit.name}'")
                else:
                    aggregator.add_unit_result(*self.resource_copier.copy(unit, to_copy))

        return aggregator.build()

    def check_unit(self, unit: CompilationUnit) -> Optional[str]:
        """Describe what prevents a unit from compiling, or None if nothing."""
        if not unit.toolchain.is_configured:
            return f"no Groovy library is defined for module '{unit.name}'"
        if not unit.toolchain.has_jdk:
            return f"no Java SDK is defined for module '{unit.name}'"
        return None

    @staticmethod
    def _report_failure(context: ICompileContext, message: str) -> None:
        logging.error(message)
        context.add_message(CompilerDiagnostic(severity=Severity.ERROR, message=message))

    def _compile_unit(
        self,
        unit: CompilationUnit,
        paths: List[str],
        context: ICompileContext
    ) -> Optional[UnitResult]:
        """Run one encode/launch/parse cycle for a unit.

        Returns:
            Tuple of (compiled artifacts, files to recompile), or None if the
            compiler could not be run
        """
        problem = self.check_unit(unit)
        if problem is not None:
            self._report_failure(context, f"Cannot compile Groovy files: {problem}")
            return None

        parser = CompilerOutputParser()
        try:
            request = CompileRequest(
                unit=unit,
                files=build_source_files(self.model, unit, paths),
                classpath=self.resolver.resolve_compilation_classpath(unit, self.model).to_string(),
                encoding=unit.encoding or self.settings.effective_charset(),
            )
            process_classpath = self.resolver.resolve_process_classpath(
                unit, self.model, profile=self.settings.profile
            )
            parameter_file = self.encoder.write(request)
            cmd = self.launcher.build_command_line(
                unit.toolchain.get_vm_executable(), process_classpath, parameter_file
            )
            exit_code = self.launcher.run(cmd, parser)
        except (RequestEncodingError, ProcessLaunchError, ToolchainError, OSError) as e:
            self._report_failure(context, f"Failed to compile module '{unit.name}': {e}")
            return None

        if exit_code != 0:
            logging.info(f"groovyc for module '{unit.name}' exited with code {exit_code}")

        to_recompile: Set[Path] = set()
        for path in parser.get_recompile_order():
            resolved = self.model.find_file(path)
            if resolved is None:
                logging.error(f"Internal consistency error: recompile target not in file index: {path}")
                resolved = path
            to_recompile.add(resolved)

        for diagnostic in parser.get_compiler_messages():
            context.add_message(diagnostic)

        unparsed = parser.get_unparsed_output()
        if unparsed:
            context.add_message(CompilerDiagnostic(severity=Severity.ERROR, message=unparsed))

        return set(parser.get_successfully_compiled()), to_recompile

    def validate_configuration(self, files: Sequence[str]) -> bool:
        """Check that every unit with Groovy files can be compiled.

        Problems are shown through the reporter. A unit without a toolchain
        is first offered to the model for on-the-fly setup.

        Returns:
            True if compilation may proceed
        """
        groovy_files = [path for path in files if self.is_compilable_file(path)]
        if not groovy_files:
            return True

        units: Dict[str, CompilationUnit] = {}
        with self.model.read_action():
            for path in groovy_files:
                unit = self.model.get_unit_for_file(path)
                if unit is not None:
                    units.setdefault(unit.name, unit)

        for unit in units.values():
            if not unit.toolchain.is_configured and not self.model.try_setup_toolchain(unit):
                self.reporter.show_error(
                    "Cannot compile",
                    f"Cannot compile Groovy files: no Groovy library is defined for module '{unit.name}'",
                )
                return False

        no_jdk = [name for name, unit in units.items() if not unit.toolchain.has_jdk]
        if len(no_jdk) == 1:
            self.reporter.show_error(
                "Cannot compile",
                f"Cannot compile Groovy files: no Java SDK is defined for module '{no_jdk[0]}'",
            )
            return False
        if no_jdk:
            self.reporter.show_error(
                "Cannot compile",
                f"Cannot compile Groovy files: no Java SDK is defined for modules {', '.join(no_jdk)}",
            )
            return False

        return True
