"""
Command-line interface for groovyd.

This module provides the `groovyd` CLI tool for compiling Groovy projects
described by a groovyd.ini file.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from groovyd import __version__
from groovyd.build import (
    GroovyCompilerDriver,
    LoggingValidationReporter,
    MessageCollector,
    RequestDecoder,
    RequestEncodingError,
)
from groovyd.cli_utils import DiagnosticFormatter, ErrorFormatter, PathValidator
from groovyd.config import (
    DirectoryResourceCopier,
    DriverSettings,
    IniProjectModel,
    ProjectConfig,
    ProjectConfigError,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class CompileArgs:
    """Arguments for the compile command."""

    project_dir: Path
    units: List[str] = field(default_factory=list)
    verbose: bool = False


@dataclass
class ParamsArgs:
    """Arguments for the params command."""

    param_file: Path
    verbose: bool = False


def setup_logging(verbose: bool = False) -> None:
    """Setup console logging."""
    logger = logging.getLogger()
    level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_groovyd", False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._groovyd = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)


def compile_command(args: CompileArgs) -> None:
    """Compile the Groovy sources of a project.

    Examples:
        groovyd compile                  # Compile every unit in groovyd.ini
        groovyd compile path/to/project  # Compile a specific project
        groovyd compile -u core -u web   # Compile selected units
        groovyd compile --verbose        # Log command lines and parameter files
    """
    print(f"groovyd v{__version__}")
    print()

    try:
        config = ProjectConfig.find(args.project_dir)
        settings = DriverSettings.from_environment(**config.get_settings_overrides())
        model = IniProjectModel(config, unit_names=args.units or None)
        files = model.collect_files()

        if args.verbose:
            print(f"Project: {args.project_dir}")
            print(f"Units: {', '.join(unit.name for unit in model.units)}")
            print(f"Files: {len(files)}")
            print()

        if not files:
            ErrorFormatter.print_warning("Nothing to compile")
            sys.exit(0)

        reporter = LoggingValidationReporter()
        driver = GroovyCompilerDriver(
            model,
            settings=settings,
            resource_copier=DirectoryResourceCopier(model),
            reporter=reporter,
        )

        if not driver.validate_configuration(files):
            for title, message in reporter.errors:
                ErrorFormatter.print_error(title, message)
            sys.exit(2)

        start_time = time.time()
        context = MessageCollector()
        result = driver.compile(files, context)
        compile_time = time.time() - start_time

        for diagnostic in context.messages:
            DiagnosticFormatter.print_diagnostic(diagnostic)

        if context.error_count or result.to_recompile:
            details = [f"{context.error_count} error(s)"]
            for path in sorted(str(path) for path in result.to_recompile):
                details.append(f"  needs recompilation: {path}")
            ErrorFormatter.print_error("Compilation failed!", "\n".join(details))
            sys.exit(1)

        ErrorFormatter.print_success("Compilation successful!")
        print()
        print(f"Compiled: {len(result.compiled_sources)} file(s)")
        print(f"Compile time: {compile_time:.2f}s")
        sys.exit(0)

    except ProjectConfigError as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def params_command(args: ParamsArgs) -> None:
    """Print a decoded parameter file.

    Examples:
        groovyd params /tmp/toCompile1234
    """
    try:
        params = RequestDecoder().read(args.param_file)
    except RequestEncodingError as e:
        ErrorFormatter.print_error("Invalid parameter file", str(e))
        sys.exit(1)

    print(f"Parameter file: {args.param_file}")
    print()
    for source in params.files:
        if source.is_test:
            print(f"  test   {source.path}")
        else:
            print(f"  source {source.path}")
            for declared in source.declared_types or ():
                print(f"           {declared}")
    print()
    print(f"Classpath:   {params.classpath}")
    print(f"Grails:      {'true' if params.framework_injection else 'false'}")
    print(f"Encoding:    {params.encoding or '(platform default)'}")
    print(f"Output:      {params.output_dir}")
    print(f"Test output: {params.test_output_dir}")
    sys.exit(0)


def main(argv: Optional[List[str]] = None) -> None:
    """groovyd - external Groovy compiler driver."""
    parser = argparse.ArgumentParser(
        prog="groovyd",
        description="groovyd - compile Groovy sources in an external compiler process",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"groovyd {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile the Groovy sources of a project",
    )
    compile_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory containing groovyd.ini (default: current directory)",
    )
    compile_parser.add_argument(
        "-u",
        "--unit",
        dest="units",
        action="append",
        default=[],
        help="Unit to compile (repeatable, default: all units)",
    )
    compile_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Params command
    params_parser = subparsers.add_parser(
        "params",
        help="Show the contents of a compiler parameter file",
    )
    params_parser.add_argument(
        "param_file",
        type=Path,
        help="Parameter file to decode",
    )
    params_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(parsed_args.verbose)

    if parsed_args.command == "compile":
        PathValidator.validate_project_dir(parsed_args.project_dir)
        compile_args = CompileArgs(
            project_dir=parsed_args.project_dir,
            units=parsed_args.units,
            verbose=parsed_args.verbose,
        )
        compile_command(compile_args)
    elif parsed_args.command == "params":
        PathValidator.validate_file(parsed_args.param_file)
        params_args = ParamsArgs(
            param_file=parsed_args.param_file,
            verbose=parsed_args.verbose,
        )
        params_command(params_args)


if __name__ == "__main__":
    main()
