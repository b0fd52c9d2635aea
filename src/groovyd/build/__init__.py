"""
Compiler driver components for groovyd.

This module provides the driver implementation including:
- Classpath resolution
- Parameter file encoding and decoding
- Compiler process launching
- Compiler output parsing
- Batch result aggregation
"""

from .aggregator import AggregationError, AggregatorState, CompileResultAggregator
from .classpath import Classpath, ClasspathResolver
from .driver import GroovyCompilerDriver
from .output_handler import CompilerOutputParser
from .process_launcher import CompilerProcessHandler, ProcessLaunchError, ProcessLauncher
from .project_model import (
    ICompileContext,
    IProjectModel,
    IResourceCopier,
    IValidationReporter,
    LoggingValidationReporter,
    MessageCollector,
)
from .request_encoder import (
    ParameterFile,
    RequestDecoder,
    RequestEncoder,
    RequestEncodingError,
)

__all__ = [
    "AggregationError",
    "AggregatorState",
    "CompileResultAggregator",
    "Classpath",
    "ClasspathResolver",
    "GroovyCompilerDriver",
    "CompilerOutputParser",
    "CompilerProcessHandler",
    "ProcessLaunchError",
    "ProcessLauncher",
    "ICompileContext",
    "IProjectModel",
    "IResourceCopier",
    "IValidationReporter",
    "LoggingValidationReporter",
    "MessageCollector",
    "ParameterFile",
    "RequestDecoder",
    "RequestEncoder",
    "RequestEncodingError",
]
