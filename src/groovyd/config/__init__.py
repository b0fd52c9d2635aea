"""Configuration modules for groovyd."""

from .ini_project_model import DirectoryResourceCopier, IniProjectModel
from .project_config import ProjectConfig, ProjectConfigError, UnitConfig
from .settings import DriverSettings
from .source_scanner import GroovySourceScanner, SourceScanError

__all__ = [
    "DriverSettings",
    "ProjectConfig",
    "ProjectConfigError",
    "UnitConfig",
    "IniProjectModel",
    "DirectoryResourceCopier",
    "GroovySourceScanner",
    "SourceScanError",
]
