"""
groovyd.ini configuration parser.

This module parses the project file that describes compilation units for the
command-line driver.

Example groovyd.ini:
    [groovyd]
    encoding = UTF-8
    xmx = 512m

    [unit]
    jdk_home = /usr/lib/jvm/java-17

    [unit:core]
    groovy_home = /opt/groovy-4.0.15
    sources = src/main/groovy
    test_sources = src/test/groovy
    classpath =
        lib/commons-lang3-3.12.jar
        lib/guava-32.1.jar
    output = out/production/core
    test_output = out/test/core

Values in [unit] are inherited by every [unit:<name>] section. Relative
paths are resolved against the directory holding the file.
"""

import configparser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .settings import DEFAULT_RESOURCE_PATTERNS


class ProjectConfigError(Exception):
    """Exception raised for groovyd.ini configuration errors."""

    pass


@dataclass
class UnitConfig:
    """Settings of one [unit:<name>] section, paths resolved."""

    name: str
    sources: List[Path]
    output: Path
    test_sources: List[Path] = field(default_factory=list)
    test_output: Optional[Path] = None
    classpath: List[str] = field(default_factory=list)
    groovy_home: str = ""
    framework_home: str = ""
    jdk_home: Optional[Path] = None
    encoding: Optional[str] = None
    grails: bool = False
    enabled: bool = True


class ProjectConfig:
    """
    Parser for groovyd.ini project files.

    Usage:
        config = ProjectConfig(Path("groovyd.ini"))
        for name in config.get_units():
            unit_config = config.get_unit_config(name)
    """

    FILE_NAME = "groovyd.ini"
    REQUIRED_FIELDS = {"sources", "output"}
    SETTINGS_SECTION = "groovyd"
    BASE_SECTION = "unit"

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a groovyd.ini file.

        Args:
            ini_path: Path to the groovyd.ini file

        Raises:
            ProjectConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)
        self.project_dir = self.ini_path.resolve().parent

        if not self.ini_path.exists():
            raise ProjectConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ProjectConfigError(f"Failed to parse {ini_path}: {e}") from e

    @classmethod
    def find(cls, project_dir: Path) -> "ProjectConfig":
        """Load groovyd.ini from a project directory.

        Raises:
            ProjectConfigError: If the directory has no groovyd.ini
        """
        return cls(Path(project_dir) / cls.FILE_NAME)

    def get_units(self) -> List[str]:
        """
        Get list of all unit names defined in the config.

        Example:
            For [unit:core], [unit:web], returns ['core', 'web']
        """
        units = []
        for section in self.config.sections():
            if section.startswith(f"{self.BASE_SECTION}:"):
                units.append(section.split(":", 1)[1])
        return units

    def has_unit(self, name: str) -> bool:
        return f"{self.BASE_SECTION}:{name}" in self.config

    def _get_raw_unit(self, name: str) -> Dict[str, str]:
        section = f"{self.BASE_SECTION}:{name}"

        if section not in self.config:
            available = ", ".join(self.get_units())
            raise ProjectConfigError(
                f"Unit '{name}' not found. "
                + f"Available units: {available or 'none'}"
            )

        try:
            unit_values = {key: (value or "").strip() for key, value in self.config[section].items()}
            if self.BASE_SECTION in self.config:
                base_values = {key: (value or "").strip() for key, value in self.config[self.BASE_SECTION].items()}
                unit_values = {**base_values, **unit_values}
        except configparser.Error as e:
            raise ProjectConfigError(f"Invalid value in [{section}]: {e}") from e

        missing_fields = self.REQUIRED_FIELDS - {key for key, value in unit_values.items() if value}
        if missing_fields:
            raise ProjectConfigError(
                f"Unit '{name}' is missing required fields: "
                + f"{', '.join(sorted(missing_fields))}"
            )
        return unit_values

    @staticmethod
    def split_list(value: str) -> List[str]:
        """Split a multi-line or comma-separated value, dropping empties."""
        items = []
        for line in value.split("\n"):
            for item in line.split(","):
                item = item.strip()
                if item:
                    items.append(item)
        return items

    @staticmethod
    def parse_bool(value: str, key: str) -> bool:
        """Parse an INI boolean.

        Raises:
            ProjectConfigError: If the value is not a boolean literal
        """
        lowered = value.strip().lower()
        if lowered in ("1", "yes", "true", "on"):
            return True
        if lowered in ("0", "no", "false", "off"):
            return False
        raise ProjectConfigError(f"Invalid boolean for '{key}': {value!r}")

    def resolve_path(self, value: str) -> Path:
        """Resolve a possibly relative path against the project directory."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    def _resolve_classpath_entry(self, entry: str) -> str:
        # Keep an intra-archive suffix (lib/a.jar!/) attached to its archive
        archive, separator, inner = entry.partition("!/")
        return str(self.resolve_path(archive)).replace("\\", "/") + separator + inner

    def get_unit_config(self, name: str) -> UnitConfig:
        """
        Get the configuration for a unit.

        Args:
            name: Unit name (e.g., 'core')

        Returns:
            UnitConfig with resolved paths

        Raises:
            ProjectConfigError: If the unit is unknown or misconfigured
        """
        values = self._get_raw_unit(name)

        output = self.resolve_path(values["output"])
        test_output_value = values.get("test_output", "")
        jdk_home_value = values.get("jdk_home", "")

        return UnitConfig(
            name=name,
            sources=[self.resolve_path(item) for item in self.split_list(values["sources"])],
            output=output,
            test_sources=[self.resolve_path(item) for item in self.split_list(values.get("test_sources", ""))],
            test_output=self.resolve_path(test_output_value) if test_output_value else output,
            classpath=[self._resolve_classpath_entry(item) for item in self.split_list(values.get("classpath", ""))],
            groovy_home=str(self.resolve_path(values["groovy_home"])) if values.get("groovy_home") else "",
            framework_home=str(self.resolve_path(values["framework_home"])) if values.get("framework_home") else "",
            jdk_home=self.resolve_path(jdk_home_value) if jdk_home_value else None,
            encoding=values.get("encoding") or None,
            grails=self.parse_bool(values.get("grails", "false"), "grails"),
            enabled=self.parse_bool(values.get("enabled", "true"), "enabled"),
        )

    def get_resource_patterns(self) -> List[str]:
        """Get file name patterns treated as resources."""
        if self.SETTINGS_SECTION in self.config:
            value = self.config[self.SETTINGS_SECTION].get("resource_patterns", "")
            if value and value.strip():
                return self.split_list(value.replace(" ", ","))
        return list(DEFAULT_RESOURCE_PATTERNS)

    def get_settings_overrides(self) -> Dict[str, Any]:
        """
        Get DriverSettings overrides from the [groovyd] section.

        Recognized keys: xmx, runtime_jar, profiler_jar, entry_point,
        work_dir, encoding, library_allow_list.

        Returns:
            Keyword arguments for DriverSettings
        """
        if self.SETTINGS_SECTION not in self.config:
            return {}

        section = self.config[self.SETTINGS_SECTION]
        overrides: Dict[str, Any] = {}

        if section.get("xmx"):
            overrides["xmx"] = section["xmx"].strip()
        if section.get("entry_point"):
            overrides["entry_point"] = section["entry_point"].strip()
        if section.get("encoding"):
            overrides["ide_charset"] = section["encoding"].strip()
        for key in ("runtime_jar", "profiler_jar", "work_dir"):
            if section.get(key):
                overrides[key] = self.resolve_path(section[key].strip())
        if section.get("library_allow_list"):
            overrides["library_allow_list"] = tuple(self.split_list(section["library_allow_list"]))

        return overrides
