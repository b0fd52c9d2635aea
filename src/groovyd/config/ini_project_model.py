"""
File-backed project model.

This module implements the driver's project-model and resource-copier
interfaces on top of a groovyd.ini file, so the driver can run from the
command line without a host IDE:
- Units come from [unit:<name>] sections
- Test classification comes from each unit's test source roots
- Declared types come from GroovySourceScanner
- Resources are copied into the unit's output directories
"""

import fnmatch
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..build.project_model import IProjectModel, IResourceCopier
from ..model import CompilationUnit, CompiledArtifact
from ..toolchain.toolchain import Toolchain
from .project_config import ProjectConfig, UnitConfig
from .source_scanner import GroovySourceScanner, SourceScanError


def _is_relative_to(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


class IniProjectModel(IProjectModel):
    """Project model read from a groovyd.ini file.

    Usage:
        model = IniProjectModel(ProjectConfig.find(Path(".")))
        files = model.collect_files()
    """

    def __init__(
        self,
        config: ProjectConfig,
        scanner: Optional[GroovySourceScanner] = None,
        unit_names: Optional[Sequence[str]] = None
    ):
        """
        Initialize the model.

        Args:
            config: Parsed groovyd.ini
            scanner: Source scanner for declared types (default if None)
            unit_names: Units to load (all units if None)

        Raises:
            ProjectConfigError: If a unit is unknown or misconfigured
        """
        super().__init__()
        self.config = config
        self.scanner = scanner or GroovySourceScanner()
        self.resource_patterns = config.get_resource_patterns()
        self._unit_configs: Dict[str, UnitConfig] = {}
        self._units: Dict[str, CompilationUnit] = {}

        for name in unit_names or config.get_units():
            unit_config = config.get_unit_config(name)
            self._unit_configs[name] = unit_config
            self._units[name] = self._build_unit(unit_config)

    @staticmethod
    def _build_unit(unit_config: UnitConfig) -> CompilationUnit:
        return CompilationUnit(
            name=unit_config.name,
            toolchain=Toolchain(
                groovy_home=unit_config.groovy_home,
                framework_home=unit_config.framework_home,
                jdk_home=unit_config.jdk_home,
            ),
            classpath=tuple(unit_config.classpath),
            output_dir=str(unit_config.output).replace("\\", "/"),
            test_output_dir=str(unit_config.test_output or unit_config.output).replace("\\", "/"),
            encoding=unit_config.encoding,
            framework_injection=unit_config.grails,
        )

    @property
    def units(self) -> List[CompilationUnit]:
        with self.read_action():
            return list(self._units.values())

    def get_unit(self, name: str) -> Optional[CompilationUnit]:
        with self.read_action():
            return self._units.get(name)

    def _locate(self, path: str) -> Optional[Tuple[str, Path, bool]]:
        """Find (unit name, source root, is test) for a file.

        The deepest matching root wins when roots are nested.
        """
        resolved = Path(path).resolve()
        best: Optional[Tuple[str, Path, bool]] = None
        for name, unit_config in self._unit_configs.items():
            roots = [(root, False) for root in unit_config.sources]
            roots += [(root, True) for root in unit_config.test_sources]
            for root, is_test in roots:
                root = root.resolve()
                if _is_relative_to(resolved, root):
                    if best is None or len(root.parts) > len(best[1].parts):
                        best = (name, root, is_test)
        return best

    def get_unit_for_file(self, path: str) -> Optional[CompilationUnit]:
        with self.read_action():
            location = self._locate(path)
            if location is None:
                return None
            return self._units[location[0]]

    def is_test_source(self, unit: CompilationUnit, path: str) -> bool:
        with self.read_action():
            location = self._locate(path)
            return location is not None and location[0] == unit.name and location[2]

    def get_source_root(self, path: str) -> Optional[Path]:
        """Get the source root a file lies under."""
        with self.read_action():
            location = self._locate(path)
            return location[1] if location else None

    def is_resource_file(self, path: str) -> bool:
        name = Path(path).name
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.resource_patterns)

    def get_declared_types(self, path: str) -> List[str]:
        try:
            return self.scanner.scan_file(Path(path))
        except SourceScanError as e:
            logging.warning(f"Cannot read declared types: {e}")
            return []

    def is_compiler_enabled(self, unit: CompilationUnit) -> bool:
        with self.read_action():
            unit_config = self._unit_configs.get(unit.name)
            return unit_config is not None and unit_config.enabled

    def try_setup_toolchain(self, unit: CompilationUnit) -> bool:
        """Derive groovy_home from a Groovy archive on the unit's classpath.

        ``<home>/lib/groovy-4.0.15.jar`` yields ``<home>``.
        """
        for entry in unit.classpath:
            archive = Path(entry.split("!/", 1)[0])
            name = archive.name.lower()
            if name.startswith("groovy") and name.endswith(".jar") and archive.parent.name == "lib":
                home = str(archive.parent.parent)
                with self.write_action():
                    unit_config = self._unit_configs[unit.name]
                    unit_config.groovy_home = home
                    self._units[unit.name] = self._build_unit(unit_config)
                logging.info(f"Using Groovy from {home} for module '{unit.name}'")
                return True
        return False

    def find_file(self, path: Path) -> Optional[Path]:
        candidate = Path(path)
        if not candidate.exists():
            return None
        return candidate.resolve()

    def collect_files(self, include_tests: bool = True) -> List[str]:
        """List every file under the loaded units' source roots.

        Returns:
            Sorted absolute paths
        """
        files: List[str] = []
        seen: Set[Path] = set()
        with self.read_action():
            for unit_config in self._unit_configs.values():
                roots = list(unit_config.sources)
                if include_tests:
                    roots += unit_config.test_sources
                for root in roots:
                    if not root.is_dir():
                        continue
                    for path in sorted(root.rglob("*")):
                        if path.is_file() and path not in seen:
                            seen.add(path)
                            files.append(str(path.resolve()))
        return files


class DirectoryResourceCopier(IResourceCopier):
    """Copies resources into the unit's output directories.

    A resource keeps its path relative to its source root. Test resources go
    to the test output directory.
    """

    def __init__(self, model: IniProjectModel):
        self.model = model

    def copy(
        self,
        unit: CompilationUnit,
        files: Sequence[str]
    ) -> Tuple[Set[CompiledArtifact], Set[Path]]:
        copied: Set[CompiledArtifact] = set()
        failed: Set[Path] = set()

        for path in files:
            source = Path(path).resolve()
            root = self.model.get_source_root(path)
            if root is None:
                logging.warning(f"Resource outside of any source root: {path}")
                continue

            output_dir = unit.test_output_dir if self.model.is_test_source(unit, path) else unit.output_dir
            target = Path(output_dir) / source.relative_to(root)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as e:
                logging.error(f"Failed to copy resource {source}: {e}")
                failed.add(source)
                continue

            copied.add(CompiledArtifact(output_path=str(target).replace("\\", "/"), source_path=str(source)))

        return copied, failed
