"""Shared fixtures for driver component tests."""

from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from groovyd.build.project_model import IProjectModel
from groovyd.model import CompilationUnit
from groovyd.toolchain import Toolchain


class FakeProjectModel(IProjectModel):
    """In-memory project model.

    Files map to units by explicit registration; test files and resources
    are listed by path.
    """

    def __init__(self):
        super().__init__()
        self.units: Dict[str, CompilationUnit] = {}
        self.test_files: Set[str] = set()
        self.resource_files: Set[str] = set()
        self.declared_types: Dict[str, List[str]] = {}
        self.disabled: Set[str] = set()
        self.known_files: Set[Path] = set()
        self.setup_homes: Dict[str, str] = {}
        self.read_depth = 0
        self.max_read_depth = 0

    def read_action(self):
        model = self
        outer = super().read_action()

        class _Scope:
            def __enter__(self):
                outer.__enter__()
                model.read_depth += 1
                model.max_read_depth = max(model.max_read_depth, model.read_depth)

            def __exit__(self, *exc):
                model.read_depth -= 1
                return outer.__exit__(*exc)

        return _Scope()

    def add_file(self, path: str, unit: CompilationUnit, test: bool = False, resource: bool = False,
                 types: Optional[List[str]] = None) -> str:
        self.units[path] = unit
        if test:
            self.test_files.add(path)
        if resource:
            self.resource_files.add(path)
        if types is not None:
            self.declared_types[path] = types
        return path

    def get_unit_for_file(self, path: str) -> Optional[CompilationUnit]:
        return self.units.get(path)

    def is_test_source(self, unit: CompilationUnit, path: str) -> bool:
        return path in self.test_files

    def is_resource_file(self, path: str) -> bool:
        return path in self.resource_files

    def get_declared_types(self, path: str) -> List[str]:
        assert self.read_depth > 0, "declared types read outside read_action()"
        return list(self.declared_types.get(path, []))

    def is_compiler_enabled(self, unit: CompilationUnit) -> bool:
        return unit.name not in self.disabled

    def try_setup_toolchain(self, unit: CompilationUnit) -> bool:
        return unit.name in self.setup_homes

    def find_file(self, path: Path) -> Optional[Path]:
        return Path(path) if Path(path) in self.known_files else None


@pytest.fixture
def fake_model():
    return FakeProjectModel()


@pytest.fixture
def make_unit(tmp_path):
    """Factory for compilation units with a JDK and a Groovy home."""

    def _make(name="core", groovy_home=None, framework_home="", with_jdk=True, **kwargs):
        if groovy_home is None:
            groovy_home = str(tmp_path / "groovy")
        kwargs.setdefault("output_dir", f"{tmp_path.as_posix()}/out/{name}")
        kwargs.setdefault("test_output_dir", f"{tmp_path.as_posix()}/out/{name}-test")
        return CompilationUnit(
            name=name,
            toolchain=Toolchain(
                groovy_home=groovy_home,
                framework_home=framework_home,
                jdk_home=tmp_path / "jdk" if with_jdk else None,
            ),
            **kwargs,
        )

    return _make
