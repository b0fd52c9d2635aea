"""Unit tests for classpath resolution."""

import os

import pytest

from groovyd.build.classpath import Classpath, ClasspathResolver, strip_archive_suffix
from groovyd.toolchain import RequiredLibraryFilter


class TestClasspath:
    """Test cases for the Classpath container."""

    def test_preserves_first_occurrence_order(self):
        """Test that duplicates keep their first position."""
        classpath = Classpath(["a.jar", "b.jar", "a.jar", "c.jar", "b.jar"])
        assert classpath.entries == ["a.jar", "b.jar", "c.jar"]

    def test_normalizes_separators(self):
        """Test that backslash paths dedupe with forward-slash paths."""
        classpath = Classpath(["C:\\lib\\a.jar", "C:/lib/a.jar"])
        assert classpath.entries == ["C:/lib/a.jar"]
        assert "C:\\lib\\a.jar" in classpath

    def test_skips_empty_entries(self):
        classpath = Classpath(["", "a.jar"])
        assert len(classpath) == 1

    def test_to_string_uses_path_separator(self):
        """Test joining with the host separator."""
        classpath = Classpath(["a.jar", "b.jar"])
        assert classpath.to_string() == f"a.jar{os.pathsep}b.jar"

    def test_strip_archive_suffix(self):
        assert strip_archive_suffix("/lib/a.jar!/") == "/lib/a.jar"
        assert strip_archive_suffix("/lib/a.jar!/com/x") == "/lib/a.jar"
        assert strip_archive_suffix("/classes") == "/classes"


class TestClasspathResolver:
    """Test cases for ClasspathResolver."""

    @pytest.fixture
    def groovy_home(self, tmp_path):
        """Create a Groovy distribution lib/ directory."""
        lib = tmp_path / "groovy" / "lib"
        lib.mkdir(parents=True)
        for name in ["groovy-4.0.15.jar", "asm-9.5.jar", "xstream-1.4.jar", "notes.txt", "ant-1.10.jar"]:
            (lib / name).write_text("")
        return tmp_path / "groovy"

    @pytest.fixture
    def resolver(self, tmp_path):
        return ClasspathResolver(
            runtime_jar=tmp_path / "rt" / "groovyd-rt.jar",
            library_filter=RequiredLibraryFilter(),
            profiler_jar=tmp_path / "rt" / "profiler.jar",
        )

    def test_process_classpath_order(self, resolver, fake_model, make_unit, groovy_home, tmp_path):
        """Test runtime archive, then filtered lib archives, then unit archives."""
        unit = make_unit(
            groovy_home=str(groovy_home),
            classpath=("/libs/guava.jar!/", "/libs/classes", "/libs/lang.jar"),
        )

        classpath = resolver.resolve_process_classpath(unit, fake_model)
        lib = groovy_home.as_posix() + "/lib"

        assert classpath.entries == [
            (tmp_path / "rt" / "groovyd-rt.jar").as_posix(),
            f"{lib}/ant-1.10.jar",
            f"{lib}/asm-9.5.jar",
            f"{lib}/groovy-4.0.15.jar",
            "/libs/guava.jar",
            "/libs/lang.jar",
        ]
        assert fake_model.max_read_depth >= 1

    def test_process_classpath_without_lib_dir(self, resolver, fake_model, make_unit, tmp_path):
        """Test that a missing lib/ directory contributes nothing."""
        unit = make_unit(groovy_home=str(tmp_path / "missing"))
        classpath = resolver.resolve_process_classpath(unit, fake_model)
        assert classpath.entries == [(tmp_path / "rt" / "groovyd-rt.jar").as_posix()]

    def test_process_classpath_unconfigured_toolchain(self, resolver, fake_model, make_unit):
        """Test that a unit with no roots still gets the runtime archive."""
        unit = make_unit(groovy_home="", classpath=("/libs/a.jar",))
        classpath = resolver.resolve_process_classpath(unit, fake_model)
        assert len(classpath) == 2
        assert classpath.entries[1] == "/libs/a.jar"

    def test_framework_lib_dir_wins(self, resolver, fake_model, make_unit, groovy_home, tmp_path):
        """Test that the framework distribution's lib/ is used when set."""
        framework_lib = tmp_path / "grails" / "lib"
        framework_lib.mkdir(parents=True)
        (framework_lib / "groovy-all-1.8.jar").write_text("")

        unit = make_unit(groovy_home=str(groovy_home), framework_home=str(tmp_path / "grails"))
        classpath = resolver.resolve_process_classpath(unit, fake_model)

        assert classpath.entries[1:] == [f"{framework_lib.as_posix()}/groovy-all-1.8.jar"]

    def test_profiler_archive_appended(self, resolver, fake_model, make_unit, tmp_path):
        """Test that profiling adds the profiler archive last."""
        unit = make_unit(classpath=("/libs/a.jar",))
        classpath = resolver.resolve_process_classpath(unit, fake_model, profile=True)
        assert classpath.entries[-1] == (tmp_path / "rt" / "profiler.jar").as_posix()

    def test_runtime_archive_not_duplicated(self, resolver, fake_model, make_unit, tmp_path):
        """Test that a unit listing the runtime archive keeps it first only."""
        runtime = (tmp_path / "rt" / "groovyd-rt.jar").as_posix()
        unit = make_unit(classpath=(runtime, "/libs/a.jar"))
        classpath = resolver.resolve_process_classpath(unit, fake_model)
        assert classpath.entries == [runtime, "/libs/a.jar"]

    def test_compilation_classpath(self, resolver, fake_model, make_unit):
        """Test that every root is kept, stripped, and the output dir appended."""
        unit = make_unit(
            classpath=("/libs/guava.jar!/", "/libs/classes", "/libs/guava.jar"),
            output_dir="/out/core",
        )
        classpath = resolver.resolve_compilation_classpath(unit, fake_model)
        assert classpath.entries == ["/libs/guava.jar", "/libs/classes", "/out/core"]

    def test_unit_library_archives(self, make_unit):
        unit = make_unit(classpath=("/a.jar", "/b.JAR", "/classes", "/c.zip!/"))
        assert ClasspathResolver.unit_library_archives(unit) == ["/a.jar", "/b.JAR", "/c.zip"]
