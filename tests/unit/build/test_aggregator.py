"""Unit tests for batch result aggregation."""

from pathlib import Path

import pytest

from groovyd.build.aggregator import AggregationError, AggregatorState, CompileResultAggregator
from groovyd.model import CompiledArtifact


class TestCompileResultAggregator:
    """Test cases for CompileResultAggregator."""

    def test_empty_batch(self):
        """Test that no units yields an empty result."""
        result = CompileResultAggregator().build()
        assert result.compiled == frozenset()
        assert result.to_recompile == frozenset()

    def test_merges_units_as_unions(self):
        """Test that per-unit results are merged."""
        aggregator = CompileResultAggregator()
        aggregator.begin_unit("core")
        aggregator.add_unit_result([CompiledArtifact("/out/A.class", "/p/A.groovy")], [Path("/p/B.groovy")])
        aggregator.begin_unit("web")
        aggregator.add_unit_result(
            [CompiledArtifact("/out/C.class", "/p/C.groovy"), CompiledArtifact("/out/A.class", "/p/A.groovy")],
            [Path("/p/B.groovy")],
        )

        result = aggregator.build()

        assert result.compiled_sources == frozenset({"/p/A.groovy", "/p/C.groovy"})
        assert result.to_recompile == frozenset({Path("/p/B.groovy")})
        assert aggregator.results_merged == 2
        assert aggregator.units == ["core", "web"]

    def test_recompile_wins_over_compiled(self):
        """Test that a source in both sets only stays in the recompile set."""
        aggregator = CompileResultAggregator()
        aggregator.add_unit_result([CompiledArtifact("/out/A.class", "/p/A.groovy")], [])
        aggregator.add_unit_result([], ["/p/A.groovy"])

        result = aggregator.build()

        assert result.compiled == frozenset()
        assert result.to_recompile == frozenset({Path("/p/A.groovy")})

    def test_state_transitions(self):
        aggregator = CompileResultAggregator()
        assert aggregator.state is AggregatorState.COLLECTING
        aggregator.begin_unit("core")
        assert aggregator.state is AggregatorState.COMPILING
        aggregator.build()
        assert aggregator.state is AggregatorState.AGGREGATED

    def test_no_results_after_build(self):
        """Test that the aggregate is terminal."""
        aggregator = CompileResultAggregator()
        aggregator.build()

        with pytest.raises(AggregationError):
            aggregator.add_unit_result([], [])
        with pytest.raises(AggregationError):
            aggregator.begin_unit("core")
        with pytest.raises(AggregationError):
            aggregator.build()
