"""Batch result aggregation.

Per-unit results are merged into one BatchResult, the only result a driver
invocation exposes. Compiled artifacts and recompile requests are merged as
set unions.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Set

from ..model import BatchResult, CompiledArtifact


class AggregationError(Exception):
    """Raised when results are added after the batch was aggregated."""

    pass


class AggregatorState(Enum):
    """Lifecycle of one driver invocation."""

    COLLECTING = "collecting"
    COMPILING = "compiling"
    AGGREGATED = "aggregated"


class CompileResultAggregator:
    """Collects per-unit results for one invocation."""

    def __init__(self):
        self.state = AggregatorState.COLLECTING
        self._compiled: Set[CompiledArtifact] = set()
        self._to_recompile: Set[Path] = set()
        self.results_merged = 0
        self.units: List[str] = []

    def _check_open(self) -> None:
        if self.state is AggregatorState.AGGREGATED:
            raise AggregationError("Batch result already built; no further results accepted")

    def begin_unit(self, unit_name: str) -> None:
        """Mark the start of a unit's compile cycle; units are kept in compile order."""
        self._check_open()
        self.state = AggregatorState.COMPILING
        self.units.append(unit_name)
        logging.debug(f"Compiling unit '{unit_name}' ({len(self.units)} in batch)")

    def add_unit_result(
        self,
        compiled: Iterable[CompiledArtifact] = (),
        to_recompile: Iterable[Path] = ()
    ) -> None:
        """Merge one unit's (or one resource copy's) results."""
        self._check_open()
        self.state = AggregatorState.COMPILING
        self._compiled.update(compiled)
        self._to_recompile.update(Path(path) for path in to_recompile)
        self.results_merged += 1

    def build(self) -> BatchResult:
        """Freeze the aggregate.

        A source reported both as compiled and as needing recompilation is
        kept only in the recompile set.
        """
        self._check_open()
        self.state = AggregatorState.AGGREGATED

        recompile_keys = {_path_key(path) for path in self._to_recompile}
        compiled = frozenset(
            artifact for artifact in self._compiled
            if _path_key(Path(artifact.source_path)) not in recompile_keys
        )
        return BatchResult(compiled=compiled, to_recompile=frozenset(self._to_recompile))


def _path_key(path: Path) -> str:
    return str(path).replace("\\", "/")
