"""
Layer 2 — Experiment Matrices
=============================
Expands sample / reagent / replicate specifications into rectangular
experiment matrices and cuts oversized matrices into plate-sized fragments.

Matrix shape
------------
- one row per sample, in the order the samples were given
- columns = reagents × replicates; every row is sorted by (sample, reagent),
  so all replicates of one reagent sit in a contiguous run of columns

Splitting
---------
Column phase first: a matrix wider than the plate is cut at the reagent
boundaries of its first row, one fragment per reagent run (runs wider than
the plate are chunked further). Row phase second: fragments taller than the
plate are cut into chunks of plate.row_count rows. No zero-row chunk is ever
produced.
"""

from __future__ import annotations
from dataclasses import dataclass
from numbers import Integral
from typing import List, Sequence
import logging

from qpcr_layout.errors import ConfigurationError
from qpcr_layout.plates import PlateSpec, plate_spec_for

logger = logging.getLogger(__name__)


# ── Experiment matrix ─────────────────────────────────────────────────────────

@dataclass
class ExperimentMatrix:
    """A rectangular block of (sample, reagent) cells from one experiment."""
    rows: List[List[tuple]]
    experiment: int = 0      # index of the experiment this block came from

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def cell_count(self) -> int:
        return self.row_count * self.column_count

    def reagent_at(self, column: int) -> str:
        return self.rows[0][column][1]

    def column_slice(self, start: int, stop: int) -> "ExperimentMatrix":
        return ExperimentMatrix([row[start:stop] for row in self.rows], self.experiment)

    def row_slice(self, start: int, stop: int) -> "ExperimentMatrix":
        return ExperimentMatrix([list(row) for row in self.rows[start:stop]], self.experiment)


# ── Builder ───────────────────────────────────────────────────────────────────

def _validate(max_well_count, sample_list, reagent_list, replicate_count) -> PlateSpec:
    spec = plate_spec_for(max_well_count)

    if not (len(sample_list) == len(reagent_list) == len(replicate_count)):
        raise ConfigurationError(
            "Inconsistent number of experiments: "
            f"{len(sample_list)} sample lists, {len(reagent_list)} reagent lists, "
            f"{len(replicate_count)} replicate counts"
        )

    for e, (samples, reagents, replicates) in enumerate(
            zip(sample_list, reagent_list, replicate_count)):
        if not samples or not reagents:
            raise ConfigurationError(
                f"Experiment {e} needs at least one sample and one reagent"
            )
        if len(set(samples)) != len(samples):
            raise ConfigurationError(
                f"Samples used in experiment {e} must be unique"
            )
        if len(set(reagents)) != len(reagents):
            raise ConfigurationError(
                f"Reagents used in experiment {e} must be unique"
            )
        if isinstance(replicates, bool) or not isinstance(replicates, Integral) or replicates < 1:
            raise ConfigurationError(
                f"Replicate count for experiment {e} must be a positive integer, "
                f"got {replicates!r}"
            )
    return spec


def build_experiments(max_well_count: int,
                      sample_list: Sequence[Sequence[str]],
                      reagent_list: Sequence[Sequence[str]],
                      replicate_count: Sequence[int]) -> List[ExperimentMatrix]:
    """
    Build one ExperimentMatrix per experiment.

    For every sample the row is {sample} × reagents, repeated as a whole
    replicate_count times, then sorted by (sample, reagent). Raises
    ConfigurationError before building anything if the input is invalid.
    """
    _validate(max_well_count, sample_list, reagent_list, replicate_count)

    experiments = []
    for e, (samples, reagents, replicates) in enumerate(
            zip(sample_list, reagent_list, replicate_count)):
        rows = []
        for sample in samples:
            combos = [(sample, reagent) for reagent in reagents] * int(replicates)
            rows.append(sorted(combos))
        matrix = ExperimentMatrix(rows, experiment=e)
        logger.debug("Experiment %d: %dx%d matrix", e, matrix.row_count, matrix.column_count)
        experiments.append(matrix)
    return experiments


# ── Splitter ──────────────────────────────────────────────────────────────────

def reagent_boundaries(experiment: ExperimentMatrix) -> List[int]:
    """Column indices where a new reagent run starts on the first row. Column 0 always does."""
    return [i for i in range(experiment.column_count)
            if i == 0 or experiment.reagent_at(i) != experiment.reagent_at(i - 1)]


def split_experiment_by_columns(experiment: ExperimentMatrix,
                                plate: PlateSpec) -> List[ExperimentMatrix]:
    """One fragment per reagent run; runs wider than the plate are chunked."""
    starts = reagent_boundaries(experiment)
    stops = starts[1:] + [experiment.column_count]
    fragments = []
    for start, stop in zip(starts, stops):
        for chunk_start in range(start, stop, plate.column_count):
            chunk_stop = min(chunk_start + plate.column_count, stop)
            fragments.append(experiment.column_slice(chunk_start, chunk_stop))
    return fragments


def split_experiment_by_rows(experiment: ExperimentMatrix,
                             plate: PlateSpec) -> List[ExperimentMatrix]:
    """Consecutive chunks of plate.row_count rows; the last holds the remainder."""
    return [experiment.row_slice(start, start + plate.row_count)
            for start in range(0, experiment.row_count, plate.row_count)]


def split_experiments(experiments: List[ExperimentMatrix],
                      plate: PlateSpec) -> List[ExperimentMatrix]:
    """Cut every matrix that exceeds the plate's column or row capacity."""
    by_columns: List[ExperimentMatrix] = []
    for experiment in experiments:
        if experiment.column_count <= plate.column_count:
            by_columns.append(experiment)
            continue
        pieces = split_experiment_by_columns(experiment, plate)
        logger.debug("Experiment %d: %d columns split into %d fragments",
                     experiment.experiment, experiment.column_count, len(pieces))
        by_columns.extend(pieces)

    fragments: List[ExperimentMatrix] = []
    for experiment in by_columns:
        if experiment.row_count <= plate.row_count:
            fragments.append(experiment)
            continue
        pieces = split_experiment_by_rows(experiment, plate)
        logger.debug("Experiment %d: %d rows split into %d fragments",
                     experiment.experiment, experiment.row_count, len(pieces))
        fragments.extend(pieces)
    return fragments
