"""
Layer 1 — Plate Geometry
========================
Multiwell plate formats and the mutable Plate grid that fragments are
copied into.

Plates follow the ANSI/SLAS footprint: rows are lettered from the top
(A, B, ...) and columns numbered from the left (1, 2, ...). Internally every
well is addressed by its zero-based (row, column) pair.

Each Plate keeps two numpy arrays of identical shape:
  wells       – object array holding a (sample, reagent) tuple or None
  wells_used  – boolean occupancy mask, used for anchor and overlap checks
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING
import logging
import string

import numpy as np

from qpcr_layout.errors import ConfigurationError, GeometryError

if TYPE_CHECKING:
    from qpcr_layout.experiments import ExperimentMatrix

logger = logging.getLogger(__name__)


# ── Plate formats ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlateSpec:
    row_count: int
    column_count: int

    @property
    def well_count(self) -> int:
        return self.row_count * self.column_count

    def to_dict(self) -> dict:
        return {
            "row_count": self.row_count,
            "column_count": self.column_count,
            "well_count": self.well_count,
        }


PLATE_SIZES: Dict[int, PlateSpec] = {
    96:  PlateSpec(row_count=8,  column_count=12),
    384: PlateSpec(row_count=16, column_count=24),
}


def plate_spec_for(max_well_count: int) -> PlateSpec:
    """Return the shared PlateSpec for a supported well count (96 or 384)."""
    spec = PLATE_SIZES.get(max_well_count) if not isinstance(max_well_count, bool) else None
    if spec is None:
        supported = " or ".join(str(n) for n in PLATE_SIZES)
        raise ConfigurationError(
            f"Invalid plate size {max_well_count!r} (expected {supported})"
        )
    return spec


def well_label(row: int, column: int) -> str:
    """Human-readable well name, e.g. (0, 0) → 'A1', (15, 23) → 'P24'."""
    return f"{string.ascii_uppercase[row]}{column + 1}"


# ── Plate ─────────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Plate:
    spec: PlateSpec
    wells: np.ndarray = field(init=False, repr=False)
    wells_used: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        shape = (self.spec.row_count, self.spec.column_count)
        self.wells = np.empty(shape, dtype=object)
        self.wells_used = np.zeros(shape, dtype=bool)

    @property
    def filled_count(self) -> int:
        return int(self.wells_used.sum())

    @property
    def empty_count(self) -> int:
        return self.spec.well_count - self.filled_count

    def anchors(self) -> List[Tuple[int, int]]:
        """
        Candidate top-left positions for the next fragment: for every row that
        still has an empty well, (row, column of its first empty well).
        Fully occupied rows are skipped. Returned in row order.
        """
        found = []
        for row in range(self.spec.row_count):
            empty = np.flatnonzero(~self.wells_used[row])
            if empty.size:
                found.append((row, int(empty[0])))
        return found

    def fits(self, fragment: "ExperimentMatrix", row: int, column: int) -> bool:
        """
        True if the fragment stays inside the plate edges from (row, column)
        and every well of the rectangle it would cover is still empty.
        """
        if fragment.row_count > self.spec.row_count - row:
            return False
        if fragment.column_count > self.spec.column_count - column:
            return False
        target = self.wells_used[row:row + fragment.row_count,
                                 column:column + fragment.column_count]
        return not target.any()

    def find_anchor(self, fragment: "ExperimentMatrix") -> Optional[Tuple[int, int]]:
        for row, column in self.anchors():
            if self.fits(fragment, row, column):
                return row, column
        return None

    def place(self, fragment: "ExperimentMatrix", row: int, column: int) -> None:
        """Copy a fragment's cells into the plate with its top-left at (row, column)."""
        if not self.fits(fragment, row, column):
            raise GeometryError(
                f"{fragment.row_count}x{fragment.column_count} fragment does not fit "
                f"at {well_label(row, column)} on a "
                f"{self.spec.row_count}x{self.spec.column_count} plate"
            )
        for i, cells in enumerate(fragment.rows):
            for j, cell in enumerate(cells):
                self.wells[row + i, column + j] = cell
        self.wells_used[row:row + fragment.row_count,
                        column:column + fragment.column_count] = True
        logger.debug("Placed %dx%d fragment at %s",
                     fragment.row_count, fragment.column_count, well_label(row, column))

    def cells(self) -> List[Tuple[str, str]]:
        """All filled wells' (sample, reagent) pairs in row-major order."""
        return [cell for cell in self.wells.ravel().tolist() if cell is not None]

    def to_dict(self) -> dict:
        grid = []
        for r in range(self.spec.row_count):
            row = []
            for c in range(self.spec.column_count):
                cell = self.wells[r, c]
                row.append({
                    "well": well_label(r, c),
                    "sample": cell[0] if cell is not None else None,
                    "reagent": cell[1] if cell is not None else None,
                })
            grid.append(row)
        return {
            "row_count": self.spec.row_count,
            "column_count": self.spec.column_count,
            "filled_wells": self.filled_count,
            "empty_wells": self.empty_count,
            "wells": grid,
        }
