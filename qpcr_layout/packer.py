"""
Layer 3 — Plate Layout Engine
=============================
Packs plate-sized experiment fragments onto as few plates as a greedy
corner-placement heuristic allows.

Placement recap
---------------
- Anchors: for every row of the current plate that still has an empty well,
  the (row, column) of its first empty well.
- A fragment fits an anchor if it stays inside the plate from there and every
  well of the rectangle it would cover is empty.
- Fragments are tried in order against the current plate; the first fitting
  anchor wins. Whatever is left after a full pass goes to a fresh plate.

Strategies
----------
  first_fit_decreasing – stable sort by row count, tallest first (default)
  first_fit            – fragments in splitter order, kept as a baseline

This is a heuristic; it is not guaranteed to use the minimum number of plates.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
import logging
import time

from qpcr_layout import config
from qpcr_layout.errors import ConfigurationError, GeometryError
from qpcr_layout.experiments import ExperimentMatrix, build_experiments, split_experiments
from qpcr_layout.plates import Plate, PlateSpec, plate_spec_for

logger = logging.getLogger(__name__)

PackingStrategy = Callable[[List[ExperimentMatrix], PlateSpec], List[Plate]]


# ── Placement ─────────────────────────────────────────────────────────────────

def pack_in_order(fragments: Sequence[ExperimentMatrix], spec: PlateSpec) -> List[Plate]:
    """
    Place fragments in the given order, one pass per plate, opening a new
    plate whenever a pass leaves fragments unplaced.
    """
    plates: List[Plate] = []
    unplaced = list(fragments)

    while unplaced:
        plate = Plate(spec)
        plates.append(plate)
        remaining = []
        for fragment in unplaced:
            anchor = plate.find_anchor(fragment)
            if anchor is None:
                remaining.append(fragment)
                continue
            plate.place(fragment, *anchor)

        if len(remaining) == len(unplaced):
            # Nothing fit on an empty plate; another plate would not help either.
            frag = remaining[0]
            raise GeometryError(
                f"{frag.row_count}x{frag.column_count} fragment from experiment "
                f"{frag.experiment} does not fit an empty "
                f"{spec.row_count}x{spec.column_count} plate"
            )
        logger.debug("Plate %d: %d fragments placed, %d left",
                     len(plates), len(unplaced) - len(remaining), len(remaining))
        unplaced = remaining

    return plates


def first_fit_decreasing(fragments: List[ExperimentMatrix], spec: PlateSpec) -> List[Plate]:
    """Tallest fragments first; ties keep their original relative order."""
    ordered = sorted(fragments, key=lambda f: f.row_count, reverse=True)
    return pack_in_order(ordered, spec)


def first_fit(fragments: List[ExperimentMatrix], spec: PlateSpec) -> List[Plate]:
    """Fragments in the order the splitter produced them."""
    return pack_in_order(fragments, spec)


PACKING_STRATEGIES: Dict[str, PackingStrategy] = {
    "first_fit_decreasing": first_fit_decreasing,
    "first_fit": first_fit,
}


def get_strategy(name: Optional[str] = None) -> PackingStrategy:
    if name is None:
        name = config.PACKING_STRATEGY
    if not isinstance(name, str) or name not in PACKING_STRATEGIES:
        known = ", ".join(sorted(PACKING_STRATEGIES))
        raise ConfigurationError(f"Unknown packing strategy {name!r} (known: {known})")
    return PACKING_STRATEGIES[name]


# ── Results ───────────────────────────────────────────────────────────────────

@dataclass
class LayoutResult:
    method: str
    plate_spec: PlateSpec
    plates: List[Plate]
    n_fragments: int
    solve_time_s: float

    @property
    def n_plates(self) -> int:
        return len(self.plates)

    @property
    def filled_wells(self) -> int:
        return sum(p.filled_count for p in self.plates)

    @property
    def fill_ratio(self) -> float:
        capacity = self.n_plates * self.plate_spec.well_count
        return self.filled_wells / capacity if capacity else 0.0

    def to_dict(self, include_plates: bool = True) -> dict:
        d = {
            "method": self.method,
            "plate_spec": self.plate_spec.to_dict(),
            "n_plates": self.n_plates,
            "n_fragments": self.n_fragments,
            "filled_wells": self.filled_wells,
            "fill_ratio": round(self.fill_ratio, 4),
            "solve_time_s": round(self.solve_time_s, 4),
        }
        if include_plates:
            d["plates"] = [p.to_dict() for p in self.plates]
        return d


def pack_fragments(fragments: List[ExperimentMatrix],
                   spec: PlateSpec,
                   strategy: Optional[str] = None) -> LayoutResult:
    name = config.PACKING_STRATEGY if strategy is None else strategy
    packer = get_strategy(name)
    t0 = time.time()
    plates = packer(fragments, spec)
    return LayoutResult(
        method=name,
        plate_spec=spec,
        plates=plates,
        n_fragments=len(fragments),
        solve_time_s=time.time() - t0,
    )


# ── Full layout run ───────────────────────────────────────────────────────────

def run_layout(max_well_count: int,
               sample_list: Sequence[Sequence[str]],
               reagent_list: Sequence[Sequence[str]],
               replicate_count: Sequence[int],
               strategy: Optional[str] = None) -> LayoutResult:
    """Build → split → pack. Returns the plates together with run statistics."""
    spec = plate_spec_for(max_well_count)
    get_strategy(strategy)  # unknown names fail before any matrix is built
    experiments = build_experiments(max_well_count, sample_list, reagent_list, replicate_count)
    fragments = split_experiments(experiments, spec)
    result = pack_fragments(fragments, spec, strategy)
    logger.info("Laid out %d experiments as %d fragments on %d plate(s) of %d wells (%s)",
                len(experiments), len(fragments), result.n_plates,
                spec.well_count, result.method)
    return result


def layout_plates(max_well_count: int,
                  sample_list: Sequence[Sequence[str]],
                  reagent_list: Sequence[Sequence[str]],
                  replicate_count: Sequence[int],
                  strategy: Optional[str] = None) -> List[Plate]:
    return run_layout(max_well_count, sample_list, reagent_list,
                      replicate_count, strategy).plates


@dataclass
class StrategyComparison:
    results: Dict[str, LayoutResult] = field(default_factory=dict)

    @property
    def best(self) -> Optional[str]:
        if not self.results:
            return None
        # min() keeps the first registered strategy on ties
        return min(self.results, key=lambda name: self.results[name].n_plates)

    def summary(self) -> dict:
        return {
            "best": self.best,
            "methods": {name: r.to_dict(include_plates=False)
                        for name, r in self.results.items()},
        }


def compare_strategies(max_well_count: int,
                       sample_list: Sequence[Sequence[str]],
                       reagent_list: Sequence[Sequence[str]],
                       replicate_count: Sequence[int]) -> StrategyComparison:
    """Run every registered strategy on the same fragments."""
    spec = plate_spec_for(max_well_count)
    experiments = build_experiments(max_well_count, sample_list, reagent_list, replicate_count)
    fragments = split_experiments(experiments, spec)

    comparison = StrategyComparison()
    for name in PACKING_STRATEGIES:
        comparison.results[name] = pack_fragments(fragments, spec, name)
    return comparison
