# qPCR Plate Layout — Four-Layer Architecture
# Layer 1: plates.py      — plate formats, Plate grid, anchors & placement
# Layer 2: experiments.py — experiment matrices and plate-sized splitting
# Layer 3: packer.py      — greedy first-fit-decreasing plate packing
# Layer 4: colors.py      — reagent color key
from qpcr_layout.errors import PlateLayoutError, ConfigurationError, GeometryError
from qpcr_layout.plates import PLATE_SIZES, PlateSpec, Plate, plate_spec_for
from qpcr_layout.experiments import ExperimentMatrix, build_experiments, split_experiments
from qpcr_layout.packer import (
    PACKING_STRATEGIES, LayoutResult, layout_plates, run_layout, compare_strategies
)
from qpcr_layout.colors import assign_colors
