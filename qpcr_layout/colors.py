"""
Layer 4 — Reagent Color Key
===========================
Assigns each distinct reagent a light background color for presentation.
Colors have no effect on placement.

Each color is three bytes drawn uniformly from the upper half of the byte
range (0x80–0xff), written as two lowercase hex digits each, e.g. 'c4f09a'.
"""

from __future__ import annotations
from typing import Dict, Optional, Sequence

import numpy as np

LIGHT_BYTE_MIN = 0x80
LIGHT_BYTE_SPAN = 0x80


def distinct_reagents(reagent_list: Sequence[Sequence[str]]) -> list:
    """All reagent names across experiments, duplicates collapsed, first-seen order."""
    return list(dict.fromkeys(r for reagents in reagent_list for r in reagents))


def random_color(rng: np.random.Generator) -> str:
    channels = LIGHT_BYTE_MIN + rng.integers(0, LIGHT_BYTE_SPAN, size=3)
    return "".join(f"{int(v):02x}" for v in channels)


def assign_colors(reagent_list: Sequence[Sequence[str]],
                  rng: Optional[np.random.Generator] = None) -> Dict[str, str]:
    """
    Map every distinct reagent to a color string.

    Pass a seeded generator (np.random.default_rng(seed)) for reproducible
    colors; without one, every call draws fresh colors.
    """
    if rng is None:
        rng = np.random.default_rng()
    return {reagent: random_color(rng) for reagent in distinct_reagents(reagent_list)}
