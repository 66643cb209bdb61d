# src/pkviz/colors.py
from dataclasses import replace
from typing import Sequence

from pkengine.types import Dataset

PALETTE = (
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
)


def assign_colors(datasets: Sequence[Dataset]) -> list[Dataset]:
    """
    Fill in missing colors. Parent series cycle through PALETTE in order;
    a metabolite series reuses the color of the parent just before it.
    Colors that are already set are left alone.
    """
    out: list[Dataset] = []
    parent_idx = -1
    parent_color = PALETTE[0]
    for ds in datasets:
        if not ds.is_metabolite:
            parent_idx += 1
            parent_color = ds.color or PALETTE[parent_idx % len(PALETTE)]
        out.append(ds if ds.color else replace(ds, color=parent_color))
    return out
