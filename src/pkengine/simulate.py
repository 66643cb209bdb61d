# src/pkengine/simulate.py
import logging
from typing import Sequence

from .types import Dataset, DosingRegimen
from .helpers import graph_end_hours
from .solvers import accumulate_doses, accumulate_metabolite_doses

logger = logging.getLogger(__name__)


def format_dose(dose: float) -> str:
    """Shortest exact text for a dose: 500.0 -> "500", 12.5 -> "12.5", 1234.123 -> "1234.123"."""
    text = repr(float(dose))
    return text[:-2] if text.endswith(".0") else text


def dataset_label(regimen: DosingRegimen) -> str:
    """e.g. "Ibuprofen 400mg (tid)". Dose, name and frequency keep same-drug series apart."""
    return f"{regimen.name} {format_dose(regimen.dose)}mg ({regimen.frequency})"


def metabolite_label(regimen: DosingRegimen) -> str:
    base = dataset_label(regimen)
    if regimen.metabolite_name:
        return f"{base} [{regimen.metabolite_name} metabolite]"
    return f"{base} [metabolite]"


def get_graph_data(regimens: Sequence[DosingRegimen], start_h: float, end_h: float) -> list[Dataset]:
    """
    High-level wrapper: one parent Dataset per regimen, each followed by
    its metabolite Dataset when the regimen has complete metabolite data.

    The shared window is stretched to the longest duration override so
    no curve gets cut short.
    """
    end = graph_end_hours(regimens, start_h, end_h)

    datasets: list[Dataset] = []
    for rx in regimens:
        datasets.append(Dataset(label=dataset_label(rx), curve=accumulate_doses(rx, start_h, end)))
        if rx.metabolite is not None:
            datasets.append(Dataset(
                label=metabolite_label(rx),
                curve=accumulate_metabolite_doses(rx, start_h, end),
                is_metabolite=True,
            ))

    logger.debug("Built %d datasets for %d regimens over %.2f-%.2f h",
                 len(datasets), len(regimens), start_h, end)
    return datasets
