# src/pkviz/ui/main_window.py
import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QMainWindow, QWidget, QHBoxLayout, QSplitter, QStatusBar
from .controls import ControlsPanel, SimulateRequest
from .plots import PlotWidget
from .summary import SummaryTable
from pkengine.simulate import get_graph_data
from pkengine.metrics import generate_summary_data
from pkengine.models.one_compartment import get_peak_time
from pkengine.validation import ValidationResult

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("PK Grapher")
        self.resize(1100, 760)

        central = QWidget(self); self.setCentralWidget(central)
        root = QHBoxLayout(central)

        self.controls = ControlsPanel()
        self.plot = PlotWidget()
        self.summary = SummaryTable()
        right = QSplitter(Qt.Vertical)
        right.addWidget(self.plot)
        right.addWidget(self.summary)
        right.setStretchFactor(0, 3)
        right.setStretchFactor(1, 1)
        root.addWidget(self.controls, 0)
        root.addWidget(right, 1)

        self.status = QStatusBar(); self.setStatusBar(self.status)

        # wire events
        self.controls.simulateRequested.connect(self.on_simulate)
        self.controls.validationFailed.connect(self.on_invalid)
        self.controls.importFailed.connect(lambda msg: self.status.showMessage(msg, 8000))

        # first run using current control values
        self.controls._emit_request()

    def on_invalid(self, result: ValidationResult):
        self.status.showMessage("Invalid regimen: " + "; ".join(result.errors), 8000)

    def on_simulate(self, req: SimulateRequest):
        try:
            datasets = get_graph_data(req.regimens, req.start_h, req.end_h)
            self.plot.plot_datasets(datasets)
            self.summary.show_summary(generate_summary_data(req.regimens, req.start_h, req.end_h))
            if len(req.regimens) == 1:
                rx = req.regimens[0]
                msg = f"Tmax {get_peak_time(rx.half_life, rx.uptake):.2f} h"
            else:
                msg = f"Plotted {len(datasets)} series for {len(req.regimens)} regimens"
            if req.warnings:
                msg += " | " + " ".join(req.warnings)
            self.status.showMessage(msg, 8000)
        except Exception as e:
            logger.exception("Simulation failed")
            self.status.showMessage(f"Error: {e}", 8000)
