# src/pkviz/ui/plots.py
from typing import Sequence

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QVBoxLayout
import pyqtgraph as pg

from pkengine.types import Dataset
from pkengine.timefmt import clock_ticks
from pkviz.colors import assign_colors


class PlotWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)

        # Main plot area
        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setLabel("left", "Relative concentration")
        self.plot_widget.setLabel("bottom", "Time (clock, from midnight of day 1)")
        self.plot_widget.setYRange(0.0, 1.05)
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.addLegend()
        layout.addWidget(self.plot_widget)

        self.curves = {}  # label -> PlotDataItem

    def plot_datasets(self, datasets: Sequence[Dataset]):
        self.clear()
        for ds in assign_colors(datasets):
            style = Qt.DashLine if ds.is_metabolite else Qt.SolidLine
            curve = self.plot_widget.plot(
                ds.curve.t, ds.curve.concentration,
                pen=pg.mkPen(ds.color, width=2, style=style),
                name=ds.label,
            )
            self.curves[ds.label] = curve
        grids = [ds.curve.t for ds in datasets if len(ds.curve)]
        if grids:
            self.set_clock_axis(min(float(t[0]) for t in grids), max(float(t[-1]) for t in grids))

    def set_clock_axis(self, start_h: float, end_h: float):
        self.plot_widget.getAxis("bottom").setTicks([clock_ticks(start_h, end_h)])

    def clear(self):
        self.plot_widget.clear()
        self.plot_widget.getAxis("bottom").setTicks(None)
        self.curves = {}
