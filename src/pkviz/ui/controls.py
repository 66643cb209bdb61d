# src/pkviz/ui/controls.py
import json
import logging
from dataclasses import dataclass, field
from PySide6.QtCore import Signal
from PySide6.QtWidgets import (QVBoxLayout, QHBoxLayout, QPushButton, QDoubleSpinBox,
                               QComboBox, QFrame, QLabel, QLineEdit, QCheckBox, QListWidget,
                               QFileDialog)
from pkengine.types import DosingRegimen
from pkengine.importing import regimens_from_payload
from pkengine.simulate import dataset_label
from pkengine.validation import FREQUENCY_MAP, ValidationResult, regimen_warnings, validate_regimen

logger = logging.getLogger(__name__)


@dataclass
class SimulateRequest:
    regimens: list[DosingRegimen] = field(default_factory=list)
    start_h: float = 0.0
    end_h: float = 48.0
    warnings: list[str] = field(default_factory=list)


class ControlsPanel(QFrame):
    simulateRequested = Signal(SimulateRequest)
    validationFailed = Signal(ValidationResult)
    importFailed = Signal(str)

    def __init__(self):
        super().__init__()
        self.setFrameShape(QFrame.StyledPanel)
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Regimen"))

        # --- Drug and schedule ---
        self.name = QLineEdit("Ibuprofen")
        layout.addWidget(QLabel("Name"))
        layout.addWidget(self.name)

        self.dose = QDoubleSpinBox(); self.dose.setDecimals(3)
        self.dose.setRange(0.001, 10000); self.dose.setValue(400)
        self.dose.setSuffix(" mg")
        layout.addWidget(QLabel("Dose"))
        layout.addWidget(self.dose)

        self.frequency = QComboBox(); self.frequency.addItems(list(FREQUENCY_MAP))
        self.frequency.setCurrentText("tid")
        layout.addWidget(QLabel("Frequency"))
        layout.addWidget(self.frequency)

        self.times = QLineEdit("08:00, 14:00, 20:00")
        layout.addWidget(QLabel("Times (HH:MM, comma separated)"))
        layout.addWidget(self.times)

        # --- PK parameters ---
        layout.addWidget(QLabel("PK Parameters"))
        self.half_life = self._hours_box(0.1, 240, 2.0)
        layout.addWidget(QLabel("t½ (elimination half-life, h)"))
        layout.addWidget(self.half_life)

        self.uptake = self._hours_box(0.1, 24, 0.5)
        layout.addWidget(QLabel("Uptake time (h)"))
        layout.addWidget(self.uptake)

        self.peak = self._hours_box(0.1, 48, 1.5)
        layout.addWidget(QLabel("Tmax hint (h)"))
        layout.addWidget(self.peak)

        # --- Metabolite (optional) ---
        self.has_metabolite = QCheckBox("Show metabolite")
        layout.addWidget(self.has_metabolite)
        self.metabolite_half_life = self._hours_box(0.1, 1000, 6.0)
        self.lbl_metabolite_half_life = QLabel("Metabolite t½ (h)")
        layout.addWidget(self.lbl_metabolite_half_life)
        layout.addWidget(self.metabolite_half_life)
        self.fm = QDoubleSpinBox(); self.fm.setDecimals(3); self.fm.setRange(0.0, 1.0)
        self.fm.setSingleStep(0.05); self.fm.setValue(0.5)
        self.lbl_fm = QLabel("Conversion fraction (fm)")
        layout.addWidget(self.lbl_fm)
        layout.addWidget(self.fm)
        self.has_metabolite.toggled.connect(self._update_metabolite_visibility)
        self._update_metabolite_visibility()

        # --- Window ---
        self.window_h = self._hours_box(1.0, 8760, 48.0)
        layout.addWidget(QLabel("Time window (h)"))
        layout.addWidget(self.window_h)

        # --- Comparison list ---
        self.regimen_list = QListWidget()
        self._regimens: list[DosingRegimen] = []
        layout.addWidget(QLabel("Compared regimens"))
        layout.addWidget(self.regimen_list)

        row = QHBoxLayout()
        add = QPushButton("Add"); add.clicked.connect(self._add_current)
        clear = QPushButton("Clear"); clear.clicked.connect(self._clear_regimens)
        load = QPushButton("Import..."); load.clicked.connect(self._import_file)
        row.addWidget(add); row.addWidget(clear); row.addWidget(load)
        layout.addLayout(row)

        go = QPushButton("Simulate"); layout.addWidget(go)
        go.clicked.connect(self._emit_request)

    @staticmethod
    def _hours_box(lo: float, hi: float, value: float) -> QDoubleSpinBox:
        box = QDoubleSpinBox(); box.setDecimals(2)
        box.setRange(lo, hi); box.setValue(value)
        box.setSuffix(" h")
        return box

    def _update_metabolite_visibility(self):
        on = self.has_metabolite.isChecked()
        self.lbl_metabolite_half_life.setVisible(on)
        self.metabolite_half_life.setVisible(on)
        self.lbl_fm.setVisible(on)
        self.fm.setVisible(on)

    def current_regimen(self) -> DosingRegimen:
        times = tuple(t.strip() for t in self.times.text().split(",") if t.strip())
        metabolite = self.has_metabolite.isChecked()
        return DosingRegimen(
            name=self.name.text(),
            dose=float(self.dose.value()),
            times=times,
            half_life=float(self.half_life.value()),
            uptake=float(self.uptake.value()),
            peak=float(self.peak.value()),
            frequency=self.frequency.currentText(),
            metabolite_half_life=float(self.metabolite_half_life.value()) if metabolite else None,
            metabolite_conversion_fraction=float(self.fm.value()) if metabolite else None,
        )

    def _checked_regimen(self):
        rx = self.current_regimen()
        result = validate_regimen(rx)
        if not result.valid:
            self.validationFailed.emit(result)
            return None, result
        return rx, result

    def _add_current(self):
        rx, _ = self._checked_regimen()
        if rx is None:
            return
        self._add_regimen(rx)

    def _add_regimen(self, rx: DosingRegimen):
        self._regimens.append(rx)
        self.regimen_list.addItem(dataset_label(rx))

    def _clear_regimens(self):
        self._regimens = []
        self.regimen_list.clear()

    def _import_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Import regimens", "", "JSON files (*.json)")
        if path:
            self.import_regimens(path)

    def import_regimens(self, path: str):
        """Add every valid regimen from a JSON export to the comparison list."""
        try:
            with open(path, encoding="utf-8") as fh:
                regimens = regimens_from_payload(json.load(fh))
        except (OSError, ValueError) as e:
            logger.warning("Import from %s failed: %s", path, e)
            self.importFailed.emit(f"Import failed: {e}")
            return
        skipped = []
        for rx in regimens:
            result = validate_regimen(rx)
            if result.valid:
                self._add_regimen(rx)
            else:
                skipped.append(f"{rx.name}: " + "; ".join(result.errors))
        if skipped:
            self.importFailed.emit("Skipped invalid regimen(s): " + " | ".join(skipped))

    def _emit_request(self):
        if self._regimens:
            regimens = list(self._regimens)
            warnings = regimen_warnings(regimens)
        else:
            rx, result = self._checked_regimen()
            if rx is None:
                return
            regimens, warnings = [rx], result.warnings
        req = SimulateRequest(regimens=regimens, start_h=0.0,
                              end_h=float(self.window_h.value()), warnings=warnings)
        self.simulateRequested.emit(req)
