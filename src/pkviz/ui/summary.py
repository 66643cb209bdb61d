# src/pkviz/ui/summary.py
from typing import Sequence

from PySide6.QtWidgets import QTreeWidget, QTreeWidgetItem

from pkengine.metrics import PkSummaryData, milestone_row

COLUMNS = ("Clock time", "Elapsed", "Milestone", "% of peak")


class SummaryTable(QTreeWidget):
    """Milestone timeline, one collapsible branch per regimen."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setColumnCount(len(COLUMNS))
        self.setHeaderLabels(list(COLUMNS))
        self.setRootIsDecorated(True)

    def show_summary(self, summaries: Sequence[PkSummaryData]):
        self.clear()
        for summary in summaries:
            branch = QTreeWidgetItem([summary.regimen_name])
            for event in summary.events:
                branch.addChild(QTreeWidgetItem(list(milestone_row(event))))
            self.addTopLevelItem(branch)
            branch.setExpanded(len(summaries) == 1)
        for col in range(len(COLUMNS)):
            self.resizeColumnToContents(col)
