"""GUI components."""

from posestudio.gui.main_window import MainWindow
from posestudio.gui.training_worker import TrainingWorker

__all__ = ["MainWindow", "TrainingWorker"]
