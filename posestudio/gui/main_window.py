from __future__ import annotations

from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from posestudio.core.controller import StudioController, TestResult
from posestudio.core.session import CapturePhase, SessionResult
from posestudio.core.trainer import TrainingOutcome
from posestudio.gui.training_worker import TrainingWorker
from posestudio.vision.skeleton import draw_pose

PHASE_TEXT = {
    CapturePhase.IDLE: "Idle",
    CapturePhase.ARMED_COUNTDOWN: "Prepare to pose: {label}",
    CapturePhase.COLLECTING: "Collecting: {label}",
    CapturePhase.FINALIZING: "Extracting poses: {label}",
}


class MainWindow(QMainWindow):
    def __init__(self, controller: StudioController) -> None:
        super().__init__()
        self.controller = controller
        config = controller.config

        self.setWindowTitle("Pose Studio")
        self.resize(config.gui.window_width, config.gui.window_height)
        self.setStyleSheet(
            "QWidget { background-color: #0f1115; color: #e6e6e6; }"
            "QGroupBox { border: 1px solid #2a2f3a; margin-top: 12px; padding: 12px; }"
            "QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }"
            "QPushButton { background-color: #2a2f3a; border: 1px solid #3a3f4a; padding: 6px 12px; }"
            "QPushButton:disabled { color: #666; }"
        )

        self.video_label = QLabel("Start the webcam to see the preview")
        self.video_label.setAlignment(Qt.AlignCenter)
        self.video_label.setMinimumSize(800, 600)
        self.video_label.setStyleSheet("background-color: #0b0d10; color: #8c93a3; padding: 12px;")

        self.phase_label = QLabel(PHASE_TEXT[CapturePhase.IDLE])
        self.samples_label = QLabel("Samples: 0")
        self.result_label = QLabel("")
        self.result_label.setWordWrap(True)

        self.start_button = QPushButton("Start Webcam")
        self.stop_button = QPushButton("Stop Webcam")
        self.test_button = QPushButton("Test Detection")
        self.save_button = QPushButton("Save Data")
        self.train_button = QPushButton("Train")

        webcam_group = QGroupBox("Webcam")
        webcam_layout = QVBoxLayout()
        for button in (self.start_button, self.stop_button, self.test_button):
            webcam_layout.addWidget(button)
        webcam_group.setLayout(webcam_layout)

        pose_group = QGroupBox("Record Pose")
        pose_layout = QVBoxLayout()
        self.pose_buttons = []
        for label in controller.labels:
            button = QPushButton(label)
            button.clicked.connect(lambda _checked=False, name=label: self.select_pose(name))
            pose_layout.addWidget(button)
            self.pose_buttons.append(button)
        pose_group.setLayout(pose_layout)

        data_group = QGroupBox("Data")
        data_layout = QVBoxLayout()
        data_layout.addWidget(self.samples_label)
        data_layout.addWidget(self.save_button)
        data_layout.addWidget(self.train_button)
        data_layout.addWidget(self.result_label)
        data_group.setLayout(data_layout)

        side = QVBoxLayout()
        side.addWidget(self.phase_label)
        side.addWidget(webcam_group)
        side.addWidget(pose_group)
        side.addWidget(data_group)
        side.addStretch()
        side_widget = QWidget()
        side_widget.setLayout(side)

        main_layout = QHBoxLayout()
        main_layout.addWidget(self.video_label, stretch=3)
        main_layout.addWidget(side_widget, stretch=1)

        container = QWidget()
        container.setLayout(main_layout)
        self.setCentralWidget(container)
        self.setStatusBar(QStatusBar())

        self.preview_timer = QTimer(self)
        self.preview_timer.setInterval(max(1, 1000 // max(1, config.gui.preview_fps)))
        self.preview_timer.timeout.connect(self.update_preview)

        self.worker: Optional[TrainingWorker] = None

        self.start_button.clicked.connect(self.start_webcam)
        self.stop_button.clicked.connect(self.stop_webcam)
        self.test_button.clicked.connect(self.test_detection)
        self.save_button.clicked.connect(self.save_data)
        self.train_button.clicked.connect(self.start_training)

        controller.session.on_phase_changed = self.on_phase_changed
        controller.session.on_finished = self.on_session_finished
        controller.on_test_result = self.show_test_result
        controller.on_error = self.report_error

        self.update_buttons()

    def update_buttons(self) -> None:
        live = self.controller.is_live
        self.start_button.setEnabled(not live)
        self.stop_button.setEnabled(live)
        self.test_button.setEnabled(live)
        for button in self.pose_buttons:
            button.setEnabled(live)
        self.train_button.setEnabled(self.worker is None and len(self.controller.dataset) > 0)
        self.samples_label.setText(f"Samples: {len(self.controller.dataset)}")

    def start_webcam(self) -> None:
        if not self.controller.start_device():
            self.update_buttons()
            return
        self.preview_timer.start()
        self.statusBar().showMessage("Webcam running")
        self.update_buttons()

    def stop_webcam(self) -> None:
        self.preview_timer.stop()
        self.controller.stop_device()
        self.statusBar().showMessage("Webcam stopped")
        self.update_buttons()

    def update_preview(self) -> None:
        if not self.controller.is_live:
            self.preview_timer.stop()
            self.update_buttons()
            return
        frame = self.controller.source.read()
        if frame is not None:
            self.show_frame(frame)

    def show_frame(self, frame: np.ndarray) -> None:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, _ = rgb.shape
        image = QImage(rgb.data, w, h, w * 3, QImage.Format_RGB888)
        pixmap = QPixmap.fromImage(image).scaled(
            self.video_label.width(),
            self.video_label.height(),
            Qt.KeepAspectRatio,
            Qt.SmoothTransformation,
        )
        self.video_label.setPixmap(pixmap)

    def select_pose(self, label: str) -> None:
        if self.controller.select_label(label):
            self.result_label.setText("")

    def on_phase_changed(self, phase: CapturePhase, label: Optional[str]) -> None:
        self.phase_label.setText(PHASE_TEXT[phase].format(label=label))

    def on_session_finished(self, result: SessionResult) -> None:
        self.statusBar().showMessage(
            f"Done recording for {result.label}: {result.samples_added} samples "
            f"({result.frames_skipped} frames without a pose)"
        )
        self.update_buttons()

    def test_detection(self) -> None:
        if self.controller.schedule_test():
            delay = self.controller.config.capture.test_delay_ms / 1000
            self.statusBar().showMessage(f"Test shot in {delay:.0f} seconds...")

    def show_test_result(self, result: TestResult) -> None:
        self.preview_timer.stop()
        if result.frame is not None:
            frame = result.frame.copy()
            if result.landmarks is not None:
                draw_pose(frame, result.landmarks)
            self.show_frame(frame)

        if result.top is not None:
            ranked = ", ".join(f"{p.label} {p.confidence:.2f}" for p in result.predictions)
            self.result_label.setText(f"Prediction: {ranked}")
            self.statusBar().showMessage(f"This looks like {result.top.label}")
        elif result.frame is not None and not result.detected:
            self.statusBar().showMessage("No pose detected")
        self.update_buttons()

    def save_data(self) -> None:
        default = self.controller.config.export.output_dir / self.controller.config.export.filename
        path, _ = QFileDialog.getSaveFileName(
            self,
            "Save Training Data",
            str(default),
            "JSON Files (*.json)",
        )
        if path:
            written = self.controller.export(Path(path))
            self.statusBar().showMessage(f"Saved {len(self.controller.dataset)} samples to {written}")

    def start_training(self) -> None:
        if self.worker is not None or len(self.controller.dataset) == 0:
            return
        self.worker = TrainingWorker(
            self.controller.config, self.controller.dataset, self.controller.labels
        )
        self.worker.finished_training.connect(self.on_training_finished)
        self.worker.error.connect(self.on_training_error)
        self.worker.start()
        self.statusBar().showMessage(
            f"Training on {len(self.controller.dataset)} samples..."
        )
        self.update_buttons()

    def on_training_finished(self, classifier, outcome: TrainingOutcome) -> None:
        self.worker = None
        self.controller.install_classifier(classifier, outcome)
        report = outcome.report
        counts = ", ".join(f"{label}: {n}" for label, n in report.per_label_correct.items())
        self.result_label.setText(
            f"{report.correct}/{report.total} correct ({report.accuracy * 100:.1f}%)\n{counts}"
        )
        self.statusBar().showMessage("Finished training")
        self.update_buttons()

    def on_training_error(self, message: str) -> None:
        self.worker = None
        self.report_error(f"Training failed: {message}")
        self.update_buttons()

    def report_error(self, message: str) -> None:
        self.statusBar().showMessage(message)

    def closeEvent(self, event) -> None:
        self.preview_timer.stop()
        if self.worker is not None:
            self.worker.wait(5000)
        self.controller.close()
        super().closeEvent(event)
