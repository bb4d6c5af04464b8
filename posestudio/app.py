"""
Main application entry point for Pose Studio.
"""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox

from posestudio import __version__
from posestudio.capture.camera import CameraDevice
from posestudio.config import AppConfig
from posestudio.core.controller import StudioController
from posestudio.core.scheduler import QtScheduler
from posestudio.gui.main_window import MainWindow
from posestudio.log import setup_logging
from posestudio.models.classifier import NeuralNetworkClassifier
from posestudio.models.model_loader import ModelLoader
from posestudio.models.pose_detector import MediaPipePoseDetector


def load_config(path: Path = Path("config.yaml")) -> AppConfig:
    """Load ``config.yaml`` if present, otherwise the defaults."""
    logger = logging.getLogger(__name__)

    if path.exists():
        logger.info(f"Loading configuration from: {path}")
        config = AppConfig.from_yaml(path)
    else:
        logger.info("Using default configuration")
        config = AppConfig()

    for issue in config.validate():
        logger.warning(f"⚠ {issue}")
    return config


def check_and_download_models(config: AppConfig) -> bool:
    """
    Make sure the pose landmarker bundle is on disk, downloading it if needed.

    Returns:
        True if the model is ready, False otherwise
    """
    logger = logging.getLogger(__name__)

    if config.detection.model_path.exists():
        logger.info("✓ Pose model is available")
        return True

    logger.warning("⚠ Pose model not found")
    logger.info("Starting automatic model download...")

    loader = ModelLoader(config.detection.model_path.parent)
    try:
        config.detection.model_path = loader.download_model(config.detection.model_path.stem)
        logger.info("✓ Model download complete")
        return True

    except (OSError, ValueError) as e:
        logger.error(f"✗ Failed to download model: {e}")
        logger.error("The application cannot run without the pose model.")
        return False


def main():
    """Launch the pose studio application."""
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("="*60)
    logger.info(f"Pose Studio v{__version__}")
    logger.info("="*60)

    app = QApplication(sys.argv)
    app.setApplicationName("Pose Studio")
    app.setOrganizationName("Pose Studio Contributors")

    config = load_config()

    logger.info("Checking pose model...")
    if not check_and_download_models(config):
        msg = QMessageBox()
        msg.setIcon(QMessageBox.Icon.Critical)
        msg.setWindowTitle("Model Download Failed")
        msg.setText("Failed to download the pose landmarker model.")
        msg.setInformativeText(
            "Please check your internet connection and try again, or\n"
            "manually download the model using: posestudio download-models"
        )
        msg.setStandardButtons(QMessageBox.StandardButton.Ok)
        msg.exec()
        return 1

    controller = StudioController(
        config,
        QtScheduler(app),
        CameraDevice.from_config(config.capture),
        MediaPipePoseDetector.from_config(config.detection),
        NeuralNetworkClassifier(config.classifier),
    )

    if config.training.datasets:
        try:
            added = controller.load_datasets()
            logger.info(f"✓ Loaded {added} samples from {len(config.training.datasets)} dataset(s)")
        except (OSError, ValueError) as e:
            logger.error(f"✗ Failed to load training data: {e}")

    logger.info("Launching GUI...")
    window = MainWindow(controller)
    window.show()

    # Train on the bundled datasets right away
    if len(controller.dataset) > 0:
        window.start_training()

    logger.info("✓ Application ready")
    logger.info("="*60)

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
