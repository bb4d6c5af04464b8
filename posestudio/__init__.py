"""
Pose Studio

Webcam pose capture and classification for teaching gesture recognition.

Features:
- Timed capture sessions: countdown, 50 ms frame sampling, finalization
- 33-landmark body pose extraction with MediaPipe Pose Landmarker
- Flat (x, y, z) feature vectors tagged with a pose label
- Shuffled train/test split and a small dense neural network classifier
- Per-label evaluation report
- Export of the collected dataset to JSON

License: MIT
"""

__version__ = "1.0.0"
__author__ = "Pose Studio Contributors"

from pathlib import Path

# Package root
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent

# Default directories
DEFAULT_MODEL_DIR = PROJECT_ROOT / "data" / "models"
DEFAULT_DATASET_DIR = PROJECT_ROOT / "data" / "datasets"
DEFAULT_EXPORT_DIR = PROJECT_ROOT / "data" / "exports"

__all__ = [
    "__version__",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
    "DEFAULT_MODEL_DIR",
    "DEFAULT_DATASET_DIR",
    "DEFAULT_EXPORT_DIR",
]
