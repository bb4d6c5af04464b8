"""Model loading and inference modules."""

from posestudio.models.classifier import Classifier, NeuralNetworkClassifier, TrainingHistory
from posestudio.models.model_loader import ModelLoader, download_models
from posestudio.models.pose_detector import MediaPipePoseDetector, PoseDetector

__all__ = [
    "Classifier",
    "NeuralNetworkClassifier",
    "TrainingHistory",
    "ModelLoader",
    "download_models",
    "MediaPipePoseDetector",
    "PoseDetector",
]
