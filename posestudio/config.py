"""
Configuration system for Pose Studio.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional

import yaml


@dataclass
class DetectionConfig:
    """Pose landmarker configuration."""

    model_path: Path = field(
        default_factory=lambda: Path("data/models/pose_landmarker_lite.task")
    )
    num_poses: int = 1
    min_pose_detection_confidence: float = 0.5
    min_pose_presence_confidence: float = 0.5
    landmark_count: int = 33
    delegate: Literal["cpu", "gpu"] = "cpu"


@dataclass
class CaptureConfig:
    """Capture session timing and camera configuration."""

    camera_index: int = 0
    width: int = 1280
    height: int = 720

    # Session phases (milliseconds)
    countdown_ms: int = 3000
    sample_interval_ms: int = 50
    collection_ms: int = 4000

    # Delay before the single test classification grabs a frame
    test_delay_ms: int = 2000

    labels: List[str] = field(
        default_factory=lambda: ["handsUp", "eyesCovered", "fakeSurprise"]
    )


@dataclass
class ClassifierConfig:
    """Neural network architecture."""

    hidden_units: List[int] = field(default_factory=lambda: [32, 8, 16])
    learning_rate: float = 0.15
    device: Literal["cpu", "cuda"] = "cpu"


@dataclass
class TrainingConfig:
    """Training and evaluation configuration."""

    epochs: int = 50
    batch_size: int = 32
    train_fraction: float = 0.8

    # Leave the row right after the split boundary out of both partitions (legacy split)
    skip_boundary_row: bool = False

    seed: Optional[int] = None

    # Datasets trained on at start-up
    datasets: List[Path] = field(default_factory=list)


@dataclass
class ExportConfig:
    """Export configuration."""

    output_dir: Path = field(default_factory=lambda: Path("data/exports"))
    filename: str = "trainingData.json"


@dataclass
class GUIConfig:
    """GUI configuration."""

    window_width: int = 1280
    window_height: int = 800
    preview_fps: int = 30


@dataclass
class AppConfig:
    """Main application configuration."""

    model_dir: Path = field(default_factory=lambda: Path("data/models"))

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    gui: GUIConfig = field(default_factory=GUIConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "model_dir" in data:
            config.model_dir = Path(data["model_dir"])

        if "detection" in data:
            config.detection = DetectionConfig(**data["detection"])
            config.detection.model_path = Path(config.detection.model_path)
        if "capture" in data:
            config.capture = CaptureConfig(**data["capture"])
        if "classifier" in data:
            config.classifier = ClassifierConfig(**data["classifier"])
        if "training" in data:
            config.training = TrainingConfig(**data["training"])
            config.training.datasets = [Path(p) for p in config.training.datasets]
        if "export" in data:
            config.export = ExportConfig(**data["export"])
            config.export.output_dir = Path(config.export.output_dir)
        if "gui" in data:
            config.gui = GUIConfig(**data["gui"])

        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""

        def to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {k: to_dict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, list):
                return [to_dict(v) for v in obj]
            return obj

        data = to_dict(self)

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings/errors."""
        issues = []

        if not self.detection.model_path.exists():
            issues.append(f"Pose model does not exist: {self.detection.model_path}")

        if not 0.0 < self.training.train_fraction < 1.0:
            issues.append(
                f"train_fraction must be between 0 and 1, got {self.training.train_fraction}"
            )

        if self.capture.sample_interval_ms <= 0:
            issues.append("sample_interval_ms must be positive")

        if self.capture.collection_ms < self.capture.sample_interval_ms:
            issues.append("collection_ms is shorter than one sampling interval")

        if len(set(self.capture.labels)) != len(self.capture.labels):
            issues.append("Duplicate pose labels in capture.labels")

        for dataset in self.training.datasets:
            if not dataset.exists():
                issues.append(f"Training dataset does not exist: {dataset}")

        if self.classifier.device == "cuda":
            import torch

            if not torch.cuda.is_available():
                issues.append("CUDA device specified but CUDA is not available")

        return issues
