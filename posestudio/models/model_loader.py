"""
Model loader for downloading the MediaPipe Pose Landmarker bundles.

Models are published by Google under the Apache 2.0 license.
"""

from pathlib import Path
from typing import Dict, List, Optional
from urllib.request import urlretrieve

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

console = Console()

_BASE_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker"

# Model registry with download URLs
MODEL_REGISTRY = {
    "pose_landmarker_lite": {
        "url": f"{_BASE_URL}/pose_landmarker_lite/float16/1/pose_landmarker_lite.task",
        "num_landmarks": 33,
    },
    "pose_landmarker_full": {
        "url": f"{_BASE_URL}/pose_landmarker_full/float16/1/pose_landmarker_full.task",
        "num_landmarks": 33,
    },
    "pose_landmarker_heavy": {
        "url": f"{_BASE_URL}/pose_landmarker_heavy/float16/1/pose_landmarker_heavy.task",
        "num_landmarks": 33,
    },
}

DEFAULT_MODELS = ["pose_landmarker_lite"]


class ModelLoader:
    """Handles model downloading and caching."""

    def __init__(self, model_dir: Path):
        self.model_dir = Path(model_dir)

    def get_model_path(self, model_name: str) -> Path:
        """Get the local path for a model."""
        if model_name not in MODEL_REGISTRY:
            raise ValueError(f"Unknown model: {model_name}. Available: {list(MODEL_REGISTRY.keys())}")

        filename = Path(MODEL_REGISTRY[model_name]["url"]).name
        return self.model_dir / filename

    def is_downloaded(self, model_name: str) -> bool:
        """Check if a model is already downloaded."""
        return self.get_model_path(model_name).exists()

    def check_all_models(self, model_names: Optional[List[str]] = None) -> bool:
        return all(self.is_downloaded(name) for name in model_names or DEFAULT_MODELS)

    def download_model(self, model_name: str, force: bool = False) -> Path:
        """Download a model if not already cached."""
        model_path = self.get_model_path(model_name)

        if model_path.exists() and not force:
            console.print(f"[green]✓[/green] Model already downloaded: {model_name}")
            return model_path

        url = MODEL_REGISTRY[model_name]["url"]
        console.print(f"[cyan]Downloading {model_name}...[/cyan]")

        model_path.parent.mkdir(parents=True, exist_ok=True)
        partial_path = model_path.with_suffix(model_path.suffix + ".part")

        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
        ) as progress:
            task = progress.add_task(f"Downloading {model_name}", total=None)

            def reporthook(block_num, block_size, total_size):
                if total_size > 0:
                    progress.update(task, total=total_size, completed=block_num * block_size)

            urlretrieve(url, partial_path, reporthook=reporthook)

        partial_path.replace(model_path)
        console.print(f"[green]✓[/green] Downloaded: {model_path}")
        return model_path

    def list_available_models(self) -> Dict[str, Dict]:
        return MODEL_REGISTRY.copy()


def download_models(
    model_names: Optional[List[str]] = None,
    model_dir: Path = Path("data/models"),
    force: bool = False,
) -> Dict[str, Path]:
    """
    Download specified models or the default pose landmarker.

    Args:
        model_names: Model names to download. If None, downloads the default set.
        model_dir: Directory to store models
        force: Re-download even if the file exists

    Returns:
        Mapping of model name to local path for every successful download
    """
    loader = ModelLoader(model_dir)
    model_names = model_names or DEFAULT_MODELS

    console.print(f"[bold cyan]Downloading {len(model_names)} model(s)...[/bold cyan]")

    paths: Dict[str, Path] = {}
    for model_name in model_names:
        try:
            paths[model_name] = loader.download_model(model_name, force=force)
        except Exception as e:
            console.print(f"[red]✗[/red] Failed to download {model_name}: {e}")

    if len(paths) == len(model_names):
        console.print("[bold green]✓ All models downloaded successfully![/bold green]")
    return paths
