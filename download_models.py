#!/usr/bin/env python3
"""
Download the MediaPipe Pose Landmarker model used for pose extraction.

The model is published by Google under the Apache 2.0 license.
"""

from pathlib import Path

from posestudio.models.model_loader import DEFAULT_MODELS, download_models


def main():
    """Download the default pose landmarker."""
    print("=" * 60)
    print("Pose Studio - Model Downloader")
    print("=" * 60)
    print()

    paths = download_models(DEFAULT_MODELS, model_dir=Path("data/models"))

    if len(paths) != len(DEFAULT_MODELS):
        print()
        print("✗ Error downloading models")
        print("Check your internet connection and try again.")
        return 1

    print()
    print("Downloaded models:")
    for name, path in paths.items():
        print(f"  • {name}: {path}")

    print()
    print("You can now run the application:")
    print("  python run.py")
    print()
    return 0


if __name__ == "__main__":
    exit(main())
