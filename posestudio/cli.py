"""
Command-line interface for Pose Studio.
"""

import argparse
import random
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from posestudio.config import AppConfig
from posestudio.errors import PoseStudioError

console = Console()


def load_config(path):
    if path is None:
        return AppConfig()
    return AppConfig.from_yaml(path)


def print_report(report) -> None:
    """Print an evaluation report as a rich table."""
    table = Table(title="Evaluation")
    table.add_column("Label", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Recall", justify="right")

    for label, correct in report.per_label_correct.items():
        total = report.per_label_total.get(label, 0)
        table.add_row(label, str(correct), str(total), f"{report.recall(label) * 100:.1f}%")

    console.print(table)
    console.print(
        f"Got [bold]{report.correct}[/bold] correct answers out of {report.total} "
        f"(accuracy {report.accuracy * 100:.1f}%)"
    )


def cmd_train(args) -> int:
    from posestudio.core.dataset import load_datasets
    from posestudio.core.trainer import train_and_evaluate
    from posestudio.models.classifier import NeuralNetworkClassifier

    config = load_config(args.config)
    if args.epochs is not None:
        config.training.epochs = args.epochs
    if args.seed is not None:
        config.training.seed = args.seed
    if args.skip_boundary_row:
        config.training.skip_boundary_row = True

    dataset = load_datasets(args.datasets, config.detection.landmark_count)
    console.print(f"[cyan]Loaded {len(dataset)} samples from {len(args.datasets)} file(s)[/cyan]")

    classifier = NeuralNetworkClassifier(config.classifier)
    with console.status("Training..."):
        outcome = train_and_evaluate(
            dataset,
            classifier,
            config.training,
            labels=config.capture.labels,
            rng=random.Random(config.training.seed),
        )

    console.print(
        f"[green]✓[/green] Trained on {outcome.train_size} samples "
        f"(final loss {outcome.history.final_loss:.4f}), tested on {outcome.test_size}"
    )
    print_report(outcome.report)

    if args.save:
        classifier.save(args.save)
        console.print(f"[green]✓[/green] Saved classifier: {args.save}")
    return 0


def cmd_merge(args) -> int:
    from posestudio.core.dataset import load_datasets
    from posestudio.export.json_export import export_json

    config = load_config(args.config)
    dataset = load_datasets(args.datasets, config.detection.landmark_count)
    export_json(dataset, args.output)
    console.print(f"[green]✓[/green] Merged {len(dataset)} samples into {args.output}")
    return 0


def cmd_capture(args) -> int:
    from PySide6.QtCore import QCoreApplication

    from posestudio.capture.camera import CameraDevice
    from posestudio.core.controller import StudioController
    from posestudio.core.scheduler import QtScheduler
    from posestudio.core.session import CapturePhase
    from posestudio.models.classifier import NeuralNetworkClassifier
    from posestudio.models.pose_detector import MediaPipePoseDetector

    config = load_config(args.config)
    if args.camera is not None:
        config.capture.camera_index = args.camera

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    controller = StudioController(
        config,
        QtScheduler(app),
        CameraDevice.from_config(config.capture),
        MediaPipePoseDetector.from_config(config.detection),
        NeuralNetworkClassifier(config.classifier),
    )

    if not controller.start_device():
        console.print(f"[red]✗[/red] {controller.last_error}")
        controller.close()
        return 1

    armed = False

    def on_phase_changed(phase, label):
        if label:
            console.print(f"[cyan]{phase.value}[/cyan] {label}")
        # Finished or cancelled
        if phase == CapturePhase.IDLE and armed:
            app.quit()

    def on_finished(result):
        console.print(
            f"[green]✓[/green] Done recording for {result.label}: "
            f"{result.samples_added} samples from {result.frames_captured} frames"
        )

    controller.session.on_phase_changed = on_phase_changed
    controller.session.on_finished = on_finished

    armed = controller.select_label(args.label)
    if not armed:
        controller.close()
        return 1

    try:
        app.exec()
    finally:
        controller.close()

    path = controller.export(args.output)
    console.print(f"[green]✓[/green] Exported: {path}")
    return 0


def cmd_classify(args) -> int:
    import cv2

    from posestudio.core.dataset import flatten
    from posestudio.models.classifier import NeuralNetworkClassifier
    from posestudio.models.pose_detector import MediaPipePoseDetector
    from posestudio.vision.skeleton import draw_pose

    config = load_config(args.config)

    image = cv2.imread(str(args.image))
    if image is None:
        console.print(f"[red]✗[/red] Could not read image: {args.image}")
        return 1

    classifier = NeuralNetworkClassifier.load(args.model, config.classifier)
    with MediaPipePoseDetector.from_config(config.detection) as detector:
        landmarks = detector.detect(image)

    if landmarks is None:
        console.print("[yellow]No pose detected[/yellow]")
        return 1

    predictions = classifier.classify(flatten(landmarks))

    table = Table(title=str(args.image))
    table.add_column("Label", style="cyan")
    table.add_column("Confidence", justify="right")
    for prediction in predictions:
        table.add_row(prediction.label, f"{prediction.confidence:.3f}")
    console.print(table)

    if args.overlay:
        draw_pose(image, landmarks)
        cv2.imwrite(str(args.overlay), image)
        console.print(f"[green]✓[/green] Wrote overlay: {args.overlay}")
    return 0


def cmd_download_models(args) -> int:
    from posestudio.models.model_loader import download_models

    paths = download_models(args.models or None, model_dir=args.model_dir, force=args.force)
    return 0 if paths else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="posestudio",
        description="Pose Studio - webcam pose capture and classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Train and evaluate on recorded datasets
  posestudio train data/datasets/poseData3.json data/datasets/poseData4.json --save model.pt

  # Record one pose session from the webcam
  posestudio capture --label handsUp -o handsUp.json

  # Classify a still image
  posestudio classify photo.jpg --model model.pt

  # Download the pose landmarker
  posestudio download-models
        """,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file (YAML)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser("train", help="Train and evaluate a classifier")
    train.add_argument("datasets", nargs="+", type=Path, help="Dataset JSON files")
    train.add_argument("--epochs", type=int, help="Training epochs")
    train.add_argument("--seed", type=int, help="Shuffle seed")
    train.add_argument(
        "--skip-boundary-row",
        action="store_true",
        help="Leave out the first row after the split boundary",
    )
    train.add_argument("--save", type=Path, help="Save the trained classifier")
    train.set_defaults(func=cmd_train)

    merge = subparsers.add_parser("merge", help="Merge dataset files")
    merge.add_argument("datasets", nargs="+", type=Path, help="Dataset JSON files")
    merge.add_argument("-o", "--output", type=Path, required=True, help="Output JSON file")
    merge.set_defaults(func=cmd_merge)

    capture = subparsers.add_parser("capture", help="Record one capture session")
    capture.add_argument("--label", required=True, help="Pose label to record")
    capture.add_argument("-o", "--output", type=Path, required=True, help="Output JSON file")
    capture.add_argument("--camera", type=int, help="Camera index")
    capture.set_defaults(func=cmd_capture)

    classify = subparsers.add_parser("classify", help="Classify the pose in an image")
    classify.add_argument("image", type=Path, help="Input image")
    classify.add_argument("--model", type=Path, required=True, help="Saved classifier")
    classify.add_argument("--overlay", type=Path, help="Write the image with the skeleton drawn")
    classify.set_defaults(func=cmd_classify)

    download = subparsers.add_parser("download-models", help="Download pose landmarker models")
    download.add_argument("models", nargs="*", help="Model names (default: lite)")
    download.add_argument(
        "--model-dir",
        type=Path,
        default=Path("data/models"),
        help="Directory to store models",
    )
    download.add_argument("--force", action="store_true", help="Re-download existing models")
    download.set_defaults(func=cmd_download_models)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    from posestudio.log import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()

    try:
        return args.func(args)
    except (PoseStudioError, OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
