import json

import pytest

from conftest import FakeDetector, FakeFrameSource, NearestCentroidClassifier, make_landmarks, make_samples

from posestudio.core.controller import StudioController
from posestudio.core.dataset import Dataset
from posestudio.core.session import CapturePhase


@pytest.fixture
def controller(config, scheduler, source, detector, classifier):
    return StudioController(config, scheduler, source, detector, classifier)


def trained_classifier():
    classifier = NearestCentroidClassifier()
    for sample in make_samples([("handsUp", 0.0), ("eyesCovered", 1.0)]):
        classifier.add_training_row(sample.data, sample.label)
    classifier.train(None)
    return classifier


def test_start_device_failure_is_reported(config, scheduler, detector, classifier):
    controller = StudioController(
        config, scheduler, FakeFrameSource(fail_on_start=True), detector, classifier
    )
    errors = []
    controller.on_error = errors.append

    assert not controller.start_device()
    assert not controller.is_live
    assert "permission denied" in controller.last_error
    assert errors == [controller.last_error]

    assert not controller.select_label("handsUp")
    assert controller.session.phase == CapturePhase.IDLE


def test_capture_through_controller(controller, scheduler):
    assert controller.start_device()
    assert controller.select_label("handsUp")

    scheduler.advance(7000)
    assert len(controller.dataset) == 80


def test_stop_device_during_collection(controller, scheduler):
    controller.start_device()
    controller.select_label("handsUp")
    scheduler.advance(4000)

    controller.stop_device()

    assert controller.session.phase == CapturePhase.IDLE
    assert scheduler.pending == 0
    scheduler.advance(10000)
    assert len(controller.dataset) == 0


def test_test_shot_classifies_after_delay(config, scheduler, source, detector):
    controller = StudioController(config, scheduler, source, detector, trained_classifier())
    results = []
    controller.on_test_result = results.append
    controller.start_device()

    assert controller.schedule_test()
    scheduler.advance(1999)
    assert results == []

    scheduler.advance(1)
    assert len(results) == 1
    result = results[0]
    assert result.detected
    assert result.frame is not None
    assert [p.label for p in result.predictions][0] in ("handsUp", "eyesCovered")
    assert len(controller.classifier.classified[0]) == 99
    assert not controller.is_live


def test_test_shot_cancels_active_session(config, scheduler, source, detector):
    controller = StudioController(config, scheduler, source, detector, trained_classifier())
    results = []
    controller.on_test_result = results.append
    controller.start_device()

    controller.select_label("handsUp")
    scheduler.advance(3500)
    controller.schedule_test()

    assert controller.session.phase == CapturePhase.IDLE
    scheduler.advance(10000)
    assert len(results) == 1
    assert len(controller.dataset) == 0


def test_test_shot_without_pose(config, scheduler, source, classifier):
    detector = FakeDetector(hit=lambda i: False)
    controller = StudioController(config, scheduler, source, detector, classifier)
    results = []
    controller.on_test_result = results.append
    controller.start_device()

    controller.schedule_test()
    scheduler.advance(2000)

    assert not results[0].detected
    assert results[0].predictions == []
    assert controller.last_error is None


def test_test_shot_with_untrained_classifier(controller, scheduler):
    results = []
    controller.on_test_result = results.append
    controller.start_device()

    controller.schedule_test()
    scheduler.advance(2000)

    assert results[0].detected
    assert results[0].predictions == []
    assert "not been trained" in controller.last_error


def test_stop_device_cancels_test_shot(controller, scheduler):
    results = []
    controller.on_test_result = results.append
    controller.start_device()

    controller.schedule_test()
    controller.stop_device()
    scheduler.advance(5000)

    assert results == []


def test_schedule_test_requires_live_device(controller):
    assert not controller.schedule_test()


def test_export_defaults_to_training_data_json(controller, config):
    controller.dataset.extend(make_samples([("handsUp", 0.5)]))

    path = controller.export()

    assert path == config.export.output_dir / "trainingData.json"
    rows = json.loads(path.read_text())
    assert rows[0]["label"] == "handsUp"
    assert len(rows[0]["data"]) == 99


def test_train_and_install(config, scheduler, source, detector, classifier):
    rows = [("handsUp", 0.0), ("eyesCovered", 1.0)] * 10
    dataset = Dataset(make_samples(rows))
    controller = StudioController(config, scheduler, source, detector, classifier, dataset)

    outcome = controller.train()

    assert outcome.train_size == 16
    assert outcome.test_size == 4
    assert outcome.report.accuracy == 1.0
    assert set(outcome.report.per_label_correct) >= set(config.capture.labels)
    assert controller.last_outcome is outcome

    replacement = trained_classifier()
    controller.install_classifier(replacement)
    assert controller.classifier is replacement
    assert controller.last_outcome is outcome


def test_load_datasets_from_config(config, scheduler, source, detector, classifier, tmp_path):
    first = tmp_path / "poseData3.json"
    second = tmp_path / "poseData4.json"
    first.write_text(json.dumps([s.to_dict() for s in make_samples([("handsUp", 0.1)] * 3)]))
    second.write_text(json.dumps([s.to_dict() for s in make_samples([("eyesCovered", 0.9)] * 2)]))
    config.training.datasets = [first, second]

    controller = StudioController(config, scheduler, source, detector, classifier)

    assert controller.load_datasets() == 5
    assert [s.label for s in controller.dataset] == ["handsUp"] * 3 + ["eyesCovered"] * 2


def test_close_releases_everything(controller, detector):
    controller.start_device()
    controller.close()

    assert not controller.is_live
    assert detector.closed


def test_test_shot_with_wrong_landmark_count_is_reported(config, scheduler, source):
    detector = FakeDetector(landmarks=make_landmarks(count=17))
    controller = StudioController(config, scheduler, source, detector, trained_classifier())
    results = []
    errors = []
    controller.on_test_result = results.append
    controller.on_error = errors.append
    controller.start_device()

    controller.schedule_test()
    scheduler.advance(2000)

    assert len(results) == 1
    assert results[0].detected
    assert results[0].predictions == []
    assert "Rejected test shot" in controller.last_error
    assert errors == [controller.last_error]
    assert controller.classifier.classified == []
    assert not controller.is_live


class BrokenDetector(FakeDetector):
    def detect(self, frame):
        raise RuntimeError("model file is corrupt")


def test_capture_extraction_failure_reaches_controller(config, scheduler, source, classifier):
    controller = StudioController(config, scheduler, source, BrokenDetector(), classifier)
    errors = []
    controller.on_error = errors.append
    controller.start_device()

    controller.select_label("handsUp")
    scheduler.advance(7000)

    assert controller.session.phase == CapturePhase.IDLE
    assert "model file is corrupt" in controller.last_error
    assert errors == [controller.last_error]
    assert len(controller.dataset) == 0
