import pytest
from PySide6.QtCore import QCoreApplication, Qt, QTimer

from conftest import ManualScheduler

from posestudio.core.scheduler import QtScheduler, TimerGroup


@pytest.fixture(scope="module")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


def run_loop(app, ms=200):
    QTimer.singleShot(ms, app.quit)
    app.exec()


def test_cancelled_timer_never_fires(qapp):
    scheduler = QtScheduler()
    fired = []

    cancelled = scheduler.call_later(20, lambda: fired.append("cancelled"))
    kept = scheduler.call_later(20, lambda: fired.append("kept"))
    cancelled.cancel()
    assert not cancelled.active
    assert kept.active

    run_loop(qapp)

    assert fired == ["kept"]
    assert not kept.active
    assert scheduler.pending == 0


def test_repeating_timer_stops_when_cancelled(qapp):
    scheduler = QtScheduler()
    ticks = []
    handle = scheduler.call_every(10, lambda: ticks.append(1))

    run_loop(qapp, 100)
    handle.cancel()
    count = len(ticks)
    assert count >= 2

    run_loop(qapp, 100)
    assert len(ticks) == count
    assert scheduler.pending == 0


def test_timers_are_precise(qapp):
    scheduler = QtScheduler()
    handle = scheduler.call_later(1000, lambda: None)
    assert handle._timer.timerType() == Qt.PreciseTimer
    handle.cancel()


def test_cancel_in_callback_stops_sibling(qapp):
    scheduler = QtScheduler()
    group = TimerGroup(scheduler)
    fired = []

    def first():
        fired.append("first")
        group.cancel_all()

    group.call_later(10, first)
    group.call_later(60, lambda: fired.append("second"))

    run_loop(qapp)

    assert fired == ["first"]
    assert group.pending == 0


def test_timer_group_cancel_all():
    scheduler = ManualScheduler()
    group = TimerGroup(scheduler)
    fired = []

    group.call_later(100, lambda: fired.append("once"))
    group.call_every(10, lambda: fired.append("tick"))
    assert group.pending == 2

    scheduler.advance(25)
    group.cancel_all()
    scheduler.advance(1000)

    assert fired == ["tick", "tick"]
    assert group.pending == 0
    assert scheduler.pending == 0
