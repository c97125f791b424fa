"""Tests for Runner."""

import asyncio
import threading
import time

import pytest

from scenecue import FrameScheduler, LoggingPresentation, PlayerConfig, Runner, RunState, TimelinePlayer

from conftest import add_keyframe, add_timeline


def counting_scheduler():
    scheduler = FrameScheduler()
    frames: list[float] = []
    scheduler.on_frame(lambda now, dt: frames.append(dt))
    return scheduler, frames


# --- play_sync ---


class TestPlaySync:
    def test_steps_until_duration(self) -> None:
        scheduler, frames = counting_scheduler()
        runner = Runner(scheduler, fps=40.0)
        runner.play_sync(0.05)
        assert len(frames) >= 1
        assert scheduler.now == pytest.approx(0.05)
        assert runner.elapsed == pytest.approx(0.05)

    def test_zero_duration_renders_one_frame(self) -> None:
        scheduler, frames = counting_scheduler()
        Runner(scheduler, fps=40.0).play_sync(0.0)
        assert len(frames) == 1

    def test_timers_fire_in_real_time(self) -> None:
        scheduler = FrameScheduler()
        fired = threading.Event()
        scheduler.delay(0.05, fired.set)
        Runner(scheduler, fps=60.0).play_sync(0.1)
        assert fired.is_set()

    def test_frame_errors_do_not_stop_loop(self) -> None:
        scheduler, frames = counting_scheduler()
        scheduler.on_frame(lambda now, dt: 1 / 0)
        Runner(scheduler, fps=40.0).play_sync(0.05)
        assert len(frames) >= 2


# --- stop / wait ---


class TestStop:
    def test_stop_halts_unbounded_play(self) -> None:
        scheduler, frames = counting_scheduler()
        runner = Runner(scheduler, fps=40.0)
        runner.play()
        time.sleep(0.1)
        runner.stop()
        runner.wait()
        count = len(frames)
        time.sleep(0.05)
        assert len(frames) == count
        assert runner.state == "stopped"

    def test_stop_safe_when_idle(self) -> None:
        runner = Runner(FrameScheduler())
        runner.stop()  # Should not raise

    def test_state_while_playing(self) -> None:
        runner = Runner(FrameScheduler(), fps=40.0)
        runner.play()
        try:
            assert runner.state == "playing"
            assert runner.is_running
        finally:
            runner.stop()

    def test_owns_scheduler_while_playing(self) -> None:
        scheduler = FrameScheduler()
        runner = Runner(scheduler, fps=40.0)
        runner.play()
        try:
            assert scheduler.driven_elsewhere
        finally:
            runner.stop()
        assert scheduler.owner is None
        assert not scheduler.driven_elsewhere

    def test_play_replaces_previous_playback(self) -> None:
        scheduler, _ = counting_scheduler()
        runner = Runner(scheduler, fps=40.0)
        runner.play()
        time.sleep(0.05)
        runner.play(0.05)
        runner.wait()
        assert runner.elapsed == pytest.approx(0.05)


# --- config ---


class TestFromConfig:
    def test_uses_config_fps(self) -> None:
        runner = Runner.from_config(FrameScheduler(), PlayerConfig(fps=24.0))
        assert runner.fps == 24.0


# --- host input ---


class TestHostInput:
    def test_button_press_from_main_thread(self, scene, timelines) -> None:
        scheduler = FrameScheduler()
        presentation = LoggingPresentation()
        player = TimelinePlayer(scene, scheduler, presentation=presentation)
        tl = add_timeline(timelines, "Door", Trigger_Button=1)
        add_keyframe(tl, "kf", "Alert", 0.0, Message="open")
        player.start()
        completed = threading.Event()
        player.state_changed.connect(lambda run, state: state is RunState.COMPLETED and completed.set())

        runner = Runner(scheduler, fps=60.0)
        runner.play()
        try:
            runs = player.press_button(None, 1)
            assert completed.wait(timeout=2.0)
        finally:
            runner.stop()
        assert player.runs == runs
        assert [args[0] for hook, args in presentation.calls if hook == "alert"] == ["open"]


# --- timing ---


class TestTimingDrift:
    def test_total_elapsed_within_tolerance(self) -> None:
        runner = Runner(FrameScheduler(), fps=40.0)
        start = time.monotonic()
        runner.play(0.2)
        runner.wait()
        elapsed = time.monotonic() - start
        # Allow up to 100ms overhead for timer scheduling
        assert elapsed < 0.2 + 0.1


# --- async ---


class TestRunAsync:
    def test_run_async_advances_scheduler(self) -> None:
        scheduler, frames = counting_scheduler()
        runner = Runner(scheduler, fps=40.0)
        asyncio.run(runner.run_async(0.05))
        assert scheduler.now == pytest.approx(0.05)
        assert len(frames) >= 2
