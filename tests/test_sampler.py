"""
Tests for the fixed-cadence frame sampler.
"""

import asyncio

import pytest

from observation.base import MediaUnavailableError
from runtime.sampler import FrameSampler

from conftest import FakeSource, make_frame, wait_for


def _open_source(**kwargs) -> FakeSource:
    source = FakeSource(**kwargs)
    source.open()
    return source


class TestFrames:
    def test_yields_frames_until_stopped(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source(frames=[make_frame(50), make_frame(60)])

        async def run():
            seen = []
            async for frame in sampler.frames(source):
                seen.append(frame)
                if len(seen) == 3:
                    sampler.stop()
            return seen

        seen = asyncio.run(run())
        assert len(seen) == 3
        assert [f.frame_index for f in seen] == [1, 2, 3]
        assert sampler.tick_count == 3

    def test_pixel_less_source_yields_none(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source(has_pixels=False)

        async def run():
            seen = []
            async for frame in sampler.frames(source):
                seen.append(frame)
                if len(seen) == 2:
                    sampler.stop()
            return seen

        assert asyncio.run(run()) == [None, None]

    def test_missing_frame_raises(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()
        source.fail_reads = True

        async def run():
            async for _ in sampler.frames(source):
                pass

        with pytest.raises(MediaUnavailableError):
            asyncio.run(run())

    def test_sequence_created_before_stop_is_finite(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()

        async def run():
            frames = sampler.frames(source)
            sampler.stop()
            return [f async for f in frames]

        assert asyncio.run(run()) == []


class TestStartStop:
    def test_ticks_until_stopped(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()
        ticks = []

        async def on_tick(frame):
            ticks.append(frame)

        async def run():
            sampler.start(source, on_tick)
            await wait_for(lambda: len(ticks) >= 3)
            sampler.stop()
            count = len(ticks)
            await asyncio.sleep(0.02)
            return count

        count = asyncio.run(run())
        assert len(ticks) == count
        assert sampler.is_running is False

    def test_restart_begins_at_tick_zero(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()

        counts = []

        async def on_tick(frame):
            counts.append(sampler.tick_count)

        async def run():
            sampler.start(source, on_tick)
            await wait_for(lambda: len(counts) >= 3)
            sampler.stop()
            counts.clear()
            sampler.start(source, on_tick)
            await wait_for(lambda: len(counts) >= 2)
            sampler.stop()

        asyncio.run(run())
        assert counts[:2] == [1, 2]

    def test_settle_delay_before_first_tick(self):
        sampler = FrameSampler("test", cadence_s=0.001, settle_delay_s=0.05)
        source = _open_source()
        ticks = []

        async def on_tick(frame):
            ticks.append(frame)

        async def run():
            sampler.start(source, on_tick)
            await asyncio.sleep(0.01)
            early = len(ticks)
            await wait_for(lambda: len(ticks) >= 1)
            sampler.stop()
            return early

        assert asyncio.run(run()) == 0

    def test_error_handler_called_and_loop_ends(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()
        errors = []

        async def on_tick(frame):
            source.fail_reads = True

        async def on_error(error):
            errors.append(error)

        async def run():
            task = sampler.start(source, on_tick, on_error)
            await asyncio.wait_for(task, timeout=2.0)

        asyncio.run(run())
        assert len(errors) == 1
        assert isinstance(errors[0], MediaUnavailableError)
        assert sampler.is_running is False

    def test_stop_inside_tick_lets_handler_finish(self):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()
        finished = []

        async def on_tick(frame):
            sampler.stop()
            await asyncio.sleep(0)
            finished.append(frame)

        async def run():
            task = sampler.start(source, on_tick)
            await asyncio.wait_for(task, timeout=2.0)

        asyncio.run(run())
        assert len(finished) == 1

    def test_ticks_do_not_overlap(self):
        sampler = FrameSampler("test", cadence_s=0.0)
        source = _open_source()
        active = []
        overlaps = []

        async def on_tick(frame):
            if active:
                overlaps.append(frame)
            active.append(frame)
            await asyncio.sleep(0.005)
            active.pop()

        async def run():
            sampler.start(source, on_tick)
            await wait_for(lambda: sampler.tick_count >= 4)
            sampler.stop()

        asyncio.run(run())
        assert overlaps == []

    def test_unexpected_tick_error_is_logged_and_loop_ends(self, caplog):
        sampler = FrameSampler("test", cadence_s=0.001)
        source = _open_source()
        errors = []

        async def on_tick(frame):
            raise ValueError("bad tick")

        async def on_error(error):
            errors.append(error)

        async def run():
            task = sampler.start(source, on_tick, on_error)
            await asyncio.wait_for(task, timeout=2.0)
            return task

        with caplog.at_level("ERROR"):
            task = asyncio.run(run())

        assert task.exception() is None
        assert errors == []
        assert sampler.is_running is False
        assert any("unexpected error" in r.getMessage() for r in caplog.records)
