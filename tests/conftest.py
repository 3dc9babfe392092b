import threading

import cv2
import numpy as np
import pytest

from vidscramble.errors import DecodeReadError, SinkWriteError


def make_frames(count=10, height=48, width=64, channels=3, seed=0):
    rng = np.random.default_rng(seed)
    shape = (height, width, channels) if channels else (height, width)
    return [rng.integers(0, 256, size=shape, dtype=np.uint8) for _ in range(count)]


class FakeCapture:
    """In-memory stand-in for cv2.VideoCapture."""

    def __init__(self, frames, fail_reads=(), gate=None):
        self._frames = list(frames)
        self._fail_reads = set(fail_reads)
        self._gate = gate
        self.reads = 0
        self.release_count = 0
        self.reads_after_release = 0
        self.tick_started = threading.Event()

    def isOpened(self):
        return self.release_count == 0

    def read(self):
        call = self.reads
        self.reads += 1
        if self.release_count:
            self.reads_after_release += 1
        self.tick_started.set()
        if self._gate is not None:
            self._gate.wait(5)
        if call in self._fail_reads:
            raise DecodeReadError(f"corrupt packet at read {call}")
        if not self._frames:
            return False, None
        return True, self._frames.pop(0)

    def get(self, prop):
        if not self._frames:
            return 0.0
        height, width = self._frames[0].shape[:2]
        return {
            cv2.CAP_PROP_FPS: 25.0,
            cv2.CAP_PROP_FRAME_COUNT: float(len(self._frames)),
            cv2.CAP_PROP_FRAME_WIDTH: float(width),
            cv2.CAP_PROP_FRAME_HEIGHT: float(height),
        }.get(prop, 0.0)

    def release(self):
        self.release_count += 1


class FakeWriter:
    def __init__(self, path, size, is_color=True, fail_writes=()):
        self.path = path
        self.size = size
        self.is_color = is_color
        self.frames = []
        self.writes = 0
        self.release_count = 0
        self.writes_after_release = 0
        self._fail_writes = set(fail_writes)

    def isOpened(self):
        return self.release_count == 0

    def write(self, frame):
        call = self.writes
        self.writes += 1
        if self.release_count:
            self.writes_after_release += 1
        if call in self._fail_writes:
            raise SinkWriteError(f"disk full at write {call}")
        self.frames.append(frame.copy())

    def release(self):
        self.release_count += 1


class WriterFactory:
    def __init__(self, **writer_kwargs):
        self.writers = []
        self._kwargs = writer_kwargs

    def __call__(self, path, size, is_color=True):
        writer = FakeWriter(path, size, is_color, **self._kwargs)
        self.writers.append(writer)
        return writer

    @property
    def last(self):
        return self.writers[-1]


@pytest.fixture
def frames():
    return make_frames()


@pytest.fixture
def writer_factory():
    return WriterFactory()
