"""
Frame Pipeline Module
- Owns the capture and writer for one run
- A single background worker pulls frames at a fixed cadence (~30 fps),
  scrambles them with the current key and feeds the display and the writer
- stop() is idempotent and safe to call from any thread, including the worker
"""

import functools
import logging
import threading
import time
from enum import Enum

from vidscramble import config, frame_transform, permutation, video_io
from vidscramble.errors import (DecodeReadError, FrameGeometryError,
                                PipelineBusyError, SinkOpenError, SinkWriteError)
from vidscramble.frame_transform import Direction

log = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    STOPPING = 'stopping'


def _call_inline(callback):
    callback()


class Pipeline:
    """
    Acquisition -> transform -> sink loop for one video at a time.

    Handles are only ever released by the worker thread, after its last tick,
    so stop() never pulls a capture or writer out from under a running tick.
    Callbacks (display, state changes, errors, completion) are handed to
    ``marshal`` so the caller can run them on its presentation thread.
    """

    def __init__(self, output_path: str = config.DEFAULT_OUTPUT,
                 key: int = config.DEFAULT_KEY,
                 direction: Direction = Direction.FORWARD,
                 display=None, marshal=None,
                 capture_factory=None, writer_factory=None,
                 interval: float = None,
                 on_state_change=None, on_finished=None, on_error=None,
                 max_read_errors: int = config.MAX_CONSECUTIVE_READ_ERRORS):
        self.output_path = output_path
        self.direction = direction
        self.interval = config.TICK_INTERVAL if interval is None else interval
        self.max_read_errors = max_read_errors

        self._display = display
        self._marshal = marshal or _call_inline
        self._capture_factory = capture_factory or video_io.open_capture
        self._writer_factory = writer_factory or video_io.open_writer
        self._on_state_change = on_state_change
        self._on_finished = on_finished
        self._on_error = on_error

        self._lock = threading.Lock()
        self._key = self._check_key(key)
        self._state = PipelineState.IDLE
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._done.set()
        self._worker = None

        # touched by the worker only while a run is active
        self._capture = None
        self._writer = None
        self._writer_geometry = None
        self._read_errors = 0

        self.input_path = None
        self.frames_read = 0
        self.frames_written = 0
        self.write_errors = 0

    # ── Shared fields ─────────────────────────────────────────────────────────

    @staticmethod
    def _check_key(key: int) -> int:
        if not permutation.INT64_MIN <= key <= permutation.INT64_MAX:
            raise ValueError(f"Key out of signed 64-bit range: {key}")
        return key

    @property
    def key(self) -> int:
        with self._lock:
            return self._key

    def set_key(self, key: int) -> None:
        """Takes effect on the next tick; frames already emitted are untouched."""
        key = self._check_key(key)
        with self._lock:
            self._key = key
        log.info("Key updated to: %d", key)

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, input_path: str) -> None:
        """
        Open the source and begin periodic frame pulls.

        Raises:
            SourceOpenError:   the input cannot be opened (state stays Idle).
            PipelineBusyError: a run is already active.
        """
        if self.state is not PipelineState.IDLE:
            raise PipelineBusyError("A run is already in progress.")

        capture = self._capture_factory(input_path)

        with self._lock:
            if self._state is not PipelineState.IDLE:
                capture.release()
                raise PipelineBusyError("A run is already in progress.")
            self.input_path = input_path
            self._capture = capture
            self._writer = None
            self._writer_geometry = None
            self._read_errors = 0
            self.frames_read = 0
            self.frames_written = 0
            self.write_errors = 0
            self._cancel.clear()
            done = threading.Event()
            self._done = done
            self._state = PipelineState.RUNNING
            self._worker = threading.Thread(target=self._run, args=(done,),
                                            name="frame-worker", daemon=True)
            worker = self._worker

        log.info("Processing %s -> %s (%s)", input_path, self.output_path,
                 self.direction.label)
        self._notify(self._on_state_change, PipelineState.RUNNING)
        worker.start()

    def stop(self) -> None:
        """
        Cancel the tick source and wait up to one interval for the current tick.

        Calling it again, or while already idle, does nothing.
        """
        with self._lock:
            if self._state is not PipelineState.RUNNING:
                return
            self._state = PipelineState.STOPPING
            worker = self._worker

        self._cancel.set()
        self._notify(self._on_state_change, PipelineState.STOPPING)
        if (worker is not None and worker.is_alive()
                and worker is not threading.current_thread()):
            worker.join(timeout=self.interval)

    def on_shutdown_requested(self) -> None:
        self.stop()

    def wait(self, timeout: float = None) -> bool:
        """
        Block until the run has torn down and its IDLE and finished callbacks
        have been handed to ``marshal``; False on timeout.
        """
        return self._done.wait(timeout)

    def run(self, input_path: str, timeout: float = None) -> int:
        """Start, block until the stream ends, return the frames written."""
        self.start(input_path)
        if not self.wait(timeout):
            self.stop()
            self.wait()
        return self.frames_written

    # ── Worker ────────────────────────────────────────────────────────────────

    def _run(self, done):
        next_tick = time.monotonic()
        try:
            while not self._cancel.is_set():
                self._tick()
                if self.interval <= 0:
                    continue
                next_tick += self.interval
                delay = next_tick - time.monotonic()
                if delay < 0:
                    # late tick: drop the backlog instead of bursting
                    next_tick = time.monotonic()
                    delay = 0
                if self._cancel.wait(delay):
                    break
        except Exception as e:
            log.exception("Frame worker failed")
            self._notify(self._on_error, e)
        finally:
            self._teardown(done)

    def _tick(self):
        key = self.key

        try:
            frame = video_io.read_frame(self._capture)
        except DecodeReadError as e:
            self._read_errors += 1
            log.warning("%s (%d in a row)", e, self._read_errors)
            if self._read_errors >= self.max_read_errors:
                log.error("Too many consecutive read errors, ending stream.")
                self._fail(e)
            return
        self._read_errors = 0

        if frame is None:
            log.info("End of video stream.")
            self.stop()
            return
        self.frames_read += 1

        geometry = self._geometry(frame)
        if self._writer is None:
            try:
                self._open_writer(frame)
            except SinkOpenError as e:
                log.error("%s", e)
                self._fail(e)
                return
        elif geometry != self._writer_geometry:
            self._fail(FrameGeometryError(
                f"Frame geometry {geometry} differs from output geometry "
                f"{self._writer_geometry}"))
            return

        processed = frame_transform.scramble_frame(frame, key, self.direction)

        if self._display is not None:
            self._notify(self._display, frame, processed)
        self._write(processed)

    def _open_writer(self, frame):
        size = video_io.frame_size(frame)
        is_color = frame.ndim == 3 and frame.shape[2] > 1
        self._writer = self._writer_factory(self.output_path, size, is_color)
        self._writer_geometry = self._geometry(frame)

    @staticmethod
    def _geometry(frame):
        """(width, height) plus any channel dimension."""
        return video_io.frame_size(frame) + tuple(frame.shape[2:])

    def _write(self, processed):
        if self._writer is None or not self._writer.isOpened():
            return
        try:
            video_io.write_frame(self._writer, processed)
        except SinkWriteError as e:
            self.write_errors += 1
            log.warning("Frame %d not written: %s", self.frames_read, e)
            return
        self.frames_written += 1

    def _fail(self, error):
        self._notify(self._on_error, error)
        self.stop()

    def _teardown(self, done):
        saved = False
        try:
            if self._capture is not None and self._capture.isOpened():
                try:
                    self._capture.release()
                except Exception:
                    log.exception("Failed to release capture for %s", self.input_path)
            if self._writer is not None and self._writer.isOpened():
                try:
                    self._writer.release()
                except Exception:
                    log.exception("Failed to finalize %s", self.output_path)
                else:
                    saved = True
                    log.info("Video saved to %s (%d frames)", self.output_path,
                             self.frames_written)
        finally:
            self._capture = None
            self._writer = None
            self._writer_geometry = None
            with self._lock:
                self._state = PipelineState.IDLE
                self._worker = None
            self._notify(self._on_state_change, PipelineState.IDLE)
            if saved:
                self._notify(self._on_finished, self.output_path, self.frames_written)
            # per-run event: a run started from a callback above gets its own
            done.set()

    # ── Presentation hand-off ─────────────────────────────────────────────────

    def _notify(self, callback, *args):
        """Best effort: a failing display or UI callback never stops the run."""
        if callback is None:
            return
        try:
            self._marshal(functools.partial(callback, *args))
        except Exception:
            log.warning("Presentation callback %r failed", callback, exc_info=True)
