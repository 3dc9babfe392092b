import time

import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")

from vidscramble import video_io
from vidscramble.errors import SinkWriteError, SourceOpenError
from vidscramble.pipeline import Pipeline

from conftest import FakeCapture, make_frames


def _count_frames(path):
    cap = video_io.open_capture(path)
    count = 0
    try:
        while video_io.read_frame(cap) is not None:
            count += 1
    finally:
        cap.release()
    return count


def test_missing_input_raises_source_open_error(tmp_path):
    with pytest.raises(SourceOpenError):
        video_io.open_capture(str(tmp_path / "nope.mp4"))
    with pytest.raises(FileNotFoundError):
        video_io.open_capture(str(tmp_path / "nope.mp4"))


def test_frame_size_is_width_then_height():
    frame = np.zeros((48, 64, 3), dtype=np.uint8)
    assert video_io.frame_size(frame) == (64, 48)


def test_end_of_stream_detection():
    assert video_io.is_end_of_stream(None)
    assert video_io.is_end_of_stream(np.zeros((0, 0, 3), dtype=np.uint8))
    assert not video_io.is_end_of_stream(np.zeros((2, 2, 3), dtype=np.uint8))


def test_write_frame_wraps_codec_errors():
    class Exploding:
        def write(self, frame):
            raise cv2.error("encoder failed")

    with pytest.raises(SinkWriteError):
        video_io.write_frame(Exploding(), np.zeros((2, 2, 3), dtype=np.uint8))


def test_writer_round_trip_and_source_info(tmp_path):
    path = str(tmp_path / "nested" / "clip.avi")
    writer = video_io.open_writer(path, (64, 48))
    for frame in make_frames(5):
        video_io.write_frame(writer, frame)
    writer.release()

    info = video_io.probe(path)
    assert (info["width"], info["height"]) == (64, 48)
    assert _count_frames(path) == 5


def test_stop_mid_run_leaves_a_readable_file(tmp_path):
    path = str(tmp_path / "partial.avi")
    pipe = Pipeline(output_path=path, key=42, interval=0.005,
                    capture_factory=lambda p: FakeCapture(make_frames(500)))
    pipe.start("synthetic")

    deadline = time.monotonic() + 5
    while pipe.frames_written < 3 and time.monotonic() < deadline:
        time.sleep(0.005)
    pipe.stop()
    assert pipe.wait(5)

    assert 3 <= pipe.frames_written < 500
    assert _count_frames(path) == pipe.frames_written
