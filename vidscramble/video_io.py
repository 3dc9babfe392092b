"""
Video I/O Module
- Thin OpenCV services for the pipeline: open a capture, open a writer
- Writer geometry comes from the first frame; codec and rate are fixed
"""

import logging
import os

import cv2
import numpy as np

from vidscramble import config
from vidscramble.errors import DecodeReadError, SinkOpenError, SinkWriteError, SourceOpenError

log = logging.getLogger(__name__)


def open_capture(video_path: str) -> cv2.VideoCapture:
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        cap.release()
        raise SourceOpenError(f"Impossible to open video file: {video_path}")
    log.info("Opened capture %s", video_path)
    return cap


def open_writer(output_path: str, frame_size: tuple, is_color: bool = True,
                fps: float = None, fourcc: str = None) -> cv2.VideoWriter:
    """
    Open the output sink for frames of a known size.

    Args:
        output_path: Destination video file.
        frame_size:  (width, height) of every frame that will be written.
        is_color:    False for single-channel frames.
        fps:         Target rate, defaults to config.OUTPUT_FPS.
        fourcc:      Four-character codec tag, defaults to config.OUTPUT_FOURCC.
    """
    fps = fps or config.OUTPUT_FPS
    fourcc = fourcc or config.OUTPUT_FOURCC
    out_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(out_dir, exist_ok=True)

    writer = cv2.VideoWriter(output_path, cv2.VideoWriter_fourcc(*fourcc),
                             fps, tuple(frame_size), is_color)
    if not writer.isOpened():
        writer.release()
        raise SinkOpenError(f"Could not open VideoWriter for {output_path}")
    log.info("Opened writer %s (%s, %.1f fps, %dx%d)",
             output_path, fourcc, fps, frame_size[0], frame_size[1])
    return writer


def frame_size(frame: np.ndarray) -> tuple:
    """(width, height) in the order OpenCV writers expect."""
    return frame.shape[1], frame.shape[0]


def is_end_of_stream(frame) -> bool:
    return frame is None or frame.size == 0


def read_frame(cap):
    """
    Pull the next frame.

    Returns:
        The frame, or None at end of stream.
    """
    try:
        ok, frame = cap.read()
    except cv2.error as e:
        raise DecodeReadError(f"Exception during image read: {e}") from e
    if not ok or is_end_of_stream(frame):
        return None
    return frame


def probe(video_path: str) -> dict:
    """Basic stream properties, without decoding any frame."""
    cap = open_capture(video_path)
    try:
        return {
            "fps": cap.get(cv2.CAP_PROP_FPS),
            "frame_count": int(cap.get(cv2.CAP_PROP_FRAME_COUNT)),
            "width": int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        }
    finally:
        cap.release()


def write_frame(writer, frame: np.ndarray) -> None:
    try:
        writer.write(frame)
    except cv2.error as e:
        raise SinkWriteError(f"Exception during frame write: {e}") from e
