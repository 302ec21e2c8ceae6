"""Frame decoding from videos and image directories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List

import cv2
import numpy as np

from config import SourceConfig
from logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass
class FrameSample:
    """DTO for grayscale frames handed to the analysis core."""

    frame_index: int
    source: str
    gray: np.ndarray


def _past_end(frame_idx: int, config: SourceConfig, frames_emitted: int) -> bool:
    if config.max_frames is not None and frames_emitted >= config.max_frames:
        return True
    return config.end_frame is not None and frame_idx > config.end_frame


def _in_range(frame_idx: int, config: SourceConfig, frames_emitted: int) -> bool:
    """Decide whether frame ``frame_idx`` should be emitted."""

    if _past_end(frame_idx, config, frames_emitted):
        return False
    if frame_idx < config.start_frame:
        return False
    return (frame_idx - config.start_frame) % config.frame_step == 0


def to_gray(image: np.ndarray) -> np.ndarray:
    """Collapse a decoded BGR/BGRA frame to 8-bit gray."""

    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def iter_video_frames(video_path: Path, config: SourceConfig) -> Iterator[FrameSample]:
    """Iterate grayscale frames of a video within the configured frame range.

    Frames before ``start_frame`` and between steps are grabbed without
    being decoded.
    """

    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video {video_path}")

    frame_idx = -1
    frames_emitted = 0
    try:
        while True:
            frame_idx += 1
            if _past_end(frame_idx, config, frames_emitted):
                break
            if not cap.grab():
                break
            if not _in_range(frame_idx, config, frames_emitted):
                continue
            ret, frame = cap.retrieve()
            if not ret:
                LOGGER.warning("Could not decode frame %d of %s", frame_idx, video_path.name)
                continue
            yield FrameSample(frame_index=frame_idx, source=video_path.name, gray=to_gray(frame))
            frames_emitted += 1
    finally:
        cap.release()
    LOGGER.debug("Read %d frames from %s", frames_emitted, video_path.name)


def list_image_files(directory: Path, extensions: Iterable[str]) -> List[Path]:
    """Image files directly inside ``directory``, sorted by name."""

    wanted = {ext.lower() for ext in extensions}
    return sorted(
        (path for path in directory.iterdir() if path.is_file() and path.suffix.lower() in wanted),
        key=lambda path: path.name,
    )


def iter_image_frames(directory: Path, config: SourceConfig) -> Iterator[FrameSample]:
    """Iterate grayscale images in a directory as a frame sequence.

    The sorted position of each file is its frame index. Unreadable files
    are skipped.
    """

    frames_emitted = 0
    for frame_idx, path in enumerate(list_image_files(directory, config.image_extensions)):
        if _past_end(frame_idx, config, frames_emitted):
            break
        if not _in_range(frame_idx, config, frames_emitted):
            continue
        gray = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if gray is None:
            LOGGER.warning("Skipping unreadable image %s", path)
            continue
        yield FrameSample(frame_index=frame_idx, source=path.name, gray=gray)
        frames_emitted += 1
