"""Annotation manifest parsing into video segments."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from logging_utils import get_logger

LOGGER = get_logger(__name__)


class Keypoint(BaseModel):
    frame: int
    x1: int
    y1: int
    x2: int
    y2: int


class BoundingBox(BaseModel):
    frame: int
    tl_x: int
    tl_y: int
    br_x: int
    br_y: int


Annotation = Union[Keypoint, BoundingBox, None]


class Approach(BaseModel):
    """One annotated approach segment of a recorded stream."""

    stream: str
    start_frame: int
    end_frame: int
    icao: str = ""
    runway_designator: str = ""
    annotated_keypoints: Optional[Keypoint] = None
    annotated_bbox: Optional[BoundingBox] = None
    note: Optional[str] = None

    @property
    def annotation(self) -> Annotation:
        """Keypoints take precedence over a bounding box."""

        if self.annotated_keypoints is not None:
            return self.annotated_keypoints
        return self.annotated_bbox


class FlightData(BaseModel):
    approaches: Optional[List[Approach]] = None
    takeoffs: Optional[List[Dict[str, object]]] = None


@dataclass
class Segment:
    """Frame range of one video to scan."""

    timestamp: str
    video_path: Path
    start_frame: int
    end_frame: int
    annotation: Annotation = None
    validated: bool = False

    @property
    def annotated_frame(self) -> Optional[int]:
        return None if self.annotation is None else self.annotation.frame


def _segment_from_approach(timestamp: str, approach: Approach, manifest_path: Path) -> Segment:
    # a note means annotation was attempted and failed
    annotation = None if approach.note is not None else approach.annotation
    return Segment(
        timestamp=timestamp,
        video_path=manifest_path.with_name(f"{approach.stream}.mp4"),
        start_frame=approach.start_frame,
        end_frame=approach.end_frame,
        annotation=annotation,
        validated=annotation is not None,
    )


def load_segments(manifest_path: Path) -> List[Segment]:
    """Read an approaches manifest and return one segment per approach."""

    with manifest_path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{manifest_path} must contain a JSON object keyed by timestamp")

    segments: List[Segment] = []
    for timestamp in sorted(raw):
        try:
            flight = FlightData(**raw[timestamp])
        except (TypeError, ValidationError) as exc:
            raise ValueError(f"Invalid manifest entry {timestamp!r} in {manifest_path}: {exc}") from exc
        for approach in flight.approaches or []:
            segment = _segment_from_approach(timestamp, approach, manifest_path)
            LOGGER.debug(
                "Segment %s frames %d-%d validated=%s",
                segment.video_path.name,
                segment.start_frame,
                segment.end_frame,
                segment.validated,
            )
            segments.append(segment)
    LOGGER.info("Loaded %d segments from %s", len(segments), manifest_path)
    return segments
