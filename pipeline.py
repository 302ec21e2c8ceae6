"""High-level orchestration for scanning frame sequences."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

import numpy as np

from config import PipelineConfig
from errors import FrameQualityError
from frame_compare import compare_with_previous
from frame_quality import analyze, evaluate_nominal
from frame_source import FrameSample, iter_image_frames, iter_video_frames
from geometry import crop_to_percent
from logging_utils import get_logger, setup_logging
from manifest import Segment, load_segments
from writer import FrameRecord, MetadataWriter, save_diff_map

LOGGER = get_logger(__name__)


class ProgressUpdate:
    """Lightweight struct emitted to callers for progress reporting."""

    def __init__(self, message: str, source: str, frames: int):
        self.message = message
        self.source = source
        self.frames = frames


def _prepare(gray: np.ndarray, config: PipelineConfig) -> np.ndarray:
    if config.analysis.crop_percent < 1.0:
        return crop_to_percent(gray, config.analysis.crop_percent)
    return gray


def _diff_map_stem(sample: FrameSample) -> str:
    return f"{Path(sample.source).stem}_{sample.frame_index:06d}"


def evaluate_sequence(samples: Iterable[FrameSample], config: PipelineConfig) -> Iterator[FrameRecord]:
    """Analyse each frame and compare it with the previous good frame.

    The previous frame is held here and passed to the comparator explicitly.
    Frames the core rejects are logged and skipped without advancing it.
    """

    want_map = config.comparison.enabled and config.comparison.save_diff_maps
    previous: Optional[np.ndarray] = None
    for sample in samples:
        try:
            gray = _prepare(sample.gray, config)
            attrs = analyze(gray, config.analysis.mode, config.analysis)
            comparison = None
            if config.comparison.enabled:
                comparison = compare_with_previous(
                    previous,
                    gray,
                    generate_diff_map=want_map,
                    compute_rms=config.comparison.compute_rms,
                    win_size=config.comparison.win_size,
                    colormap=config.comparison.colormap,
                )
        except FrameQualityError as exc:
            LOGGER.warning("Skipping frame %d of %s: %s", sample.frame_index, sample.source, exc)
            continue

        evaluation = evaluate_nominal(attrs, config.nominal) if config.nominal.enabled else None
        if evaluation is not None and not evaluation.passes:
            LOGGER.info(
                "Frame %d of %s outside nominal range: %s",
                sample.frame_index,
                sample.source,
                ", ".join(evaluation.failed_filters),
            )

        map_path = None
        if comparison is not None and comparison.diff_map is not None:
            map_path = save_diff_map(comparison.diff_map, _diff_map_stem(sample), config.output)

        previous = gray
        yield FrameRecord.from_results(
            sample.source,
            sample.frame_index,
            attrs,
            comparison=comparison,
            evaluation=evaluation,
            diff_map_path=map_path,
        )


def _metadata_path(config: PipelineConfig, stem: str) -> Path:
    return config.output.output_root / f"{stem}.{config.output.metadata_format}"


def _scan_to_file(
    samples: Iterable[FrameSample],
    config: PipelineConfig,
    metadata_path: Path,
    label: str,
    progress_cb: Optional[Callable[[ProgressUpdate], None]] = None,
) -> int:
    total = 0
    with MetadataWriter(config.output, metadata_path) as writer:
        for record in evaluate_sequence(samples, config):
            writer.add(record)
            total += 1
            if progress_cb:
                progress_cb(ProgressUpdate("frame", label, total))
    LOGGER.info("Wrote %d frame records for %s to %s", total, label, metadata_path)
    return total


def _scan_segment(
    segment: Segment,
    config: PipelineConfig,
    progress_cb: Optional[Callable[[ProgressUpdate], None]] = None,
) -> Optional[Path]:
    if not segment.video_path.exists():
        LOGGER.warning("Missing video for segment: %s", segment.video_path)
        return None
    source_cfg = config.source.copy(update={"start_frame": segment.start_frame, "end_frame": segment.end_frame})
    metadata_path = _metadata_path(
        config, f"{segment.video_path.stem}-{segment.start_frame}-{segment.end_frame}"
    )
    samples = iter_video_frames(segment.video_path, source_cfg)
    _scan_to_file(samples, config, metadata_path, segment.video_path.name, progress_cb)
    return metadata_path


def run_pipeline(
    config: PipelineConfig,
    source: Path,
    progress_cb: Optional[Callable[[ProgressUpdate], None]] = None,
) -> Path:
    """Scan an image directory, a video file or a segment manifest.

    Returns the metadata file, or the output root when a manifest produced
    one file per segment.
    """

    setup_logging(config.output.output_root, config.log_level)
    config.output.output_root.mkdir(parents=True, exist_ok=True)
    if not source.exists():
        raise FileNotFoundError(f"Source not found: {source}")

    if source.is_dir():
        LOGGER.info("Scanning image directory %s", source)
        metadata_path = _metadata_path(config, source.name or "frames")
        _scan_to_file(iter_image_frames(source, config.source), config, metadata_path, source.name, progress_cb)
        return metadata_path

    if source.suffix.lower() == ".json":
        segments = load_segments(source)
        if config.validated_only:
            segments = [segment for segment in segments if segment.validated]
        LOGGER.info("Scanning %d segments from %s", len(segments), source.name)
        for segment in segments:
            _scan_segment(segment, config, progress_cb)
        return config.output.output_root

    LOGGER.info("Scanning video %s", source.name)
    metadata_path = _metadata_path(config, source.stem)
    _scan_to_file(iter_video_frames(source, config.source), config, metadata_path, source.name, progress_cb)
    return metadata_path
