"""Output writer for frame metadata and SSIM diff maps."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
import pandas as pd

from config import OutputConfig
from frame_compare import ComparisonResult
from frame_quality import FrameEvaluation, QualityAttributes
from logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass
class FrameRecord:
    """Flat metadata row for one analysed frame."""

    source: str
    frame_index: int
    width: int
    height: int
    sharpness: float
    mean_intensity: int
    hist_spread: float
    hist_flatness: float
    dark_pixel_count: int
    bright_pixel_count: int
    dark_percent: float
    bright_percent: float
    hist_spike_count: int
    corner_count_fast12: int
    corner_count_fast9: int
    rms_error: Optional[float] = None
    ssim_score: Optional[float] = None
    hsim_score: Optional[float] = None
    nominal: Optional[bool] = None
    failed_filters: List[str] = field(default_factory=list)
    diff_map_path: Optional[str] = None

    @classmethod
    def from_results(
        cls,
        source: str,
        frame_index: int,
        attrs: QualityAttributes,
        comparison: Optional[ComparisonResult] = None,
        evaluation: Optional[FrameEvaluation] = None,
        diff_map_path: Optional[Path] = None,
    ) -> "FrameRecord":
        record = cls(source=source, frame_index=frame_index, **attrs.as_dict())
        if comparison is not None:
            record.rms_error = comparison.rms_error
            record.ssim_score = comparison.ssim_score
            record.hsim_score = comparison.hsim_score
        if evaluation is not None:
            record.nominal = evaluation.passes
            record.failed_filters = list(evaluation.failed_filters)
        if diff_map_path is not None:
            record.diff_map_path = str(diff_map_path)
        return record


def save_diff_map(image_bgr: np.ndarray, stem: str, output_cfg: OutputConfig) -> Path:
    """Persist an SSIM colour map and return its path relative to output_root."""

    rel = Path("diff_maps") / f"{stem}-SSIMAP.{output_cfg.diff_map_extension}"
    full = output_cfg.output_root / rel
    full.parent.mkdir(parents=True, exist_ok=True)
    params = [cv2.IMWRITE_JPEG_QUALITY, 95] if output_cfg.diff_map_extension == "jpg" else []
    if not cv2.imwrite(str(full), image_bgr, params):
        raise OSError(f"Failed to write diff map {full}")
    return rel


class MetadataWriter:
    """Batching helper for metadata persistence."""

    def __init__(self, output_cfg: OutputConfig, metadata_path: Path):
        self.output_cfg = output_cfg
        self.metadata_path = metadata_path
        self._buffer: List[FrameRecord] = []
        self._pq_writer = None
        self._csv_has_header = False
        metadata_path.parent.mkdir(parents=True, exist_ok=True)
        if metadata_path.exists():
            if not output_cfg.overwrite:
                raise FileExistsError(f"{metadata_path} already exists")
            metadata_path.unlink()

    def __enter__(self) -> "MetadataWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def add(self, record: FrameRecord) -> None:
        self._buffer.append(record)
        if len(self._buffer) >= self.output_cfg.metadata_batch_size:
            self._flush_buffer()

    def close(self) -> None:
        self._flush_buffer()
        if self._pq_writer is not None:
            self._pq_writer.close()
            self._pq_writer = None

    def _flush_buffer(self) -> None:
        if not self._buffer:
            return
        df = pd.DataFrame([asdict(record) for record in self._buffer])
        fmt = self.output_cfg.metadata_format
        if fmt == "parquet":
            self._write_parquet(df)
        elif fmt == "csv":
            df = df.assign(failed_filters=df["failed_filters"].map(";".join))
            df.to_csv(
                self.metadata_path,
                mode="a",
                header=not self._csv_has_header,
                index=False,
            )
            self._csv_has_header = True
        else:  # jsonl
            with self.metadata_path.open("a", encoding="utf-8") as f:
                for record in self._buffer:
                    f.write(json.dumps(asdict(record)))
                    f.write("\n")
        self._buffer.clear()

    def _write_parquet(self, df: pd.DataFrame) -> None:
        import pyarrow as pa
        import pyarrow.parquet as pq

        # fixed schema: a batch of first frames has no comparison values to infer types from
        schema = _arrow_schema()
        table = pa.Table.from_pandas(df, schema=schema, preserve_index=False)
        if self._pq_writer is None:
            self._pq_writer = pq.ParquetWriter(self.metadata_path, schema=schema)
        self._pq_writer.write_table(table)


def _arrow_schema():
    import pyarrow as pa

    return pa.schema(
        [
            ("source", pa.string()),
            ("frame_index", pa.int64()),
            ("width", pa.int64()),
            ("height", pa.int64()),
            ("sharpness", pa.float64()),
            ("mean_intensity", pa.int64()),
            ("hist_spread", pa.float64()),
            ("hist_flatness", pa.float64()),
            ("dark_pixel_count", pa.int64()),
            ("bright_pixel_count", pa.int64()),
            ("dark_percent", pa.float64()),
            ("bright_percent", pa.float64()),
            ("hist_spike_count", pa.int64()),
            ("corner_count_fast12", pa.int64()),
            ("corner_count_fast9", pa.int64()),
            ("rms_error", pa.float64()),
            ("ssim_score", pa.float64()),
            ("hsim_score", pa.float64()),
            ("nominal", pa.bool_()),
            ("failed_filters", pa.list_(pa.string())),
            ("diff_map_path", pa.string()),
        ]
    )


def flush_metadata(records: List[FrameRecord], output_cfg: OutputConfig, metadata_path: Path) -> None:
    """One-shot helper for writing a list of records."""

    with MetadataWriter(output_cfg, metadata_path) as writer:
        for record in records:
            writer.add(record)
