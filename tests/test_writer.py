"""Tests for writer module."""

import json

import numpy as np
import pandas as pd

from config import OutputConfig
from frame_compare import ComparisonResult
from frame_quality import FrameEvaluation, QualityAttributes
from writer import FrameRecord, MetadataWriter, flush_metadata, save_diff_map


def _record(frame_index=0, comparison=None, evaluation=None):
    attrs = QualityAttributes(width=16, height=16, sharpness=12.5, mean_intensity=100, hist_spread=0.4)
    return FrameRecord.from_results("v1.mp4", frame_index, attrs, comparison=comparison, evaluation=evaluation)


def test_record_copies_attributes_and_scores():
    comparison = ComparisonResult(rms_error=1.5, ssim_score=0.9, hsim_score=0.8)
    evaluation = FrameEvaluation(passes=False, scores={"intensity": 3.0}, failed_filters=["intensity"])
    record = _record(3, comparison, evaluation)
    assert record.frame_index == 3
    assert record.sharpness == 12.5
    assert record.ssim_score == 0.9
    assert record.nominal is False
    assert record.failed_filters == ["intensity"]


def test_first_frame_record_has_no_comparison():
    record = _record()
    assert record.ssim_score is None
    assert record.nominal is None


def test_save_diff_map(tmp_path):
    output_cfg = OutputConfig(output_root=tmp_path)
    image = np.zeros((16, 16, 3), dtype=np.uint8)
    rel_path = save_diff_map(image, "frame_000001", output_cfg)
    assert rel_path.name == "frame_000001-SSIMAP.png"
    assert (tmp_path / rel_path).exists()


def test_flush_metadata_creates_jsonl(tmp_path):
    output_cfg = OutputConfig(output_root=tmp_path, metadata_format="jsonl")
    metadata_path = tmp_path / "meta.jsonl"
    flush_metadata([_record(0), _record(1)], output_cfg, metadata_path)
    lines = metadata_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[1])["frame_index"] == 1


def test_csv_writer_appends_batches_with_one_header(tmp_path):
    output_cfg = OutputConfig(output_root=tmp_path, metadata_format="csv", metadata_batch_size=1)
    metadata_path = tmp_path / "meta.csv"
    evaluation = FrameEvaluation(passes=False, scores={}, failed_filters=["intensity", "spread"])
    flush_metadata([_record(0), _record(1, evaluation=evaluation)], output_cfg, metadata_path)
    df = pd.read_csv(metadata_path)
    assert list(df["frame_index"]) == [0, 1]
    assert df.loc[1, "failed_filters"] == "intensity;spread"


def test_parquet_writer_handles_missing_then_present_scores(tmp_path):
    output_cfg = OutputConfig(output_root=tmp_path, metadata_format="parquet", metadata_batch_size=1)
    metadata_path = tmp_path / "meta.parquet"
    writer = MetadataWriter(output_cfg, metadata_path)
    writer.add(_record(0))
    writer.add(_record(1, ComparisonResult(rms_error=2.0, ssim_score=0.7, hsim_score=0.95)))
    writer.close()
    df = pd.read_parquet(metadata_path)
    assert len(df) == 2
    assert df["ssim_score"].isna().tolist() == [True, False]


def test_existing_metadata_is_replaced(tmp_path):
    metadata_path = tmp_path / "meta.jsonl"
    metadata_path.write_text("stale\n", encoding="utf-8")
    flush_metadata([_record(0)], OutputConfig(output_root=tmp_path, metadata_format="jsonl"), metadata_path)
    assert "stale" not in metadata_path.read_text(encoding="utf-8")
