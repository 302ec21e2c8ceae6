#!/usr/bin/env python
"""Command line entry point: scan sources, analyse or compare single frames."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import cv2
from tqdm import tqdm

from config import PipelineConfig, default_config, load_config
from errors import FrameQualityError
from frame_compare import compare
from frame_quality import analyze
from geometry import crop_to_percent
from pipeline import ProgressUpdate, run_pipeline


# ----------------- ARGPARSE -----------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="frameqa",
        description="No-reference quality metrics and frame-to-frame similarity for video frames.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan an image directory, a video or a segment manifest (.json).")
    scan.add_argument("source", type=Path)
    scan.add_argument("--config", type=Path, help="JSON or YAML PipelineConfig.")
    scan.add_argument("--output-root", type=Path, help="Where metadata, logs and diff maps go.")
    scan.add_argument("--mode", choices=["full", "fast"], help="Metric set per frame.")
    scan.add_argument("--crop", type=float, help="Centre-crop fraction applied before analysis, e.g. 0.8.")
    scan.add_argument("--start", type=int, help="First frame index to analyse.")
    scan.add_argument("--end", type=int, help="Last frame index to analyse (inclusive).")
    scan.add_argument("--step", type=int, help="Analyse every Nth frame.")
    scan.add_argument("--format", choices=["csv", "jsonl", "parquet"], help="Metadata file format.")
    scan.add_argument("--diff-maps", action="store_true", help="Save SSIM colour maps for each compared pair.")
    scan.add_argument("--nominal", action="store_true", help="Flag frames outside the calibrated nominal range.")
    scan.add_argument("--validated-only", action="store_true", help="Manifests: only scan annotated segments.")
    scan.add_argument("--log-level", choices=["INFO", "DEBUG", "WARNING"])

    cmp = sub.add_parser("compare", help="Compare two images of equal size.")
    cmp.add_argument("first", type=Path)
    cmp.add_argument("second", type=Path)
    cmp.add_argument("--no-rms", action="store_true", help="Skip the RMS error.")
    cmp.add_argument("--diff-map", type=Path, help="Write the SSIM colour map to this image path.")

    one = sub.add_parser("analyze", help="Print quality attributes of one image.")
    one.add_argument("image", type=Path)
    one.add_argument("--mode", choices=["full", "fast"], default="full")
    one.add_argument("--crop", type=float, help="Centre-crop fraction in (0, 1].")
    return p


def _apply_overrides(config: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    updates = {
        "analysis": {"mode": args.mode, "crop_percent": args.crop},
        "source": {"start_frame": args.start, "end_frame": args.end, "frame_step": args.step},
        "output": {"output_root": args.output_root, "metadata_format": args.format},
        "comparison": {"save_diff_maps": True if args.diff_maps else None},
        "nominal": {"enabled": True if args.nominal else None},
    }
    data = config.dict()
    for section, values in updates.items():
        data[section].update({key: value for key, value in values.items() if value is not None})
    if args.log_level:
        data["log_level"] = args.log_level
    if args.validated_only:
        data["validated_only"] = True
    return PipelineConfig(**data)


def _read_gray(path: Path):
    gray = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if gray is None:
        raise FileNotFoundError(f"Cannot read image: {path}")
    return gray


# ----------------- COMMANDS -----------------

def _cmd_scan(args: argparse.Namespace) -> int:
    config = load_config(args.config) if args.config else default_config()
    config = _apply_overrides(config, args)

    with tqdm(desc=args.source.name, unit="frame") as bar:

        def _progress(update: ProgressUpdate) -> None:
            bar.set_postfix_str(update.source)
            bar.update(1)

        result = run_pipeline(config, args.source, progress_cb=_progress)
    print(result)
    return 0


def _cmd_compare(args: argparse.Namespace) -> int:
    first = _read_gray(args.first)
    second = _read_gray(args.second)
    result = compare(first, second, generate_diff_map=args.diff_map is not None, compute_rms=not args.no_rms)
    if args.diff_map is not None:
        args.diff_map.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(args.diff_map), result.diff_map):
            raise OSError(f"Failed to write diff map {args.diff_map}")
    print(json.dumps(result.as_dict(), indent=2))
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    gray = _read_gray(args.image)
    if args.crop is not None:
        gray = crop_to_percent(gray, args.crop)
    attrs = analyze(gray, args.mode)
    print(json.dumps(attrs.as_dict(), indent=2))
    return 0


COMMANDS = {"scan": _cmd_scan, "compare": _cmd_compare, "analyze": _cmd_analyze}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (FrameQualityError, ValueError, OSError, RuntimeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
