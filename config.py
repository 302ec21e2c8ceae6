"""Configuration models for frame quality scanning."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, validator

from histogram import BRIGHT_THRESHOLD, DARK_THRESHOLD, SPIKE_RATIO
from corners import DEFAULT_CORNER_THRESHOLD


class AnalysisConfig(BaseModel):
    """No-reference metric settings applied to every frame."""

    mode: Literal["full", "fast"] = "full"
    crop_percent: float = Field(1.0, gt=0.0, le=1.0)
    dark_threshold: int = Field(DARK_THRESHOLD, ge=1, le=255)
    bright_threshold: int = Field(BRIGHT_THRESHOLD, ge=0, le=254)
    spike_ratio: float = Field(SPIKE_RATIO, gt=0.0, le=1.0)
    corner_threshold: int = Field(DEFAULT_CORNER_THRESHOLD, ge=1, le=255)

    @validator("bright_threshold")
    def _validate_thresholds(cls, value: int, values: Dict[str, Any]) -> int:
        """Dark and bright tails must not overlap."""

        if "dark_threshold" in values and value <= values["dark_threshold"]:
            raise ValueError("bright_threshold must be above dark_threshold")
        return value


class ComparisonConfig(BaseModel):
    """Frame-to-previous-frame comparison settings."""

    enabled: bool = True
    compute_rms: bool = True
    win_size: int = Field(7, ge=3)
    save_diff_maps: bool = False
    colormap: Literal["jet", "inferno", "viridis", "turbo"] = "jet"

    @validator("win_size")
    def _validate_win_size(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError("win_size must be odd")
        return value


class NominalRangeConfig(BaseModel):
    """Calibrated expectations for a usable frame, checked as z-scores."""

    enabled: bool = False
    intensity_mean: float = 117.0
    intensity_stddev: float = Field(9.0, gt=0.0)
    spread_mean: float = 0.5
    spread_stddev: float = Field(0.09, gt=0.0)
    corners_mean: float = 4000.0
    corners_stddev: float = Field(1000.0, gt=0.0)
    max_zscore: float = Field(2.0, gt=0.0)


class SourceConfig(BaseModel):
    """Which frames of a source get analysed."""

    start_frame: int = Field(0, ge=0)
    end_frame: Optional[int] = None
    frame_step: PositiveInt = 1
    max_frames: Optional[PositiveInt] = None
    image_extensions: List[str] = Field(default_factory=lambda: [".ppm", ".png", ".jpg", ".jpeg", ".bmp"])

    @validator("end_frame")
    def _validate_range(cls, value: Optional[int], values: Dict[str, Any]) -> Optional[int]:
        if value is not None and "start_frame" in values and value < values["start_frame"]:
            raise ValueError("end_frame must not precede start_frame")
        return value

    @validator("image_extensions", each_item=True)
    def _normalise_extension(cls, value: str) -> str:
        value = value.lower()
        return value if value.startswith(".") else f".{value}"


class OutputConfig(BaseModel):
    """Where and how metadata and diff maps are stored."""

    output_root: Path = Path("frameqa_output")
    metadata_format: Literal["csv", "jsonl", "parquet"] = "csv"
    metadata_batch_size: PositiveInt = 256
    diff_map_extension: Literal["png", "jpg"] = "png"
    overwrite: bool = True


class PipelineConfig(BaseModel):
    """Top-level configuration tying everything together."""

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    nominal: NominalRangeConfig = Field(default_factory=NominalRangeConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log_level: Literal["INFO", "DEBUG", "WARNING"] = "INFO"
    validated_only: bool = False

    def to_jsonable(self) -> Dict[str, Any]:
        """Return a dict that json.dumps accepts."""

        return config_to_dict(self)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def config_to_dict(config: BaseModel) -> Dict[str, Any]:
    """Serialise a config model with Paths stringified."""

    return _jsonable(config.dict())


def default_config() -> PipelineConfig:
    """Return a ready-to-use default configuration."""

    return PipelineConfig()


def load_config(path: Path) -> PipelineConfig:
    """Load config from a JSON or YAML file."""

    import json

    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    return PipelineConfig(**data)


def save_config(config: PipelineConfig, path: Path) -> None:
    """Persist config to disk."""

    import json

    data = config_to_dict(config)
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)
    else:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
