"""Board generation configuration models."""

import math
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


class BoundaryConfig(BaseModel):
    """Continent boundary shape parameters."""

    num_points: int = Field(default=120, description="Vertices around the boundary loop")
    area_ratio: float = Field(
        default=0.6, description="Target boundary area as a fraction of the board"
    )
    noise_scale: float = Field(
        default=1.0, description="Multiplier on the radial noise amplitude"
    )


class LakeConfig(BaseModel):
    """Lake placement parameters."""

    count: int = Field(default=3, description="Number of lakes to attempt")
    min_radius: float = Field(default=30.0, description="Minimum lake base radius")
    max_radius: float = Field(default=80.0, description="Maximum lake base radius")
    num_points: int = Field(default=60, description="Vertices around each lake")
    noise_scale: float = Field(default=0.5, description="Lake outline noise scale")
    boundary_buffer: float = Field(
        default=70.0,
        description="Minimum distance from any lake point to the boundary",
    )
    min_lake_distance: float = Field(
        default=20.0, description="Minimum distance between two lakes"
    )
    max_attempts: int = Field(default=50, description="Placement attempts per lake")


class CityConfig(BaseModel):
    """City placement parameters."""

    major_count: int = Field(default=2, description="Number of major cities")
    medium_per_major: int = Field(
        default=3, description="Medium cities per major city"
    )
    small_per_major: int = Field(default=3, description="Small cities per major city")
    major_cost: int = Field(default=5, description="Connection cost of a major city anchor")
    city_cost: int = Field(
        default=3, description="Connection cost of a small or medium city anchor"
    )

    @property
    def medium_count(self) -> int:
        return self.major_count * self.medium_per_major

    @property
    def small_count(self) -> int:
        return self.major_count * self.small_per_major


class MilepostConfig(BaseModel):
    """Milepost grid parameters."""

    mountain_density: float = Field(
        default=0.05, description="Probability that a regular milepost is a mountain"
    )
    plain_cost: int = Field(default=1, description="Cost of a plain milepost")
    mountain_cost: int = Field(default=2, description="Cost of a mountain milepost")
    coordinate_tolerance: float = Field(
        default=0.5, description="Distance under which two grid coordinates coincide"
    )


class RiverConfig(BaseModel):
    """River growth and post-processing parameters."""

    count: int = Field(default=4, description="Number of rivers to attempt")
    segment_length: float = Field(default=6.0, description="Growth step length")
    milepost_buffer_radius: float = Field(
        default=4.0, description="Clearance rivers keep from every milepost"
    )
    max_iterations: int = Field(default=1000, description="Growth steps per river")
    interior_start_attempts: int = Field(
        default=50, description="Interior start point samples per river"
    )
    lake_source_probability: float = Field(
        default=0.5, description="Chance a river starts on a lake edge when possible"
    )
    departure_steps: int = Field(
        default=3, description="Steps biased away from the source lake"
    )
    diversion_length: float = Field(
        default=20.0, description="Length of the perpendicular diversion line"
    )
    diversion_attempts: int = Field(
        default=20, description="Random samples along the diversion line"
    )
    arrival_epsilon: float = Field(
        default=0.5, description="Distance at which the end point counts as reached"
    )
    intersection_tolerance: float = Field(
        default=1.0,
        description="Boundary hits closer than this to the end point are ignored",
    )
    sharp_angle_threshold: float = Field(
        default=math.pi * 0.7, description="Turn angle below which a vertex is softened"
    )
    meander_intensity: float = Field(default=4.0, description="Peak meander offset")
    meander_frequency: float = Field(
        default=1.5, description="Meander oscillations along the river"
    )
    smoothness: float = Field(default=0.2, description="Bezier control point pull")
    bezier_segments: int = Field(default=6, description="Points per smoothed corner")


class BoardConfig(BaseModel):
    """Complete board generation configuration."""

    seed: int | None = Field(
        default=None, description="Random seed (None = unseeded generation)"
    )
    width: float = Field(default=1200.0, description="Board width")
    height: float = Field(default=1200.0, description="Board height")
    vertical_spacing: float = Field(default=10.0, description="Grid row spacing")
    horizontal_spacing: float = Field(default=35.0, description="Grid column spacing")

    boundary: BoundaryConfig = Field(default_factory=BoundaryConfig)
    lakes: LakeConfig = Field(default_factory=LakeConfig)
    cities: CityConfig = Field(default_factory=CityConfig)
    mileposts: MilepostConfig = Field(default_factory=MilepostConfig)
    rivers: RiverConfig = Field(default_factory=RiverConfig)


def load_config(config_path: Path) -> BoardConfig:
    """Load board configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed BoardConfig; absent keys keep their defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return BoardConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends with .toml
    2. {name}.toml in the configs directory shipped with the package

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    config_path = _configs_dir() / f"{name}.toml"
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {_configs_dir()}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent / "configs"
