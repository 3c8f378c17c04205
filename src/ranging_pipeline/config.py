"""Configuration management for the ranging pipeline."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import tomllib

from .strategies import MOVING_AVERAGE


class LoggingConfig(BaseModel):
    """Logging configuration settings."""

    # Logging severity threshold (INFO/DEBUG/etc.).
    level: str = Field(default="INFO", description="Logging level")
    # Emit JSON if True; otherwise emit a human-readable format.
    json_format: bool = Field(default=True, alias="json", description="Emit JSON logs")
    # Optional file path for log output; if None, logs go to stderr.
    log_file: str | None = Field(default=None, description="Optional log file path")
    # Maximum size (bytes) before log rotation.
    max_bytes: int = Field(default=1_000_000, description="Max log file size before rotation")
    # Number of backup files to retain.
    backup_count: int = Field(default=3, description="Number of rotated log files to keep")

    model_config = ConfigDict(populate_by_name=True)


class MetricsConfig(BaseModel):
    """Metrics/health endpoint configuration."""

    # Enable HTTP exporter when True.
    enabled: bool = Field(default=False, description="Enable metrics exporter")
    # Host for HTTP server.
    host: str = Field(default="127.0.0.1", description="Metrics host")
    # TCP port for HTTP server.
    port: int = Field(default=8000, ge=0, le=65535, description="Metrics port")
    # Seconds without a tick before /health reports failure.
    freshness_window_s: float = Field(default=10.0, gt=0, description="Health freshness window (seconds)")


class PipelineConfig(BaseModel):
    """Tunables of the estimation pipeline."""

    model_config = ConfigDict(allow_inf_nan=False, extra="forbid")

    # Number of trailing samples used per estimate.
    window_size: int = Field(default=50, gt=0, description="Samples per estimation window")
    # Tick cadence in milliseconds.
    update_interval_ms: int = Field(default=500, gt=0, description="Tick interval (ms)")
    # Strategy identifier; unknown ids fall back to the moving average.
    algorithm: str = Field(default=MOVING_AVERAGE, description="Estimation strategy id")
    # Physical speed limit for the Kalman strategy.
    max_speed_kmh: float = Field(default=20.0, gt=0, description="Max target speed (km/h)")
    # Enable RSSI-based outlier rejection before estimation.
    use_outlier_filter: bool = Field(default=False, description="Enable RSSI outlier filter")
    # Allowed signal-strength deviation from the window median.
    outlier_threshold_db: float = Field(default=6.0, gt=0, description="Outlier threshold (dB)")

    @field_validator("outlier_threshold_db")
    @classmethod
    def _clamp_threshold(cls, value: float) -> float:
        return max(1.0, value)

    @property
    def max_speed_mps(self) -> float:
        return self.max_speed_kmh / 3.6


class IngestionConfig(BaseModel):
    """Where raw records come from."""

    # Device node or file path, or "simulate" for the built-in generator.
    source: str = Field(default="simulate", description="Line source path or 'simulate'")
    # Seed for the simulated source; None for a random stream.
    simulation_seed: int | None = Field(default=None, description="Simulation RNG seed")


class RangingSettings(BaseSettings):
    """Configuration settings loaded from env or optional TOML."""

    # Environment keys use RANGING_ prefix and "__" nesting.
    model_config = SettingsConfigDict(env_prefix="RANGING_", env_nested_delimiter="__", extra="ignore")

    # Nested configs provide defaults for each subsystem.
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)

    @classmethod
    def from_toml(cls, path: str | Path) -> "RangingSettings":
        data = tomllib.loads(Path(path).read_text())
        return cls.model_validate(data)
