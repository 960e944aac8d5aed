"""
Simulation settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class SimulationConfig(BaseSettings):
    """Career simulation settings"""

    # Reproducibility
    seed: int = Field(default=20240101, description="Random seed of one career")

    # Starting point
    start_year: int = Field(default=2024, description="Year of the first cycle")
    start_month: int = Field(default=1, description="Month of the first cycle (1, 3, 5, 7, 9, 11)")
    shikona: str = Field(default="Kaiseiyama", description="Tracked competitor's ring name")
    initial_age: int = Field(default=18, description="Age at entry")
    initial_power: float = Field(default=42.0, description="Entry strength")
    growth_rate: float = Field(default=1.2, description="Strength gained per cycle while young")

    # Career end
    retirement_age: int = Field(default=38, description="Retire at this age")
    max_basho: int = Field(default=120, description="Hard cap on cycles")
    max_consecutive_absences: int = Field(default=6, description="Retire after this many full-absence cycles")

    # World
    juryo_guest_count: int = Field(default=6, description="Juryo guests in upper Makushita")
    intake_enabled: bool = Field(default=True, description="Monthly recruit intake into Maezumo")
    injuries_enabled: bool = Field(default=True, description="Use the injury model")

    # Output
    log_level: str = Field(default="INFO", description="loguru level")
    log_dir: str = Field(default="logs", description="Rotating log directory")
    output_dir: Optional[str] = Field(default=None, description="Snapshot directory")

    class Config:
        env_prefix = "BANZUKE_"
        case_sensitive = False


class RunnerConfig(BaseSettings):
    """Batch runner settings"""

    runs: int = Field(default=20, description="Careers per batch")
    workers: int = Field(default=1, description="Worker processes (1 runs in-process)")

    class Config:
        env_prefix = "BANZUKE_BATCH_"
        case_sensitive = False


# Global settings instances
simulation_config = SimulationConfig()
runner_config = RunnerConfig()
