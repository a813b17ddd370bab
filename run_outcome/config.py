"""Configuration for outcome resolution of a single run."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ResultFormat = Literal["nunit-v2", "nunit-v3", "xunit", "touch-unit", "missing"]


class ResolverConfig(BaseModel):
    """Configuration for resolving the outcome of one test run."""

    app_name: str
    variation: str = "Debug"
    # None on simulators, where the target is picked by the runner
    device_name: str | None = None
    run_mode: str = "iOS"
    timeout: float = Field(default=900.0, gt=0, description="Run budget in seconds")
    launch_timeout: float = Field(
        default=120.0, gt=0, description="Launch budget in seconds"
    )
    result_format: ResultFormat = "missing"
    build_logs_directory: Path | None = None
    crash_capture_allowance: float = Field(
        default=60.0,
        ge=0,
        description="Extra seconds granted to crash capture on top of the grace period",
    )

    @property
    def results_use_xml(self) -> bool:
        """Whether the app was asked to produce structured results."""
        return self.result_format != "missing"
