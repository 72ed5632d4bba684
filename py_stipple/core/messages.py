"""
Messages exchanged between a caller and a stippling run.

A run receives exactly one ``InitMessage`` and answers with zero or more
``ProgressMessage`` objects followed by one terminal ``DoneMessage`` (or
``FailedMessage`` when the run crashed).
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from .density_field import DensityField
from .stipple import Stipple


class StippleParameters(BaseModel):
    """Tuning parameters of a stippling run."""

    initial_stipple_radius: float = Field(2.0, gt=0, description="Radius used to size the target cell mass")
    initial_error_threshold: float = Field(0.0, ge=0, description="Starting half width of the keep band")
    convergence_rate: float = Field(0.01, ge=0, description="Error threshold increase per iteration")
    max_iterations: int = Field(100, ge=0, description="Iteration cap")
    seed: Optional[str] = Field(None, description="Seed for reproducible runs")

    @classmethod
    def from_settings(cls, **overrides) -> "StippleParameters":
        """Parameters from the configured defaults, with explicit overrides."""
        values = {
            "initial_stipple_radius": settings.default_stipple_radius,
            "initial_error_threshold": settings.default_error_threshold,
            "convergence_rate": settings.default_convergence_rate,
            "max_iterations": settings.default_max_iterations,
        }
        values.update(overrides)
        return cls(**values)


class InitMessage(StippleParameters):
    """Start a run on ``density_field``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["init"] = "init"
    density_field: DensityField

    def parameters(self) -> StippleParameters:
        return StippleParameters(**self.model_dump(include=set(StippleParameters.model_fields)))


class StippleModel(BaseModel):
    """Wire form of a stipple."""

    x: float
    y: float
    density: float
    radius: float
    relative_x: float
    relative_y: float

    @classmethod
    def from_stipple(cls, stipple: Stipple) -> "StippleModel":
        return cls(
            x=stipple.x,
            y=stipple.y,
            density=stipple.density,
            radius=stipple.radius,
            relative_x=stipple.relative_x,
            relative_y=stipple.relative_y,
        )


class ProgressMessage(BaseModel):
    """Snapshot after an iteration."""

    kind: Literal["progress"] = "progress"
    progress: float = Field(..., ge=0, le=100)
    done: Literal[False] = False
    iteration: int = Field(..., ge=0)
    stipples: List[StippleModel]


class DoneMessage(BaseModel):
    """Final, normalized stipple set."""

    kind: Literal["done"] = "done"
    progress: float = Field(100.0, ge=100, le=100)
    done: Literal[True] = True
    iteration: int = Field(..., ge=0)
    stipples: List[StippleModel]


class FailedMessage(BaseModel):
    """The run raised before it could finish."""

    kind: Literal["failed"] = "failed"
    done: Literal[True] = True
    error: str


WorkerMessage = Union[ProgressMessage, DoneMessage, FailedMessage]


def progress_percent(iteration: int, max_iterations: int) -> float:
    """Share of the iteration budget used so far, clamped to 100."""
    if max_iterations <= 0:
        return 100.0
    return min(100.0, iteration / max_iterations * 100)


def is_terminal(message: WorkerMessage) -> bool:
    return message.done
