"""
Stippling engine: drives relaxation iterations until the stipple set settles.

The engine is a small state machine (initializing -> iterating -> converged).
It never talks to a UI; callers consume the messages yielded by ``run()``
or pass a callback to ``run_to_completion()``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Union

import structlog

from .density_field import DensityField
from .messages import (
    DoneMessage,
    ProgressMessage,
    StippleModel,
    StippleParameters,
    progress_percent,
)
from .relaxation import relax_step, target_area
from .sampler import Sampler, make_sampler, uniform_point
from .stipple import Stipple, normalize_stipples

logger = structlog.get_logger()

# Share of the domain the initial population is sized to cover
INITIAL_COVERAGE = 0.7

MessageCallback = Callable[[Union[ProgressMessage, DoneMessage]], None]


class EngineState(Enum):
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"


@dataclass
class ConvergenceState:
    """Iteration counter and the annealed error threshold derived from it."""
    initial_error_threshold: float
    convergence_rate: float
    iteration: int = 0
    changed: bool = True

    @property
    def error_threshold(self) -> float:
        return self.initial_error_threshold + self.iteration * self.convergence_rate


def initial_population_size(width: int, height: int, radius: float) -> int:
    """round(0.7 * W * H / (pi r^2)), rounding halves up, never below one."""
    count = math.floor(INITIAL_COVERAGE * width * height / target_area(radius) + 0.5)
    return max(1, int(count))


def create_random_stipples(count: int, width: float, height: float,
                           sampler: Sampler) -> List[Stipple]:
    """Place ``count`` stipples uniformly in [0, width) x [0, height)."""
    stipples = []
    for _ in range(count):
        x, y = uniform_point(sampler, width, height)
        stipples.append(Stipple(x, y))
    return stipples


class StipplingEngine:
    """
    Runs adaptive weighted Lloyd relaxation over a density field.

    Args:
        field: Target density (must not change while running)
        parameters: Run parameters
        sampler: Uniform sampler; defaults to a seeded one when
            ``parameters.seed`` is set, unseeded otherwise
    """

    def __init__(self, field: DensityField, parameters: StippleParameters,
                 sampler: Optional[Sampler] = None):
        self.field = field
        self.parameters = parameters
        self.sampler = sampler if sampler is not None else make_sampler(parameters.seed)
        self.area = target_area(parameters.initial_stipple_radius)

        self.state = EngineState.INITIALIZING
        self.convergence = ConvergenceState(
            initial_error_threshold=parameters.initial_error_threshold,
            convergence_rate=parameters.convergence_rate,
        )
        self.stipples: List[Stipple] = []

    def _initialize(self) -> None:
        count = initial_population_size(
            self.field.width, self.field.height, self.parameters.initial_stipple_radius
        )
        self.stipples = create_random_stipples(
            count, self.field.width, self.field.height, self.sampler
        )
        self.state = EngineState.ITERATING

        logger.info("Stippling started",
                    width=self.field.width, height=self.field.height,
                    initial_stipples=count, target_area=self.area,
                    max_iterations=self.parameters.max_iterations)

    def _snapshot(self) -> List[StippleModel]:
        normalized = normalize_stipples(self.stipples, self.field.width, self.field.height)
        return [StippleModel.from_stipple(s) for s in normalized]

    def step(self) -> ProgressMessage:
        """Run one relaxation iteration and report it."""
        if self.state is not EngineState.ITERATING:
            raise RuntimeError(f"Cannot step an engine in state {self.state.value}")

        result = relax_step(
            self.stipples,
            self.field,
            self.area,
            self.convergence.error_threshold,
            self.sampler,
        )
        self.stipples = result.stipples
        self.convergence.changed = result.changed
        self.convergence.iteration += 1

        logger.debug("Iteration complete",
                     iteration=self.convergence.iteration,
                     stipples=len(self.stipples),
                     deleted=result.deleted, split=result.split, moved=result.moved,
                     error_threshold=self.convergence.error_threshold)

        if (not result.changed
                or self.convergence.iteration >= self.parameters.max_iterations):
            self.state = EngineState.CONVERGED

        return ProgressMessage(
            progress=progress_percent(self.convergence.iteration, self.parameters.max_iterations),
            iteration=self.convergence.iteration,
            stipples=self._snapshot(),
        )

    def finish(self) -> DoneMessage:
        """Normalize the final population and build the terminal message."""
        self.stipples = normalize_stipples(self.stipples, self.field.width, self.field.height)
        self.state = EngineState.CONVERGED

        logger.info("Stippling finished",
                    iterations=self.convergence.iteration,
                    stipples=len(self.stipples),
                    converged=not self.convergence.changed)

        return DoneMessage(
            iteration=self.convergence.iteration,
            stipples=[StippleModel.from_stipple(s) for s in self.stipples],
        )

    def run(self) -> Iterator[Union[ProgressMessage, DoneMessage]]:
        """
        Yield a progress message per iteration, then the terminal message.

        The generator suspends between iterations only; dropping it is a
        valid way to cancel.
        """
        if self.state is not EngineState.INITIALIZING:
            raise RuntimeError("Engine has already been run")

        self._initialize()
        if self.parameters.max_iterations == 0:
            self.state = EngineState.CONVERGED

        while self.state is EngineState.ITERATING:
            yield self.step()

        yield self.finish()

    def run_to_completion(self, on_message: Optional[MessageCallback] = None) -> DoneMessage:
        """Drive ``run()`` to the end, forwarding every message to ``on_message``."""
        final = None
        for message in self.run():
            if on_message is not None:
                on_message(message)
            final = message
        return final


def stipple_density_field(field: DensityField,
                          parameters: Optional[StippleParameters] = None,
                          sampler: Optional[Sampler] = None,
                          on_message: Optional[MessageCallback] = None) -> DoneMessage:
    """
    Stipple ``field`` synchronously and return the final message.

    Args:
        field: Target density
        parameters: Run parameters (configured defaults when omitted)
        sampler: Optional uniform sampler for reproducible runs
        on_message: Called with every progress and the terminal message

    Returns:
        DoneMessage with the normalized stipples
    """
    if parameters is None:
        parameters = StippleParameters.from_settings()
    engine = StipplingEngine(field, parameters, sampler)
    return engine.run_to_completion(on_message)
