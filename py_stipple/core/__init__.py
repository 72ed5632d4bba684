"""
Core stippling functionality.
"""

from .density_field import DensityField
from .engine import EngineState, StipplingEngine, stipple_density_field
from .messages import (
    DoneMessage, FailedMessage, InitMessage, ProgressMessage,
    StippleModel, StippleParameters,
)
from .sampler import AleaSampler, make_sampler
from .stipple import Stipple
from .tessellation import Tessellation, build_tessellation
from .worker import StippleWorker, StippleWorkerError, run_in_worker

__all__ = ['DensityField', 'EngineState', 'StipplingEngine', 'stipple_density_field',
           'DoneMessage', 'FailedMessage', 'InitMessage', 'ProgressMessage',
           'StippleModel', 'StippleParameters', 'AleaSampler', 'make_sampler',
           'Stipple', 'Tessellation', 'build_tessellation',
           'StippleWorker', 'StippleWorkerError', 'run_in_worker']
