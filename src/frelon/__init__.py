"""frelon: adaptive micro-benchmark harness.

Register benchmark bodies on a :class:`Suite`, then run it: each body
is calibrated to a per-sample iteration count, sampled over several
passes, and summarized as latency percentiles per operation.
"""

from frelon.bench.config import ConfigurationError, SuiteOptions
from frelon.bench.runner import Suite
from frelon.bench.timing import Timer, busy_wait

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Suite",
    "SuiteOptions",
    "Timer",
    "__version__",
    "busy_wait",
]
