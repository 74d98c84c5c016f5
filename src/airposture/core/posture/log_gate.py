"""Rate limiter between the sensor stream and the posture log."""

import math
from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class LogGate:
    """Accepts at most one reading per ``interval`` seconds."""
    last_emit: float = -math.inf
    interval: float = 1.0

    def offer(self, t: float) -> Tuple["LogGate", bool]:
        if t - self.last_emit >= self.interval:
            return replace(self, last_emit=t), True
        return self, False
