from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .logger import ControllerLogger


class Scheme(Enum):
    AIMD = "aimd"
    DELAY_THRESHOLD = "delay"
    RATE_PREDICTION = "rate"


@dataclass
class ControllerConfiguration:
    """
    A congestion controller configuration.
    """

    scheme: Scheme = Scheme.RATE_PREDICTION
    """
    The congestion control scheme to use for the whole session.

    Currently supported schemes: `Scheme.AIMD`, `Scheme.DELAY_THRESHOLD`,
    `Scheme.RATE_PREDICTION`.
    """

    initial_cwnd: float = 15.0
    """
    The initial congestion window, in datagrams.
    """

    ai_step: float = 1.0
    """
    The additive increase applied over one window's worth of acks.
    """

    md_factor: float = 0.5
    """
    The factor by which the window is multiplied on a congestion signal.
    """

    delay_threshold: float = 100
    """
    The smoothed round-trip time in milliseconds above which the delay
    threshold scheme decreases its window.
    """

    ewma_alpha: float = 0.5
    """
    The weight given to the newest sample by the moving averages.
    """

    timeout_ms: int = 100
    """
    The time in milliseconds the sender should wait without an ack.

    The AIMD scheme also uses it as its inter-ack gap threshold.
    """

    tick_len_ms: float = 20.0
    """
    The width in milliseconds of a rate estimation tick.
    """

    num_ratio_samples: int = 50
    """
    The number of ratio observations collected before the ratio estimate
    is refreshed.
    """

    target_delay_ms: float = 100
    """
    The queueing delay in milliseconds the rate prediction scheme aims for.
    """

    min_cwnd: float = 10.0
    """
    The smallest window the rate prediction scheme will advise.
    """

    percentile: float = 0.10
    """
    The rank, between 0 and 1, of the observed ratio used as the estimate.
    """

    initial_rate: float = 1.0
    """
    The starting delivery rate estimate, in datagrams per millisecond.
    """

    initial_ratio: float = 0.5
    """
    The starting ratio between the rate expected a target delay ahead and
    the current rate.
    """

    controller_logger: Optional[ControllerLogger] = None
    """
    The :class:`~datagrump.logger.ControllerLogger` instance to log events to.
    """

    def get_log_data(self) -> Dict[str, Any]:
        """
        Return the numeric settings, for inclusion in event traces.
        """
        return {
            name: value
            for name, value in sorted(vars(self).items())
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        }

    @property
    def delay_ticks(self) -> int:
        """
        The number of ticks covered by the target delay.
        """
        return int(self.target_delay_ms / self.tick_len_ms)

    def validate(self) -> None:
        """
        Check that the configuration can be used to build a controller.
        """
        if not isinstance(self.scheme, Scheme):
            raise ValueError("Unknown congestion control scheme: %r" % self.scheme)
        if self.initial_cwnd < 1.0:
            raise ValueError("initial_cwnd must be at least 1.0")
        if not 0.0 < self.md_factor < 1.0:
            raise ValueError("md_factor must be between 0 and 1")
        if not 0.0 < self.ewma_alpha <= 1.0:
            raise ValueError("ewma_alpha must be in (0, 1]")
        if self.tick_len_ms <= 0:
            raise ValueError("tick_len_ms must be positive")
        if self.delay_ticks < 1:
            raise ValueError("target_delay_ms must span at least one tick")
        if self.num_ratio_samples < 1:
            raise ValueError("num_ratio_samples must be at least 1")
        if not 0.0 <= self.percentile < 1.0:
            raise ValueError("percentile must be in [0, 1)")
        if self.min_cwnd < 1.0:
            raise ValueError("min_cwnd must be at least 1.0")
