import logging
from typing import Any, Dict, Optional

from ..configuration import ControllerConfiguration, Scheme
from .base import ControllerCongestionControl, ewma, register_congestion_control
from .history import TickHistory

logger = logging.getLogger("datagrump")


class RateCongestionControl(ControllerCongestionControl):
    """
    Rate prediction congestion control.

    Acks are bucketed into fixed-width ticks. At every tick the delivery
    rate is sampled into a moving average, and the window is sized so that
    what is in flight drains within the target delay at the rate expected
    a short while ahead. That expectation is the current rate times a ratio
    which is re-estimated, once per batch of ticks, as a low percentile of
    the ratios observed in the past.
    """

    def __init__(self, *, configuration: ControllerConfiguration) -> None:
        self.minimum_window = configuration.min_cwnd
        super().__init__(configuration=configuration)
        self._alpha = configuration.ewma_alpha
        self._percentile = configuration.percentile
        self._target_delay = configuration.target_delay_ms
        self._tick_len = configuration.tick_len_ms

        self.history = TickHistory(
            num_ratio_samples=configuration.num_ratio_samples,
            delay_ticks=configuration.delay_ticks,
            tick_len=configuration.tick_len_ms,
        )
        self.largest_acked: Optional[int] = None
        self.last_tick_start: Optional[float] = None
        self.rate_ewma = configuration.initial_rate
        self.ratio_estimate = configuration.initial_ratio
        self.ratio_updates = 0

    def on_ack_received(
        self,
        *,
        sequence_number: int,
        send_timestamp: float,
        recv_timestamp: float,
        now: float,
    ) -> None:
        if self.largest_acked is None or sequence_number > self.largest_acked:
            self.largest_acked = sequence_number

        if self.last_tick_start is None:
            # the first ack starts the tick clock
            elapsed = 1
        else:
            elapsed = int((now - self.last_tick_start) // self._tick_len)
            if elapsed < 1:
                return

        # walk every tick boundary crossed since the previous ack
        for _ in range(elapsed):
            self._on_tick()
        self.last_tick_start = (now // self._tick_len) * self._tick_len

        self.congestion_window = max(
            self.minimum_window,
            self.rate_ewma * self.ratio_estimate * self._target_delay,
        )

    def get_log_data(self) -> Dict[str, Any]:
        data = super().get_log_data()
        data.update(
            {
                "rate": self.rate_ewma,
                "ratio": self.ratio_estimate,
                "ticks": self.history.ticks_recorded,
            }
        )
        return data

    def _on_tick(self) -> None:
        history = self.history
        if not history.is_empty:
            advanced = self.largest_acked - history.last_first_seq
            self.rate_ewma = ewma(
                alpha=self._alpha,
                sample=advanced / self._tick_len,
                average=self.rate_ewma,
            )
        history.record(first_seq=self.largest_acked, rate=self.rate_ewma)

        if history.is_full:
            ratio = history.estimate_ratio(percentile=self._percentile)
            if ratio is not None:
                self.ratio_estimate = ratio
                self.ratio_updates += 1
                logger.debug("Ratio estimate updated to %f", ratio)
            else:
                logger.debug(
                    "No usable ratio in batch, keeping %f", self.ratio_estimate
                )
            history.rotate()


register_congestion_control(Scheme.RATE_PREDICTION, RateCongestionControl)
