from typing import Any, Dict

from ..configuration import ControllerConfiguration, Scheme
from .base import (
    ControllerCongestionControl,
    ewma,
    register_congestion_control,
)


class DelayCongestionControl(ControllerCongestionControl):
    """
    Delay threshold congestion control.

    The window grows additively while the smoothed RTT stays under the
    threshold and is cut multiplicatively once it goes above.
    """

    def __init__(self, *, configuration: ControllerConfiguration) -> None:
        super().__init__(configuration=configuration)
        self._ai_step = configuration.ai_step
        self._alpha = configuration.ewma_alpha
        self._delay_threshold = configuration.delay_threshold
        self._md_factor = configuration.md_factor
        self.rtt_ewma = 0.0

    def on_ack_received(
        self,
        *,
        sequence_number: int,
        send_timestamp: float,
        recv_timestamp: float,
        now: float,
    ) -> None:
        self.rtt_ewma = ewma(
            alpha=self._alpha, sample=now - send_timestamp, average=self.rtt_ewma
        )
        if self.rtt_ewma > self._delay_threshold:
            self.congestion_window *= self._md_factor
        else:
            self.congestion_window += self._ai_step / self.congestion_window
        self.congestion_window = max(self.congestion_window, self.minimum_window)

    def get_log_data(self) -> Dict[str, Any]:
        data = super().get_log_data()
        data["smoothed_rtt"] = self.rtt_ewma
        return data


register_congestion_control(Scheme.DELAY_THRESHOLD, DelayCongestionControl)
