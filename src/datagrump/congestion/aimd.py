from typing import Any, Dict

from ..configuration import ControllerConfiguration, Scheme
from .base import ControllerCongestionControl, register_congestion_control


class AimdCongestionControl(ControllerCongestionControl):
    """
    Additive-increase / multiplicative-decrease, using a gap between two
    acks longer than the timeout as the congestion signal.
    """

    def __init__(self, *, configuration: ControllerConfiguration) -> None:
        super().__init__(configuration=configuration)
        self._ai_step = configuration.ai_step
        self._md_factor = configuration.md_factor
        self.previous_ack_time = 0.0

    def on_ack_received(
        self,
        *,
        sequence_number: int,
        send_timestamp: float,
        recv_timestamp: float,
        now: float,
    ) -> None:
        gap = now - self.previous_ack_time
        if gap > self.get_timeout_ms():
            # multiplicative decrease
            self.congestion_window *= self._md_factor
        else:
            # additive increase
            self.congestion_window += self._ai_step / self.congestion_window
        self.congestion_window = max(self.congestion_window, self.minimum_window)
        self.previous_ack_time = now

    def get_log_data(self) -> Dict[str, Any]:
        data = super().get_log_data()
        data["previous_ack_time"] = self.previous_ack_time
        return data


register_congestion_control(Scheme.AIMD, AimdCongestionControl)
