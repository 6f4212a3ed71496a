import abc
from typing import Any, Dict, Protocol

from ..configuration import ControllerConfiguration, Scheme

K_MINIMUM_WINDOW = 1.0


def ewma(*, alpha: float, sample: float, average: float) -> float:
    """
    Fold `sample` into an exponentially-weighted moving `average`.
    """
    return alpha * sample + (1 - alpha) * average


class ControllerCongestionControl(abc.ABC):
    """
    Base class for congestion control schemes.
    """

    congestion_window: float = 0.0
    minimum_window: float = K_MINIMUM_WINDOW

    def __init__(self, *, configuration: ControllerConfiguration) -> None:
        self.congestion_window = max(configuration.initial_cwnd, self.minimum_window)
        self._timeout_ms = configuration.timeout_ms

    @abc.abstractmethod
    def on_ack_received(
        self,
        *,
        sequence_number: int,
        send_timestamp: float,
        recv_timestamp: float,
        now: float,
    ) -> None: ...

    def on_datagram_sent(self, *, sequence_number: int, now: float) -> None:
        pass

    def get_timeout_ms(self) -> int:
        return self._timeout_ms

    def get_log_data(self) -> Dict[str, Any]:
        return {"cwnd": self.congestion_window}


class ControllerCongestionControlFactory(Protocol):
    def __call__(
        self, *, configuration: ControllerConfiguration
    ) -> ControllerCongestionControl: ...


_factories: Dict[Scheme, ControllerCongestionControlFactory] = {}


def create_congestion_control(
    scheme: Scheme, *, configuration: ControllerConfiguration
) -> ControllerCongestionControl:
    """
    Create an instance of the `scheme` congestion control scheme.
    """
    try:
        factory = _factories[scheme]
    except KeyError:
        raise ValueError(f"Unknown congestion control scheme: {scheme}")
    return factory(configuration=configuration)


def register_congestion_control(
    scheme: Scheme, factory: ControllerCongestionControlFactory
) -> None:
    """
    Register a congestion control scheme.
    """
    _factories[scheme] = factory
