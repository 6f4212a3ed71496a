import logging
import os
from typing import Any, Optional, Tuple

from .configuration import ControllerConfiguration, Scheme
from .congestion import aimd, delay, rate  # noqa
from .congestion.base import create_congestion_control
from .logger import ControllerLoggerTrace, hexdump

logger = logging.getLogger("datagrump")


class ControllerAdapter(logging.LoggerAdapter):
    def process(self, msg: str, kwargs: Any) -> Tuple[str, Any]:
        return "[%s] %s" % (self.extra["id"], msg), kwargs


class Controller:
    """
    A congestion window controller for a datagram sender.

    The sender asks :meth:`window_size` before sending, reports every
    datagram it sends with :meth:`datagram_was_sent` and every ack it
    receives with :meth:`ack_received`, and sizes its idle timer with
    :meth:`timeout_ms`. The controller never performs I/O: all timestamps
    are supplied by the caller, in milliseconds.

    :param configuration: The controller configuration.
    :param session_id: An identifier for the sending session, used in logs.
    """

    def __init__(
        self,
        *,
        configuration: Optional[ControllerConfiguration] = None,
        session_id: Optional[bytes] = None,
    ) -> None:
        if configuration is None:
            configuration = ControllerConfiguration()
        configuration.validate()

        self._configuration = configuration
        self._session_id = session_id if session_id is not None else os.urandom(8)

        # logging
        self._logger = ControllerAdapter(logger, {"id": hexdump(self._session_id)})
        self._controller_logger: Optional[ControllerLoggerTrace] = None
        if configuration.controller_logger:
            self._controller_logger = configuration.controller_logger.start_trace(
                session_id=self._session_id,
                scheme=configuration.scheme.value,
                configuration=configuration.get_log_data(),
            )

        # congestion control
        self._cc = create_congestion_control(
            configuration.scheme, configuration=configuration
        )

    @property
    def configuration(self) -> ControllerConfiguration:
        return self._configuration

    @property
    def congestion_window(self) -> float:
        """
        The real-valued congestion window, in datagrams.
        """
        return self._cc.congestion_window

    @property
    def scheme(self) -> Scheme:
        return self._configuration.scheme

    def window_size(self) -> int:
        """
        Return the number of datagrams which may be in flight.
        """
        window = int(self._cc.congestion_window)
        self._logger.debug("Window size is %d", window)
        return window

    def datagram_was_sent(self, sequence_number: int, send_timestamp: float) -> None:
        """
        Notify the controller that a datagram was sent.

        :param sequence_number: The sequence number of the sent datagram.
        :param send_timestamp: When the datagram was sent.
        """
        self._logger.debug(
            "At time %s sent datagram %d", send_timestamp, sequence_number
        )
        self._cc.on_datagram_sent(sequence_number=sequence_number, now=send_timestamp)

        if self._controller_logger is not None:
            self._controller_logger.log_event(
                category="recovery",
                event="datagram_sent",
                data={"packet_number": sequence_number},
                now=send_timestamp,
            )

    def ack_received(
        self,
        sequence_number_acked: int,
        send_timestamp_acked: float,
        recv_timestamp_acked: float,
        timestamp_ack_received: float,
    ) -> None:
        """
        Update the congestion state for an acknowledgment.

        Acks must be reported in the order they arrive.

        :param sequence_number_acked: The sequence number acknowledged.
        :param send_timestamp_acked: When the acknowledged datagram was sent,
            by the sender's clock.
        :param recv_timestamp_acked: When the acknowledged datagram was
            received, by the receiver's clock.
        :param timestamp_ack_received: When the ack was received, by the
            sender's clock.
        """
        self._logger.debug(
            "At time %s received ack for datagram %d "
            "(send @ time %s, received @ time %s by receiver's clock)",
            timestamp_ack_received,
            sequence_number_acked,
            send_timestamp_acked,
            recv_timestamp_acked,
        )
        self._cc.on_ack_received(
            sequence_number=sequence_number_acked,
            send_timestamp=send_timestamp_acked,
            recv_timestamp=recv_timestamp_acked,
            now=timestamp_ack_received,
        )
        assert (
            self._cc.congestion_window >= self._cc.minimum_window
        ), "window below floor"

        if self._controller_logger is not None:
            self._controller_logger.log_event(
                category="recovery",
                event="ack_received",
                data=self._controller_logger.encode_ack(
                    sequence_number=sequence_number_acked,
                    send_timestamp=send_timestamp_acked,
                    recv_timestamp=recv_timestamp_acked,
                    ack_timestamp=timestamp_ack_received,
                ),
                now=timestamp_ack_received,
            )
            self._controller_logger.log_event(
                category="recovery",
                event="metrics_updated",
                data=self._cc.get_log_data(),
                now=timestamp_ack_received,
            )

    def timeout_ms(self) -> int:
        """
        Return how long, in milliseconds, the sender should wait without
        an ack before acting.
        """
        return self._cc.get_timeout_ms()

    def close(self) -> None:
        """
        End the session's event trace, if any.
        """
        if self._controller_logger is not None:
            self._configuration.controller_logger.end_trace(self._controller_logger)
            self._controller_logger = None
