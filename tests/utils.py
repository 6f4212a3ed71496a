import logging
import os

from datagrump.configuration import ControllerConfiguration, Scheme
from datagrump.controller import Controller


def create_controller(scheme: Scheme, **kwargs) -> Controller:
    return Controller(
        configuration=ControllerConfiguration(scheme=scheme, **kwargs),
        session_id=bytes(8),
    )


def feed_acks(controller: Controller, acks) -> None:
    """
    Report `(sequence_number, send_time, ack_time)` tuples to the controller.
    """
    for sequence_number, send_time, ack_time in acks:
        controller.ack_received(sequence_number, send_time, send_time, ack_time)


if os.environ.get("DATAGRUMP_DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
