import binascii
import json
import os
import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional

QLOG_VERSION = "0.3"


def hexdump(data: bytes) -> str:
    return binascii.hexlify(data).decode("ascii")


class ControllerLoggerTrace:
    """
    A congestion controller event trace.

    Events are logged in the format defined by qlog, using the `recovery`
    category for everything the controller observes or decides.

    See:
    - https://datatracker.ietf.org/doc/html/draft-ietf-quic-qlog-main-schema-02
    - https://datatracker.ietf.org/doc/html/draft-marx-quic-qlog-quic-events
    """

    def __init__(
        self,
        *,
        session_id: bytes,
        scheme: str,
        configuration: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._configuration = configuration or {}
        self._session_id = session_id
        self._events: Deque[Dict[str, Any]] = deque()
        self._vantage_point = {"name": "datagrump", "type": "sender"}
        self._scheme = scheme

    def encode_ack(
        self,
        *,
        sequence_number: int,
        send_timestamp: float,
        recv_timestamp: float,
        ack_timestamp: float,
    ) -> Dict:
        return {
            "ack_time": ack_timestamp,
            "packet_number": sequence_number,
            "received_time": recv_timestamp,
            "sent_time": send_timestamp,
        }

    # CORE

    def log_event(
        self, *, category: str, event: str, data: Dict, now: Optional[float] = None
    ) -> None:
        """
        Record an event. `now` is the caller's clock in milliseconds; the
        wall clock is used when it is not given.
        """
        self._events.append(
            {
                "data": data,
                "name": category + ":" + event,
                "time": now if now is not None else time.time() * 1000,
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the trace as a dictionary which can be written as JSON.
        """
        return {
            "common_fields": {
                "configuration": self._configuration,
                "scheme": self._scheme,
                "session_id": hexdump(self._session_id),
            },
            "events": list(self._events),
            "vantage_point": self._vantage_point,
        }


class ControllerLogger:
    """
    A congestion controller event logger which stores traces in memory.
    """

    def __init__(self) -> None:
        self._traces: List[ControllerLoggerTrace] = []

    def start_trace(
        self,
        session_id: bytes,
        scheme: str,
        configuration: Optional[Dict[str, Any]] = None,
    ) -> ControllerLoggerTrace:
        """
        Start a trace for one sending session. `configuration` holds the
        controller settings recorded alongside the events.
        """
        trace = ControllerLoggerTrace(
            session_id=session_id, scheme=scheme, configuration=configuration
        )
        self._traces.append(trace)
        return trace

    def end_trace(self, trace: ControllerLoggerTrace) -> None:
        assert trace in self._traces, (
            "ControllerLoggerTrace does not belong to ControllerLogger"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the traces as a dictionary which can be written as JSON.
        """
        return {
            "qlog_format": "JSON",
            "qlog_version": QLOG_VERSION,
            "traces": [trace.to_dict() for trace in self._traces],
        }


class ControllerFileLogger(ControllerLogger):
    """
    A congestion controller event logger which writes one trace per file.
    """

    def __init__(self, path: str) -> None:
        if not os.path.isdir(path):
            raise ValueError(
                "Controller log output directory '%s' does not exist" % path
            )
        self.path = path
        super().__init__()

    def end_trace(self, trace: ControllerLoggerTrace) -> None:
        trace_dict = trace.to_dict()
        common_fields = trace_dict["common_fields"]
        trace_path = os.path.join(
            self.path,
            "%s-%s.qlog" % (common_fields["scheme"], common_fields["session_id"]),
        )
        with open(trace_path, "w") as logger_fp:
            json.dump(
                {
                    "qlog_format": "JSON",
                    "qlog_version": QLOG_VERSION,
                    "traces": [trace_dict],
                },
                logger_fp,
            )
        self._traces.remove(trace)
