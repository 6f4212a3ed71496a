import json
import os
import tempfile
from unittest import TestCase

from datagrump.logger import ControllerFileLogger, ControllerLogger

SINGLE_TRACE = {
    "qlog_format": "JSON",
    "qlog_version": "0.3",
    "traces": [
        {
            "common_fields": {
                "configuration": {},
                "scheme": "rate",
                "session_id": "0000000000000000",
            },
            "events": [],
            "vantage_point": {"name": "datagrump", "type": "sender"},
        }
    ],
}


class ControllerLoggerTest(TestCase):
    def test_empty(self):
        logger = ControllerLogger()
        self.assertEqual(
            logger.to_dict(),
            {"qlog_format": "JSON", "qlog_version": "0.3", "traces": []},
        )

    def test_single_trace(self):
        logger = ControllerLogger()
        trace = logger.start_trace(session_id=bytes(8), scheme="rate")
        logger.end_trace(trace)
        self.assertEqual(logger.to_dict(), SINGLE_TRACE)

    def test_trace_configuration(self):
        logger = ControllerLogger()
        trace = logger.start_trace(
            session_id=bytes(8), scheme="aimd", configuration={"timeout_ms": 250}
        )
        self.assertEqual(
            trace.to_dict()["common_fields"],
            {
                "configuration": {"timeout_ms": 250},
                "scheme": "aimd",
                "session_id": "0000000000000000",
            },
        )

    def test_log_event_wall_clock(self):
        logger = ControllerLogger()
        trace = logger.start_trace(session_id=bytes(8), scheme="rate")
        trace.log_event(category="recovery", event="datagram_sent", data={})
        event = trace.to_dict()["events"][0]
        self.assertEqual(event["name"], "recovery:datagram_sent")
        self.assertGreater(event["time"], 0)


class ControllerFileLoggerTest(TestCase):
    def test_invalid_path(self):
        with self.assertRaises(ValueError) as cm:
            ControllerFileLogger("this_path_should_not_exist")
        self.assertEqual(
            str(cm.exception),
            "Controller log output directory 'this_path_should_not_exist' "
            "does not exist",
        )

    def test_single_trace(self):
        with tempfile.TemporaryDirectory() as dirpath:
            logger = ControllerFileLogger(dirpath)
            trace = logger.start_trace(session_id=bytes(8), scheme="rate")
            logger.end_trace(trace)

            filepath = os.path.join(dirpath, "rate-0000000000000000.qlog")
            self.assertTrue(os.path.exists(filepath))

            with open(filepath, "r") as fp:
                data = json.load(fp)
            self.assertEqual(data, SINGLE_TRACE)
