#
# drive a congestion controller over a simulated bottleneck link
#

import argparse
import heapq
import logging
import random
from collections import deque
from typing import Deque, List, Tuple

from datagrump.configuration import ControllerConfiguration, Scheme
from datagrump.controller import Controller
from datagrump.logger import ControllerFileLogger

logger = logging.getLogger("simulate")


class BottleneckLink:
    """
    A single queue drained at a capacity which changes every `period`
    milliseconds, followed by a fixed propagation delay in each direction.
    """

    def __init__(
        self, *, capacity: float, one_way_delay: int, period: int, seed: int
    ) -> None:
        self._capacity = capacity
        self._credit = 0.0
        self._one_way_delay = one_way_delay
        self._period = period
        self._random = random.Random(seed)
        self._rate = capacity

        self.acks: List[Tuple[int, int, int, int]] = []
        self.queue: Deque[Tuple[int, int]] = deque()

    def send(self, *, sequence_number: int, now: int) -> None:
        self.queue.append((sequence_number, now + self._one_way_delay))

    def tick(self, now: int) -> None:
        if now % self._period == 0:
            self._rate = self._capacity * self._random.uniform(0.2, 1.8)

        self._credit += self._rate
        while self.queue and self._credit >= 1.0:
            sequence_number, arrival = self.queue[0]
            if arrival > now:
                break
            self.queue.popleft()
            self._credit -= 1.0
            heapq.heappush(
                self.acks,
                (now + self._one_way_delay, sequence_number, arrival, now),
            )
        if not self.queue:
            self._credit = 0.0


def main(
    configuration: ControllerConfiguration,
    link: BottleneckLink,
    duration: int,
) -> None:
    controller = Controller(configuration=configuration)
    delivered = 0
    delay_total = 0
    in_flight = 0
    last_activity = 0
    next_sequence_number = 0
    send_times = {}

    for now in range(duration):
        # deliver acks
        while link.acks and link.acks[0][0] <= now:
            ack_time, sequence_number, _, recv_time = heapq.heappop(link.acks)
            send_time = send_times.pop(sequence_number)
            controller.ack_received(sequence_number, send_time, recv_time, ack_time)
            delivered += 1
            delay_total += ack_time - send_time
            in_flight -= 1
            last_activity = now

        # send while the window allows it, or one datagram after a timeout
        timed_out = now - last_activity >= controller.timeout_ms()
        while in_flight < controller.window_size() or timed_out:
            controller.datagram_was_sent(next_sequence_number, now)
            link.send(sequence_number=next_sequence_number, now=now)
            send_times[next_sequence_number] = now
            next_sequence_number += 1
            in_flight += 1
            if timed_out:
                last_activity = now
                timed_out = False

        link.tick(now)

        if now and now % 1000 == 0:
            logger.info(
                "t=%d ms window=%d in_flight=%d queue=%d",
                now,
                controller.window_size(),
                in_flight,
                len(link.queue),
            )

    controller.close()
    logger.info(
        "Delivered %d datagrams in %d ms (%.2f datagrams/ms), "
        "average RTT %.1f ms",
        delivered,
        duration,
        delivered / duration,
        delay_total / delivered if delivered else 0.0,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Congestion controller simulation")
    parser.add_argument(
        "--scheme",
        type=str,
        choices=[scheme.value for scheme in Scheme],
        default=Scheme.RATE_PREDICTION.value,
        help="the congestion control scheme to use",
    )
    parser.add_argument(
        "--capacity",
        type=float,
        default=1.0,
        help="the average link capacity in datagrams per millisecond",
    )
    parser.add_argument(
        "--delay", type=int, default=20, help="the one-way delay in milliseconds"
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=30000,
        help="the simulated duration in milliseconds",
    )
    parser.add_argument(
        "--period",
        type=int,
        default=500,
        help="how often in milliseconds the link capacity changes",
    )
    parser.add_argument("--seed", type=int, default=0, help="the random seed")
    parser.add_argument(
        "-q",
        "--controller-log",
        type=str,
        help="log controller events to QLOG files in the given directory",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="increase logging verbosity"
    )

    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    configuration = ControllerConfiguration(scheme=Scheme(args.scheme))
    if args.controller_log:
        configuration.controller_logger = ControllerFileLogger(args.controller_log)

    main(
        configuration=configuration,
        link=BottleneckLink(
            capacity=args.capacity,
            one_way_delay=args.delay,
            period=args.period,
            seed=args.seed,
        ),
        duration=args.duration,
    )
