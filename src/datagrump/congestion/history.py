from typing import List, Optional, Sequence


def select_percentile(values: Sequence[float], percentile: float) -> float:
    """
    Return the value found at rank `percentile` once `values` are sorted
    in ascending order.
    """
    assert values, "cannot select a percentile of an empty batch"
    ordered = sorted(values)
    return ordered[int(percentile * len(ordered))]


class TickHistory:
    """
    Fixed-size history of per-tick observations.

    Two parallel buffers hold, for each tick, the sequence number seen at
    the start of the tick and the smoothed rate recorded at that tick. The
    first `delay_ticks` slots carry the tail of the previous batch, so that
    each of the `num_ratio_samples` anchor ticks of a batch can look
    `delay_ticks` ticks ahead.
    """

    def __init__(
        self, *, num_ratio_samples: int, delay_ticks: int, tick_len: float
    ) -> None:
        self._delay_ticks = delay_ticks
        self._num_ratio_samples = num_ratio_samples
        self._tick_len = tick_len

        self.capacity = num_ratio_samples + delay_ticks
        self.cursor = 0
        self.first_seqs: List[int] = [0 for i in range(self.capacity)]
        self.rates: List[float] = [0.0 for i in range(self.capacity)]
        self.ticks_recorded = 0

    @property
    def is_empty(self) -> bool:
        return self.ticks_recorded == 0

    @property
    def is_full(self) -> bool:
        return self.cursor == self.capacity

    @property
    def last_first_seq(self) -> int:
        assert self.cursor > 0, "no tick recorded in the current batch"
        return self.first_seqs[self.cursor - 1]

    def record(self, *, first_seq: int, rate: float) -> None:
        assert self.cursor < self.capacity, "tick history overflow"
        self.first_seqs[self.cursor] = first_seq
        self.rates[self.cursor] = rate
        self.cursor += 1
        self.ticks_recorded += 1

    def observed_ratios(self) -> List[float]:
        """
        Return, for each anchor tick of the batch, the throughput measured
        over the following `delay_ticks` ticks divided by the rate recorded
        at the anchor.

        Anchors whose recorded rate is zero give no usable ratio and are
        left out.
        """
        assert self.is_full, "ratio observations require a full batch"
        window = self._delay_ticks * self._tick_len
        ratios = []
        for i in range(self._num_ratio_samples):
            rate = self.rates[i]
            if rate <= 0:
                continue
            forward = self.first_seqs[i + self._delay_ticks] - self.first_seqs[i]
            ratios.append((forward / window) / rate)
        return ratios

    def estimate_ratio(self, *, percentile: float) -> Optional[float]:
        ratios = self.observed_ratios()
        if not ratios:
            return None
        return select_percentile(ratios, percentile)

    def rotate(self) -> None:
        """
        Keep the last `delay_ticks` observations as lookahead context for
        the next batch and discard the rest.
        """
        assert self.is_full, "rotation requires a full batch"
        n = self._num_ratio_samples
        self.first_seqs[: self._delay_ticks] = self.first_seqs[n:]
        self.rates[: self._delay_ticks] = self.rates[n:]
        self.cursor = self._delay_ticks
