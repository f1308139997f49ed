# Copyright 2019 Joan Puig
# See LICENSE for details


from typing import Iterable, List

import numpy as np


class TrailingWindow:
    """
    Circular buffer of the last samples of one metric together with their running average

    A slot holding 0 is treated as never used. While a slot is unused the average is the plain mean of every sample seen
    so far, once it is used the sample it holds is swapped out of a window sized average. A sample that is exactly 0 therefore
    puts its slot back in the first state the next time the window wraps onto it.
    """
    DEFAULT_CAPACITY = 10

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError('Window capacity must be at least 1, {} given'.format(capacity))

        self.values = np.zeros(capacity, dtype=np.float64)
        self.average = 0.0
        self.count = 0

    @property
    def capacity(self) -> int:
        return len(self.values)

    def update(self, value: float) -> float:
        i = self.count
        slot = i % self.capacity
        previous = self.values[slot]

        if previous == 0:
            average = (self.average * i + value) / (i + 1)
        else:
            average = (self.average * self.capacity - previous + value) / self.capacity

        self.values[slot] = value
        self.average = float(average)
        self.count = i + 1
        return self.average


def trailing_average(values: Iterable[float], capacity: int = TrailingWindow.DEFAULT_CAPACITY) -> List[float]:
    window = TrailingWindow(capacity)
    return [window.update(float(value)) for value in values]
