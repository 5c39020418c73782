"""
NEvA Node Mutation Lock Module

This module implements the hysteresis loop that freezes node-adding and
node-removing mutations once the network size has stopped changing.

Classes:
    NodeMutationLock: Sliding-window detector of a plateau in the mean hidden-node count
"""

import numpy as np
from loguru import logger

class NodeMutationLock:
    """
    Tracks the mean number of hidden nodes over a sliding window of generations.

    After each evaluation the population's mean hidden-node count is written
    into the window (while unlocked). When the window average changes, relative
    to its previous value, by less than 'threshold', node mutations are locked
    for 'lock_time' generations and the window is cleared. While locked, each
    update only counts the lock down.

    A window size of 0 disables the mechanism.

    Public Attributes:
        window_size: Number of generations in the window
        lock_time:   Number of generations a lock lasts
        threshold:   Relative change below which the lock engages
        lock_count:  Remaining locked generations

    Public Properties:
        locked: Whether node mutations are currently frozen

    Public Methods:
        update(generation, mean_hidden): Feed the statistics of one generation
        reset():                         Clear window and lock
    """

    def __init__(self, window_size: int, lock_time: int, threshold: float):
        """
        Parameters:
            window_size: Number of generations in the window (0 disables the lock)
            lock_time:   Number of generations a lock lasts
            threshold:   Relative change below which the lock engages
        """
        self.window_size: int   = window_size
        self.lock_time  : int   = lock_time
        self.threshold  : float = threshold
        self.lock_count : int   = 0
        self.reset()

    def reset(self) -> None:
        self.lock_count = 0
        self._window    = np.zeros(max(self.window_size, 0))
        self._prev_mean = 0.0

    @property
    def locked(self) -> bool:
        return self.lock_count > 0

    def update(self, generation: int, mean_hidden: float) -> bool:
        """
        Feed the mean hidden-node count of one generation.

        Parameters:
            generation:  The generation number (selects the window slot)
            mean_hidden: Mean number of hidden nodes in the population

        Returns:
            Whether node mutations are locked for the next generation
        """
        if self.window_size > 0 and self.lock_count <= 0:
            self._window[generation % self.window_size] = mean_hidden
            cur_mean = float(np.mean(self._window))

            if self._prev_mean != 0.0:
                diff = abs(cur_mean - self._prev_mean) / self._prev_mean
                if diff < self.threshold:
                    self.lock_count = self.lock_time
                    self._window    = np.zeros(self.window_size)
                    self._prev_mean = 0.0
                    logger.debug("generation {}: node mutations locked for {} generations (change {:.4f})",
                                 generation, self.lock_time, diff)
                else:
                    self._prev_mean = cur_mean
            else:
                self._prev_mean = cur_mean
        else:
            self.lock_count -= 1
            if self.window_size > 0 and self.lock_count == 0:
                logger.debug("generation {}: node mutations unlocked", generation)

        return self.locked
