"""Timer-related utilities for cibtxn."""

__all__ = ["Timer"]
__copyright__ = "Copyright 2000-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

import time


class Timer:
    """
    A class for measuring how long a cluster operation took.

    A Timer is used as a context manager around the operation, like so:

        with Timer(logger, "update", "settle"):
            ...

    The elapsed time is logged at debug level when the block exits, whether
    or not it raised.
    """

    def __init__(self, logger, operation, timer_name):
        """
        Create a new Timer instance.

        Arguments:
        logger      -- A LogFactory instance used to record the runtime
        operation   -- The name of the operation being timed, usually the
                       resource it acts on
        timer_name  -- The name of this timer
        """
        self._logger = logger
        self._start_time = None
        self._operation = operation
        self._timer_name = timer_name

    def __enter__(self):
        """When used as a context manager, start the timer."""
        self.start()
        return self

    def __exit__(self, *args):
        """When used as a context manager, log the elapsed time."""
        self._logger.debug("%s:%s runtime: %.2f" % (self._operation, self._timer_name, self.elapsed))

    def start(self):
        """Start the timer."""
        self._start_time = time.time()

    @property
    def elapsed(self):
        """Return how long the timer has been running for."""
        return time.time() - self._start_time
