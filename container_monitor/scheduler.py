import threading
import time
from typing import Callable, Optional

from loguru import logger

from container_monitor.collector import MetricsCollector
from container_monitor.page import PageSynchronizer


class Scheduler:
    def __init__(
        self,
        collector: MetricsCollector,
        synchronizer: PageSynchronizer,
        interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.collector = collector
        self.synchronizer = synchronizer
        self.interval = interval
        self._clock = clock

        self._busy = threading.Lock()
        self._stopped = threading.Event()

    def run_cycle(self) -> bool:
        """Collect stats and push them to the page once.

        Errors are logged and swallowed so the next cycle still runs. A call made
        while another cycle is in progress is skipped.

        Returns:
            bool: Whether the cycle completed
        """
        if not self._busy.acquire(blocking=False):
            logger.warning("Scheduler.run_cycle - Previous cycle still running, skipping...")
            return False

        try:
            stats = self.collector.collect()
            self.synchronizer.sync(stats)
            logger.info(f"Scheduler.run_cycle - Updated page with {len(stats)} container(s)")
            return True
        except Exception as e:
            logger.error(f"Error in monitoring loop: {e}")
            return False
        finally:
            self._busy.release()

    def run(self, max_cycles: Optional[int] = None, wait_first: bool = False):
        """Run a cycle now, then one every `interval` seconds until `stop` is called.

        With `wait_first` the first cycle is only run after one `interval`.

        The next cycle is due `interval` seconds after the previous one started, a
        cycle that overruns pushes the next one back instead of overlapping it.
        """
        if wait_first and self._stopped.wait(self.interval):
            return

        cycles = 0
        while not self._stopped.is_set():
            started = self._clock()
            self.run_cycle()
            cycles += 1

            if max_cycles is not None and cycles >= max_cycles:
                break

            remaining = self.interval - (self._clock() - started)
            if remaining <= 0:
                logger.warning(
                    f"Scheduler.run - Cycle took longer than {self.interval}s, starting next one now"
                )
                continue

            self._stopped.wait(remaining)

    def stop(self):
        self._stopped.set()
