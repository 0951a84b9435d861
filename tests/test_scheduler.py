import threading
import unittest
from unittest.mock import Mock, patch

from container_monitor.collector import MetricsCollector
from container_monitor.data import ContainerStat
from container_monitor.page import PageSynchronizer
from container_monitor.scheduler import Scheduler


class TestScheduler(unittest.TestCase):
    def setUp(self):
        self.stats = [ContainerStat(name="web", cpu_percent=1.0, memory_mb=2.0)]
        self.collector = Mock(spec=MetricsCollector)
        self.collector.collect.return_value = self.stats
        self.synchronizer = Mock(spec=PageSynchronizer)
        self.scheduler = Scheduler(self.collector, self.synchronizer, interval=60.0)

    def test_run_cycle_syncs_collected_stats(self):
        self.assertTrue(self.scheduler.run_cycle())
        self.synchronizer.sync.assert_called_once_with(self.stats)

    @patch("container_monitor.scheduler.logger")
    def test_run_cycle_swallows_errors(self, mock_logger):
        self.synchronizer.sync.side_effect = RuntimeError("Notion API error: 500")

        self.assertFalse(self.scheduler.run_cycle())
        mock_logger.error.assert_called_once()

        self.synchronizer.sync.side_effect = None
        self.assertTrue(self.scheduler.run_cycle())

    @patch("container_monitor.scheduler.logger")
    def test_run_cycle_skips_while_busy(self, mock_logger):
        entered = threading.Event()
        release = threading.Event()

        def slow_sync(stats):
            entered.set()
            release.wait(5)

        self.synchronizer.sync.side_effect = slow_sync
        worker = threading.Thread(target=self.scheduler.run_cycle)
        worker.start()
        entered.wait(5)

        self.assertFalse(self.scheduler.run_cycle())
        mock_logger.warning.assert_called_once()

        release.set()
        worker.join(5)
        self.assertEqual(self.synchronizer.sync.call_count, 1)

    def test_run_stops_after_max_cycles(self):
        scheduler = Scheduler(self.collector, self.synchronizer, interval=0.01)
        scheduler.run(max_cycles=3)
        self.assertEqual(self.synchronizer.sync.call_count, 3)

    def test_run_returns_when_stopped(self):
        scheduler = Scheduler(self.collector, self.synchronizer, interval=60.0)
        scheduler.stop()

        scheduler.run(wait_first=True)
        scheduler.run()

        self.synchronizer.sync.assert_not_called()

    def test_stop_interrupts_wait(self):
        scheduler = Scheduler(self.collector, self.synchronizer, interval=60.0)
        self.synchronizer.sync.side_effect = lambda stats: scheduler.stop()

        worker = threading.Thread(target=scheduler.run)
        worker.start()
        worker.join(5)

        self.assertFalse(worker.is_alive())
        self.assertEqual(self.synchronizer.sync.call_count, 1)


if __name__ == "__main__":
    unittest.main()
