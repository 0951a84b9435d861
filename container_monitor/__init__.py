from container_monitor.collector import MetricsCollector
from container_monitor.channel import NotionAPIError, NotionChannel
from container_monitor.data import ContainerStat
from container_monitor.page import PageSynchronizer
from container_monitor.scheduler import Scheduler

__all__ = [
    "ContainerStat",
    "MetricsCollector",
    "NotionAPIError",
    "NotionChannel",
    "PageSynchronizer",
    "Scheduler",
]
