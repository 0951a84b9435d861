import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from docker import DockerClient
from loguru import logger
from result import Err, Ok, Result

from container_monitor.data import ContainerStat, RawContainerRef
from container_monitor.helper import short_id


def calculate_cpu_percent(raw: Dict[str, Any]) -> float:
    """CPU usage percentage from a single non-streaming docker stats snapshot.

    Docker embeds the previous sample in the same payload under `precpu_stats`,
    so one snapshot is enough to derive a delta.

    Args:
        raw (Dict[str, Any]): Payload of `/containers/{id}/stats?stream=false`

    Raises:
        KeyError: If the usage counters are missing from the payload

    Returns:
        float: `(cpu_delta / system_delta) * online_cpus * 100`, rounded to 2 places.
            0.0 when there is no usable previous sample yet.
    """
    cpu_stats = raw["cpu_stats"]
    precpu_stats = raw["precpu_stats"]

    # A freshly started container has no previous sample
    previous_system_usage = precpu_stats.get("system_cpu_usage")
    if previous_system_usage is None:
        return 0.0

    cpu_delta = (
        cpu_stats["cpu_usage"]["total_usage"] - precpu_stats["cpu_usage"]["total_usage"]
    )
    system_delta = cpu_stats["system_cpu_usage"] - previous_system_usage

    if system_delta <= 0 or cpu_delta < 0:
        return 0.0

    online_cpus = (
        cpu_stats.get("online_cpus")
        or len(cpu_stats["cpu_usage"].get("percpu_usage") or [])
        or 1
    )

    cpu_percent = (cpu_delta / system_delta) * online_cpus * 100
    if not math.isfinite(cpu_percent):
        return 0.0

    return round(cpu_percent, 2)


def calculate_memory_mb(raw: Dict[str, Any]) -> float:
    """Resident memory usage in MB, rounded to 2 places."""
    usage = raw["memory_stats"]["usage"]
    return round(usage / (1024 * 1024), 2)


def parse_stats(name: str, raw: Dict[str, Any]) -> Result[ContainerStat, str]:
    try:
        return Ok(
            ContainerStat(
                name=name,
                cpu_percent=calculate_cpu_percent(raw),
                memory_mb=calculate_memory_mb(raw),
            )
        )
    except (KeyError, TypeError, ValueError) as e:
        return Err(
            "parse_stats: Malformed stats payload,\n"
            f"`name`: {name}\n"
            f"`e`: \n{e!r}\n"
        )


class MetricsCollector:
    def __init__(self, client: DockerClient):
        self.client = client

    def list_containers(self) -> List[RawContainerRef]:
        containers = self.client.api.containers()
        refs = [RawContainerRef.from_native(container) for container in containers]

        logger.debug(
            f"MetricsCollector.list_containers {self.client.api.base_url} = "
            f"{[ref.name for ref in refs]}"
        )

        return refs

    def fetch_stat(self, ref: RawContainerRef) -> Result[ContainerStat, str]:
        try:
            raw = self.client.api.stats(ref.id, stream=False)
        except Exception as e:
            return Err(
                "MetricsCollector.fetch_stat: Failed to fetch stats,\n"
                f"`ref.id`: {short_id(ref.id)}\n"
                f"`ref.name`: {ref.name}\n"
                f"`e`: \n{e}\n"
            )

        if not isinstance(raw, dict):
            return Err(
                "MetricsCollector.fetch_stat: Stats payload is not an object,\n"
                f"`ref.id`: {short_id(ref.id)}\n"
                f"`raw`: \n{raw!r}\n"
            )

        return parse_stats(ref.name, raw)

    def collect(self) -> List[ContainerStat]:
        """Sample every running container concurrently.

        A container whose stats cannot be fetched or parsed is logged and left out,
        the rest of the batch is still returned in listing order.

        Raises:
            docker.errors.DockerException: If the running containers cannot be listed
        """
        refs = self.list_containers()
        if not refs:
            return []

        # One worker per container so every stats request is in flight at once
        with ThreadPoolExecutor(max_workers=len(refs)) as executor:
            results = list(executor.map(self.fetch_stat, refs))

        stats: List[ContainerStat] = []
        for ref, result in zip(refs, results):
            if result.is_err():
                logger.error(
                    f"Error getting stats for container {short_id(ref.id)} ({ref.name}): "
                    f"{result.err()}"
                )
                continue

            stat = result.unwrap()
            logger.debug(f"MetricsCollector.collect - {stat}")
            stats.append(stat)

        return stats
