import os
import sys
from typing import Mapping, Optional

import docker
from dotenv import load_dotenv
from loguru import logger

from container_monitor.channel import NotionChannel
from container_monitor.collector import MetricsCollector
from container_monitor.config import (
    AppConfig,
    ConfigError,
    MonitorConfig,
    NotionConfig,
    load_config,
)
from container_monitor.page import PageSynchronizer
from container_monitor.scheduler import Scheduler


def setup_logging(config: AppConfig):
    logger.remove()
    logger.add(sys.stderr, level=config.log_level)

    if config.log_file:
        logger.add(config.log_file, level=config.log_level, rotation="10 MB")


def main(environ: Optional[Mapping[str, str]] = None):
    load_dotenv()

    try:
        config = load_config(os.environ if environ is None else environ)
    except ConfigError as e:
        logger.error(f"{e}. Please set NOTION_TOKEN and NOTION_PAGE_ID")
        sys.exit(1)

    setup_logging(config)

    notion_config = NotionConfig()
    monitor_config = MonitorConfig()

    docker_client = docker.from_env()
    channel = NotionChannel(config.notion_token, notion_config)
    synchronizer = PageSynchronizer(channel, config.notion_page_id, notion_config)
    collector = MetricsCollector(docker_client)

    # Recover blocks orphaned by a previous run, the in-memory handle is gone
    try:
        deleted = synchronizer.reconcile()
        logger.info(f"Removed {deleted} leftover block(s) from page {config.notion_page_id}")
    except Exception as e:
        logger.error(f"Error cleaning up old blocks: {e}")

    scheduler = Scheduler(collector, synchronizer, monitor_config.refresh_interval)

    try:
        if scheduler.run_cycle():
            logger.info(f"Initial update completed for page {config.notion_page_id}")

        scheduler.run(wait_first=True)
    except KeyboardInterrupt:
        logger.info("Stopping container monitor...")
        scheduler.stop()


if __name__ == "__main__":
    main()
