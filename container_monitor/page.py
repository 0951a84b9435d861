from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from result import Err, Ok, Result

from container_monitor.blocks import has_marker, render_stats_block
from container_monitor.channel import NotionChannel
from container_monitor.config import NotionConfig
from container_monitor.data import ContainerStat


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PageSynchronizer:
    """Keeps exactly one stats block on the page.

    Notion blocks cannot be replaced in place, so every sync deletes the block
    created by the previous sync and appends a fresh one. The id of the block
    created last is kept in `last_block_id` for the lifetime of the process.
    """

    def __init__(
        self,
        channel: NotionChannel,
        page_id: str,
        config: NotionConfig = NotionConfig(),
        now: Callable[[], datetime] = utc_now,
    ):
        self.channel = channel
        self.page_id = page_id
        self.config = config
        self._now = now

        self.last_block_id: Optional[str] = None

    def list_children(self, block_id: str, page_size: int) -> List[Dict[str, Any]]:
        response = self.channel.send(
            f"/blocks/{block_id}/children?page_size={page_size}", "GET"
        )
        return response.get("results") or []

    def delete_block(self, block_id: str) -> Result[str, str]:
        try:
            self.channel.send(f"/blocks/{block_id}", "DELETE")
            return Ok(block_id)
        except Exception as e:
            return Err(
                "PageSynchronizer.delete_block: Failed to delete block,\n"
                f"`block_id`: {block_id}\n"
                f"`e`: \n{e}\n"
            )

    def reconcile(self) -> int:
        """Delete stats blocks left behind by a previous run of the monitor.

        Only scans the first page of the page's children and the first nested
        children of each quote block, which covers the usual single leftover.

        Returns:
            int: Number of blocks deleted
        """
        deleted = 0

        for block in self.list_children(self.page_id, self.config.children_page_size):
            if block.get("type") != "quote" or not block.get("has_children"):
                continue

            children = self.list_children(block["id"], self.config.nested_page_size)
            if not has_marker(children):
                continue

            result = self.delete_block(block["id"])
            if result.is_err():
                logger.warning(result.err())
                continue

            logger.info(f"PageSynchronizer.reconcile - Deleted leftover block {block['id']}")
            deleted += 1

        return deleted

    def sync(self, stats: List[ContainerStat]):
        # Cleanup-previous, the handle is dropped whether or not the delete succeeds
        if self.last_block_id is not None:
            previous_block_id = self.last_block_id
            self.last_block_id = None

            result = self.delete_block(previous_block_id)
            if result.is_err():
                logger.warning(result.err())

        block = render_stats_block(stats, self._now())
        response = self.channel.send(
            f"/blocks/{self.page_id}/children", "PATCH", {"children": [block]}
        )

        results = response.get("results") or []
        if not results:
            logger.warning(
                f"PageSynchronizer.sync - Append to page {self.page_id} returned no blocks"
            )
            return

        self.last_block_id = results[-1]["id"]
        logger.debug(f"PageSynchronizer.sync - Created block {self.last_block_id}")
