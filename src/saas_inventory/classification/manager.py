"""ClassificationTableManager — holds the current table and runs background refresh."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from saas_inventory.classification.base import TableSource
from saas_inventory.classification.table import (
    BuiltinTableSource,
    ClassificationTable,
    YamlTableSource,
    to_table,
)
from saas_inventory.config import ClassificationConfig
from saas_inventory.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ClassificationTableManager:
    """
    Holds the classification table and runs a background asyncio task
    to reload it at a configurable interval.

    Scans receive a ClassificationTable snapshot — an immutable dataclass —
    so a reload mid-scan never changes how that scan classifies.
    """

    def __init__(self, config: ClassificationConfig, source: TableSource | None = None) -> None:
        self._config = config
        if source is None:
            source = YamlTableSource(config.table_path) if config.table_path else BuiltinTableSource()
        self._source = source
        self._table: ClassificationTable | None = None
        self._task: asyncio.Task | None = None

    def load_sync(self) -> None:
        """Initial synchronous load at startup (before event loop tasks start)."""
        self._table = to_table(self._source.load())
        logger.info("Classification table loaded: %d known domains", self._table.domain_count)

    async def start_refresh_loop(self) -> None:
        """Start the background refresh task — call from FastAPI lifespan."""
        self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task

    @property
    def current(self) -> ClassificationTable:
        if self._table is None:
            raise ConfigurationError("classification table not loaded")
        return self._table

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.refresh_interval_seconds)
            try:
                self._table = to_table(self._source.load())
            except ConfigurationError:
                # Keep serving the last good table.
                logger.exception("Classification table reload failed")
            else:
                logger.info("Classification table reloaded")
