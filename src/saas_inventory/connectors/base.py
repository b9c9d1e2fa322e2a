"""Abstract base class for all source connector implementations.

A connector translates one source's native data (mailbox headers, file
listings, calendar events, cookie domains, detected OAuth buttons) into
RawObservations. The contract every connector honours:

    - ``scan`` returns a finite sequence (any iterable; it is materialized
      by the orchestrator under the per-call timeout)
    - failures are raised as ConnectorFailure (or any exception) and only
      ever cost that connector's observations
    - no mutable state is shared between connectors
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from saas_inventory.models.observation import RawObservation
from saas_inventory.models.scan import ScanType


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class ScanContext:
    """Everything a connector is given for one scan.

    ``credential`` is opaque to the core: token acquisition happens elsewhere.
    """

    subject_id: str
    scan_type: ScanType
    credential: Any = None
    started_at: datetime = field(default_factory=_utcnow)


class SourceConnector(ABC):
    source_id: str
    quick_capable: bool = True  # included in "quick" scans

    @abstractmethod
    async def scan(self, context: ScanContext) -> Iterable[RawObservation]:
        """Return every observation this source currently yields for the subject."""
        ...
