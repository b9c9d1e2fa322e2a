"""Abstract base class for all classification table sources."""

from __future__ import annotations

from abc import ABC, abstractmethod


class TableSource(ABC):
    @abstractmethod
    def load(self) -> dict:
        """Load and return the full classification table as a plain dict."""
        ...
