"""Subject directory — resolves a user/organization id to its credential and connectors.

Credential storage and the OAuth handshake live outside the core; the
directory only hands out what a scan needs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from saas_inventory.connectors.base import SourceConnector


@dataclass
class Subject:
    subject_id: str
    credential: Any = None
    connectors: list[SourceConnector] = field(default_factory=list)


class SubjectDirectory(ABC):
    @abstractmethod
    def get(self, subject_id: str) -> Subject | None:
        ...


class InMemorySubjectDirectory(SubjectDirectory):
    def __init__(self, subjects: list[Subject] | None = None) -> None:
        self._subjects: dict[str, Subject] = {s.subject_id: s for s in subjects or []}

    def register(self, subject: Subject) -> None:
        self._subjects[subject.subject_id] = subject

    def get(self, subject_id: str) -> Subject | None:
        return self._subjects.get(subject_id)

    def __len__(self) -> int:
        return len(self._subjects)
