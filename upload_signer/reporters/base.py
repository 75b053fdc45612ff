"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from upload_signer.models import CaseResult, ProbeReport


class Reporter(ABC):
    """Abstract base class for probe result reporters."""

    @abstractmethod
    def on_case_start(self, case_id: str) -> None:
        """Called when a probe case starts."""
        pass

    @abstractmethod
    def on_case_complete(self, result: "CaseResult") -> None:
        """Called when a probe case completes."""
        pass

    @abstractmethod
    def on_run_complete(self, report: "ProbeReport") -> None:
        """Called when all probe cases are complete."""
        pass
