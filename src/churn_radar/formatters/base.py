"""Base formatter interface for Churn Radar output rendering."""

from abc import ABC, abstractmethod

from ..analysis.models import RiskAnalysisResult


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, result: RiskAnalysisResult) -> None:
        """Render the result to stdout/stderr as appropriate."""

    @abstractmethod
    def format(self, result: RiskAnalysisResult) -> str:
        """Return formatted string representation of the result."""
