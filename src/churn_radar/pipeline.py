"""One risk-analysis run: load, extract, analyze, decide, persist, advance."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .analysis.decision import decide
from .analysis.engine import RiskEngine
from .analysis.models import Decision, RiskAnalysisResult
from .config import RadarConfig
from .exceptions import ChurnRadarError, ExitCode
from .formatters.base import BaseFormatter
from .logging_config import get_logger
from .persistence.state_store import StateStore
from .temporal.git_extractor import GitExtractor

logger = get_logger(__name__)

_DECISION_EXIT_CODES = {
    Decision.PASS: ExitCode.PASS,
    Decision.ALERT: ExitCode.ALERT,
    Decision.FAIL: ExitCode.FAIL,
}


def exit_code_for(decision: Decision) -> ExitCode:
    return _DECISION_EXIT_CODES[decision]


@dataclass(frozen=True)
class PipelineOutcome:
    exit_code: ExitCode
    result: Optional[RiskAnalysisResult] = None  # None when there was nothing to analyze
    watermark: Optional[str] = None


class RiskPipeline:
    """Runs one analysis end to end.

    The watermark tag moves only after the new state is saved, committed
    and pushed; any failure before that leaves the tag where it was, so the
    next run reprocesses the same range.
    """

    def __init__(
        self,
        config: RadarConfig,
        extractor: Optional[GitExtractor] = None,
        store: Optional[StateStore] = None,
        formatter: Optional[BaseFormatter] = None,
        engine: Optional[RiskEngine] = None,
    ):
        self.config = config
        self.extractor = extractor or GitExtractor(
            config.repo_path,
            watermark_tag=config.watermark_tag,
            timeout_seconds=config.git_timeout_seconds,
        )
        self.store = store or StateStore(config.state_path)
        self.formatter = formatter
        self.engine = engine or RiskEngine(config.thresholds)

    def run(self, now: Optional[datetime] = None) -> PipelineOutcome:
        """Execute the run.

        Raises:
            ChurnRadarError: Controlled failures carry their own exit code;
                anything unexpected is wrapped with UNHANDLED_EXCEPTION
        """
        try:
            return self._run(now)
        except ChurnRadarError:
            raise
        except Exception as e:
            logger.error("An unexpected error occurred during the analysis run: %s", e)
            raise ChurnRadarError(
                "Analysis run failed with an unexpected error",
                details={"error": f"{type(e).__name__}: {e}"},
                exit_code=ExitCode.UNHANDLED_EXCEPTION,
            ) from e

    def _run(self, now: Optional[datetime]) -> PipelineOutcome:
        previous = self.store.load()
        delta = self.extractor.extract_since_watermark()

        if delta.is_empty:
            logger.info("No new commits found since last analysis. Exiting.")
            return PipelineOutcome(exit_code=ExitCode.PASS, watermark=delta.to_commit)

        current = self.engine.run(delta, previous, now=now)
        result = decide(previous, current, self.config.thresholds)

        if self.formatter is not None:
            self.formatter.render(result)

        saved = self.store.save(current)
        watermark = self.extractor.commit_state_and_move_tag(saved, push=self.config.push)
        if not self.config.push:
            logger.info("Push disabled: state committed and tagged locally only")

        exit_code = exit_code_for(result.decision)
        logger.info("Run finished with decision %s (exit code %d)", result.decision.value.upper(), exit_code)
        return PipelineOutcome(exit_code=exit_code, result=result, watermark=watermark)
