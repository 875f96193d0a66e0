"""Orchestration layer racing remote models against a watchdog."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Mapping, Optional

from ..text_metrics import TextValidationError, ValidatedText, validate
from .heuristic import HeuristicSummarizer
from .inference_client import (
    EmptyResultError,
    InferenceError,
    InferenceHTTPError,
    RemoteSummarizationClient,
)
from .types import Producer, SummaryOutcome, SummaryRequest

if TYPE_CHECKING:
    from ..history.store import HistoryStore


class OrchestratorState(str, Enum):
    VALIDATING = "validating"
    ATTEMPTING_PRIMARY = "attempting_primary"
    ATTEMPTING_SECONDARY = "attempting_secondary"
    FINALIZING = "finalizing"
    DONE = "done"
    REJECTED = "rejected"


class _FinalizeToken:
    """Shared by every branch of one run; only the first claim succeeds."""

    def __init__(self) -> None:
        self.winner: Optional[str] = None

    @property
    def finalized(self) -> bool:
        return self.winner is not None

    def claim(self, branch: str) -> bool:
        if self.winner is not None:
            return False
        self.winner = branch
        return True


class SummarizationAttempt:
    """State of a single ``summarize`` call."""

    def __init__(self, request: SummaryRequest) -> None:
        self.request = request
        self.token = _FinalizeToken()
        self.states: List[OrchestratorState] = [OrchestratorState.VALIDATING]
        self.validated: Optional[ValidatedText] = None

    @property
    def state(self) -> OrchestratorState:
        return self.states[-1]

    def advance(self, state: OrchestratorState) -> bool:
        """Move to ``state`` unless another branch already finalized the run."""
        if self.token.finalized and state is not OrchestratorState.DONE:
            return False
        self.states.append(state)
        return True


class SummarizationOrchestrator:
    """Public facade used by UI callers: text in, exactly one summary out."""

    WATCHDOG_TIMEOUT = 8.0

    def __init__(
        self,
        client: Optional[RemoteSummarizationClient] = None,
        history_store: Optional["HistoryStore"] = None,
        *,
        summarizer: Optional[HeuristicSummarizer] = None,
        watchdog_timeout: float = WATCHDOG_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._store = history_store
        self._summarizer = summarizer or HeuristicSummarizer()
        self.watchdog_timeout = watchdog_timeout
        self._logger = logger or logging.getLogger(__name__)
        self.last_attempt: Optional[SummarizationAttempt] = None

    async def summarize(self, request: SummaryRequest) -> SummaryOutcome:
        """Return one summary for ``request``; only validation errors reach the caller."""

        attempt = SummarizationAttempt(request)
        self.last_attempt = attempt
        try:
            attempt.validated = validate(request.text)
        except TextValidationError as exc:
            attempt.advance(OrchestratorState.REJECTED)
            self._log_debug("rejected", request, {"reason": type(exc).__name__})
            raise

        loop = asyncio.get_running_loop()
        winner: asyncio.Future = loop.create_future()

        def commit(branch: str, summary: str, producer: Producer) -> bool:
            if winner.done() or not attempt.token.claim(branch):
                self._log_debug("discarded", request, {"branch": branch, "produced_by": producer.value})
                return False
            attempt.states.append(OrchestratorState.FINALIZING)
            winner.set_result((summary, producer))
            return True

        attempt.advance(OrchestratorState.ATTEMPTING_PRIMARY)
        watchdog = loop.call_later(self.watchdog_timeout, self._fire_watchdog, attempt, commit)
        chain = asyncio.ensure_future(self._run_remote_chain(attempt, commit))
        chain.add_done_callback(self._consume_chain_result)
        try:
            summary, producer = await winner
        finally:
            watchdog.cancel()
            if not attempt.token.finalized:
                chain.cancel()

        outcome = SummaryOutcome(
            summary_text=summary,
            produced_by=producer,
            original_text=request.text,
            word_count=attempt.validated.word_count,
            summary_kind=request.summary_kind,
        )
        await self._record(outcome, request)
        attempt.advance(OrchestratorState.DONE)
        self._log_debug(
            "done",
            request,
            {"produced_by": producer.value, "winner": attempt.token.winner},
        )
        return outcome

    # ------------------------------
    # Branches
    # ------------------------------
    async def _run_remote_chain(self, attempt: SummarizationAttempt, commit) -> None:
        text = attempt.validated.cleaned
        if self._client is None:
            self._logger.warning("No inference client configured; using heuristic summary")
            commit("heuristic", self._heuristic(attempt), Producer.HEURISTIC)
            return

        try:
            if await self._try_primary(attempt, text, commit):
                return
            if not attempt.advance(OrchestratorState.ATTEMPTING_SECONDARY):
                return
            await self._try_secondary(attempt, text, commit)
        except Exception:
            self._logger.exception("Unexpected failure in remote summarization; using heuristic summary")
            commit("heuristic", self._heuristic(attempt), Producer.HEURISTIC)

    async def _try_primary(self, attempt: SummarizationAttempt, text: str, commit) -> bool:
        """Return True when the run is settled, False when the secondary model should run."""
        try:
            result = await self._client.summarize_primary(text)
        except InferenceHTTPError as exc:
            if exc.status == 400:
                self._log_debug("primary-rejected", attempt.request, {"status": exc.status})
                return False
            self._fallback(attempt, commit, "primary", exc)
            return True
        except EmptyResultError:
            self._log_debug("primary-empty", attempt.request, {})
            return False
        except InferenceError as exc:
            self._fallback(attempt, commit, "primary", exc)
            return True

        commit("primary", result.text, Producer.PRIMARY_MODEL)
        return True

    async def _try_secondary(self, attempt: SummarizationAttempt, text: str, commit) -> None:
        try:
            result = await self._client.summarize_secondary(text)
        except InferenceError as exc:
            self._fallback(attempt, commit, "secondary", exc)
            return
        commit("secondary", result.text, Producer.SECONDARY_MODEL)

    def _fire_watchdog(self, attempt: SummarizationAttempt, commit) -> None:
        if attempt.token.finalized:
            return
        self._logger.warning(
            "Emergency fallback triggered after %.1fs; remote models are taking too long",
            self.watchdog_timeout,
        )
        commit("watchdog", self._heuristic(attempt), Producer.HEURISTIC)

    def _fallback(self, attempt: SummarizationAttempt, commit, stage: str, exc: Exception) -> None:
        if attempt.token.finalized:
            return
        self._logger.warning("Using heuristic summary after %s model failure: %s", stage, exc)
        commit(stage, self._heuristic(attempt), Producer.HEURISTIC)

    def _heuristic(self, attempt: SummarizationAttempt) -> str:
        return self._summarizer.generate(attempt.validated.cleaned, attempt.request.summary_kind)

    def _consume_chain_result(self, task: "asyncio.Future[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Remote summarization chain failed", exc_info=exc)

    # ------------------------------
    # Persistence
    # ------------------------------
    async def _record(self, outcome: SummaryOutcome, request: SummaryRequest) -> None:
        if self._store is None:
            return
        try:
            record = await self._store.create(outcome)
        except Exception:
            self._logger.exception("Error saving summary to history")
            return
        self._log_debug("saved", request, {"history_id": record.id})

    def _log_debug(self, event: str, request: SummaryRequest, extra: Mapping[str, object]) -> None:
        if not self._logger:
            return
        payload = {
            "event": event,
            "summary_kind": getattr(request.summary_kind, "value", request.summary_kind),
            "characters": len(request.text),
        }
        payload.update(dict(extra))
        self._logger.debug("summarize", extra={"summarize": payload})
