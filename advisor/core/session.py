"""
Session Context Tracking

Keeps per-connection wallet context and conversation transcripts, and decides
for each inbound chat message whether to (re)introduce the wallet to the model
with a detailed summary or simply continue the conversation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..providers.llm.base import LLMMessage, LLMProvider, ProviderError, assistant, system, user
from ..types import InboundEnvelope, MalformedPayload, WalletContext, parse_envelope
from .prompts import (
    FALLBACK_REPLY,
    INITIAL_ANALYSIS_PREFIX,
    render_portfolio_summary_request,
    render_system_prompt,
)


class TurnKind(str, Enum):
    """How an inbound chat message is handled"""
    INTRODUCTION = "introduction"  # wallet (re)introduced, detailed summary
    CONTINUATION = "continuation"  # plain follow-up


@dataclass(frozen=True)
class TurnBudget:
    model: str
    max_tokens: int


@dataclass
class Session:
    id: str
    context: WalletContext = field(default_factory=WalletContext)


def budgets_from_settings(settings: Any) -> Dict[TurnKind, TurnBudget]:
    return {
        TurnKind.INTRODUCTION: TurnBudget(settings.detailed_model, settings.detailed_max_tokens),
        TurnKind.CONTINUATION: TurnBudget(settings.quick_model, settings.quick_max_tokens),
    }


def classify_turn(context: WalletContext, envelope: InboundEnvelope) -> TurnKind:
    """Introduce the wallet when it is new to the session or the chain changed.

    A different wallet address on the same chain is still a continuation.
    """
    if envelope.context is None:
        return TurnKind.CONTINUATION
    if context.is_empty() or envelope.context.chain_name != context.selected_chain:
        return TurnKind.INTRODUCTION
    return TurnKind.CONTINUATION


class SessionContextTracker:
    """Per-connection wallet context and transcript store.

    Sessions are independent: each has its own context, transcript and lock.
    Message handling is serialized per session so the transcript order always
    matches arrival order, while different sessions interleave freely at the
    model provider call.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        base_prompt: str,
        budgets: Dict[TurnKind, TurnBudget],
        temperature: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        missing = set(TurnKind) - set(budgets)
        if missing:
            raise ValueError(f"Missing turn budgets for: {', '.join(sorted(k.value for k in missing))}")

        self.llm_provider = llm_provider
        self.base_prompt = base_prompt
        self.budgets = dict(budgets)
        self.temperature = temperature
        self.logger = logger or logging.getLogger(__name__)

        # In-memory only; everything is lost on disconnect or restart
        self._sessions: Dict[str, Session] = {}
        self._transcripts: Dict[str, List[LLMMessage]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ---------------------------
    # Lifecycle
    # ---------------------------
    def on_connect(self, session_id: str) -> Session:
        session = Session(id=session_id)
        self._sessions[session_id] = session
        self._transcripts[session_id] = [system(self._system_prompt(session.context))]
        self._locks[session_id] = asyncio.Lock()
        self.logger.info("Session %s connected (%d active)", session_id, len(self._sessions))
        return session

    def on_disconnect(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._transcripts.pop(session_id, None)
        self._locks.pop(session_id, None)
        self.logger.info("Session %s disconnected (%d active)", session_id, len(self._sessions))

    def _ensure_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            self.logger.warning("Event for unknown session %s; creating it", session_id)
            session = self.on_connect(session_id)
        return session

    # ---------------------------
    # Context
    # ---------------------------
    def on_context_update(self, session_id: str, partial: Mapping[str, Any]) -> Session:
        """Merge client-reported wallet fields and refresh the system prompt."""
        if not isinstance(partial, Mapping):
            raise MalformedPayload("context-update payload must be an object")
        try:
            update = WalletContext.model_validate(dict(partial))
        except ValidationError as exc:
            raise MalformedPayload(f"invalid context update: {exc.error_count()} error(s)") from exc

        session = self._ensure_session(session_id)
        session.context = session.context.merge(update)
        self._refresh_system_prompt(session)
        self.logger.debug("Context updated for %s: %s", session_id, sorted(update.model_fields_set))
        return session

    def _system_prompt(self, context: WalletContext) -> str:
        return render_system_prompt(self.base_prompt, context)

    def _refresh_system_prompt(self, session: Session) -> None:
        transcript = self._transcripts[session.id]
        transcript[0] = system(self._system_prompt(session.context))

    # ---------------------------
    # Chat turns
    # ---------------------------
    async def on_inbound_message(self, session_id: str, raw_payload: Union[str, bytes, dict]) -> str:
        """Handle one ``input`` event and return the reply text.

        Raises MalformedPayload (before touching any state) when the payload
        cannot be used. Model provider failures are absorbed: the pending user
        turn is rolled back and a fallback reply is returned.
        """
        envelope = parse_envelope(raw_payload)
        session = self._ensure_session(session_id)
        lock = self._locks[session_id]

        async with lock:
            if self._sessions.get(session_id) is not session:
                self.logger.info("Session %s closed before its message was handled", session_id)
                return FALLBACK_REPLY

            kind = classify_turn(session.context, envelope)
            if kind is TurnKind.CONTINUATION and envelope.message is None:
                raise MalformedPayload("a message is required when the wallet context is unchanged")

            transcript = self._transcripts[session_id]
            previous_context = session.context
            introduced: Optional[WalletContext] = None
            if kind is TurnKind.INTRODUCTION:
                ctx = envelope.context
                introduced = session.context = WalletContext(
                    wallet_address=ctx.wallet_address,
                    selected_chain=ctx.chain_name,
                    balance=ctx.total_value,
                    assets=list(ctx.assets),
                )
                self._refresh_system_prompt(session)
                pending = user(render_portfolio_summary_request(ctx))
            else:
                pending = user(envelope.message)

            # Appended first so in-flight turns are visible; removed again on failure
            transcript.append(pending)
            budget = self.budgets[kind]
            self.logger.info(
                "Session %s %s turn (model=%s max_tokens=%d transcript=%d)",
                session_id, kind.value, budget.model, budget.max_tokens, len(transcript),
            )

            try:
                reply = await self.llm_provider.complete(
                    list(transcript),
                    model=budget.model,
                    max_tokens=budget.max_tokens,
                    temperature=self.temperature,
                )
            except ProviderError as exc:
                self.logger.error("Model provider failed for session %s: %s", session_id, exc)
                self._rollback(session, transcript, pending, introduced, previous_context)
                return FALLBACK_REPLY
            except BaseException:
                self._rollback(session, transcript, pending, introduced, previous_context)
                raise

            if self._sessions.get(session_id) is not session:
                self.logger.info("Session %s closed while awaiting reply; discarding it", session_id)
            else:
                transcript.append(assistant(reply))

        if kind is TurnKind.INTRODUCTION:
            return f"{INITIAL_ANALYSIS_PREFIX}{reply}"
        return reply

    def _rollback(
        self,
        session: Session,
        transcript: List[LLMMessage],
        pending: LLMMessage,
        introduced: Optional[WalletContext],
        previous_context: WalletContext,
    ) -> None:
        """Undo a failed turn so the same envelope can be resent.

        A failed introduction also restores the prior wallet context, otherwise
        the retry would look like an unchanged-chain continuation.
        """
        if transcript and transcript[-1] is pending:
            transcript.pop()
        if introduced is not None and session.context is introduced and self._sessions.get(session.id) is session:
            session.context = previous_context
            self._refresh_system_prompt(session)

    # ---------------------------
    # Introspection
    # ---------------------------
    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def transcript(self, session_id: str) -> List[LLMMessage]:
        return list(self._transcripts.get(session_id, []))

    def reset_conversation(self, session_id: str) -> None:
        """Drop everything but the system message."""
        transcript = self._transcripts.get(session_id)
        if transcript:
            del transcript[1:]

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)
