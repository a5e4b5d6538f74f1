"""
Finance Advisor Agent

DESIGN DECISION: The advisor is a two-stage pipeline.

STAGE 1 - CONTEXT (local, always available):
- The snapshot is turned into a flat text block from engine output

STAGE 2 - REMOTE ANSWER (Gemini, may fail):
- The context and the user's question go to the model
- Each call is bounded by a timeout and retried a few times

If no API key is configured, or stage 2 fails for any reason, the
answer is a short notice plus a locally computed basic analysis.
`ask` never raises.

CRITICAL BOUNDARIES:
- The advisor only READS a snapshot copy; it never touches the store
- The model only sees the context text; it answers FROM that data
- The store may change while a call is in flight; the answer refers
  to the snapshot as it was when `ask` was called
"""

import asyncio
from typing import Any, Callable, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finsnap.agents.context import build_snapshot_context, generate_basic_analysis
from finsnap.audit import AuditLogger
from finsnap.config import AdvisorSettings, get_settings
from finsnap.models.audit import AuditEventBuilder
from finsnap.models.snapshot import Snapshot


NOT_CONFIGURED_NOTICE = (
    "⚠️ AI Assistant is not configured. Please add your Gemini API key "
    "in the settings. For now, here's a simple analysis:"
)

SYSTEM_PROMPT = """You are a helpful AI Finance Assistant for a personal finance tracking app. Your role is to help users understand their financial snapshot and provide insights based on their specific financial data.

FORMATTING REQUIREMENTS:
- Respond in plain text only, never use markdown formatting
- Write in normal paragraphs with regular sentences
- Keep responses concise, 150-300 words maximum

GUIDELINES:
- Focus on actionable insights based on the user's actual data
- Reference specific numbers from their snapshot
- Explain financial concepts in simple terms
- Be encouraging but realistic
- If the user asks about something not in their snapshot, politely let them know

User's Current Financial Snapshot Data:
{context}

Remember to analyze the actual numbers provided and give personalized, data-driven advice."""


class AdvisorError(Exception):
    """The remote model returned nothing usable."""
    pass


class AdvisorResponse(BaseModel):
    """One advisor answer."""

    answer: str
    used_fallback: bool = Field(
        default=False,
        description="True if the answer is the local basic analysis"
    )
    snapshot_id: Optional[str] = None
    error: Optional[str] = Field(
        default=None,
        description="Why the remote call was not used, if it wasn't"
    )


def build_prompt(question: str, context: str) -> str:
    return f"{SYSTEM_PROMPT.format(context=context)}\n\nUser question: {question.strip()}"


class AdvisorAgent:
    """
    Answers free-form questions about one snapshot.

    The model factory is injectable; by default it builds a Gemini
    GenerativeModel from AdvisorSettings.
    """

    def __init__(
        self,
        settings: Optional[AdvisorSettings] = None,
        model_factory: Optional[Callable[[AdvisorSettings], Any]] = None,
        audit_logger: Optional[AuditLogger] = None,
        currency_symbol: str = "$",
        retry_wait: Any = None,
    ):
        self._settings = settings or get_settings().advisor
        self._model_factory = model_factory or self._gemini_model
        self._audit = audit_logger or AuditLogger()
        self._symbol = currency_symbol
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, max=4)
        self._model = None
        self._logger = structlog.get_logger("finsnap.advisor")

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    @staticmethod
    def _gemini_model(settings: AdvisorSettings) -> Any:
        """Configure Google Generative AI."""
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    def _get_model(self) -> Any:
        if self._model is None:
            self._model = self._model_factory(self._settings)
        return self._model

    async def _generate(self, prompt: str) -> str:
        """One bounded, retried remote call."""
        model = self._get_model()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((asyncio.TimeoutError, AdvisorError, ConnectionError)),
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                response = await asyncio.wait_for(
                    model.generate_content_async(prompt),
                    timeout=self._settings.timeout_seconds,
                )
                text = (getattr(response, "text", "") or "").strip()
                if not text:
                    raise AdvisorError("Empty response from model")
                return text

    def _fallback(
        self,
        snapshot: Optional[Snapshot],
        notice: str,
        reason: str,
    ) -> AdvisorResponse:
        snapshot_id = snapshot.id if snapshot else None
        self._audit.log(AuditEventBuilder.advisor_result(
            snapshot_id, used_fallback=True, reason=reason
        ))
        return AdvisorResponse(
            answer=f"{notice}\n\n{generate_basic_analysis(snapshot, self._symbol)}",
            used_fallback=True,
            snapshot_id=snapshot_id,
            error=reason,
        )

    async def ask(self, question: str, snapshot: Optional[Snapshot]) -> AdvisorResponse:
        """
        Answer a question about `snapshot`.

        Returns the model's answer, or the local fallback when the
        advisor is not configured or the remote call fails.
        """
        if not self.is_configured:
            return self._fallback(snapshot, NOT_CONFIGURED_NOTICE, "not_configured")

        context = build_snapshot_context(snapshot, self._symbol)
        prompt = build_prompt(question, context)

        try:
            answer = await self._generate(prompt)
        except asyncio.TimeoutError:
            message = f"timed out after {self._settings.timeout_seconds:g}s"
            self._logger.warning("advisor_call_failed", error=message)
            return self._fallback(
                snapshot,
                f"⚠️ Unable to connect to AI service ({message}). Here's a basic analysis:",
                message,
            )
        except Exception as e:
            self._logger.warning("advisor_call_failed", error=str(e))
            return self._fallback(
                snapshot,
                f"⚠️ Unable to connect to AI service ({e}). Here's a basic analysis:",
                str(e),
            )

        snapshot_id = snapshot.id if snapshot else None
        self._audit.log(AuditEventBuilder.advisor_result(snapshot_id, used_fallback=False))
        return AdvisorResponse(answer=answer, snapshot_id=snapshot_id)
