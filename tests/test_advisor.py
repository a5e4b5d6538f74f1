"""
Tests for the advisor pipeline.

No real API calls: a fake model stands in for Gemini.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from tenacity import wait_none

from finsnap.agents import (
    AdvisorAgent,
    build_prompt,
    build_snapshot_context,
    generate_basic_analysis,
)
from finsnap.audit import AuditLogger
from finsnap.config import AdvisorSettings
from finsnap.models import (
    Asset,
    AuditEventType,
    Expense,
    Income,
    Liability,
    Snapshot,
    SnapshotData,
)
from finsnap.orchestrator import AdvisorFlow
from finsnap.services.storage import InMemoryAuditStorage


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Returns queued outcomes; exceptions are raised, strings answered."""

    def __init__(self, *outcomes, delay=0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


@pytest.fixture
def snapshot():
    return Snapshot(
        id="snap-1",
        label="January",
        created_at=datetime(2024, 1, 5, 15, 7, tzinfo=timezone.utc),
        data=SnapshotData(
            assets=[
                Asset(name="Savings", amount=1000, category="cash", liquidity="high"),
                Asset(name="Art", amount=250.5),
            ],
            liabilities=[Liability(name="Card", amount=300, term="short-term")],
            incomes=[Income(name="Salary", amount=4000, category="employment")],
            expenses=[Expense(name="Rent", amount=500, category="essential")],
        ),
    )


def configured(**overrides):
    values = {"api_key": "test-key", "timeout_seconds": 1.0, "max_attempts": 2}
    values.update(overrides)
    return AdvisorSettings(**values)


def make_agent(model, settings=None, audit_logger=None):
    return AdvisorAgent(
        settings=settings or configured(),
        model_factory=lambda _settings: model,
        audit_logger=audit_logger,
        retry_wait=wait_none(),
    )


class TestSnapshotContext:
    """Stage 1: context text."""

    def test_sections_present(self, snapshot):
        text = build_snapshot_context(snapshot)
        for section in (
            'User\'s Financial Snapshot: "January" (created: Jan 5, 2024, 03:07 PM)',
            "FINANCIAL SUMMARY:",
            "FINANCIAL RATIOS:",
            "ASSETS BREAKDOWN:",
            "LIABILITIES BREAKDOWN:",
            "INCOME BREAKDOWN:",
            "EXPENSES BREAKDOWN:",
        ):
            assert section in text

    def test_one_line_per_item(self, snapshot):
        text = build_snapshot_context(snapshot)
        assert "  - Savings: $1000.00 (Liquidity: high)" in text
        assert "  - Art: $250.50 (Liquidity: not specified)" in text
        assert "  - Card: $300.00" in text
        assert "  - Salary: $4000.00/month" in text
        assert "  - Rent: $500.00/month" in text

    def test_groups_use_category_headers(self, snapshot):
        text = build_snapshot_context(snapshot)
        assert "\nCASH:\n" in text
        assert "\nOTHER:\n" in text
        assert "\nSHORT-TERM:\n" in text

    def test_summary_and_ratio_values(self, snapshot):
        text = build_snapshot_context(snapshot)
        assert "- Net Worth: $950.50" in text
        assert "- Basic Liquidity Ratio: 2.00 months" in text
        assert "- Savings Ratio: 87.50%" in text

    def test_no_snapshot(self):
        assert build_snapshot_context(None) == "No financial snapshot is currently selected."

    def test_basic_analysis(self, snapshot):
        text = generate_basic_analysis(snapshot)
        assert text.startswith('Based on your "January" snapshot:')
        assert "NET WORTH: $950.50" in text
        assert "keep building" in text
        assert "Savings: $3500.00 (87.50%)" in text

    def test_basic_analysis_negative_net_worth(self):
        underwater = Snapshot(
            label="Debt",
            data=SnapshotData(liabilities=[Liability(name="Loan", amount=10)]),
        )
        assert "Focus on paying down debt" in generate_basic_analysis(underwater)

    def test_prompt_wraps_context(self, snapshot):
        prompt = build_prompt("  How am I doing? ", build_snapshot_context(snapshot))
        assert "FINANCIAL SUMMARY:" in prompt
        assert prompt.endswith("User question: How am I doing?")


class TestAdvisorAgent:
    """Stage 2: remote call and fallback."""

    def test_answer_from_model(self, snapshot):
        model = FakeModel("  You are doing fine.  ")
        response = asyncio.run(make_agent(model).ask("How am I doing?", snapshot))

        assert response.answer == "You are doing fine."
        assert not response.used_fallback
        assert response.snapshot_id == "snap-1"
        assert "Savings: $1000.00" in model.prompts[0]

    def test_not_configured_falls_back(self, snapshot):
        model = FakeModel("unused")
        agent = make_agent(model, settings=AdvisorSettings(api_key=""))
        response = asyncio.run(agent.ask("Hi", snapshot))

        assert response.used_fallback
        assert response.answer.startswith("⚠️ AI Assistant is not configured")
        assert 'Based on your "January" snapshot:' in response.answer
        assert model.prompts == []

    def test_retries_then_succeeds(self, snapshot):
        model = FakeModel(ConnectionError("reset"), "Recovered")
        response = asyncio.run(make_agent(model).ask("Hi", snapshot))
        assert response.answer == "Recovered"
        assert len(model.prompts) == 2

    def test_failure_falls_back_with_reason(self, snapshot):
        model = FakeModel(RuntimeError("quota exceeded"))
        response = asyncio.run(make_agent(model).ask("Hi", snapshot))

        assert response.used_fallback
        assert response.answer.startswith(
            "⚠️ Unable to connect to AI service (quota exceeded). Here's a basic analysis:"
        )
        assert response.error == "quota exceeded"

    def test_timeout_falls_back(self, snapshot):
        model = FakeModel("too late", delay=0.5)
        agent = make_agent(model, settings=configured(timeout_seconds=0.01, max_attempts=2))
        response = asyncio.run(agent.ask("Hi", snapshot))

        assert response.used_fallback
        assert "timed out" in response.answer
        assert len(model.prompts) == 2

    def test_empty_answer_falls_back(self, snapshot):
        response = asyncio.run(make_agent(FakeModel("   ")).ask("Hi", snapshot))
        assert response.used_fallback

    def test_no_snapshot(self):
        response = asyncio.run(make_agent(FakeModel("General advice")).ask("Hi", None))
        assert response.answer == "General advice"
        assert response.snapshot_id is None

    def test_fallback_is_audited(self, snapshot):
        sink = InMemoryAuditStorage()
        agent = make_agent(FakeModel(RuntimeError("down")), audit_logger=AuditLogger(sink))
        asyncio.run(agent.ask("Hi", snapshot))
        assert sink.get_recent_events(limit=1)[0].event_type == AuditEventType.ADVISOR_FALLBACK


class TestAdvisorFlow:

    def test_reads_active_snapshot_at_call_time(self, populated_store):
        model = FakeModel("ok")
        flow = AdvisorFlow(populated_store, make_agent(model))

        response = asyncio.run(flow.answer_question("Hi"))

        assert response.snapshot_id == populated_store.active_snapshot_id
        assert '"January"' in model.prompts[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
