"""
Main Orchestrator for FinSnap

Ties the components together:
1. Storage backend (JSON file or in-memory) holding the document
2. Snapshot store, the only mutation surface
3. Advisor flow (active snapshot -> context -> Gemini or fallback)

DESIGN DECISION: Components are built once and injected.
Nothing reaches for a global store; the UI receives the objects
created here and tests build their own with in-memory backends.
"""

from typing import Optional

import structlog

from finsnap.agents import AdvisorAgent, AdvisorResponse
from finsnap.audit import AuditLogger, configure_logging
from finsnap.config import Settings, get_settings
from finsnap.services.storage import (
    DocumentStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
)
from finsnap.store import SnapshotStore


logger = structlog.get_logger("finsnap.orchestrator")


class AdvisorFlow:
    """
    Orchestrates the advisor question flow.

    Flow:
    1. Read a copy of the active snapshot at call time
    2. Build context text from engine output
    3. Ask the model, or fall back to the local analysis

    The store is never mutated here; it may change again before
    the answer arrives.
    """

    def __init__(
        self,
        store: SnapshotStore,
        advisor: AdvisorAgent,
    ):
        self._store = store
        self._advisor = advisor

    @property
    def is_configured(self) -> bool:
        return self._advisor.is_configured

    async def answer_question(self, question: str) -> AdvisorResponse:
        return await self._advisor.ask(question, self._store.active_snapshot)


def build_storage(settings: Settings, use_memory: bool = False) -> DocumentStorageInterface:
    """Storage backend named by the settings (memory when forced)."""
    storage_settings = settings.storage
    if use_memory or storage_settings.backend == "memory":
        return InMemoryStorage()
    return JsonFileStorage(storage_settings.data_path)


def create_app_components(
    settings: Optional[Settings] = None,
    use_memory: bool = False,
) -> tuple[SnapshotStore, AdvisorFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        use_memory: Keep the document in memory only (for tests and demos)

    Returns:
        (snapshot_store, advisor_flow, audit_logger)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, console=app_settings.debug_mode)

    audit_logger = AuditLogger(
        InMemoryAuditStorage(max_events=app_settings.audit_history_size)
    )

    store = SnapshotStore(
        build_storage(settings, use_memory=use_memory),
        document_key=settings.storage.document_key,
        audit_logger=audit_logger,
    ).init()

    advisor = AdvisorAgent(
        settings=settings.advisor,
        audit_logger=audit_logger,
        currency_symbol=app_settings.currency_symbol,
    )
    if not advisor.is_configured:
        logger.info("advisor_not_configured", fallback="basic_analysis")

    return store, AdvisorFlow(store, advisor), audit_logger
