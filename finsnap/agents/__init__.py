"""
Advisor agents.

The advisor answers free-form questions about one snapshot from
its engine-derived context text, falling back to a local analysis.
"""

from finsnap.agents.advisor import (
    AdvisorAgent,
    AdvisorError,
    AdvisorResponse,
    build_prompt,
)
from finsnap.agents.context import (
    build_snapshot_context,
    generate_basic_analysis,
)

__all__ = [
    "AdvisorAgent",
    "AdvisorError",
    "AdvisorResponse",
    "build_prompt",
    "build_snapshot_context",
    "generate_basic_analysis",
]
