"""
FinSnap - Personal Finance Snapshot Tracker

Records point-in-time financial positions (assets, liabilities,
income, expenses) and derives summaries, ratios and category
breakdowns from them.

DESIGN PRINCIPLES:
1. The store is the only mutation surface
2. Metrics are pure functions of one snapshot's data
3. Fail fast, never persist a partial mutation
4. Every mutation is auditable
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "FinSnap Team"
