"""
Snapshot Context for the Advisor

Stage 1 of the advisor pipeline: turn one snapshot into a flat text
block built only from engine output. This text is the entire
contract with the language model; no structured data is sent.

It is always computable locally, so it also backs the fallback
answer when the remote model cannot be reached.
"""

from collections import defaultdict
from typing import Optional

from finsnap.metrics import ratios, summary
from finsnap.models.items import BaseItem, ItemKind, raw_value
from finsnap.models.snapshot import Snapshot
from finsnap.queries.snapshots import format_snapshot_date


NO_SNAPSHOT_TEXT = "No financial snapshot is currently selected."
NO_SNAPSHOT_ANALYSIS = "Please create or select a snapshot to get financial insights."


def _money(amount: float, symbol: str) -> str:
    return f"{symbol}{amount:.2f}"


def _group(items: list[BaseItem], field: str) -> dict[str, list[BaseItem]]:
    groups: dict[str, list[BaseItem]] = defaultdict(list)
    for item in items:
        groups[raw_value(getattr(item, field, None)) or "other"].append(item)
    return groups


def build_snapshot_context(snapshot: Optional[Snapshot], symbol: str = "$") -> str:
    """
    Flat, labelled text describing one snapshot.

    Sections: header, FINANCIAL SUMMARY, FINANCIAL RATIOS, then one
    breakdown per item kind with one line per item.
    """
    if snapshot is None:
        return NO_SNAPSHOT_TEXT

    totals = summary(snapshot.data)
    values = ratios(snapshot.data)
    data = snapshot.data

    lines = [
        f'User\'s Financial Snapshot: "{snapshot.label}" '
        f"(created: {format_snapshot_date(snapshot.created_at)})",
        "",
        "FINANCIAL SUMMARY:",
        f"- Total Assets: {_money(totals.total_assets, symbol)}",
        f"- Total Liabilities: {_money(totals.total_liabilities, symbol)}",
        f"- Net Worth: {_money(totals.net_worth, symbol)}",
        f"- Monthly Income: {_money(totals.total_income, symbol)}",
        f"- Monthly Expenses: {_money(totals.total_expenses, symbol)}",
        f"- Monthly Savings: {_money(totals.savings, symbol)}",
        "",
        "FINANCIAL RATIOS:",
        f"- Basic Liquidity Ratio: {values.basic_liquidity:.2f} months "
        "(emergency fund coverage)",
        f"- Debt to Asset Ratio: {values.debt_to_asset:.2f}%",
        f"- Solvency Ratio: {values.solvency:.2f}%",
        f"- Savings Ratio: {values.savings:.2f}%",
        f"- Liquid Assets to Net Worth Ratio: {values.liquid_assets_to_net_worth:.2f}%",
    ]

    sections = [
        ("ASSETS BREAKDOWN", ItemKind.ASSETS, "category"),
        ("LIABILITIES BREAKDOWN", ItemKind.LIABILITIES, "term"),
        ("INCOME BREAKDOWN", ItemKind.INCOMES, "category"),
        ("EXPENSES BREAKDOWN", ItemKind.EXPENSES, "category"),
    ]
    for title, kind, field in sections:
        lines += ["", f"{title}:"]
        for group, items in _group(data.items(kind), field).items():
            lines += ["", f"{group.upper()}:"]
            for item in items:
                line = f"  - {item.name}: {_money(item.amount, symbol)}"
                if kind == ItemKind.ASSETS:
                    liquidity = raw_value(item.liquidity) or "not specified"
                    line += f" (Liquidity: {liquidity})"
                elif kind in (ItemKind.INCOMES, ItemKind.EXPENSES):
                    line += "/month"
                lines.append(line)

    return "\n".join(lines) + "\n"


def generate_basic_analysis(snapshot: Optional[Snapshot], symbol: str = "$") -> str:
    """Short locally computed analysis: net worth and monthly flow."""
    if snapshot is None:
        return NO_SNAPSHOT_ANALYSIS

    totals = summary(snapshot.data)
    values = ratios(snapshot.data)

    if totals.net_worth < 0:
        advice = "Your liabilities exceed your assets. Focus on paying down debt."
    else:
        advice = "You have positive net worth - keep building!"

    return (
        f'Based on your "{snapshot.label}" snapshot:\n\n'
        f"💰 NET WORTH: {_money(totals.net_worth, symbol)}\n"
        f"   {advice}\n\n"
        f"📊 MONTHLY FLOW:\n"
        f"   Income: {_money(totals.total_income, symbol)}\n"
        f"   Expenses: {_money(totals.total_expenses, symbol)}\n"
        f"   Savings: {_money(totals.savings, symbol)} ({values.savings:.2f}%)\n"
    )
