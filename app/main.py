"""
Streamlit Frontend for FinSnap

The user interface for recording and analysing financial snapshots.

DESIGN PRINCIPLES:
1. The UI never mutates data itself; every change goes through the store
2. Every store failure is shown as a short message and aborts the action
3. All numbers come from the metrics engine, computed on each render
4. Tables are sorted and filtered as views; stored order never changes
"""

import asyncio
from datetime import date

import plotly.graph_objects as go
import streamlit as st

from finsnap.config import get_settings, validate_all_settings
from finsnap.exceptions import StoreError
from finsnap.metrics import build_dashboard
from finsnap.models.items import (
    ASSET_CATEGORY_DISPLAY_NAMES,
    EXPENSE_CATEGORY_DISPLAY_NAMES,
    INCOME_CATEGORY_DISPLAY_NAMES,
    KIND_DISPLAY_NAMES,
    LIABILITY_TERM_DISPLAY_NAMES,
    LIQUIDITY_DISPLAY_NAMES,
    ItemKind,
    ItemUpdate,
    categorical_fields,
    format_currency,
)
from finsnap.models.metrics import RatioHealth
from finsnap.models.query import NOT_SPECIFIED, SORTABLE_COLUMNS, SortDirection
from finsnap.orchestrator import AdvisorFlow, create_app_components
from finsnap.queries import (
    column_value,
    filter_items,
    format_snapshot_date,
    parse_filters,
    search_snapshots,
    sort_items,
    sort_snapshots,
)
from finsnap.services.storage import StorageError
from finsnap.store import SnapshotStore


# Page configuration
st.set_page_config(
    page_title="FinSnap",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .ratio-positive { color: #28a745; font-weight: bold; }
    .ratio-warning { color: #ffc107; font-weight: bold; }
    .ratio-negative { color: #dc3545; font-weight: bold; }
</style>
""", unsafe_allow_html=True)


CATEGORY_OPTIONS = {
    ItemKind.ASSETS: {
        "category": ASSET_CATEGORY_DISPLAY_NAMES,
        "liquidity": LIQUIDITY_DISPLAY_NAMES,
    },
    ItemKind.LIABILITIES: {"term": LIABILITY_TERM_DISPLAY_NAMES},
    ItemKind.INCOMES: {"category": INCOME_CATEGORY_DISPLAY_NAMES},
    ItemKind.EXPENSES: {"category": EXPENSE_CATEGORY_DISPLAY_NAMES},
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except (StorageError, ValueError) as e:
        st.error(f"Failed to initialize storage: {e}")
        return create_app_components(use_memory=True)


def run_store_action(action, success_message: str = "") -> bool:
    """Run one store command, reporting failures instead of raising."""
    try:
        action()
    except (StoreError, StorageError) as e:
        st.error(getattr(e, "message", None) or str(e))
        return False
    if success_message:
        st.success(success_message)
    return True


def main():
    """Main application entry point."""
    store, advisor_flow, audit_logger = get_components()

    render_snapshot_sidebar(store)

    page = st.sidebar.radio(
        "Navigate to:",
        ["📋 Items", "📊 Analysis", "🤖 Advisor", "📁 Data", "⚙️ Settings"],
        index=0,
    )

    if page == "📋 Items":
        render_items_page(store)
    elif page == "📊 Analysis":
        render_analysis_page(store)
    elif page == "🤖 Advisor":
        render_advisor_page(store, advisor_flow)
    elif page == "📁 Data":
        render_data_page(store, audit_logger)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# SNAPSHOTS
# =============================================================================

def render_snapshot_sidebar(store: SnapshotStore):
    """Snapshot list, search, sort and lifecycle actions."""
    st.sidebar.title("💰 FinSnap")

    with st.sidebar.form("new_snapshot", clear_on_submit=True):
        label = st.text_input("New snapshot", placeholder=store.next_default_label())
        if st.form_submit_button("➕ Create"):
            if run_store_action(
                lambda: store.create_snapshot(label or store.next_default_label())
            ):
                st.rerun()

    term = st.sidebar.text_input("🔍 Search snapshots")
    col1, col2 = st.sidebar.columns(2)
    with col1:
        sort_by = st.selectbox("Sort by", ["date", "label"])
    with col2:
        direction = st.selectbox("Order", ["desc", "asc"])

    snapshots = search_snapshots(sort_snapshots(store.list_snapshots(), sort_by, direction), term)
    if not snapshots:
        st.sidebar.info(
            "No snapshots found matching your search" if term else "No snapshots available"
        )
        return

    active_id = store.active_snapshot_id
    for snapshot in snapshots:
        marker = "✅ " if snapshot.id == active_id else ""
        if st.sidebar.button(
            f"{marker}{snapshot.label}\n📅 {format_snapshot_date(snapshot.created_at)}",
            key=f"snap_{snapshot.id}",
        ):
            run_store_action(lambda: store.switch_active(snapshot.id))
            st.rerun()

    active = store.active_snapshot
    if active is None:
        return

    st.sidebar.markdown("---")
    with st.sidebar.expander("✏️ Manage current snapshot"):
        new_label = st.text_input("Rename", value=active.label)
        if st.button("Save name"):
            if run_store_action(lambda: store.rename_snapshot(active.id, new_label)):
                st.rerun()
        if st.button("📄 Duplicate"):
            if run_store_action(lambda: store.duplicate_snapshot(active.id)):
                st.rerun()
        if st.button("🗑️ Delete", type="primary"):
            if run_store_action(lambda: store.delete_snapshot(active.id)):
                st.rerun()


# =============================================================================
# ITEMS
# =============================================================================

def render_items_page(store: SnapshotStore):
    """Item tables of the active snapshot."""
    active = store.active_snapshot
    if active is None:
        st.title("📋 Items")
        st.info("Please create or select a snapshot first")
        return

    st.title(f"📋 {active.label}")
    tabs = st.tabs([KIND_DISPLAY_NAMES[kind] for kind in ItemKind])
    for tab, kind in zip(tabs, ItemKind):
        with tab:
            render_item_table(store, kind)


def _category_inputs(kind: ItemKind, key_prefix: str, current: dict) -> dict:
    values = {}
    for field, names in CATEGORY_OPTIONS[kind].items():
        options = [""] + list(names)
        selected = current.get(field) or ""
        values[field] = st.selectbox(
            field.title(),
            options=options,
            index=options.index(selected) if selected in options else 0,
            format_func=lambda x, names=names: names.get(x, "Not specified"),
            key=f"{key_prefix}_{field}",
        )
    return values


def render_item_table(store: SnapshotStore, kind: ItemKind):
    items = store.get_items(kind)

    with st.form(f"add_{kind.value}", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", key=f"add_{kind.value}_name")
        with col2:
            amount = st.number_input(
                "Amount", min_value=0.0, step=100.0, key=f"add_{kind.value}_amount"
            )
        attributes = _category_inputs(kind, f"add_{kind.value}", {})
        if st.form_submit_button(f"➕ Add to {KIND_DISPLAY_NAMES[kind]}"):
            if run_store_action(lambda: store.add_item(kind, name, amount, **attributes)):
                st.rerun()

    if not items:
        st.info(f"No {KIND_DISPLAY_NAMES[kind].lower()} recorded yet")
        return

    columns = ["name", "amount"] + list(categorical_fields(kind))

    with st.expander("🔎 Sort & filter"):
        col1, col2 = st.columns(2)
        with col1:
            sort_column = st.selectbox(
                "Sort by",
                [None] + [c for c in columns if c in SORTABLE_COLUMNS],
                format_func=lambda c: "Stored order" if c is None else c.title(),
                key=f"sort_{kind.value}",
            )
        with col2:
            direction = st.radio(
                "Direction", ["asc", "desc"], horizontal=True, key=f"dir_{kind.value}"
            )

        raw_filters = {
            "name": st.text_input("Name contains", key=f"f_{kind.value}_name"),
            "amount": st.text_input(
                "Amount (text or operator:value, e.g. greater:1000 or between:10:50)",
                key=f"f_{kind.value}_amount",
            ),
        }
        for field, names in CATEGORY_OPTIONS[kind].items():
            raw_filters[f"{field}_select"] = st.multiselect(
                f"{field.title()} is",
                options=list(names) + [NOT_SPECIFIED],
                format_func=lambda x, names=names: names.get(x, "Not specified"),
                key=f"f_{kind.value}_{field}",
            )

    # Keep the stored index of each row; it is the item's identity

    index_of = {id(item): index for index, item in enumerate(items)}
    view = filter_items(items, parse_filters(raw_filters), kind)
    if sort_column:
        view = sort_items(view, sort_column, SortDirection(direction), kind)

    st.dataframe(
        [
            {column.title(): column_value(item, column, kind) for column in columns}
            for item in view
        ],
        use_container_width=True,
        hide_index=True,
    )
    st.caption(
        f"Showing {len(view)} of {len(items)} · Total "
        f"{format_currency(sum(item.amount for item in view))}"
    )

    with st.expander("✏️ Edit or delete an item"):
        labels = {
            index_of[id(item)]: f"{item.name} ({format_currency(item.amount)})"
            for item in view
        }
        if not labels:
            st.info("No items match the current filters")
            return
        index = st.selectbox(
            "Item", list(labels), format_func=labels.get, key=f"edit_{kind.value}"
        )
        item = items[index]
        current = item.model_dump(mode="json")

        new_name = st.text_input("Name", value=item.name, key=f"edit_{kind.value}_name_{index}")
        new_amount = st.number_input(
            "Amount", min_value=0.0, value=float(item.amount), step=100.0,
            key=f"edit_{kind.value}_amount_{index}",
        )
        new_attributes = _category_inputs(kind, f"edit_{kind.value}_{index}", current)

        col1, col2 = st.columns(2)
        with col1:
            if st.button("💾 Save", key=f"save_{kind.value}"):
                update = ItemUpdate(name=new_name, amount=new_amount, **new_attributes)
                if run_store_action(lambda: store.update_item(kind, index, update)):
                    st.rerun()
        with col2:
            if st.button("🗑️ Delete", key=f"delete_{kind.value}"):
                if run_store_action(lambda: store.delete_item(kind, index)):
                    st.rerun()

    with st.expander("🧮 Bulk edit names and amounts"):
        edited = st.data_editor(
            [{"name": item.name, "amount": item.amount} for item in items],
            key=f"bulk_{kind.value}",
            num_rows="fixed",
            use_container_width=True,
        )
        if st.button("Apply all", key=f"bulk_apply_{kind.value}"):
            rows = [ItemUpdate(name=row["name"], amount=row["amount"]) for row in edited]
            run_store_action(
                lambda: store.bulk_update_items(kind, rows),
                success_message="Changes saved",
            )


# =============================================================================
# ANALYSIS
# =============================================================================

def render_analysis_page(store: SnapshotStore):
    """Totals, ratios and category charts of the active snapshot."""
    st.title("📊 Financial Analysis")
    active = store.active_snapshot
    if active is None:
        st.info("Please create or select a snapshot first")
        return

    dashboard = build_dashboard(active)
    totals = dashboard.summary

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Assets", format_currency(totals.total_assets))
    col2.metric("Total Liabilities", format_currency(totals.total_liabilities))
    col3.metric("Net Worth", format_currency(totals.net_worth))
    col1, col2, col3 = st.columns(3)
    col1.metric("Monthly Income", format_currency(totals.total_income))
    col2.metric("Monthly Expenses", format_currency(totals.total_expenses))
    col3.metric("Monthly Savings", format_currency(totals.savings))

    st.markdown("### Financial Ratios")
    for reading in dashboard.readings:
        css = {
            RatioHealth.POSITIVE: "ratio-positive",
            RatioHealth.WARNING: "ratio-warning",
            RatioHealth.NEGATIVE: "ratio-negative",
        }[reading.health]
        st.markdown(
            f"{reading.label}: <span class='{css}'>{reading.formatted}</span>",
            unsafe_allow_html=True,
        )

    st.markdown("### Breakdown")
    columns = st.columns(2)
    for position, chart in enumerate(dashboard.breakdowns):
        with columns[position % 2]:
            if chart.is_empty:
                st.info(f"{chart.title}: no data")
                continue
            fig = go.Figure(go.Pie(
                labels=[s.label for s in chart.slices],
                values=[s.amount for s in chart.slices],
                marker=dict(colors=[s.color for s in chart.slices]),
            ))
            fig.update_layout(title=chart.title, margin=dict(t=40, b=10, l=10, r=10))
            st.plotly_chart(fig, use_container_width=True)


# =============================================================================
# ADVISOR
# =============================================================================

def render_advisor_page(store: SnapshotStore, advisor_flow: AdvisorFlow):
    """Free-form questions about the active snapshot."""
    st.title("🤖 Finance Advisor")
    active = store.active_snapshot
    st.caption(
        f"Talking about: {active.label}" if active
        else "No snapshot selected"
    )
    if not advisor_flow.is_configured:
        st.warning("Gemini API key not set; answers use a basic local analysis.")

    if "chat" not in st.session_state:
        st.session_state.chat = []

    for role, message in st.session_state.chat:
        with st.chat_message(role):
            st.text(message)

    question = st.chat_input("Ask about your finances")
    if question:
        st.session_state.chat.append(("user", question))
        with st.spinner("Thinking..."):
            response = run_async(advisor_flow.answer_question(question))
        st.session_state.chat.append(("assistant", response.answer))
        st.rerun()


# =============================================================================
# DATA
# =============================================================================

def render_data_page(store: SnapshotStore, audit_logger):
    """Import, export, clear and recent activity."""
    st.title("📁 Data")

    st.download_button(
        "⬇ Export all data",
        store.export_json(),
        file_name=store.export_filename(date.today()),
        mime="application/json",
    )

    uploaded = st.file_uploader("Import data", type=["json"])
    if uploaded is not None and st.button("⬆ Replace all data with this file"):
        run_store_action(
            lambda: store.import_json(uploaded.getvalue().decode("utf-8")),
            success_message="Data imported successfully",
        )

    with st.expander("⚠️ Danger zone"):
        confirm = st.checkbox("I understand this deletes every snapshot")
        if st.button("Clear all data", disabled=not confirm):
            run_store_action(store.clear, success_message="All data cleared")

    st.markdown("### Recent activity")
    events = audit_logger.recent_events(limit=20)
    if not events:
        st.info("No activity yet")
    for event in events:
        st.text(f"{event.timestamp:%Y-%m-%d %H:%M:%S} · {event.description}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for name in ("storage", "advisor", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings loaded")
        else:
            st.error(f"❌ {name.title()} - {status.get(f'{name}_error', 'invalid')}")

    settings = get_settings()
    st.json({
        "storage_backend": settings.storage.backend,
        "data_path": settings.storage.data_path,
        "advisor_model": settings.advisor.model_name,
        "advisor_configured": settings.advisor.is_configured,
    })
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Set `GEMINI_API_KEY` to enable the advisor."
    )


if __name__ == "__main__":
    main()
