"""
Streamlit Dashboard for Agent Ledger

A read-only view over the same tool service the HTTP server uses.

DESIGN PRINCIPLES:
1. The dashboard renders the prop bundle, nothing else
2. All numbers come from the backend; the UI only formats them
3. Errors are shown with their kind so they can be acted on
4. Recording expenses stays a tool operation, not a dashboard feature
"""

import streamlit as st

from agent_ledger.config import validate_all_settings
from agent_ledger.dashboard import (
    DashboardRunner,
    balance_rows,
    breakdown_rows,
    default_date_window,
    expense_rows,
    header_caption,
    metric_cards,
    parse_dashboard_props,
    recent_expenses,
)
from agent_ledger.orchestrator import LedgerToolService, create_ledger_service


# Page configuration
st.set_page_config(
    page_title="Agent Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_runner() -> DashboardRunner:
    """One event loop shared by every rerun (cached)."""
    return DashboardRunner()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return get_runner().run(coro)


@st.cache_resource
def get_service() -> LedgerToolService:
    """Get or create the tool service, provisioning its database once (cached)."""
    service = create_ledger_service()
    run_async(service.provision())
    return service


def main():
    """Main application entry point."""
    try:
        service = get_service()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return

    st.sidebar.title("📒 Agent Ledger")
    st.sidebar.markdown(f"**Backend:** {service.provider_name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(service)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(service: LedgerToolService):
    """Render expenses and balances for the chosen window."""
    st.title("Expenses and Balances")

    default_from, default_to = default_date_window()
    col1, col2, col3 = st.columns(3)

    with col1:
        agent_id = st.text_input("Agent id", placeholder="All agents")
    with col2:
        date_from = st.date_input("From", value=default_from)
    with col3:
        date_to = st.date_input("To", value=default_to)

    view = st.radio("View", ["getExpenses", "getBalance"], horizontal=True)

    raw_filters = {
        "agentId": agent_id or None,
        "from": date_from.isoformat(),
        "to": date_to.isoformat(),
    }

    with st.spinner("Loading ledger..."):
        if view == "getExpenses":
            response = run_async(service.get_expenses(raw_filters))
        else:
            response = run_async(service.get_balance(raw_filters))

    if not response.ok:
        st.error(f"{response.error['kind']}: {response.error['message']}")
        return

    props = parse_dashboard_props(response.output)
    if props is None:
        st.warning("The backend returned data the dashboard cannot display.")
        return

    st.caption(header_caption(props))

    for column, card in zip(st.columns(3), metric_cards(props)):
        with column:
            st.metric(card.label, card.value)
            st.caption(card.caption)

    currency = props.filters.currency
    expenses_tab, balances_tab, breakdown_tab = st.tabs(
        ["Recent Expenses", "Balances", "Breakdown"]
    )

    with expenses_tab:
        rows = expense_rows(recent_expenses(props.expenses), currency)
        if rows:
            st.dataframe(rows, use_container_width=True, hide_index=True)
        else:
            st.info("No expenses in this range.")

    with balances_tab:
        st.dataframe(
            balance_rows(props.balances, currency),
            use_container_width=True,
            hide_index=True,
        )

    with breakdown_tab:
        by_agent, by_category = breakdown_rows(props)
        left, right = st.columns(2)
        with left:
            st.markdown("**By agent**")
            st.dataframe(by_agent, use_container_width=True, hide_index=True)
        with right:
            st.markdown("**By category**")
            st.dataframe(by_category, use_container_width=True, hide_index=True)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Backend selection", "ledger"),
        ("Puzzle (PostgreSQL)", "puzzle"),
        ("Manufact API", "manufact"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.warning(f"⚠️ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
