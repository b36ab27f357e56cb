"""
Streamlit Frontend for Kesi Ledger

This is the user interface for recording wallet transactions and
checking balances.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Show the service fee before the user saves
3. Clear error messages in simple language
4. Visual feedback for all operations

The UI holds no business logic: every number shown here comes from
the ledger core via the orchestrator.
"""

import asyncio
from datetime import date

import streamlit as st

from kesi_ledger.audit import create_correlation_id
from kesi_ledger.config import get_settings, validate_all_settings
from kesi_ledger.models import PaymentMethod, TransactionType, format_money
from kesi_ledger.orchestrator import LedgerComponents, create_app_components


# Page configuration
st.set_page_config(
    page_title="Kesi Ledger",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def announce_fee_rate(rate) -> None:
    """Tell the user the rate used for new transactions has changed."""
    st.toast(f"Service fee rate is now {rate}%. New transactions use this rate.")


@st.cache_resource
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    components = create_app_components()
    components.fee_rates.subscribe(announce_fee_rate)
    return components


def month_bounds(today: date) -> tuple[date, date]:
    """First and last day of the month containing today."""
    start = today.replace(day=1)
    if today.month == 12:
        next_month = today.replace(year=today.year + 1, month=1, day=1)
    else:
        next_month = today.replace(month=today.month + 1, day=1)
    return start, date.fromordinal(next_month.toordinal() - 1)


def main():
    """Main application entry point."""
    components = get_components()

    # Pick up a rate changed from another window
    components.fee_rates.refresh()

    st.sidebar.title("💰 Kesi Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["➕ Add Transaction", "📒 Transactions", "📄 Export Report", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_balance_summary(components)

    if page == "➕ Add Transaction":
        render_add_page(components)
    elif page == "📒 Transactions":
        render_transactions_page(components)
    elif page == "📄 Export Report":
        render_report_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_balance_summary(components: LedgerComponents):
    """Net income, effective expenses and balance in the sidebar."""
    totals = components.transactions.aggregates()
    st.sidebar.subheader("Balance Summary")
    st.sidebar.metric("Net Income", format_money(totals.net_income))
    st.sidebar.metric("Total Expenses", format_money(totals.effective_expenses))
    st.sidebar.metric("Current Balance", format_money(totals.balance))


def render_add_page(components: LedgerComponents):
    """Render the add-transaction form."""
    st.title("➕ Add New Transaction")

    if "category_value" not in st.session_state:
        st.session_state.category_value = ""
    # A suggestion is applied before the category widget is created
    if "suggested_category" in st.session_state:
        st.session_state.category_value = st.session_state.pop("suggested_category")

    col1, col2 = st.columns(2)

    with col1:
        tx_date = st.date_input("Date *", value=date.today())
        tx_type = st.radio(
            "Type *",
            options=list(TransactionType),
            index=1,
            format_func=lambda x: x.value.title(),
            horizontal=True,
        )
        description = st.text_input("Description *")
        amount = st.number_input(
            "Amount *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )

    with col2:
        name = st.text_input("Name *")
        phone_number = st.text_input("Phone Number *", placeholder="+95 9 123 456 789")
        payment_method = st.selectbox(
            "Payment Method *",
            options=list(PaymentMethod),
            format_func=lambda x: x.value,
        )
        category = st.text_input("Category *", key="category_value")

        if st.button("✨ Suggest Category"):
            with st.spinner("Thinking..."):
                suggested, message = run_async(
                    components.categories.suggest(description)
                )
            if suggested:
                st.session_state.suggested_category = suggested
                st.rerun()
            else:
                st.warning(message)

    rate = components.fee_rates.current_rate
    fee = components.transactions.preview_fee(amount if amount > 0 else None)
    st.info(f"Service fee ({rate}%): {format_money(fee)}")

    if st.button("Add Transaction", type="primary"):
        transaction, validation, message = components.transactions.submit(
            {
                "date": tx_date,
                "type": tx_type,
                "description": description,
                "amount": str(amount),
                "category": category,
                "name": name,
                "phoneNumber": phone_number,
                "paymentMethod": payment_method,
            },
            correlation_id=create_correlation_id(),
        )
        if transaction is None:
            st.error(message)
        else:
            st.success(message)
            for warning in validation.warnings:
                st.warning(warning)


def render_transactions_page(components: LedgerComponents):
    """Render the transaction list (most recent first)."""
    st.title("📒 Transactions")

    transactions = components.transactions.transactions
    if not transactions:
        st.info("No transactions yet. Add one from the 'Add Transaction' page.")
        return

    for tx in transactions:
        sign = "+" if tx.is_income else "-"
        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.markdown(f"**{tx.description}** · {tx.category}")
                st.caption(
                    f"{tx.date.strftime('%Y-%m-%d')} · {tx.name} · "
                    f"{tx.phone_number} · {tx.payment_method.value}"
                )
            with col2:
                st.markdown(f"**{sign}{format_money(tx.amount)}**")
                if tx.has_fee:
                    st.caption(f"Fee: {format_money(tx.service_fee)}")


def render_report_page(components: LedgerComponents):
    """Render the report export page."""
    st.title("📄 Export Report")
    st.caption("Reports are downloaded as CSV files; PDF export is not available.")

    default_from, default_to = month_bounds(date.today())
    col1, col2 = st.columns(2)
    with col1:
        date_from = st.date_input("From", value=default_from)
    with col2:
        date_to = st.date_input("To", value=default_to)

    if st.button("Generate Report", type="primary"):
        report, message = components.reports.export(
            date_from,
            date_to,
            correlation_id=create_correlation_id(),
        )

        if report is None:
            st.error(message)
            return
        if not report.has_data:
            st.info(message)
            return

        st.subheader(report.title)
        st.caption(report.subtitle)
        table = report.to_table()
        st.table([dict(zip(table[0], row)) for row in table[1:]])

        st.download_button(
            "⬇️ Download CSV",
            data=report.to_csv(),
            file_name=report.file_name("csv"),
            mime="text/csv",
        )


def render_settings_page(components: LedgerComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Service Fee Rate (%)")
    raw_rate = st.text_input(
        "Rate",
        value=str(components.fee_rates.current_rate),
        placeholder="e.g., 1",
    )
    if st.button("Save Rate", type="primary"):
        ok, _, message = components.fee_rates.update(
            raw_rate,
            correlation_id=create_correlation_id(),
        )
        if ok:
            st.success(message)
        else:
            st.error(message)

    st.markdown("---")
    st.markdown("### Service Status")

    status = validate_all_settings()
    services = [
        ("Local Storage", "storage"),
        ("Gemini (Category Suggestions)", "gemini"),
    ]
    for label, key in services:
        if status.get(key, False):
            st.success(f"✅ {label} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {label} - {error}")

    st.caption(f"Data file: {get_settings().storage.file_path}")


if __name__ == "__main__":
    main()
