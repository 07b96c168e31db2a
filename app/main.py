"""
Streamlit Frontend for Hours Ledger

A single-user bookkeeping screen: hours worked, payments received,
and what is still owed.

DESIGN PRINCIPLES:
1. Every figure on screen comes from the Ledger Aggregator
2. Form errors are shown next to the field, nothing is auto-corrected
3. Imported entries are shown but cannot be edited
4. Visual feedback for all operations
"""

import asyncio
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import streamlit as st

from hours_ledger.config import get_settings, validate_all_settings
from hours_ledger.ledger import LedgerDataError
from hours_ledger.models.entries import (
    PaymentEntry,
    PaymentForm,
    ValidationResult,
    WorkLogEntry,
    WorkLogForm,
)
from hours_ledger.orchestrator import LedgerSession, create_app_components


# Page configuration
st.set_page_config(
    page_title="Hours Ledger",
    page_icon="⏱️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """One loop for the process, so cached HTTP clients stay bound to it."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = get_event_loop()
    asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def to_decimal(value) -> Optional[Decimal]:
    """Number inputs hand back floats; go through str to keep them exact."""
    if value is None:
        return None
    return Decimal(str(value))


def to_datetime(day: Optional[date], at: Optional[time] = None) -> Optional[datetime]:
    if day is None:
        return None
    return datetime.combine(day, at or time())


def show_field_errors(result: ValidationResult, field: str) -> None:
    for message in result.errors_for(field):
        st.error(message)


def notify(ok: bool, message: str) -> None:
    if ok:
        st.success(message)
    else:
        st.error(message)


def main():
    """Main application entry point."""
    session, _ = get_components()

    if not st.session_state.get("loaded"):
        with st.spinner("Loading records..."):
            ok, message = run_async(session.load())
        if not ok:
            st.error(message)
        st.session_state.loaded = True

    # Sidebar navigation
    st.sidebar.title("⏱️ Hours Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Overview", "🕒 Work Logs", "💵 Payments", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_live_rate(session)

    if page == "📊 Overview":
        render_overview_page(session)
    elif page == "🕒 Work Logs":
        render_work_logs_page(session)
    elif page == "💵 Payments":
        render_payments_page(session)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_live_rate(session: LedgerSession) -> None:
    """Sidebar input for today's exchange rate."""
    local = get_settings().app.local_currency
    earn = get_settings().app.earnings_currency
    current = float(session.live_exchange_rate) if session.live_exchange_rate else 0.0
    value = st.sidebar.number_input(
        f"Live rate ({local} per {earn})",
        min_value=0.0,
        value=current,
        step=100.0,
        help="Used to show the remaining balance in the local currency",
    )
    session.live_exchange_rate = to_decimal(value) if value > 0 else None


def render_overview_page(session: LedgerSession) -> None:
    """Totals and the narrative summary."""
    st.title("📊 Overview")
    app = get_settings().app
    earn, local = app.earnings_currency, app.local_currency

    try:
        totals = session.totals()
    except LedgerDataError as e:
        st.error(f"A stored payment is invalid: {e}")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Hours worked", f"{totals.total_hours:.2f}")
    col2.metric(f"Earned ({earn})", f"{totals.total_earnings:,.2f}")
    col3.metric(f"Paid ({earn})", f"{totals.total_payments_earnings_currency:,.2f}")

    col1, col2, col3 = st.columns(3)
    col1.metric(f"Paid ({local})", f"{totals.total_payments_local:,.0f}")
    col2.metric(f"Balance ({earn})", f"{totals.balance_earnings_currency:,.2f}")
    if session.live_exchange_rate:
        col3.metric(f"Balance ({local})", f"{totals.balance_local:,.0f}")
    else:
        col3.metric(f"Balance ({local})", "Set a live rate")

    st.markdown("---")
    if st.button("✨ Generate Summary", type="primary"):
        with st.spinner("Writing summary..."):
            summary = run_async(session.generate_summary())
        if summary.generated:
            st.markdown(f"""
            <div class="info-box">
                <p>{summary.summary}</p>
            </div>
            """, unsafe_allow_html=True)
        else:
            st.warning(summary.summary)


def work_log_rows(entries: list[WorkLogEntry]) -> list[dict]:
    return [
        {
            "Description": e.description,
            "Hours": f"{e.hours:.2f}",
            "Rate": f"{e.rate:.2f}",
            "Earnings": f"{e.earnings:.2f}",
            "Start": e.start.strftime("%Y-%m-%d %H:%M") if e.start else "",
            "Source": e.source.value,
        }
        for e in entries
    ]


def work_log_form_fields(
    key: str,
    existing: Optional[WorkLogEntry] = None,
) -> tuple[WorkLogForm, bool]:
    default_rate = float(get_settings().app.default_work_log_rate)
    with st.form(key):
        description = st.text_input(
            "Description",
            value=existing.description if existing else "",
        )
        col1, col2 = st.columns(2)
        with col1:
            hours = st.number_input(
                "Hours",
                min_value=0.0,
                value=float(existing.hours) if existing else 0.0,
                step=0.25,
            )
        with col2:
            rate = st.number_input(
                "Hourly rate",
                min_value=0.0,
                value=float(existing.rate) if existing else default_rate,
                step=0.5,
            )
        day = st.date_input(
            "Date",
            value=existing.start.date() if existing and existing.start else date.today(),
        )
        submitted = st.form_submit_button("💾 Save")

    form = WorkLogForm(
        description=description,
        hours=to_decimal(hours),
        rate=to_decimal(rate),
        start=to_datetime(day),
    )
    return form, submitted


def render_work_logs_page(session: LedgerSession) -> None:
    st.title("🕒 Work Logs")

    if st.button("🔄 Sync Time Report"):
        with st.spinner("Fetching time report..."):
            ok, message = run_async(session.sync_time_report())
        notify(ok, message)

    entries = session.work_logs
    if entries:
        st.dataframe(work_log_rows(entries), use_container_width=True)
    else:
        st.info("No work logs yet. Add one below or sync the time report.")

    st.markdown("### ➕ Add Work Log")
    form, submitted = work_log_form_fields("add_work_log")
    if submitted:
        result = session.validate_work_log(form)
        if result.is_valid:
            notify(*run_async(session.add_work_log(form)))
        else:
            for field in ("description", "hours", "rate", "end"):
                show_field_errors(result, field)

    editable = [e for e in session.manual_work_logs if e.id]
    if not editable:
        return

    st.markdown("### ✏️ Edit Work Log")
    st.caption("Imported entries are read-only and are not listed here.")
    selected = st.selectbox(
        "Entry",
        options=editable,
        format_func=lambda e: f"{e.description} ({e.hours:.2f}h)",
    )
    form, submitted = work_log_form_fields(f"edit_work_log_{selected.id}", selected)
    if submitted:
        result = session.validate_work_log(form)
        if result.is_valid:
            notify(*run_async(session.update_work_log(selected.id, form)))
        else:
            for field in ("description", "hours", "rate", "end"):
                show_field_errors(result, field)

    if st.button("🗑️ Delete selected work log"):
        notify(*run_async(session.delete_work_log(selected.id)))


def payment_rows(entries: list[PaymentEntry]) -> list[dict]:
    return [
        {
            "Date": e.date.strftime("%Y-%m-%d"),
            "Amount": f"{e.amount:,.0f}",
            "Rate": f"{e.exchange_rate:,.2f}",
            "In earnings currency": f"{e.amount_in_earnings_currency:,.2f}",
            "Description": e.description or "",
        }
        for e in entries
    ]


def payment_form_fields(
    key: str,
    defaults: PaymentForm,
) -> tuple[PaymentForm, bool]:
    with st.form(key):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(
                "Amount received",
                min_value=0.0,
                value=float(defaults.amount or 0),
                step=1000.0,
            )
        with col2:
            exchange_rate = st.number_input(
                "Exchange rate at payment time",
                min_value=0.0,
                value=float(defaults.exchange_rate or 0),
                step=100.0,
            )
        day = st.date_input(
            "Date",
            value=defaults.date.date() if defaults.date else date.today(),
        )
        description = st.text_input("Description", value=defaults.description or "")
        submitted = st.form_submit_button("💾 Save")

    form = PaymentForm(
        amount=to_decimal(amount),
        exchange_rate=to_decimal(exchange_rate),
        date=to_datetime(day),
        description=description,
    )
    return form, submitted


def render_payments_page(session: LedgerSession) -> None:
    st.title("💵 Payments")

    if session.payments:
        st.dataframe(payment_rows(session.payments), use_container_width=True)
    else:
        st.info("No payments recorded yet.")

    st.markdown("### ➕ Add Payment")
    form, submitted = payment_form_fields("add_payment", session.new_payment_form())
    if submitted:
        result = session.validate_payment(form)
        if result.is_valid:
            notify(*run_async(session.add_payment(form)))
        else:
            for field in ("amount", "exchange_rate", "date"):
                show_field_errors(result, field)

    editable = [p for p in session.payments if p.id]
    if not editable:
        return

    st.markdown("### ✏️ Edit Payment")
    selected = st.selectbox(
        "Payment",
        options=editable,
        format_func=lambda p: f"{p.date:%Y-%m-%d}: {p.amount:,.0f}",
    )
    defaults = PaymentForm(
        amount=selected.amount,
        exchange_rate=selected.exchange_rate,
        date=selected.date,
        description=selected.description,
    )
    form, submitted = payment_form_fields(f"edit_payment_{selected.id}", defaults)
    if submitted:
        result = session.validate_payment(form)
        if result.is_valid:
            notify(*run_async(session.update_payment(selected.id, form)))
        else:
            for field in ("amount", "exchange_rate", "date"):
                show_field_errors(result, field)

    if st.button("🗑️ Delete selected payment"):
        notify(*run_async(session.delete_payment(selected.id)))


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (Summary)", "gemini"),
        ("Clockify (Time Report)", "clockify"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
