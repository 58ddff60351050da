"""
Streamlit Frontend for Personal Budgeting

This is the user interface people use to log spending by speaking or
typing a short phrase ("spent 12 on coffee") or by pasting receipt text.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation at every step
3. Clear error messages in simple language
4. No hidden actions

The UI enforces the human-in-the-loop principle:
- User sees what was understood
- User confirms or edits
- Nothing is saved without explicit "Save" action
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st

from budgeting.audit import create_correlation_id
from budgeting.config import get_settings, validate_all_settings
from budgeting.models.budget import (
    Account,
    AccountType,
    Category,
    CategoryCreate,
    DashboardFilters,
    ParsedTransaction,
    TransactionSource,
)
from budgeting.orchestrator import (
    AccountFlow,
    CategoryFlow,
    DashboardFlow,
    QuickEntryFlow,
    create_app_components,
)
from budgeting.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Personal Budgeting",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


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
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def main():
    """Main application entry point."""
    quick_flow, category_flow, account_flow, dashboard_flow, sheets_client = get_components()

    st.sidebar.title("💸 Personal Budgeting")
    if sheets_client is None:
        st.sidebar.caption("Storage: in memory (data is lost on restart)")
    st.sidebar.markdown("---")

    user_id = st.sidebar.text_input(
        "Signed in as",
        value=st.session_state.get("user_id", ""),
        help="Your user id",
    ).strip()
    st.session_state.user_id = user_id

    page = st.sidebar.radio(
        "Navigate to:",
        ["🎙️ Quick Entry", "🧾 Receipt Text", "🗂️ Categories", "📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page()
        return

    if not user_id:
        st.info("Enter your user id in the sidebar to get started.")
        return

    account = render_account_picker(account_flow, user_id)
    if account is None:
        return

    if page == "🎙️ Quick Entry":
        render_quick_entry_page(quick_flow, user_id, account, TransactionSource.VOICE)
    elif page == "🧾 Receipt Text":
        render_quick_entry_page(quick_flow, user_id, account, TransactionSource.RECEIPT)
    elif page == "🗂️ Categories":
        render_categories_page(category_flow, user_id, account)
    elif page == "📊 Dashboard":
        render_dashboard_page(dashboard_flow, user_id)


def render_account_picker(account_flow: AccountFlow, user_id: str) -> Optional[Account]:
    """Sidebar account selector with inline account creation."""
    accounts = run_async(account_flow.list_accounts(user_id))

    with st.sidebar.expander("➕ New account", expanded=not accounts):
        name = st.text_input("Account name", key="new_account_name")
        account_type = st.selectbox(
            "Type",
            options=list(AccountType),
            format_func=lambda t: t.value.title(),
            key="new_account_type",
        )
        if st.button("Create account") and name.strip():
            try:
                run_async(account_flow.create_account(user_id, name, account_type))
                st.rerun()
            except StorageError as e:
                st.error(f"Could not create account: {e}")

    if not accounts:
        st.info("Create your first account in the sidebar.")
        return None

    return st.sidebar.selectbox(
        "Account",
        options=accounts,
        format_func=lambda a: f"{a.name} ({a.type.value})",
    )


def _reset_entry():
    st.session_state.entry_state = "idle"
    st.session_state.parsed = None
    st.session_state.correlation_id = None


def render_quick_entry_page(
    quick_flow: QuickEntryFlow,
    user_id: str,
    account: Account,
    source: TransactionSource,
):
    """Render the quick entry page (spoken/typed text or receipt text)."""
    is_receipt = source == TransactionSource.RECEIPT
    st.title("🧾 Receipt Text" if is_receipt else "🎙️ Quick Entry")

    if "entry_state" not in st.session_state:
        _reset_entry()

    if st.session_state.entry_state == "idle":
        if is_receipt:
            text = st.text_area("Paste the receipt text", height=240)
        else:
            text = st.text_input(
                "What did you spend?",
                placeholder="e.g., spent twelve on coffee",
                help="Dictate or type a short phrase",
            )

        if st.button("🔍 Understand", type="primary") and text.strip():
            correlation_id = create_correlation_id()
            if is_receipt:
                parsed = run_async(
                    quick_flow.parse_receipt_text(text, user_id, account, correlation_id)
                )
            else:
                parsed = run_async(
                    quick_flow.parse_text(text, user_id, account, source, correlation_id)
                )

            if parsed is None:
                st.warning("Sorry, I couldn't find an amount or a category in that.")
                return

            st.session_state.parsed = parsed
            st.session_state.correlation_id = correlation_id
            st.session_state.entry_state = "reviewing"
            st.rerun()

    if st.session_state.entry_state == "reviewing":
        render_review(quick_flow, user_id, account, source)

    if st.session_state.entry_state == "saved":
        tx = st.session_state.saved_transaction
        st.markdown(f"""
        <div class="success-box">
            <h3>✅ Saved</h3>
            <p><strong>Amount:</strong> {money(tx.amount)}</p>
            <p><strong>Category:</strong> {tx.category} {('/ ' + tx.subcategory) if tx.subcategory else ''}</p>
            <p><strong>Date:</strong> {tx.transaction_date.strftime('%d %B %Y')}</p>
        </div>
        """, unsafe_allow_html=True)

        if st.button("➕ Add another"):
            _reset_entry()
            st.rerun()


def render_review(
    quick_flow: QuickEntryFlow,
    user_id: str,
    account: Account,
    source: TransactionSource,
):
    """Editable review form; nothing is saved until the user confirms."""
    parsed: ParsedTransaction = st.session_state.parsed
    categories = run_async(quick_flow.load_categories(user_id, account))
    names = [c.name for c in categories if c.name]

    st.subheader("📋 Review")
    st.markdown("*You can edit any field before saving*")

    col1, col2 = st.columns(2)
    with col1:
        amount = st.number_input(
            "Amount *",
            value=float(parsed.amount),
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        category_name = st.selectbox(
            "Category *",
            options=[""] + names,
            index=(names.index(parsed.category) + 1) if parsed.category in names else 0,
        )
        subs = next((c.subs for c in categories if c.name == category_name), [])
        subcategory = st.selectbox(
            "Subcategory",
            options=[""] + subs,
            index=(subs.index(parsed.subcategory) + 1) if parsed.subcategory in subs else 0,
        )
    with col2:
        transaction_date = st.date_input("Date *", value=date.today())
        description = st.text_area("Description", value=parsed.description)

    edited = ParsedTransaction(
        amount=Decimal(str(amount)).quantize(Decimal("0.01")),
        category=category_name,
        subcategory=subcategory,
        description=description,
    )
    validation, message = run_async(
        quick_flow.validate(
            edited,
            categories,
            account,
            transaction_date,
            st.session_state.correlation_id,
        )
    )

    box = "success-box" if validation.is_valid else "warning-box"
    st.markdown(
        f'<div class="{box}"><pre>{message}</pre></div>',
        unsafe_allow_html=True,
    )

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Confirm and Save", type="primary", disabled=not validation.can_save):
            try:
                tx = run_async(
                    quick_flow.confirm_and_save(
                        edited,
                        user_id,
                        account,
                        transaction_date,
                        source,
                        st.session_state.correlation_id,
                    )
                )
                st.session_state.saved_transaction = tx
                st.session_state.entry_state = "saved"
                st.rerun()
            except StorageError as e:
                st.error(f"Failed to save: {e}")
    with col2:
        if st.button("❌ Discard"):
            run_async(
                quick_flow.reject(
                    parsed,
                    user_id,
                    reason="User discarded",
                    correlation_id=st.session_state.correlation_id,
                )
            )
            _reset_entry()
            st.rerun()


def render_categories_page(category_flow: CategoryFlow, user_id: str, account: Account):
    """Render the category management page."""
    st.title("🗂️ Categories")
    st.caption(f"Categories for {account.name}")

    categories: list[Category] = run_async(category_flow.list_categories(user_id, account))

    for category in categories:
        with st.expander(f"{category.icon} {category.name or '(unnamed)'}"):
            st.write(", ".join(category.subs) or "No subcategories")
            new_sub = st.text_input("New subcategory", key=f"sub_{category.name}")
            if st.button("Add", key=f"add_{category.name}") and new_sub.strip():
                added = run_async(
                    category_flow.add_subcategory(user_id, account, category.name, new_sub)
                )
                if not added:
                    st.info("That subcategory already exists.")
                st.rerun()

    st.markdown("---")
    st.subheader("New category")
    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Name")
    with col2:
        icon = st.text_input("Icon", value="🏷️")
    with col3:
        color = st.color_picker("Color", value="#4f46e5")
    subs = st.text_input("Subcategories (comma separated)")

    if st.button("Create category", type="primary"):
        try:
            new_category = CategoryCreate(
                name=name,
                icon=icon,
                color=color,
                subs=[s for s in subs.split(",") if s.strip()],
            )
            run_async(category_flow.create_category(user_id, account, new_category))
            st.rerun()
        except StorageError as e:
            st.error(str(e))
        except ValueError as e:
            st.error(f"Please fill in name, icon and color: {e}")


def render_dashboard_page(dashboard_flow: DashboardFlow, user_id: str):
    """Render the dashboard page."""
    st.title("📊 Dashboard")

    col1, col2, col3 = st.columns(3)
    with col1:
        start_date = st.date_input("From", value=None)
    with col2:
        end_date = st.date_input("To", value=None)
    with col3:
        categories = st.text_input("Categories (comma separated)")

    filters = DashboardFilters(
        start_date=start_date,
        end_date=end_date,
        categories=categories or None,
    )
    summary = run_async(dashboard_flow.summarise(user_id, filters))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Spent", money(summary.totals.total_spent))
    col2.metric("Income", money(summary.totals.total_income))
    col3.metric("Net", money(summary.totals.net))
    col4.metric("Transactions", summary.totals.transactions_count)

    if summary.totals.transactions_count == 0:
        st.info("No transactions match these filters yet.")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Top categories")
        st.bar_chart(
            {c.category: float(abs(c.total)) for c in summary.top_categories}
        )
    with col2:
        st.subheader("By month")
        st.line_chart(
            {m.month: float(m.total) for m in summary.monthly_series}
        )

    st.subheader("Transactions")
    for group in summary.grouped_transactions:
        st.markdown(f"**{group.day.strftime('%a %d %b %Y')}** · {money(group.total)}")
        for tx in group.items:
            label = tx.category + (f" / {tx.subcategory}" if tx.subcategory else "")
            st.markdown(f"- {money(tx.amount)} · {label or 'Uncategorized'} · {tx.description}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Extractor", "extractor"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your "
        "Google Sheets credentials path and spreadsheet id. "
        "See `.env.example` for the variables."
    )


if __name__ == "__main__":
    main()
