"""
Transaction Management page.

Create a transaction against a submitted account, reverse a transaction,
and list applications and transactions.
"""

import streamlit as st

from backend.transactions import TransactionDesk
from frontend.form_fields import run_async


def render_message():
    message = st.session_state.get("transaction_message")
    if not message:
        return

    success, text = message
    (st.success if success else st.error)(text)
    if st.button("Dismiss", key="dismiss_transaction_message"):
        st.session_state.transaction_message = None
        st.rerun()


def render_transactions_page(desk: TransactionDesk):
    """Render the full transaction management page."""
    st.markdown("## Transaction Management")

    if not st.session_state.get("transactions_loaded"):
        result = run_async(desk.load())
        st.session_state.transactions_loaded = True
        if not result.success:
            st.session_state.transaction_message = (False, result.message)

    render_message()

    col1, col2 = st.columns(2)

    # ── Create Transaction ──
    with col1:
        st.markdown("#### Create Transaction")
        accounts = {
            app.account_number: f"{app.account_number} - {app.account_name} ({app.bank.value if app.bank else ''})"
            for app in desk.accounts
        }
        with st.form("create_transaction", clear_on_submit=True):
            account_number = st.selectbox(
                "Account Number",
                [""] + list(accounts),
                format_func=lambda k: accounts.get(k, "Select Account")
            )
            amount = st.text_input("Amount", placeholder="Enter amount")
            narration = st.text_input("Narration", placeholder="Enter narration")
            if st.form_submit_button("Create Transaction", use_container_width=True):
                with st.spinner("Creating..."):
                    result = run_async(desk.create_transaction(account_number, amount.strip(), narration.strip()))
                st.session_state.transaction_message = (result.success, result.message)
                st.rerun()

    # ── Reverse Transaction ──
    with col2:
        st.markdown("#### Reverse Transaction")
        with st.form("reverse_transaction", clear_on_submit=True):
            transaction_id = st.text_input("Transaction ID", placeholder="Enter transaction ID")
            reason = st.text_input("Reason", placeholder="Enter reason for reversal")
            if st.form_submit_button("Reverse Transaction", use_container_width=True):
                with st.spinner("Reversing..."):
                    result = run_async(desk.reverse_transaction(transaction_id.strip(), reason.strip()))
                st.session_state.transaction_message = (result.success, result.message)
                st.rerun()

    st.markdown("---")

    st.markdown("#### Applications")
    if desk.applications:
        st.dataframe(
            [
                {
                    "ID": app.id,
                    "Account Name": app.account_name,
                    "Account Number": app.account_number,
                    "Bank": app.bank.value if app.bank else "",
                    "Branch": app.branch.value if app.branch else "",
                    "Status": app.status,
                }
                for app in desk.applications
            ],
            use_container_width=True,
            hide_index=True
        )
    else:
        st.caption("No applications yet")

    st.markdown("#### Transactions")
    if desk.transactions:
        st.dataframe(
            [
                {
                    "Transaction ID": tx.transaction_id,
                    "Value": tx.value,
                    "Status": tx.status,
                    "Created": tx.created_at or "",
                }
                for tx in desk.transactions
            ],
            use_container_width=True,
            hide_index=True
        )
    else:
        st.caption("No transactions yet")

    if st.button("Refresh"):
        st.session_state.transactions_loaded = False
        st.rerun()
