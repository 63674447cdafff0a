"""
Merchant KYC Onboarding - Streamlit application

Pages:
- Entry form: bank, branch, account details, proof of account
- Review: read back from session storage, save as draft or submit
- Draft saved / Application submitted
- Transaction management (sidebar)

Run with:
    streamlit run frontend/kyc_onboarding.py
"""

import logging
import sys
from pathlib import Path

import streamlit as st

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings, validate_settings
from config.application_schema import FormStep
from backend.api_client import build_api_client
from backend.exceptions import MissingStateError
from backend.form_controller import ApplicationFlow
from backend.form_store import FormStateStore
from backend.form_validator import validate_step
from backend.transactions import TransactionDesk
from frontend.form_fields import (
    bank_options,
    branch_options,
    format_file_size,
    get_field_key,
    get_file_signature,
    pending_fields_caption,
    render_field_error,
    render_select_field,
    render_text_field,
    run_async,
)
from frontend.transactions import render_transactions_page

logger = logging.getLogger(__name__)

FIELD_PREFIX = "kyc"
STEP_NAMES = ["Bank & Branch", "Account Details", "Document", "Review"]


# =============================================================================
# STATE
# =============================================================================

def init_onboarding_state():
    """Create the API client, flow and transaction desk once per browser session."""
    if "api_client" not in st.session_state:
        st.session_state.api_client = build_api_client(settings)

    if "application_flow" not in st.session_state:
        st.session_state.application_flow = ApplicationFlow(
            client=st.session_state.api_client,
            store=FormStateStore(st.session_state, settings.FORM_STATE_KEY),
        )

    if "transaction_desk" not in st.session_state:
        st.session_state.transaction_desk = TransactionDesk(st.session_state.api_client)

    defaults = {
        "banner": None,
        "banks_loaded": False,
        "document_signature": None,
        "uploader_generation": 0,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def set_banner(message: str, kind: str = "error"):
    st.session_state.banner = (kind, message)


def render_banner():
    """Dismissible message for API failures and redirects."""
    banner = st.session_state.banner
    if not banner:
        return

    kind, message = banner
    col1, col2 = st.columns([5, 1])
    with col1:
        {"error": st.error, "warning": st.warning, "success": st.success}.get(kind, st.info)(message)
    with col2:
        if st.button("Dismiss", key="dismiss_banner"):
            st.session_state.banner = None
            st.rerun()


def clear_form_widgets():
    for key in list(st.session_state.keys()):
        if str(key).startswith(f"{FIELD_PREFIX}_"):
            del st.session_state[key]
    st.session_state.document_signature = None


def visible_errors(flow: ApplicationFlow) -> dict:
    """Errors of fields the user has filled in; empty ones are listed under the Next button."""
    record = flow.record
    filled = {
        "bank_id": bool(record.bank_id),
        "branch_id": bool(record.branch_id),
        "account_name": bool(record.account_name),
        "account_number": bool(record.account_number),
        "proof_document": record.proof_document is not None,
    }
    return {field: error for field, error in flow.all_errors().items() if filled.get(field)}


# =============================================================================
# STEP INDICATOR
# =============================================================================

def render_step_indicator(flow: ApplicationFlow):
    """Show which steps of the application are complete."""
    entry_steps = [FormStep.BANK_BRANCH, FormStep.ACCOUNT_DETAILS, FormStep.DOCUMENT]
    done = [not validate_step(flow.record.entry_for(step), flow.branches) for step in entry_steps]
    done.append(flow.step in (FormStep.DRAFT, FormStep.SUBMITTED))

    cols = st.columns(len(STEP_NAMES))
    for i, (col, name) in enumerate(zip(cols, STEP_NAMES)):
        with col:
            active = (flow.step == FormStep.REVIEW and i == 3) or (flow.step in entry_steps and i < 3 and not done[i])
            marker = "✓" if done[i] else str(i + 1)
            style = "font-weight:600;color:#2563eb;" if active else ("color:#16a34a;" if done[i] else "color:#6b7280;")
            st.markdown(
                f'<div style="text-align:center;{style}">{marker}<br/><span style="font-size:12px;">{name}</span></div>',
                unsafe_allow_html=True
            )
    st.markdown("---")


# =============================================================================
# ENTRY FORM
# =============================================================================

def render_entry_page(flow: ApplicationFlow):
    """Bank, branch, account details and proof of account on one page."""
    # Every rerun retries until the directory has loaded once
    if not st.session_state.banks_loaded:
        result = run_async(flow.load_banks())
        if result.success:
            st.session_state.banks_loaded = True
        else:
            st.error(result.message)
            st.button("Retry", key="retry_banks")

    st.markdown("### Fund Withdraw Option")
    st.caption("Please provide your bank account details for verification")

    errors = visible_errors(flow)

    # Bank
    bank_id = render_select_field(
        "bank_id", "Bank", bank_options(flow.banks),
        value=flow.record.bank_id, error=errors.get("bank_id"), prefix=FIELD_PREFIX
    )
    if bank_id != flow.record.bank_id:
        st.session_state[get_field_key("branch_id", FIELD_PREFIX)] = ""
        with st.spinner("Loading branches..."):
            result = run_async(flow.select_bank(bank_id))
        if not result.success:
            set_banner(result.message)
        st.rerun()

    # Branch
    branch_id = render_select_field(
        "branch_id", "Branch", branch_options(flow.branches),
        value=flow.record.branch_id, error=errors.get("branch_id"),
        disabled=not flow.record.bank_id, prefix=FIELD_PREFIX
    )
    if branch_id != flow.record.branch_id:
        flow.select_branch(branch_id)
        st.rerun()

    # Account details
    account_name = render_text_field(
        "account_name", "Account Name", flow.record.account_name,
        error=errors.get("account_name"), placeholder="Enter account holder name", prefix=FIELD_PREFIX
    )
    if account_name != flow.record.account_name:
        flow.set_account_name(account_name)
        st.rerun()

    account_number = render_text_field(
        "account_number", "Account Number", flow.record.account_number,
        error=errors.get("account_number"), placeholder="Enter account number (numbers only)", prefix=FIELD_PREFIX
    )
    if account_number != flow.record.account_number:
        flow.set_account_number(account_number)
        st.rerun()

    # Proof of account
    render_document_field(flow, errors.get("proof_document"))

    st.markdown("---")
    col1, col2, col3 = st.columns([1, 1, 1])
    with col3:
        pending = flow.all_errors()
        if not pending:
            if st.button("Next", type="primary", use_container_width=True):
                flow.go_to_review()
                st.rerun()
        else:
            st.button("Next", disabled=True, use_container_width=True)
            st.caption(pending_fields_caption(pending))


def document_uploader_key() -> str:
    """The uploader key changes on every reset so Streamlit drops the held file."""
    return get_field_key(f"proof_document_{st.session_state.uploader_generation}", FIELD_PREFIX)


def reset_document_uploader():
    st.session_state.uploader_generation += 1
    st.session_state.document_signature = None


def remove_document(flow: ApplicationFlow):
    flow.clear_document()
    reset_document_uploader()


def render_document_field(flow: ApplicationFlow, error):
    uploaded = st.file_uploader(
        "Proof of Bank Account *",
        type=["pdf", "png", "jpg", "jpeg"],
        key=document_uploader_key(),
        help="PDF, PNG, JPG up to 5MB"
    )

    signature = get_file_signature(uploaded)
    if signature and signature != st.session_state.document_signature:
        st.session_state.document_signature = signature
        with st.spinner("Uploading document..."):
            result = run_async(flow.attach_document(uploaded.name, uploaded.getvalue(), uploaded.type))
        if not result.success and not result.errors:
            set_banner(result.message)
            reset_document_uploader()
        st.rerun()

    document = flow.record.proof_document
    if document:
        col1, col2 = st.columns([4, 1])
        with col1:
            status = "uploaded" if flow.record.uploaded_file else "not uploaded"
            st.caption(f"{document.name} - {document.mime_type} - {format_file_size(document.size)} ({status})")
        with col2:
            if st.button("Remove", key="remove_document"):
                remove_document(flow)
                st.rerun()

    render_field_error(error)


# =============================================================================
# REVIEW
# =============================================================================

def render_review_page(flow: ApplicationFlow):
    """Review the stored application, then save as draft or submit."""
    try:
        record = flow.load_review()
    except MissingStateError as e:
        set_banner(str(e), "warning")
        st.rerun()
        return

    st.markdown("### Review Your Information")
    st.caption("Please review your KYC application details before submitting")

    render_application_summary(flow, record)

    st.markdown("---")
    col1, col2, col3 = st.columns([1, 1, 1])

    with col1:
        if st.button("Edit Information", use_container_width=True):
            flow.edit()
            st.rerun()

    with col2:
        if st.button("Save as Draft", use_container_width=True):
            with st.spinner("Saving..."):
                result = run_async(flow.save_draft())
            set_banner(result.message, "success" if result.success else "error")
            st.rerun()

    with col3:
        if st.button("Submit", type="primary", use_container_width=True):
            with st.spinner("Submitting..."):
                result = run_async(flow.submit())
            if result.success:
                st.session_state.banner = None
            else:
                set_banner(result.message)
            st.rerun()


def render_application_summary(flow: ApplicationFlow, record):
    bank_names = {str(bank.id): bank.value for bank in flow.banks}
    branch_names = {str(branch.id): branch.value for branch in flow.branches or []}

    st.markdown("**Bank Information**")
    st.markdown(f"- Bank: {bank_names.get(record.bank_id, record.bank_id)}")
    st.markdown(f"- Branch: {branch_names.get(record.branch_id, record.branch_id)}")

    st.markdown("**Account Information**")
    st.markdown(f"- Account Name: {record.account_name}")
    st.markdown(f"- Account Number: {record.account_number}")

    st.markdown("**Document Information**")
    document = record.proof_document
    if document:
        st.markdown(f"- {document.name} ({document.mime_type} • {format_file_size(document.size)})")


# =============================================================================
# TERMINAL PAGES
# =============================================================================

def render_start_new_button():
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        if st.button("Start New Application", use_container_width=True):
            st.session_state.application_flow.reset()
            clear_form_widgets()
            st.session_state.banner = None
            st.rerun()


def render_draft_page(flow: ApplicationFlow):
    st.markdown("### Application Draft")
    st.info("Your KYC application has been saved as a draft. You can complete it later.")
    render_application_summary(flow, flow.record)

    st.markdown("---")
    if st.button("Submit Application", type="primary"):
        with st.spinner("Submitting..."):
            result = run_async(flow.submit())
        set_banner(result.message, "success" if result.success else "error")
        st.rerun()
    render_start_new_button()


def render_success_page(flow: ApplicationFlow):
    st.markdown('<h2 style="text-align:center;color:#16a34a;">Application Submitted!</h2>', unsafe_allow_html=True)
    st.success("Your KYC application has been submitted successfully and is under review.")
    render_application_summary(flow, flow.record)
    st.markdown("---")
    render_start_new_button()


# =============================================================================
# MAIN APP
# =============================================================================

def render_onboarding(flow: ApplicationFlow):
    if flow.step in (FormStep.BANK_BRANCH, FormStep.ACCOUNT_DETAILS, FormStep.DOCUMENT, FormStep.REVIEW):
        render_step_indicator(flow)

    if flow.step == FormStep.REVIEW:
        render_review_page(flow)
    elif flow.step == FormStep.DRAFT:
        render_draft_page(flow)
    elif flow.step == FormStep.SUBMITTED:
        render_success_page(flow)
    else:
        render_entry_page(flow)


def main():
    """Main application entry point."""
    st.set_page_config(page_title="Merchant KYC Onboarding", layout="centered")
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    is_valid, issues = validate_settings(settings)
    if not is_valid:
        for issue in issues:
            st.error(issue)
        st.stop()

    init_onboarding_state()

    with st.sidebar:
        st.markdown("### OP-Partner Management")
        page = st.radio("Navigation", ["Onboarding", "Transactions"], key="nav_page", label_visibility="collapsed")
        if settings.DEMO_MODE:
            st.caption("Demo mode: API answered from memory")

    render_banner()

    if page == "Transactions":
        render_transactions_page(st.session_state.transaction_desk)
    else:
        st.markdown("## KYC Verification")
        render_onboarding(st.session_state.application_flow)


if __name__ == "__main__":
    main()
