"""
Reusable Form Field Components for the onboarding form

Provides Streamlit-based field renderers that:
- Keep the widget value in session state under a prefixed key
- Show the field's validation error inline
- Build select options from the bank directory
- Run API coroutines from the synchronous script
"""

import asyncio
import hashlib
from typing import Dict, List, Optional, Sequence

import streamlit as st

from config.application_schema import Bank, Branch


def get_field_key(field_id: str, prefix: str = "form") -> str:
    """Generate unique session state key for a field."""
    return f"{prefix}_{field_id}"


def format_file_size(size_bytes: int) -> str:
    """Human readable file size: 0 Bytes, 512 Bytes, 1.5 KB, 2 MB."""
    if size_bytes <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while exponent < len(units) - 1 and size_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size_bytes / (1024 ** exponent), 2)
    return f"{value:g} {units[exponent]}"


def get_file_signature(uploaded_file) -> Optional[str]:
    """Fingerprint an uploaded file so a re-render does not upload it again."""
    if uploaded_file is None:
        return None
    digest = hashlib.md5(uploaded_file.getvalue()).hexdigest()
    return f"{uploaded_file.name}:{uploaded_file.size}:{digest}"


def bank_options(banks: Sequence[Bank]) -> Dict[str, str]:
    """Select options for banks: id -> display name, with an empty choice first."""
    options = {"": "Select Bank"}
    options.update({str(bank.id): bank.value for bank in banks})
    return options


def branch_options(branches: Optional[Sequence[Branch]]) -> Dict[str, str]:
    options = {"": "Select Branch"}
    options.update({str(branch.id): branch.value for branch in branches or []})
    return options


FIELD_LABELS = {
    "bank_id": "Bank",
    "branch_id": "Branch",
    "account_name": "Account Name",
    "account_number": "Account Number",
    "proof_document": "Proof of Bank Account",
}


def pending_fields_caption(errors: Dict[str, str]) -> str:
    """Caption under a disabled Next button naming each field still to fix."""
    if not errors:
        return ""
    pending = "; ".join(f"{FIELD_LABELS.get(field, field)}: {error}" for field, error in errors.items())
    return f"Complete all required fields to continue. {pending}"


def render_field_error(error: Optional[str]):
    """Show a field's validation error under the widget."""
    if error:
        st.markdown(
            f'<p style="color:#dc3545;font-size:0.85rem;margin:-8px 0 8px;">{error}</p>',
            unsafe_allow_html=True
        )


def render_select_field(
    field_id: str,
    label: str,
    options: Dict[str, str],
    value: str = "",
    error: Optional[str] = None,
    disabled: bool = False,
    prefix: str = "form"
) -> str:
    """
    Render a select box over {value: label} options.

    Returns:
        The selected option value ("" for the placeholder)
    """
    keys: List[str] = list(options)
    key = get_field_key(field_id, prefix)

    # Options change with the selected bank; drop a value that is gone
    if st.session_state.get(key) not in keys:
        st.session_state[key] = value if value in keys else ""

    selected = st.selectbox(
        f"{label} *",
        keys,
        format_func=lambda k: options.get(k, k),
        key=key,
        disabled=disabled
    )
    render_field_error(error)
    return selected or ""


def render_text_field(
    field_id: str,
    label: str,
    value: str = "",
    error: Optional[str] = None,
    placeholder: str = "",
    prefix: str = "form"
) -> str:
    """
    Render a text input with inline error.

    Returns:
        The current value
    """
    key = get_field_key(field_id, prefix)
    if key not in st.session_state:
        st.session_state[key] = value

    current = st.text_input(f"{label} *", key=key, placeholder=placeholder)
    render_field_error(error)
    return current


def run_async(coro):
    """Drive an API coroutine to completion from the Streamlit script."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
