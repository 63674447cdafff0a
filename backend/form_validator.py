"""
Form Validator - Field rules for the merchant onboarding form.

Provides:
- One validator per application field
- Per-step validation of tagged step entries
- Complete application validation with error aggregation

Validation is pure: it never mutates the record, it only computes the
mapping of field name -> error message.
"""

import re
from typing import Dict, Iterable, Optional, Tuple

from config.application_schema import (
    ENTRY_STEPS,
    AccountDetailsEntry,
    ApplicationRecord,
    BankBranchEntry,
    Branch,
    DocumentDescriptor,
    DocumentEntry,
    FormStep,
    StepEntry,
)


ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d+$", re.ASCII)
ACCOUNT_NUMBER_MIN_LENGTH = 8

ALLOWED_DOCUMENT_TYPES = ("application/pdf", "image/png", "image/jpeg")
MAX_DOCUMENT_SIZE_BYTES = 5 * 1024 * 1024  # 5 MiB

STEP_FIELDS = {
    FormStep.BANK_BRANCH: ("bank_id", "branch_id"),
    FormStep.ACCOUNT_DETAILS: ("account_name", "account_number"),
    FormStep.DOCUMENT: ("proof_document",),
}


# ============================================================================
# FIELD VALIDATORS
# ============================================================================

def validate_bank_id(bank_id: str) -> Tuple[bool, Optional[str]]:
    """Bank must be selected."""
    if not bank_id:
        return False, "Bank is required"
    return True, None


def validate_branch_id(
    branch_id: str,
    bank_id: str,
    branches: Optional[Iterable[Branch]] = None
) -> Tuple[bool, Optional[str]]:
    """
    Validate the selected branch.

    Membership is checked against the branches loaded for the selected bank.
    With no branch list (None) only the required check applies.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not branch_id:
        return False, "Branch is required"

    if branches is not None:
        belongs = any(
            str(branch.id) == branch_id and str(branch.bank.id) == bank_id
            for branch in branches
        )
        if not belongs:
            return False, "Selected branch does not belong to the selected bank"

    return True, None


def validate_account_name(account_name: str) -> Tuple[bool, Optional[str]]:
    """Account holder name, required after trimming whitespace."""
    if not account_name or not account_name.strip():
        return False, "Account name is required"
    return True, None


def validate_account_number(account_number: str) -> Tuple[bool, Optional[str]]:
    """
    Validate account number.
    Format: digits only, at least 8 of them

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not account_number:
        return False, "Account number is required"

    if not ACCOUNT_NUMBER_PATTERN.fullmatch(account_number):
        return False, "Account number must contain only numbers"

    if len(account_number) < ACCOUNT_NUMBER_MIN_LENGTH:
        return False, f"Account number must be at least {ACCOUNT_NUMBER_MIN_LENGTH} digits"

    return True, None


def validate_proof_document(document: Optional[DocumentDescriptor]) -> Tuple[bool, Optional[str]]:
    """
    Validate proof of bank account.
    Accepted: PDF, PNG, JPEG up to 5 MiB. Type is checked before size.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if document is None:
        return False, "Proof of bank account is required"

    if document.mime_type not in ALLOWED_DOCUMENT_TYPES:
        return False, "File must be PDF, PNG, or JPG format"

    if document.size > MAX_DOCUMENT_SIZE_BYTES:
        return False, "File size must be less than 5MB"

    return True, None


# ============================================================================
# STEP / FORM VALIDATION
# ============================================================================

def validate_step(
    entry: StepEntry,
    branches: Optional[Iterable[Branch]] = None
) -> Dict[str, str]:
    """
    Validate one tagged step entry.

    Args:
        entry: BankBranchEntry, AccountDetailsEntry or DocumentEntry
        branches: Branches loaded for the selected bank, if known

    Returns:
        Dict of field -> error message; empty when the step is valid
    """
    results = {}

    if isinstance(entry, BankBranchEntry):
        results["bank_id"] = validate_bank_id(entry.bank_id)
        results["branch_id"] = validate_branch_id(entry.branch_id, entry.bank_id, branches)
    elif isinstance(entry, AccountDetailsEntry):
        results["account_name"] = validate_account_name(entry.account_name)
        results["account_number"] = validate_account_number(entry.account_number)
    elif isinstance(entry, DocumentEntry):
        results["proof_document"] = validate_proof_document(entry.proof_document)
    else:
        raise TypeError(f"Not a step entry: {type(entry).__name__}")

    return {field: error for field, (is_valid, error) in results.items() if not is_valid}


def validate_application(
    record: ApplicationRecord,
    branches: Optional[Iterable[Branch]] = None,
    step: Optional[FormStep] = None
) -> Dict[str, str]:
    """
    Validate an application record.

    Args:
        record: The (possibly partial) application
        branches: Branches loaded for the selected bank, if known
        step: Only report fields of this entry step; None or REVIEW means all

    Returns:
        Dict of field -> error message; empty means valid
    """
    if branches is not None:
        branches = list(branches)

    steps = ENTRY_STEPS if step is None or step not in STEP_FIELDS else (step,)

    errors = {}
    for entry_step in steps:
        errors.update(validate_step(record.entry_for(entry_step), branches))
    return errors


def is_application_valid(
    record: ApplicationRecord,
    branches: Optional[Iterable[Branch]] = None
) -> bool:
    """True when every field of the record passes validation."""
    return not validate_application(record, branches)
