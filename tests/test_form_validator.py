"""
Test Suite: Form Validator

Tests:
1. Bank and branch rules
2. Branch membership
3. Account name
4. Account number
5. Proof document type and size
6. Step validation
7. Whole application validation
"""

import pytest

from backend.form_validator import (
    MAX_DOCUMENT_SIZE_BYTES,
    is_application_valid,
    validate_account_name,
    validate_account_number,
    validate_application,
    validate_bank_id,
    validate_branch_id,
    validate_proof_document,
    validate_step,
)
from config.application_schema import (
    AccountDetailsEntry,
    ApplicationRecord,
    Bank,
    BankBranchEntry,
    Branch,
    DocumentDescriptor,
    DocumentEntry,
    FormStep,
)

CHASE = Bank(id=1, value="Chase Bank")
CHASE_BRANCHES = [
    Branch(id=1, value="Downtown Branch", bank=CHASE),
    Branch(id=2, value="Midtown Branch", bank=CHASE),
]


def pdf(size=1024, mime_type="application/pdf", name="statement.pdf"):
    return DocumentDescriptor(name=name, size=size, mime_type=mime_type)


def test_bank_and_branch_required():
    """Empty bank and branch are reported."""
    print("\nTEST 1: Bank and branch required")
    print("-" * 40)

    assert validate_bank_id("") == (False, "Bank is required")
    assert validate_bank_id("1") == (True, None)
    assert validate_branch_id("", "1") == (False, "Branch is required")
    assert validate_branch_id("7", "1") == (True, None)

    print(" PASSED: Bank and branch required")


def test_branch_membership():
    """A branch must belong to the selected bank when branches are known."""
    print("\nTEST 2: Branch membership")
    print("-" * 40)

    assert validate_branch_id("2", "1", CHASE_BRANCHES) == (True, None)

    is_valid, error = validate_branch_id("5", "1", CHASE_BRANCHES)
    assert not is_valid
    assert error == "Selected branch does not belong to the selected bank"

    # Branch id exists, but for another bank
    is_valid, _ = validate_branch_id("1", "2", CHASE_BRANCHES)
    assert not is_valid

    # Branches still loading: only the required check applies
    assert validate_branch_id("5", "1", None) == (True, None)

    # Loaded but empty list: nothing can belong
    assert validate_branch_id("1", "1", [])[0] is False

    print(" PASSED: Branch membership")


def test_account_name():
    print("\nTEST 3: Account name")
    print("-" * 40)

    assert validate_account_name("Acme Traders") == (True, None)
    assert validate_account_name("") == (False, "Account name is required")
    assert validate_account_name("   ") == (False, "Account name is required")

    print(" PASSED: Account name")


@pytest.mark.parametrize("account_number,expected", [
    ("12345678", (True, None)),
    ("000000001234", (True, None)),
    ("", (False, "Account number is required")),
    ("1234567", (False, "Account number must be at least 8 digits")),
    ("1234567a", (False, "Account number must contain only numbers")),
    ("1234 5678", (False, "Account number must contain only numbers")),
    ("-12345678", (False, "Account number must contain only numbers")),
    ("12345678\n", (False, "Account number must contain only numbers")),
    ("١٢٣٤٥٦٧٨", (False, "Account number must contain only numbers")),
])
def test_account_number(account_number, expected):
    """Digits only, at least 8 of them; the character check comes first."""
    print("\nTEST 4: Account number")
    print("-" * 40)

    assert validate_account_number(account_number) == expected
    print(f"   {account_number!r} -> {expected}")


def test_proof_document():
    """PDF/PNG/JPEG up to 5 MiB; type is reported before size."""
    print("\nTEST 5: Proof document")
    print("-" * 40)

    assert validate_proof_document(None) == (False, "Proof of bank account is required")

    for mime_type in ("application/pdf", "image/png", "image/jpeg"):
        assert validate_proof_document(pdf(mime_type=mime_type)) == (True, None)
        print(f"   Accepted: {mime_type}")

    assert validate_proof_document(pdf(size=MAX_DOCUMENT_SIZE_BYTES)) == (True, None)
    assert validate_proof_document(pdf(size=MAX_DOCUMENT_SIZE_BYTES + 1)) == (
        False, "File size must be less than 5MB"
    )

    wrong_type = (False, "File must be PDF, PNG, or JPG format")
    assert validate_proof_document(pdf(mime_type="application/zip", name="a.zip")) == wrong_type
    assert validate_proof_document(pdf(size=0, mime_type="application/zip")) == wrong_type
    # Both checks fail: the type error wins
    assert validate_proof_document(pdf(size=10 * MAX_DOCUMENT_SIZE_BYTES, mime_type="image/gif")) == wrong_type

    print(" PASSED: Proof document")


def test_validate_step():
    """Each tagged entry only reports its own fields."""
    print("\nTEST 6: Step validation")
    print("-" * 40)

    assert validate_step(BankBranchEntry()) == {
        "bank_id": "Bank is required",
        "branch_id": "Branch is required",
    }
    assert validate_step(BankBranchEntry(bank_id="1", branch_id="2"), CHASE_BRANCHES) == {}

    assert validate_step(AccountDetailsEntry(account_name="Acme", account_number="123")) == {
        "account_number": "Account number must be at least 8 digits",
    }

    assert validate_step(DocumentEntry()) == {"proof_document": "Proof of bank account is required"}
    assert validate_step(DocumentEntry(proof_document=pdf())) == {}

    with pytest.raises(TypeError):
        validate_step("bank_branch")

    print(" PASSED: Step validation")


def test_validate_application(valid_record):
    """Whole-record validation aggregates every field."""
    print("\nTEST 7: Application validation")
    print("-" * 40)

    errors = validate_application(ApplicationRecord())
    assert set(errors) == {"bank_id", "branch_id", "account_name", "account_number", "proof_document"}
    print(f"   Empty record errors: {len(errors)}")

    assert validate_application(valid_record, CHASE_BRANCHES) == {}
    assert is_application_valid(valid_record, CHASE_BRANCHES)

    # Restrict to one step
    partial = ApplicationRecord.from_fields(bank_id="1", branch_id="1")
    assert validate_application(partial, CHASE_BRANCHES, FormStep.BANK_BRANCH) == {}
    assert set(validate_application(partial, CHASE_BRANCHES, FormStep.ACCOUNT_DETAILS)) == {
        "account_name", "account_number"
    }
    # Review validates everything
    assert len(validate_application(partial, CHASE_BRANCHES, FormStep.REVIEW)) == 3

    # Validation does not modify the record
    before = partial.model_dump()
    validate_application(partial, CHASE_BRANCHES)
    assert partial.model_dump() == before

    print(" PASSED: Application validation")


def test_example_scenarios():
    """Invalid fields reported together for a mixed record."""
    print("\nTEST 8: Example scenarios")
    print("-" * 40)

    record = ApplicationRecord.from_fields(
        bank_id="1",
        branch_id="9",
        account_name="Acme",
        account_number="12ab",
        proof_document={"name": "big.png", "size": 6 * 1024 * 1024, "mimeType": "image/png"},
    )
    errors = validate_application(record, CHASE_BRANCHES)
    assert errors == {
        "branch_id": "Selected branch does not belong to the selected bank",
        "account_number": "Account number must contain only numbers",
        "proof_document": "File size must be less than 5MB",
    }
    assert not is_application_valid(record, CHASE_BRANCHES)

    print(" PASSED: Example scenarios")
