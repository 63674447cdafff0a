"""
Test Suite: Application Flow

Tests:
1. Bank selection loads branches and resets the branch
2. Step-by-step advance
3. Review requires a stored application
4. Submit success and failure
5. Save as draft, then submit
6. Document attach
7. Transitions not allowed in a step
"""

import asyncio

import pytest

from backend.exceptions import InvalidTransitionError, MissingStateError, ValidationError
from backend.form_controller import ApplicationFlow
from config.application_schema import ApplicationRecord, ApplicationStatus, Bank, Branch, FormStep

PDF_BYTES = b"%PDF-1.4 bank statement"


def fill_form(flow: ApplicationFlow):
    """Enter a complete, valid application through the flow."""
    asyncio.run(flow.select_bank("1"))
    flow.select_branch("2")
    flow.set_account_name("Acme Traders")
    flow.set_account_number("12345678")
    result = asyncio.run(flow.attach_document("statement.pdf", PDF_BYTES, "application/pdf"))
    assert result.success


def test_select_bank(flow):
    print("\nTEST 1: Select bank")
    print("-" * 40)

    result = asyncio.run(flow.load_banks())
    assert result.success
    assert len(flow.banks) == 4

    asyncio.run(flow.select_bank("1"))
    assert [b.bank.id for b in flow.branches] == [1, 1, 1, 1]
    flow.select_branch("2")
    assert flow.record.branch_id == "2"

    asyncio.run(flow.select_bank("3"))
    assert flow.record.bank_id == "3"
    assert flow.record.branch_id == ""
    assert flow.errors["branch_id"] == "Branch is required"

    asyncio.run(flow.select_bank(""))
    assert flow.branches is None
    assert flow.errors["bank_id"] == "Bank is required"

    print(" PASSED: Select bank")


def test_branch_load_failure(flow, demo_adapter):
    print("\nTEST 2: Branch load failure")
    print("-" * 40)

    demo_adapter.state.fail("/branches", 500, "Directory unavailable")
    result = asyncio.run(flow.select_bank("1"))

    assert not result.success
    assert result.message == "Directory unavailable"
    assert flow.record.bank_id == "1"
    assert flow.branches == []

    print(" PASSED: Branch load failure")


def test_advance_steps(flow, storage):
    print("\nTEST 3: Advance through steps")
    print("-" * 40)

    with pytest.raises(ValidationError) as exc_info:
        flow.advance()
    assert set(exc_info.value.errors) == {"bank_id", "branch_id"}
    assert flow.step == FormStep.BANK_BRANCH

    asyncio.run(flow.select_bank("1"))
    flow.select_branch("5")
    assert flow.errors == {"branch_id": "Selected branch does not belong to the selected bank"}

    flow.select_branch("1")
    assert flow.advance() == FormStep.ACCOUNT_DETAILS

    flow.set_account_name("Acme Traders")
    flow.set_account_number("1234567")
    with pytest.raises(ValidationError):
        flow.advance()

    flow.set_account_number("12345678")
    assert flow.advance() == FormStep.DOCUMENT
    assert "fundWithdrawForm" not in storage

    asyncio.run(flow.attach_document("statement.png", PDF_BYTES, "image/png"))
    assert flow.advance() == FormStep.REVIEW
    assert "fundWithdrawForm" in storage

    print(" PASSED: Advance through steps")


def test_go_to_review(flow, store):
    print("\nTEST 4: Go to review")
    print("-" * 40)

    with pytest.raises(ValidationError) as exc_info:
        flow.go_to_review()
    assert len(exc_info.value.errors) == 5
    assert not store.has_record()

    fill_form(flow)
    assert flow.go_to_review() == FormStep.REVIEW
    assert store.load() == flow.record

    print(" PASSED: Go to review")


def test_load_review_without_state(flow):
    """Review with nothing stored sends the user back to entry."""
    print("\nTEST 5: Review without stored application")
    print("-" * 40)

    flow.step = FormStep.REVIEW
    with pytest.raises(MissingStateError):
        flow.load_review()
    assert flow.step == FormStep.BANK_BRANCH

    print(" PASSED: Review without stored application")


def test_load_review_restores_record(api_client, store, flow):
    print("\nTEST 6: Review restores stored application")
    print("-" * 40)

    fill_form(flow)
    flow.go_to_review()

    reloaded = ApplicationFlow(api_client, store)
    record = reloaded.load_review()
    assert record.account_name == "Acme Traders"
    assert record.uploaded_file is not None
    assert reloaded.step == FormStep.REVIEW

    print(" PASSED: Review restores stored application")


def test_submit_success(flow, store, demo_adapter):
    print("\nTEST 7: Submit")
    print("-" * 40)

    fill_form(flow)
    flow.go_to_review()

    result = asyncio.run(flow.submit())
    assert result.success
    assert result.message == "Application submitted successfully!"
    assert flow.step == FormStep.SUBMITTED
    assert flow.record.status == ApplicationStatus.SUBMITTED
    assert not store.has_record()

    saved = demo_adapter.state.applications[0]
    assert saved["status"] == "SUBMITTED"
    assert saved["originalFileName"] == "statement.pdf"
    assert saved["fileSize"] == len(PDF_BYTES)

    with pytest.raises(InvalidTransitionError):
        asyncio.run(flow.submit())
    with pytest.raises(InvalidTransitionError):
        flow.edit()

    print(" PASSED: Submit")


def test_submit_failure_keeps_review(flow, store, demo_adapter):
    print("\nTEST 8: Submit failure")
    print("-" * 40)

    fill_form(flow)
    flow.go_to_review()
    demo_adapter.state.fail("/applications/submit", 500, "Database unavailable")

    result = asyncio.run(flow.submit())
    assert not result.success
    assert result.message == "Database unavailable"
    assert flow.step == FormStep.REVIEW
    assert store.has_record()
    assert demo_adapter.state.applications == []

    print(" PASSED: Submit failure")


def test_draft_then_submit(flow, store, demo_adapter):
    print("\nTEST 9: Draft then submit")
    print("-" * 40)

    with pytest.raises(InvalidTransitionError):
        asyncio.run(flow.save_draft())

    fill_form(flow)
    flow.go_to_review()

    result = asyncio.run(flow.save_draft())
    assert result.success
    assert result.message == "Application saved as draft successfully!"
    assert flow.step == FormStep.DRAFT
    assert not store.has_record()
    assert demo_adapter.state.applications[0]["status"] == "DRAFT"

    result = asyncio.run(flow.submit())
    assert result.success
    assert flow.step == FormStep.SUBMITTED
    assert len(demo_adapter.state.applications) == 1
    assert demo_adapter.state.applications[0]["status"] == "SUBMITTED"

    print(" PASSED: Draft then submit")


def test_edit_and_reset(flow, store):
    print("\nTEST 10: Edit and reset")
    print("-" * 40)

    fill_form(flow)
    flow.go_to_review()

    assert flow.edit() == FormStep.BANK_BRANCH
    assert flow.record.account_number == "12345678"

    flow.reset()
    assert flow.record.account_number == ""
    assert flow.step == FormStep.BANK_BRANCH
    assert not store.has_record()

    print(" PASSED: Edit and reset")


def test_attach_document(flow, demo_adapter):
    print("\nTEST 11: Attach document")
    print("-" * 40)

    result = asyncio.run(flow.attach_document("archive.zip", b"PK", "application/zip"))
    assert not result.success
    assert result.errors == {"proof_document": "File must be PDF, PNG, or JPG format"}
    assert flow.record.proof_document.name == "archive.zip"
    assert demo_adapter.state.files == {}

    demo_adapter.state.fail("/files/upload", 500)
    result = asyncio.run(flow.attach_document("statement.pdf", PDF_BYTES, "application/pdf"))
    assert not result.success
    assert result.message == "Failed to upload file. Please try again."
    assert flow.record.proof_document is None

    demo_adapter.state.recover("/files/upload")
    result = asyncio.run(flow.attach_document("statement.pdf", PDF_BYTES, "application/pdf"))
    assert result.success
    assert result.data["originalName"] == "statement.pdf"
    assert flow.record.uploaded_file.size == len(PDF_BYTES)

    flow.clear_document()
    assert flow.record.proof_document is None
    assert flow.record.uploaded_file is None

    print(" PASSED: Attach document")


def test_advance_outside_entry(flow):
    print("\nTEST 12: Advance outside entry steps")
    print("-" * 40)

    fill_form(flow)
    flow.go_to_review()

    with pytest.raises(InvalidTransitionError):
        flow.advance()
    with pytest.raises(InvalidTransitionError):
        flow.go_to_review()

    print(" PASSED: Advance outside entry steps")


def test_example_record_reaches_review(api_client, store):
    print("\nTEST 13: Complete record reaches review")
    print("-" * 40)

    record = ApplicationRecord.from_fields(
        bank_id="1",
        branch_id="2",
        account_name="Jane Doe",
        account_number="12345678",
        proof_document={"name": "statement.pdf", "mimeType": "application/pdf", "size": 1000},
    )
    flow = ApplicationFlow(api_client, store, record=record)
    assert flow.all_errors() == {}
    assert flow.go_to_review() == FormStep.REVIEW

    blank = ApplicationFlow(api_client, store, record=ApplicationRecord.from_fields(account_name="Jane Doe"))
    errors = blank.all_errors()
    assert set(errors) == {"bank_id", "branch_id", "account_number", "proof_document"}
    with pytest.raises(ValidationError):
        blank.go_to_review()

    print(" PASSED: Complete record reaches review")


class GatedBranchClient:
    """Answers bank 2's branches at once; bank 1's only after bank 2 has answered."""

    def __init__(self):
        self.bank_two_answered = asyncio.Event()

    async def get_branches(self, bank_id):
        if bank_id == 1:
            await self.bank_two_answered.wait()
        else:
            self.bank_two_answered.set()
        bank = Bank(id=bank_id, value=f"Bank {bank_id}")
        return [Branch(id=bank_id * 10, value=f"Branch of bank {bank_id}", bank=bank)]


def test_overlapping_bank_selection(store):
    """Branch responses apply in resolution order: the slower, older one wins."""
    print("\nTEST 14: Overlapping bank selection")
    print("-" * 40)

    flow = ApplicationFlow(GatedBranchClient(), store)

    async def pick_two_banks():
        await asyncio.gather(flow.select_bank("1"), flow.select_bank("2"))

    asyncio.run(pick_two_banks())

    assert flow.record.bank_id == "2"
    assert [b.bank.id for b in flow.branches] == [1]

    # The stale list makes every branch of bank 2 fail membership
    flow.select_branch("20")
    assert flow.errors == {"branch_id": "Selected branch does not belong to the selected bank"}

    print(" PASSED: Overlapping bank selection")
