"""
Application Flow - step transitions of the onboarding form.

Steps: bank & branch -> account details -> document -> review -> draft / submitted

A step can only be left once its own fields validate. Reaching review
persists the record to the session store; the review page reads it back.
Save-as-draft and submit each call the API once and clear the stored record
on success.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.application_schema import (
    ENTRY_STEPS,
    ApplicationRecord,
    ApplicationStatus,
    Bank,
    BankBranchEntry,
    Branch,
    DocumentDescriptor,
    DocumentEntry,
    FormStep,
)
from backend.api_client import KYCApiClient
from backend.exceptions import (
    InvalidTransitionError,
    MissingStateError,
    NetworkError,
    ValidationError,
)
from backend.form_store import FormStateStore
from backend.form_validator import validate_application, validate_proof_document

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of a user action that talks to the API."""
    success: bool
    message: str = ""
    data: Optional[dict] = None
    errors: Dict[str, str] = field(default_factory=dict)


class ApplicationFlow:
    """
    State machine for one merchant's application.

    Known defect: branch and document requests are not cancelled when the
    selection changes. Responses are applied in the order they resolve, so a
    slow response for an earlier bank can overwrite the branches of the bank
    selected after it.
    """

    def __init__(
        self,
        client: KYCApiClient,
        store: FormStateStore,
        record: Optional[ApplicationRecord] = None
    ):
        self.client = client
        self.store = store
        self.record = record or ApplicationRecord()
        self.step = FormStep.BANK_BRANCH
        self.banks: List[Bank] = []
        self.branches: Optional[List[Branch]] = None

    # ========================================================================
    # FIELD EDITS
    # ========================================================================

    async def load_banks(self) -> ActionResult:
        try:
            self.banks = await self.client.get_banks()
        except NetworkError as e:
            logger.warning(f"[KYC Flow] Failed to load banks: {e.message}")
            return ActionResult(success=False, message=e.message)
        return ActionResult(success=True)

    async def select_bank(self, bank_id: str) -> ActionResult:
        """Select a bank, reset the branch and load the bank's branches."""
        self.record = self.record.with_entry(BankBranchEntry(bank_id=bank_id))
        self.branches = [] if bank_id else None

        if not bank_id:
            return ActionResult(success=True)

        try:
            branches = await self.client.get_branches(int(bank_id))
        except NetworkError as e:
            logger.warning(f"[KYC Flow] Failed to load branches for bank {bank_id}: {e.message}")
            return ActionResult(success=False, message=e.message)

        self.branches = branches
        return ActionResult(success=True)

    def select_branch(self, branch_id: str):
        self.record = self.record.with_entry(
            self.record.bank_branch.model_copy(update={"branch_id": branch_id})
        )

    def set_account_name(self, account_name: str):
        self.record = self.record.with_entry(
            self.record.account_details.model_copy(update={"account_name": account_name})
        )

    def set_account_number(self, account_number: str):
        self.record = self.record.with_entry(
            self.record.account_details.model_copy(update={"account_number": account_number})
        )

    async def attach_document(self, name: str, content: bytes, mime_type: str) -> ActionResult:
        """
        Attach the proof-of-account file.

        The descriptor is recorded first so validation reflects it right
        away; the upload only happens when the file passes the document rule.
        """
        descriptor = DocumentDescriptor(name=name, size=len(content), mime_type=mime_type)
        self.record = self.record.with_entry(DocumentEntry(proof_document=descriptor))

        is_valid, error = validate_proof_document(descriptor)
        if not is_valid:
            return ActionResult(success=False, message=error, errors={"proof_document": error})

        try:
            uploaded = await self.client.upload_file(name, content, mime_type)
        except NetworkError as e:
            logger.warning(f"[KYC Flow] Upload of {name} failed: {e.message}")
            self.record = self.record.with_entry(DocumentEntry())
            return ActionResult(success=False, message="Failed to upload file. Please try again.")

        self.record = self.record.with_entry(
            DocumentEntry(proof_document=descriptor, uploaded_file=uploaded)
        )
        return ActionResult(success=True, data=uploaded.model_dump(by_alias=True))

    def clear_document(self):
        self.record = self.record.with_entry(DocumentEntry())

    # ========================================================================
    # VALIDATION
    # ========================================================================

    @property
    def errors(self) -> Dict[str, str]:
        """Errors for the fields of the current step (all fields from review on)."""
        step = self.step if self.step in ENTRY_STEPS else None
        return validate_application(self.record, self.branches, step)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def all_errors(self) -> Dict[str, str]:
        return validate_application(self.record, self.branches)

    # ========================================================================
    # TRANSITIONS
    # ========================================================================

    def advance(self) -> FormStep:
        """Leave the current entry step once its fields validate."""
        if self.step not in ENTRY_STEPS:
            raise InvalidTransitionError(f"Cannot advance from {self.step.value}")

        errors = self.errors
        if errors:
            raise ValidationError(errors)

        if self.step == FormStep.DOCUMENT:
            self._enter_review()
        else:
            self.step = ENTRY_STEPS[ENTRY_STEPS.index(self.step) + 1]
        return self.step

    def go_to_review(self) -> FormStep:
        """Validate every entry step at once and move to review."""
        if self.step not in ENTRY_STEPS:
            raise InvalidTransitionError(f"Cannot go to review from {self.step.value}")

        errors = self.all_errors()
        if errors:
            raise ValidationError(errors)

        self._enter_review()
        return self.step

    def _enter_review(self):
        self.store.save(self.record)
        self.step = FormStep.REVIEW
        logger.info("[KYC Flow] Application ready for review")

    def load_review(self) -> ApplicationRecord:
        """
        Read the persisted application for the review page.

        Raises MissingStateError (after returning to the entry step) when
        nothing is stored.
        """
        record = self.store.load()
        if record is None:
            self.step = FormStep.BANK_BRANCH
            logger.info("[KYC Flow] No stored application, back to entry step")
            raise MissingStateError("No application to review. Please fill in the form first.")

        self.record = record
        self.step = FormStep.REVIEW
        return record

    def edit(self) -> FormStep:
        """Go back from review to the entry step, keeping the record."""
        if self.step != FormStep.REVIEW:
            raise InvalidTransitionError(f"Cannot edit from {self.step.value}")
        self.step = FormStep.BANK_BRANCH
        return self.step

    async def save_draft(self) -> ActionResult:
        """Save the reviewed application with status DRAFT."""
        if self.step != FormStep.REVIEW:
            raise InvalidTransitionError(f"Cannot save a draft from {self.step.value}")
        return await self._save(ApplicationStatus.DRAFT)

    async def submit(self) -> ActionResult:
        """Submit the application. All fields must validate."""
        if self.step not in (FormStep.REVIEW, FormStep.DRAFT):
            raise InvalidTransitionError(f"Cannot submit from {self.step.value}")

        errors = self.all_errors()
        if errors:
            return ActionResult(success=False, message="Please correct the highlighted fields.", errors=errors)

        return await self._save(ApplicationStatus.SUBMITTED)

    async def _save(self, status: ApplicationStatus) -> ActionResult:
        try:
            response = await self.client.submit_application(self.record.to_request(status))
        except NetworkError as e:
            logger.warning(f"[KYC Flow] Saving application as {status.value} failed: {e.message}")
            return ActionResult(success=False, message=e.message)

        self.record = self.record.model_copy(update={"status": status})
        self.store.clear()
        self.step = FormStep.SUBMITTED if status == ApplicationStatus.SUBMITTED else FormStep.DRAFT
        logger.info(f"[KYC Flow] Application saved as {status.value}")

        label = "submitted" if status == ApplicationStatus.SUBMITTED else "saved as draft"
        return ActionResult(success=True, message=f"Application {label} successfully!", data=response)

    def reset(self):
        """Start a new application."""
        self.store.clear()
        self.record = ApplicationRecord()
        self.step = FormStep.BANK_BRANCH
        self.branches = None
