"""
Data models for the merchant onboarding application.

Python attributes are snake_case; the camelCase aliases match the JSON
exchanged with the onboarding REST API and the serialized form state.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationStatus(str, Enum):
    """Status of an application as stored by the API."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"


class FormStep(str, Enum):
    """Steps of the onboarding flow, in order."""
    BANK_BRANCH = "bank_branch"
    ACCOUNT_DETAILS = "account_details"
    DOCUMENT = "document"
    REVIEW = "review"
    DRAFT = "draft"          # Saved as draft from review
    SUBMITTED = "submitted"  # Terminal


ENTRY_STEPS = (FormStep.BANK_BRANCH, FormStep.ACCOUNT_DETAILS, FormStep.DOCUMENT)


# ============================================================================
# BANK DIRECTORY
# ============================================================================

class Bank(ApiModel):
    """A bank from the external bank directory."""
    id: int
    value: str


class Branch(ApiModel):
    """A branch, owned by exactly one bank."""
    id: int
    value: str
    bank: Bank


# ============================================================================
# DOCUMENTS
# ============================================================================

class DocumentDescriptor(ApiModel):
    """Metadata of the proof-of-account file chosen by the user."""
    name: str
    size: int = Field(..., ge=0, description="File size in bytes")
    mime_type: str


class FileUploadResponse(ApiModel):
    """Stored file descriptor returned by the upload endpoint."""
    filename: str
    original_name: str
    size: int


# ============================================================================
# STEP ENTRIES
# ============================================================================

class BankBranchEntry(ApiModel):
    step: Literal["bank_branch"] = "bank_branch"
    bank_id: str = ""
    branch_id: str = ""


class AccountDetailsEntry(ApiModel):
    step: Literal["account_details"] = "account_details"
    account_name: str = ""
    account_number: str = ""


class DocumentEntry(ApiModel):
    step: Literal["document"] = "document"
    proof_document: Optional[DocumentDescriptor] = None
    uploaded_file: Optional[FileUploadResponse] = None


StepEntry = Annotated[
    Union[BankBranchEntry, AccountDetailsEntry, DocumentEntry],
    Field(discriminator="step"),
]

ENTRY_ATTRIBUTES = {
    "bank_branch": "bank_branch",
    "account_details": "account_details",
    "document": "document",
}


class ApplicationRecord(ApiModel):
    """
    The merchant's application, built up one step at a time.

    Each step owns a tagged entry; records are treated as immutable and
    every edit produces a new record through with_entry().
    """
    bank_branch: BankBranchEntry = Field(default_factory=BankBranchEntry)
    account_details: AccountDetailsEntry = Field(default_factory=AccountDetailsEntry)
    document: DocumentEntry = Field(default_factory=DocumentEntry)
    status: ApplicationStatus = ApplicationStatus.DRAFT

    @property
    def bank_id(self) -> str:
        return self.bank_branch.bank_id

    @property
    def branch_id(self) -> str:
        return self.bank_branch.branch_id

    @property
    def account_name(self) -> str:
        return self.account_details.account_name

    @property
    def account_number(self) -> str:
        return self.account_details.account_number

    @property
    def proof_document(self) -> Optional[DocumentDescriptor]:
        return self.document.proof_document

    @property
    def uploaded_file(self) -> Optional[FileUploadResponse]:
        return self.document.uploaded_file

    def entry_for(self, step: FormStep) -> Union[BankBranchEntry, AccountDetailsEntry, DocumentEntry]:
        """Return the tagged entry owned by an entry step."""
        return getattr(self, ENTRY_ATTRIBUTES[step.value])

    def with_entry(self, entry: StepEntry) -> "ApplicationRecord":
        """
        Return a copy of the record with one step entry replaced.

        A new bank invalidates the previously selected branch.
        """
        if isinstance(entry, BankBranchEntry) and entry.bank_id != self.bank_id:
            entry = entry.model_copy(update={"branch_id": ""})
        return self.model_copy(update={ENTRY_ATTRIBUTES[entry.step]: entry})

    @classmethod
    def from_fields(
        cls,
        bank_id: str = "",
        branch_id: str = "",
        account_name: str = "",
        account_number: str = "",
        proof_document: Optional[Union[DocumentDescriptor, dict]] = None,
        status: ApplicationStatus = ApplicationStatus.DRAFT,
    ) -> "ApplicationRecord":
        """Build a record from flat field values."""
        if isinstance(proof_document, dict):
            proof_document = DocumentDescriptor.model_validate(proof_document)
        return cls(
            bank_branch=BankBranchEntry(bank_id=bank_id, branch_id=branch_id),
            account_details=AccountDetailsEntry(account_name=account_name, account_number=account_number),
            document=DocumentEntry(proof_document=proof_document),
            status=status,
        )

    def to_request(self, status: ApplicationStatus) -> "ApplicationRequest":
        """Build the submit payload for the given status."""
        uploaded = self.uploaded_file
        return ApplicationRequest(
            bank_id=int(self.bank_id),
            branch_id=int(self.branch_id),
            account_name=self.account_name,
            account_number=self.account_number,
            status=status,
            file_name=uploaded.filename if uploaded else None,
            original_file_name=uploaded.original_name if uploaded else None,
            file_size=uploaded.size if uploaded else None,
        )


# ============================================================================
# API PAYLOADS
# ============================================================================

class ApplicationRequest(ApiModel):
    """Body of POST /applications/submit."""
    bank_id: int
    branch_id: int
    account_name: str
    account_number: str
    status: ApplicationStatus
    file_name: Optional[str] = None
    original_file_name: Optional[str] = None
    file_size: Optional[int] = None

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NamedRef(ApiModel):
    value: str


class ApplicationSummary(ApiModel):
    """Application as listed by GET /applications."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: int
    account_name: str
    account_number: str
    status: str
    bank: Optional[NamedRef] = None
    branch: Optional[NamedRef] = None


class Transaction(ApiModel):
    """Transaction as listed by GET /transactions."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    id: int
    transaction_id: str
    value: str
    status: str
    created_at: Optional[str] = None


class TransactionRequest(ApiModel):
    """Body of POST /transaction."""
    account_number: str
    amount: float
    narration: str


class ReverseRequest(ApiModel):
    """Body of POST /reverse."""
    transaction_id: str
    reason: str
