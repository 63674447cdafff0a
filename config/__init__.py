# Config module
from .settings import settings, validate_settings, Settings
from .application_schema import (
    ApplicationStatus,
    FormStep,
    ENTRY_STEPS,
    Bank,
    Branch,
    DocumentDescriptor,
    FileUploadResponse,
    BankBranchEntry,
    AccountDetailsEntry,
    DocumentEntry,
    StepEntry,
    ApplicationRecord,
    ApplicationRequest,
    ApplicationSummary,
    Transaction,
    TransactionRequest,
    ReverseRequest,
)

__all__ = [
    "settings",
    "validate_settings",
    "Settings",
    "ApplicationStatus",
    "FormStep",
    "ENTRY_STEPS",
    "Bank",
    "Branch",
    "DocumentDescriptor",
    "FileUploadResponse",
    "BankBranchEntry",
    "AccountDetailsEntry",
    "DocumentEntry",
    "StepEntry",
    "ApplicationRecord",
    "ApplicationRequest",
    "ApplicationSummary",
    "Transaction",
    "TransactionRequest",
    "ReverseRequest",
]
