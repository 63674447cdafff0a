"""
Transaction Desk - logic behind the transaction management screen.

Transactions can only be created for accounts whose application was
submitted; any transaction can be reversed once, with a reason.
"""

import asyncio
import math
import logging
from typing import Iterable, List, Optional, Tuple

from config.application_schema import (
    ApplicationStatus,
    ApplicationSummary,
    ReverseRequest,
    Transaction,
    TransactionRequest,
)
from backend.api_client import KYCApiClient
from backend.exceptions import NetworkError
from backend.form_controller import ActionResult

logger = logging.getLogger(__name__)


def submitted_applications(applications: Iterable[ApplicationSummary]) -> List[ApplicationSummary]:
    """Applications that can receive transactions."""
    return [app for app in applications if app.status == ApplicationStatus.SUBMITTED.value]


def parse_amount(amount) -> Tuple[Optional[float], Optional[str]]:
    """Parse an amount entered as text or number."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None, "Amount must be a valid number"

    if not math.isfinite(value):
        return None, "Amount must be a valid number"

    if value <= 0:
        return None, "Amount must be greater than zero"

    return value, None


def validate_transaction_input(account_number: str, amount, narration: str) -> Optional[str]:
    """Return an error message, or None when the input can be sent."""
    if not account_number or amount in (None, "") or not narration:
        return "Please fill all fields"

    _, error = parse_amount(amount)
    return error


def validate_reverse_input(transaction_id: str, reason: str) -> Optional[str]:
    if not transaction_id or not reason:
        return "Please fill all fields"
    return None


class TransactionDesk:
    """Loads and changes applications/transactions through the API client."""

    def __init__(self, client: KYCApiClient):
        self.client = client
        self.applications: List[ApplicationSummary] = []
        self.transactions: List[Transaction] = []

    async def load(self) -> ActionResult:
        """Fetch applications and transactions together."""
        try:
            self.applications, self.transactions = await asyncio.gather(
                self.client.get_applications(),
                self.client.get_transactions(),
            )
        except NetworkError as e:
            logger.warning(f"[Transactions] Failed to load data: {e.message}")
            return ActionResult(success=False, message=e.message)
        return ActionResult(success=True)

    @property
    def accounts(self) -> List[ApplicationSummary]:
        return submitted_applications(self.applications)

    async def create_transaction(self, account_number: str, amount, narration: str) -> ActionResult:
        error = validate_transaction_input(account_number, amount, narration)
        if error:
            return ActionResult(success=False, message=error)

        value, _ = parse_amount(amount)
        request = TransactionRequest(account_number=account_number, amount=value, narration=narration)

        try:
            transaction = await self.client.create_transaction(request)
        except NetworkError as e:
            return ActionResult(success=False, message=e.message)

        logger.info(f"[Transactions] Created {transaction.transaction_id} on {account_number}")
        await self.load()
        return ActionResult(
            success=True,
            message="Transaction created successfully!",
            data=transaction.model_dump(by_alias=True)
        )

    async def reverse_transaction(self, transaction_id: str, reason: str) -> ActionResult:
        error = validate_reverse_input(transaction_id, reason)
        if error:
            return ActionResult(success=False, message=error)

        try:
            transaction = await self.client.reverse_transaction(
                ReverseRequest(transaction_id=transaction_id, reason=reason)
            )
        except NetworkError as e:
            return ActionResult(success=False, message=e.message)

        logger.info(f"[Transactions] Reversed {transaction_id}")
        await self.load()
        return ActionResult(
            success=True,
            message="Transaction reversed successfully!",
            data=transaction.model_dump(by_alias=True)
        )
