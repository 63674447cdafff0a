"""
Onboarding API Client - thin wrapper over the onboarding REST API.

Endpoints (base path /api):
- GET  /banks, GET /branches?bank_id=
- POST /files/upload (multipart, field "file")
- POST /applications/submit
- POST /transaction, POST /reverse
- GET  /applications, GET /transactions

Every call is awaitable. The blocking HTTP request runs in a worker thread;
callers get a typed payload or a NetworkError. Nothing is retried.
"""

import asyncio
import logging
from typing import Any, Optional

import requests

from config.settings import Settings, settings as default_settings
from config.application_schema import (
    ApplicationRequest,
    ApplicationSummary,
    Bank,
    Branch,
    FileUploadResponse,
    ReverseRequest,
    Transaction,
    TransactionRequest,
)
from backend.exceptions import NetworkError

logger = logging.getLogger(__name__)


class KYCApiClient:
    """
    Client for the onboarding REST API.

    The requests.Session is injected so tests and demo mode can mount their
    own transport adapter.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, error_message: str, **kwargs) -> Any:
        """Send one request and decode the JSON body, raising NetworkError on failure."""
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"[KYC API] {method} {path} failed: {e}")
            raise NetworkError(error_message) from e

        if not response.ok:
            body = response.text.strip()
            logger.warning(f"[KYC API] {method} {path} returned {response.status_code}: {body[:200]}")
            raise NetworkError(body or error_message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"[KYC API] {method} {path} returned invalid JSON")
            raise NetworkError(error_message, status_code=response.status_code) from e

    async def _call(self, method: str, path: str, error_message: str, **kwargs) -> Any:
        return await asyncio.to_thread(self._request, method, path, error_message, **kwargs)

    # ------------------------------------------------------------------
    # Bank directory
    # ------------------------------------------------------------------

    async def get_banks(self) -> list[Bank]:
        """Get all banks."""
        data = await self._call("GET", "/banks", "Failed to fetch banks")
        return [Bank.model_validate(item) for item in data]

    async def get_branches(self, bank_id: int) -> list[Branch]:
        """Get branches for a specific bank."""
        data = await self._call(
            "GET", "/branches", "Failed to fetch branches",
            params={"bank_id": bank_id}
        )
        return [Branch.model_validate(item) for item in data]

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def upload_file(self, filename: str, content: bytes, mime_type: str) -> FileUploadResponse:
        """Upload the proof-of-account document."""
        data = await self._call(
            "POST", "/files/upload", "Failed to upload file",
            files={"file": (filename, content, mime_type)}
        )
        logger.info(f"[KYC API] Uploaded {filename} as {data.get('filename')}")
        return FileUploadResponse.model_validate(data)

    async def submit_application(self, request: ApplicationRequest) -> dict:
        """Create or update an application (status DRAFT or SUBMITTED)."""
        data = await self._call(
            "POST", "/applications/submit", "Failed to submit application",
            json=request.to_payload()
        )
        logger.info(f"[KYC API] Application saved with status {request.status.value}")
        return data

    async def get_applications(self) -> list[ApplicationSummary]:
        """Get all applications."""
        data = await self._call("GET", "/applications", "Failed to fetch applications")
        return [ApplicationSummary.model_validate(item) for item in data]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def create_transaction(self, request: TransactionRequest) -> Transaction:
        data = await self._call(
            "POST", "/transaction", "Failed to create transaction",
            json=request.model_dump(mode="json", by_alias=True)
        )
        return Transaction.model_validate(data)

    async def reverse_transaction(self, request: ReverseRequest) -> Transaction:
        data = await self._call(
            "POST", "/reverse", "Failed to reverse transaction",
            json=request.model_dump(mode="json", by_alias=True)
        )
        return Transaction.model_validate(data)

    async def get_transactions(self) -> list[Transaction]:
        """Get all transactions."""
        data = await self._call("GET", "/transactions", "Failed to fetch transactions")
        return [Transaction.model_validate(item) for item in data]

    def close(self):
        self.session.close()


def build_api_client(config: Optional[Settings] = None) -> KYCApiClient:
    """
    Build a client from settings.

    In demo mode the in-memory demo backend is mounted on the session, so no
    server is needed.
    """
    config = config or default_settings
    session = requests.Session()

    if config.DEMO_MODE:
        from backend.demo_api import DemoBackendAdapter
        session.mount(config.API_BASE_URL, DemoBackendAdapter(config.API_BASE_URL))
        logger.info(f"[KYC API] Demo mode: serving {config.API_BASE_URL} from memory")

    return KYCApiClient(
        base_url=config.API_BASE_URL,
        session=session,
        timeout=config.REQUEST_TIMEOUT_SECONDS
    )
