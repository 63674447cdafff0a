"""
Demo backend - in-memory FastAPI stand-in for the onboarding REST API.

Serves the same endpoints as the real API with responses in the same JSON
shape; error bodies are plain text, as the real API sends them.
DemoBackendAdapter mounts the app on a requests.Session, so the API client
talks to it without a running server. Used when DEMO_MODE is on and by the
test suite as a fake transport.
"""

import io
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
from requests import PreparedRequest, Response
from requests.adapters import HTTPAdapter
from starlette.exceptions import HTTPException as StarletteHTTPException
from urllib3 import HTTPResponse

from config.application_schema import (
    ApplicationRequest,
    ApplicationStatus,
    ReverseRequest,
    TransactionRequest,
)

logger = logging.getLogger(__name__)


# ============================================================================
# DEMO BANK DIRECTORY
# ============================================================================

DEMO_BANKS = {
    "Chase Bank": ["Downtown Branch", "Midtown Branch", "Uptown Branch", "Airport Branch"],
    "Bank of America": ["Main Street Branch", "Central Branch", "North Branch", "South Branch"],
    "Wells Fargo": ["City Center Branch", "Suburban Branch", "Metro Branch", "Express Branch"],
    "Citibank": ["Financial District Branch", "Shopping Center Branch", "University Branch", "Corporate Branch"],
}


def build_directory(banks: Optional[dict] = None) -> tuple[list[dict], list[dict]]:
    """Number banks and branches from a {bank name: [branch names]} mapping."""
    banks = banks if banks is not None else DEMO_BANKS
    bank_rows, branch_rows = [], []
    for bank_id, (bank_name, branch_names) in enumerate(banks.items(), 1):
        bank = {"id": bank_id, "value": bank_name}
        bank_rows.append(bank)
        for branch_name in branch_names:
            branch_rows.append({"id": len(branch_rows) + 1, "value": branch_name, "bank": bank})
    return bank_rows, branch_rows


@dataclass
class DemoState:
    """Everything the demo backend stores; lost with the app."""
    banks: list[dict]
    branches: list[dict]
    applications: list[dict] = field(default_factory=list)
    transactions: list[dict] = field(default_factory=list)
    files: dict[str, bytes] = field(default_factory=dict)
    fail_paths: dict[str, tuple[int, str]] = field(default_factory=dict)

    def fail(self, path: str, status_code: int = 500, body: str = ""):
        """Make every later call to an endpoint path answer with an error."""
        self.fail_paths[path] = (status_code, body)

    def recover(self, path: str):
        self.fail_paths.pop(path, None)


# ============================================================================
# APP
# ============================================================================

def create_demo_app(banks: Optional[dict] = None) -> FastAPI:
    """Build a demo API app with its own in-memory state (app.state.demo)."""
    bank_rows, branch_rows = build_directory(banks)
    state = DemoState(banks=bank_rows, branches=branch_rows)

    app = FastAPI(
        title="Onboarding Demo API",
        description="In-memory bank directory, applications and transactions",
        version="1.0.0"
    )
    app.state.demo = state

    @app.middleware("http")
    async def injected_failures(request: Request, call_next):
        failure = state.fail_paths.get(request.url.path)
        if failure:
            status_code, body = failure
            return PlainTextResponse(body, status_code=status_code)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_errors(request: Request, exc: StarletteHTTPException):
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    # ------------------------------------------------------------------
    # Bank directory
    # ------------------------------------------------------------------

    @app.get("/banks")
    async def get_banks():
        return state.banks

    @app.get("/branches")
    async def get_branches(bank_id: int):
        return [b for b in state.branches if b["bank"]["id"] == bank_id]

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    @app.post("/files/upload")
    async def upload_file(file: UploadFile = File(...)):
        content = await file.read()
        stored_name = f"{uuid.uuid4().hex}_{file.filename}"
        state.files[stored_name] = content
        return {"filename": stored_name, "originalName": file.filename, "size": len(content)}

    @app.post("/applications/submit")
    async def submit_application(body: ApplicationRequest):
        branch = next((b for b in state.branches if b["id"] == body.branch_id), None)
        if branch is None or branch["bank"]["id"] != body.bank_id:
            raise HTTPException(status_code=400, detail="Invalid bank or branch")

        existing = next(
            (a for a in state.applications
             if a["accountNumber"] == body.account_number and a["bank"]["id"] == body.bank_id),
            None
        )
        if existing and existing["status"] == ApplicationStatus.SUBMITTED.value:
            raise HTTPException(status_code=409, detail="Application already submitted")

        record = existing or {"id": len(state.applications) + 1}
        record.update({
            "accountName": body.account_name,
            "accountNumber": body.account_number,
            "status": body.status.value,
            "bank": branch["bank"],
            "branch": {"id": branch["id"], "value": branch["value"]},
            "fileName": body.file_name,
            "originalFileName": body.original_file_name,
            "fileSize": body.file_size,
        })
        if existing is None:
            state.applications.append(record)
        return record

    @app.get("/applications")
    async def get_applications():
        return state.applications

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @app.post("/transaction")
    async def create_transaction(body: TransactionRequest):
        account = next(
            (a for a in state.applications
             if a["accountNumber"] == body.account_number
             and a["status"] == ApplicationStatus.SUBMITTED.value),
            None
        )
        if account is None:
            raise HTTPException(status_code=400, detail="Account not found or application not submitted")

        transaction = {
            "id": len(state.transactions) + 1,
            "transactionId": f"TXN{int(time.time() * 1000)}{len(state.transactions) + 1:04d}",
            "value": f"{body.amount:.2f}",
            "status": "COMPLETED",
            "accountNumber": body.account_number,
            "narration": body.narration,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        state.transactions.append(transaction)
        return transaction

    @app.post("/reverse")
    async def reverse_transaction(body: ReverseRequest):
        transaction = next(
            (t for t in state.transactions if t["transactionId"] == body.transaction_id),
            None
        )
        if transaction is None:
            raise HTTPException(status_code=404, detail="Transaction not found")
        if transaction["status"] == "REVERSED":
            raise HTTPException(status_code=400, detail="Transaction already reversed")

        transaction["status"] = "REVERSED"
        transaction["reversalReason"] = body.reason
        return transaction

    @app.get("/transactions")
    async def get_transactions():
        return state.transactions

    return app


# ============================================================================
# REQUESTS BRIDGE
# ============================================================================

class DemoBackendAdapter(HTTPAdapter):
    """
    requests adapter that answers from the demo app instead of the network.

    Mount it on the API base URL; the base path is stripped before the
    request reaches the app, so "<base>/banks" is served by GET /banks.
    """

    def __init__(self, base_url: str, app: Optional[FastAPI] = None):
        super().__init__()
        self.prefix = urlparse(base_url).path.rstrip("/")
        self.app = app or create_demo_app()
        self.state: DemoState = self.app.state.demo
        self.client = TestClient(self.app)
        self.requests: list[PreparedRequest] = []

    def send(self, request: PreparedRequest, stream=False, timeout=None, verify=True, cert=None, proxies=None) -> Response:
        self.requests.append(request)
        parsed = urlparse(request.url)
        path = parsed.path[len(self.prefix):] if parsed.path.startswith(self.prefix) else parsed.path
        url = f"{path or '/'}?{parsed.query}" if parsed.query else (path or "/")

        headers = {k: v for k, v in request.headers.items() if k.lower() != "content-length"}
        reply = self.client.request(request.method, url, content=request.body, headers=headers)
        logger.debug(f"[Demo API] {request.method} {path} -> {reply.status_code}")

        raw = HTTPResponse(
            body=io.BytesIO(reply.content),
            headers=dict(reply.headers),
            status=reply.status_code,
            reason=reply.reason_phrase,
            preload_content=False,
            decode_content=False,
        )
        return self.build_response(request, raw)

    def close(self):
        self.client.close()
        super().close()
