"""Pytest configuration and fixtures."""

import os
import sys

import pytest
import requests

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.api_client import KYCApiClient
from backend.demo_api import DemoBackendAdapter
from backend.form_controller import ApplicationFlow
from backend.form_store import FormStateStore
from config.application_schema import ApplicationRecord, DocumentDescriptor

BASE_URL = "http://demo.test/api"


@pytest.fixture
def demo_adapter() -> DemoBackendAdapter:
    """Fresh in-memory backend."""
    return DemoBackendAdapter(BASE_URL)


@pytest.fixture
def api_client(demo_adapter) -> KYCApiClient:
    """API client whose session is served by the demo backend."""
    session = requests.Session()
    session.mount(BASE_URL, demo_adapter)
    return KYCApiClient(BASE_URL, session=session, timeout=5)


@pytest.fixture
def storage() -> dict:
    """Stands in for st.session_state."""
    return {}


@pytest.fixture
def store(storage) -> FormStateStore:
    return FormStateStore(storage, key="fundWithdrawForm")


@pytest.fixture
def flow(api_client, store) -> ApplicationFlow:
    return ApplicationFlow(api_client, store)


@pytest.fixture
def valid_record() -> ApplicationRecord:
    """Chase Bank / Downtown Branch with a small PDF statement."""
    return ApplicationRecord.from_fields(
        bank_id="1",
        branch_id="1",
        account_name="Acme Traders",
        account_number="12345678",
        proof_document=DocumentDescriptor(name="statement.pdf", size=2048, mime_type="application/pdf"),
    )
