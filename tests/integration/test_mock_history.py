"""Contract check between the history client payload and the mock history server"""

import importlib.util
from datetime import date
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from card_ledger.domain.models import ExpenseRecord

MOCK_PATH = Path(__file__).resolve().parents[2] / "mock" / "transaction_history" / "main.py"


@pytest.fixture
def mock_client() -> TestClient:
    spec = importlib.util.spec_from_file_location("mock_transaction_history", MOCK_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return TestClient(module.app)


def test_mock_accepts_expense_payload(mock_client: TestClient):
    record = ExpenseRecord(
        user_id="user_1",
        description="Bill payment Platinum - 3/2025",
        amount_cents=50000,
        date=date(2025, 3, 10),
        card_id="card-1",
        account_id="acct-1",
    )

    response = mock_client.post("/transactions", json=record.to_payload())
    assert response.status_code == 201

    listed = mock_client.get("/transactions", params={"user_id": "user_1"}).json()["transactions"]
    assert listed[-1]["amount_cents"] == 50000
    assert listed[-1]["type"] == "expense"
