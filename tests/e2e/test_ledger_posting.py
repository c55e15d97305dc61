"""
E2E tests for posting confirmed debt payments to a real ledger endpoint.

These tests require the mock ledger server to be running:
    uvicorn mock.ledger_server.main:app --port 8002

Scenarios:
- confirmation with an account posts exactly one transaction
- re-confirmation never posts a second transaction
- confirmation without an account posts nothing
"""

import pytest
import httpx
from fastapi.testclient import TestClient
from planning_gateway.api.dependencies import get_ledger_client

LEDGER_TRANSACTIONS_URL = "http://localhost:8002/mock-ledger/transactions"


@pytest.fixture
def live_client(client: TestClient) -> TestClient:
    """Client that talks to the configured ledger instead of the recording fake"""
    client.app.dependency_overrides.pop(get_ledger_client)
    return client


@pytest.fixture
def schedule(live_client: TestClient, car_loan_payload: dict) -> list[dict]:
    debt_id = live_client.post("/v1/debts", json=car_loan_payload).json()["id"]
    return live_client.post(f"/v1/debts/{debt_id}/schedule", json={"months": 3}).json()


def posted_schedule_ids() -> list[str]:
    return [t["schedule_id"] for t in httpx.get(LEDGER_TRANSACTIONS_URL).json()]


@pytest.mark.integration
def test_confirmation_posts_transaction(live_client: TestClient, schedule: list[dict]):
    entry = schedule[0]

    response = live_client.post(f"/v1/schedule/{entry['id']}/confirm", json={"accountId": "acct-checking"})

    assert response.status_code == 200
    assert entry["id"] in posted_schedule_ids()


@pytest.mark.integration
def test_reconfirmation_posts_once(live_client: TestClient, schedule: list[dict]):
    entry = schedule[1]
    before = len(httpx.get(LEDGER_TRANSACTIONS_URL).json())

    for _ in range(2):
        live_client.post(f"/v1/schedule/{entry['id']}/confirm", json={"accountId": "acct-checking"})

    assert len(httpx.get(LEDGER_TRANSACTIONS_URL).json()) == before + 1


@pytest.mark.integration
def test_confirmation_without_account_posts_nothing(live_client: TestClient, schedule: list[dict]):
    entry = schedule[2]

    live_client.post(f"/v1/schedule/{entry['id']}/confirm")

    assert entry["id"] not in posted_schedule_ids()
