"""
Tests for the YNAB API client.

These tests use responses library to mock HTTP requests,
validating client behavior without making real API calls.
"""

import json

import pytest
import requests
import responses

from statement_ynab.schemas.transaction import ImportRecord
from statement_ynab.ynab_client import (
    ImportResult,
    YnabAPIError,
    YnabClient,
    YnabConnectionError,
)


def _records(count: int = 2) -> list[ImportRecord]:
    return [
        ImportRecord(
            account_id="acc-1",
            date="2024-05-0" + str(i),
            amount=-1000 * i,
            payee_name=f"PAYEE {i}",
            import_id=f"I:2024050{i}0000000",
        )
        for i in range(1, count + 1)
    ]


class TestYnabClient:
    """Test YNAB API client."""

    BASE_URL = "https://api.ynab.test/v1"
    TOKEN = "test-token-12345"
    BUDGET = "budget-1"

    @pytest.fixture
    def client(self):
        return YnabClient(self.BASE_URL, self.TOKEN)

    @responses.activate
    def test_test_connection_success(self, client):
        """Test connection check succeeds with valid response."""
        responses.add(
            responses.GET,
            f"{self.BASE_URL}/user",
            json={"data": {"user": {"id": "u-1"}}},
            status=200,
        )

        assert client.test_connection() is True
        assert responses.calls[0].request.headers["Authorization"] == f"Bearer {self.TOKEN}"

    @responses.activate
    def test_test_connection_unauthorized(self, client):
        responses.add(
            responses.GET,
            f"{self.BASE_URL}/user",
            json={"error": {"id": "401", "name": "unauthorized", "detail": "Unauthorized"}},
            status=401,
        )

        assert client.test_connection() is False

    @responses.activate
    def test_create_transactions_created(self, client):
        """Created transactions are classified with their import ids."""
        responses.add(
            responses.POST,
            f"{self.BASE_URL}/budgets/{self.BUDGET}/transactions",
            json={
                "data": {
                    "transaction_ids": ["t-1", "t-2"],
                    "transactions": [
                        {"id": "t-1", "import_id": "I:202405010000000", "amount": -1000},
                        {"id": "t-2", "import_id": "I:202405020000000", "amount": -2000},
                    ],
                    "duplicate_import_ids": [],
                    "server_knowledge": 7,
                }
            },
            status=201,
        )

        result = client.create_transactions(self.BUDGET, _records())

        assert result.success
        assert result.transaction_ids == ["t-1", "t-2"]
        assert result.duplicate_import_ids == []
        assert result.remote_id_by_import_id() == {
            "I:202405010000000": "t-1",
            "I:202405020000000": "t-2",
        }

        body = json.loads(responses.calls[0].request.body)
        assert body["transactions"][0] == {
            "account_id": "acc-1",
            "date": "2024-05-01",
            "amount": -1000,
            "payee_name": "PAYEE 1",
            "memo": "",
            "cleared": "cleared",
            "import_id": "I:202405010000000",
        }

    @responses.activate
    def test_create_transactions_duplicates(self, client):
        """Re-imported records come back as duplicate import ids."""
        responses.add(
            responses.POST,
            f"{self.BASE_URL}/budgets/{self.BUDGET}/transactions",
            json={
                "data": {
                    "transaction_ids": [],
                    "duplicate_import_ids": ["I:202405010000000", "I:202405020000000"],
                    "server_knowledge": 8,
                }
            },
            status=201,
        )

        result = client.create_transactions(self.BUDGET, _records())

        assert result.success
        assert result.transaction_ids == []
        assert result.duplicate_import_ids == ["I:202405010000000", "I:202405020000000"]
        assert result.transactions == []

    @responses.activate
    def test_create_transactions_api_error(self, client):
        """Non-2xx status is a hard error carrying status and body."""
        responses.add(
            responses.POST,
            f"{self.BASE_URL}/budgets/{self.BUDGET}/transactions",
            json={"error": {"id": "400", "name": "bad_request", "detail": "import_id is too long"}},
            status=400,
        )

        with pytest.raises(YnabAPIError) as exc_info:
            client.create_transactions(self.BUDGET, _records())

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "import_id is too long"
        assert "import_id is too long" in exc_info.value.response_body
        assert len(responses.calls) == 1  # no retry

    @responses.activate
    def test_create_transactions_server_error_not_retried(self, client):
        responses.add(
            responses.POST,
            f"{self.BASE_URL}/budgets/{self.BUDGET}/transactions",
            body="Service Unavailable",
            status=503,
        )

        with pytest.raises(YnabAPIError) as exc_info:
            client.create_transactions(self.BUDGET, _records())

        assert exc_info.value.status_code == 503
        assert exc_info.value.response_body == "Service Unavailable"
        assert len(responses.calls) == 1

    @responses.activate
    def test_create_transactions_connection_error(self, client):
        responses.add(
            responses.POST,
            f"{self.BASE_URL}/budgets/{self.BUDGET}/transactions",
            body=requests.exceptions.ConnectionError("refused"),
        )

        with pytest.raises(YnabConnectionError):
            client.create_transactions(self.BUDGET, _records())

    def test_create_transactions_empty_batch(self, client):
        """Empty batches are rejected before any request."""
        with pytest.raises(ValueError):
            client.create_transactions(self.BUDGET, [])

    def test_base_url_trailing_slash(self):
        client = YnabClient(self.BASE_URL + "/", self.TOKEN)
        assert client.base_url == self.BASE_URL


class TestImportResult:
    def test_from_response_single_transaction(self):
        result = ImportResult.from_response(
            {
                "transaction_ids": ["t-9"],
                "transaction": {"id": "t-9", "import_id": "I:1"},
            }
        )
        assert result.remote_id_by_import_id() == {"I:1": "t-9"}

    def test_empty_is_not_success(self):
        assert not ImportResult.from_response({}).success
