"""
YNAB API client implementation.
"""

import json
import logging
from dataclasses import dataclass, field

import requests

from ..schemas.transaction import ImportRecord
from ..schemas.ynab_payload import YnabTransactionBatch, validate_batch

logger = logging.getLogger(__name__)


class YnabError(Exception):
    """Base exception for YNAB client errors."""

    pass


class YnabAPIError(YnabError):
    """API returned an error response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        response_body: str | None = None,
        error_id: str | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        self.error_id = error_id

        detail = f"{message} ({error_id})" if error_id else message
        super().__init__(f"YNAB API error {status_code}: {detail}")


class YnabConnectionError(YnabError):
    """Failed to connect to YNAB."""

    pass


@dataclass
class YnabTransaction:
    """Transaction echoed back by YNAB after a create call."""

    id: str
    import_id: str | None = None
    date: str | None = None
    amount: int | None = None
    payee_name: str | None = None


@dataclass
class ImportResult:
    """
    Classified response of a bulk create call.

    - transaction_ids: ids of newly created transactions
    - duplicate_import_ids: import ids YNAB already knew (re-imports)
    - transactions: created transactions, when YNAB echoes them back
    """

    transaction_ids: list[str] = field(default_factory=list)
    duplicate_import_ids: list[str] = field(default_factory=list)
    transactions: list[YnabTransaction] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Any created or duplicate id means YNAB accepted the batch."""
        return bool(self.transaction_ids or self.duplicate_import_ids)

    def remote_id_by_import_id(self) -> dict[str, str]:
        """Map import_id → YNAB transaction id for echoed transactions."""
        return {t.import_id: t.id for t in self.transactions if t.import_id}

    @classmethod
    def from_response(cls, data: dict) -> "ImportResult":
        """Build from the ``data`` object of a SaveTransactionsResponse."""
        transactions = [
            YnabTransaction(
                id=str(item["id"]),
                import_id=item.get("import_id"),
                date=item.get("date"),
                amount=item.get("amount"),
                payee_name=item.get("payee_name"),
            )
            for item in data.get("transactions") or []
            if item.get("id")
        ]
        # Single-transaction responses use "transaction" instead of "transactions"
        single = data.get("transaction")
        if single and single.get("id"):
            transactions.append(
                YnabTransaction(
                    id=str(single["id"]),
                    import_id=single.get("import_id"),
                    date=single.get("date"),
                    amount=single.get("amount"),
                    payee_name=single.get("payee_name"),
                )
            )

        return cls(
            transaction_ids=[str(i) for i in data.get("transaction_ids") or []],
            duplicate_import_ids=[str(i) for i in data.get("duplicate_import_ids") or []],
            transactions=transactions,
        )


class YnabClient:
    """
    Client for the YNAB API.

    Features:
    - Bulk create transactions with import ids
    - Connection check

    Requests are never retried: a failed submission is reported to the caller
    and the statement stays in its folder for a manual retry.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float | None = None,
    ):
        """
        Initialize YNAB client.

        Args:
            base_url: API root (e.g., "https://api.ynab.com/v1")
            token: Personal access token
            timeout: Request timeout in seconds (None = transport default)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json_data: dict | None = None,
    ) -> requests.Response:
        """Make an API request with error handling."""
        url = f"{self.base_url}{endpoint}"

        logger.debug(f"API Request: {method} {url}")
        if json_data:
            logger.debug(f"Request body: {json.dumps(json_data, indent=2)}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error to {url}: {e}")
            raise YnabConnectionError(f"Failed to connect to YNAB at {self.base_url}: {e}") from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout for {url}: {e}")
            raise YnabConnectionError(f"Request to YNAB timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise YnabError(f"Request failed: {e}") from e

        logger.debug(f"Response status: {response.status_code}")

        if not response.ok:
            error_body = response.text
            error_id = None
            message = response.reason or "request failed"

            try:
                error = response.json().get("error", {})
                message = error.get("detail") or error.get("name") or message
                error_id = error.get("id")
            except (ValueError, AttributeError):
                pass

            logger.error(f"API Error {response.status_code}: {message}")
            logger.debug(f"Full response body: {error_body}")

            raise YnabAPIError(
                status_code=response.status_code,
                message=message,
                response_body=error_body,
                error_id=error_id,
            )

        return response

    def test_connection(self) -> bool:
        """Test connection and token validity."""
        try:
            self._request("GET", "/user")
            return True
        except YnabError:
            return False

    def create_transactions(
        self,
        budget_id: str,
        records: list[ImportRecord],
    ) -> ImportResult:
        """
        Create transactions in one call.

        Records whose import_id YNAB has already seen in the same account are
        not created again; they come back in ``duplicate_import_ids``.

        Args:
            budget_id: YNAB budget id
            records: Transactions to create

        Returns:
            ImportResult with created ids and duplicate import ids

        Raises:
            YnabAPIError: If API returns an error
            YnabConnectionError: If YNAB cannot be reached
            ValueError: If the batch is invalid
        """
        batch = YnabTransactionBatch(transactions=list(records))
        logger.debug(f"Submitting import ids: {', '.join(batch.import_ids)}")

        validation_errors = validate_batch(batch)
        if validation_errors:
            raise ValueError(f"Invalid batch: {'; '.join(validation_errors)}")

        response = self._request(
            "POST",
            f"/budgets/{budget_id}/transactions",
            json_data=batch.to_dict(),
        )

        try:
            data = response.json().get("data") or {}
        except ValueError as e:
            raise YnabError(f"YNAB returned a non-JSON response: {e}") from e

        result = ImportResult.from_response(data)
        logger.info(
            f"YNAB created {len(result.transaction_ids)} transaction(s), "
            f"{len(result.duplicate_import_ids)} duplicate(s)"
        )
        return result
