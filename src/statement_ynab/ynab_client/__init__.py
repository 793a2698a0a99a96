"""
YNAB API Client.

Provides:
- Create transactions (POST /budgets/{budget_id}/transactions)
- Classify the response into created ids and duplicate import ids
- Connection check (GET /user)

Treats YNAB errors as loud failures with actionable messages.
"""

from .client import (
    ImportResult,
    YnabAPIError,
    YnabClient,
    YnabConnectionError,
    YnabError,
    YnabTransaction,
)

__all__ = [
    "ImportResult",
    "YnabAPIError",
    "YnabClient",
    "YnabConnectionError",
    "YnabError",
    "YnabTransaction",
]
