"""Test fixtures and utilities."""

import json
from pathlib import Path

import pytest
import responses

from statement_ynab.config import AccountConfig, Config

API_URL = "https://api.ynab.test/v1"
BUDGET_ID = "budget-1234"
ACCOUNT_ID = "account-5678"

TRANSACTIONS_URL = f"{API_URL}/budgets/{BUDGET_ID}/transactions"

# Statement export with 3 valid rows, 1 row with a broken amount and a summary row
SAMPLE_STATEMENT_HTML = """<html>
<head><meta charset="utf-8"><title>Historia rachunku</title></head>
<body>
<table border="0"><tr><td>Rachunek</td><td>PL00 1234</td></tr></table>
<table border="1">
  <tr class="head">
    <td>Data księgowania</td><td>Typ</td><td>Opis</td><td>Kwota</td><td>Saldo</td>
  </tr>
  <tr>
    <td>2024-05-02</td><td>BLIK</td>
    <td>BLIK<br>JAN KOWALSKI / REF123 DATA TRANSAKCJI: 2024-05-01</td>
    <td>-50,00</td><td>1 184,56</td>
  </tr>
  <tr>
    <td>2024-05-03</td><td>PRZELEW</td>
    <td>PRZELEW PRZYCHODZĄCY<br>ACME SP. Z O.O. / WYNAGRODZENIE 05/2024</td>
    <td>1 234,56</td><td>2 419,12</td>
  </tr>
  <tr>
    <td>2024-05-04</td><td>KARTA</td>
    <td>ZAKUP KARTĄ<br>BIEDRONKA 123 WARSZAWA</td>
    <td>n/a</td><td>2 400,00</td>
  </tr>
  <tr>
    <td>2024-05-05</td><td>KARTA</td>
    <td>ZAKUP KARTĄ<br>ZABKA Z1234 KRAKOW<br>DATA TRANSAKCJI: 2024-05-04</td>
    <td>-19,12</td><td>2 400,00</td>
  </tr>
  <tr><td colspan="3">Saldo końcowe</td><td>2 400,00</td></tr>
</table>
</body>
</html>
"""


def ynab_echo_created(request):
    """responses callback: YNAB creates every transaction it receives."""
    sent = json.loads(request.body)["transactions"]
    transactions = [
        {
            "id": f"ynab-tx-{index}",
            "import_id": item["import_id"],
            "date": item["date"],
            "amount": item["amount"],
            "payee_name": item["payee_name"],
        }
        for index, item in enumerate(sent, start=1)
    ]
    body = {
        "data": {
            "transaction_ids": [t["id"] for t in transactions],
            "transactions": transactions,
            "duplicate_import_ids": [],
            "server_knowledge": 42,
        }
    }
    return 201, {"Content-Type": "application/json"}, json.dumps(body)


def ynab_echo_duplicates(request):
    """responses callback: YNAB has already imported everything it receives."""
    sent = json.loads(request.body)["transactions"]
    body = {
        "data": {
            "transaction_ids": [],
            "transactions": [],
            "duplicate_import_ids": [item["import_id"] for item in sent],
            "server_knowledge": 43,
        }
    }
    return 201, {"Content-Type": "application/json"}, json.dumps(body)


@pytest.fixture
def sample_statement_html() -> str:
    """Bank statement HTML export."""
    return SAMPLE_STATEMENT_HTML


@pytest.fixture
def monitored_folder(tmp_path) -> Path:
    """Empty monitored folder."""
    folder = tmp_path / "statements"
    folder.mkdir()
    return folder


@pytest.fixture
def statement_file(monitored_folder, sample_statement_html) -> Path:
    """Sample statement dropped into the monitored folder."""
    path = monitored_folder / "historia_2024-05.html"
    path.write_text(sample_statement_html, encoding="utf-8")
    return path


@pytest.fixture
def account(monitored_folder) -> AccountConfig:
    return AccountConfig(account_id=ACCOUNT_ID, monitored_folder=monitored_folder)


@pytest.fixture
def config(account) -> Config:
    """Valid configuration with a single account."""
    return Config(
        api_key="test-token",
        budget_id=BUDGET_ID,
        accounts=(account,),
        api_base_url=API_URL,
    )


@pytest.fixture
def settings_file(tmp_path, monitored_folder) -> Path:
    """appsettings.json with one account."""
    path = tmp_path / "appsettings.json"
    path.write_text(
        json.dumps(
            {
                "apiKey": "file-token",
                "budgetId": BUDGET_ID,
                "apiBaseUrl": API_URL,
                "accounts": [
                    {"accountId": ACCOUNT_ID, "monitoredFolder": str(monitored_folder)},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mocked_ynab():
    """Activate responses for the duration of a test."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps
