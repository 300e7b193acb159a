"""Shared pytest fixtures for autobills tests."""

import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from autobills.banking.client import BankingClient
from autobills.banking.models import SessionState, TransactionLineItem
from autobills.cancellation import CancellationToken
from autobills.config import BillsConfig


BASE_ADDRESS = "https://bank.example.com/"
BALANCES_URL = "https://bank.example.com/accounts/balances/"


# =============================================================================
# Portal Fakes
# =============================================================================


LOGIN_PAGE_HTML = """
<html>
  <body>
    <form id="login">
      <input name="__RequestVerificationToken" type="hidden" value="token-123" />
      <input id="DefaultUrl" name="DefaultUrl" type="hidden" value="/accounts/balances/" />
      <input id="Factor2Url" name="Factor2Url" type="hidden" value="/factor2" />
      <input id="OtpUrl" name="OtpUrl" type="hidden" value="/otp" />
      <input id="DeniedUrl" name="DeniedUrl" type="hidden" value="/denied" />
      <input id="PersonaLandingUrl" name="PersonaLandingUrl" type="hidden" value="/landing" />
      <input id="MemberNumber" name="MemberNumber" type="text" />
    </form>
  </body>
</html>
"""


def make_response(status_code: int = 200, text: str = "", url: str = BASE_ADDRESS) -> MagicMock:
    """A stand-in for requests.Response with just what the client reads."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.url = url
    return response


@pytest.fixture
def fake_session() -> MagicMock:
    """A requests.Session double; queue responses on ``request.side_effect``."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def cancellation() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def banking_client(fake_session, cancellation) -> BankingClient:
    return BankingClient(
        base_address="https://bank.example.com",
        user_agent="Mozilla/5.0 (test)",
        session=fake_session,
        cancellation=cancellation,
    )


@pytest.fixture
def authenticated_client(banking_client) -> BankingClient:
    banking_client.state = SessionState.AUTHENTICATED
    return banking_client


# =============================================================================
# Ledger Fakes
# =============================================================================


class FakeSheetsClient:
    """In-memory spreadsheet recording every read and write."""

    def __init__(self, sheets: dict[str, list[list]] | None = None, fail_on_write: int | None = None):
        self.sheets = {name: [list(row) for row in rows] for name, rows in (sheets or {}).items()}
        self.reads: list[str] = []
        self.writes: list[tuple[str, int, list]] = []
        self.fail_on_write = fail_on_write

    def get_rows(self, sheet_name: str, cells: str = "A:C") -> list[list]:
        self.reads.append(sheet_name)
        return [row[:3] for row in self.sheets.get(sheet_name, [])]

    def update_row(self, sheet_name: str, row_index: int, values: list) -> None:
        from autobills.sheets.client import SheetError

        if self.fail_on_write is not None and len(self.writes) == self.fail_on_write:
            raise SheetError(f"Failed to update row {row_index} of {sheet_name}: quota exceeded")
        self.writes.append((sheet_name, row_index, values))


@pytest.fixture
def header_only_sheets() -> FakeSheetsClient:
    """Bills plus two personal sheets holding just their header rows."""
    return FakeSheetsClient(
        {
            "Bills": [["Date", "Description", "Amount", "Split", "Each", "Paid", "Paid On"]],
            "Alice": [["Date", "Description", "CR", "DR"]],
            "Bob": [["Date", "Description", "CR", "DR"]],
        }
    )


# =============================================================================
# Transaction Fixtures
# =============================================================================


def make_transaction(
    description: str,
    debit: str = "12.34",
    effective: datetime.datetime = datetime.datetime(2024, 5, 1),
) -> TransactionLineItem:
    return TransactionLineItem(
        account_number="S1",
        effective_date=effective,
        create_date=effective,
        debit_amount=Decimal(debit),
        credit_amount=Decimal("0"),
        description=description,
    )


@pytest.fixture
def merchant_transaction() -> TransactionLineItem:
    return make_transaction("VISA Purchase MERCHANT X 0505")


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def bills_config() -> BillsConfig:
    return {
        "BANK_USERNAME": "12345678",
        "BANK_PASSWORD": "hunter2",
        "BANK_ACCOUNT_NUMBER": "S1",
        "MERCHANT_NAMES": ["MERCHANT X", "POWER CO"],
        "GOOGLE_CREDENTIALS": "/secrets/key.json",
        "GOOGLE_DELEGATED_AUTHORITY": None,
        "SPREADSHEET_ID": "sheet-id",
        "BILLS_SHEET_NAME": "Bills",
        "PERSONAL_SHEET_NAMES": ["Alice", "Bob"],
        "SPLIT_DIVIDER": 3,
        "CURRENCY_SYMBOL": "$",
        "CRON_SCHEDULE": "0 9 * * *",
        "CRON_TIME_ZONE": None,
        "NET_BANKING_ADDRESS": BASE_ADDRESS,
        "USER_AGENT": "Mozilla/5.0 (test)",
    }
