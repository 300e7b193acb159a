import calendar
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

import requests

from ..banking.client import BankingClient
from ..cancellation import CancellationToken, RunCancelled
from ..config import BillsConfig
from ..sheets.client import GoogleSheetsClient
from ..transactions.filters import filter_transactions
from .synchronizer import LedgerSynchronizer

logger = logging.getLogger(__name__)


class RunOutcome(Enum):
    LOGIN_FAILED = "LOGIN_FAILED"
    HISTORY_UNAVAILABLE = "HISTORY_UNAVAILABLE"
    NO_MATCHES = "NO_MATCHES"
    SYNCHRONIZED = "SYNCHRONIZED"


def one_month_before(moment: datetime) -> datetime:
    """Same day last month, clamped to that month's last day"""
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class BillsJob:
    """One end-to-end bills run: bank login, history, filtering, ledger sync, logout"""

    def __init__(
        self,
        config: BillsConfig,
        sheets_client: GoogleSheetsClient,
        client_factory: Optional[Callable[[CancellationToken], BankingClient]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.sheets_client = sheets_client
        self.client_factory = client_factory or self._default_client
        self.clock = clock

    def _default_client(self, cancellation: CancellationToken) -> BankingClient:
        return BankingClient(
            base_address=self.config["NET_BANKING_ADDRESS"],
            user_agent=self.config["USER_AGENT"],
            cancellation=cancellation,
        )

    def check_for_bills(self, cancellation: Optional[CancellationToken] = None) -> RunOutcome:
        cancellation = cancellation or CancellationToken()
        logger.info("Checking for bills...")

        client = self.client_factory(cancellation)
        login_result = client.login(self.config["BANK_USERNAME"], self.config["BANK_PASSWORD"])
        if not login_result.valid:
            logger.error(
                f"Could not login to the internet banking service :( Error: {login_result.error_code}"
            )
            return RunOutcome.LOGIN_FAILED

        referrer = client.base_address
        try:
            # the balances page sets the cookies the JSON endpoints need
            balances_response = client.fetch_balances()
            referrer = balances_response.url

            now = self.clock()
            transactions = client.fetch_transaction_history(
                referrer=referrer,
                account_number=self.config["BANK_ACCOUNT_NUMBER"],
                begin_date=one_month_before(now) + timedelta(days=1),
                end_date=now,
            )
            if transactions is None:
                logger.error("Could not load the transaction history")
                return RunOutcome.HISTORY_UNAVAILABLE

            matching = filter_transactions(transactions, self.config["MERCHANT_NAMES"])
            logger.info(f"{len(matching)} of {len(transactions)} transactions match a merchant")
            if not matching:
                return RunOutcome.NO_MATCHES

            synchronizer = LedgerSynchronizer(
                sheets_client=self.sheets_client,
                bills_sheet_name=self.config["BILLS_SHEET_NAME"],
                personal_sheet_names=self.config["PERSONAL_SHEET_NAMES"],
                split_divider=self.config["SPLIT_DIVIDER"],
                currency_symbol=self.config["CURRENCY_SYMBOL"],
                cancellation=cancellation,
            )
            synchronizer.synchronize(matching)
            return RunOutcome.SYNCHRONIZED
        finally:
            if not cancellation.is_cancelled:
                self._logout(client, referrer)

    @staticmethod
    def _logout(client: BankingClient, referrer: str) -> None:
        try:
            client.logout(referrer)
        except requests.RequestException as e:
            logger.warning(f"Logout failed, server session left to expire: {e}")
        except RunCancelled:
            logger.warning("Run cancelled before logout, server session left to expire")
