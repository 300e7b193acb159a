import json
import logging
from datetime import datetime
from typing import Optional, TypeVar
from urllib.parse import urljoin

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..cancellation import CancellationToken
from .html import HtmlExtractor, SoupHtmlExtractor
from .models import (
    AccountDataResponse,
    LoginResponse,
    SessionState,
    TransactionDetailsResponse,
    TransactionLineItem,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

BROWSER_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,"
    "*/*;q=0.8,application/signed-exchange;v=b3;q=0.9"
)
JSON_ACCEPT = "application/json; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

LOGIN_PAGE_PATH = "/"
LOGIN_PATH = "/api/ajaxlogin/login"
BALANCES_PATH = "/accounts/balances/"
TRANSACTION_HISTORY_PATH = "/platform.axd?u=transaction%2FGetTransactionHistory"
ACCOUNT_DATA_PATH = "/platform.axd?u=account%2FGetAccountsBasicData"
LOGOUT_PATH = "/logout"

ANTI_FORGERY_FIELD = "__RequestVerificationToken"
WORKFLOW_FIELDS = ("DefaultUrl", "Factor2Url", "OtpUrl", "DeniedUrl", "PersonaLandingUrl")

CARD_TRANSACTION_TYPE_ID = 1900


class BankingError(Exception):
    """Raised when the portal session is misused or returns an unreadable body"""

    pass


def format_portal_datetime(value: datetime) -> str:
    """Render a timestamp the way the portal expects: local time, millisecond precision"""
    return value.replace(tzinfo=None).isoformat(timespec="milliseconds")


class BankingClient:
    """Cookie-carrying session against the internet banking portal.

    One instance is one run's session: it logs in once, establishes the
    session cookies from the balances page, reads the transaction history and
    logs out. Transport errors from ``requests`` are not caught here.
    """

    def __init__(
        self,
        base_address: str,
        user_agent: str,
        session: Optional[requests.Session] = None,
        html_extractor: Optional[HtmlExtractor] = None,
        cancellation: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
    ):
        self.base_address = base_address.rstrip("/") + "/"
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self.html_extractor = html_extractor or SoupHtmlExtractor()
        self.cancellation = cancellation or CancellationToken()
        self.timeout = timeout
        self.state = SessionState.UNAUTHENTICATED

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        self.cancellation.raise_if_cancelled()
        url = urljoin(self.base_address, path)
        logger.debug(f"{method} {url}")
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    @staticmethod
    def _is_success(response: requests.Response) -> bool:
        return 200 <= response.status_code < 300

    @staticmethod
    def _decode(model: type[ModelT], response: requests.Response) -> ModelT:
        try:
            return model.model_validate_json(response.text)
        except ValidationError as e:
            logger.error(f"Unexpected {model.__name__} body from {response.url}: {e}")
            raise BankingError(f"Could not decode {model.__name__}: {str(e)}") from e

    def _require_authenticated(self, step: str) -> None:
        if self.state is not SessionState.AUTHENTICATED:
            raise BankingError(f"Cannot {step} while session is {self.state.value}")

    def _json_headers(self, referrer: str) -> dict[str, str]:
        return {
            "Origin": self.base_address,
            "Referrer": referrer,
            "Accept": JSON_ACCEPT,
            "Content-Type": JSON_CONTENT_TYPE,
        }

    def _hidden_value(self, document, selector: str) -> str:
        return self.html_extractor.extract_attribute(document, selector, "value") or ""

    def login(self, member_number: str, password: str) -> LoginResponse:
        """Run the two-step login handshake and return the portal's verdict.

        Any non-2xx response yields an invalid ``LoginResponse`` rather than an
        exception. Hidden fields missing from the login page are posted as
        empty strings.
        """
        self.state = SessionState.LOGGING_IN

        login_page = self._send("GET", LOGIN_PAGE_PATH)
        if not self._is_success(login_page):
            logger.warning(f"Login page returned HTTP {login_page.status_code}")
            self.state = SessionState.UNAUTHENTICATED
            return LoginResponse()

        document = self.html_extractor.load(login_page.text)
        form = {ANTI_FORGERY_FIELD: self._hidden_value(document, f"input[name='{ANTI_FORGERY_FIELD}']")}
        for field_id in WORKFLOW_FIELDS:
            form[field_id] = self._hidden_value(document, f"#{field_id}")

        missing = [name for name, value in form.items() if not value]
        if missing:
            logger.warning(f"Login page is missing hidden fields: {', '.join(missing)}")

        form["MemberNumber"] = member_number
        form["Password"] = password

        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "Origin": self.base_address,
            "Referrer": self.base_address,
            "Accept": "*/*",
        }
        response = self._send("POST", LOGIN_PATH, data=form, headers=headers)
        if not self._is_success(response):
            logger.warning(f"Login request returned HTTP {response.status_code}")
            self.state = SessionState.UNAUTHENTICATED
            return LoginResponse()

        result = self._decode(LoginResponse, response)
        self.state = SessionState.AUTHENTICATED if result.valid else SessionState.UNAUTHENTICATED
        return result

    def fetch_balances(self) -> requests.Response:
        """Load the balances page so the portal sets the cookies its JSON endpoints need.

        The response's final ``url`` is the referrer for subsequent calls.
        """
        self._require_authenticated("fetch balances")
        headers = {"Referrer": self.base_address, "Accept": BROWSER_ACCEPT}
        return self._send("GET", BALANCES_PATH, headers=headers)

    def fetch_transaction_history(
        self,
        referrer: str,
        account_number: str,
        begin_date: datetime,
        end_date: datetime,
    ) -> Optional[list[TransactionLineItem]]:
        """Fetch one page of card transactions, newest first.

        Returns None when the portal answers with a non-2xx status. Only the
        first page is read.
        """
        self._require_authenticated("fetch transaction history")
        payload = {
            "AccountNumber": account_number,
            "BeginDate": format_portal_datetime(begin_date),
            "EndDate": format_portal_datetime(end_date),
            "NewestTransactionFirst": True,
            "TransactionTypeId": CARD_TRANSACTION_TYPE_ID,
            "isSearchFiltered": False,
        }
        response = self._send(
            "POST",
            TRANSACTION_HISTORY_PATH,
            data=json.dumps(payload),
            headers=self._json_headers(referrer),
        )
        if not self._is_success(response):
            logger.warning(f"Transaction history returned HTTP {response.status_code}")
            return None

        history = self._decode(TransactionDetailsResponse, response)
        if history.more_transactions_are_available:
            logger.warning("More transactions are available than one page; older ones are not read")
        return history.transaction_details

    def fetch_account_data(self, referrer: str) -> Optional[list[AccountDataResponse]]:
        """List the accounts visible to this member"""
        self._require_authenticated("fetch account data")
        response = self._send(
            "POST",
            ACCOUNT_DATA_PATH,
            data=json.dumps({"ForceFetchData": False}),
            headers=self._json_headers(referrer),
        )
        if not self._is_success(response):
            logger.warning(f"Account data returned HTTP {response.status_code}")
            return None

        try:
            return TypeAdapter(list[AccountDataResponse]).validate_json(response.text)
        except ValidationError as e:
            logger.error(f"Unexpected account data body from {response.url}: {e}")
            raise BankingError(f"Could not decode account data: {str(e)}") from e

    def logout(self, referrer: str) -> requests.Response:
        headers = {"Referrer": referrer, "Accept": BROWSER_ACCEPT}
        response = self._send("GET", LOGOUT_PATH, headers=headers)
        self.state = SessionState.LOGGED_OUT
        return response
