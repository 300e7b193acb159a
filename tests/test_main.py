"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest
import requests

from autobills.banking.models import AccountDataResponse, LoginResponse
from autobills.main import list_accounts, parse_args
from conftest import BALANCES_URL, BASE_ADDRESS, make_response


class TestParseArgs:
    def test_defaults_to_worker(self):
        args = parse_args([])
        assert not args.once
        assert not args.list_accounts

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--once", "--list-accounts"])


class TestListAccounts:
    @patch("autobills.main.BankingClient")
    def test_prints_accounts(self, client_class, bills_config, capsys):
        client = client_class.return_value
        client.login.return_value = LoginResponse(valid=True)
        client.fetch_balances.return_value = make_response(url=BALANCES_URL)
        client.fetch_account_data.return_value = [
            AccountDataResponse(account_number="S1", description="Everyday"),
        ]

        list_accounts(bills_config)

        assert "S1\tEveryday" in capsys.readouterr().out
        client.logout.assert_called_once_with(BALANCES_URL)

    @patch("autobills.main.BankingClient")
    def test_login_failure(self, client_class, bills_config):
        client = client_class.return_value
        client.login.return_value = LoginResponse(valid=False, error_code="locked")

        list_accounts(bills_config)

        client.fetch_balances.assert_not_called()

    @patch("autobills.main.BankingClient")
    def test_balances_failure_still_logs_out(self, client_class, bills_config):
        client = client_class.return_value
        client.base_address = BASE_ADDRESS
        client.login.return_value = LoginResponse(valid=True)
        client.fetch_balances.side_effect = requests.Timeout("balances")

        with pytest.raises(requests.Timeout):
            list_accounts(bills_config)

        client.logout.assert_called_once_with(BASE_ADDRESS)
        client.fetch_account_data.assert_not_called()
