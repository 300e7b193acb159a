# autobills/main.py
import argparse
import logging
import signal
import sys
from typing import Optional, Sequence

from autobills.banking.client import BankingClient
from autobills.bills.job import BillsJob
from autobills.config import BillsConfig, load_config
from autobills.logging_config.logging_config import setup_logging
from autobills.scheduling.worker import BillsWorker
from autobills.sheets.client import GoogleSheetsClient

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="autobills",
        description="Copy merchant card transactions into the shared bills spreadsheet.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="run one bills check now and exit")
    mode.add_argument(
        "--list-accounts",
        action="store_true",
        help="print the accounts visible to the configured member and exit",
    )
    return parser.parse_args(argv)


def list_accounts(config: BillsConfig) -> None:
    client = BankingClient(base_address=config["NET_BANKING_ADDRESS"], user_agent=config["USER_AGENT"])
    login_result = client.login(config["BANK_USERNAME"], config["BANK_PASSWORD"])
    if not login_result.valid:
        logger.error(f"Could not login to the internet banking service :( Error: {login_result.error_code}")
        return

    referrer = client.base_address
    try:
        referrer = client.fetch_balances().url
        accounts = client.fetch_account_data(referrer) or []
        for account in accounts:
            print(f"{account.account_number}\t{account.description}")
    finally:
        client.logout(referrer)


def _raise_system_exit(signum, _frame) -> None:
    raise SystemExit(f"Received signal {signum}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging()
    logger.info("Starting AutoBills")

    config = load_config()

    if args.list_accounts:
        list_accounts(config)
        return

    sheets_client = GoogleSheetsClient(
        spreadsheet_id=config["SPREADSHEET_ID"],
        credentials_path=config["GOOGLE_CREDENTIALS"],
        delegated_user=config["GOOGLE_DELEGATED_AUTHORITY"],
    )
    job = BillsJob(config=config, sheets_client=sheets_client)

    if args.once:
        outcome = job.check_for_bills()
        logger.info(f"Bills run finished: {outcome.value}")
        return

    worker = BillsWorker(
        job=job,
        cron_schedule=config["CRON_SCHEDULE"],
        cron_time_zone=config["CRON_TIME_ZONE"],
    )
    signal.signal(signal.SIGTERM, _raise_system_exit)
    worker.start()


if __name__ == "__main__":
    sys.exit(main())
