"""AutoBills - shared bills from card transactions.

This package scrapes card transactions from an internet banking portal and
records the ones from known merchants in a shared bills spreadsheet, linked
to each person's own ledger sheet in Google Sheets.
"""

__version__ = "0.1.0"

from .banking.client import BankingClient
from .bills.job import BillsJob
from .bills.synchronizer import LedgerSynchronizer
from .sheets.client import GoogleSheetsClient


__all__ = [
    "BankingClient",
    "BillsJob",
    "GoogleSheetsClient",
    "LedgerSynchronizer",
]
