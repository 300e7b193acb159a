# autobills/sheets/models.py
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from ..banking.models import TransactionLineItem

LEDGER_DATE_FORMAT = "%d/%m/%Y"

_PLAIN_SHEET_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet name for A1 notation when it contains special characters"""
    if _PLAIN_SHEET_NAME.match(sheet_name):
        return sheet_name
    return "'" + sheet_name.replace("'", "''") + "'"


def format_amount(amount: Decimal) -> str:
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CandidateEntry:
    """The date/description/amount projection of a transaction used for dedup and row building"""

    date: str
    description: str
    amount: str

    @classmethod
    def from_transaction(cls, transaction: TransactionLineItem) -> "CandidateEntry":
        return cls(
            date=transaction.effective_date.strftime(LEDGER_DATE_FORMAT),
            description=transaction.description,
            amount=format_amount(transaction.debit_amount),
        )

    def matches(self, row: Sequence[Any], currency_symbol: str = "$") -> bool:
        """Compare against a ledger row's first three cells as the sheet renders them"""
        if len(row) < 3:
            return False

        return (
            str(row[0]) == self.date
            and str(row[1]) == self.description
            and str(row[2]) == f"{currency_symbol}{self.amount}"
        )


@dataclass
class SheetCursors:
    """Next free row per sheet for the current run. Only ever moves forward."""

    positions: dict[str, int] = field(default_factory=dict)

    def start(self, sheet_name: str, row_count: int) -> None:
        self.positions[sheet_name] = row_count + 1

    def row(self, sheet_name: str) -> int:
        return self.positions[sheet_name]

    def advance(self, sheet_name: str) -> None:
        self.positions[sheet_name] += 1
