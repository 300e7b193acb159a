import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..banking.models import TransactionLineItem
from ..cancellation import CancellationToken
from ..sheets.client import GoogleSheetsClient
from ..sheets.models import CandidateEntry, SheetCursors, quote_sheet_name

logger = logging.getLogger(__name__)

DEFAULT_SPLIT_DIVIDER = 3
PAID_FLAG = "Yes"


@dataclass
class SyncResult:
    appended: int
    skipped: int
    cursors: SheetCursors


class LedgerSynchronizer:
    """Appends newly seen bills to the shared ledger and every personal ledger.

    Existing rows are read once per run. Row positions are then tracked in a
    ``SheetCursors`` value, assuming nothing else writes to these sheets while
    a run is in progress. Each row is its own remote write, so a failure
    part way through a bill leaves the sheets out of step with each other.
    """

    def __init__(
        self,
        sheets_client: GoogleSheetsClient,
        bills_sheet_name: str,
        personal_sheet_names: Sequence[str],
        split_divider: int = DEFAULT_SPLIT_DIVIDER,
        currency_symbol: str = "$",
        cancellation: Optional[CancellationToken] = None,
    ):
        self.sheets_client = sheets_client
        self.bills_sheet_name = bills_sheet_name
        self.personal_sheet_names = list(personal_sheet_names)
        self.split_divider = split_divider
        self.currency_symbol = currency_symbol
        self.cancellation = cancellation or CancellationToken()

    def read_ledger(self) -> tuple[List[List[Any]], SheetCursors]:
        """Snapshot the bills sheet and position a cursor after the last row of every sheet"""
        cursors = SheetCursors()

        for sheet_name in self.personal_sheet_names:
            self.cancellation.raise_if_cancelled()
            cursors.start(sheet_name, len(self.sheets_client.get_rows(sheet_name)))

        self.cancellation.raise_if_cancelled()
        existing_rows = self.sheets_client.get_rows(self.bills_sheet_name)
        cursors.start(self.bills_sheet_name, len(existing_rows))

        return existing_rows, cursors

    def synchronize(self, transactions: Sequence[TransactionLineItem]) -> SyncResult:
        """Append every transaction not already in the bills sheet, oldest first"""
        existing_rows, cursors = self.read_ledger()
        appended = skipped = 0

        for transaction in transactions:
            entry = CandidateEntry.from_transaction(transaction)

            # only rows present before this run count as duplicates
            if any(entry.matches(row, self.currency_symbol) for row in existing_rows):
                skipped += 1
                continue

            logger.info(
                f"t: {transaction.effective_date} {entry.description:<70} "
                f"{self.currency_symbol}{entry.amount:>10}"
            )
            self._append_entry(entry, cursors)
            appended += 1

        logger.info(f"Appended {appended} new bill(s), skipped {skipped} already recorded")
        return SyncResult(appended=appended, skipped=skipped, cursors=cursors)

    def _append_entry(self, entry: CandidateEntry, cursors: SheetCursors) -> None:
        bills_row = cursors.row(self.bills_sheet_name)

        self.cancellation.raise_if_cancelled()
        self.sheets_client.update_row(
            self.bills_sheet_name, bills_row, self._bills_row(entry, bills_row)
        )

        for sheet_name in self.personal_sheet_names:
            self.cancellation.raise_if_cancelled()
            self.sheets_client.update_row(
                sheet_name, cursors.row(sheet_name), self._personal_row(bills_row)
            )
            cursors.advance(sheet_name)

        cursors.advance(self.bills_sheet_name)

    def _bills_row(self, entry: CandidateEntry, row: int) -> List[Any]:
        return [
            entry.date,
            entry.description,
            entry.amount,
            self.split_divider,
            f"=C{row}/D{row}",  # split amount
            PAID_FLAG,
            f"{entry.date} (Auto)",  # date paid
        ]

    def _personal_row(self, bills_row: int) -> List[Any]:
        bills_sheet = quote_sheet_name(self.bills_sheet_name)
        return [
            f"={bills_sheet}!A{bills_row}",
            f"={bills_sheet}!B{bills_row}",
            None,  # credit, entered by hand
            f"={bills_sheet}!E{bills_row}",
        ]
