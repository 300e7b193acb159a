import logging
from typing import Any, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build

from .models import quote_sheet_name

logger = logging.getLogger(__name__)


class SheetError(Exception):
    """Custom exception for sheet-related errors"""

    pass


def a1_range(sheet_name: str, cells: str) -> str:
    return f"{quote_sheet_name(sheet_name)}!{cells}"


class GoogleSheetsClient:
    """Handles all Google Sheets operations for the bills spreadsheet"""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(
        self,
        spreadsheet_id: str,
        credentials_path: Optional[str] = None,
        delegated_user: Optional[str] = None,
        service=None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self.delegated_user = delegated_user
        self.service = service or self._build_sheets_service()

    def _build_sheets_service(self):
        """Create and return an authorized Sheets API service object"""
        try:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_path, scopes=self.SCOPES
            )
            if self.delegated_user:
                creds = creds.with_subject(self.delegated_user)
            return build("sheets", "v4", credentials=creds, cache_discovery=False)
        except Exception as e:
            logger.error(f"Failed to build sheets service: {e}")
            raise SheetError(f"Could not initialize sheets service: {str(e)}") from e

    def get_rows(self, sheet_name: str, cells: str = "A:C") -> List[List[Any]]:
        """Read every populated row of a column range, header row included"""
        range_name = a1_range(sheet_name, cells)
        try:
            result = (
                self.service.spreadsheets()
                .values()
                .get(spreadsheetId=self.spreadsheet_id, range=range_name)
                .execute()
            )
            return result.get("values", [])
        except Exception as e:
            logger.error(f"Error reading {range_name}: {e}")
            raise SheetError(f"Failed to read {range_name}: {str(e)}") from e

    def update_row(self, sheet_name: str, row_index: int, values: List[Any]) -> None:
        """Write one row starting at column A; formulas are evaluated by the sheet"""
        range_name = a1_range(sheet_name, f"A{row_index}")
        try:
            self.service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="USER_ENTERED",
                body={"values": [values]},
            ).execute()
        except Exception as e:
            logger.error(f"Error updating row: {e}")
            raise SheetError(f"Failed to update row {row_index} of {sheet_name}: {str(e)}") from e
