import os
from typing import Optional, TypedDict

from dotenv import load_dotenv


class BillsConfig(TypedDict):
    """Configuration for the bills job"""

    BANK_USERNAME: str
    BANK_PASSWORD: str
    BANK_ACCOUNT_NUMBER: str
    MERCHANT_NAMES: list[str]
    GOOGLE_CREDENTIALS: str
    GOOGLE_DELEGATED_AUTHORITY: Optional[str]
    SPREADSHEET_ID: str
    BILLS_SHEET_NAME: str
    PERSONAL_SHEET_NAMES: list[str]
    SPLIT_DIVIDER: int
    CURRENCY_SYMBOL: str
    CRON_SCHEDULE: str
    CRON_TIME_ZONE: Optional[str]
    NET_BANKING_ADDRESS: str
    USER_AGENT: str


def split_list(value: Optional[str]) -> list[str]:
    """Split a comma separated setting, dropping blank items"""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config() -> BillsConfig:
    """Load configuration from environment variables"""
    load_dotenv()

    required_vars = {
        "BANK_USERNAME": os.getenv("BANK_USERNAME"),
        "BANK_PASSWORD": os.getenv("BANK_PASSWORD"),
        "BANK_ACCOUNT_NUMBER": os.getenv("BANK_ACCOUNT_NUMBER"),
        "MERCHANT_NAMES": split_list(os.getenv("MERCHANT_NAMES")),
        "GOOGLE_CREDENTIALS": os.getenv("GOOGLE_CREDENTIALS"),
        "SPREADSHEET_ID": os.getenv("SPREADSHEET_ID"),
        "BILLS_SHEET_NAME": os.getenv("BILLS_SHEET_NAME"),
        "PERSONAL_SHEET_NAMES": split_list(os.getenv("PERSONAL_SHEET_NAMES")),
        "CRON_SCHEDULE": os.getenv("CRON_SCHEDULE"),
        "NET_BANKING_ADDRESS": os.getenv("NET_BANKING_ADDRESS"),
        "USER_AGENT": os.getenv("USER_AGENT"),
    }

    missing = [k for k, v in required_vars.items() if not v]
    if missing:
        raise OSError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        split_divider = int(os.getenv("SPLIT_DIVIDER", "3"))
    except ValueError as e:
        raise OSError(f"SPLIT_DIVIDER must be a whole number: {e}") from e

    return {
        **required_vars,
        "GOOGLE_DELEGATED_AUTHORITY": os.getenv("GOOGLE_DELEGATED_AUTHORITY") or None,
        "SPLIT_DIVIDER": split_divider,
        "CURRENCY_SYMBOL": os.getenv("CURRENCY_SYMBOL", "$"),
        "CRON_TIME_ZONE": os.getenv("CRON_TIME_ZONE") or None,
    }
