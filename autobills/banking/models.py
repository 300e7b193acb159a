# autobills/banking/models.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SessionState(Enum):
    """Lifecycle of one authenticated portal session"""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    LOGGING_IN = "LOGGING_IN"
    AUTHENTICATED = "AUTHENTICATED"
    LOGGED_OUT = "LOGGED_OUT"


class PortalModel(BaseModel):
    """Base for portal JSON records: unknown fields are ignored"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class LoginResponse(PortalModel):
    valid: bool = Field(default=False, validation_alias=AliasChoices("valid", "Valid"))
    error_code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("errorCode", "ErrorCode", "error_code")
    )

    @field_validator("valid", mode="before")
    @classmethod
    def none_is_invalid(cls, v):
        return False if v is None else v


class AccountDataResponse(PortalModel):
    account_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AccountNumber", "account_number")
    )
    description: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("Description", "description")
    )


class TransactionLineItem(PortalModel):
    """A single card transaction as returned by the transaction history endpoint"""

    account_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AccountNumber", "account_number")
    )
    effective_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("EffectiveDate", "effective_date")
    )
    create_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("CreateDate", "create_date")
    )
    debit_amount: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("DebitAmount", "debit_amount")
    )
    credit_amount: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("CreditAmount", "credit_amount")
    )
    description: str = Field(default="", validation_alias=AliasChoices("Description", "description"))

    @field_validator("effective_date", "create_date", mode="before")
    @classmethod
    def blank_date_is_missing(cls, v):
        return None if v in (None, "") else v

    @field_validator("debit_amount", "credit_amount", mode="before")
    @classmethod
    def missing_amount_is_zero(cls, v):
        return Decimal("0") if v is None else v

    @field_validator("description", mode="before")
    @classmethod
    def missing_description_is_empty(cls, v):
        return "" if v is None else v


class TransactionDetailsResponse(PortalModel):
    transaction_details: list[TransactionLineItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("TransactionDetails", "transaction_details"),
    )
    more_transactions_are_available: bool = Field(
        default=False,
        validation_alias=AliasChoices("MoreTransactionsAreAvailable", "more_transactions_are_available"),
    )

    @field_validator("transaction_details", mode="before")
    @classmethod
    def missing_details_is_empty(cls, v):
        return [] if v is None else v

    @field_validator("more_transactions_are_available", mode="before")
    @classmethod
    def missing_flag_is_false(cls, v):
        return False if v is None else v
