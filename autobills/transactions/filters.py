import logging
from collections.abc import Iterable, Sequence

from ..banking.models import TransactionLineItem

logger = logging.getLogger(__name__)

# statement noise on card purchases
NOISE_TOKENS = ("VISA Purchase", "0505")


def matches_merchant(description: str, merchant_names: Sequence[str]) -> bool:
    """True if any merchant name appears in the description (case-sensitive)"""
    return any(name in description for name in merchant_names)


def normalize_description(description: str) -> str:
    """Strip the statement noise tokens and surrounding whitespace"""
    cleaned = description
    while True:
        previous = cleaned
        for token in NOISE_TOKENS:
            cleaned = cleaned.replace(token, "")
        cleaned = cleaned.strip()
        if cleaned == previous:
            return cleaned


def filter_transactions(
    transactions: Iterable[TransactionLineItem], merchant_names: Sequence[str]
) -> list[TransactionLineItem]:
    """Keep merchant transactions, clean their descriptions and order them oldest first.

    Matching runs against the original description. The sort is stable, so
    transactions sharing an effective date keep the portal's order.
    Transactions without an effective date cannot be placed in the ledger and
    are dropped.
    """
    matching = []
    for transaction in transactions:
        if not matches_merchant(transaction.description, merchant_names):
            continue
        if transaction.effective_date is None:
            logger.warning(f"Skipping undated transaction: {transaction.description!r}")
            continue
        matching.append(
            transaction.model_copy(update={"description": normalize_description(transaction.description)})
        )
    return sorted(matching, key=lambda transaction: transaction.effective_date)
