"""
Transaction Classification for CardCycle.

Separates account-leveling activity (payments, autopay, transfers) from
spend activity. This is a deliberately coarse substring heuristic over the
transaction description. Known, accepted limitations:

- "LATE PAYMENT FEE" contains "payment" and is classified as a payment.
- Transfer-related fees ("TRANSFER FEE", "BALANCE TRANSFER CHARGE") are
  NOT payments: any transfer wording combined with "fee" or "charge" is
  treated as spend.
- Payments whose description carries none of the keywords are counted
  as spend (typically as negative amounts, reducing the total).

The behavior is stable for a given description, which is what downstream
spend totals depend on.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from cardcycle.domain.entities import IssuerClass


PAYMENT_KEYWORDS: Tuple[str, ...] = (
    "payment",
    "pymt",
    "pmt",
    "autopay",
    "auto pay",
    "auto-pay",
    "bill pay",
    "billpay",
    "ach credit",
    "ach deposit",
    "wire transfer",
    "incoming wire",
    "balance transfer",
)

TRANSFER_KEYWORD = "transfer"
TRANSFER_FEE_MARKERS: Tuple[str, ...] = ("fee", "charge")


@dataclass(frozen=True)
class IssuerClassifierOverride:
    """Extra wording an issuer uses for payments, or wording to never treat as one."""

    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


ISSUER_OVERRIDES: Dict[IssuerClass, IssuerClassifierOverride] = {
    IssuerClass.DISCOVER: IssuerClassifierOverride(include=("directpay",)),
    IssuerClass.CAPITAL_ONE: IssuerClassifierOverride(include=("crcardpmt",)),
    IssuerClass.AMEX: IssuerClassifierOverride(exclude=("payment protection",)),
}


def _is_transfer_fee(text: str) -> bool:
    return TRANSFER_KEYWORD in text and any(m in text for m in TRANSFER_FEE_MARKERS)


def is_payment(description: str, issuer: Optional[IssuerClass] = None) -> bool:
    """
    Determine whether a transaction description denotes a payment.

    Args:
        description: Free-text transaction name
        issuer: Optional issuer whose override list applies

    Returns:
        True if the transaction levels the account rather than adding spend
    """
    text = (description or "").lower()
    if not text:
        return False

    override = ISSUER_OVERRIDES.get(issuer) if issuer is not None else None
    if override is not None:
        if any(term in text for term in override.exclude):
            return False
        if any(term in text for term in override.include):
            return True

    if _is_transfer_fee(text):
        return False

    if any(keyword in text for keyword in PAYMENT_KEYWORDS):
        return True

    return TRANSFER_KEYWORD in text


CAPITAL_ONE_PRODUCT_NAMES: Tuple[str, ...] = (
    "quicksilver",
    "venture",
    "savor",
    "spark",
)

_INSTITUTION_PATTERNS: Tuple[Tuple[IssuerClass, Tuple[str, ...]], ...] = (
    (IssuerClass.CAPITAL_ONE, ("capital one", "capitalone")),
    (IssuerClass.AMEX, ("american express", "amex")),
    (IssuerClass.BANK_OF_AMERICA, ("bank of america", "bofa")),
    (IssuerClass.CHASE, ("chase",)),
    (IssuerClass.CITI, ("citi",)),
    (IssuerClass.DISCOVER, ("discover",)),
    (IssuerClass.ROBINHOOD, ("robinhood",)),
)


def classify_issuer(
    institution_name: Optional[str],
    card_name: Optional[str] = None,
) -> IssuerClass:
    """
    Classify the issuing institution from provider-supplied names.

    Capital One cards are also recognized by product name, since some
    connections report only the card name.
    """
    institution = (institution_name or "").lower()
    card = (card_name or "").lower()

    for issuer, patterns in _INSTITUTION_PATTERNS:
        if any(p in institution for p in patterns):
            return issuer

    if any(name in card for name in CAPITAL_ONE_PRODUCT_NAMES):
        return IssuerClass.CAPITAL_ONE

    for issuer, patterns in _INSTITUTION_PATTERNS:
        if any(p in card for p in patterns):
            return issuer

    return IssuerClass.OTHER
