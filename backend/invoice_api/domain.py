"""Domain types passed between the HTTP layer, services and repositories.

These are plain value objects, independent of how rows are stored.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# largest value a signed 64-bit INTEGER column holds
MAX_STORED_AMOUNT = 2 ** 63 - 1
# with both rates at most 1 the billing amount is at most three times the payment
MAX_PAYMENT = MAX_STORED_AMOUNT // 3


class InvoiceStatus(str, Enum):
    UNPROCESSED = "unprocessed"
    PROCESSING = "processing"
    PAID = "paid"
    ERROR = "error"


@dataclass
class Invoice:
    """An issued invoice as seen by the rest of the application."""
    guid: str
    company_guid: str
    customer_guid: str
    publish_date: datetime
    payment: int
    commission_tax: int
    commission_tax_rate: float
    consumption_tax: int
    tax_rate: float
    billing_amount: int
    payment_date: datetime
    status: InvoiceStatus = InvoiceStatus.UNPROCESSED


@dataclass(frozen=True)
class LoginInfo:
    """The authenticated caller: user guid and the guid of their company."""
    guid: str
    company_guid: str
