"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and auxiliary logic. Services are intentionally thin: they perform
validation, execute domain logic (the invoice amount arithmetic) and
persist aggregates via repositories.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_DOWN
from typing import List, NamedTuple, Optional

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from . import domain, errors, models, repositories
from .config import settings

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

logger = logging.getLogger("invoice_api.services")


class InvoiceAmounts(NamedTuple):
    commission_tax: int
    consumption_tax: int
    billing_amount: int


def _truncate(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_DOWN))


def compute_amounts(payment: int, commission_tax_rate: float, tax_rate: float) -> InvoiceAmounts:
    """Derive the taxed amounts of an invoice from its payment.

    The commission is `payment * commission_tax_rate` and the consumption
    tax is levied on the commission only; both are truncated to whole
    units. Rates are taken at their decimal value so e.g. 0.07 behaves as
    exactly seven percent.

    >>> compute_amounts(10000, 0.04, 0.10)
    InvoiceAmounts(commission_tax=400, consumption_tax=40, billing_amount=10440)
    """
    commission_tax = _truncate(Decimal(payment) * Decimal(str(commission_tax_rate)))
    consumption_tax = _truncate(Decimal(commission_tax) * Decimal(str(tax_rate)))
    return InvoiceAmounts(
        commission_tax=commission_tax,
        consumption_tax=consumption_tax,
        billing_amount=payment + commission_tax + consumption_tax,
    )


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.company_repo = repositories.CompanyRepository(session)

    def register(self, company_guid: str, name: str, email: str, password: str) -> models.User:
        """Create a new user of an existing company with a hashed password.

        Raises `NotFoundError` if the company does not exist.
        """
        company = self.company_repo.get_by_guid(company_guid)
        if not company:
            raise errors.NotFoundError(f"company not found: {company_guid}")
        hashed = PWD_CTX.hash(password)
        u = models.User(guid=str(uuid.uuid4()), company_id=company.id, name=name, email=email, password_hash=hashed)
        return self.user_repo.create(u)

    def authenticate(self, email: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        The token carries the user guid (`sub`) and the guid of the user's
        company. Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_email(email)
        if not user:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        company = self.company_repo.get(user.company_id)
        if not company:
            logger.error("user %s references missing company id=%s", user.guid, user.company_id)
            return None
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {"sub": user.guid, "company_guid": company.guid, "exp": int(expire.timestamp())}
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class InvoiceService:
    """Issue and list invoices."""
    def __init__(self, session: Session):
        self.session = session
        self.invoice_repo = repositories.InvoiceRepository(session)

    def create(
        self,
        company_guid: str,
        customer_guid: str,
        publish_date: datetime,
        payment: int,
        commission_tax_rate: float,
        tax_rate: float,
        payment_date: datetime,
    ) -> domain.Invoice:
        """Compute the derived amounts, persist a new invoice and return it.

        New invoices always start as `unprocessed`. Lookup and ownership
        errors from the repository propagate unchanged.
        """
        if payment <= 0:
            raise errors.InvalidArgumentError("payment must be > 0")
        amounts = compute_amounts(payment, commission_tax_rate, tax_rate)
        if amounts.billing_amount > domain.MAX_STORED_AMOUNT:
            raise errors.InvalidArgumentError("billing amount exceeds the storable range")
        invoice = domain.Invoice(
            guid=str(uuid.uuid4()),
            company_guid=company_guid,
            customer_guid=customer_guid,
            publish_date=repositories.as_utc(publish_date),
            payment=payment,
            commission_tax=amounts.commission_tax,
            commission_tax_rate=commission_tax_rate,
            consumption_tax=amounts.consumption_tax,
            tax_rate=tax_rate,
            billing_amount=amounts.billing_amount,
            payment_date=repositories.as_utc(payment_date),
            status=domain.InvoiceStatus.UNPROCESSED,
        )
        self.invoice_repo.create(invoice)
        logger.info("invoice issued guid=%s company=%s billing_amount=%d", invoice.guid, company_guid, invoice.billing_amount)
        return invoice

    def list(self, company_guid: str, first_payment_date: datetime, last_payment_date: datetime) -> List[domain.Invoice]:
        """List the company's invoices with a payment date in the inclusive range."""
        first = repositories.as_utc(first_payment_date)
        last = repositories.as_utc(last_payment_date)
        if first > last:
            raise errors.InvalidArgumentError("first_payment_date must not be after last_payment_date")
        return self.invoice_repo.list(company_guid, first, last)
