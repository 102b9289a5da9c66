"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (companies,
customers, users, invoices). Lookup helpers return SQLModel objects or
`None`; `InvoiceRepository` works in domain `Invoice` objects and raises
`errors.ServiceError` subclasses so callers never see driver exceptions.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from . import domain, errors, models

logger = logging.getLogger("invoice_api.repositories")


class StoredInvoiceStatus(str, Enum):
    """Status spellings as persisted in the `invoice.status` column."""
    UNPROCESSED = "unprocessed"
    PROCESSING = "processing"
    PAIED = "paied"
    ERROR = "error"


_TO_DOMAIN_STATUS = {
    StoredInvoiceStatus.UNPROCESSED.value: domain.InvoiceStatus.UNPROCESSED,
    StoredInvoiceStatus.PROCESSING.value: domain.InvoiceStatus.PROCESSING,
    StoredInvoiceStatus.PAIED.value: domain.InvoiceStatus.PAID,
    StoredInvoiceStatus.ERROR.value: domain.InvoiceStatus.ERROR,
}
_TO_STORED_STATUS = {v: k for k, v in _TO_DOMAIN_STATUS.items()}


def to_domain_status(value: str) -> domain.InvoiceStatus:
    """Map a stored status string to `domain.InvoiceStatus`.

    Raises `ValueError` for values the application does not know.
    """
    try:
        return _TO_DOMAIN_STATUS[value]
    except KeyError:
        raise ValueError(f"unknown status: {value}") from None


def to_stored_status(status: domain.InvoiceStatus) -> str:
    """Map a domain status to the string persisted in the database."""
    return _TO_STORED_STATUS[domain.InvoiceStatus(status)]


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC.

    Datetimes are written, compared and returned in this form.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CompanyRepository:
    """CRUD operations for `Company` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, company: models.Company) -> models.Company:
        """Persist a new company and return the managed instance."""
        self.session.add(company)
        self.session.commit()
        self.session.refresh(company)
        return company

    def get_by_guid(self, guid: str) -> Optional[models.Company]:
        stmt = select(models.Company).where(models.Company.guid == guid)
        return self.session.exec(stmt).first()

    def get(self, company_id: int) -> Optional[models.Company]:
        return self.session.get(models.Company, company_id)


class CustomerRepository:
    """CRUD operations for `Customer` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, customer: models.Customer) -> models.Customer:
        """Persist a new customer and return the managed instance."""
        self.session.add(customer)
        self.session.commit()
        self.session.refresh(customer)
        return customer

    def get_by_guid(self, guid: str) -> Optional[models.Customer]:
        stmt = select(models.Customer).where(models.Customer.guid == guid)
        return self.session.exec(stmt).first()


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get_by_guid(self, guid: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.guid == guid)
        return self.session.exec(stmt).first()


class InvoiceRepository:
    """Persist and query invoices for a company."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, invoice: domain.Invoice) -> None:
        """Insert `invoice` after validating its customer and company.

        The customer is looked up by guid, its owning company is resolved
        and that company's guid must equal `invoice.company_guid`.

        Raises `NotFoundError` if the customer or its company is missing,
        `InvalidArgumentError` if the customer belongs to another company
        and `InternalError` for any storage failure.
        """
        try:
            row = self.session.exec(
                select(models.Customer.id, models.Customer.company_id)
                .where(models.Customer.guid == invoice.customer_guid)
            ).first()
            if row is None:
                raise errors.NotFoundError(f"customer not found: {invoice.customer_guid}")
            customer_id, company_id = row

            company_guid = self.session.exec(
                select(models.Company.guid).where(models.Company.id == company_id)
            ).first()
            if company_guid is None:
                raise errors.NotFoundError(f"company of customer not found: {invoice.customer_guid}")

            if company_guid != invoice.company_guid:
                raise errors.InvalidArgumentError(f"company guid is not match: {invoice.company_guid}")

            self.session.add(models.Invoice(
                guid=invoice.guid,
                company_id=company_id,
                customer_id=customer_id,
                publish_date=as_utc(invoice.publish_date),
                payment=invoice.payment,
                commission_tax=invoice.commission_tax,
                commission_tax_rate=invoice.commission_tax_rate,
                consumption_tax=invoice.consumption_tax,
                tax_rate=invoice.tax_rate,
                billing_amount=invoice.billing_amount,
                payment_date=as_utc(invoice.payment_date),
                status=to_stored_status(invoice.status),
            ))
            self.session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            self.session.rollback()
            logger.exception("invoice insert failed guid=%s", invoice.guid)
            raise errors.InternalError(str(e)) from e

    def list(self, company_guid: str, first_payment_date: datetime, last_payment_date: datetime) -> List[domain.Invoice]:
        """Return the company's invoices whose payment date lies in the range.

        Both bounds are inclusive. Raises `NotFoundError` if the company
        does not exist and `InternalError` for storage failures or rows
        holding an unknown status.
        """
        try:
            company_id = self.session.exec(
                select(models.Company.id).where(models.Company.guid == company_guid)
            ).first()
            if company_id is None:
                raise errors.NotFoundError(f"company not found: {company_guid}")

            stmt = (
                select(models.Invoice, models.Customer.guid)
                .join(models.Customer, models.Invoice.customer_id == models.Customer.id)
                .where(
                    models.Invoice.company_id == company_id,
                    models.Invoice.payment_date.between(
                        as_utc(first_payment_date),
                        as_utc(last_payment_date),
                    ),
                )
                .order_by(models.Invoice.payment_date, models.Invoice.id)
            )
            rows = self.session.exec(stmt).all()
        except (SQLAlchemyError, OverflowError) as e:
            self.session.rollback()
            logger.exception("invoice list failed company=%s", company_guid)
            raise errors.InternalError(str(e)) from e

        out = []
        for inv, customer_guid in rows:
            try:
                status = to_domain_status(inv.status)
            except ValueError as e:
                logger.error("invoice %s has unreadable status %r", inv.guid, inv.status)
                raise errors.InternalError(str(e)) from e
            out.append(domain.Invoice(
                guid=inv.guid,
                company_guid=company_guid,
                customer_guid=customer_guid,
                publish_date=as_utc(inv.publish_date),
                payment=inv.payment,
                commission_tax=inv.commission_tax,
                commission_tax_rate=inv.commission_tax_rate,
                consumption_tax=inv.consumption_tax,
                tax_rate=inv.tax_rate,
                billing_amount=inv.billing_amount,
                payment_date=as_utc(inv.payment_date),
                status=status,
            ))
        return out
