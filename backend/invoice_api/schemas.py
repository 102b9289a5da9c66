"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .domain import MAX_PAYMENT, Invoice, InvoiceStatus


class RegisterIn(BaseModel):
    """Payload for creating a user inside an existing company."""
    company_guid: str
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class LoginIn(BaseModel):
    """Credentials for the login endpoint."""
    email: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str
    token_type: str = "bearer"


class InvoiceCreateIn(BaseModel):
    """Request body for issuing an invoice."""
    company_guid: str = Field(min_length=1)
    customer_guid: str = Field(min_length=1)
    publish_date: datetime
    payment: int = Field(gt=0, le=MAX_PAYMENT)
    commission_tax_rate: float = Field(ge=0, le=1)
    tax_rate: float = Field(ge=0, le=1)
    payment_date: datetime


class InvoiceOut(BaseModel):
    """An invoice as returned by the API."""
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
    status: InvoiceStatus

    @classmethod
    def from_domain(cls, invoice: Invoice) -> "InvoiceOut":
        return cls(
            guid=invoice.guid,
            company_guid=invoice.company_guid,
            customer_guid=invoice.customer_guid,
            publish_date=invoice.publish_date,
            payment=invoice.payment,
            commission_tax=invoice.commission_tax,
            commission_tax_rate=invoice.commission_tax_rate,
            consumption_tax=invoice.consumption_tax,
            tax_rate=invoice.tax_rate,
            billing_amount=invoice.billing_amount,
            payment_date=invoice.payment_date,
            status=invoice.status,
        )
