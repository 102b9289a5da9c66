"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table. Rows are referenced internally by integer
`id` and externally (API, tokens) by their `guid`.
"""

from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class Company(SQLModel, table=True):
    """A company that issues invoices to its customers."""
    id: Optional[int] = Field(default=None, primary_key=True)
    guid: str = Field(index=True, nullable=False, unique=True)
    corporate_name: str
    representative_name: Optional[str] = None
    phone_number: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None


class User(SQLModel, table=True):
    """A login account belonging to a `Company`.

    Fields:
    - `email`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    guid: str = Field(index=True, nullable=False, unique=True)
    company_id: int = Field(foreign_key='company.id')
    name: str
    email: str = Field(index=True, nullable=False, unique=True)
    password_hash: str


class Customer(SQLModel, table=True):
    """A trading partner of a `Company`; invoices are addressed to it."""
    id: Optional[int] = Field(default=None, primary_key=True)
    guid: str = Field(index=True, nullable=False, unique=True)
    company_id: int = Field(foreign_key='company.id', index=True)
    corporate_name: str
    representative_name: Optional[str] = None
    phone_number: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None


class Invoice(SQLModel, table=True):
    """A stored invoice row.

    Monetary amounts are integers in the smallest currency unit. `status`
    holds the storage spelling of the status (see
    `repositories.StoredInvoiceStatus`), not the domain value.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    guid: str = Field(index=True, nullable=False, unique=True)
    company_id: int = Field(foreign_key='company.id', index=True)
    customer_id: int = Field(foreign_key='customer.id')
    publish_date: datetime
    payment: int
    commission_tax: int
    commission_tax_rate: float
    consumption_tax: int
    tax_rate: float
    billing_amount: int
    payment_date: datetime = Field(index=True)
    status: str = 'unprocessed'
