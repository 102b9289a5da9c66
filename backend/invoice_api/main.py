"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the invoice service.
Controllers are intentionally thin: they accept requests, delegate to
services, and translate `errors.ServiceError`s into HTTP responses.

Endpoints implemented:
- POST /auth/register
- POST /auth/login
- POST /api/invoices
- GET /api/invoices
- GET /health
"""

from datetime import datetime
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
import json
import logging
import time
import uuid

from .database import create_db_and_tables, get_session
from . import errors, repositories, services
from .auth import get_current_user
from .config import settings
from .domain import LoginInfo
from .schemas import InvoiceCreateIn, InvoiceOut, LoginIn, RegisterIn, TokenOut

app = FastAPI(title="Invoice API")
logger = logging.getLogger("invoice_api.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    if request.url.path.startswith("/api"):
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
    return response


def _http_error(e: errors.ServiceError) -> HTTPException:
    logger.warning("service_error code=%s status=%d detail=%s", e.code.value, e.http_status, e)
    if isinstance(e, errors.InternalError):
        # storage details stay in the logs
        return HTTPException(status_code=e.http_status, detail="internal error")
    return HTTPException(status_code=e.http_status, detail=str(e))


@app.post('/auth/register', status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Register a new user for an existing company.

    Returns 404 if the company is unknown and 409 if the email is taken.
    """
    if repositories.UserRepository(db).get_by_email(payload.email):
        raise HTTPException(status_code=409, detail='email already registered')
    auth = services.AuthService(db)
    try:
        user = auth.register(payload.company_guid, payload.name, payload.email, payload.password)
    except errors.ServiceError as e:
        raise _http_error(e)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail='email already registered')
    return {'guid': user.guid, 'email': user.email}


@app.post('/auth/login', response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate a user and return a short-lived JWT token.

    The token identifies the user and the company they act for.
    """
    auth = services.AuthService(db)
    token = auth.authenticate(payload.email, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return TokenOut(access_token=token)


@app.post('/api/invoices', response_model=InvoiceOut, status_code=201)
def create_invoice(payload: InvoiceCreateIn, db: Session = Depends(get_session), login_info: LoginInfo = Depends(get_current_user)):
    """Issue an invoice from the caller's company to one of its customers.

    Commission, consumption tax and billing amount are computed by the
    service; the new invoice starts as `unprocessed`.
    """
    if payload.company_guid != login_info.company_guid:
        raise HTTPException(status_code=403, detail='cannot issue invoices for another company')
    svc = services.InvoiceService(db)
    try:
        invoice = svc.create(
            payload.company_guid,
            payload.customer_guid,
            payload.publish_date,
            payload.payment,
            payload.commission_tax_rate,
            payload.tax_rate,
            payload.payment_date,
        )
    except errors.ServiceError as e:
        raise _http_error(e)
    return InvoiceOut.from_domain(invoice)


@app.get('/api/invoices', response_model=List[InvoiceOut])
def list_invoices(
    first_payment_date: datetime,
    last_payment_date: datetime,
    db: Session = Depends(get_session),
    login_info: LoginInfo = Depends(get_current_user),
):
    """List the caller's company invoices due between the two dates (inclusive)."""
    svc = services.InvoiceService(db)
    try:
        invoices = svc.list(login_info.company_guid, first_payment_date, last_payment_date)
    except errors.ServiceError as e:
        raise _http_error(e)
    return [InvoiceOut.from_domain(i) for i in invoices]


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
