from datetime import datetime

from invoice_api import errors, services

BODY = {
    'company_guid': 'company-acme',
    'customer_guid': 'customer-acme',
    'publish_date': '2024-04-01T00:00:00Z',
    'payment': 10000,
    'commission_tax_rate': 0.04,
    'tax_rate': 0.1,
    'payment_date': '2024-04-05T00:00:00Z',
}


def test_create_invoice_computes_amounts(client, auth_headers):
    r = client.post('/api/invoices', json=BODY, headers=auth_headers)
    assert r.status_code == 201
    data = r.json()
    assert data['guid']
    assert data['company_guid'] == 'company-acme'
    assert data['customer_guid'] == 'customer-acme'
    assert data['commission_tax'] == 400
    assert data['consumption_tax'] == 40
    assert data['billing_amount'] == 10440
    assert data['status'] == 'unprocessed'
    assert data['payment_date'] == '2024-04-05T00:00:00Z'


def test_created_invoice_is_listed(client, auth_headers):
    created = client.post('/api/invoices', json=BODY, headers=auth_headers).json()
    r = client.get(
        '/api/invoices',
        params={'first_payment_date': '2024-04-01T00:00:00Z', 'last_payment_date': '2024-04-05T00:00:00Z'},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json() == [created]


def test_create_requires_token(client, seeded):
    r = client.post('/api/invoices', json=BODY)
    assert r.status_code in (401, 403)


def test_create_for_another_company_is_forbidden(client, auth_headers):
    body = dict(BODY, company_guid='company-globex', customer_guid='customer-globex')
    r = client.post('/api/invoices', json=body, headers=auth_headers)
    assert r.status_code == 403


def test_create_customer_of_other_company(client, auth_headers):
    body = dict(BODY, customer_guid='customer-globex')
    r = client.post('/api/invoices', json=body, headers=auth_headers)
    assert r.status_code == 400
    assert 'company guid is not match' in r.json()['detail']


def test_create_unknown_customer(client, auth_headers):
    r = client.post('/api/invoices', json=dict(BODY, customer_guid='nobody'), headers=auth_headers)
    assert r.status_code == 404


def test_create_rejects_invalid_body(client, auth_headers):
    r = client.post('/api/invoices', json={'invalid': 'invalid'}, headers=auth_headers)
    assert r.status_code == 422
    r = client.post('/api/invoices', json=dict(BODY, payment=0), headers=auth_headers)
    assert r.status_code == 422
    r = client.post('/api/invoices', json=dict(BODY, tax_rate=1.5), headers=auth_headers)
    assert r.status_code == 422


def test_create_internal_error_hides_details(client, auth_headers, monkeypatch):
    def boom(self, invoice):
        raise errors.InternalError('disk I/O error')

    monkeypatch.setattr(services.repositories.InvoiceRepository, 'create', boom)
    r = client.post('/api/invoices', json=BODY, headers=auth_headers)
    assert r.status_code == 500
    assert r.json()['detail'] == 'internal error'


def test_list_only_returns_callers_company(client, seeded, auth_headers, add_invoice):
    mine = add_invoice(seeded.acme, seeded.acme_customer, datetime(2024, 4, 2), status='paied')
    add_invoice(seeded.globex, seeded.globex_customer, datetime(2024, 4, 2))
    r = client.get(
        '/api/invoices',
        params={'first_payment_date': '2024-04-01T00:00:00Z', 'last_payment_date': '2024-04-05T00:00:00Z'},
        headers=auth_headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert [i['guid'] for i in data] == [mine.guid]
    assert data[0]['status'] == 'paid'
    assert data[0]['customer_guid'] == 'customer-acme'


def test_list_requires_dates(client, auth_headers):
    r = client.get('/api/invoices', params={'invalid': 'invalid'}, headers=auth_headers)
    assert r.status_code == 422


def test_list_rejects_reversed_range(client, auth_headers):
    r = client.get(
        '/api/invoices',
        params={'first_payment_date': '2024-04-05T00:00:00Z', 'last_payment_date': '2024-04-01T00:00:00Z'},
        headers=auth_headers,
    )
    assert r.status_code == 400


def test_request_id_header_exists(client):
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.status_code == 200
    assert r.headers['X-Request-ID'] == 'abc123'


def test_created_and_listed_dates_agree_across_offsets(client, auth_headers):
    body = dict(BODY, publish_date='2024-04-01T09:00:00+09:00', payment_date='2024-04-05T09:00:00+09:00')
    created = client.post('/api/invoices', json=body, headers=auth_headers)
    assert created.status_code == 201
    assert created.json()['payment_date'] == '2024-04-05T00:00:00Z'
    listed = client.get(
        '/api/invoices',
        params={'first_payment_date': '2024-04-05T00:00:00Z', 'last_payment_date': '2024-04-05T00:00:00Z'},
        headers=auth_headers,
    )
    assert listed.status_code == 200
    assert listed.json() == [created.json()]


def test_create_rejects_payment_beyond_storage(client, auth_headers):
    r = client.post('/api/invoices', json=dict(BODY, payment=10 ** 20), headers=auth_headers)
    assert r.status_code == 422


def test_service_error_code_is_logged(client, auth_headers, caplog):
    r = client.post('/api/invoices', json=dict(BODY, customer_guid='nobody'), headers=auth_headers)
    assert r.status_code == 404
    assert 'code=not_found' in caplog.text
