"""CLI script to seed a demo company, user and customer into the backend DB.
Usage: python scripts/seed_demo.py [--email EMAIL] [--password PASSWORD]
"""
import sys
import argparse
import pathlib
import uuid
# Ensure `backend/` is on sys.path so `invoice_api` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from invoice_api.database import engine, create_db_and_tables
from invoice_api import models, repositories, services


def main(email: str = 'demo@example.com', password: str = 'demo'):
    """Create the demo records unless the demo user already exists.

    Prints the guids needed to call the invoice endpoints.
    """
    create_db_and_tables()
    with Session(engine) as session:
        existing = repositories.UserRepository(session).get_by_email(email)
        if existing:
            print(f'User {email} already exists (guid {existing.guid})')
            return
        company = repositories.CompanyRepository(session).create(models.Company(
            guid=str(uuid.uuid4()),
            corporate_name='Demo Trading Co.',
            representative_name='Demo Representative',
        ))
        customer = repositories.CustomerRepository(session).create(models.Customer(
            guid=str(uuid.uuid4()),
            company_id=company.id,
            corporate_name='Demo Customer Ltd.',
        ))
        user = services.AuthService(session).register(company.guid, 'Demo User', email, password)
        print(f'company_guid:  {company.guid}')
        print(f'customer_guid: {customer.guid}')
        print(f'user:          {user.email} (guid {user.guid})')


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--email', default='demo@example.com', help='Login email of the demo user')
    parser.add_argument('--password', default='demo', help='Password of the demo user')
    args = parser.parse_args()
    main(email=args.email, password=args.password)
