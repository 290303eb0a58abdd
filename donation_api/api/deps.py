from fastapi import Request

from donation_api.db.session import Database
from donation_api.services.payments.base import PaymentsProvider


# process-scoped resources live on app.state, set up by create_app()
def get_settings(request: Request):
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_payments(request: Request) -> PaymentsProvider:
    return request.app.state.payments
