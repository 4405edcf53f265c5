"""
Plaid quickstart routes.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import PlainTextResponse

from ..constants import ApiEndpoints, ApiTags, HttpMessages, HttpMethods
from ..dependencies import get_plaid_service, get_session
from ..models.plaid import (
    AccessTokenResponse,
    InfoResponse,
    LatestTransactionsResponse,
    LinkTokenResponse,
    PublicTokenResponse,
)
from ..services.plaid_service import PlaidService
from ..session import QuickstartSession
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=[ApiTags.PLAID])


def _method_not_supported(request: Request) -> PlainTextResponse:
    logger.warning(f"{request.method} not supported on {request.url.path}")
    return PlainTextResponse(HttpMessages.METHOD_NOT_SUPPORTED)


@router.api_route(ApiEndpoints.SET_ACCESS_TOKEN, methods=HttpMethods.ALL)
def set_access_token(
    request: Request,
    public_token: str = Form(default=""),
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Exchange a Link public_token for an API access_token."""
    if request.method != HttpMethods.POST:
        return _method_not_supported(request)
    if not public_token:
        return PlainTextResponse(HttpMessages.MISSING_PUBLIC_TOKEN)

    result = plaid_service.exchange_public_token(session, public_token)
    return AccessTokenResponse(**result)


@router.api_route(ApiEndpoints.CREATE_LINK_TOKEN_FOR_PAYMENT, methods=HttpMethods.ALL)
def create_link_token_for_payment(
    request: Request,
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Create a payment and a Link token configured for payment initiation."""
    if request.method != HttpMethods.POST:
        return _method_not_supported(request)

    link_token = plaid_service.create_link_token_for_payment(session)
    return LinkTokenResponse(link_token=link_token)


@router.api_route(ApiEndpoints.CREATE_LINK_TOKEN, methods=HttpMethods.READ_WRITE)
def create_link_token(plaid_service: PlaidService = Depends(get_plaid_service)):
    """Create a Link token for the configured products."""
    return LinkTokenResponse(link_token=plaid_service.create_link_token())


@router.api_route(ApiEndpoints.CREATE_PUBLIC_TOKEN, methods=HttpMethods.READ_WRITE)
def create_public_token(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Create a one-time public_token for the linked item."""
    return PublicTokenResponse(**plaid_service.create_public_token(session))


@router.api_route(ApiEndpoints.AUTH, methods=HttpMethods.READ_WRITE)
def get_auth(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Retrieve ACH or EFT account numbers for the item."""
    return plaid_service.get_auth(session)


@router.api_route(ApiEndpoints.ACCOUNTS, methods=HttpMethods.READ_WRITE)
def get_accounts(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    return plaid_service.get_accounts(session)


@router.api_route(ApiEndpoints.BALANCE, methods=HttpMethods.READ_WRITE)
def get_balance(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Retrieve real-time balances for each of the item's accounts."""
    return plaid_service.get_balance(session)


@router.api_route(ApiEndpoints.ITEM, methods=HttpMethods.READ_WRITE)
def get_item(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Retrieve high-level information about the item and its institution."""
    return plaid_service.get_item(session)


@router.api_route(ApiEndpoints.IDENTITY, methods=HttpMethods.READ_WRITE)
def get_identity(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    return plaid_service.get_identity(session)


@router.api_route(ApiEndpoints.TRANSACTIONS, methods=HttpMethods.READ_WRITE)
def get_transactions(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Sync all transaction updates and return the most recent ones."""
    return LatestTransactionsResponse(**plaid_service.get_latest_transactions(session))


@router.api_route(ApiEndpoints.PAYMENT, methods=HttpMethods.READ_WRITE)
def get_payment(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Retrieve the payment created for the payment link token."""
    return plaid_service.get_payment(session)


@router.api_route(ApiEndpoints.TRANSFER, methods=HttpMethods.READ_WRITE)
def get_transfer(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Retrieve the transfer created during the token exchange."""
    return plaid_service.get_transfer(session)


@router.api_route(ApiEndpoints.INVESTMENTS_TRANSACTIONS, methods=HttpMethods.READ_WRITE)
def get_investments_transactions(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    return plaid_service.get_investments_transactions(session)


@router.api_route(ApiEndpoints.HOLDINGS, methods=HttpMethods.READ_WRITE)
def get_holdings(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    return plaid_service.get_holdings(session)


@router.api_route(ApiEndpoints.ASSETS, methods=HttpMethods.READ_WRITE)
def get_assets(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    """Create an asset report and return it as JSON plus a base64 PDF."""
    return plaid_service.get_assets(session)


@router.api_route(ApiEndpoints.INFO, methods=HttpMethods.READ_WRITE)
def get_info(
    session: QuickstartSession = Depends(get_session),
    plaid_service: PlaidService = Depends(get_plaid_service),
):
    return InfoResponse(**plaid_service.get_info(session))
