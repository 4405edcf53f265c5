import base64
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import plaid
from plaid.api import plaid_api
from plaid.exceptions import ApiException
from plaid.model.accounts_balance_get_request import AccountsBalanceGetRequest
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.ach_class import ACHClass
from plaid.model.asset_report_create_request import AssetReportCreateRequest
from plaid.model.asset_report_get_request import AssetReportGetRequest
from plaid.model.asset_report_pdf_get_request import AssetReportPDFGetRequest
from plaid.model.auth_get_request import AuthGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.identity_get_request import IdentityGetRequest
from plaid.model.institutions_get_by_id_request import InstitutionsGetByIdRequest
from plaid.model.investments_holdings_get_request import InvestmentsHoldingsGetRequest
from plaid.model.investments_transactions_get_request import (
    InvestmentsTransactionsGetRequest,
)
from plaid.model.investments_transactions_get_request_options import (
    InvestmentsTransactionsGetRequestOptions,
)
from plaid.model.item_get_request import ItemGetRequest
from plaid.model.item_public_token_create_request import ItemPublicTokenCreateRequest
from plaid.model.item_public_token_exchange_request import (
    ItemPublicTokenExchangeRequest,
)
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_payment_initiation import (
    LinkTokenCreateRequestPaymentInitiation,
)
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.payment_amount import PaymentAmount
from plaid.model.payment_amount_currency import PaymentAmountCurrency
from plaid.model.payment_initiation_address import PaymentInitiationAddress
from plaid.model.payment_initiation_payment_create_request import (
    PaymentInitiationPaymentCreateRequest,
)
from plaid.model.payment_initiation_payment_get_request import (
    PaymentInitiationPaymentGetRequest,
)
from plaid.model.payment_initiation_recipient_create_request import (
    PaymentInitiationRecipientCreateRequest,
)
from plaid.model.products import Products
from plaid.model.transactions_sync_request import TransactionsSyncRequest
from plaid.model.transfer_authorization_create_request import (
    TransferAuthorizationCreateRequest,
)
from plaid.model.transfer_authorization_user_in_request import (
    TransferAuthorizationUserInRequest,
)
from plaid.model.transfer_create_request import TransferCreateRequest
from plaid.model.transfer_get_request import TransferGetRequest
from plaid.model.transfer_network import TransferNetwork
from plaid.model.transfer_type import TransferType

from ..constants import (
    Investments,
    PaymentInitiationDefaults,
    PlaidEnvironments,
    PlaidLinkConfig,
    PlaidProducts,
    TransactionSync,
    TransferDefaults,
)
from ..exceptions import (
    MissingSessionValueError,
    PlaidApiException,
    TransferSetupError,
    is_product_not_ready,
)
from ..models.plaid import SyncResult
from ..session import QuickstartSession
from ..settings import Settings
from ..utils.logger import get_logger
from ..utils.retry import RetryPolicy, constant_backoff, poll_with_retries
from ..utils.serialization import to_jsonable

logger = get_logger(__name__)

# plaid-python dropped the Development constant when Plaid retired that
# environment, so the host is spelled out here.
ENVIRONMENT_HOSTS = {
    PlaidEnvironments.SANDBOX: plaid.Environment.Sandbox,
    PlaidEnvironments.DEVELOPMENT: "https://development.plaid.com",
    PlaidEnvironments.PRODUCTION: plaid.Environment.Production,
}


def create_plaid_client(settings: Settings) -> plaid_api.PlaidApi:
    """Build a Plaid API client for the configured environment."""
    configuration = plaid.Configuration(
        host=ENVIRONMENT_HOSTS[settings.plaid_env],
        api_key={
            "clientId": settings.plaid_client_id,
            "secret": settings.plaid_secret,
            "plaidVersion": "2020-09-14",
        },
    )
    api_client = plaid.ApiClient(configuration)
    logger.info(f"Plaid client initialized for {settings.plaid_env} environment")
    return plaid_api.PlaidApi(api_client)


def _transaction_date_key(transaction: Dict[str, Any]) -> str:
    value = transaction.get("date")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value or "")


def latest_transactions(
    added: List[Dict[str, Any]], limit: int = TransactionSync.LATEST_LIMIT
) -> List[Dict[str, Any]]:
    """
    Sort transactions ascending by date and keep the last `limit` of them,
    i.e. the most recent ones. Fewer than `limit` transactions are all kept.
    """
    ordered = sorted(added, key=_transaction_date_key)
    start = max(len(ordered) - limit, 0)
    return ordered[start:]


class PlaidService:
    """Forwards quickstart requests to the Plaid API."""

    def __init__(self, client: plaid_api.PlaidApi, settings: Settings):
        self.client = client
        self.settings = settings

    def _execute(self, operation: str, call: Callable[[Any], Any], request: Any) -> Any:
        """Run one Plaid call, turning ApiException into PlaidApiException."""
        try:
            return call(request)
        except ApiException as e:
            error = PlaidApiException(e)
            logger.warning(f"Plaid {operation} failed: {error.detail}")
            raise error from e

    def _execute_dict(self, operation: str, call: Callable[[Any], Any], request: Any) -> Dict[str, Any]:
        return self._execute(operation, call, request).to_dict()

    @staticmethod
    def _require_access_token(session: QuickstartSession) -> str:
        if not session.access_token:
            raise MissingSessionValueError("access token")
        return session.access_token

    def _country_codes(self) -> List[CountryCode]:
        return [CountryCode(code) for code in self.settings.country_codes_list]

    def _products(self) -> List[Products]:
        return [Products(product) for product in self.settings.products_list]

    # ------------------------------------------------------------------
    # Link and token exchange
    # ------------------------------------------------------------------

    def create_link_token(
        self,
        payment_id: Optional[str] = None,
        products: Optional[List[str]] = None,
    ) -> str:
        """Create a Link token, optionally bound to a payment initiation."""
        request = LinkTokenCreateRequest(
            products=(
                [Products(p) for p in products] if products else self._products()
            ),
            client_name=PlaidLinkConfig.CLIENT_NAME,
            country_codes=self._country_codes(),
            language=PlaidLinkConfig.LANGUAGE_EN,
            user=LinkTokenCreateRequestUser(
                # Should be a stable, non-PII id for the user in a real app.
                client_user_id=str(time.time())
            ),
        )
        if self.settings.plaid_redirect_uri:
            request["redirect_uri"] = self.settings.plaid_redirect_uri
        if payment_id:
            request["payment_initiation"] = LinkTokenCreateRequestPaymentInitiation(
                payment_id=payment_id
            )

        response = self._execute_dict(
            "link_token_create", self.client.link_token_create, request
        )
        logger.info("Link token created")
        return response["link_token"]

    def exchange_public_token(
        self, session: QuickstartSession, public_token: str
    ) -> Dict[str, str]:
        """Exchange a Link public_token for an access_token and remember the item."""
        logger.debug(f"public token: {public_token}")
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self._execute_dict(
            "item_public_token_exchange", self.client.item_public_token_exchange, request
        )

        access_token = response["access_token"]
        item_id = response["item_id"]
        session.set_item(access_token, item_id)
        logger.debug(f"access token: {access_token}")

        if PlaidProducts.TRANSFER in self.settings.products_list:
            try:
                session.set_transfer(self.authorize_and_create_transfer(access_token))
            except (PlaidApiException, TransferSetupError) as e:
                logger.warning(f"Could not create transfer for item {item_id}: {e.detail}")

        return {"access_token": access_token, "item_id": item_id}

    def create_link_token_for_payment(self, session: QuickstartSession) -> str:
        """
        Create a payment recipient and a payment, then a Link token bound to it.

        Only relevant for the UK Payment Initiation product. The payment is
        associated with the link token so it does not have to be passed in
        again when Link is initialized.
        """
        recipient_request = PaymentInitiationRecipientCreateRequest(
            name=PaymentInitiationDefaults.RECIPIENT_NAME,
            iban=PaymentInitiationDefaults.RECIPIENT_IBAN,
            address=PaymentInitiationAddress(
                street=PaymentInitiationDefaults.STREET,
                city=PaymentInitiationDefaults.CITY,
                postal_code=PaymentInitiationDefaults.POSTAL_CODE,
                country=PaymentInitiationDefaults.COUNTRY,
            ),
        )
        recipient = self._execute_dict(
            "payment_initiation_recipient_create",
            self.client.payment_initiation_recipient_create,
            recipient_request,
        )

        payment_request = PaymentInitiationPaymentCreateRequest(
            recipient_id=recipient["recipient_id"],
            reference=PaymentInitiationDefaults.REFERENCE,
            amount=PaymentAmount(
                currency=PaymentAmountCurrency(PaymentInitiationDefaults.CURRENCY),
                value=PaymentInitiationDefaults.AMOUNT,
            ),
        )
        payment = self._execute_dict(
            "payment_initiation_payment_create",
            self.client.payment_initiation_payment_create,
            payment_request,
        )

        payment_id = payment["payment_id"]
        session.set_payment(payment_id)

        # payment_initiation has to be the only product on this link token.
        return self.create_link_token(
            payment_id=payment_id, products=[PlaidProducts.PAYMENT_INITIATION]
        )

    def create_public_token(self, session: QuickstartSession) -> Dict[str, str]:
        """Create a one-time public_token, e.g. to open Link in update mode."""
        request = ItemPublicTokenCreateRequest(
            access_token=self._require_access_token(session)
        )
        response = self._execute_dict(
            "item_create_public_token", self.client.item_create_public_token, request
        )
        return {"public_token": response["public_token"]}

    # ------------------------------------------------------------------
    # Simple product lookups
    # ------------------------------------------------------------------

    def get_auth(self, session: QuickstartSession) -> Dict[str, Any]:
        request = AuthGetRequest(access_token=self._require_access_token(session))
        response = self._execute_dict("auth_get", self.client.auth_get, request)
        return to_jsonable(
            {"accounts": response["accounts"], "numbers": response["numbers"]}
        )

    def get_accounts(self, session: QuickstartSession) -> Dict[str, Any]:
        request = AccountsGetRequest(access_token=self._require_access_token(session))
        response = self._execute_dict("accounts_get", self.client.accounts_get, request)
        return to_jsonable({"accounts": response["accounts"]})

    def get_balance(self, session: QuickstartSession) -> Dict[str, Any]:
        request = AccountsBalanceGetRequest(
            access_token=self._require_access_token(session)
        )
        response = self._execute_dict(
            "accounts_balance_get", self.client.accounts_balance_get, request
        )
        return to_jsonable({"accounts": response["accounts"]})

    def get_item(self, session: QuickstartSession) -> Dict[str, Any]:
        """Item metadata plus the institution it is linked to."""
        request = ItemGetRequest(access_token=self._require_access_token(session))
        item = self._execute_dict("item_get", self.client.item_get, request)["item"]

        institution = None
        institution_id = item.get("institution_id")
        if institution_id:
            inst_request = InstitutionsGetByIdRequest(
                institution_id=institution_id,
                country_codes=self._country_codes(),
            )
            institution = self._execute_dict(
                "institutions_get_by_id",
                self.client.institutions_get_by_id,
                inst_request,
            )["institution"]
        else:
            logger.warning(f"Item {item.get('item_id')} has no institution id")

        return to_jsonable({"item": item, "institution": institution})

    def get_identity(self, session: QuickstartSession) -> Dict[str, Any]:
        request = IdentityGetRequest(access_token=self._require_access_token(session))
        response = self._execute_dict("identity_get", self.client.identity_get, request)
        return to_jsonable({"identity": response["accounts"]})

    def get_payment(self, session: QuickstartSession) -> Dict[str, Any]:
        """Retrieve the payment created by create_link_token_for_payment."""
        if not session.payment_id:
            raise MissingSessionValueError("payment id")
        request = PaymentInitiationPaymentGetRequest(payment_id=session.payment_id)
        response = self._execute_dict(
            "payment_initiation_payment_get",
            self.client.payment_initiation_payment_get,
            request,
        )
        return to_jsonable({"payment": response})

    def get_transfer(self, session: QuickstartSession) -> Dict[str, Any]:
        """Retrieve the transfer created during the token exchange."""
        if not session.transfer_id:
            raise MissingSessionValueError("transfer id")
        request = TransferGetRequest(transfer_id=session.transfer_id)
        response = self._execute_dict("transfer_get", self.client.transfer_get, request)
        return to_jsonable({"transfer": response["transfer"]})

    def get_investments_transactions(self, session: QuickstartSession) -> Dict[str, Any]:
        """Investment transactions for the last 30 days."""
        end_date = date.today()
        start_date = end_date - timedelta(days=Investments.TRANSACTIONS_LOOKBACK_DAYS)
        request = InvestmentsTransactionsGetRequest(
            access_token=self._require_access_token(session),
            start_date=start_date,
            end_date=end_date,
            options=InvestmentsTransactionsGetRequestOptions(),
        )
        response = self._execute_dict(
            "investments_transactions_get",
            self.client.investments_transactions_get,
            request,
        )
        return to_jsonable({"investments_transactions": response})

    def get_holdings(self, session: QuickstartSession) -> Dict[str, Any]:
        request = InvestmentsHoldingsGetRequest(
            access_token=self._require_access_token(session)
        )
        response = self._execute_dict(
            "investments_holdings_get", self.client.investments_holdings_get, request
        )
        return to_jsonable({"holdings": response})

    def get_info(self, session: QuickstartSession) -> Dict[str, Any]:
        return {
            "item_id": session.item_id,
            "access_token": session.access_token,
            "products": self.settings.products_list,
        }

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def sync_transactions(
        self, access_token: str, cursor: Optional[str] = None
    ) -> SyncResult:
        """
        Page through /transactions/sync until Plaid reports no more updates.

        Starting without a cursor returns all historical updates. Any failing
        page aborts the whole sync; nothing accumulated so far is returned.
        """
        result = SyncResult(next_cursor=cursor)
        has_more = True
        while has_more:
            if result.next_cursor:
                request = TransactionsSyncRequest(
                    access_token=access_token, cursor=result.next_cursor
                )
            else:
                request = TransactionsSyncRequest(access_token=access_token)

            response = self._execute_dict(
                "transactions_sync", self.client.transactions_sync, request
            )

            added = response.get("added", [])
            modified = response.get("modified", [])
            removed = response.get("removed", [])
            result.added.extend(added)
            result.modified.extend(modified)
            result.removed.extend(removed)
            result.pages += 1
            logger.info(
                f"Sync page {result.pages}: "
                f"{len(added)} added, {len(modified)} modified, {len(removed)} removed."
            )

            has_more = response["has_more"]
            result.next_cursor = response["next_cursor"]

        return result

    def get_latest_transactions(self, session: QuickstartSession) -> Dict[str, Any]:
        result = self.sync_transactions(self._require_access_token(session))
        return to_jsonable({"latest_transactions": latest_transactions(result.added)})

    # ------------------------------------------------------------------
    # Asset reports
    # ------------------------------------------------------------------

    def asset_report_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.asset_report_max_attempts,
            backoff=constant_backoff(self.settings.asset_report_retry_delay),
            retryable=is_product_not_ready,
        )

    def poll_asset_report(
        self,
        asset_report_token: str,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Dict[str, Any]:
        """Fetch an asset report, retrying while Plaid says it is not ready."""
        request = AssetReportGetRequest(asset_report_token=asset_report_token)
        response = poll_with_retries(
            lambda: self._execute("asset_report_get", self.client.asset_report_get, request),
            policy or self.asset_report_retry_policy(),
            sleep=sleep,
            description="an asset report",
        )
        return response.to_dict()

    def get_assets(
        self,
        session: QuickstartSession,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Dict[str, Any]:
        """Create an asset report, wait for it, and return it as JSON and PDF."""
        create_request = AssetReportCreateRequest(
            access_tokens=[self._require_access_token(session)],
            days_requested=self.settings.asset_report_days_requested,
        )
        created = self._execute_dict(
            "asset_report_create", self.client.asset_report_create, create_request
        )
        asset_report_token = created["asset_report_token"]

        report = self.poll_asset_report(asset_report_token, sleep=sleep)

        pdf_request = AssetReportPDFGetRequest(asset_report_token=asset_report_token)
        # plaid-python hands the PDF back as an open temporary file.
        with self._execute(
            "asset_report_pdf_get", self.client.asset_report_pdf_get, pdf_request
        ) as pdf:
            pdf_content = pdf.read()

        return {
            "json": to_jsonable(report["report"]),
            "pdf": base64.b64encode(pdf_content).decode("utf-8"),
        }

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def authorize_and_create_transfer(self, access_token: str) -> str:
        """
        Authorize and create an ACH transfer on the item's first account.

        Only relevant for the Transfer product. In production, account ids
        should come from a data store rather than a fresh /accounts/get.
        """
        accounts = self._execute_dict(
            "accounts_get",
            self.client.accounts_get,
            AccountsGetRequest(access_token=access_token),
        )["accounts"]
        if not accounts:
            raise TransferSetupError("Item has no accounts to transfer from")
        account_id = accounts[0]["account_id"]

        user = TransferAuthorizationUserInRequest(legal_name=TransferDefaults.LEGAL_NAME)
        authorization_request = TransferAuthorizationCreateRequest(
            access_token=access_token,
            account_id=account_id,
            type=TransferType(TransferDefaults.TYPE),
            network=TransferNetwork(TransferDefaults.NETWORK),
            amount=TransferDefaults.AMOUNT,
            ach_class=ACHClass(TransferDefaults.ACH_CLASS),
            user=user,
        )
        authorization = self._execute_dict(
            "transfer_authorization_create",
            self.client.transfer_authorization_create,
            authorization_request,
        )["authorization"]

        create_request = TransferCreateRequest(
            access_token=access_token,
            account_id=account_id,
            authorization_id=authorization["id"],
            description=TransferDefaults.DESCRIPTION,
        )
        transfer = self._execute_dict(
            "transfer_create", self.client.transfer_create, create_request
        )["transfer"]

        logger.info(f"Created transfer {transfer['id']} for account {account_id}")
        return transfer["id"]
