"""
Test the application endpoints.
"""
import io
import logging

import pytest
from fastapi.testclient import TestClient

from quickstart.main import create_app
from quickstart.utils.logger import RequestIdFilter, request_id_var


def test_healthz(client: TestClient):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.text == "OK"


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
def test_healthz_accepts_any_method(client: TestClient, method):
    assert client.request(method, "/healthz").text == "OK"


def test_request_id_header(client: TestClient):
    response = client.get("/healthz")
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_async_healthz(async_client):
    response = await async_client.get("/healthz")
    assert response.status_code == 200
    assert response.text == "OK"


class TestSetAccessToken:
    def test_rejects_non_post(self, client):
        response = client.get("/api/set_access_token")
        assert response.status_code == 200
        assert response.text == "Method not supported"

    def test_requires_public_token(self, client, plaid_client):
        response = client.post("/api/set_access_token", data={})
        assert response.text == "Can't find public token"
        plaid_client.item_public_token_exchange.assert_not_called()

    def test_exchanges_and_stores_item(self, client, plaid_client, session, make_response):
        plaid_client.item_public_token_exchange.return_value = make_response(
            {"access_token": "access-sandbox-abc", "item_id": "item-abc", "request_id": "r1"}
        )

        response = client.post("/api/set_access_token", data={"public_token": "public-sandbox-1"})

        assert response.status_code == 200
        assert response.json() == {"access_token": "access-sandbox-abc", "item_id": "item-abc"}
        assert session.access_token == "access-sandbox-abc"
        assert session.item_id == "item-abc"
        assert session.transfer_id is None
        request = plaid_client.item_public_token_exchange.call_args.args[0]
        assert request["public_token"] == "public-sandbox-1"

    def test_second_exchange_overwrites_session(self, client, plaid_client, session, make_response):
        plaid_client.item_public_token_exchange.side_effect = [
            make_response({"access_token": "access-1", "item_id": "item-1"}),
            make_response({"access_token": "access-2", "item_id": "item-2"}),
        ]

        client.post("/api/set_access_token", data={"public_token": "public-1"})
        client.post("/api/set_access_token", data={"public_token": "public-2"})

        assert session.snapshot()["access_token"] == "access-2"
        assert session.snapshot()["item_id"] == "item-2"

    def test_plaid_error_is_plain_text(self, client, plaid_client, session, api_error):
        plaid_client.item_public_token_exchange.side_effect = api_error(
            "INVALID_PUBLIC_TOKEN", message="provided public token is in an invalid format"
        )

        response = client.post("/api/set_access_token", data={"public_token": "bogus"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "INVALID_PUBLIC_TOKEN" in response.text
        assert session.access_token is None


class TestTransferOnExchange:
    @pytest.fixture
    def settings(self, settings):
        settings.plaid_products = "transactions,transfer"
        return settings

    def _exchange(self, plaid_client, make_response):
        plaid_client.item_public_token_exchange.return_value = make_response(
            {"access_token": "access-sandbox-t", "item_id": "item-t"}
        )
        plaid_client.accounts_get.return_value = make_response(
            {"accounts": [{"account_id": "acc-1"}, {"account_id": "acc-2"}]}
        )

    def test_creates_transfer_when_product_enabled(self, client, plaid_client, session, make_response):
        self._exchange(plaid_client, make_response)
        plaid_client.transfer_authorization_create.return_value = make_response(
            {"authorization": {"id": "auth-1", "decision": "approved"}}
        )
        plaid_client.transfer_create.return_value = make_response({"transfer": {"id": "transfer-1"}})

        response = client.post("/api/set_access_token", data={"public_token": "public-t"})

        assert response.json()["item_id"] == "item-t"
        assert session.transfer_id == "transfer-1"
        auth_request = plaid_client.transfer_authorization_create.call_args.args[0]
        assert auth_request["account_id"] == "acc-1"
        assert auth_request["amount"] == "1.34"
        create_request = plaid_client.transfer_create.call_args.args[0]
        assert create_request["authorization_id"] == "auth-1"

    def test_transfer_failure_does_not_fail_exchange(
        self, client, plaid_client, session, make_response, api_error
    ):
        self._exchange(plaid_client, make_response)
        plaid_client.transfer_authorization_create.side_effect = api_error("TRANSFER_ACCOUNT_BLOCKED")

        response = client.post("/api/set_access_token", data={"public_token": "public-t"})

        assert response.json() == {"access_token": "access-sandbox-t", "item_id": "item-t"}
        assert session.access_token == "access-sandbox-t"
        assert session.transfer_id is None

    def test_transfer_endpoint(self, client, plaid_client, session, make_response):
        session.set_transfer("transfer-1")
        plaid_client.transfer_get.return_value = make_response(
            {"transfer": {"id": "transfer-1", "status": "pending"}}
        )

        response = client.get("/api/transfer")

        assert response.json() == {"transfer": {"id": "transfer-1", "status": "pending"}}


class TestLinkTokens:
    def test_create_link_token(self, client, plaid_client, make_response):
        plaid_client.link_token_create.return_value = make_response({"link_token": "link-sandbox-1"})

        response = client.post("/api/create_link_token")

        assert response.json() == {"link_token": "link-sandbox-1"}
        request = plaid_client.link_token_create.call_args.args[0]
        assert request["client_name"] == "Plaid Quickstart"
        assert request["language"] == "en"
        assert [p.value for p in request["products"]] == ["transactions"]
        assert request.get("redirect_uri") is None

    def test_redirect_uri_is_forwarded(self, settings, plaid_client, make_response):
        settings.plaid_redirect_uri = "http://localhost:3000/"
        client = TestClient(create_app(settings=settings, plaid_client=plaid_client))
        plaid_client.link_token_create.return_value = make_response({"link_token": "link-sandbox-2"})

        client.post("/api/create_link_token")

        request = plaid_client.link_token_create.call_args.args[0]
        assert request["redirect_uri"] == "http://localhost:3000/"

    def test_link_token_for_payment_requires_post(self, client, plaid_client):
        response = client.get("/api/create_link_token_for_payment")
        assert response.text == "Method not supported"
        plaid_client.payment_initiation_recipient_create.assert_not_called()

    def test_link_token_for_payment(self, client, plaid_client, session, make_response):
        plaid_client.payment_initiation_recipient_create.return_value = make_response(
            {"recipient_id": "recipient-1"}
        )
        plaid_client.payment_initiation_payment_create.return_value = make_response(
            {"payment_id": "payment-1", "status": "PAYMENT_STATUS_INPUT_NEEDED"}
        )
        plaid_client.link_token_create.return_value = make_response({"link_token": "link-sandbox-pay"})

        response = client.post("/api/create_link_token_for_payment")

        assert response.json() == {"link_token": "link-sandbox-pay"}
        assert session.payment_id == "payment-1"
        payment_request = plaid_client.payment_initiation_payment_create.call_args.args[0]
        assert payment_request["recipient_id"] == "recipient-1"
        link_request = plaid_client.link_token_create.call_args.args[0]
        assert link_request["payment_initiation"]["payment_id"] == "payment-1"
        assert [p.value for p in link_request["products"]] == ["payment_initiation"]

    def test_payment_endpoint(self, client, plaid_client, session, make_response):
        session.set_payment("payment-1")
        plaid_client.payment_initiation_payment_get.return_value = make_response(
            {"payment_id": "payment-1", "status": "PAYMENT_STATUS_EXECUTED"}
        )

        response = client.get("/api/payment")

        assert response.json()["payment"]["status"] == "PAYMENT_STATUS_EXECUTED"

    def test_payment_without_payment_id(self, client, plaid_client):
        response = client.get("/api/payment")

        assert response.status_code == 200
        assert "No payment id available yet" in response.text
        plaid_client.payment_initiation_payment_get.assert_not_called()


class TestProductEndpoints:
    def test_requires_linked_item(self, client, plaid_client):
        response = client.get("/api/accounts")

        assert response.status_code == 200
        assert "No access token available yet" in response.text
        plaid_client.accounts_get.assert_not_called()

    def test_auth(self, client, plaid_client, linked_session, make_response):
        plaid_client.auth_get.return_value = make_response(
            {
                "accounts": [{"account_id": "acc-1"}],
                "numbers": {"ach": [{"account": "1111222233330000"}]},
                "item": {"item_id": "item-123"},
            }
        )

        response = client.get("/api/auth")

        assert response.json() == {
            "accounts": [{"account_id": "acc-1"}],
            "numbers": {"ach": [{"account": "1111222233330000"}]},
        }
        assert plaid_client.auth_get.call_args.args[0]["access_token"] == "access-sandbox-123"

    def test_accounts_and_balance(self, client, plaid_client, linked_session, make_response):
        accounts = {"accounts": [{"account_id": "acc-1", "balances": {"current": 110.0}}]}
        plaid_client.accounts_get.return_value = make_response(accounts)
        plaid_client.accounts_balance_get.return_value = make_response(accounts)

        assert client.get("/api/accounts").json() == accounts
        assert client.post("/api/balance").json() == accounts

    def test_item_includes_institution(self, client, plaid_client, linked_session, make_response):
        plaid_client.item_get.return_value = make_response(
            {"item": {"item_id": "item-123", "institution_id": "ins_109508"}}
        )
        plaid_client.institutions_get_by_id.return_value = make_response(
            {"institution": {"institution_id": "ins_109508", "name": "First Platypus Bank"}}
        )

        response = client.get("/api/item")

        assert response.json()["institution"]["name"] == "First Platypus Bank"
        inst_request = plaid_client.institutions_get_by_id.call_args.args[0]
        assert inst_request["institution_id"] == "ins_109508"
        assert [c.value for c in inst_request["country_codes"]] == ["US"]

    def test_identity(self, client, plaid_client, linked_session, make_response):
        plaid_client.identity_get.return_value = make_response(
            {"accounts": [{"account_id": "acc-1", "owners": [{"names": ["Alberta Bobbeth"]}]}]}
        )

        response = client.get("/api/identity")

        assert response.json()["identity"][0]["owners"][0]["names"] == ["Alberta Bobbeth"]

    def test_holdings_and_investments(self, client, plaid_client, linked_session, make_response):
        plaid_client.investments_holdings_get.return_value = make_response({"holdings": [], "securities": []})
        plaid_client.investments_transactions_get.return_value = make_response(
            {"investment_transactions": [], "total_investment_transactions": 0}
        )

        assert client.get("/api/holdings").json() == {"holdings": {"holdings": [], "securities": []}}
        body = client.get("/api/investments_transactions").json()
        assert body["investments_transactions"]["total_investment_transactions"] == 0
        request = plaid_client.investments_transactions_get.call_args.args[0]
        assert (request["end_date"] - request["start_date"]).days == 30

    def test_create_public_token(self, client, plaid_client, linked_session, make_response):
        plaid_client.item_create_public_token.return_value = make_response(
            {"public_token": "public-sandbox-new"}
        )

        assert client.post("/api/create_public_token").json() == {"public_token": "public-sandbox-new"}

    def test_assets(self, client, plaid_client, linked_session, make_response, api_error):
        plaid_client.asset_report_create.return_value = make_response(
            {"asset_report_token": "assets-sandbox-1", "asset_report_id": "report-1"}
        )
        plaid_client.asset_report_get.side_effect = [
            api_error("PRODUCT_NOT_READY", error_type="ASSET_REPORT_ERROR"),
            make_response({"report": {"asset_report_id": "report-1", "items": []}}),
        ]
        pdf = io.BytesIO(b"%PDF-1.4")
        plaid_client.asset_report_pdf_get.return_value = pdf

        response = client.get("/api/assets")

        assert pdf.closed

        body = response.json()
        assert body["json"] == {"asset_report_id": "report-1", "items": []}
        assert body["pdf"] == "JVBERi0xLjQ="
        create_request = plaid_client.asset_report_create.call_args.args[0]
        assert create_request["days_requested"] == 10

    def test_assets_timeout_is_reported(self, settings, plaid_client, make_response, api_error):
        settings.asset_report_max_attempts = 3
        app = create_app(settings=settings, plaid_client=plaid_client)
        app.state.session.set_item("access-sandbox-123", "item-123")
        client = TestClient(app)
        plaid_client.asset_report_create.return_value = make_response(
            {"asset_report_token": "assets-sandbox-1"}
        )
        plaid_client.asset_report_get.side_effect = api_error(
            "PRODUCT_NOT_READY", error_type="ASSET_REPORT_ERROR"
        )

        response = client.get("/api/assets")

        assert response.status_code == 200
        assert response.text == "Timed out when polling for an asset report after 3 attempts."
        plaid_client.asset_report_pdf_get.assert_not_called()


def test_info(client, linked_session):
    response = client.post("/api/info")

    assert response.json() == {
        "item_id": "item-123",
        "access_token": "access-sandbox-123",
        "products": ["transactions"],
    }


def test_info_before_linking(client):
    assert client.get("/api/info").json() == {
        "item_id": None,
        "access_token": None,
        "products": ["transactions"],
    }


def test_unexpected_error_is_plain_text(app, plaid_client, linked_session, caplog):
    plaid_client.accounts_get.side_effect = RuntimeError("connection reset")
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/accounts")

    assert response.status_code == 200
    assert response.text == "connection reset"

    errors = [r for r in caplog.records if r.name == "quickstart.middleware.error_handler"]
    assert errors and errors[-1].levelname == "ERROR"
    assert isinstance(errors[-1].exc_info[1], RuntimeError)


class TestRequestId:
    def test_generated_when_absent(self, client):
        first = client.get("/healthz").headers["X-Request-ID"]
        second = client.get("/healthz").headers["X-Request-ID"]

        assert first and second and first != second

    def test_caller_id_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-ID": "frontend-42"})

        assert response.headers["X-Request-ID"] == "frontend-42"

    def test_id_is_bound_while_plaid_is_called(
        self, client, plaid_client, linked_session, make_response
    ):
        seen = []

        def accounts_get(request):
            seen.append(request_id_var.get())
            return make_response({"accounts": []})

        plaid_client.accounts_get.side_effect = accounts_get

        client.get("/api/accounts", headers={"X-Request-ID": "frontend-42"})

        assert seen == ["frontend-42"]
        assert request_id_var.get() == "-"

    def test_log_records_carry_the_id(self):
        record = logging.LogRecord("quickstart", logging.INFO, __file__, 1, "hello", None, None)
        token = request_id_var.set("frontend-42")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "frontend-42"
