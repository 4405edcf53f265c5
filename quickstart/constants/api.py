"""
API-related constants.
"""

# API Route Tags
class ApiTags:
    PLAID = "plaid"
    HEALTH = "health"


# API Endpoints
class ApiEndpoints:
    HEALTHZ = "/healthz"
    SET_ACCESS_TOKEN = "/set_access_token"
    CREATE_LINK_TOKEN_FOR_PAYMENT = "/create_link_token_for_payment"
    CREATE_LINK_TOKEN = "/create_link_token"
    CREATE_PUBLIC_TOKEN = "/create_public_token"
    AUTH = "/auth"
    ACCOUNTS = "/accounts"
    BALANCE = "/balance"
    ITEM = "/item"
    IDENTITY = "/identity"
    TRANSACTIONS = "/transactions"
    PAYMENT = "/payment"
    TRANSFER = "/transfer"
    INVESTMENTS_TRANSACTIONS = "/investments_transactions"
    HOLDINGS = "/holdings"
    ASSETS = "/assets"
    INFO = "/info"


# HTTP Messages
class HttpMessages:
    OK = "OK"
    METHOD_NOT_SUPPORTED = "Method not supported"
    MISSING_PUBLIC_TOKEN = "Can't find public token"


# HTTP Methods
class HttpMethods:
    GET = "GET"
    POST = "POST"
    READ_WRITE = [GET, POST]
    ALL = [GET, POST, "PUT", "PATCH", "DELETE"]
