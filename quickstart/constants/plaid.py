"""
Plaid-related constants.
"""

# Plaid Environments
class PlaidEnvironments:
    SANDBOX = "sandbox"
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    ALL = (SANDBOX, DEVELOPMENT, PRODUCTION)


# Plaid Products
class PlaidProducts:
    TRANSACTIONS = "transactions"
    AUTH = "auth"
    IDENTITY = "identity"
    ASSETS = "assets"
    INVESTMENTS = "investments"
    PAYMENT_INITIATION = "payment_initiation"
    TRANSFER = "transfer"


# Plaid API Error Codes
class PlaidErrorCodes:
    PRODUCT_NOT_READY = "PRODUCT_NOT_READY"


# Plaid Link Token Configuration
class PlaidLinkConfig:
    CLIENT_NAME = "Plaid Quickstart"
    LANGUAGE_EN = "en"


# Transaction sync
class TransactionSync:
    LATEST_LIMIT = 9


# Investments
class Investments:
    TRANSACTIONS_LOOKBACK_DAYS = 30


# Sandbox payment initiation fixtures (UK Payment Initiation product)
class PaymentInitiationDefaults:
    RECIPIENT_NAME = "Harry Potter"
    RECIPIENT_IBAN = "GB33BUKB20201555555555"
    STREET = ["4 Privet Drive"]
    CITY = "Little Whinging"
    POSTAL_CODE = "11111"
    COUNTRY = "GB"
    REFERENCE = "paymentRef"
    CURRENCY = "GBP"
    AMOUNT = 1.34


# Sandbox transfer fixtures (ACH Transfer product)
class TransferDefaults:
    TYPE = "credit"
    NETWORK = "ach"
    AMOUNT = "1.34"
    ACH_CLASS = "ppd"
    LEGAL_NAME = "FirstName LastName"
    DESCRIPTION = "Payment"
