from models.account_request import AccountCreationRequest
from models.investor import Investor, Transaction, WithdrawalRequest

__all__ = [
    "AccountCreationRequest", "Investor", "Transaction", "WithdrawalRequest",
]
