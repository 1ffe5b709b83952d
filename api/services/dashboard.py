"""
Dashboard Metrics — portfolio, withdrawal and earnings statistics for the admin view.

All figures are reductions over already-loaded investors, withdrawal requests
and transactions. Total assets come from current balances; the ledger-based
net flow is logged next to it as a consistency check but never enforced.
"""

from __future__ import annotations
import logging
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.account_request import AccountCreationRequest
from models.investor import Investor, Transaction, WithdrawalRequest

logger = logging.getLogger(__name__)


def _pct(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def compute_dashboard(
    investors: Iterable,
    withdrawal_requests: Iterable,
    transactions: Iterable,
) -> dict:
    """Reduce raw records into the dashboard KPI dict."""
    investors = list(investors)
    withdrawal_requests = list(withdrawal_requests)
    transactions = list(transactions)

    balances = [(float(i.current_balance or 0), float(i.initial_deposit or 0)) for i in investors]
    total_assets = sum(b for b, _ in balances)
    total_investors = len(investors)
    active_investors = sum(1 for i in investors if "Closed" not in (i.account_status or ""))

    pending = [w for w in withdrawal_requests if w.status == "Pending"]
    pending_amount = sum(float(w.amount) for w in pending)

    total_withdrawals = abs(sum(
        float(t.amount) for t in transactions
        if t.type == "Withdrawal" and t.status == "Completed"
    ))
    total_deposits = sum(
        float(t.amount) for t in transactions
        if t.type == "Deposit" and t.status == "Completed"
    )
    net_flow = total_deposits - total_withdrawals

    total_earnings = sum(max(balance - initial, 0.0) for balance, initial in balances)
    profitable = sum(1 for balance, initial in balances if balance > initial)

    earnings_tx = sum(1 for t in transactions if t.type == "Earnings")
    deposit_tx = sum(1 for t in transactions if t.type == "Deposit")

    approved = sum(1 for w in withdrawal_requests if w.status == "Approved")
    rejected = sum(1 for w in withdrawal_requests if w.status == "Rejected")
    total_requests = len(withdrawal_requests)

    if abs(total_assets - net_flow) > 0.01:
        logger.warning(
            "AUM mismatch: balances=%.2f, ledger net flow=%.2f (deposits=%.2f, withdrawals=%.2f)",
            total_assets, net_flow, total_deposits, total_withdrawals,
        )
    else:
        logger.info("AUM verified: balances=%.2f match ledger net flow", total_assets)

    return {
        "total_assets": round(total_assets, 2),
        "total_investors": total_investors,
        "active_investors": active_investors,
        "pending_withdrawals": len(pending),
        "pending_withdrawal_amount": round(pending_amount, 2),
        "total_deposits": round(total_deposits, 2),
        "total_withdrawals_processed": round(total_withdrawals, 2),
        "net_flow": round(net_flow, 2),
        "total_earnings": round(total_earnings, 2),
        "average_roi_pct": round(_pct(total_earnings, total_deposits), 2),
        "profitable_investors": profitable,
        "unprofitable_investors": total_investors - profitable,
        "profitable_pct": round(_pct(profitable, total_investors), 1),
        "earnings_transactions_pct": round(_pct(earnings_tx, earnings_tx + deposit_tx), 1),
        "withdrawal_success_rate_pct": round(_pct(approved, total_requests), 1),
        "withdrawal_rejected_pct": round(_pct(rejected, total_requests), 1),
    }


async def gather_dashboard(db: AsyncSession) -> dict:
    """Load every record the dashboard needs and reduce it."""
    investors = (await db.execute(select(Investor))).scalars().all()
    withdrawals = (await db.execute(select(WithdrawalRequest))).scalars().all()
    transactions = (await db.execute(select(Transaction))).scalars().all()

    stats = compute_dashboard(investors, withdrawals, transactions)
    stats["pending_account_requests"] = (await db.execute(
        select(func.count(AccountCreationRequest.id)).where(AccountCreationRequest.status == "pending")
    )).scalar() or 0
    return stats
