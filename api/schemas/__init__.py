"""Pydantic schemas for API request/response models."""

from __future__ import annotations
from pydantic import BaseModel


# ── Admin Dashboard ────────────────────────────────────────

class DashboardStats(BaseModel):
    total_assets: float
    total_investors: int
    active_investors: int
    pending_withdrawals: int
    pending_withdrawal_amount: float
    total_deposits: float
    total_withdrawals_processed: float
    net_flow: float
    total_earnings: float
    average_roi_pct: float
    profitable_investors: int
    unprofitable_investors: int
    profitable_pct: float
    earnings_transactions_pct: float
    withdrawal_success_rate_pct: float
    withdrawal_rejected_pct: float
    pending_account_requests: int = 0
