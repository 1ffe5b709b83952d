"""Admin dashboard API endpoints — portfolio, withdrawal and onboarding KPIs."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_db
from models.investor import Investor
from schemas import DashboardStats
from services.dashboard import gather_dashboard

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(db: AsyncSession = Depends(get_db)):
    """Get dashboard KPI statistics."""
    return DashboardStats(**await gather_dashboard(db))


@router.get("/investors")
async def investor_summary(db: AsyncSession = Depends(get_db)):
    """Investor roster with balance and profitability for the dashboard table."""
    investors = (await db.execute(select(Investor).order_by(Investor.created_at.desc()))).scalars().all()

    return {
        "total": len(investors),
        "investors": [
            {
                "id": str(i.id),
                "name": i.name,
                "country": i.country,
                "account_type": i.account_type,
                "account_status": i.account_status,
                "initial_deposit": float(i.initial_deposit),
                "current_balance": float(i.current_balance),
                "profitable": float(i.current_balance) > float(i.initial_deposit),
            }
            for i in investors
        ],
    }
