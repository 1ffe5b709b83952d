"""Account Creation Request API — onboarding submission, listing, and Governor review."""

import binascii
import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db.database import get_db
from models.account_request import AccountCreationRequest
from models.investor import Investor, Transaction
from schemas.account_request import (
    AccountRequestCreate,
    AccountRequestCreated,
    AccountRequestResponse,
    ReviewAction,
)
from services import bot_notifier
from services.documents import decode_data_url

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_request_or_404(db: AsyncSession, request_id: uuid.UUID) -> AccountCreationRequest:
    result = await db.execute(
        select(AccountCreationRequest).where(AccountCreationRequest.id == request_id)
    )
    account_request = result.scalar_one_or_none()
    if not account_request:
        raise HTTPException(status_code=404, detail="Account request not found")
    return account_request


# ── POST /api/account-requests ───────────────────────────

@router.post("/", response_model=AccountRequestCreated, status_code=201)
async def create_account_request(
    data: AccountRequestCreate,
    db: AsyncSession = Depends(get_db),
):
    """Store a completed onboarding wizard submission for Governor review."""
    for doc in (data.identity_document, data.proof_of_deposit):
        if doc.file_size > settings.MAX_DOCUMENT_BYTES:
            raise HTTPException(status_code=413, detail=f"{doc.file_name} exceeds the upload limit")

    account_request = AccountCreationRequest(
        applicant_name=data.applicant_name,
        applicant_email=data.applicant_email,
        applicant_phone=data.applicant_phone,
        applicant_country=data.applicant_country,
        applicant_city=data.applicant_city,
        requested_by=data.requested_by,
        requested_by_name=data.requested_by_name,
        status="pending",
        initial_deposit=data.initial_deposit,
        account_type=data.account_type.value,
        deposit_method=data.deposit_method.value,
        selected_crypto=data.selected_crypto,
        bank_details=data.bank_details.model_dump(),
        identity_document=data.identity_document.model_dump(mode="json"),
        proof_of_deposit=data.proof_of_deposit.model_dump(mode="json"),
        agreement_accepted=data.agreement_accepted,
        agreement_accepted_at=data.agreement_accepted_at,
    )
    db.add(account_request)
    await db.commit()
    await db.refresh(account_request)

    logger.info(
        "Account request created: id=%s, applicant=%s, country=%s, deposit=%s, requested_by=%s",
        account_request.id,
        data.applicant_name,
        data.applicant_country,
        data.initial_deposit,
        data.requested_by,
    )

    # Fire-and-forget notifications
    await bot_notifier.notify_request_received(data.requested_by, data.applicant_name)
    await bot_notifier.notify_governor_new_request(
        data.applicant_name, data.initial_deposit, data.applicant_country,
    )

    return AccountRequestCreated(id=account_request.id, status=account_request.status)


# ── GET /api/account-requests ────────────────────────────

@router.get("/", response_model=list[AccountRequestResponse])
async def list_account_requests(
    status: str | None = Query(None, description="Filter by status: pending, approved, rejected"),
    skip: int = 0,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
):
    """List account requests, newest first."""
    query = select(AccountCreationRequest)
    if status:
        query = query.where(AccountCreationRequest.status == status)
    query = query.order_by(AccountCreationRequest.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


# ── GET /api/account-requests/count ──────────────────────

@router.get("/count")
async def count_account_requests(
    status: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(func.count(AccountCreationRequest.id))
    if status:
        query = query.where(AccountCreationRequest.status == status)
    result = await db.execute(query)
    return {"count": result.scalar() or 0}


# ── GET /api/account-requests/{id} ───────────────────────

@router.get("/{request_id}", response_model=AccountRequestResponse)
async def get_account_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await _get_request_or_404(db, request_id)


# ── PUT /api/account-requests/{id}/review ────────────────

@router.put("/{request_id}/review", response_model=AccountRequestResponse)
async def review_account_request(
    request_id: uuid.UUID,
    data: ReviewAction,
    db: AsyncSession = Depends(get_db),
):
    """Governor approve/reject. On APPROVE, opens the investor account with its initial deposit."""
    account_request = await _get_request_or_404(db, request_id)

    if account_request.status != "pending":
        raise HTTPException(
            status_code=400,
            detail=f"Request already reviewed (status: {account_request.status})",
        )

    account_request.reviewed_by = data.reviewed_by
    account_request.reviewed_at = datetime.utcnow()
    account_request.review_note = data.review_note

    if data.action == "APPROVE":
        account_request.status = "approved"
        investor = Investor(
            name=account_request.applicant_name,
            email=account_request.applicant_email,
            phone=account_request.applicant_phone,
            country=account_request.applicant_country,
            city=account_request.applicant_city,
            telegram_id=account_request.requested_by,
            account_type=account_request.account_type,
            initial_deposit=account_request.initial_deposit,
            current_balance=account_request.initial_deposit,
            bank_details=account_request.bank_details,
        )
        db.add(investor)
        await db.flush()
        db.add(Transaction(
            investor_id=investor.id,
            type="Deposit",
            amount=account_request.initial_deposit,
            status="Completed",
            description="Initial deposit",
        ))
        account_request.investor_id = investor.id

        await db.commit()
        await db.refresh(account_request)
        logger.info(
            "Account request APPROVED: id=%s, investor_id=%s, reviewed_by=%s",
            request_id,
            investor.id,
            data.reviewed_by,
        )
        await bot_notifier.notify_request_approved(
            account_request.requested_by,
            account_request.applicant_name,
        )

    else:
        account_request.status = "rejected"
        await db.commit()
        await db.refresh(account_request)
        logger.info(
            "Account request REJECTED: id=%s, reviewed_by=%s, note=%s",
            request_id,
            data.reviewed_by,
            data.review_note,
        )
        await bot_notifier.notify_request_rejected(
            account_request.requested_by,
            data.review_note,
        )

    return account_request


# ── GET /api/account-requests/{id}/document/{kind} ───────

@router.get("/{request_id}/document/{kind}")
async def get_request_document(
    request_id: uuid.UUID,
    kind: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Serve a stored KYC document for Governor review.
    kind: 'identity' or 'deposit'
    """
    account_request = await _get_request_or_404(db, request_id)

    if kind == "identity":
        document = account_request.identity_document
    elif kind == "deposit":
        document = account_request.proof_of_deposit
    else:
        raise HTTPException(status_code=400, detail="kind must be 'identity' or 'deposit'")

    try:
        media_type, content = decode_data_url(document["url"])
    except (KeyError, ValueError, binascii.Error):
        logger.error("Corrupt document payload: request_id=%s, kind=%s", request_id, kind)
        raise HTTPException(status_code=500, detail="Stored document is unreadable")

    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'inline; filename="{document.get("file_name", kind)}"',
            "Cache-Control": "private, max-age=3600",
        },
    )
