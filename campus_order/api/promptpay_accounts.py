"""
Admin PromptPay account endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
import uuid

from campus_order.core.database import get_session
from campus_order.core.dependencies import require_permission
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.admin import PromptPayAccountCreate
from campus_order.services.promptpay import PromptPayAccountService, serialize_account

router = APIRouter()

manage_accounts = require_permission(Permission.SETTINGS_PROMPTPAY_ACCOUNTS)


@router.get("")
def list_accounts(admin: Admin = Depends(manage_accounts), session: Session = Depends(get_session)):
    """Accounts with the active one first, then newest"""
    accounts = PromptPayAccountService(session).list_accounts()
    return {"accounts": [serialize_account(account) for account in accounts]}


@router.post("")
def create_account(
    payload: PromptPayAccountCreate,
    admin: Admin = Depends(manage_accounts),
    session: Session = Depends(get_session),
):
    account = PromptPayAccountService(session).create_account(payload.name, payload.phone_number, payload.activate)
    return {"account": serialize_account(account)}


@router.patch("/{account_id}/activate")
def activate_account(
    account_id: uuid.UUID,
    admin: Admin = Depends(manage_accounts),
    session: Session = Depends(get_session),
):
    account = PromptPayAccountService(session).activate_account(account_id)
    return {"account": serialize_account(account)}
