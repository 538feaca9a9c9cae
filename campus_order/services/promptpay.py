"""
PromptPay accounts and transfer payloads

Customers pay by PromptPay transfer to whichever account is active when the
payment opens. The payload is the EMVCo merchant-presented string that
banking apps scan; rendering it as a QR image is left to the client.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select
import binascii
import re
import uuid
import structlog

from campus_order.core.errors import InvalidPayload, NotFound
from campus_order.models.promptpay_account import PromptPayAccount

logger = structlog.get_logger(__name__)

ACCOUNT_NOT_FOUND = "Account not found"
PROMPTPAY_AID = "A000000677010111"
CURRENCY_THB = "764"
COUNTRY_TH = "TH"


def normalize_promptpay_phone(phone_number: Optional[str]) -> Optional[str]:
    """Return the 10 digit local form (0XXXXXXXXX) or None when it is not a Thai mobile number"""
    digits = re.sub(r"\D", "", phone_number or "")
    if digits.startswith("66") and len(digits) == 11:
        return f"0{digits[2:]}"
    if len(digits) == 10 and digits.startswith("0"):
        return digits
    return None


def format_phone_for_display(phone_number: Optional[str]) -> str:
    normalized = normalize_promptpay_phone(phone_number)
    if normalized is None:
        return ""
    return f"{normalized[:3]}-{normalized[3:6]}-{normalized[6:]}"


def _tlv(tag: str, value: str) -> str:
    return f"{tag}{len(value):02d}{value}"


def crc16_ccitt(data: str) -> str:
    """CRC-16/CCITT-FALSE as four upper-case hex digits"""
    return f"{binascii.crc_hqx(data.encode('ascii'), 0xFFFF):04X}"


def build_promptpay_payload(phone_number: str, amount: Optional[float] = None) -> str:
    """EMVCo payload for a transfer to phone_number; amounts of zero or less make a static code"""
    normalized = normalize_promptpay_phone(phone_number)
    if normalized is None:
        raise InvalidPayload("Invalid PromptPay phone number")

    # Mobile targets are 66 + number without the trunk zero, left-padded to 13 digits
    target = f"66{normalized[1:]}".rjust(13, "0")
    amount = round(amount, 2) if amount and amount > 0 else 0

    fields = [
        _tlv("00", "01"),
        _tlv("01", "12" if amount else "11"),
        _tlv("29", _tlv("00", PROMPTPAY_AID) + _tlv("01", target)),
        _tlv("53", CURRENCY_THB),
    ]
    if amount:
        fields.append(_tlv("54", f"{amount:.2f}"))
    fields.append(_tlv("58", COUNTRY_TH))

    data = "".join(fields) + "6304"
    return data + crc16_ccitt(data)


def serialize_account(account: PromptPayAccount) -> Dict[str, Any]:
    return {
        "id": str(account.id),
        "name": account.name,
        "phoneNumber": account.phone_number,
        "displayPhone": format_phone_for_display(account.phone_number),
        "isActive": account.is_active,
        "createdAt": account.created_at.isoformat(),
        "updatedAt": account.updated_at.isoformat() if account.updated_at else None,
    }


class PromptPayAccountService:
    """Receiving accounts; activating one deactivates the rest"""

    def __init__(self, session: Session):
        self.session = session

    def list_accounts(self) -> List[PromptPayAccount]:
        return list(self.session.exec(
            select(PromptPayAccount).order_by(PromptPayAccount.is_active.desc(), PromptPayAccount.created_at.desc())
        ).all())

    def get_account(self, account_id: uuid.UUID) -> PromptPayAccount:
        account = self.session.get(PromptPayAccount, account_id)
        if account is None:
            raise NotFound(ACCOUNT_NOT_FOUND)
        return account

    def get_active(self) -> Optional[PromptPayAccount]:
        return self.session.exec(
            select(PromptPayAccount)
            .where(PromptPayAccount.is_active == True)  # noqa: E712
            .order_by(PromptPayAccount.updated_at.desc())
        ).first()

    def _deactivate_all(self, now: datetime):
        for account in self.session.exec(
            select(PromptPayAccount).where(PromptPayAccount.is_active == True)  # noqa: E712
        ).all():
            account.is_active = False
            account.updated_at = now
            self.session.add(account)

    def create_account(self, name: str, phone_number: str, activate: bool = False) -> PromptPayAccount:
        """Add an account; the first account is activated even when not asked"""
        normalized = normalize_promptpay_phone(phone_number)
        if normalized is None:
            raise InvalidPayload("Invalid phone number")
        name = (name or "").strip()
        if not name:
            raise InvalidPayload("Account name is required")

        now = datetime.utcnow()
        should_activate = activate or self.get_active() is None
        if should_activate:
            self._deactivate_all(now)

        account = PromptPayAccount(
            name=name,
            phone_number=normalized,
            is_active=should_activate,
            created_at=now,
            updated_at=now,
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        logger.info(f"Created PromptPay account {account.id} (active={account.is_active})")
        return account

    def activate_account(self, account_id: uuid.UUID) -> PromptPayAccount:
        account = self.get_account(account_id)
        now = datetime.utcnow()
        self._deactivate_all(now)
        account.is_active = True
        account.updated_at = now
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        logger.info(f"Activated PromptPay account {account.id}")
        return account
