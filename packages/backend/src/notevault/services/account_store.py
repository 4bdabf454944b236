"""Credential store — persistence for Account rows.

Learn: Every auth flow reads and writes accounts through this class,
so email normalisation and the OTP consume step live in exactly one
place. consume_otp() is a conditional UPDATE rather than
read-modify-write: two concurrent verifications of the same code race
on the WHERE clause, and only one of them can match.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.db.models import Account


def normalize_email(email: str) -> str:
    """Canonical form used as the unique key: trimmed and lower-cased."""
    return email.strip().lower()


class AccountStore:
    """Lookup, creation and atomic OTP consumption for accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[Account]:
        result = await self.db.execute(
            select(Account).where(Account.email == normalize_email(email))
        )
        return result.scalars().first()

    async def get_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        return await self.db.get(Account, account_id)

    async def add(self, account: Account) -> Account:
        account.email = normalize_email(account.email)
        self.db.add(account)
        await self.db.commit()
        return account

    async def save(self, account: Account) -> Account:
        await self.db.commit()
        return account

    async def consume_otp(
        self, account_id: uuid.UUID, code: str, now: datetime
    ) -> bool:
        """Clear a still-valid OTP and mark the account verified, atomically.

        Returns False if the code was already consumed, replaced, or
        expired between the caller's read and this write.
        """
        result = await self.db.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.otp_code == code,
                Account.otp_expires_at > now,
            )
            .values(otp_code=None, otp_expires_at=None, is_verified=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1
