"""
Wallet ledger: the only code path that changes a user's credit balance.

Both operations are single UPDATE statements, so concurrent requests against
the same wallet cannot interleave a read and a write. The debit carries its
own sufficiency condition (`wallet >= amount`), closing the window between
the workflow's balance check and the decrement.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.core.exceptions import InsufficientFunds, NotFound
from app.core.metrics import record_wallet_operation
from app.core.logging import get_logger

logger = get_logger(__name__)


async def get_balance(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(select(User.wallet).where(User.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFound("User not found")
    return balance


async def has_enough_credits(db: AsyncSession, user_id: int, price: int) -> bool:
    """Strictly greater than: a wallet holding exactly `price` is not enough."""
    return await get_balance(db, user_id) > price


async def add_credits(db: AsyncSession, user_id: int, amount: int) -> int:
    """Atomically add `amount` credits. Returns the new balance."""
    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(wallet=User.wallet + amount)
    )
    if result.rowcount == 0:
        record_wallet_operation("credit", ok=False)
        raise NotFound("User not found")

    record_wallet_operation("credit", ok=True)
    balance = await get_balance(db, user_id)
    logger.info("wallet_credited", user_id=user_id, amount=amount, balance=balance)
    return balance


async def debit_credits(db: AsyncSession, user_id: int, amount: int) -> int:
    """
    Atomically remove `amount` credits if the balance covers it.
    Raises InsufficientFunds (or NotFound for an unknown user) otherwise.
    """
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.wallet >= amount)
        .values(wallet=User.wallet - amount)
    )
    if result.rowcount == 0:
        record_wallet_operation("debit", ok=False)
        # Distinguish a missing user from an empty wallet
        await get_balance(db, user_id)
        logger.warning("wallet_debit_rejected", user_id=user_id, amount=amount)
        raise InsufficientFunds()

    record_wallet_operation("debit", ok=True)
    balance = await get_balance(db, user_id)
    logger.info("wallet_debited", user_id=user_id, amount=amount, balance=balance)
    return balance
