"""
Wallet endpoints: balance for the user, credit top-up for operators.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import WalletResponse, AddCredits
from app.services.wallet_service import get_balance, add_credits
from app.core.security import require_api_key

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/", response_model=WalletResponse)
async def get_wallet(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    balance = await get_balance(db, user.id)
    return WalletResponse(user_id=user.id, wallet=balance)


@router.post("/credits", response_model=WalletResponse, dependencies=[Depends(require_api_key)])
async def add_credits_endpoint(data: AddCredits, db: AsyncSession = Depends(get_db)):
    """Add credits to a user's wallet (operator only)."""
    balance = await add_credits(db, data.user_id, data.amount)
    return WalletResponse(user_id=data.user_id, wallet=balance)
