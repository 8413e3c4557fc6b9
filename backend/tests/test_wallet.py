"""
Tests for the wallet ledger and its endpoints.
"""

import pytest
from httpx import AsyncClient

from app.core.exceptions import InsufficientFunds, NotFound
from app.services import wallet_service
from tests.conftest import API_KEY, STARTING_WALLET


@pytest.mark.asyncio
async def test_get_wallet(client: AsyncClient, auth_headers, test_user):
    response = await client.get("/api/v1/wallet/", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"user_id": test_user.id, "wallet": STARTING_WALLET}


@pytest.mark.asyncio
async def test_add_credits_with_api_key(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/wallet/credits",
        json={"user_id": test_user.id, "amount": 999},
        headers={"X-API-Key": API_KEY},
    )
    assert response.status_code == 200
    assert response.json()["wallet"] == STARTING_WALLET + 999


@pytest.mark.asyncio
async def test_add_credits_requires_api_key(client: AsyncClient, auth_headers, test_user):
    response = await client.post(
        "/api/v1/wallet/credits",
        json={"user_id": test_user.id, "amount": 999},
        headers={"X-API-Key": "wrong"},
    )
    assert response.status_code == 401

    # A user token is not an operator credential
    response = await client.post(
        "/api/v1/wallet/credits",
        json={"user_id": test_user.id, "amount": 999},
        headers=auth_headers,
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_add_credits_rejects_non_positive(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/wallet/credits",
        json={"user_id": test_user.id, "amount": 0},
        headers={"X-API-Key": API_KEY},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_add_credits_unknown_user(client: AsyncClient):
    response = await client.post(
        "/api/v1/wallet/credits",
        json={"user_id": 9999, "amount": 10},
        headers={"X-API-Key": API_KEY},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_debit_is_conditional(db_session, test_user):
    balance = await wallet_service.debit_credits(db_session, test_user.id, STARTING_WALLET)
    assert balance == 0

    with pytest.raises(InsufficientFunds):
        await wallet_service.debit_credits(db_session, test_user.id, 1)
    assert await wallet_service.get_balance(db_session, test_user.id) == 0


@pytest.mark.asyncio
async def test_has_enough_credits_is_strict(db_session, test_user):
    assert await wallet_service.has_enough_credits(db_session, test_user.id, STARTING_WALLET - 1)
    assert not await wallet_service.has_enough_credits(db_session, test_user.id, STARTING_WALLET)


@pytest.mark.asyncio
async def test_debit_unknown_user(db_session):
    with pytest.raises(NotFound):
        await wallet_service.debit_credits(db_session, 9999, 1)
