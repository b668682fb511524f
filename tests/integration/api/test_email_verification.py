import pytest
from httpx import AsyncClient

from src.domain.entities import UserStatus


@pytest.mark.asyncio
async def test_verify_with_invalid_token(client: AsyncClient):
    response = await client.post("/auth/email/verify", json={"token": "not-a-token"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_verification_token_is_single_use(
    client: AsyncClient, create_user, csrf_headers, last_token
):
    await create_user("pending", status=UserStatus.inactive, email_verified=False)
    await client.post(
        "/auth/email/resend", json={"email": "pending@example.com"}, headers=await csrf_headers()
    )
    token = last_token()

    first = await client.post("/auth/email/verify", json={"token": token})
    second = await client.post("/auth/email/verify", json={"token": token})

    assert first.status_code == 200
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_resend_is_throttled_per_email(
    client: AsyncClient, create_user, csrf_headers, mailer
):
    """
    Given an unverified account
    When a resend is requested twice within five minutes
    Then only the first request sends an email
    """
    await create_user("pending", status=UserStatus.inactive, email_verified=False)

    first = await client.post(
        "/auth/email/resend", json={"email": "pending@example.com"}, headers=await csrf_headers()
    )
    second = await client.post(
        "/auth/email/resend", json={"email": "PENDING@example.com"}, headers=await csrf_headers()
    )

    assert first.status_code == 202
    assert second.status_code == 429
    assert second.json()["error"]["code"] == "TOO_MANY_REQUESTS"
    assert len(mailer.outbox) == 1


@pytest.mark.asyncio
async def test_resend_is_throttled_per_ip(client: AsyncClient, csrf_headers):
    statuses = []
    for i in range(6):
        response = await client.post(
            "/auth/email/resend",
            json={"email": f"user{i}@example.com"},
            headers=await csrf_headers(),
        )
        statuses.append(response.status_code)

    assert statuses == [202] * 5 + [429]


@pytest.mark.asyncio
async def test_resend_answers_generically(client: AsyncClient, create_user, csrf_headers, mailer):
    await create_user("verified")

    unknown = await client.post(
        "/auth/email/resend", json={"email": "nobody@example.com"}, headers=await csrf_headers()
    )
    verified = await client.post(
        "/auth/email/resend", json={"email": "verified@example.com"}, headers=await csrf_headers()
    )

    assert unknown.status_code == verified.status_code == 202
    assert unknown.json() == verified.json()
    assert mailer.outbox == []


@pytest.mark.asyncio
async def test_resend_requires_csrf(client: AsyncClient):
    response = await client.post("/auth/email/resend", json={"email": "a@example.com"})

    assert response.status_code == 403
