from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.services.auth.password_resetter import PasswordResetter
from src.app.services.auth.token_manager import hash_token
from src.domain.base import utcnow
from src.domain.entities import PasswordResetToken, User, UserStatus


@pytest.fixture
def user(hasher):
    return User(
        id=uuid4(),
        username="alice",
        email="alice@example.com",
        password_hash=hasher.hash("OldPassword1"),
        status=UserStatus.active,
        failed_login_attempts=4,
        locked_until=utcnow() + timedelta(minutes=10),
        remember_token_hash="f" * 64,
    )


@pytest.fixture
def resetter(mock_uow, mailer, hasher, events):
    return PasswordResetter(
        mock_uow,
        mailer,
        hasher,
        reset_url="https://cms.test/reset-password",
        site_name="Neuron CMS",
        sender="no-reply@cms.test",
        events=events,
    )


def token_from(message) -> str:
    return message.body.split("?token=")[1].split()[0]


@pytest.mark.asyncio
async def test_request_reset_for_unknown_email_is_silent(resetter, mock_uow, mailer, events):
    assert await resetter.request_reset("nobody@example.com") is True

    mock_uow.password_reset_tokens.create.assert_not_called()
    assert mailer.outbox == []
    assert events.events == []


@pytest.mark.asyncio
async def test_request_reset_replaces_old_tokens_and_emails_link(
    resetter, mock_uow, mailer, events, user
):
    mock_uow.users.get_by_email.return_value = user

    assert await resetter.request_reset(user.email, ip="10.0.0.9") is True

    mock_uow.password_reset_tokens.delete_by_subject.assert_awaited_once_with(user.email)
    stored = mock_uow.password_reset_tokens.create.await_args.args[0]
    assert isinstance(stored, PasswordResetToken)
    assert stored.email == user.email

    message = mailer.outbox[0]
    plain = token_from(message)
    assert len(plain) == 64
    assert stored.token_hash == hash_token(plain)
    assert plain not in stored.token_hash
    assert message.subject == "Password Reset Request - Neuron CMS"
    assert message.sender == "no-reply@cms.test"
    assert "https://cms.test/reset-password?token=" in message.body
    assert "60 minutes" in message.body

    # Token row committed before the email was sent
    mock_uow.commit.assert_awaited()
    assert events.names() == ["password.reset_requested"]
    assert events.events[0].to_metadata() == {"email": user.email, "ip": "10.0.0.9"}


@pytest.mark.asyncio
async def test_token_expires_after_configured_minutes(mock_uow, mailer, hasher, user):
    resetter = PasswordResetter(
        mock_uow, mailer, hasher, reset_url="https://cms.test/r", expiration_minutes=5
    )
    mock_uow.users.get_by_email.return_value = user
    before = utcnow()

    await resetter.request_reset(user.email)

    stored = mock_uow.password_reset_tokens.create.await_args.args[0]
    assert before + timedelta(minutes=5) <= stored.expires_at
    assert stored.expires_at <= utcnow() + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_mail_failure_raises_delivery_error(resetter, mock_uow, user, events):
    mock_uow.users.get_by_email.return_value = user
    resetter.mailer.send = AsyncMock(return_value=False)

    with pytest.raises(EmailDeliveryError):
        await resetter.request_reset(user.email)

    mock_uow.password_reset_tokens.create.assert_awaited_once()
    assert events.events == []


@pytest.mark.asyncio
async def test_transport_exception_is_wrapped(resetter, mock_uow, user):
    mock_uow.users.get_by_email.return_value = user
    resetter.mailer.send = AsyncMock(side_effect=ConnectionError("smtp down"))

    with pytest.raises(EmailDeliveryError) as exc_info:
        await resetter.request_reset(user.email)

    assert exc_info.value.recipient == user.email
    assert "smtp down" in str(exc_info.value)


@pytest.mark.asyncio
async def test_reset_password_success(resetter, mock_uow, hasher, user, events):
    plain = "a" * 64
    token = PasswordResetToken(
        email=user.email,
        token_hash=hash_token(plain),
        expires_at=utcnow() + timedelta(minutes=30),
    )
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = token
    mock_uow.users.get_by_email.return_value = user

    result = await resetter.reset_password(plain, "NewPassword1", ip="10.0.0.9")

    assert result.is_ok()
    mock_uow.password_reset_tokens.get_by_token_hash.assert_awaited_once_with(hash_token(plain))
    assert hasher.verify("NewPassword1", user.password_hash)
    assert user.failed_login_attempts == 0
    assert user.locked_until is None
    assert user.remember_token_hash is None
    mock_uow.users.update.assert_awaited_once_with(user)
    mock_uow.password_reset_tokens.delete_by_token_hash.assert_awaited_once_with(token.token_hash)
    mock_uow.commit.assert_awaited()
    assert events.names() == ["password.reset_completed"]


@pytest.mark.asyncio
async def test_reset_password_rejects_expired_token(resetter, mock_uow, user):
    plain = "b" * 64
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = PasswordResetToken(
        email=user.email,
        token_hash=hash_token(plain),
        expires_at=utcnow() - timedelta(seconds=1),
    )

    result = await resetter.reset_password(plain, "NewPassword1")

    assert result.is_err()
    assert result.error.code == "INVALID_TOKEN"
    mock_uow.users.update.assert_not_called()


@pytest.mark.asyncio
async def test_reset_password_rejects_unknown_token(resetter, mock_uow):
    result = await resetter.reset_password("c" * 64, "NewPassword1")

    assert result.error.code == "INVALID_TOKEN"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_reset_password_rejects_empty_token(resetter, mock_uow):
    result = await resetter.reset_password("", "NewPassword1")

    assert result.error.code == "INVALID_TOKEN"
    mock_uow.password_reset_tokens.get_by_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_reset_password_rejects_weak_password_and_keeps_token(resetter, mock_uow, user):
    plain = "d" * 64
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = PasswordResetToken(
        email=user.email,
        token_hash=hash_token(plain),
        expires_at=utcnow() + timedelta(minutes=30),
    )
    mock_uow.users.get_by_email.return_value = user

    result = await resetter.reset_password(plain, "weak")

    assert result.error.code == "WEAK_PASSWORD"
    assert result.error.details
    mock_uow.password_reset_tokens.delete_by_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_reset_password_for_deleted_user(resetter, mock_uow):
    plain = "e" * 64
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = PasswordResetToken(
        email="gone@example.com",
        token_hash=hash_token(plain),
        expires_at=utcnow() + timedelta(minutes=30),
    )

    result = await resetter.reset_password(plain, "NewPassword1")

    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_validate_token(resetter, mock_uow, user):
    plain = "f" * 64
    token = PasswordResetToken(
        email=user.email,
        token_hash=hash_token(plain),
        expires_at=utcnow() + timedelta(minutes=30),
    )
    mock_uow.password_reset_tokens.get_by_token_hash.return_value = token

    assert await resetter.validate_token(plain) is token


@pytest.mark.asyncio
async def test_cleanup_expired_tokens(resetter, mock_uow):
    mock_uow.password_reset_tokens.delete_expired.return_value = 3

    assert await resetter.cleanup_expired_tokens() == 3
    mock_uow.commit.assert_awaited_once()


def test_build_link_url_encodes_token(resetter):
    assert resetter.build_link("a b") == "https://cms.test/reset-password?token=a%20b"
