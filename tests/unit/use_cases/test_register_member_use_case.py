from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.auth.exceptions import EmailDeliveryError
from src.app.use_cases.members import RegisterMemberCommand, RegisterMemberUseCase
from src.domain.entities import User, UserRole, UserStatus


@pytest.fixture
def verifier():
    verifier = MagicMock()
    verifier.send_verification_email = AsyncMock(return_value=True)
    return verifier


def command(**overrides):
    values = {
        "username": "new_member",
        "email": "member@example.com",
        "password": "SecurePass123",
        "password_confirmation": "SecurePass123",
    }
    values.update(overrides)
    return RegisterMemberCommand(**values)


@pytest.mark.asyncio
async def test_successful_registration_requires_verification(
    mock_uow, hasher, verifier, events
):
    """
    Given registration is open and email verification is required
    When a visitor registers
    Then an inactive, unverified subscriber is created
    And a verification email is sent
    """
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier, events=events)

    result = await use_case.execute(command())

    assert result.is_ok()
    created = mock_uow.users.create.await_args.args[0]
    assert created.username == "new_member"
    assert created.role == UserRole.subscriber
    assert created.status == UserStatus.inactive
    assert created.email_verified is False
    assert hasher.verify("SecurePass123", created.password_hash)
    mock_uow.commit.assert_awaited_once()
    verifier.send_verification_email.assert_awaited_once_with(created)

    data = result.value
    assert data.user.status == "inactive"
    assert data.verification_required is True
    assert data.verification_email_sent is True
    assert events.names() == ["user.registered"]


@pytest.mark.asyncio
async def test_registration_without_verification_creates_active_user(mock_uow, hasher, verifier):
    use_case = RegisterMemberUseCase(
        mock_uow, hasher, verifier, require_email_verification=False
    )

    result = await use_case.execute(command())

    created = mock_uow.users.create.await_args.args[0]
    assert created.status == UserStatus.active
    assert created.email_verified is True
    verifier.send_verification_email.assert_not_called()
    assert result.value.verification_email_sent is False


@pytest.mark.asyncio
async def test_registration_disabled(mock_uow, hasher, verifier):
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier, registration_enabled=False)

    result = await use_case.execute(command())

    assert result.error.code == "REGISTRATION_DISABLED"
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username",
    ["", "ab", "x" * 51, "bad name", "bad-name", "émile"],
)
async def test_invalid_username(mock_uow, hasher, verifier, username):
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command(username=username))

    assert result.error.code == "INVALID_USERNAME"


@pytest.mark.asyncio
async def test_password_mismatch(mock_uow, hasher, verifier):
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command(password_confirmation="Different123"))

    assert result.error.code == "PASSWORD_MISMATCH"


@pytest.mark.asyncio
async def test_weak_password(mock_uow, hasher, verifier):
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command(password="weak", password_confirmation="weak"))

    assert result.error.code == "WEAK_PASSWORD"
    assert "Password must be at least 8 characters long" in result.error.details
    mock_uow.users.get_by_username.assert_not_called()


@pytest.mark.asyncio
async def test_username_taken(mock_uow, hasher, verifier):
    mock_uow.users.get_by_username.return_value = User(
        id=uuid4(), username="new_member", email="other@example.com", password_hash="x"
    )
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command())

    assert result.error.code == "USERNAME_TAKEN"
    mock_uow.users.create.assert_not_called()


@pytest.mark.asyncio
async def test_email_already_exists(mock_uow, hasher, verifier):
    mock_uow.users.get_by_email.return_value = User(
        id=uuid4(), username="someone", email="member@example.com", password_hash="x"
    )
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command())

    assert result.error.code == "EMAIL_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_mail_failure_does_not_fail_registration(mock_uow, hasher, verifier):
    verifier.send_verification_email.side_effect = EmailDeliveryError("member@example.com")
    use_case = RegisterMemberUseCase(mock_uow, hasher, verifier)

    result = await use_case.execute(command())

    assert result.is_ok()
    assert result.value.verification_email_sent is False
    mock_uow.commit.assert_awaited_once()
