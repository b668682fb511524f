from src.app.repositories.token_repository import ITokenRepository
from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ITokenRepository[PasswordResetToken, str]):
    """PasswordResetToken repository interface - subject is the email address"""
