from src.adapter.repositories.token_repository import SqlModelTokenRepository
from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import PasswordResetToken


class PasswordResetTokenRepository(
    SqlModelTokenRepository[PasswordResetToken], IPasswordResetTokenRepository
):
    """PasswordResetToken repository implementation using SQLModel"""

    model = PasswordResetToken
    subject_field = "email"
