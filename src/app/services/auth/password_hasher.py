"""
Password hashing and password strength policy.

Argon2id (argon2-cffi) is the default algorithm; bcrypt is still understood
so accounts imported with ``$2b$`` hashes keep working and get upgraded on
their next successful login.
"""

import logging
import re
import secrets
from typing import Any, Dict, List, Optional

import bcrypt
from argon2 import PasswordHasher as Argon2Hasher
from argon2 import Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from src.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

ARGON2ID = "argon2id"
BCRYPT = "bcrypt"

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

UPPERCASE_RE = re.compile(r"[A-Z]")
LOWERCASE_RE = re.compile(r"[a-z]")
NUMBER_RE = re.compile(r"[0-9]")
SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


class PasswordHasher:
    """
    Hashes and verifies passwords and checks them against the strength policy.

    Policy defaults: at least 8 characters with an uppercase letter, a
    lowercase letter and a digit. Special characters are optional unless
    ``require_special_chars`` is set.
    """

    def __init__(
        self,
        algorithm: str = ARGON2ID,
        bcrypt_rounds: int = 12,
        min_length: int = 8,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_numbers: bool = True,
        require_special_chars: bool = False,
        argon2_time_cost: Optional[int] = None,
        argon2_memory_cost: Optional[int] = None,
        argon2_parallelism: Optional[int] = None,
    ):
        if algorithm not in (ARGON2ID, BCRYPT):
            raise ValueError(f"Unsupported password algorithm: {algorithm}")

        self.algorithm = algorithm
        self.bcrypt_rounds = bcrypt_rounds
        self.min_length = min_length
        self.require_uppercase = require_uppercase
        self.require_lowercase = require_lowercase
        self.require_numbers = require_numbers
        self.require_special_chars = require_special_chars

        argon2_options: Dict[str, Any] = {"type": Type.ID}
        if argon2_time_cost is not None:
            argon2_options["time_cost"] = argon2_time_cost
        if argon2_memory_cost is not None:
            argon2_options["memory_cost"] = argon2_memory_cost
        if argon2_parallelism is not None:
            argon2_options["parallelism"] = argon2_parallelism
        self._argon2 = Argon2Hasher(**argon2_options)

        self._dummy_hash: Optional[str] = None

    def configure(self, settings: Dict[str, Any]) -> None:
        """Update the strength policy from a settings mapping"""
        if "min_length" in settings:
            self.min_length = int(settings["min_length"])
        if "require_uppercase" in settings:
            self.require_uppercase = bool(settings["require_uppercase"])
        if "require_lowercase" in settings:
            self.require_lowercase = bool(settings["require_lowercase"])
        if "require_numbers" in settings:
            self.require_numbers = bool(settings["require_numbers"])
        if "require_special_chars" in settings:
            self.require_special_chars = bool(settings["require_special_chars"])

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    def hash(self, password: str) -> str:
        if self.algorithm == BCRYPT:
            salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
            return bcrypt.hashpw(self._bcrypt_bytes(password), salt).decode()
        return self._argon2.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time check; malformed or unknown hashes never match"""
        if not password_hash:
            return False

        if self._is_bcrypt_hash(password_hash):
            try:
                return bcrypt.checkpw(self._bcrypt_bytes(password), password_hash.encode())
            except ValueError:
                logger.warning("Malformed bcrypt hash encountered during verification")
                return False

        try:
            return self._argon2.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            logger.warning("Unverifiable password hash encountered during verification")
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        if self._is_bcrypt_hash(password_hash):
            if self.algorithm != BCRYPT:
                return True
            return self._bcrypt_cost(password_hash) != self.bcrypt_rounds

        if self.algorithm != ARGON2ID:
            return True
        try:
            return self._argon2.check_needs_rehash(password_hash)
        except InvalidHashError:
            return True

    def dummy_verify(self, password: str) -> None:
        """
        Burn the same amount of work as a real verification.

        Used when the account does not exist so response timing does not
        reveal which usernames are registered.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self.verify(password, self._dummy_hash)

    # ------------------------------------------------------------------
    # Strength policy
    # ------------------------------------------------------------------

    def get_validation_errors(self, password: str) -> List[str]:
        errors = []

        if len(password) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters long")
        if self.require_uppercase and not UPPERCASE_RE.search(password):
            errors.append("Password must contain at least one uppercase letter")
        if self.require_lowercase and not LOWERCASE_RE.search(password):
            errors.append("Password must contain at least one lowercase letter")
        if self.require_numbers and not NUMBER_RE.search(password):
            errors.append("Password must contain at least one number")
        if self.require_special_chars and not SPECIAL_RE.search(password):
            errors.append("Password must contain at least one special character")

        return errors

    def meets_requirements(self, password: str) -> bool:
        return not self.get_validation_errors(password)

    def validate(self, password: str) -> Result[None]:
        errors = self.get_validation_errors(password)
        if errors:
            return Return.err(
                Error("WEAK_PASSWORD", "Password does not meet requirements", details=errors)
            )
        return Return.ok()

    @staticmethod
    def _is_bcrypt_hash(password_hash: str) -> bool:
        return password_hash.startswith(("$2a$", "$2b$", "$2y$"))

    @staticmethod
    def _bcrypt_cost(password_hash: str) -> int:
        try:
            return int(password_hash.split("$")[2])
        except (IndexError, ValueError):
            return -1

    @staticmethod
    def _bcrypt_bytes(password: str) -> bytes:
        return password.encode()[:BCRYPT_MAX_BYTES]
