import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./cms_auth.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Site / mail
    SITE_NAME = data.get("SITE_NAME", "Neuron CMS")
    MAIL_FROM = data.get("MAIL_FROM", "no-reply@example.com")

    # Sessions
    SESSION_COOKIE_NAME = data.get("SESSION_COOKIE_NAME", "cms_session")
    SESSION_LIFETIME = int(data.get("SESSION_LIFETIME", 7200))
    SESSION_COOKIE_SECURE = bool(data.get("SESSION_COOKIE_SECURE", True))

    # Login lockout / remember-me
    MAX_LOGIN_ATTEMPTS = int(data.get("MAX_LOGIN_ATTEMPTS", 5))
    LOCKOUT_MINUTES = int(data.get("LOCKOUT_MINUTES", 15))
    REMEMBER_ME_DAYS = int(data.get("REMEMBER_ME_DAYS", 30))

    # Password policy
    PASSWORD_ALGORITHM = data.get("PASSWORD_ALGORITHM", "argon2id")
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    PASSWORD_REQUIRE_UPPERCASE = bool(data.get("PASSWORD_REQUIRE_UPPERCASE", True))
    PASSWORD_REQUIRE_LOWERCASE = bool(data.get("PASSWORD_REQUIRE_LOWERCASE", True))
    PASSWORD_REQUIRE_NUMBERS = bool(data.get("PASSWORD_REQUIRE_NUMBERS", True))
    PASSWORD_REQUIRE_SPECIAL_CHARS = bool(data.get("PASSWORD_REQUIRE_SPECIAL_CHARS", False))

    # Email tokens
    PASSWORD_RESET_URL = data.get("PASSWORD_RESET_URL", "http://localhost:8000/reset-password")
    EMAIL_VERIFICATION_URL = data.get(
        "EMAIL_VERIFICATION_URL", "http://localhost:8000/verify-email"
    )
    TOKEN_EXPIRATION_MINUTES = int(data.get("TOKEN_EXPIRATION_MINUTES", 60))

    # Rate limiting (memory | database)
    RATE_LIMIT_BACKEND = data.get("RATE_LIMIT_BACKEND", "database")
    RESEND_IP_LIMIT = int(data.get("RESEND_IP_LIMIT", 5))
    RESEND_IP_WINDOW = int(data.get("RESEND_IP_WINDOW", 300))
    RESEND_EMAIL_LIMIT = int(data.get("RESEND_EMAIL_LIMIT", 1))
    RESEND_EMAIL_WINDOW = int(data.get("RESEND_EMAIL_WINDOW", 300))

    # Registration
    REGISTRATION_ENABLED = bool(data.get("REGISTRATION_ENABLED", True))
    REQUIRE_EMAIL_VERIFICATION = bool(data.get("REQUIRE_EMAIL_VERIFICATION", True))
