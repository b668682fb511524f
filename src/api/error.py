from typing import Any, Dict

from fastapi import status
from src.libs.result import Error


class ClientError(Exception):
    """Expected failure shown to the caller as ``{"error": {...}}``"""

    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)

    def to_dict(self) -> Dict[str, Any]:
        error_dict: Dict[str, Any] = {
            "code": self.base_error.code,
            "message": self.base_error.message,
        }
        # Policy violations (e.g. WEAK_PASSWORD) list each failed rule
        if self.base_error.details:
            error_dict["details"] = list(self.base_error.details)
        return error_dict


class ServerError(Exception):
    """Unexpected failure; only the code is exposed"""

    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.base_error.code, "message": "Internal server error"}
