class AuthServiceError(Exception):
    """Base class for infrastructure failures raised by auth services"""


class EmailDeliveryError(AuthServiceError):
    """The mail transport refused or failed to send a message"""

    def __init__(self, recipient: str, reason: str = "Mail transport reported a failure"):
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Failed to send email: {reason}")
