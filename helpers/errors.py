# helpers/errors.py
from typing import Optional


class AuditError(Exception):
    """Base for failures surfaced to the caller as {"message": ...}."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class InstallationNotFound(AuditError):
    status_code = 404

    def __init__(self, account_id: str):
        super().__init__(
            f"Could not find installation for portal {account_id}. Please reinstall the app."
        )
        self.account_id = account_id


class TokenRefreshFailed(AuditError):
    status_code = 401


class UpstreamFetchFailed(AuditError):
    status_code = 502


class GenerationFailed(AuditError):
    status_code = 502


class AIUnavailable(AuditError):
    status_code = 500

    def __init__(self):
        super().__init__("Server is not configured with an AI provider key.")
