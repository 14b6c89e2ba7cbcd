# region Docstring
"""
repodata.errors
Exception hierarchy for the GitHub-backed data layer.
Overview:
- Separates "record not found" from "backing store unreachable" from "write lost a
    content hash race", so callers do not have to coerce every failure into an empty
    or false result.
- Webhook authorization failures carry the HTTP status the endpoint answers with.
Contents:
- RepoDataError: base class, carries the repository path involved when there is one.
    - NotFoundError: lookup by id found nothing (find_or_fail, delete of a vanished file).
    - RemoteUnavailableError: the contents API did not answer successfully.
    - ConflictError: a put or delete content hash precondition failed.
    - DecodeError: a file body is not a JSON object.
    - ScopeRequiredError: a scoped entity type was written without an organization id.
    - WebhookError: base for webhook rejections, carries status_code.
        - WebhookDisabledError (403)
        - SignatureInvalidError (401)
        - RepositoryMismatchError (400)
        - InvalidPayloadError (400)
"""
# endregion
# region Imports
from typing import Optional

# endregion
# region Data Access Errors


class RepoDataError(Exception):
    """Base exception for data layer failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{message}" + (f" (path: {path})" if path else ""))


class NotFoundError(RepoDataError):
    """No record or file matched the lookup."""


class RemoteUnavailableError(RepoDataError):
    """The contents API could not be reached or answered with a failure."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message, path)


class ConflictError(RepoDataError):
    """The file changed remotely since its content hash was read."""


class DecodeError(RepoDataError):
    """A stored file could not be decoded into a record."""


class ScopeRequiredError(RepoDataError):
    """A write to an organization-scoped entity type named no organization."""


# endregion
# region Webhook Errors


class WebhookError(RepoDataError):
    """Base class for rejected webhook deliveries."""

    status_code: int = 400
    error: str = "Webhook rejected"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error)


class WebhookDisabledError(WebhookError):
    status_code = 403
    error = "Webhook disabled"


class SignatureInvalidError(WebhookError):
    status_code = 401
    error = "Invalid signature"


class RepositoryMismatchError(WebhookError):
    status_code = 400
    error = "Wrong repository"


class InvalidPayloadError(WebhookError):
    status_code = 400
    error = "Invalid payload"


# endregion

__all__ = [
    "ConflictError",
    "DecodeError",
    "InvalidPayloadError",
    "NotFoundError",
    "RemoteUnavailableError",
    "RepoDataError",
    "RepositoryMismatchError",
    "ScopeRequiredError",
    "SignatureInvalidError",
    "WebhookDisabledError",
    "WebhookError",
]
