# region Docstring
"""
repodata.clients.github_client
Thin wrapper over the GitHub repository contents API.
Overview:
- Translates a repository path into list / get / put / delete calls against
    `/repos/{owner}/{repo}/contents/{path}` on the configured branch.
- Encodes and decodes the base64 transport envelope; JSON decoding of file bodies is
    left to the caller.
- Classifies every non-success outcome into the repodata error taxonomy instead of
    returning empty results.
Contents:
- Models:
    - ContentEntry: one directory listing entry (name, path, sha, type).
    - WriteResult: outcome of a put or delete (path, new content sha, commit sha, status).
- Classes:
    - GitHubContentClient:
        list_directory, get_file, put_file, delete_file over an httpx.Client with a bounded
        timeout. Reads are retried with exponential backoff on transport errors, 429 and
        5xx responses. Writes are never retried here.
Design notes:
- A 404 on a listing means the directory does not exist and yields an empty list; every
    other failure raises RemoteUnavailableError so an outage is not mistaken for an
    empty bucket.
- A failed content hash precondition (409, or 422 complaining about `sha`) raises
    ConflictError so the provider can re-read and retry.
"""
# endregion
# region Imports
import base64
import logging
import time
from functools import wraps
from typing import Any, Callable, List, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from repodata.config import GitHubDataSettings
from repodata.errors import ConflictError, NotFoundError, RemoteUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS = {429, 500, 502, 503, 504}

# endregion
# region Models


class ContentEntry(BaseModel):
    """Schema for one entry of a contents API directory listing."""

    name: str = Field(..., description="File or directory name")
    path: str = Field(..., description="Path from the repository root")
    sha: str = Field(..., description="Content hash (blob sha) of the entry")
    type: str = Field(default="file", description="file, dir, symlink or submodule")


class WriteResult(BaseModel):
    """Schema for the outcome of a put or delete call."""

    path: str = Field(..., description="Path that was written or removed")
    sha: Optional[str] = Field(None, description="New content hash; None after delete")
    commit_sha: Optional[str] = Field(None, description="Commit created by the write")
    status_code: int = Field(..., description="HTTP status returned by the API")


# endregion
# region Helpers


def _log_call(method_name: str):
    """Decorator to log path, outcome and elapsed time for a contents API call."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(self: "GitHubContentClient", path: str, *args, **kwargs) -> T:
            started = time.perf_counter()
            try:
                result = func(self, path, *args, **kwargs)
            except Exception as e:
                logger.debug(
                    f"{method_name} {path} failed after "
                    f"{time.perf_counter() - started:.3f}s: {e}"
                )
                raise
            logger.debug(
                f"{method_name} {path} ok in {time.perf_counter() - started:.3f}s"
            )
            return result

        return wrapper

    return decorator


def _is_sha_conflict(response: httpx.Response) -> bool:
    if response.status_code == 409:
        return True
    if response.status_code == 422:
        try:
            message = str(response.json().get("message", ""))
        except ValueError:
            return False
        return "sha" in message.lower()
    return False


# endregion
# region GitHubContentClient


class GitHubContentClient:
    __http__: httpx.Client
    __settings__: GitHubDataSettings

    def __init__(
        self,
        settings: GitHubDataSettings,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if settings is None or not isinstance(settings, GitHubDataSettings):
            raise ValueError("A valid GitHubDataSettings instance is required.")
        self.__settings__ = settings
        self.__sleep__ = sleep
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "repodata",
        }
        if settings.token:
            headers["Authorization"] = f"Bearer {settings.token}"
        self.__http__ = httpx.Client(
            base_url=settings.api_url,
            headers=headers,
            timeout=httpx.Timeout(settings.timeout),
            transport=transport,
        )

    def _contents_url(self, path: str) -> str:
        s = self.__settings__
        return f"/repos/{s.owner}/{s.repo}/contents/{quote(path.strip('/'), safe='/')}"

    def _read(self, path: str) -> httpx.Response:
        """GET a contents path, retrying transient failures with exponential backoff."""
        attempts = self.__settings__.read_retries + 1
        last_response: Optional[httpx.Response] = None
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                response = self.__http__.get(
                    self._contents_url(path), params={"ref": self.__settings__.branch}
                )
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Transport error reading {path} (attempt {attempt + 1}): {e}")
            else:
                if response.status_code not in RETRYABLE_STATUS:
                    return response
                last_response = response
                logger.warning(
                    f"HTTP {response.status_code} reading {path} (attempt {attempt + 1})"
                )
            if attempt < attempts - 1:
                self.__sleep__(self.__settings__.retry_backoff * 2**attempt)

        if last_response is not None:
            return last_response
        raise RemoteUnavailableError(f"Contents API unreachable: {last_error}", path)

    def _write(self, method: str, path: str, payload: dict) -> httpx.Response:
        try:
            return self.__http__.request(method, self._contents_url(path), json=payload)
        except httpx.TransportError as e:
            raise RemoteUnavailableError(f"Contents API unreachable: {e}", path) from e

    @_log_call("list")
    def list_directory(self, path: str) -> List[ContentEntry]:
        """List a directory. A missing directory is an empty list."""
        response = self._read(path)
        if response.status_code == 404:
            return []
        if not response.is_success:
            raise RemoteUnavailableError(
                f"Listing failed with HTTP {response.status_code}",
                path,
                status_code=response.status_code,
            )

        contents: Any = response.json()
        # A path naming a file returns the file object itself.
        if isinstance(contents, dict):
            contents = [contents]
        return [
            ContentEntry(
                name=item["name"],
                path=item["path"],
                sha=item["sha"],
                type=item.get("type", "file"),
            )
            for item in contents
        ]

    @_log_call("get")
    def get_file(self, path: str) -> Optional[bytes]:
        """Fetch and base64-decode a file body. None when the file is absent."""
        response = self._read(path)
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise RemoteUnavailableError(
                f"Fetch failed with HTTP {response.status_code}",
                path,
                status_code=response.status_code,
            )

        data = response.json()
        if not isinstance(data, dict) or "content" not in data:
            return None
        return base64.b64decode(data["content"])

    @_log_call("put")
    def put_file(
        self,
        path: str,
        content: bytes,
        message: str,
        sha: Optional[str] = None,
    ) -> WriteResult:
        """Create or update a file; `sha` is the expected current content hash."""
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.__settings__.branch,
        }
        if sha:
            payload["sha"] = sha

        response = self._write("PUT", path, payload)
        if _is_sha_conflict(response):
            raise ConflictError("Content hash precondition failed on put", path)
        if not response.is_success:
            raise RemoteUnavailableError(
                f"Put failed with HTTP {response.status_code}",
                path,
                status_code=response.status_code,
            )

        data = response.json()
        return WriteResult(
            path=path,
            sha=(data.get("content") or {}).get("sha"),
            commit_sha=(data.get("commit") or {}).get("sha"),
            status_code=response.status_code,
        )

    @_log_call("delete")
    def delete_file(self, path: str, sha: str, message: str) -> WriteResult:
        """Delete a file whose current content hash is `sha`."""
        payload = {
            "message": message,
            "sha": sha,
            "branch": self.__settings__.branch,
        }

        response = self._write("DELETE", path, payload)
        if response.status_code == 404:
            raise NotFoundError("File to delete does not exist", path)
        if _is_sha_conflict(response):
            raise ConflictError("Content hash precondition failed on delete", path)
        if not response.is_success:
            raise RemoteUnavailableError(
                f"Delete failed with HTTP {response.status_code}",
                path,
                status_code=response.status_code,
            )

        data = response.json()
        return WriteResult(
            path=path,
            sha=None,
            commit_sha=(data.get("commit") or {}).get("sha"),
            status_code=response.status_code,
        )

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.__http__.close()

    def __enter__(self) -> "GitHubContentClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# endregion
