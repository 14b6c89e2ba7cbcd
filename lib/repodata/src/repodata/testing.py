# region Docstring
"""
repodata.testing
In-memory stand-in for the GitHub repository contents API, served through
httpx.MockTransport so GitHubContentClient can be exercised without a network.
Overview:
- Stores files as bytes keyed by repository path, with a content hash per file that
    changes on every write.
- Implements the subset of the contents API the client uses: directory listing and
    file fetch (GET), create/update with sha precondition (PUT), delete with sha
    precondition (DELETE).
- Records every request so tests can assert on remote writes.
Contents:
- FakeContentsAPI:
    - seed(path, record) / read(path): place or inspect a JSON file directly.
    - edit(path, changes): simulate an out-of-band commit.
    - before_next_write(callback): run a callback just before the next PUT or DELETE is
        applied, to interleave a concurrent writer.
    - fail_reads(status, times): answer the next reads with an error status.
    - transport(): httpx.MockTransport bound to the fake.
- clear_settings_env(monkeypatch, *settings_classes): drop aliased env vars so settings
    built from init kwargs are not overridden.
- TEST_SECRET: webhook secret used across the test suites.
"""
# endregion
# region Imports
import base64
import hashlib
import json
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import httpx
from pydantic_settings import BaseSettings

TEST_SECRET = "It's a Secret to Everybody"
"""[str] Webhook secret shared by the test suites."""

# endregion
# region Settings helpers


def clear_settings_env(monkeypatch: Any, *settings_classes: Type[BaseSettings]) -> None:
    """Remove env vars that would override settings built from init kwargs."""
    for settings_cls in settings_classes:
        for field in settings_cls.model_fields.values():
            if field.alias:
                monkeypatch.delenv(field.alias, raising=False)


# endregion
# region FakeContentsAPI


class FakeContentsAPI:
    def __init__(self, owner: str = "acme", repo: str = "data") -> None:
        self.prefix = f"/repos/{owner}/{repo}/contents/"
        self.files: Dict[str, bytes] = {}
        self.shas: Dict[str, str] = {}
        self.requests: List[Tuple[str, str]] = []
        self._counter = count(1)
        self._before_write: List[Callable[[], None]] = []
        self._read_failures: List[int] = []

    # region Test helpers

    def _store(self, path: str, content: bytes) -> str:
        sha = hashlib.sha1(content + str(next(self._counter)).encode()).hexdigest()
        self.files[path] = content
        self.shas[path] = sha
        return sha

    def seed(self, path: str, record: Any) -> str:
        body = record if isinstance(record, bytes) else json.dumps(record).encode()
        return self._store(path, body)

    def read(self, path: str) -> Any:
        return json.loads(self.files[path])

    def edit(self, path: str, changes: Dict[str, Any]) -> str:
        record = self.read(path)
        record.update(changes)
        return self.seed(path, record)

    def remove(self, path: str) -> None:
        self.files.pop(path, None)
        self.shas.pop(path, None)

    def before_next_write(self, callback: Callable[[], None]) -> None:
        self._before_write.append(callback)

    def fail_reads(self, status: int, times: int = 1) -> None:
        self._read_failures.extend([status] * times)

    def writes(self) -> List[Tuple[str, str]]:
        return [(method, path) for method, path in self.requests if method != "GET"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # endregion
    # region Request handling

    def handler(self, request: httpx.Request) -> httpx.Response:
        url_path = request.url.path
        if not url_path.startswith(self.prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        path = url_path[len(self.prefix):].strip("/")
        self.requests.append((request.method, path))

        if request.method == "GET":
            if self._read_failures:
                return httpx.Response(self._read_failures.pop(0), json={"message": "Server Error"})
            return self._get(path)

        if self._before_write:
            self._before_write.pop(0)()
        payload = json.loads(request.content or b"{}")
        if request.method == "PUT":
            return self._put(path, payload)
        if request.method == "DELETE":
            return self._delete(path, payload)
        return httpx.Response(405, json={"message": "Method Not Allowed"})

    def _entry(self, path: str, type_: str = "file") -> Dict[str, Any]:
        return {
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "sha": self.shas.get(path, hashlib.sha1(path.encode()).hexdigest()),
            "type": type_,
        }

    def _get(self, path: str) -> httpx.Response:
        if path in self.files:
            entry = self._entry(path)
            entry["encoding"] = "base64"
            entry["content"] = base64.b64encode(self.files[path]).decode()
            return httpx.Response(200, json=entry)

        children: Dict[str, str] = {}
        prefix = f"{path}/"
        for file_path in self.files:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            if "/" in rest:
                children[prefix + rest.split("/", 1)[0]] = "dir"
            else:
                children[file_path] = "file"
        if not children:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(
            200,
            json=[self._entry(child, kind) for child, kind in sorted(children.items())],
        )

    def _commit(self) -> Dict[str, str]:
        return {"sha": hashlib.sha1(str(next(self._counter)).encode()).hexdigest()}

    def _put(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        sha: Optional[str] = payload.get("sha")
        if path in self.files:
            if not sha:
                return httpx.Response(
                    422, json={"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'}
                )
            if sha != self.shas[path]:
                return httpx.Response(409, json={"message": f"{path} does not match {sha}"})
            status = 200
        elif sha:
            return httpx.Response(404, json={"message": "Not Found"})
        else:
            status = 201
        new_sha = self._store(path, base64.b64decode(payload["content"]))
        return httpx.Response(
            status,
            json={"content": {"path": path, "sha": new_sha}, "commit": self._commit()},
        )

    def _delete(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        if payload.get("sha") != self.shas[path]:
            return httpx.Response(409, json={"message": f"{path} does not match"})
        self.remove(path)
        return httpx.Response(200, json={"content": None, "commit": self._commit()})

    # endregion


# endregion
