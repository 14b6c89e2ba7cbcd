"""
Test suite for GitHubContentClient.

Tests cover:
- Request shape (base URL, contents path, ref, auth headers)
- list_directory: 404 -> [], single file response, retries then RemoteUnavailableError
- get_file: base64 decoding, 404 -> None, missing content
- put_file / delete_file: success results, sha conflicts (409, 422), other failures
- Transport errors
"""

import base64
import json

import httpx
import pytest

from repodata.clients import GitHubContentClient
from repodata.errors import ConflictError, NotFoundError, RemoteUnavailableError

# region Helpers


def make_client(settings, handler, sleeps=None) -> GitHubContentClient:
    return GitHubContentClient(
        settings,
        transport=httpx.MockTransport(handler),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


# endregion
# region Construction


class TestConstruction:
    def test_requires_settings(self):
        with pytest.raises(ValueError):
            GitHubContentClient(None)

    def test_request_shape(self, data_settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(404, json={"message": "Not Found"})

        make_client(data_settings, handler).list_directory("clients/org-1")

        assert seen["url"] == (
            "https://api.github.com/repos/acme/data/contents/clients/org-1?ref=main"
        )
        assert seen["headers"]["Authorization"] == "Bearer test-token"
        assert seen["headers"]["Accept"] == "application/vnd.github+json"

    def test_no_token_no_auth_header(self, data_settings):
        settings = data_settings.model_copy(update={"token": None})
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            return httpx.Response(404, json={})

        make_client(settings, handler).list_directory("users")
        assert "Authorization" not in seen["headers"]


# endregion
# region Reads


class TestListDirectory:
    def test_missing_directory_is_empty(self, content_client):
        assert content_client.list_directory("clients/org-404") == []

    def test_lists_entries(self, content_client, fake_github):
        fake_github.seed("clients/org-1/clients-acme.json", {"id": "c-1"})
        fake_github.seed("clients/org-1/README.md", b"# notes")

        entries = content_client.list_directory("clients/org-1")

        assert [e.name for e in entries] == ["README.md", "clients-acme.json"]
        assert entries[1].sha == fake_github.shas["clients/org-1/clients-acme.json"]
        assert entries[1].type == "file"

    def test_single_file_response_is_wrapped(self, content_client, fake_github):
        fake_github.seed("organizations/organizations-acme.json", {"id": "org-1"})
        entries = content_client.list_directory("organizations/organizations-acme.json")
        assert len(entries) == 1
        assert entries[0].path == "organizations/organizations-acme.json"

    def test_retries_then_succeeds(self, content_client, fake_github, sleeps):
        fake_github.seed("users/users-ada.json", {"id": "u-1"})
        fake_github.fail_reads(503, times=2)

        entries = content_client.list_directory("users")

        assert [e.name for e in entries] == ["users-ada.json"]
        assert sleeps == [0.5, 1.0]

    def test_outage_raises_instead_of_empty(self, content_client, fake_github, sleeps):
        fake_github.fail_reads(503, times=3)

        with pytest.raises(RemoteUnavailableError) as exc_info:
            content_client.list_directory("users")

        assert exc_info.value.status_code == 503
        assert exc_info.value.path == "users"
        assert len(sleeps) == 2

    def test_non_retryable_failure(self, data_settings):
        client = make_client(
            data_settings, lambda r: httpx.Response(401, json={"message": "Bad credentials"})
        )
        with pytest.raises(RemoteUnavailableError):
            client.list_directory("users")

    def test_transport_error(self, data_settings):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        sleeps = []
        client = make_client(data_settings, handler, sleeps)
        with pytest.raises(RemoteUnavailableError):
            client.list_directory("users")
        assert len(sleeps) == data_settings.read_retries


class TestGetFile:
    def test_decodes_content(self, content_client, fake_github):
        fake_github.seed("users/users-ada.json", {"id": "u-1", "name": "Ada"})
        body = content_client.get_file("users/users-ada.json")
        assert json.loads(body) == {"id": "u-1", "name": "Ada"}

    def test_missing_file_is_none(self, content_client):
        assert content_client.get_file("users/nobody.json") is None

    def test_response_without_content_is_none(self, data_settings):
        client = make_client(data_settings, lambda r: httpx.Response(200, json={"sha": "x"}))
        assert client.get_file("users/huge.json") is None

    def test_wrapped_base64_lines(self, data_settings):
        encoded = base64.encodebytes(b'{"id": "u-1"}').decode()

        client = make_client(
            data_settings, lambda r: httpx.Response(200, json={"content": encoded})
        )
        assert client.get_file("users/a.json") == b'{"id": "u-1"}'


# endregion
# region Writes


class TestPutFile:
    def test_create(self, content_client, fake_github):
        result = content_client.put_file("tags/org-1/tags-x.json", b'{"id": "t"}', "Create tag")

        assert result.status_code == 201
        assert result.sha == fake_github.shas["tags/org-1/tags-x.json"]
        assert result.commit_sha
        assert fake_github.read("tags/org-1/tags-x.json") == {"id": "t"}

    def test_update_with_sha(self, content_client, fake_github):
        sha = fake_github.seed("tags/org-1/tags-x.json", {"id": "t"})
        result = content_client.put_file("tags/org-1/tags-x.json", b'{"id": "t", "n": 1}', "u", sha=sha)
        assert result.status_code == 200
        assert fake_github.read("tags/org-1/tags-x.json") == {"id": "t", "n": 1}

    def test_stale_sha_conflict(self, content_client, fake_github):
        fake_github.seed("tags/org-1/tags-x.json", {"id": "t"})
        with pytest.raises(ConflictError):
            content_client.put_file("tags/org-1/tags-x.json", b"{}", "u", sha="stale")

    def test_missing_sha_on_existing_file_is_conflict(self, content_client, fake_github):
        fake_github.seed("tags/org-1/tags-x.json", {"id": "t"})
        with pytest.raises(ConflictError):
            content_client.put_file("tags/org-1/tags-x.json", b"{}", "create again")

    def test_unrelated_422_is_not_conflict(self, data_settings):
        client = make_client(
            data_settings,
            lambda r: httpx.Response(422, json={"message": "Invalid request. content is not valid Base64"}),
        )
        with pytest.raises(RemoteUnavailableError) as exc_info:
            client.put_file("a.json", b"{}", "m")
        assert exc_info.value.status_code == 422

    def test_writes_are_not_retried(self, data_settings):
        calls = []

        def handler(request):
            calls.append(request.method)
            return httpx.Response(502, json={})

        with pytest.raises(RemoteUnavailableError):
            make_client(data_settings, handler).put_file("a.json", b"{}", "m")
        assert calls == ["PUT"]

    def test_payload(self, data_settings):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(201, json={"content": {"sha": "n"}, "commit": {"sha": "c"}})

        make_client(data_settings, handler).put_file("a.json", b"hi", "msg", sha="old")
        assert seen == {
            "message": "msg",
            "content": base64.b64encode(b"hi").decode(),
            "branch": "main",
            "sha": "old",
        }


class TestDeleteFile:
    def test_delete(self, content_client, fake_github):
        sha = fake_github.seed("tags/org-1/tags-x.json", {"id": "t"})
        result = content_client.delete_file("tags/org-1/tags-x.json", sha, "Delete tag")
        assert result.sha is None
        assert "tags/org-1/tags-x.json" not in fake_github.files

    def test_delete_missing(self, content_client):
        with pytest.raises(NotFoundError):
            content_client.delete_file("tags/org-1/none.json", "sha", "m")

    def test_delete_stale_sha(self, content_client, fake_github):
        fake_github.seed("tags/org-1/tags-x.json", {"id": "t"})
        with pytest.raises(ConflictError):
            content_client.delete_file("tags/org-1/tags-x.json", "stale", "m")


# endregion
