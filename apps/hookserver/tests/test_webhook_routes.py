"""
Tests for POST /webhooks/github.

Exercises the route end to end: header extraction, status mapping, and the eviction being
visible to the provider the entity API uses.
"""

import json

from repodata.testing import TEST_SECRET
from repodata.webhook import sign_payload

CLIENT_PATH = "clients/org-42/clients-acme.json"


def push_body(*paths, full_name="acme/data") -> bytes:
    return json.dumps(
        {
            "repository": {"full_name": full_name},
            "commits": [{"added": [], "modified": list(paths), "removed": []}],
        }
    ).encode()


def post_hook(client, body, event="push", signature=None):
    headers = {
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
        "Content-Type": "application/json",
    }
    headers["X-Hub-Signature-256"] = signature or sign_payload(body, TEST_SECRET)
    return client.post("/webhooks/github", content=body, headers=headers)


def test_push_evicts_bucket_seen_by_api(client, fake_github, cache):
    fake_github.seed(CLIENT_PATH, {"id": "c-1", "organization_id": "org-42", "name": "Acme"})
    first = client.get("/api/entities/clients", params={"organization_id": "org-42"})
    assert first.json()[0]["name"] == "Acme"

    fake_github.edit(CLIENT_PATH, {"name": "Acme Corp"})
    stale = client.get("/api/entities/clients", params={"organization_id": "org-42"})
    assert stale.json()[0]["name"] == "Acme"

    response = post_hook(client, push_body(CLIENT_PATH))
    assert response.status_code == 200
    assert response.json()["keys"] == ["github_data:clients/org-42"]

    fresh = client.get("/api/entities/clients", params={"organization_id": "org-42"})
    assert fresh.json()[0]["name"] == "Acme Corp"


def test_bad_signature(client, cache):
    cache.set("github_data:clients/org-42", [], ttl=60)
    response = post_hook(client, push_body(CLIENT_PATH), signature="sha256=deadbeef")
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid signature"}
    assert cache.get("github_data:clients/org-42") == []


def test_malformed_push(client, cache):
    cache.set("github_data:clients/org-42", [], ttl=60)
    body = json.dumps(
        {"repository": {"full_name": "acme/data"}, "commits": [CLIENT_PATH]}
    ).encode()
    response = post_hook(client, body)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid payload"}
    assert cache.get("github_data:clients/org-42") == []


def test_wrong_repository(client):
    response = post_hook(client, push_body(CLIENT_PATH, full_name="acme/other"))
    assert response.status_code == 400
    assert response.json() == {"error": "Wrong repository"}


def test_disabled(data_settings, provider):
    from fastapi.testclient import TestClient

    from hookserver.main import create_app

    provider.settings = data_settings.model_copy(update={"webhook_enabled": False})
    with TestClient(create_app(provider=provider)) as client:
        response = post_hook(client, push_body(CLIENT_PATH))
    assert response.status_code == 403


def test_ping(client):
    body = json.dumps({"zen": "Speak like a human.", "hook_id": 1}).encode()
    response = post_hook(client, body, event="ping")
    assert response.status_code == 200
    assert response.json()["message"] == "Pong!"


def test_other_events_are_ignored(client):
    response = post_hook(client, b"{}", event="star")
    assert response.json() == {"message": "Event ignored"}
