"""API tests for the model fallback management endpoints."""

import json

from fastapi.testclient import TestClient

from fallback_proxy.api.server import create_app
from fallback_proxy.config import ConfigManager

BASE = "/v0/management"


def test_get_model_fallbacks(client):
    response = client.get(f"{BASE}/model-fallbacks")
    assert response.status_code == 200
    assert response.json() == {
        "model-fallbacks": [
            {"from": "gemini-2.5-pro", "to": "gemini-2.5-flash"},
            {"from": "gemini-2.5-flash", "to": "gemini-2.0-flash"},
        ],
        "model-fallback-depth": 3,
    }


def test_requires_management_key(client):
    response = client.get(f"{BASE}/model-fallbacks", headers={"Authorization": ""})
    assert response.status_code == 401

    response = client.get(f"{BASE}/model-fallbacks", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


def test_put_replaces_and_persists(client, config_path):
    response = client.put(
        f"{BASE}/model-fallbacks",
        json={
            "model-fallbacks": [
                {"from": "  a  ", "to": "b"},
                {"from": "A", "to": "B"},
                {"from": "c", "to": "C"},
            ],
            "model-fallback-depth": -1,
        },
    )
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

    data = client.get(f"{BASE}/model-fallbacks").json()
    assert data == {"model-fallbacks": [{"from": "a", "to": "b"}], "model-fallback-depth": 3}

    on_disk = json.loads(config_path.read_text())
    assert on_disk["model_fallbacks"] == [{"from": "a", "to": "b"}]
    assert on_disk["model_fallback_depth"] == 3


def test_put_without_depth_uses_default(client):
    response = client.put(f"{BASE}/model-fallbacks", json={"model-fallbacks": []})
    assert response.status_code == 200
    assert client.get(f"{BASE}/model-fallbacks").json()["model-fallback-depth"] == 3


def test_put_invalid_body_is_rejected_without_changes(client):
    before = client.get(f"{BASE}/model-fallbacks").json()

    response = client.put(
        f"{BASE}/model-fallbacks",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "invalid body"

    response = client.put(f"{BASE}/model-fallbacks", json={"model-fallbacks": [{"from": "a"}]})
    assert response.status_code == 400

    assert client.get(f"{BASE}/model-fallbacks").json() == before


def test_post_adds_rule(client):
    response = client.post(f"{BASE}/model-fallbacks", json={"from": "gpt-4o", "to": "gpt-4o-mini"})
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

    rules = client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]
    assert rules[-1] == {"from": "gpt-4o", "to": "gpt-4o-mini"}


def test_post_existing_rule_is_noop_success(client, config_path):
    mtime = config_path.stat().st_mtime_ns
    response = client.post(
        f"{BASE}/model-fallbacks", json={"from": "GEMINI-2.5-PRO", "to": "Gemini-2.5-Flash"}
    )
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "fallback already exists"}
    assert len(client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]) == 2
    assert config_path.stat().st_mtime_ns == mtime


def test_post_self_referencing_rule_is_ignored(client, config_path):
    mtime = config_path.stat().st_mtime_ns
    response = client.post(f"{BASE}/model-fallbacks", json={"from": "gpt-4o", "to": " GPT-4o "})
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "fallback ignored"}
    assert len(client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]) == 2
    assert config_path.stat().st_mtime_ns == mtime


def test_post_invalid_body(client):
    response = client.post(f"{BASE}/model-fallbacks", json={"to": "b"})
    assert response.status_code == 400


def test_delete_by_index_takes_precedence(client):
    response = client.delete(
        f"{BASE}/model-fallbacks",
        params={"index": "1", "from": "gemini-2.5-pro", "to": "gemini-2.5-flash"},
    )
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "removed": 1}
    rules = client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]
    assert rules == [{"from": "gemini-2.5-pro", "to": "gemini-2.5-flash"}]


def test_delete_by_from(client):
    response = client.delete(f"{BASE}/model-fallbacks", params={"from": "Gemini-2.5-Flash"})
    assert response.status_code == 200
    rules = client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]
    assert rules == [{"from": "gemini-2.5-pro", "to": "gemini-2.5-flash"}]


def test_delete_by_pair_with_bad_index(client):
    response = client.delete(
        f"{BASE}/model-fallbacks",
        params={"index": "99", "from": "gemini-2.5-pro", "to": "GEMINI-2.5-FLASH"},
    )
    assert response.status_code == 200
    rules = client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]
    assert rules == [{"from": "gemini-2.5-flash", "to": "gemini-2.0-flash"}]


def test_delete_not_found(client):
    response = client.delete(f"{BASE}/model-fallbacks", params={"from": "unknown"})
    assert response.status_code == 400
    assert response.json()["detail"] == "fallback not found"

    response = client.delete(f"{BASE}/model-fallbacks", params={"index": "abc"})
    assert response.status_code == 400
    assert len(client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]) == 2


def test_resolve_chain(client):
    response = client.get(f"{BASE}/model-fallbacks/resolve", params={"model": "GEMINI-2.5-PRO"})
    assert response.status_code == 200
    assert response.json() == {
        "model": "GEMINI-2.5-PRO",
        "fallback": "gemini-2.5-flash",
        "chain": ["gemini-2.5-flash", "gemini-2.0-flash"],
        "depth": 3,
    }


def test_resolve_with_depth_zero(client):
    client.put(
        f"{BASE}/model-fallbacks",
        json={"model-fallbacks": [{"from": "a", "to": "b"}], "model-fallback-depth": 0},
    )
    data = client.get(f"{BASE}/model-fallbacks/resolve", params={"model": "a"}).json()
    assert data["fallback"] is None
    assert data["chain"] == []
    assert data["depth"] == 0


def test_available_models_includes_new_rules(client):
    client.post(f"{BASE}/model-fallbacks", json={"from": "my-custom-model", "to": "gpt-4o"})
    models = client.get(f"{BASE}/available-models").json()["models"]
    assert "my-custom-model" in models
    assert "claude-opus-4" in models
    assert models == sorted(models)


def test_persistence_failure_returns_500(client):
    manager = client.app.state.config_manager

    def fail_write(data):
        raise OSError("disk full")

    manager._write_atomic = fail_write
    response = client.post(f"{BASE}/model-fallbacks", json={"from": "x", "to": "y"})
    assert response.status_code == 500
    assert response.json()["detail"] == "failed to save config"
    assert len(client.get(f"{BASE}/model-fallbacks").json()["model-fallbacks"]) == 2


def test_unavailable_config_degrades_reads_and_fails_mutations(tmp_path, monkeypatch):
    broken = tmp_path / "proxy_config.json"
    broken.write_text("{broken")
    monkeypatch.setenv("FALLBACK_PROXY_CONFIG", str(broken))
    monkeypatch.setattr("fallback_proxy.config.base.settings.CONFIG_PATH", str(broken))

    app = create_app()
    with TestClient(app) as c:
        # No config -> no auth settings -> auth defaults to enabled without a key
        app.state.config = {"auth_settings": {"enabled": False}}

        data = c.get(f"{BASE}/model-fallbacks").json()
        assert data == {"model-fallbacks": [], "model-fallback-depth": 3}

        response = c.post(f"{BASE}/model-fallbacks", json={"from": "a", "to": "b"})
        assert response.status_code == 500
        assert response.json()["detail"] == "config not available"

        response = c.delete(f"{BASE}/model-fallbacks", params={"index": "0"})
        assert response.status_code == 500


def test_auth_disabled(tmp_path):
    path = tmp_path / "proxy_config.json"
    path.write_text(json.dumps({"auth_settings": {"enabled": False}}))
    with TestClient(create_app(config_manager=ConfigManager(path))) as c:
        assert c.get(f"{BASE}/model-fallbacks").status_code == 200


def test_missing_management_key_locks_api(tmp_path):
    path = tmp_path / "proxy_config.json"
    path.write_text(json.dumps({"auth_settings": {"enabled": True, "management_key": ""}}))
    with TestClient(create_app(config_manager=ConfigManager(path))) as c:
        response = c.get(f"{BASE}/model-fallbacks", headers={"Authorization": "Bearer anything"})
        assert response.status_code == 403
