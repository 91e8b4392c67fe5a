from fastapi.testclient import TestClient


def test_api_ingest_query_hexes_traces_metrics(monkeypatch) -> None:
    # Import after environment setup to use the deterministic extractor.
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    from hive_graph.api.main import app

    client = TestClient(app)

    ingest_resp = client.post(
        "/ingest",
        json={
            "text": (
                "# Button Guidelines\n"
                "Buttons are interactive elements. Every button needs a visible focus "
                "state, consistent padding, and a clear label."
            ),
            "source_name": "button-guide",
        },
    )
    assert ingest_resp.status_code == 200
    payload = ingest_resp.json()
    assert payload["chunk_count"] == 1
    hex_id = payload["hexes"][0]["id"]
    assert hex_id.startswith("button-guidelines")
    assert payload["hexes"][0]["entryHints"]

    query_resp = client.post("/query", json={"intent": "button styling", "limit": 3})
    assert query_resp.status_code == 200
    items = query_resp.json()["items"]
    assert any(item["hex"]["id"] == hex_id for item in items)
    assert all(item["score"] > 0 for item in items)

    hex_resp = client.get(f"/hexes/{hex_id}")
    assert hex_resp.status_code == 200
    assert hex_resp.json()["name"] == "Button Guidelines"

    [trace_id] = payload["trace_ids"]
    trace_resp = client.get(f"/traces/{trace_id}")
    assert trace_resp.status_code == 200
    assert trace_resp.json()["hex_ids"] == [hex_id]

    metrics_resp = client.get("/metrics")
    assert metrics_resp.status_code == 200
    assert metrics_resp.json()["total_runs"] >= 1

    delete_resp = client.delete(f"/hexes/{hex_id}")
    assert delete_resp.status_code == 200
    assert client.get(f"/hexes/{hex_id}").status_code == 404


def test_api_rejects_bad_ingest_requests() -> None:
    from hive_graph.api.main import app

    client = TestClient(app)

    assert client.post("/ingest", json={"text": "short"}).status_code == 400
    assert client.post("/ingest", json={}).status_code == 400
    assert client.post("/ingest", json={"url": "ftp://example.com"}).status_code == 400
    assert client.post("/query", json={"intent": ""}).status_code == 422


def _hex_body(hex_id: str, **overrides: object) -> dict:
    body = {
        "id": hex_id,
        "name": "Deploy Checklist",
        "type": "data",
        "entryHints": ["deployment steps"],
        "tags": ["ops"],
    }
    body.update(overrides)
    return body


def test_api_creates_updates_and_filters_hexes() -> None:
    from hive_graph.api.main import app

    client = TestClient(app)

    create_resp = client.post("/hexes", json=_hex_body("deploy-checklist"))
    assert create_resp.status_code == 201
    created = create_resp.json()
    assert created["created"] == created["updated"]

    assert client.post("/hexes", json=_hex_body("deploy-checklist")).status_code == 409
    assert client.post("/hexes", json=_hex_body("Bad Id")).status_code == 422

    update_resp = client.put(
        "/hexes/deploy-checklist",
        json={"id": "renamed", "name": "Release Checklist", "tags": ["ops", "release"]},
    )
    assert update_resp.status_code == 200
    updated = update_resp.json()
    assert updated["id"] == "deploy-checklist"
    assert updated["name"] == "Release Checklist"
    assert updated["entryHints"] == ["deployment steps"]
    assert updated["created"] == created["created"]
    assert updated["updated"] >= created["updated"]
    assert client.get("/hexes/renamed").status_code == 404

    assert client.put("/hexes/missing-hex", json={"name": "x"}).status_code == 404
    assert client.put("/hexes/deploy-checklist", json={"entryHints": []}).status_code == 422

    by_tag = client.get("/hexes", params={"q": "RELEASE"}).json()["items"]
    assert [item["id"] for item in by_tag] == ["deploy-checklist"]
    by_hint = client.get("/hexes", params={"q": "deployment st"}).json()["items"]
    assert "deploy-checklist" in [item["id"] for item in by_hint]
    assert client.get("/hexes", params={"q": "no-such-needle-anywhere"}).json()["items"] == []

    assert client.delete("/hexes/deploy-checklist").status_code == 200


def test_api_ingests_several_files_in_one_request(tmp_path) -> None:
    from hive_graph.api.main import app

    first = tmp_path / "caching.md"
    first.write_text("# Cache Warmup\nWarm the cache before traffic arrives at the service.")
    second = tmp_path / "alerts.txt"
    second.write_text("Alert routing sends pages to the on-call engineer for each service.")

    client = TestClient(app)
    resp = client.post("/ingest", json={"paths": [str(first), str(second)]})

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["message"].startswith("Processed 2 documents: ")
    assert len(payload["trace_ids"]) == 2
    assert payload["chunk_count"] == 2
    names = [hex_node["name"] for hex_node in payload["hexes"]]
    assert names[0] == "Cache Warmup"
    assert names[1].startswith("Alert routing")
    for hex_node in payload["hexes"]:
        assert client.get(f"/hexes/{hex_node['id']}").status_code == 200
        client.delete(f"/hexes/{hex_node['id']}")


def test_api_maps_fetch_failures_to_bad_gateway(monkeypatch) -> None:
    import requests

    from hive_graph.api import main

    def refuse(url: str) -> None:
        raise requests.ConnectionError(f"connection refused: {url}")

    monkeypatch.setattr(main, "fetch_url", refuse)
    client = TestClient(main.app)

    resp = client.post("/ingest", json={"url": "https://docs.example.com/guide"})

    assert resp.status_code == 502
    assert "connection refused" in resp.json()["detail"]
    assert client.post("/ingest", json={"path": "/no/such/file.md"}).status_code == 400
