def test_health(client, db_session):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["database"]["status"] == "healthy"


def test_unknown_route_is_json_404(client, db_session):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "http_error"
