import server


def test_main_uses_local_defaults(monkeypatch) -> None:
    calls = []
    sentinel_app = object()
    monkeypatch.setattr(server, "create_app", lambda: sentinel_app)
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("GATEWAY_HOST", raising=False)
    monkeypatch.delenv("GATEWAY_PORT", raising=False)

    server.main()

    assert calls == [(sentinel_app, {"host": "127.0.0.1", "port": 8000})]


def test_main_reads_host_and_port_from_env(monkeypatch) -> None:
    calls = []
    sentinel_app = object()
    monkeypatch.setattr(server, "create_app", lambda: sentinel_app)
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("GATEWAY_HOST", "0.0.0.0")
    monkeypatch.setenv("GATEWAY_PORT", "9100")

    server.main()

    assert calls == [(sentinel_app, {"host": "0.0.0.0", "port": 9100})]
