"""Tests for the registration engine and its plugin pipeline."""

import logging

import pytest
from starlette.responses import PlainTextResponse
from starlette.testclient import TestClient

from advance_api import Registrar, RouteCatalog, RouterDefiner
from advance_api.core.base_registrar import BaseRegistrar


def _ok(payload):
    def handler(request, res):
        res.success(payload)

    return handler


def test_register_binds_and_catalogs_with_prefix():
    registrar = BaseRegistrar(prefix="/api")
    entry = registrar.register("get", "/users", "/", _ok(["ada"]), module="object")

    assert entry.method == "GET"
    assert entry.path == "/api/users"
    assert registrar.entries() == ("GET /users",)

    client = TestClient(registrar.router)
    response = client.get("/users")
    assert response.status_code == 200
    assert response.json() == {"code": 200, "data": ["ada"], "message": "success"}


def test_catalog_can_be_shared():
    catalog = RouteCatalog()
    first = BaseRegistrar(catalog=catalog)
    second = BaseRegistrar(catalog=catalog)
    first.register("GET", "/a", "/", _ok(1))
    second.register("GET", "/b", "/", _ok(2))
    assert [e.path for e in catalog.list()] == ["/a", "/b"]


def test_unsupported_method_is_cataloged_but_not_bound(caplog):
    registrar = BaseRegistrar()
    with caplog.at_level(logging.WARNING, logger="advance_api.registrar"):
        entry = registrar.register("patch", "/items", "/{id}", _ok(None))

    assert entry.method == "PATCH"
    assert entry.path == "/items/{id}"
    assert len(registrar.catalog) == 1
    assert registrar.entries() == ()
    assert any(
        "Unsupported method PATCH" in record.getMessage() for record in caplog.records
    )
    assert TestClient(registrar.router).patch("/items/1").status_code == 404


def test_duplicate_registration_last_wins():
    registrar = BaseRegistrar()
    registrar.register("GET", "/dup", "/", _ok("first"))
    registrar.register("GET", "/dup", "/", _ok("second"))

    assert len(registrar.catalog) == 2
    assert len(registrar.router.routes) == 1
    assert TestClient(registrar.router).get("/dup").json()["data"] == "second"


def test_same_path_different_methods():
    registrar = BaseRegistrar()
    registrar.register("GET", "/things", "/", _ok("read"))
    registrar.register("DELETE", "/things", "/", _ok("gone"))
    client = TestClient(registrar.router)
    assert client.get("/things").json()["data"] == "read"
    assert client.delete("/things").json()["data"] == "gone"
    assert client.put("/things").status_code == 405


def test_async_handler_and_path_params():
    registrar = BaseRegistrar()

    async def show(request, res):
        res.success({"id": request.path_params["id"]})

    registrar.register("GET", "/users", "/{id}", show)
    assert TestClient(registrar.router).get("/users/42").json()["data"] == {"id": "42"}


def test_post_body_reaches_handler():
    registrar = BaseRegistrar()

    async def create(request, res):
        body = await request.json()
        res.success({"created": body["name"]})

    registrar.register("POST", "/orders", "/", create)
    response = TestClient(registrar.router).post("/orders", json={"name": "book"})
    assert response.json()["data"] == {"created": "book"}


def test_handler_response_used_when_envelope_unused():
    registrar = BaseRegistrar()
    registrar.register("GET", "/plain", "/", lambda request, res: PlainTextResponse("raw"))
    registrar.register("PUT", "/noop", "/", lambda request, res: None)
    client = TestClient(registrar.router)
    assert client.get("/plain").text == "raw"
    assert client.put("/noop").status_code == 204


def test_error_envelope_status():
    registrar = BaseRegistrar()
    registrar.register("GET", "/missing", "/", lambda request, res: res.error("not here", 404))
    response = TestClient(registrar.router).get("/missing")
    assert response.status_code == 404
    assert response.json() == {"code": 404, "data": None, "message": "not here"}


def test_get_returns_wrapped_handler():
    registrar = BaseRegistrar()
    registrar.register("GET", "/x", "/", _ok(None))
    assert callable(registrar.get("get", "x"))
    with pytest.raises(NotImplementedError):
        registrar.get("GET", "/nope")


def test_definer_registers_under_its_base():
    registrar = BaseRegistrar(prefix="/api")
    definer = RouterDefiner(registrar, "/orders")
    definer.get("/", _ok([]), "List orders")
    definer.post("/", _ok({}))
    definer.put("/{id}", _ok({}))
    definer.delete("/{id}", _ok(None), params={"id": "order id"})

    entries = registrar.catalog.list()
    assert [(e.method, e.path) for e in entries] == [
        ("GET", "/api/orders"),
        ("POST", "/api/orders"),
        ("PUT", "/api/orders/{id}"),
        ("DELETE", "/api/orders/{id}"),
    ]
    assert {e.module for e in entries} == {"direct"}
    assert entries[0].description == "List orders"
    assert entries[3].doc == {"params": {"id": "order id"}}


def test_members_describe_bindings():
    def handler(request, res):
        """Return the user list."""
        res.success([])

    registrar = BaseRegistrar(prefix="/api")
    registrar.register("GET", "/users", "/", handler, module="object")
    info = registrar.members()
    assert info["prefix"] == "/api"
    entry = info["entries"]["GET /users"]
    assert entry["callable"] is handler
    assert entry["doc"] == "Return the user list."
    assert entry["metadata"]["module"] == "object"
    assert info["catalog"]["count"] == 1


# ----------------------------------------------------------------------
# Plugins
# ----------------------------------------------------------------------
class DummyLogger:
    def __init__(self):
        self.records = []

    def hasHandlers(self):  # noqa: N802
        return True

    def info(self, message):
        self.records.append(message)


def test_plug_unknown_plugin_raises():
    registrar = Registrar()
    with pytest.raises(ValueError):
        registrar.plug("missing")
    with pytest.raises(TypeError):
        registrar.plug(object())  # type: ignore[arg-type]
    with pytest.raises(AttributeError):
        registrar.logging  # noqa: B018


def test_logging_plugin_wraps_existing_and_new_routes():
    registrar = Registrar()
    registrar.register("GET", "/before", "/", _ok(1))
    registrar.plug("logging")
    dummy = DummyLogger()
    registrar.logging._logger = dummy
    registrar.register("GET", "/after", "/", _ok(2))

    client = TestClient(registrar.router)
    assert client.get("/before").json()["data"] == 1
    assert client.get("/after").json()["data"] == 2
    assert dummy.records[0] == "GET /before start"
    assert dummy.records[1].startswith("GET /before end (")
    assert dummy.records[2] == "GET /after start"
    assert len(dummy.records) == 4


def test_logging_plugin_flags_and_route_target():
    dummy = DummyLogger()
    registrar = Registrar().plug("logging", logger=dummy, flags="before:off")
    registrar.register("GET", "/quiet", "/", _ok(None))
    registrar.register("GET", "/loud", "/", _ok(None))
    registrar.logging.configure(_target="GET /quiet", enabled=False)

    client = TestClient(registrar.router)
    client.get("/quiet")
    client.get("/loud")
    assert len(dummy.records) == 1
    assert dummy.records[0].startswith("GET /loud end")
    assert registrar.get_config("logging", "GET /quiet")["enabled"] is False


def test_logging_plugin_print_sink(capsys):
    registrar = Registrar().plug("logging", print=True, after=False)
    registrar.register("GET", "/printed", "/", _ok(None))
    TestClient(registrar.router).get("/printed")
    assert "GET /printed start" in capsys.readouterr().out


def test_logging_plugin_rejects_invalid_config():
    registrar = Registrar().plug("logging")
    with pytest.raises(Exception):
        registrar.logging.configure(before={"not": "a bool"})


def test_runtime_plugin_toggle():
    dummy = DummyLogger()
    registrar = Registrar().plug("logging", logger=dummy)
    registrar.register("GET", "/toggle", "/", _ok(None))
    client = TestClient(registrar.router)

    registrar.set_plugin_enabled("GET /toggle", "logging", False)
    assert not registrar.is_plugin_enabled("GET /toggle", "logging")
    client.get("/toggle")
    assert dummy.records == []

    registrar.set_plugin_enabled("GET /toggle", "logging", True)
    client.get("/toggle")
    assert len(dummy.records) == 2

    with pytest.raises(AttributeError):
        registrar.set_plugin_enabled("GET /toggle", "missing", True)


def test_handler_exception_propagates_through_plugins():
    dummy = DummyLogger()
    registrar = Registrar().plug("logging", logger=dummy)

    def boom(request, res):
        raise RuntimeError("kaboom")

    registrar.register("GET", "/boom", "/", boom)
    with pytest.raises(RuntimeError, match="kaboom"):
        TestClient(registrar.router).get("/boom")
    assert dummy.records == ["GET /boom start"]


def test_members_include_plugin_config():
    registrar = Registrar().plug("logging", before=False)
    registrar.register("GET", "/m", "/", _ok(None))
    info = registrar.members()["entries"]["GET /m"]
    assert info["plugins"]["logging"]["config"]["before"] is False
    assert "logging" in Registrar.available_plugins()
