"""End-to-end tests for the assembled API."""

from datetime import datetime

import httpx
import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from advance_api import AdvanceApi, ConfigurationError, __version__, create_advance_api
from advance_api.api import LIVENESS_MESSAGE


def list_users(request, res):
    res.success([{"id": 1, "name": "ada"}])


def users_setup(utils):
    return [
        {
            "type": "object",
            "base": "/users",
            "endpoints": [
                {"path": "/", "method": "get", "handler": list_users, "description": "List users"},
            ],
        },
        {
            "type": "direct",
            "base": "/orders",
            "build": lambda definer: definer.post(
                "/", lambda request, res: res.success({"created": True}), "Create order"
            ),
        },
    ]


def test_declarative_and_imperative_modules_are_served():
    api = create_advance_api({"setup": users_setup})
    client = TestClient(api)

    response = client.get("/api/users")
    assert response.status_code == 200
    assert response.json()["data"] == [{"id": 1, "name": "ada"}]

    response = client.post("/api/orders")
    assert response.json() == {"code": 200, "data": {"created": True}, "message": "success"}

    paths = [(e.method, e.path, e.module) for e in api.catalog.list()]
    assert ("GET", "/api/users", "object") in paths
    assert ("POST", "/api/orders", "direct") in paths


def test_catalog_starts_with_builtins_in_order():
    api = create_advance_api({"setup": users_setup})
    entries = api.catalog.list()
    assert [(e.method, e.path, e.module) for e in entries[:2]] == [
        ("GET", "/api/advance-api-test", "builtin"),
        ("GET", "/api/docs", "builtin"),
    ]
    assert len(entries) == 4


def test_without_setup_only_builtins_exist():
    api = create_advance_api()
    assert len(api.catalog) == 2
    client = TestClient(api)
    assert client.get("/api/advance-api-test").status_code == 200
    assert client.get("/api/users").status_code == 404


def test_liveness_payload():
    api = create_advance_api(version="2.3.4")
    body = TestClient(api).get("/api/advance-api-test").json()
    assert body["code"] == 200
    assert body["message"] == "success"
    data = body["data"]
    assert data["status"] == "ok"
    assert data["message"] == LIVENESS_MESSAGE
    assert data["version"] == "2.3.4"
    datetime.fromisoformat(data["time"])


def test_docs_page_lists_every_catalog_entry():
    api = create_advance_api({"setup": users_setup, "title": "Shop <API>"})
    response = TestClient(api).get("/api/docs")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    html = response.text
    assert html.count('<tr class="route">') == len(api.catalog)
    assert "Shop &lt;API&gt;" in html
    assert "List users" in html


def test_handler_error_becomes_server_error_envelope():
    def explode(request, res):
        raise RuntimeError("handler failed")

    api = create_advance_api(
        setup=lambda utils: {"base": "/x", "endpoints": [
            {"path": "/", "method": "GET", "handler": explode},
        ]}
    )
    before = api.catalog.list()
    client = TestClient(api, raise_server_exceptions=False)
    response = client.get("/api/x")
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == 500
    assert isinstance(body["message"], str)
    assert body["data"] is None
    assert api.catalog.list() == before
    assert client.get("/api/advance-api-test").status_code == 200


def test_double_termination_is_a_server_error():
    def twice(request, res):
        res.success(1)
        res.success(2)

    api = create_advance_api(
        setup=lambda utils: {"base": "/twice", "endpoints": [
            {"path": "/", "method": "GET", "handler": twice},
        ]}
    )
    response = TestClient(api, raise_server_exceptions=False).get("/api/twice")
    assert response.status_code == 500


def test_define_routes_registers_once():
    def setup(utils):
        module = utils.define_routes("/health", [
            {"path": "/", "method": "GET", "handler": lambda request, res: res.success("up")},
        ])
        return [module]

    api = create_advance_api(setup=setup)
    assert len(api.catalog) == 3
    entry = api.catalog.list()[-1]
    assert (entry.path, entry.module) == ("/api/health", "routes")
    assert TestClient(api).get("/api/health").json()["data"] == "up"


def test_utils_capabilities():
    seen = {}

    def setup(utils):
        seen["uuid"] = utils.uuid()
        seen["pick"] = utils._.pick({"a": 1, "b": 2}, ["a"])
        seen["http"] = utils.http
        seen["routes"] = utils.list_routes()
        seen["router"] = utils.router
        return None

    api = create_advance_api(setup=setup)
    assert len(seen["uuid"]) == 36
    assert seen["pick"] == {"a": 1}
    assert isinstance(seen["http"], httpx.AsyncClient)
    assert len(seen["routes"]) == 2
    assert seen["router"] is api.router


def test_custom_prefix_and_global_base():
    api = create_advance_api(prefix="/svc/", base="/v1", setup=users_setup)
    paths = [e.path for e in api.catalog.list()]
    assert paths[:2] == ["/svc/advance-api-test", "/svc/docs"]
    assert "/svc/v1/users" in paths
    client = TestClient(api)
    assert client.get("/svc/v1/users").status_code == 200


def test_root_prefix():
    api = create_advance_api(prefix="/")
    assert api.catalog.list()[0].path == "/advance-api-test"
    assert TestClient(api).get("/advance-api-test").status_code == 200


def test_default_cors_allows_any_origin():
    client = TestClient(create_advance_api())
    response = client.get("/api/advance-api-test", headers={"Origin": "http://example.com"})
    assert response.headers["access-control-allow-origin"] == "*"

    preflight = client.options(
        "/api/advance-api-test",
        headers={"Origin": "http://example.com", "Access-Control-Request-Method": "GET"},
    )
    assert preflight.status_code == 200


def test_cors_policy_aliases():
    api = create_advance_api(cors={"origin": "http://allowed.test", "methods": ["GET"]})
    client = TestClient(api)
    allowed = client.get("/api/advance-api-test", headers={"Origin": "http://allowed.test"})
    assert allowed.headers["access-control-allow-origin"] == "http://allowed.test"
    denied = client.get("/api/advance-api-test", headers={"Origin": "http://other.test"})
    assert "access-control-allow-origin" not in denied.headers


def test_configure_server_mounts_on_host(capsys):
    host = Starlette()
    api = create_advance_api(setup=users_setup)
    assert api.configure_server(host) is host
    client = TestClient(host)
    assert client.get("/api/users").status_code == 200
    assert client.get("/api/advance-api-test").json()["code"] == 200


def test_server_info():
    api = create_advance_api(prefix="/api")
    assert api.get_server_info() == {
        "name": "advance-api",
        "prefix": "/api",
        "base": "/",
        "test_url": "/api/advance-api-test",
        "docs_url": "/api/docs",
        "routes": 2,
    }


def test_instances_are_independent():
    first = create_advance_api(setup=users_setup)
    second = create_advance_api()
    assert len(first.catalog) == 4
    assert len(second.catalog) == 2
    assert first.router is not second.router


def test_plugins_option_attaches_logging():
    api = create_advance_api(plugins=["logging"])
    assert "logging" in api.registrar.members()["entries"]["GET /advance-api-test"]["plugins"]


@pytest.mark.parametrize(
    "options",
    [
        {"unknown": True},
        {"setup": "not callable"},
        {"setup": lambda utils: [{"type": "bogus"}]},
        {"cors": {"allow_origin": "*"}},
        {"cors": "*"},
    ],
)
def test_invalid_options_raise(options):
    with pytest.raises(ConfigurationError):
        create_advance_api(options)


def test_setup_errors_propagate():
    def setup(utils):
        raise KeyError("missing config")

    with pytest.raises(KeyError):
        AdvanceApi({"setup": setup})


def test_example_shop_app():
    import runpy
    from pathlib import Path

    namespace = runpy.run_path(str(Path(__file__).parents[1] / "examples" / "shop_app.py"))
    client = TestClient(namespace["api"])
    assert client.get("/api/products/1").json()["data"]["name"] == "Notebook"
    missing = client.get("/api/products/9")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Product not found"
    created = client.post("/api/orders", json={"items": ["1"]}).json()["data"]
    assert created == {"id": "1", "items": ["1"]}
    assert client.delete("/api/orders/1").json()["data"] == created


def test_unknown_cors_key_fails_before_setup_runs():
    calls = []
    with pytest.raises(ConfigurationError, match="allow_origin"):
        create_advance_api(cors={"allow_origin": "*"}, setup=calls.append)
    assert calls == []


def root_setup(utils):
    return {
        "base": "/",
        "endpoints": [
            {"path": "/", "method": "POST", "handler": lambda request, res: res.success("root")},
        ],
    }


def test_bare_prefix_serves_module_root_without_redirect():
    api = create_advance_api(setup=root_setup)
    assert api.catalog.list()[-1].path == "/api"
    client = TestClient(api)
    response = client.post("/api", follow_redirects=False)
    assert response.status_code == 200
    assert response.json()["data"] == "root"
    assert client.post("/api/", follow_redirects=False).json()["data"] == "root"
    assert client.get("/api", follow_redirects=False).status_code == 405


def test_bare_prefix_on_host_server():
    host = Starlette()
    create_advance_api(setup=root_setup).configure_server(host)
    response = TestClient(host).post("/api", follow_redirects=False)
    assert response.status_code == 200
    assert response.json()["data"] == "root"


def test_bare_prefix_without_root_route_is_not_found():
    response = TestClient(create_advance_api()).get("/api", follow_redirects=False)
    assert response.status_code == 404


def test_default_version_is_package_version():
    body = TestClient(create_advance_api()).get("/api/advance-api-test").json()
    assert body["data"]["version"] == __version__


def test_aclose_releases_http_client_on_host_shutdown():
    import asyncio

    seen = {}

    def setup(utils):
        seen["http"] = utils.http

    api = create_advance_api(setup=setup)
    api.configure_server(Starlette())
    asyncio.run(api.aclose())
    assert seen["http"].is_closed
    assert api.utils._http is None
