"""Tests for perch.routing.router: compiled trie-based router."""

import pytest

from perch.errors import ConfigurationError, MethodNotAllowed, NotFound
from perch.routing.route import ANY_METHOD, Route
from perch.routing.router import Router, capture_names, parse_path
from perch.routing.signature import describe_handler


def _handler() -> str:
    return "ok"


def _route(path: str, methods: frozenset[str] | None = None) -> Route:
    return Route(
        path=path,
        methods=methods or frozenset({"GET"}),
        descriptor=describe_handler(_handler, path),
    )


def _router(*routes: Route) -> Router:
    router = Router()
    for route in routes:
        router.add(route)
    router.compile()
    return router


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]
        assert not any(s.is_param for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/users/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_angle_bracket_param(self) -> None:
        segments = parse_path("/clients/<id>")
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_typed_params(self) -> None:
        assert parse_path("/users/{id:int}")[1].param_type == "int"
        assert parse_path("/users/<id:float>")[1].param_type == "float"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_unknown_type(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown capture type"):
            parse_path("/users/{id:uuid}")

    def test_malformed_segment(self) -> None:
        with pytest.raises(ConfigurationError, match="Malformed"):
            parse_path("/users/{id")

    def test_invalid_name(self) -> None:
        with pytest.raises(ConfigurationError, match="identifier"):
            parse_path("/users/{1st}")

    def test_duplicate_name(self) -> None:
        with pytest.raises(ConfigurationError, match="twice"):
            parse_path("/{id}/{id}")

    def test_path_capture_must_be_last(self) -> None:
        with pytest.raises(ConfigurationError, match="last segment"):
            parse_path("/files/{rest:path}/meta")

    def test_capture_names(self) -> None:
        assert capture_names("/a/{x}/<y:int>/{z:path}") == {"x": "str", "y": "int", "z": "path"}


class TestMatching:
    def test_static_route(self) -> None:
        router = _router(_route("/users"))
        match = router.match("GET", "/users")
        assert match.route.path == "/users"
        assert match.path_params == {}

    def test_root(self) -> None:
        assert _router(_route("/")).match("GET", "/").route.path == "/"

    def test_trailing_slash_ignored(self) -> None:
        assert _router(_route("/users")).match("GET", "/users/").route.path == "/users"

    def test_captures(self) -> None:
        match = _router(_route("/clients/{id}")).match("GET", "/clients/42")
        assert match.path_params == {"id": "42"}

    def test_angle_bracket_captures(self) -> None:
        match = _router(_route("/clients/<id>")).match("GET", "/clients/abc")
        assert match.path_params == {"id": "abc"}

    def test_static_preferred_over_capture(self) -> None:
        router = _router(_route("/users/{id}"), _route("/users/me"))
        assert router.match("GET", "/users/me").route.path == "/users/me"
        assert router.match("GET", "/users/7").route.path == "/users/{id}"

    def test_int_capture_rejects_text(self) -> None:
        router = _router(_route("/items/{id:int}"))
        assert router.match("GET", "/items/-3").path_params == {"id": "-3"}
        with pytest.raises(NotFound):
            router.match("GET", "/items/abc")

    def test_typed_capture_falls_through(self) -> None:
        router = _router(_route("/items/{id:int}"), _route("/items/{slug}"))
        assert router.match("GET", "/items/5").route.path == "/items/{id:int}"
        assert router.match("GET", "/items/five").route.path == "/items/{slug}"

    def test_path_capture(self) -> None:
        match = _router(_route("/static/{rest:path}")).match("GET", "/static/css/site.css")
        assert match.path_params == {"rest": "css/site.css"}

    def test_not_found(self) -> None:
        with pytest.raises(NotFound):
            _router(_route("/users")).match("GET", "/posts")

    def test_method_not_allowed(self) -> None:
        router = _router(_route("/users", frozenset({"GET", "POST"})))
        with pytest.raises(MethodNotAllowed) as exc_info:
            router.match("DELETE", "/users")
        assert exc_info.value.status == 405
        assert dict(exc_info.value.headers)["Allow"] == "GET, POST"

    def test_any_method(self) -> None:
        router = _router(_route("/hook", frozenset({ANY_METHOD})))
        assert router.match("PATCH", "/hook").route.path == "/hook"

    def test_specific_method_wins_over_any(self) -> None:
        specific = _route("/hook", frozenset({"GET"}))
        router = _router(_route("/hook", frozenset({ANY_METHOD})), specific)
        assert router.match("GET", "/hook").route is specific


class TestRegistration:
    def test_duplicate_route(self) -> None:
        router = Router()
        router.add(_route("/users"))
        with pytest.raises(ConfigurationError, match="Duplicate route"):
            router.add(_route("/users"))

    def test_same_path_other_method(self) -> None:
        router = Router()
        router.add(_route("/users"))
        router.add(_route("/users", frozenset({"POST"})))
        assert len(router.routes) == 2

    def test_add_after_compile(self) -> None:
        router = _router()
        with pytest.raises(RuntimeError):
            router.add(_route("/late"))

    def test_routes_in_registration_order(self) -> None:
        router = _router(_route("/b"), _route("/a"))
        assert [r.path for r in router.routes] == ["/b", "/a"]
