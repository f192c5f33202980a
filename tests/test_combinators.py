"""Tests for perch.resolution.combinators: merge and apply_to."""

from perch.http.request import Request
from perch.http.response import Response
from perch.resolution.builtin import BUILTIN_RESOLVERS
from perch.resolution.combinators import Applied, Merged, apply_to, merge
from perch.resolution.pipeline import ResolutionPipeline
from perch.resolution.transforms import content_type, header


def _request() -> Request:
    return Request.build("GET", "/")


def _append(suffix: str):
    def step(request, value):
        if isinstance(value, str):
            return value + suffix
        return None

    step.__qualname__ = f"append({suffix!r})"
    return step


def _decline(request, value):
    return None


class TestMerge:
    async def test_applies_left_to_right(self) -> None:
        merged = merge(_append("a"), _append("b"), _append("c"))
        assert await merged(_request(), "") == "abc"

    async def test_declining_step_keeps_value(self) -> None:
        merged = merge(_append("a"), _decline, _append("b"))
        assert await merged(_request(), "") == "ab"

    async def test_declines_when_every_step_declines(self) -> None:
        merged = merge(_decline, _decline)
        assert await merged(_request(), "x") is None

    async def test_short_circuits_on_final_response(self) -> None:
        calls = []

        def finish(request, value):
            return Response(value)

        def after(request, value):
            calls.append(value)
            return None

        result = await merge(finish, after)(_request(), "done")
        assert isinstance(result, Response)
        assert result.text == "done"
        assert calls == []

    async def test_associative(self) -> None:
        a, b, c = _append("a"), _append("b"), _append("c")
        left = merge(merge(a, b), c)
        right = merge(a, merge(b, c))
        assert left.steps == right.steps == (a, b, c)
        assert await left(_request(), "") == await right(_request(), "") == "abc"

    async def test_async_steps(self) -> None:
        async def shout(request, value):
            return value.upper()

        assert await merge(_append("x"), shout)(_request(), "") == "X"

    async def test_steps_all_apply_to_final_response(self) -> None:
        merged = merge(header("X-A", "1"), header("X-B", "2"))
        response = await apply_to(merged, Response("x"))(_request())
        assert response.header("X-A") == "1"
        assert response.header("X-B") == "2"
        assert response.text == "x"

    async def test_single_step_merge_matches_the_step(self) -> None:
        html = content_type("html")
        original = Response("x")
        assert await merge(html)(_request(), original) == html(_request(), original)

    async def test_final_response_steps_then_declines_unchanged(self) -> None:
        original = Response("x", headers=(("X-A", "1"),))
        assert await merge(header("X-A", "1"), _decline)(_request(), original) is None

    def test_merge_returns_merged(self) -> None:
        assert isinstance(merge(_decline), Merged)

    async def test_merged_transformations_in_a_pipeline(self) -> None:
        request = _request()
        pipeline = ResolutionPipeline((merge(content_type("html"), header("X-A", "1")), *BUILTIN_RESOLVERS))
        response = await pipeline.resolve(request, "<p>hi</p>")
        assert response.content_type == "text/html; charset=utf-8"
        assert response.header("X-A") == "1"


class TestApplyTo:
    async def test_runs_transformation_on_bound_value(self) -> None:
        applied = apply_to(_append("!"), "hi")
        assert isinstance(applied, Applied)
        assert await applied(_request()) == "hi!"

    async def test_declining_transformation_returns_value(self) -> None:
        assert await apply_to(_decline, "same")(_request()) == "same"

    async def test_resolved_as_nested_handler(self) -> None:
        pipeline = ResolutionPipeline(BUILTIN_RESOLVERS)
        response = await pipeline.resolve(_request(), apply_to(content_type("html"), "<h1>Hi</h1>"))
        assert response.content_type == "text/html; charset=utf-8"
        assert response.text == "<h1>Hi</h1>"

    async def test_with_merge(self) -> None:
        applied = apply_to(merge(_append("1"), _append("2")), "v")
        assert await applied(_request()) == "v12"
