"""Selector fallback resolution."""
import pytest

from errors import ElementResolutionMiss
from scraper import first_non_empty, resolve_text

from fakes import FakeElement, FakePage


class TestFirstNonEmpty:
    def test_returns_first_hit_after_misses(self):
        def boom():
            raise ElementResolutionMiss("#gone")

        assert first_non_empty([boom, lambda: None, lambda: "   ", lambda: " hit ", lambda: "later"]) == "hit"

    def test_all_miss_returns_fallback(self):
        assert first_non_empty([lambda: None, lambda: ""], fallback="unknown") == "unknown"

    def test_untolerated_errors_propagate(self):
        def boom():
            raise RuntimeError("detached")

        with pytest.raises(RuntimeError):
            first_non_empty([boom, lambda: "x"], tolerate=())

    def test_strategies_after_hit_not_called(self):
        calls = []

        def record(v):
            def strategy():
                calls.append(v)
                return v
            return strategy

        first_non_empty([record("a"), record("b")])
        assert calls == ["a"]


class TestResolveText:
    def test_skips_missing_hidden_and_empty_candidates(self):
        page = FakePage(elements={
            "#hidden": [FakeElement(text="Hidden", visible=False)],
            "#blank": [FakeElement(text="  \n ")],
            "#name": [FakeElement(text="  Veritasium \n"), FakeElement(text="second")],
            "#later": [FakeElement(text="Later")],
        })
        selectors = ["#absent", "#hidden", "#blank", "#name", "#later"]
        assert resolve_text(page, selectors, "unknown", timeout_ms=50) == "Veritasium"

    def test_all_candidates_miss(self):
        page = FakePage(elements={"#hidden": [FakeElement(text="x", visible=False)]})
        assert resolve_text(page, ["#absent", "#hidden"], "unknown", timeout_ms=50) == "unknown"

    def test_detached_element_is_a_miss(self):
        page = FakePage(elements={
            "#detached": [FakeElement(text="stale", detached=True)],
            "#ok": [FakeElement(text="fresh")],
        })
        assert resolve_text(page, ["#detached", "#ok"], timeout_ms=50) == "fresh"

    def test_waits_with_per_candidate_timeout(self):
        hidden = FakeElement(text="x", visible=False)
        shown = FakeElement(text="y")
        page = FakePage(elements={"#a": [hidden], "#b": [shown]})
        resolve_text(page, ["#a", "#b"], timeout_ms=1234)
        assert hidden.waits == [1234]
        assert shown.waits == [1234]

    def test_empty_candidate_list(self):
        assert resolve_text(FakePage(), [], "fallback") == "fallback"
