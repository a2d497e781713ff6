"""Tests for language resolution and the shared language context."""

import pytest

from features.analytics import Analytics
from features.language import (
    LOADING_MARKUP,
    PHASE_INIT,
    PHASE_RESOLVED,
    STORAGE_KEY,
    CookieStore,
    LanguageContext,
    LanguageResolver,
    browser_language_from_header,
    initial_language,
    normalize_browser_language,
    render_app,
    url_language,
)
from language_helpers import BrokenStore, MemoryStore


def make_resolver(persisted=None):
    data = {STORAGE_KEY: persisted} if persisted else {}
    context = LanguageContext(MemoryStore(data), Analytics("test"))
    return LanguageResolver(context)


def browser(tag):
    return lambda: tag


def broken_browser():
    raise RuntimeError("navigator unavailable")


class TestPrecedence:
    """First-pass precedence order."""

    @pytest.mark.parametrize("lang", ["ja", "en"])
    def test_query_param_always_wins(self, lang):
        other = "en" if lang == "ja" else "ja"
        resolver = make_resolver(persisted=other)

        assert resolver.mount(f"lang={lang}", other, browser(f"{other}-XX")) == lang

    def test_persisted_preference(self):
        resolver = make_resolver(persisted="en")

        assert resolver.mount("", "ja", browser("ja-JP")) == "en"

    def test_page_preference_without_persisted(self):
        resolver = make_resolver()

        assert resolver.mount("", "en", browser("ja-JP")) == "en"

    @pytest.mark.parametrize(
        "tag, expected",
        [("ja-JP", "ja"), ("JA", "ja"), ("fr-FR", "en"), ("en-US", "en"), (None, "ja"), ("", "ja")],
    )
    def test_browser_language(self, tag, expected):
        resolver = make_resolver()

        assert resolver.mount("", None, browser(tag)) == expected

    def test_no_browser_provider(self):
        assert make_resolver().mount("") == "ja"

    def test_throwing_browser_api(self):
        assert make_resolver().mount("", None, broken_browser) == "ja"

    def test_throwing_storage(self):
        resolver = LanguageResolver(LanguageContext(BrokenStore()))

        assert resolver.mount("", "en", browser("en-US")) == "ja"

    def test_invalid_query_param_ignored(self):
        resolver = make_resolver(persisted="en")

        assert resolver.mount("lang=fr", None, browser("ja-JP")) == "en"

    def test_invalid_persisted_value_ignored(self):
        resolver = make_resolver(persisted="de")

        assert resolver.mount("", "en", browser("ja-JP")) == "en"


class TestPhases:
    def test_mount_marks_ready(self):
        resolver = make_resolver()
        assert resolver.phase == PHASE_INIT
        assert resolver.context.ready is False

        resolver.mount("", None, browser("en-GB"))

        assert resolver.phase == PHASE_RESOLVED
        assert resolver.context.ready is True

    def test_query_change_overrides(self):
        resolver = make_resolver()
        resolver.mount("", None, browser("en-GB"))

        assert resolver.on_query_change("page=2&lang=ja") == "ja"
        assert resolver.context.store.get(STORAGE_KEY) == "ja"

    def test_query_without_lang_keeps_state(self):
        resolver = make_resolver()
        resolver.mount("lang=ja")

        assert resolver.on_query_change("page=3") == "ja"

    def test_unchanged_query_is_not_reapplied(self):
        resolver = make_resolver()
        resolver.mount("lang=en")
        resolver.context.analytics.events.clear()

        resolver.on_query_change("lang=en")

        assert resolver.context.analytics.events == []

    def test_second_mount_skips_page_and_browser(self):
        resolver = make_resolver()
        resolver.mount("", None, browser("en-US"))

        assert resolver.mount("", "ja", browser("ja-JP")) == "en"

    def test_render_gated_until_resolved(self):
        resolver = make_resolver()

        assert render_app(resolver.context, "<main></main>") == LOADING_MARKUP

        resolver.mount("")

        assert render_app(resolver.context, "<main></main>") == "<main></main>"


class TestLanguageContext:
    def test_setter_round_trip(self):
        store = MemoryStore()
        context = LanguageContext(store, Analytics("test"))

        context.set_language("en")

        assert context.language == "en"
        assert context.is_japanese is False
        assert store.get(STORAGE_KEY) == "en"

    def test_setter_tracks_switch(self):
        tracker = Analytics("test")
        context = LanguageContext(MemoryStore(), tracker)

        context.set_language("ja")

        assert tracker.events == [{"name": "language_switch", "params": {"language": "ja"}}]

    def test_unknown_value_collapses_to_english(self):
        context = LanguageContext(MemoryStore())

        assert context.set_language("zh") == "en"

    def test_storage_failure_falls_back_to_default(self):
        context = LanguageContext(BrokenStore())

        assert context.set_language("en") == "ja"

    def test_tracking_failure_resets_persisted_value(self):
        class FailingTracker:
            def track_language_switch(self, lang):
                raise RuntimeError("analytics blocked")

        store = MemoryStore()
        context = LanguageContext(store, FailingTracker())

        assert context.set_language("en") == "ja"
        assert store.get(STORAGE_KEY) == "ja"


class TestCookieStore:
    def test_reads_request_cookie(self):
        assert CookieStore({STORAGE_KEY: "en"}).get(STORAGE_KEY) == "en"

    def test_pending_write_visible(self):
        store = CookieStore({STORAGE_KEY: "en"})
        store.set(STORAGE_KEY, "ja")

        assert store.get(STORAGE_KEY) == "ja"


class TestHelpers:
    def test_normalize_browser_language(self):
        assert normalize_browser_language("ja-JP") == "ja"
        assert normalize_browser_language("pt-BR") == "en"
        assert normalize_browser_language(None) is None

    def test_browser_language_from_header(self):
        assert browser_language_from_header("ja-JP,ja;q=0.9,en;q=0.8") == "ja-JP"
        assert browser_language_from_header("en;q=0.7") == "en"
        assert browser_language_from_header(None) is None

    def test_url_language(self):
        assert url_language("lang=ja") == "ja"
        assert url_language("lang=EN") is None
        assert url_language("") is None

    def test_initial_language(self):
        assert initial_language("en") == "en"
        assert initial_language(None) == "ja"
        assert initial_language("fr") == "ja"
