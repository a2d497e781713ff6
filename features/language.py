# features/language.py
from urllib.parse import parse_qs

from languages import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from utils import log, normalize

STORAGE_KEY = "preferredLanguage"

PHASE_INIT = "init"
PHASE_RESOLVED = "resolved"

LOADING_MARKUP = (
    '<div class="loading" role="status" aria-busy="true">'
    '<div class="spinner"></div>'
    "</div>"
)


def valid_language(value) -> str | None:
    """Exact "ja"/"en" only, anything else is None."""
    return value if value in SUPPORTED_LANGUAGES else None


def coerce_language(value) -> str:
    return "ja" if value == "ja" else "en"


def normalize_browser_language(tag: str | None) -> str | None:
    """'ja-JP' -> 'ja', 'fr-FR' -> 'en', missing -> None."""
    tag = normalize(tag)
    if not tag:
        return None
    return coerce_language(tag.split("-")[0].lower())


def browser_language_from_header(accept_language: str | None) -> str | None:
    """First tag of an Accept-Language header: 'ja-JP,ja;q=0.9' -> 'ja-JP'."""
    first = normalize(accept_language).split(",")[0]
    return normalize(first.split(";")[0]) or None


def url_language(query: str | None) -> str | None:
    values = parse_qs(query or "").get("lang") or []
    return valid_language(values[0]) if values else None


def initial_language(preferred_language: str | None = None) -> str:
    """Seed used before the first resolution pass."""
    return valid_language(preferred_language) or DEFAULT_LANGUAGE


class CookieStore:
    """
    Persisted preference kept in a long-lived cookie.
    Reads come from the request, writes are queued until apply(response).
    """

    MAX_AGE = 60 * 60 * 24 * 365

    def __init__(self, cookies: dict):
        self.cookies = dict(cookies or {})
        self.pending: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.pending.get(key) or self.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self.pending[key] = value

    def apply(self, response) -> None:
        for key, value in self.pending.items():
            response.set_cookie(key, value, max_age=self.MAX_AGE, samesite="lax")
        self.cookies.update(self.pending)
        self.pending = {}


class LanguageContext:
    """
    Shared locale state. set_language is the only way to change it.
    """

    def __init__(self, store, analytics=None, language: str = DEFAULT_LANGUAGE):
        self.store = store
        self.analytics = analytics
        self.language = coerce_language(language)
        self.ready = False

    @property
    def is_japanese(self) -> bool:
        return self.language == "ja"

    def bind(self, store, analytics=None) -> None:
        self.store = store
        self.analytics = analytics

    def set_language(self, lang: str) -> str:
        self.language = coerce_language(lang)
        try:
            self.store.set(STORAGE_KEY, self.language)
            if self.analytics is not None:
                self.analytics.track_language_switch(self.language)
        except Exception as e:
            log("Language side effect failed:", repr(e))
            self.language = DEFAULT_LANGUAGE
            try:
                self.store.set(STORAGE_KEY, DEFAULT_LANGUAGE)
            except Exception as reset_error:
                log("Language store reset failed:", repr(reset_error))
        return self.language


class LanguageResolver:
    """
    Precedence on the first pass:
      1. ?lang= query parameter (ja/en)
      2. persisted preference
      3. page-supplied preferred language
      4. browser language
      5. DEFAULT_LANGUAGE
    Later passes only look at the query parameter.
    """

    def __init__(self, context: LanguageContext):
        self.context = context
        self.phase = PHASE_INIT
        self.query: str | None = None

    def mount(self, query: str | None, preferred_language: str | None = None, browser_language=None) -> str:
        """
        browser_language is a zero-arg callable returning a tag like 'ja-JP';
        it may raise, in which case the default language is used.
        """
        if self.phase != PHASE_INIT:
            return self.on_query_change(query)

        self.query = query or ""
        try:
            lang = self._first_pass(query, preferred_language, browser_language)
        except Exception as e:
            log("Error accessing browser language:", repr(e))
            lang = DEFAULT_LANGUAGE

        self.context.set_language(lang)
        self.phase = PHASE_RESOLVED
        self.context.ready = True
        return self.context.language

    def _first_pass(self, query, preferred_language, browser_language) -> str:
        from_url = url_language(query)
        if from_url:
            return from_url

        saved = valid_language(self.context.store.get(STORAGE_KEY))
        if saved:
            return saved

        from_page = valid_language(preferred_language)
        if from_page:
            return from_page

        tag = browser_language() if browser_language is not None else None
        return normalize_browser_language(tag) or DEFAULT_LANGUAGE

    def on_query_change(self, query: str | None) -> str:
        query = query or ""
        if query != self.query:
            self.query = query
            lang = url_language(query)
            if lang:
                self.context.set_language(lang)
        return self.context.language


def render_app(context: LanguageContext, body: str) -> str:
    """
    Loading indicator until the first resolution pass has run.
    Server routes mount before rendering, so their pages always come out resolved.
    """
    if not context.ready:
        return LOADING_MARKUP
    return body
