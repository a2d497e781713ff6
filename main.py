import html
import uuid
from collections import OrderedDict

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel
from starlette.background import BackgroundTask

import config
from features.analytics import Analytics
from features.gemini import get_answer
from features.language import (
    CookieStore,
    LanguageContext,
    LanguageResolver,
    browser_language_from_header,
    initial_language,
    render_app,
)
from languages import get_text
from utils import log

app = FastAPI()

# =========================
# CONFIG
# =========================
SESSION_COOKIE = "session_id"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


class SessionRegistry:
    """
    Language resolvers keyed by session id, one per browser tab session.
    Only ids issued here are honoured; the least recently used is dropped past max_sessions.
    """

    def __init__(self, max_sessions: int):
        self.max_sessions = max(1, int(max_sessions))
        self._lru: "OrderedDict[str, LanguageResolver]" = OrderedDict()

    def get(self, sid: str | None) -> LanguageResolver | None:
        if not sid or sid not in self._lru:
            return None
        self._lru.move_to_end(sid)
        return self._lru[sid]

    def add(self, resolver: LanguageResolver) -> str:
        sid = uuid.uuid4().hex
        self._lru[sid] = resolver
        while len(self._lru) > self.max_sessions:
            dropped, _ = self._lru.popitem(last=False)
            log("SESSION evicted:", dropped)
        return sid

    def clear(self) -> None:
        self._lru.clear()

    def __len__(self) -> int:
        return len(self._lru)

    def __contains__(self, sid) -> bool:
        return sid in self._lru


# =========================
# STATE (in-memory)
# =========================
sessions = SessionRegistry(config.MAX_SESSIONS)


class LanguageRequest(BaseModel):
    language: str


def is_missing(value) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (dict, list)):
        return False
    return not value


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def open_language_session(request: Request, preferred_language: str | None = None):
    """
    Returns (session_id, resolver) with the resolver bound to this request's
    cookie store and analytics queue. Unknown or missing session ids start a
    new session with the first resolution pass; a known one only re-checks ?lang=.
    preferred_language is the page-supplied language, e.g. from a share link.
    """
    store = CookieStore(request.cookies)
    query = request.url.query

    sid = request.cookies.get(SESSION_COOKIE)
    resolver = sessions.get(sid)
    if resolver is None:
        context = LanguageContext(store, language=initial_language(preferred_language))
        resolver = LanguageResolver(context)
        sid = sessions.add(resolver)
        context.bind(store, Analytics(sid))
        accept_language = request.headers.get("accept-language")
        lang = resolver.mount(
            query,
            preferred_language,
            lambda: browser_language_from_header(accept_language),
        )
        log("LANG mount:", sid, lang)
    else:
        resolver.context.bind(store, Analytics(sid))
        resolver.on_query_change(query)

    return sid, resolver


def close_language_session(response: Response, sid: str, resolver: LanguageResolver) -> Response:
    context = resolver.context
    context.store.apply(response)
    response.set_cookie(SESSION_COOKIE, sid, httponly=True, samesite="lax")
    response.background = BackgroundTask(context.analytics.flush)
    return response


def language_payload(context: LanguageContext) -> dict:
    return {"language": context.language, "isJapanese": context.is_japanese}


@app.api_route("/api/get-gemini-answer", methods=ALL_METHODS)
async def get_gemini_answer(request: Request):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    if request.method != "POST":
        return JSONResponse({"error": "Method Not Allowed"}, status_code=405, headers=CORS_HEADERS)

    body = await read_json(request)
    if not isinstance(body, dict) or is_missing(body.get("quiz")) or is_missing(body.get("style")):
        return JSONResponse({"error": "Missing required fields"}, status_code=400, headers=CORS_HEADERS)

    answer = await get_answer(body, request.headers.get("accept-language"))
    return JSONResponse(answer, status_code=200, headers=CORS_HEADERS)


@app.get("/api/language")
async def get_language(request: Request, preferredLanguage: str | None = None):
    sid, resolver = open_language_session(request, preferredLanguage)
    return close_language_session(JSONResponse(language_payload(resolver.context)), sid, resolver)


@app.post("/api/language")
async def set_language(request: Request, body: LanguageRequest):
    sid, resolver = open_language_session(request)
    lang = resolver.context.set_language(body.language)
    log("LANG switch:", sid, lang)
    return close_language_session(JSONResponse(language_payload(resolver.context)), sid, resolver)


@app.get("/", response_class=HTMLResponse)
async def index(request: Request, preferredLanguage: str | None = None):
    sid, resolver = open_language_session(request, preferredLanguage)
    context = resolver.context
    context.analytics.pageview(str(request.url))

    title = html.escape(get_text("site_title", context.language))
    body = f'<main id="app" data-language="{context.language}"><h1>{title}</h1></main>'
    page = (
        "<!DOCTYPE html>"
        f'<html lang="{context.language}">'
        f'<head><meta charset="utf-8"><title>{title}</title></head>'
        f"<body>{render_app(context, body)}</body>"
        "</html>"
    )
    return close_language_session(HTMLResponse(page), sid, resolver)
