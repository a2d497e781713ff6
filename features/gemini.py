# features/gemini.py
import httpx

import config
from languages import PROMPT_TEMPLATE, get_text
from utils import log

AVATAR_URL = "https://lh3.googleusercontent.com/a/ACg8ocL6It7Up3pLC6Zexk19oNK4UQTd_iIz5eXXHxWjZrBxH_cN=s48-c"

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}


def is_japanese_request(accept_language: str | None) -> bool:
    return "ja" in (accept_language or "en")


def select_localized(quiz: dict, style: dict, is_japanese: bool) -> dict:
    """
    Picks the _ja or _en fields of quiz/style.
    Raises if quiz or style is not a mapping.
    """
    suffix = "ja" if is_japanese else "en"
    return {
        "content": quiz.get(f"content_{suffix}", ""),
        "style_name": style.get(f"name_{suffix}", ""),
        "style_description": style.get(f"description_{suffix}", ""),
    }


def build_prompt(fields: dict) -> str:
    return PROMPT_TEMPLATE.format(
        content=fields["content"],
        style_name=fields["style_name"],
        style_description=fields["style_description"],
    )


async def mock_answer(fields: dict, lang: str) -> str:
    return get_text("mock_no_key", lang).format(
        content=fields["content"], style_name=fields["style_name"]
    )


async def ask_gemini(fields: dict, api_key: str) -> str:
    payload = {
        "contents": [{"parts": [{"text": build_prompt(fields)}]}],
        "generationConfig": GENERATION_CONFIG,
    }
    async with httpx.AsyncClient(timeout=config.GEMINI_TIMEOUT) as client:
        # Key stays out of the URL: error text is echoed into fallback answers
        r = await client.post(
            config.GEMINI_ENDPOINT, headers={"x-goog-api-key": api_key}, json=payload
        )
        log("GEMINI status:", r.status_code)
        if r.status_code >= 400:
            log("GEMINI error:", r.text)
        r.raise_for_status()
        return r.json()["candidates"][0]["content"]["parts"][0]["text"].strip()


def pick_provider(api_key: str):
    """Returns (mode, provider): "mock" without a credential, "live" otherwise."""
    if not api_key:
        return "mock", lambda fields, lang: mock_answer(fields, lang)
    return "live", lambda fields, lang: ask_gemini(fields, api_key)


def error_answer(body, is_japanese: bool, error: Exception) -> str:
    lang = "ja" if is_japanese else "en"
    try:
        fields = select_localized(body["quiz"], body["style"], is_japanese)
        return get_text("mock_error", lang).format(
            content=fields["content"], style_name=fields["style_name"], error=str(error)
        )
    except Exception as e:
        log("Fallback rebuild failed:", repr(e))
        return generic_error_answer(is_japanese)


def generic_error_answer(is_japanese: bool) -> str:
    return get_text("mock_error_generic", "ja" if is_japanese else "en")


async def get_answer(body: dict, accept_language: str | None) -> dict:
    """
    Produces {content, avatar_url} for a validated body.
    Never raises: every failure becomes a mock answer.
    """
    is_japanese = is_japanese_request(accept_language)
    lang = "ja" if is_japanese else "en"

    try:
        fields = select_localized(body["quiz"], body["style"], is_japanese)
        mode, provider = pick_provider(config.gemini_api_key())
        log("ANSWER mode:", mode, "lang:", lang)
        content = await provider(fields, lang)
    except Exception as e:
        log("Error:", repr(e))
        content = error_answer(body, is_japanese, e)

    return {"content": content, "avatar_url": AVATAR_URL}
