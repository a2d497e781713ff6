SUPPORTED_LANGUAGES = ("ja", "en")
DEFAULT_LANGUAGE = "ja"

TEXTS = {
    "site_title": {
        "ja": "InGrokMind - Grokスタイルでの回答評価",
        "en": "InGrokMind - Answers in Grok style",
    },
    "mock_no_key": {
        "ja": "※APIキーが設定されていないため、モックデータを表示しています。{content}について、{style_name}の口調で回答します。これはGeminiのモデル回答です。",
        "en": "※API key is not configured, showing mock data. I'll answer about {content} in {style_name} style. This is a model answer from Gemini.",
    },
    "mock_error": {
        "ja": "※エラーが発生したため、モックデータを表示しています。{content}について、{style_name}の口調で回答します。これはGeminiのモデル回答です。エラー: {error}",
        "en": "※An error occurred, showing mock data. I'll answer about {content} in {style_name} style. This is a model answer from Gemini. Error: {error}",
    },
    "mock_error_generic": {
        "ja": "※エラーが発生したため、モックデータを表示しています。これはGeminiのモデル回答です。",
        "en": "※An error occurred, showing mock data. This is a model answer from Gemini.",
    },
}

# The prompt stays in Japanese whatever the UI language; the selected fields carry the locale.
PROMPT_TEMPLATE = (
    "以下の雑学お題について回答してください:\n\n"
    "お題: {content}\n"
    "指定された口調: {style_name}\n"
    "指定口調の説明: {style_description}\n\n"
    "注意: \n"
    "- 回答は指定された口調で行ってください\n"
    "- 事実に基づいた正確な情報を提供してください\n"
    "- 回答は200〜300文字程度にしてください"
)


def get_text(key: str, lang: str) -> str:
    return TEXTS.get(key, {}).get(lang) or TEXTS.get(key, {}).get("en") or ""
