# utils.py
import config


def log(*args):
    if config.DEBUG:
        print(*args)


def normalize(s: str | None) -> str:
    return (s or "").strip()
