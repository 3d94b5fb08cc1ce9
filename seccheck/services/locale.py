from typing import Any, Mapping, Optional

from seccheck.core.config import settings


def _match(value: str) -> Optional[str]:
    value = value.strip().lower()
    for lang in settings.supported_languages:
        if value.startswith(lang):
            return lang
    return None


def detect_language(
    attributes: Mapping[str, Any], accept_language: Optional[str] = None
) -> str:
    """Pick the lead's locale.

    An explicit ``language``/``lang``/``locale`` attribute wins, then the
    first tag of the ``Accept-Language`` header, then
    ``settings.DEFAULT_LANGUAGE``.
    """
    for key in ("language", "lang", "locale"):
        raw = attributes.get(key)
        if raw:
            matched = _match(str(raw))
            if matched:
                return matched

    if accept_language:
        matched = _match(accept_language.split(",")[0])
        if matched:
            return matched

    return settings.DEFAULT_LANGUAGE
