# ------------------------------------------------------------
# language.py — 제목 텍스트로 영상 언어 감지 (langdetect)
# ------------------------------------------------------------

import logging
from typing import Optional

from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException

from . import config

logger = logging.getLogger(__name__)

# langdetect는 확률 기반이라 시드를 고정해야 같은 제목에 항상 같은 결과가 나옴
DetectorFactory.seed = 0


def detect_language(text: str, default: Optional[str] = None) -> str:
    """
    text의 언어 코드를 반환합니다. ("zh-cn" → "zh"처럼 주 언어 코드만 사용)
    감지할 특징이 없는 텍스트(빈 문자열, 숫자/기호만 있는 제목)면 default(기본 DEFAULT_LANGUAGE).
    """
    default = default or config.DEFAULT_LANGUAGE
    if not text or not text.strip():
        return default
    try:
        return detect(text).split("-")[0].lower()
    except LangDetectException:
        logger.info("Could not detect language of %r, using %s", text, default)
        return default
