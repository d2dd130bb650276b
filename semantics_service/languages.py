"""Supported languages for semantic label queries.

The registry is closed: a code outside ``Language`` is rejected before any
store access, and failure payloads carry ``supported_languages()`` so clients
can correct themselves.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class Language(str, Enum):
    AF = "af"
    SQ = "sq"
    AR = "ar"
    HY = "hy"
    BN = "bn"
    BG = "bg"
    CA = "ca"
    ZH = "zh"
    HR = "hr"
    CS = "cs"
    DA = "da"
    NL = "nl"
    EN = "en"
    ET = "et"
    FI = "fi"
    FR = "fr"
    DE = "de"
    EL = "el"
    HE = "he"
    HI = "hi"
    HU = "hu"
    IS = "is"
    ID = "id"
    IT = "it"
    JA = "ja"
    KO = "ko"
    LV = "lv"
    LT = "lt"
    NO = "no"
    FA = "fa"
    PL = "pl"
    PT = "pt"
    RO = "ro"
    RU = "ru"
    SK = "sk"
    SL = "sl"
    ES = "es"
    SV = "sv"
    TL = "tl"
    TH = "th"
    TR = "tr"
    UK = "uk"
    UR = "ur"
    VI = "vi"


LANGUAGE_NAMES: Dict[Language, str] = {
    Language.AF: "Afrikaans",
    Language.SQ: "Albanian",
    Language.AR: "Arabic",
    Language.HY: "Armenian",
    Language.BN: "Bengali",
    Language.BG: "Bulgarian",
    Language.CA: "Catalan",
    Language.ZH: "Chinese",
    Language.HR: "Croatian",
    Language.CS: "Czech",
    Language.DA: "Danish",
    Language.NL: "Dutch",
    Language.EN: "English",
    Language.ET: "Estonian",
    Language.FI: "Finnish",
    Language.FR: "French",
    Language.DE: "German",
    Language.EL: "Greek",
    Language.HE: "Hebrew",
    Language.HI: "Hindi",
    Language.HU: "Hungarian",
    Language.IS: "Icelandic",
    Language.ID: "Indonesian",
    Language.IT: "Italian",
    Language.JA: "Japanese",
    Language.KO: "Korean",
    Language.LV: "Latvian",
    Language.LT: "Lithuanian",
    Language.NO: "Norwegian",
    Language.FA: "Persian",
    Language.PL: "Polish",
    Language.PT: "Portuguese",
    Language.RO: "Romanian",
    Language.RU: "Russian",
    Language.SK: "Slovak",
    Language.SL: "Slovenian",
    Language.ES: "Spanish",
    Language.SV: "Swedish",
    Language.TL: "Tagalog",
    Language.TH: "Thai",
    Language.TR: "Turkish",
    Language.UK: "Ukrainian",
    Language.UR: "Urdu",
    Language.VI: "Vietnamese",
}

_BY_CODE: Dict[str, Language] = {lang.value: lang for lang in Language}


def parse_language(code: Optional[str]) -> Optional[Language]:
    if not isinstance(code, str) or len(code) != 2:
        return None
    return _BY_CODE.get(code)


def is_valid_language(code: Optional[str]) -> bool:
    return parse_language(code) is not None


def language_name(lang: Language) -> str:
    return LANGUAGE_NAMES[lang]


def supported_languages() -> Dict[str, str]:
    return {lang.value: name for lang, name in LANGUAGE_NAMES.items()}
