"""Language table shared with the translation service, and the selected pair."""

from __future__ import annotations

from dataclasses import dataclass

# Must stay in lockstep with the service's own table.
LANGUAGES = {
    "afrikaans": "af", "albanian": "sq", "amharic": "am", "arabic": "ar",
    "armenian": "hy", "azerbaijani": "az", "basque": "eu", "belarusian": "be",
    "bengali": "bn", "bosnian": "bs", "bulgarian": "bg", "catalan": "ca",
    "cebuano": "ceb", "chichewa": "ny", "chinese (simplified)": "zh-cn",
    "chinese (traditional)": "zh-tw", "corsican": "co", "croatian": "hr",
    "czech": "cs", "danish": "da", "dutch": "nl", "english": "en", "esperanto": "eo",
    "estonian": "et", "filipino": "tl", "finnish": "fi", "french": "fr",
    "frisian": "fy", "galician": "gl", "georgian": "ka", "german": "de",
    "greek": "el", "gujarati": "gu", "haitian creole": "ht", "hausa": "ha",
    "hawaiian": "haw", "hebrew": "he", "hindi": "hi", "hmong": "hmn", "hungarian": "hu",
    "icelandic": "is", "igbo": "ig", "indonesian": "id", "irish": "ga", "italian": "it",
    "japanese": "ja", "javanese": "jw", "kannada": "kn", "kazakh": "kk", "khmer": "km",
    "korean": "ko", "kurdish (kurmanji)": "ku", "kyrgyz": "ky", "lao": "lo", "latin": "la",
    "latvian": "lv", "lithuanian": "lt", "luxembourgish": "lb", "macedonian": "mk",
    "malagasy": "mg", "malay": "ms", "malayalam": "ml", "maltese": "mt", "maori": "mi",
    "marathi": "mr", "mongolian": "mn", "myanmar (burmese)": "my", "nepali": "ne",
    "norwegian": "no", "odia": "or", "pashto": "ps", "persian": "fa", "polish": "pl",
    "portuguese": "pt", "punjabi": "pa", "romanian": "ro", "russian": "ru",
    "samoan": "sm", "scots gaelic": "gd", "serbian": "sr", "sesotho": "st", "shona": "sn",
    "sindhi": "sd", "sinhala": "si", "slovak": "sk", "slovenian": "sl", "somali": "so",
    "spanish": "es", "sundanese": "su", "swahili": "sw", "swedish": "sv", "tajik": "tg",
    "tamil": "ta", "telugu": "te", "thai": "th", "turkish": "tr", "ukrainian": "uk",
    "urdu": "ur", "uyghur": "ug", "uzbek": "uz", "vietnamese": "vi", "welsh": "cy",
    "xhosa": "xh", "yiddish": "yi", "yoruba": "yo", "zulu": "zu",
}

_NAMES_BY_CODE = {code: name for name, code in LANGUAGES.items()}

DEFAULT_SOURCE = "english"
DEFAULT_TARGET = "hindi"


def code_for(name: str) -> str:
    return LANGUAGES[name]


def name_for_code(code: str) -> str:
    """Resolve a wire code back to its display name, or return the code itself."""
    return _NAMES_BY_CODE.get(code.lower(), code)


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass(frozen=True)
class LanguagePair:
    source: str = DEFAULT_SOURCE
    target: str = DEFAULT_TARGET

    def __post_init__(self) -> None:
        _require_known(self.source)
        _require_known(self.target)

    @property
    def source_code(self) -> str:
        return LANGUAGES[self.source]

    @property
    def target_code(self) -> str:
        return LANGUAGES[self.target]

    def swap(self) -> "LanguagePair":
        return LanguagePair(source=self.target, target=self.source)

    def label(self) -> str:
        return f"{display_name(self.source)} → {display_name(self.target)}"


def _require_known(name: str) -> None:
    if name not in LANGUAGES:
        raise ValueError(f"unknown language: {name!r}")
