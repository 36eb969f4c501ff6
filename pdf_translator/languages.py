"""Languages accepted by the translation service.

Codes follow the service's ISO-639 identifiers; a few languages accept two
codes (for example `he` and `iw` for Hebrew).
"""

from __future__ import annotations

SUPPORTED_LANGUAGES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Afrikaans", ("af",)),
    ("Albanian", ("sq",)),
    ("Amharic", ("am",)),
    ("Arabic", ("ar",)),
    ("Armenian", ("hy",)),
    ("Assamese", ("as",)),
    ("Aymara", ("ay",)),
    ("Azerbaijani", ("az",)),
    ("Bambara", ("bm",)),
    ("Basque", ("eu",)),
    ("Belarusian", ("be",)),
    ("Bengali", ("bn",)),
    ("Bhojpuri", ("bho",)),
    ("Bosnian", ("bs",)),
    ("Bulgarian", ("bg",)),
    ("Catalan", ("ca",)),
    ("Cebuano", ("ceb",)),
    ("Chinese (Simplified)", ("zh-CN", "zh")),
    ("Chinese (Traditional)", ("zh-TW",)),
    ("Corsican", ("co",)),
    ("Czech", ("cs",)),
    ("Danish", ("da",)),
    ("Dhivehi", ("dv",)),
    ("Dogri", ("doi",)),
    ("Dutch", ("nl",)),
    ("English", ("en",)),
    ("Esperanto", ("eo",)),
    ("Estonian", ("et",)),
    ("Ewe", ("ee",)),
    ("Filipino (Tagalog)", ("fil",)),
    ("Finnish", ("fi",)),
    ("French", ("fr",)),
    ("Frisian", ("fy",)),
    ("Galician", ("gl",)),
    ("Georgian", ("ka",)),
    ("German", ("de",)),
    ("Greek", ("el",)),
    ("Guarani", ("gn",)),
    ("Gujarati", ("gu",)),
    ("Haitian Creole", ("ht",)),
    ("Hausa", ("ha",)),
    ("Hawaiian", ("haw",)),
    ("Hebrew", ("he", "iw")),
    ("Hindi", ("hi",)),
    ("Hmong", ("hmn",)),
    ("Hungarian", ("hu",)),
    ("Icelandic", ("is",)),
    ("Igbo", ("ig",)),
    ("Ilocano", ("ilo",)),
    ("Indonesian", ("id",)),
    ("Irish", ("ga",)),
    ("Italian", ("it",)),
    ("Japanese", ("ja",)),
    ("Javanese", ("jv", "jw")),
    ("Kannada", ("kn",)),
    ("Kazakh", ("kk",)),
    ("Khmer", ("km",)),
    ("Kinyarwanda", ("rw",)),
    ("Konkani", ("gom",)),
    ("Korean", ("ko",)),
    ("Krio", ("kri",)),
    ("Kurdish", ("ku",)),
    ("Kurdish (Sorani)", ("ckb",)),
    ("Kyrgyz", ("ky",)),
    ("Lao", ("lo",)),
    ("Latin", ("la",)),
    ("Latvian", ("lv",)),
    ("Lingala", ("ln",)),
    ("Lithuanian", ("lt",)),
    ("Luganda", ("lg",)),
    ("Luxembourgish", ("lb",)),
    ("Macedonian", ("mk",)),
    ("Maithili", ("mai",)),
    ("Malagasy", ("mg",)),
    ("Malay", ("ms",)),
    ("Malayalam", ("ml",)),
    ("Maltese", ("mt",)),
    ("Maori", ("mi",)),
    ("Marathi", ("mr",)),
    ("Meiteilon (Manipuri)", ("mni-Mtei",)),
    ("Mizo", ("lus",)),
    ("Mongolian", ("mn",)),
    ("Myanmar (Burmese)", ("my",)),
    ("Nepali", ("ne",)),
    ("Norwegian", ("no",)),
    ("Nyanja (Chichewa)", ("ny",)),
    ("Odia (Oriya)", ("or",)),
    ("Oromo", ("om",)),
    ("Pashto", ("ps",)),
    ("Persian", ("fa",)),
    ("Polish", ("pl",)),
    ("Portuguese (Portugal, Brazil)", ("pt",)),
    ("Punjabi", ("pa",)),
    ("Quechua", ("qu",)),
    ("Romanian", ("ro",)),
    ("Russian", ("ru",)),
    ("Samoan", ("sm",)),
    ("Sanskrit", ("sa",)),
    ("Scots Gaelic", ("gd",)),
    ("Sepedi", ("nso",)),
    ("Serbian", ("sr",)),
    ("Sesotho", ("st",)),
    ("Shona", ("sn",)),
    ("Sindhi", ("sd",)),
    ("Sinhala (Sinhalese)", ("si",)),
    ("Slovak", ("sk",)),
    ("Slovenian", ("sl",)),
    ("Somali", ("so",)),
    ("Spanish", ("es",)),
    ("Sundanese", ("su",)),
    ("Swahili", ("sw",)),
    ("Swedish", ("sv",)),
    ("Tagalog (Filipino)", ("tl",)),
    ("Tajik", ("tg",)),
    ("Tamil", ("ta",)),
    ("Tatar", ("tt",)),
    ("Telugu", ("te",)),
    ("Thai", ("th",)),
    ("Tigrinya", ("ti",)),
    ("Tsonga", ("ts",)),
    ("Turkish", ("tr",)),
    ("Turkmen", ("tk",)),
    ("Twi (Akan)", ("ak",)),
    ("Ukrainian", ("uk",)),
    ("Urdu", ("ur",)),
    ("Uyghur", ("ug",)),
    ("Uzbek", ("uz",)),
    ("Vietnamese", ("vi",)),
    ("Welsh", ("cy",)),
    ("Xhosa", ("xh",)),
    ("Yiddish", ("yi",)),
    ("Yoruba", ("yo",)),
    ("Zulu", ("zu",)),
)

_SUPPORTED_CODES = frozenset(
    code.lower() for _name, codes in SUPPORTED_LANGUAGES for code in codes
)


def is_supported(code: str) -> bool:
    """Return whether `code` is a known language code (case-insensitive)."""

    return code.strip().lower() in _SUPPORTED_CODES


def language_table_rows(name_width: int = 30, code_width: int = 12) -> list[str]:
    """Return an aligned two-column listing of names and codes."""

    rows = [
        f"{'Language':<{name_width}} | {'ISO-639 Code':<{code_width}}",
        f"{'':-<{name_width}}---{'':-<{code_width}}",
    ]
    for name, codes in SUPPORTED_LANGUAGES:
        rows.append(f"{name:<{name_width}} -> {' or '.join(codes):<{code_width}}".rstrip())
    return rows
