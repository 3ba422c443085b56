"""Common literal values used across selfhelp_pages.

These constants keep route syntax, cache defaults, and payload keys
centralized so the compiler, resolver, templates, and tests import the same
values without drifting. Intended for internal use within the
selfhelp_pages package.

Examples
--------
>>> from selfhelp_pages import _constants
>>> sorted(_constants.ROUTE_TYPE_PATTERNS)
['a', 'h', 'i', 's']
>>> _constants.SECTION_CLASS_TEMPLATE.format(id=7)
'section-7'
"""

ROUTE_TYPE_PATTERNS: dict[str, str] = {
    "i": r"[0-9]+",
    "a": r"[0-9A-Za-z]+",
    "s": r"[0-9A-Za-z_-]+",
    "h": r"[0-9A-Fa-f]+",
}

DEFAULT_CACHE_TTL = 1.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_PROTOCOL = ("GET",)

RESPONSE_ENVELOPE_KEY = "data"
ALL_LANGUAGES_KEY = "all"

SECTION_CLASS_TEMPLATE = "section-{id}"
UNKNOWN_STYLE_CLASS = "unknown-style"
