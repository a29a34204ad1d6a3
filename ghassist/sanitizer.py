"""Removal of hidden or smuggled instructions from untrusted GitHub text.

Each stage is a total ``str -> str`` function. ``sanitize_content`` applies
them in a fixed order (attributes are stripped before entities are decoded,
entities are decoded before tokens are redacted) and repeats the pass until
the text stops changing, so the result is stable under re-sanitization.
"""

from __future__ import annotations

import re

REDACTED_TOKEN_MARKER = "[REDACTED_GITHUB_TOKEN]"

_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\ufeff]")
_CONTROL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_SOFT_HYPHEN_RE = re.compile("\u00ad")
_BIDI_RE = re.compile("[\u202a-\u202e\u2066-\u2069]")

_IMAGE_ALT_RE = re.compile(r"!\[[^\]]*\]\(")
_LINK_TITLE_DOUBLE_RE = re.compile(r'(\[[^\]]*\]\([^)]+)\s+"[^"]*"')
_LINK_TITLE_SINGLE_RE = re.compile(r"(\[[^\]]*\]\([^)]+)\s+'[^']*'")

_HIDDEN_ATTRIBUTE_NAMES = (r"alt", r"title", r"aria-label", r"data-[a-zA-Z0-9-]+", r"placeholder")
_HIDDEN_ATTRIBUTE_RES = [
    pattern
    for name in _HIDDEN_ATTRIBUTE_NAMES
    for pattern in (
        re.compile(rf"\s{name}\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE),
        re.compile(rf"\s{name}\s*=\s*[^\s>]+", re.IGNORECASE),
    )
]

_DECIMAL_ENTITY_RE = re.compile(r"&#(\d+);")
_HEX_ENTITY_RE = re.compile(r"&#x([0-9a-fA-F]+);")

_TOKEN_RES = (
    # classic personal access tokens
    re.compile(r"\bghp_[A-Za-z0-9]{36}\b", re.ASCII),
    # OAuth tokens
    re.compile(r"\bgho_[A-Za-z0-9]{36}\b", re.ASCII),
    # installation tokens
    re.compile(r"\bghs_[A-Za-z0-9]{36}\b", re.ASCII),
    # refresh tokens
    re.compile(r"\bghr_[A-Za-z0-9]{36}\b", re.ASCII),
    # fine-grained personal access tokens
    re.compile(r"\bgithub_pat_[A-Za-z0-9_]{11,221}\b", re.ASCII),
)


def strip_html_comments(content: str) -> str:
    return _HTML_COMMENT_RE.sub("", content)


def strip_invisible_characters(content: str) -> str:
    content = _ZERO_WIDTH_RE.sub("", content)
    content = _CONTROL_RE.sub("", content)
    content = _SOFT_HYPHEN_RE.sub("", content)
    return _BIDI_RE.sub("", content)


def strip_markdown_image_alt_text(content: str) -> str:
    return _IMAGE_ALT_RE.sub("![](", content)


def strip_markdown_link_titles(content: str) -> str:
    content = _LINK_TITLE_DOUBLE_RE.sub(r"\1", content)
    return _LINK_TITLE_SINGLE_RE.sub(r"\1", content)


def strip_hidden_attributes(content: str) -> str:
    for pattern in _HIDDEN_ATTRIBUTE_RES:
        content = pattern.sub("", content)
    return content


def _printable_ascii_or_empty(code: int) -> str:
    if 32 <= code <= 126:
        return chr(code)
    return ""


def normalize_html_entities(content: str) -> str:
    """Decode numeric character references that map to printable ASCII; drop the rest."""
    content = _DECIMAL_ENTITY_RE.sub(lambda m: _printable_ascii_or_empty(int(m.group(1))), content)
    return _HEX_ENTITY_RE.sub(lambda m: _printable_ascii_or_empty(int(m.group(1), 16)), content)


def redact_github_tokens(content: str) -> str:
    for pattern in _TOKEN_RES:
        content = pattern.sub(REDACTED_TOKEN_MARKER, content)
    return content


_PIPELINE = (
    strip_html_comments,
    strip_invisible_characters,
    strip_markdown_image_alt_text,
    strip_markdown_link_titles,
    strip_hidden_attributes,
    normalize_html_entities,
    redact_github_tokens,
)


def _sanitize_once(content: str) -> str:
    for stage in _PIPELINE:
        content = stage(content)
    return content


def sanitize_content(content: str | None) -> str:
    if not content:
        return ""
    current = content
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
