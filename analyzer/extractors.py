"""
Signal Extractors for Conversion Killer Check

Functions that each read one structural or lexical signal from the page
markup. The markup is parsed with BeautifulSoup (lxml); scripts, styles,
templates and comments are dropped before any lookup, so code and
commented-out markup never count as page content. Unterminated tags,
truncated documents or an empty string yield "absent" signals instead
of errors.
"""

import logging
import re
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger(__name__)


# Keyword sets (matched case-insensitively)
TRUST_KEYWORDS = [
    "testimonial",
    "review",
    "rating",
    "trusted by",
    "customers",
    "guarantee",
    "money-back",
    "certified",
    "secure checkout",
    "trustpilot",
    "case stud",
]

URGENCY_KEYWORDS = [
    "limited",
    "today only",
    "ends soon",
    "only a few left",
    "last chance",
    "hurry",
    "while supplies last",
    "expires",
    "countdown",
    "don't miss",
]

LEGAL_KEYWORDS = [
    "impressum",
    "imprint",
    "legal notice",
    "privacy",
    "terms of service",
    "terms and conditions",
    "datenschutz",
]

GENERIC_HEADLINE_PHRASES = [
    "welcome",
    "willkommen",
    "homepage",
    "home page",
    "untitled",
    "hello world",
]

GENERIC_CTA_LABELS = [
    "submit",
    "send",
    "click here",
    "click",
    "learn more",
    "read more",
    "more",
    "continue",
    "next",
    "go",
    "ok",
    "absenden",
    "mehr erfahren",
    "klicken sie hier",
    "weiter",
]

GENERIC_FONT_FAMILIES = {
    "serif",
    "sans-serif",
    "monospace",
    "cursive",
    "fantasy",
    "system-ui",
    "inherit",
    "initial",
    "unset",
    "-apple-system",
    "blinkmacsystemfont",
}

# Thresholds
MIN_HEADLINE_LENGTH = 15
FOLD_OFFSET_RATIO = 0.6

PARSER = "lxml"
NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
NON_VISIBLE_INPUT_TYPES = {"hidden", "submit", "button", "reset", "image"}
CTA_INPUT_TYPES = {"submit", "button"}

_WS_RE = re.compile(r"\s+")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_VIEWPORT_NAME_RE = re.compile(r"^\s*viewport\s*$", re.IGNORECASE)
_PASSWORD_TYPE_RE = re.compile(r"^\s*password\s*$", re.IGNORECASE)
_CONTACT_HREF_RE = re.compile(r"^\s*(?:mailto|tel):", re.IGNORECASE)
_MEDIA_QUERY_RE = re.compile(r"@media\b[^{]*\(\s*(?:max|min)-width", re.IGNORECASE)
_FONT_FAMILY_RE = re.compile(r"font-family\s*:\s*[\"']?\s*([a-z0-9 _-]+)", re.IGNORECASE)
_COPYRIGHT_RE = re.compile(
    r"(?:©|copyright)\s*(?:\d{4}\s*[-–]\s*)?((?:19|20)\d{2})", re.IGNORECASE
)


# ======================
# Parsing
# ======================

def _parse(markup: Optional[str]) -> BeautifulSoup:
    markup = _CONTROL_CHARS_RE.sub("", markup or "")
    try:
        return BeautifulSoup(markup, PARSER)
    except ParserRejectedMarkup as e:
        logger.warning(f"⚠️ Markup rejected by the parser, treating the page as empty: {str(e)}")
        return BeautifulSoup("", PARSER)


class ParsedPage:
    """
    Markup parsed once and shared by every extractor.

    `soup` is the content tree without scripts, styles, templates and
    comments. `css` keeps the stylesheet text and inline style attributes
    taken out of it, for the CSS-based signals.
    """

    def __init__(self, markup: Optional[str]):
        soup = _parse(markup)

        css = [tag.string or "" for tag in soup.find_all("style")]
        css.extend(tag["style"] for tag in soup.find_all(style=True))

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()
        for tag in soup.find_all(NON_CONTENT_TAGS):
            tag.extract()

        self.soup = soup
        self.css = "\n".join(css)

    @property
    def root(self) -> Tag:
        """The <body> when the parser produced one, else the whole document."""
        return self.soup.body or self.soup


MarkupOrPage = Union[str, ParsedPage, None]


def _page(markup: MarkupOrPage) -> ParsedPage:
    return markup if isinstance(markup, ParsedPage) else ParsedPage(markup)


# ======================
# Text helpers
# ======================

def _text(tag: Tag) -> str:
    return _WS_RE.sub(" ", tag.get_text(" ")).strip()


def clean_text(fragment: Union[str, Tag, None]) -> str:
    """Strip tags, decode entities and collapse whitespace."""
    if fragment is None:
        return ""
    if not isinstance(fragment, Tag):
        if not fragment:
            return ""
        fragment = _parse(fragment)
    return _text(fragment)


def _visible_text(page: ParsedPage) -> str:
    return _text(page.soup).lower()


def _contains_any(markup: MarkupOrPage, keywords: List[str]) -> bool:
    """Keywords must start at a word boundary ("rating" does not match "operating")."""
    text = _visible_text(_page(markup))
    return any(re.search(r"\b" + re.escape(keyword), text) for keyword in keywords)


# ======================
# Structural presence
# ======================

def first_heading_text(markup: MarkupOrPage) -> Optional[str]:
    """
    Return the cleaned text of the page's main heading.

    The first <h1> wins; without one the first heading of any level is used.
    Returns None when the page has no heading at all and "" when the heading
    exists but carries no text (e.g. a logo image).
    """
    soup = _page(markup).soup
    heading = soup.find("h1")
    if heading is None:
        heading = soup.find(HEADING_TAGS)
    if heading is None:
        return None
    return _text(heading)


def _is_cta(tag: Tag) -> bool:
    if tag.name == "button":
        return True
    if tag.name == "input":
        return (tag.get("type") or "").strip().lower() in CTA_INPUT_TYPES
    return (tag.get("role") or "").strip().lower() == "button"


def _cta_label(tag: Tag) -> str:
    if tag.name == "input":
        return _WS_RE.sub(" ", tag.get("value") or "").strip()
    return _text(tag) or (tag.get("aria-label") or "").strip()


def _first_cta(page: ParsedPage) -> Optional[Tag]:
    return page.root.find(_is_cta)


def first_cta_label(markup: MarkupOrPage) -> Optional[str]:
    """
    Return the label of the first call-to-action control.

    Buttons, submit/button inputs and role="button" elements count. Returns
    None when the page has none and "" when the control has no readable label.
    """
    cta = _first_cta(_page(markup))
    if cta is None:
        return None
    return _cta_label(cta)


def has_viewport_meta(markup: MarkupOrPage) -> bool:
    return _page(markup).soup.find("meta", attrs={"name": _VIEWPORT_NAME_RE}) is not None


def has_media_queries(markup: MarkupOrPage) -> bool:
    """Inline CSS contains width-based media queries (responsive hint)."""
    return bool(_MEDIA_QUERY_RE.search(_page(markup).css))


def has_password_input(markup: MarkupOrPage) -> bool:
    return _page(markup).soup.find("input", attrs={"type": _PASSWORD_TYPE_RE}) is not None


def has_form(markup: MarkupOrPage) -> bool:
    return _page(markup).soup.find("form") is not None


def has_contact_path(markup: MarkupOrPage) -> bool:
    """A form, mailto: link or tel: link gives visitors a way to get in touch."""
    page = _page(markup)
    return has_form(page) or page.soup.find("a", href=_CONTACT_HREF_RE) is not None


# ======================
# Counting
# ======================

def count_form_fields(markup: MarkupOrPage) -> int:
    """Count visible input, select and textarea fields."""
    count = 0
    for field in _page(markup).soup.find_all(["input", "select", "textarea"]):
        if field.name == "input":
            input_type = (field.get("type") or "text").strip().lower()
            if input_type in NON_VISIBLE_INPUT_TYPES:
                continue
        count += 1
    return count


def count_nav_links(markup: MarkupOrPage) -> int:
    return sum(
        1 for link in _page(markup).soup.find_all("a") if link.find_parent("nav") is not None
    )


def count_font_families(markup: MarkupOrPage) -> int:
    """Count distinct primary font families declared in inline CSS."""
    families = set()
    for declaration in _FONT_FAMILY_RE.findall(_page(markup).css):
        primary = declaration.strip().lower()
        if primary and primary not in GENERIC_FONT_FAMILIES and primary != "var":
            families.add(primary)
    return len(families)


def count_images_missing_alt(markup: MarkupOrPage) -> int:
    """Images without an alt attribute (decorative alt="" is accepted)."""
    return sum(1 for img in _page(markup).soup.find_all("img") if img.get("alt") is None)


# ======================
# Lexical presence
# ======================

def has_trust_signals(markup: MarkupOrPage) -> bool:
    return _contains_any(markup, TRUST_KEYWORDS)


def has_urgency_cues(markup: MarkupOrPage) -> bool:
    return _contains_any(markup, URGENCY_KEYWORDS)


def has_legal_notice(markup: MarkupOrPage) -> bool:
    return _contains_any(markup, LEGAL_KEYWORDS)


# ======================
# Text quality
# ======================

def is_weak_headline(text: Optional[str]) -> bool:
    """Too short, empty, or built on a generic phrase like "Welcome"."""
    if text is None:
        return False
    lowered = text.lower()
    if len(text) < MIN_HEADLINE_LENGTH:
        return True
    return any(re.search(rf"\b{re.escape(p)}\b", lowered) for p in GENERIC_HEADLINE_PHRASES)


def is_generic_cta(label: Optional[str]) -> bool:
    """Empty labels and stock labels like "Submit" say nothing about the benefit."""
    if label is None:
        return False
    normalized = label.lower().strip(" .!?>»→")
    return not normalized or normalized in GENERIC_CTA_LABELS


# ======================
# Positional
# ======================

def cta_offset_ratio(markup: MarkupOrPage) -> Optional[float]:
    """
    Position of the first CTA as a fraction of the body text.

    Measured as the share of visible text that comes before the same
    control first_cta_label() reports. Returns None when the page has no CTA.
    """
    page = _page(markup)
    cta = _first_cta(page)
    if cta is None:
        return None

    before = 0
    total = 0
    for node in page.root.descendants:
        if node is cta:
            before = total
        elif isinstance(node, NavigableString) and not isinstance(node, Doctype):
            total += len(node.strip())

    if not total:
        return 0.0
    return before / total


def is_below_fold(ratio: Optional[float]) -> bool:
    return ratio is not None and ratio > FOLD_OFFSET_RATIO


# ======================
# Freshness
# ======================

def latest_copyright_year(markup: MarkupOrPage) -> Optional[int]:
    years = [int(year) for year in _COPYRIGHT_RE.findall(_text(_page(markup).soup))]
    return max(years) if years else None


# ======================
# Aggregation
# ======================

class PageSignals:
    """
    Snapshot of every extraction signal for one request.

    Performance signals are attached separately by the backend when a
    PageSpeed check ran.
    """

    def __init__(
        self,
        url: str,
        current_year: int,
        heading_text: Optional[str] = None,
        cta_label: Optional[str] = None,
        cta_ratio: Optional[float] = None,
        has_viewport_meta: bool = False,
        has_media_queries: bool = False,
        has_password_input: bool = False,
        has_contact_path: bool = False,
        form_field_count: int = 0,
        nav_link_count: int = 0,
        font_family_count: int = 0,
        images_missing_alt: int = 0,
        has_trust_signals: bool = False,
        has_urgency_cues: bool = False,
        has_legal_notice: bool = False,
        copyright_year: Optional[int] = None,
        performance=None,
    ):
        self.url = url
        self.current_year = current_year
        self.heading_text = heading_text
        self.cta_label = cta_label
        self.cta_ratio = cta_ratio
        self.has_viewport_meta = has_viewport_meta
        self.has_media_queries = has_media_queries
        self.has_password_input = has_password_input
        self.has_contact_path = has_contact_path
        self.form_field_count = form_field_count
        self.nav_link_count = nav_link_count
        self.font_family_count = font_family_count
        self.images_missing_alt = images_missing_alt
        self.has_trust_signals = has_trust_signals
        self.has_urgency_cues = has_urgency_cues
        self.has_legal_notice = has_legal_notice
        self.copyright_year = copyright_year
        self.performance = performance

    @property
    def is_https(self) -> bool:
        return urlparse(self.url).scheme == "https"

    def __repr__(self):
        return f"<PageSignals url={self.url!r} heading={self.heading_text!r} cta={self.cta_label!r}>"


def extract_signals(markup: Optional[str], url: str, current_year: int) -> PageSignals:
    """Parse the markup once and run every extractor over it."""
    page = ParsedPage(markup)
    return PageSignals(
        url=url,
        current_year=current_year,
        heading_text=first_heading_text(page),
        cta_label=first_cta_label(page),
        cta_ratio=cta_offset_ratio(page),
        has_viewport_meta=has_viewport_meta(page),
        has_media_queries=has_media_queries(page),
        has_password_input=has_password_input(page),
        has_contact_path=has_contact_path(page),
        form_field_count=count_form_fields(page),
        nav_link_count=count_nav_links(page),
        font_family_count=count_font_families(page),
        images_missing_alt=count_images_missing_alt(page),
        has_trust_signals=has_trust_signals(page),
        has_urgency_cues=has_urgency_cues(page),
        has_legal_notice=has_legal_notice(page),
        copyright_year=latest_copyright_year(page),
    )


def summarize_page(markup: Optional[str], url: str, max_items: int = 8) -> Dict:
    """
    Structured page summary handed to the LLM backend.

    Keeps the prompt small: title, headings, CTA labels, a few counts and an
    excerpt of the visible text.
    """
    page = ParsedPage(markup)
    title = page.soup.find("title")
    headings = [
        f"{tag.name}: {_text(tag)}" for tag in page.soup.find_all(HEADING_TAGS) if _text(tag)
    ][:max_items]
    buttons = [label for label in map(_cta_label, page.root.find_all(_is_cta)) if label][:max_items]

    return {
        "url": url,
        "title": _text(title) if title is not None else "",
        "headings": headings,
        "buttons": buttons,
        "form_fields": count_form_fields(page),
        "nav_links": count_nav_links(page),
        "images_missing_alt": count_images_missing_alt(page),
        "has_viewport_meta": has_viewport_meta(page),
        "has_trust_signals": has_trust_signals(page),
        "has_legal_notice": has_legal_notice(page),
        "text_excerpt": _text(page.root)[:1500],
    }
