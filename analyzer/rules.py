"""
Defect Rules for Conversion Killer Check

The rule catalog is a declarative, ordered table. Each entry maps the
extraction signals of one page to at most one conversion killer. The
declaration order is the display priority: when more killers trigger than
can be shown, the earliest entries win.
"""

from typing import Callable, List, Optional, Sequence

from api.models import Defect
from analyzer.extractors import PageSignals, is_below_fold, is_generic_cta, is_weak_headline


# Thresholds
CRITICAL_PERFORMANCE_SCORE = 50
MODERATE_PERFORMANCE_SCORE = 90
MIN_ACCESSIBILITY_SCORE = 70
MAX_FORM_FIELDS = 5
MAX_NAV_LINKS = 10
MAX_FONT_FAMILIES = 3


class Rule:
    """One catalog entry: trigger predicate plus detail template."""

    def __init__(
        self,
        rule_id: str,
        title: str,
        trigger: Callable[[PageSignals], bool],
        detail: Callable[[PageSignals], str],
        source: str = "markup",
    ):
        self.rule_id = rule_id
        self.title = title
        self.trigger = trigger
        self.detail = detail
        self.source = source

    def __repr__(self):
        return f"<Rule '{self.rule_id}' source={self.source}>"

    def evaluate(self, signals: PageSignals) -> Optional[Defect]:
        """Return the Defect when the rule triggers, None otherwise."""
        if self.source == "performance" and signals.performance is None:
            return None
        if not self.trigger(signals):
            return None
        return Defect(title=self.title, detail=self.detail(signals), rule_id=self.rule_id)


# ======================
# Detail templates
# ======================

def _quoted(excerpt: Optional[str], max_length: int = 80) -> str:
    excerpt = (excerpt or "").strip()
    if len(excerpt) > max_length:
        excerpt = excerpt[: max_length - 1].rstrip() + "…"
    return f'"{excerpt}"'


def _weak_headline_detail(s: PageSignals) -> str:
    if not s.heading_text:
        return (
            "The main headline has no readable text, so visitors cannot see at a "
            "glance what you offer and why it matters to them."
        )
    return (
        f"The main headline {_quoted(s.heading_text)} is probably too short or too "
        "generic to communicate the customer benefit clearly."
    )


def _weak_cta_detail(s: PageSignals) -> str:
    if not s.cta_label:
        return (
            "The primary button has no readable label. Visitors need to know what "
            "happens when they click it."
        )
    return (
        f"The call to action {_quoted(s.cta_label)} is very generic. Benefit-driven "
        'labels like "Start my free analysis" usually convert better.'
    )


def _performance_score(s: PageSignals) -> int:
    return round(s.performance.performance_score)


def _accessibility_score(s: PageSignals) -> int:
    return round(s.performance.accessibility_score)


def _perf_below(threshold: int) -> Callable[[PageSignals], bool]:
    return lambda s: (
        s.performance.performance_score is not None
        and s.performance.performance_score < threshold
    )


def _viewport_audit_failed(s: PageSignals) -> bool:
    return s.performance is not None and s.performance.viewport_ok is False


def _alt_audit_failed(s: PageSignals) -> bool:
    return s.performance is not None and s.performance.image_alt_ok is False


# ======================
# Catalog (priority order)
# ======================

RULE_CATALOG: Sequence[Rule] = (
    Rule(
        "slow_load",
        "Slow loading times",
        trigger=_perf_below(CRITICAL_PERFORMANCE_SCORE),
        detail=lambda s: (
            f"Mobile performance is critical with a score of {_performance_score(s)}/100. "
            "Slow pages lead to high bounce rates."
        ),
        source="performance",
    ),
    Rule(
        "moderate_load",
        "Mediocre loading times",
        trigger=lambda s: (
            _perf_below(MODERATE_PERFORMANCE_SCORE)(s)
            and not _perf_below(CRITICAL_PERFORMANCE_SCORE)(s)
        ),
        detail=lambda s: (
            f"Mobile performance scores {_performance_score(s)}/100 and has room to "
            "improve. Faster pages noticeably improve the user experience."
        ),
        source="performance",
    ),
    Rule(
        "mobile_viewport_audit",
        "Poor mobile optimization",
        trigger=_viewport_audit_failed,
        detail=lambda s: (
            "The 'viewport' meta tag is missing or invalid, so the page renders "
            "poorly on smartphones."
        ),
        source="performance",
    ),
    Rule(
        "poor_accessibility",
        "Accessibility barriers",
        trigger=lambda s: (
            s.performance.accessibility_score is not None
            and s.performance.accessibility_score < MIN_ACCESSIBILITY_SCORE
        ),
        detail=lambda s: (
            f"The accessibility score is only {_accessibility_score(s)}/100. Some "
            "visitors will struggle to read or operate the page."
        ),
        source="performance",
    ),
    Rule(
        "missing_value_proposition",
        "Missing value proposition",
        trigger=lambda s: s.heading_text is None,
        detail=lambda s: (
            "The page has no clear headline (H1) that communicates the main "
            "benefit at first glance."
        ),
    ),
    Rule(
        "weak_value_proposition",
        "Weak value proposition",
        trigger=lambda s: s.heading_text is not None and is_weak_headline(s.heading_text),
        detail=_weak_headline_detail,
    ),
    Rule(
        "missing_cta",
        "Missing call to action",
        trigger=lambda s: s.cta_label is None,
        detail=lambda s: (
            "No primary button was found. A clear call to action is essential "
            "for conversion."
        ),
    ),
    Rule(
        "weak_cta",
        "Weak call to action",
        trigger=lambda s: s.cta_label is not None and is_generic_cta(s.cta_label),
        detail=_weak_cta_detail,
    ),
    Rule(
        "insecure_connection",
        "Insecure connection (no SSL)",
        trigger=lambda s: not s.is_https,
        detail=lambda s: (
            "The page is not served over HTTPS. Browsers often warn visitors "
            "about insecure pages like this."
        ),
    ),
    Rule(
        "insecure_password_field",
        "Password field on an insecure page",
        trigger=lambda s: s.has_password_input and not s.is_https,
        detail=lambda s: (
            "The page asks for a password without HTTPS. Browsers flag this as "
            "'Not secure' right next to the field."
        ),
    ),
    Rule(
        "missing_viewport",
        "Not optimized for mobile",
        trigger=lambda s: (
            not s.has_viewport_meta
            and not s.has_media_queries
            and not _viewport_audit_failed(s)
        ),
        detail=lambda s: (
            "Neither a viewport meta tag nor responsive CSS was found. The page "
            "will likely be hard to use on smartphones."
        ),
    ),
    Rule(
        "cta_below_fold",
        "Call to action not visible without scrolling",
        trigger=lambda s: is_below_fold(s.cta_ratio),
        detail=lambda s: (
            f"The first call to action sits about {round(s.cta_ratio * 100)}% down the "
            "page. Many visitors leave before they ever see it."
        ),
    ),
    Rule(
        "long_form",
        "Form is too long",
        trigger=lambda s: s.form_field_count > MAX_FORM_FIELDS,
        detail=lambda s: (
            f"The page asks for {s.form_field_count} form fields. Every extra field "
            "lowers the completion rate."
        ),
    ),
    Rule(
        "missing_trust_signals",
        "Missing trust signals",
        trigger=lambda s: not s.has_trust_signals,
        detail=lambda s: (
            "No testimonials, reviews, guarantees or customer references were "
            "found. Visitors need a reason to trust you."
        ),
    ),
    Rule(
        "missing_legal_notice",
        "Missing legal notice",
        trigger=lambda s: not s.has_legal_notice,
        detail=lambda s: (
            "No link to an imprint, privacy policy or terms was found. In many "
            "regions this is a legal requirement and a trust signal."
        ),
    ),
    Rule(
        "cluttered_navigation",
        "Cluttered navigation",
        trigger=lambda s: s.nav_link_count > MAX_NAV_LINKS,
        detail=lambda s: (
            f"The navigation offers {s.nav_link_count} links. Too many choices "
            "distract from the main goal of the page."
        ),
    ),
    Rule(
        "too_many_fonts",
        "Inconsistent typography",
        trigger=lambda s: s.font_family_count > MAX_FONT_FAMILIES,
        detail=lambda s: (
            f"The page declares {s.font_family_count} different font families, which "
            "makes the design look restless and less trustworthy."
        ),
    ),
    Rule(
        "images_missing_alt",
        "Images without alternative text",
        trigger=lambda s: s.images_missing_alt > 0 and not _alt_audit_failed(s),
        detail=lambda s: (
            f"{s.images_missing_alt} image(s) have no alt text. Screen reader users "
            "and search engines miss their content."
            if s.images_missing_alt > 1
            else "An image has no alt text. Screen reader users and search engines "
            "miss its content."
        ),
    ),
    Rule(
        "image_alt_audit",
        "Images without alternative text",
        trigger=_alt_audit_failed,
        detail=lambda s: (
            "The accessibility audit found images without alt text. Screen reader "
            "users and search engines miss their content."
        ),
        source="performance",
    ),
    Rule(
        "outdated_copyright",
        "Outdated copyright notice",
        trigger=lambda s: s.copyright_year is not None and s.copyright_year < s.current_year,
        detail=lambda s: (
            f"The copyright notice still says {s.copyright_year}. An outdated footer "
            "makes the site look abandoned."
        ),
    ),
    Rule(
        "no_contact_path",
        "No way to get in touch",
        trigger=lambda s: not s.has_contact_path,
        detail=lambda s: (
            "The page has no form, email link or phone link. Interested visitors "
            "cannot easily reach you."
        ),
    ),
    Rule(
        "missing_urgency",
        "No reason to act now",
        trigger=lambda s: not s.has_urgency_cues,
        detail=lambda s: (
            "Nothing on the page gives visitors a reason to act today, such as a "
            "limited offer or deadline."
        ),
    ),
)


def evaluate_rules(signals: PageSignals, catalog: Sequence[Rule] = RULE_CATALOG) -> List[Defect]:
    """
    Evaluate every rule against one page's signals.

    Rules are independent; the result keeps catalog order so that the
    caller can select the top entries by priority.
    """
    found = []
    for rule in catalog:
        defect = rule.evaluate(signals)
        if defect is not None:
            found.append(defect)
    return found


def get_rule(rule_id: str, catalog: Sequence[Rule] = RULE_CATALOG) -> Rule:
    for rule in catalog:
        if rule.rule_id == rule_id:
            return rule
    raise KeyError(rule_id)
