"""
Tests for the rule catalog and rule evaluation.
"""

import pytest

from analyzer.extractors import extract_signals
from analyzer.rules import RULE_CATALOG, evaluate_rules, get_rule
from utils.clients.pagespeed import PerformanceSignals
from conftest import BAD_PAGE, GOOD_PAGE, clean_signals


def triggered_ids(signals):
    return [d.rule_id for d in evaluate_rules(signals)]


def test_catalog_ids_are_unique():
    ids = [rule.rule_id for rule in RULE_CATALOG]
    assert len(ids) == len(set(ids))


def test_clean_signals_trigger_nothing():
    assert evaluate_rules(clean_signals()) == []


def test_good_page_triggers_nothing():
    signals = extract_signals(GOOD_PAGE, "https://acme.io", current_year=2026)
    assert triggered_ids(signals) == []


def test_bad_page_triggers_in_catalog_order():
    signals = extract_signals(BAD_PAGE, "http://example.com", current_year=2026)
    assert triggered_ids(signals) == [
        "weak_value_proposition",
        "weak_cta",
        "insecure_connection",
        "missing_viewport",
        "missing_trust_signals",
        "missing_legal_notice",
        "outdated_copyright",
        "no_contact_path",
        "missing_urgency",
    ]


def test_empty_page_triggers_absence_rules():
    signals = extract_signals("", "https://example.com", current_year=2026)
    assert triggered_ids(signals) == [
        "missing_value_proposition",
        "missing_cta",
        "missing_viewport",
        "missing_trust_signals",
        "missing_legal_notice",
        "no_contact_path",
        "missing_urgency",
    ]


def test_total_equals_number_of_firing_rules():
    for markup in (GOOD_PAGE, BAD_PAGE, "", "<h1>x"):
        signals = extract_signals(markup, "http://example.com", current_year=2026)
        firing = sum(1 for rule in RULE_CATALOG if rule.evaluate(signals) is not None)
        assert len(evaluate_rules(signals)) == firing


class TestValueProposition:
    def test_missing_heading(self):
        assert triggered_ids(clean_signals(heading_text=None)) == ["missing_value_proposition"]

    def test_strong_heading_does_not_trigger(self):
        ids = triggered_ids(clean_signals(heading_text="Accounting software that files your taxes"))
        assert "missing_value_proposition" not in ids
        assert "weak_value_proposition" not in ids

    def test_generic_heading_quotes_excerpt(self):
        (defect,) = evaluate_rules(clean_signals(heading_text="Welcome"))
        assert defect.title == "Weak value proposition"
        assert '"Welcome"' in defect.detail

    def test_empty_heading_uses_generic_detail(self):
        (defect,) = evaluate_rules(clean_signals(heading_text=""))
        assert defect.rule_id == "weak_value_proposition"
        assert '""' not in defect.detail

    def test_long_excerpt_is_shortened(self):
        heading = "Welcome " + "very " * 40 + "long headline"
        (defect,) = evaluate_rules(clean_signals(heading_text=heading))
        assert "…" in defect.detail


class TestCallToAction:
    def test_missing_cta(self):
        assert triggered_ids(clean_signals(cta_label=None, cta_ratio=None)) == ["missing_cta"]

    def test_generic_cta_quotes_label(self):
        (defect,) = evaluate_rules(clean_signals(cta_label="Submit"))
        assert defect.rule_id == "weak_cta"
        assert '"Submit"' in defect.detail

    def test_unlabeled_cta_uses_generic_detail(self):
        (defect,) = evaluate_rules(clean_signals(cta_label=""))
        assert defect.rule_id == "weak_cta"
        assert '""' not in defect.detail

    def test_cta_below_fold_reports_position(self):
        (defect,) = evaluate_rules(clean_signals(cta_ratio=0.75))
        assert defect.rule_id == "cta_below_fold"
        assert "75%" in defect.detail


class TestCombinedPredicates:
    def test_viewport_needs_both_signals_missing(self):
        assert triggered_ids(clean_signals(has_viewport_meta=False, has_media_queries=True)) == []
        assert triggered_ids(clean_signals(has_viewport_meta=False)) == ["missing_viewport"]

    def test_password_on_http(self):
        ids = triggered_ids(clean_signals(url="http://example.com", has_password_input=True))
        assert ids == ["insecure_connection", "insecure_password_field"]

    def test_password_on_https_is_fine(self):
        assert triggered_ids(clean_signals(has_password_input=True)) == []


class TestMeasuredValues:
    @pytest.mark.parametrize(
        "field,value,rule_id,text",
        [
            ("form_field_count", 7, "long_form", "7 form fields"),
            ("nav_link_count", 14, "cluttered_navigation", "14 links"),
            ("font_family_count", 5, "too_many_fonts", "5 different font families"),
            ("images_missing_alt", 3, "images_missing_alt", "3 image(s)"),
            ("copyright_year", 2021, "outdated_copyright", "2021"),
        ],
    )
    def test_detail_embeds_value(self, field, value, rule_id, text):
        (defect,) = evaluate_rules(clean_signals(**{field: value}))
        assert defect.rule_id == rule_id
        assert text in defect.detail

    @pytest.mark.parametrize(
        "field,value",
        [
            ("form_field_count", 5),
            ("nav_link_count", 10),
            ("font_family_count", 3),
            ("copyright_year", 2026),
            ("copyright_year", None),
        ],
    )
    def test_thresholds_are_exclusive(self, field, value):
        assert evaluate_rules(clean_signals(**{field: value})) == []

    def test_single_image_missing_alt_wording(self):
        (defect,) = evaluate_rules(clean_signals(images_missing_alt=1))
        assert defect.detail.startswith("An image has no alt text")


class TestPerformanceRules:
    def test_skipped_without_performance_data(self):
        signals = clean_signals()
        assert signals.performance is None
        for rule in RULE_CATALOG:
            if rule.source == "performance":
                assert rule.evaluate(signals) is None

    @pytest.mark.parametrize(
        "score,expected",
        [(35, ["slow_load"]), (49.6, ["slow_load"]), (50, ["moderate_load"]), (75, ["moderate_load"]), (95, []), (None, [])],
    )
    def test_performance_tiers(self, score, expected):
        signals = clean_signals(performance=PerformanceSignals(performance_score=score))
        assert triggered_ids(signals) == expected

    def test_slow_load_detail_has_score(self):
        signals = clean_signals(performance=PerformanceSignals(performance_score=35))
        assert "35/100" in evaluate_rules(signals)[0].detail

    def test_accessibility(self):
        signals = clean_signals(performance=PerformanceSignals(performance_score=95, accessibility_score=62))
        (defect,) = evaluate_rules(signals)
        assert defect.rule_id == "poor_accessibility"
        assert "62/100" in defect.detail

    def test_viewport_audit_replaces_markup_viewport_rule(self):
        signals = clean_signals(
            has_viewport_meta=False,
            performance=PerformanceSignals(performance_score=95, viewport_ok=False),
        )
        assert triggered_ids(signals) == ["mobile_viewport_audit"]

    def test_alt_audit_replaces_markup_alt_rule(self):
        signals = clean_signals(
            images_missing_alt=2,
            performance=PerformanceSignals(performance_score=95, image_alt_ok=False),
        )
        assert triggered_ids(signals) == ["image_alt_audit"]

    def test_performance_rules_come_first(self):
        signals = clean_signals(
            heading_text=None,
            performance=PerformanceSignals(performance_score=20),
        )
        assert triggered_ids(signals) == ["slow_load", "missing_value_proposition"]


def test_get_rule():
    assert get_rule("long_form").title == "Form is too long"
    with pytest.raises(KeyError):
        get_rule("does_not_exist")
