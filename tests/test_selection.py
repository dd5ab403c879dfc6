"""
Tests for top-K selection and the composed result.
"""

import pytest

from analyzer.composer import (
    compose_result,
    exempt_result,
    high_defects_message,
    low_defects_message,
    zero_defects_message,
)
from analyzer.selection import TIER_HIGH, TIER_LOW, TIER_ZERO, select_top_defects
from conftest import make_defects


class TestSelectTopDefects:
    def test_zero(self):
        selection = select_top_defects([])
        assert selection.tier == TIER_ZERO
        assert selection.top == []
        assert selection.remaining == 0

    def test_three_below_default_threshold(self):
        defects = make_defects(3)
        selection = select_top_defects(defects)
        assert selection.tier == TIER_LOW
        assert selection.top == defects[:1]
        assert selection.remaining == 2

    def test_six_above_threshold(self):
        defects = make_defects(6)
        selection = select_top_defects(defects)
        assert selection.tier == TIER_HIGH
        assert selection.top == defects[:2]
        assert selection.remaining == 4

    def test_threshold_boundary(self):
        assert select_top_defects(make_defects(4)).tier == TIER_HIGH

    @pytest.mark.parametrize("count,tier,shown", [(1, TIER_LOW, 1), (2, TIER_HIGH, 2), (5, TIER_HIGH, 2)])
    def test_configurable_threshold(self, count, tier, shown):
        selection = select_top_defects(make_defects(count), low_threshold=2)
        assert selection.tier == tier
        assert len(selection.top) == shown

    @pytest.mark.parametrize("count", range(0, 9))
    def test_counts_add_up(self, count):
        selection = select_top_defects(make_defects(count))
        assert selection.total_found == count
        assert len(selection.top) <= min(2, count)
        assert selection.remaining == max(0, count - len(selection.top))

    def test_external_total_exceeds_listed_defects(self):
        selection = select_top_defects(make_defects(2), total_found=5)
        assert selection.tier == TIER_HIGH
        assert len(selection.top) == 2
        assert selection.remaining == 3

    def test_total_never_below_listed_defects(self):
        selection = select_top_defects(make_defects(3), total_found=1)
        assert selection.total_found == 3

    def test_deterministic(self):
        defects = make_defects(7)
        first = select_top_defects(defects)
        second = select_top_defects(defects)
        assert [d.title for d in first.top] == [d.title for d in second.top] == ["Killer 0", "Killer 1"]


class TestComposer:
    URL = "https://www.example.com/landing?utm_source=ads"

    def test_zero_is_special_case(self):
        result = compose_result(self.URL, select_top_defects([]))
        assert result.is_special_case is True
        assert result.note
        assert result.total_found == 0
        assert result.top_defects == []
        assert result.message == zero_defects_message("www.example.com")

    def test_low_message(self):
        result = compose_result(self.URL, select_top_defects(make_defects(3)))
        assert result.message == low_defects_message("www.example.com", 3)
        assert "most important" in result.message
        assert result.total_found == 3
        assert len(result.top_defects) == 1
        assert result.remaining == 2
        assert result.is_special_case is False

    def test_singular_wording(self):
        assert "1 potential conversion killer." in low_defects_message("a.com", 1)
        assert "killers" in low_defects_message("a.com", 2)

    def test_high_message(self):
        result = compose_result(self.URL, select_top_defects(make_defects(6)))
        assert result.message == high_defects_message("www.example.com", 6)
        assert "most severe" in result.message
        assert len(result.top_defects) == 2
        assert result.remaining == 4

    def test_hostname_comes_from_validated_url(self):
        result = compose_result("https://Shop.Example.org:8443/a/b", select_top_defects(make_defects(1)))
        assert "shop.example.org" in result.message
        assert "/a/b" not in result.message

    def test_idempotent(self):
        selection = select_top_defects(make_defects(5))
        assert compose_result(self.URL, selection).to_response() == compose_result(self.URL, selection).to_response()

    def test_response_uses_public_field_names(self):
        payload = compose_result(self.URL, select_top_defects(make_defects(6))).to_response()
        assert set(payload) == {"message", "totalFound", "topDefects", "remaining", "isSpecialCase", "note"}
        assert payload["topDefects"][0] == {"title": "Killer 0", "detail": "Detail 0"}

    def test_exempt_result(self):
        result = exempt_result("https://luqy.studio/")
        assert result.is_special_case is True
        assert result.note == "Naturally a 10/10 landing page ;)"
        assert result.top_defects == []
