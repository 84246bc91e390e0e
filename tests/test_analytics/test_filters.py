"""Tests for ad-hoc analytics filters."""

from datetime import date

from cricket_analytics.analytics.filters import AnalyticsFilters
from cricket_analytics.models.match import MatchFormat, VenueType


def _ids(entries):
    return [e.match.match_id for e in entries]


class TestAnalyticsFilters:
    """Tests for narrowing a history."""

    def test_empty_filters_keep_everything(self, sample_entries):
        filters = AnalyticsFilters()

        assert filters.is_empty
        assert len(filters.apply(sample_entries)) == 4

    def test_format(self, sample_entries):
        filters = AnalyticsFilters(format=MatchFormat.ODI)

        assert not filters.is_empty
        assert sorted(_ids(filters.apply(sample_entries))) == ["M1", "M2"]

    def test_opponent_substring_ignores_case(self, sample_entries):
        result = AnalyticsFilters(opponent="eng").apply(sample_entries)
        assert sorted(_ids(result)) == ["M3", "M4"]

    def test_date_range_is_inclusive(self, sample_entries):
        filters = AnalyticsFilters(start_date=date(2023, 2, 1), end_date=date(2023, 3, 10))
        assert sorted(_ids(filters.apply(sample_entries))) == ["M2", "M3"]

    def test_combined(self, sample_entries):
        filters = AnalyticsFilters(venue="lord", venue_type=VenueType.AWAY, format=MatchFormat.TEST)
        assert _ids(filters.apply(sample_entries)) == ["M4"]
