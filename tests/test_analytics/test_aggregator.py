"""
Tests for the Dimensional Aggregator

Validates grouping, key exclusion, best-figure tie-breaks and ordering.
"""

from datetime import date

import pytest

from cricket_analytics.analytics.aggregator import (
    DIMENSION_KEYS,
    BestFigures,
    BestInnings,
    Dimension,
    DimensionalAggregator,
    GroupAccumulator,
    SortStrategy,
    chase_record,
    order_groups,
)


class TestDimensionalAggregator:
    """Tests for grouping match entries."""

    def test_entries_are_sorted_chronologically(self, sample_entries):
        """Input order does not leak into the aggregator."""
        aggregator = DimensionalAggregator(sample_entries)
        assert [e.match.match_id for e in aggregator.entries] == ["M1", "M2", "M3", "M4"]

    def test_total_counts_every_innings(self, sample_entries):
        total = DimensionalAggregator(sample_entries).total()

        assert total.matches == 4
        assert total.batting_innings == 5
        assert total.not_outs == 1
        assert total.runs == 315
        assert total.balls_faced == 353
        assert total.bowling_innings == 4
        assert total.balls_bowled == 255
        assert total.wickets == 9

    def test_format_grouping(self, sample_entries):
        groups = DimensionalAggregator(sample_entries).aggregate(Dimension.FORMAT)

        assert set(groups) == {"Test", "ODI", "T20"}
        assert groups["ODI"].matches == 2
        assert groups["Test"].batting_innings == 2

    def test_canonical_format_order(self, sample_entries):
        ordered = DimensionalAggregator(sample_entries).grouped(
            Dimension.FORMAT, SortStrategy.CANONICAL
        )
        assert [g.key for g in ordered] == ["Test", "ODI", "T20"]

    def test_missing_key_excludes_entry_from_dimension(self, make_entry):
        """A match without a home/away flag only drops out of that dimension."""
        entries = [
            make_entry("A", match_venue_type=None, batting={"runs": 10, "balls_faced": 10}),
            make_entry("B", match_venue_type="home", batting={"runs": 20, "balls_faced": 10}),
        ]
        aggregator = DimensionalAggregator(entries)

        home_away = aggregator.aggregate(Dimension.HOME_AWAY)
        assert list(home_away) == ["home"]
        assert home_away["home"].runs == 20
        assert aggregator.total().runs == 30

    def test_batting_position_is_per_innings(self, sample_entries):
        groups = DimensionalAggregator(sample_entries).aggregate(Dimension.BATTING_POSITION)

        assert groups["3"].matches == 3
        assert groups["3"].batting_innings == 4
        assert groups["4"].batting_innings == 1
        assert groups["3"].bowling_innings == 0

    def test_batting_position_keeps_innings_number(self, make_entry):
        """A second-innings knock at a new position stays the second innings."""
        entry = make_entry(
            "T1",
            match_format="Test",
            first_innings_batting={"runs": 12, "balls_faced": 20, "dismissal_type": "bowled", "batting_position": 3},
            second_innings_batting={"runs": 40, "balls_faced": 60, "dismissal_type": "caught", "batting_position": 6},
            fielding={"catches": 2},
        )
        groups = DimensionalAggregator([entry]).aggregate(Dimension.BATTING_POSITION)

        assert [r.innings_number for r in groups["3"].batting_records] == [1]
        assert [r.innings_number for r in groups["6"].batting_records] == [2]
        assert groups["3"].catches == 0
        assert groups["6"].catches == 0

    def test_innings_number_skips_did_not_bat(self, make_entry):
        entry = make_entry(
            "T1",
            match_format="Test",
            first_innings_batting={"did_not_bat": True},
            second_innings_batting={"runs": 25, "balls_faced": 30, "dismissal_type": "not_out"},
        )
        total = DimensionalAggregator([entry]).total()

        assert [r.innings_number for r in total.batting_records] == [2]

    @pytest.mark.parametrize("dimension", [d for d in Dimension if d in DIMENSION_KEYS])
    def test_group_matches_sum_to_keyed_entries(self, sample_entries, make_entry, dimension):
        entries = sample_entries + [
            make_entry("X", match_venue_type=None, match_result=None, match_series="Ashes"),
        ]
        key_fn = DIMENSION_KEYS[dimension]
        groups = DimensionalAggregator(entries).aggregate(dimension)

        keyed = sum(1 for e in entries if key_fn(e) is not None)
        assert sum(g.matches for g in groups.values()) == keyed

    def test_batting_position_matches_count_distinct_positions(self, sample_entries):
        groups = DimensionalAggregator(sample_entries).aggregate(Dimension.BATTING_POSITION)

        expected = sum(
            len({inn.batting_position for inn in e.performance.batting_innings()})
            for e in sample_entries
        )
        assert sum(g.matches for g in groups.values()) == expected

    def test_custom_key_function(self, sample_entries):
        groups = DimensionalAggregator(sample_entries).aggregate(
            lambda e: "big" if e.performance.match_runs >= 100 else None
        )
        assert groups["big"].match_ids == ["M2", "M4"]

    def test_empty_history(self):
        aggregator = DimensionalAggregator([])

        assert aggregator.aggregate(Dimension.FORMAT) == {}
        assert aggregator.total().matches == 0


class TestBestFigures:
    """Tests for best innings and best bowling tie-breaks."""

    def test_not_out_wins_tie(self, make_entry):
        """100* ranks above 100."""
        entries = [
            make_entry("A", match_date=date(2020, 1, 1), batting={"runs": 100, "balls_faced": 90, "dismissal_type": "caught"}),
            make_entry("B", match_date=date(2021, 1, 1), batting={"runs": 100, "balls_faced": 90, "dismissal_type": "not_out"}),
        ]
        best = DimensionalAggregator(entries).total().best_innings

        assert best.match_id == "B"
        assert best.display() == "100*"

    def test_earliest_wins_full_tie(self):
        first = BestInnings(80, False, "B", date(2020, 1, 1))
        later = BestInnings(80, False, "A", date(2021, 1, 1))
        assert min([later, first], key=lambda b: b.rank_key) is first

    def test_fewer_runs_wins_equal_wickets(self, make_entry):
        entries = [
            make_entry("A", bowling={"overs": 10, "runs_conceded": 50, "wickets": 4}),
            make_entry("B", bowling={"overs": 10, "runs_conceded": 35, "wickets": 4}),
            make_entry("C", bowling={"overs": 10, "runs_conceded": 20, "wickets": 3}),
        ]
        best = DimensionalAggregator(entries).total().best_figures

        assert best.display() == "4/35"

    def test_match_figures_combine_innings(self, sample_entries):
        total = DimensionalAggregator(sample_entries).total()

        assert total.best_match_figures == BestFigures(5, 60, "M4", date(2023, 4, 20))
        assert len(total.match_figures) == 4


class TestGroupAccumulator:
    """Tests for merging and ordering accumulators."""

    def test_merge_keeps_best(self, sample_entries):
        groups = DimensionalAggregator(sample_entries).aggregate(Dimension.FORMAT)
        merged = GroupAccumulator.merged("all", groups.values())

        assert merged.runs == 315
        assert merged.best_innings.runs == 120
        assert merged.best_figures.display() == "5/60"
        assert merged.results["won"] == 2

    def test_matches_desc_ordering(self):
        groups = {
            "a": GroupAccumulator(key="a", matches=1),
            "b": GroupAccumulator(key="b", matches=3),
            "c": GroupAccumulator(key="c", matches=3),
        }
        assert [g.key for g in order_groups(groups, SortStrategy.MATCHES_DESC)] == ["b", "c", "a"]

    def test_chase_record_ignores_draws(self):
        acc = GroupAccumulator(key="chasing")
        acc.results.update({"won": 2, "lost": 1, "draw": 3, "no_result": 1})

        assert chase_record(acc) == (3, 2, 1)
