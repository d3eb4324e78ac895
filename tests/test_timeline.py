"""
Tests for the timeline builder.

Covers segment order, naming, durations, the break and downtime counting
rules and determinism of the builder.
"""

import pytest

from timeline import (
    BREAKTIME, DOWNTIME, GAMETIME,
    build_timeline, find_segment_index, timeline_names, to_seconds,
)
from tests.conftest import make_settings


class TestTimelineOrder:

    def test_two_games_with_one_break(self):
        timeline = build_timeline(make_settings())
        assert timeline_names(timeline) == [
            "Game 1 Q 1",
            "Game 1 Break 1",
            "Game 1 Q 2",
            "Downtime 1",
            "Game 2 Q 1",
            "Game 2 Break 1",
            "Game 2 Q 2",
        ]

    def test_single_game_has_no_trailing_downtime(self):
        timeline = build_timeline(make_settings(num_games=1, play_times=[1], break_times=[]))
        assert len(timeline) == 1
        only = timeline[0]
        assert only.kind == GAMETIME
        assert only.full_name == "Game 1 Q 1"
        assert only.duration_seconds == 60
        assert only.time_left == 60

    def test_kinds_follow_the_schedule(self):
        timeline = build_timeline(make_settings())
        assert [s.kind for s in timeline] == [
            GAMETIME, BREAKTIME, GAMETIME, DOWNTIME, GAMETIME, BREAKTIME, GAMETIME,
        ]

    def test_default_schedule_counts(self):
        settings = make_settings(num_games=5, play_times=[1, 1, 10, 10], break_times=[1, 2, 2])
        timeline = build_timeline(settings)
        kinds = [s.kind for s in timeline]
        assert kinds.count(GAMETIME) == 20
        assert kinds.count(BREAKTIME) == 15
        assert kinds.count(DOWNTIME) == 4


class TestBreaksAndDowntime:

    def test_extra_break_times_are_ignored(self):
        timeline = build_timeline(make_settings(num_games=1, play_times=[1, 1], break_times=[1, 2, 3, 4]))
        assert timeline_names(timeline) == [
            "Game 1 Q 1", "Game 1 Break 1", "Game 1 Q 2", "Game 1 Break 2",
        ]

    def test_break_durations_follow_their_quarter(self):
        timeline = build_timeline(make_settings(num_games=1, play_times=[1, 1, 1], break_times=[1, 2]))
        breaks = [s for s in timeline if s.kind == BREAKTIME]
        assert [b.duration_seconds for b in breaks] == [60, 120]
        assert [b.section_name for b in breaks] == ["Break 1", "Break 2"]

    def test_downtime_points_at_next_game(self):
        timeline = build_timeline(make_settings(num_games=3))
        downtimes = [s for s in timeline if s.kind == DOWNTIME]
        assert [d.full_name for d in downtimes] == ["Downtime 1", "Downtime 2"]
        assert [d.next_game for d in downtimes] == [2, 3]
        assert all(d.game_number is None for d in downtimes)
        assert all(d.duration_seconds == 120 for d in downtimes)


class TestSegmentFields:

    def test_last_quarter_warns_about_the_game(self):
        timeline = build_timeline(make_settings(num_games=1))
        first, _, last = timeline
        assert first.warn_message == "Quarter ending soon!!!"
        assert first.end_message == "Quarter over"
        assert last.warn_message == "Game ending soon!!!"
        assert last.end_message == "Game over"

    def test_warn_threshold_keeps_fractional_minutes(self):
        timeline = build_timeline(make_settings(warn_bell_time=0.25))
        assert all(s.warn_threshold_seconds == 15.0 for s in timeline)

    def test_durations_are_whole_seconds(self):
        assert to_seconds(1.5) == 90
        assert isinstance(to_seconds(2), int)

    def test_full_names_are_unique(self):
        settings = make_settings(num_games=4, play_times=[1, 1, 1, 1], break_times=[1, 1, 1])
        names = timeline_names(build_timeline(settings))
        assert len(names) == len(set(names))


class TestDeterminism:

    def test_same_settings_build_the_same_timeline(self):
        settings = make_settings(num_games=3, play_times=[1, 2, 3], break_times=[1, 1])
        first = [s.to_dict() for s in build_timeline(settings)]
        second = [s.to_dict() for s in build_timeline(settings)]
        assert first == second

    def test_builder_returns_fresh_segments(self):
        settings = make_settings()
        first = build_timeline(settings)
        first[0].time_left = 3
        assert build_timeline(settings)[0].time_left == 60

    def test_builder_does_not_touch_settings(self):
        settings = make_settings()
        before = dict(settings)
        build_timeline(settings)
        assert settings == before


class TestLookup:

    @pytest.mark.parametrize("name,index", [
        ("Game 1 Q 1", 0),
        ("Downtime 1", 3),
        ("Game 2 Q 2", 6),
    ])
    def test_find_segment_index(self, name, index):
        assert find_segment_index(build_timeline(make_settings()), name) == index

    def test_unknown_name(self):
        assert find_segment_index(build_timeline(make_settings()), "Game 9 Q 9") is None
