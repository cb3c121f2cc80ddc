"""Tests for `framed_stats.stats`."""

from __future__ import annotations

import logging

import pytest

from conftest import make_message
from framed_stats import stats as stats_mod
from framed_stats.models import DayRecord, UserStats


# ---------------------------- parse_framed_result ---------------------------


@pytest.mark.parametrize(
    "content, expected_day, expected_failures",
    [
        ("Framed #12 🟥🟥🟩", 12, 2),
        ("Framed #13 🟩", 13, 0),
        ("Framed #812\n🎥 🟥 🟥 🟥 🟥 🟥 🟥\n\nhttps://framed.wtf", 812, 6),
        ("Framed #7", 7, 0),
    ],
)
def test_parse_framed_result(content, expected_day, expected_failures):
    day, record = stats_mod.parse_framed_result(content)
    assert day == expected_day
    assert record == DayRecord(failed_attempts=expected_failures)


@pytest.mark.parametrize("content", ["Framed #", "Framed #abc 🟥", "Framed # 12"])
def test_parse_framed_result_malformed(content):
    with pytest.raises(stats_mod.MalformedResultError):
        stats_mod.parse_framed_result(content)


def test_is_framed_message_requires_prefix_at_start():
    assert stats_mod.is_framed_message("Framed #1")
    assert not stats_mod.is_framed_message("I played Framed #1 today")
    assert not stats_mod.is_framed_message("framed #1")


# --------------------------- update_user_histories --------------------------


def test_update_ignores_non_qualifying_messages():
    histories = {}
    result = stats_mod.update_user_histories(histories, make_message(1, "hello world 👋"))
    assert result == {}


def test_update_skips_malformed_and_logs(caplog):
    histories = {}
    with caplog.at_level(logging.WARNING, logger="framed_stats.stats"):
        result = stats_mod.update_user_histories(histories, make_message(99, "Framed #oops 🟥"))
    assert result == {}
    assert "Skipping message 99" in caplog.text


def test_update_last_write_wins():
    histories = {}
    histories = stats_mod.update_user_histories(histories, make_message(2, "Framed #5 🟥"))
    histories = stats_mod.update_user_histories(histories, make_message(1, "Framed #5 🟥🟥🟥"))
    assert histories == {"U1": {5: DayRecord(failed_attempts=3)}}


def test_update_keeps_users_apart():
    histories = {}
    for message in [
        make_message(3, "Framed #1 🟩", user_id="U1"),
        make_message(2, "Framed #1 🟥🟩", user_id="U2"),
        make_message(1, "Framed #2 🟩", user_id="U1"),
    ]:
        histories = stats_mod.update_user_histories(histories, message)
    assert histories == {
        "U1": {1: DayRecord(0), 2: DayRecord(0)},
        "U2": {1: DayRecord(1)},
    }


# ------------------------------ construct_stats -----------------------------


def test_end_to_end_example():
    histories = {}
    for message in [make_message(2, "Framed #12 🟥🟥🟩"), make_message(1, "Framed #13 🟩")]:
        histories = stats_mod.update_user_histories(histories, message)
    assert stats_mod.construct_stats(histories) == {"U1": UserStats(days_played=2, score=10)}


def test_construct_stats_sums_and_counts_distinct_days():
    contents = ["Framed #1 🟥", "Framed #2 🟥🟥🟥🟥🟥", "Framed #1 🟥🟥", "Framed #3"]
    histories = {}
    for i, content in enumerate(contents):
        histories = stats_mod.update_user_histories(histories, make_message(100 - i, content))
    result = stats_mod.construct_stats(histories)["U1"]
    # Day 1 was overwritten by the later message with two failures.
    assert result.days_played == 3
    assert result.score == (6 - 2) + (6 - 5) + (6 - 0)


def test_construct_stats_is_idempotent():
    histories = {"U1": {1: DayRecord(1), 2: DayRecord(4)}, "U2": {9: DayRecord(0)}}
    assert stats_mod.construct_stats(histories) == stats_mod.construct_stats(histories)
    assert histories == {"U1": {1: DayRecord(1), 2: DayRecord(4)}, "U2": {9: DayRecord(0)}}


def test_construct_stats_does_not_clamp_negative_scores():
    histories = {"U1": {1: DayRecord(failed_attempts=8)}}
    assert stats_mod.construct_stats(histories)["U1"] == UserStats(days_played=1, score=-2)


# -------------------------- construct_stats_message -------------------------


def test_construct_stats_message_preserves_insertion_order():
    stats = {"U2": UserStats(1, 6), "U1": UserStats(2, 10)}
    message = stats_mod.construct_stats_message(stats, {"U1": "Alice", "U2": "Bob"})
    assert message == (
        "Scores:\n"
        "\nBob: \n    score: 6\n    days played: 1\n"
        "\nAlice: \n    score: 10\n    days played: 2\n"
    )


def test_construct_stats_message_falls_back_to_user_id():
    message = stats_mod.construct_stats_message({"U9": UserStats(1, 3)}, {})
    assert "\nU9: \n" in message


def test_construct_stats_message_empty():
    assert stats_mod.construct_stats_message({}, {}) == "Scores:\n"


# ------------------------------ StatsAggregator -----------------------------


def test_aggregator_tracks_names_and_counts():
    aggregator = stats_mod.StatsAggregator().extend(
        [
            make_message(4, "Framed #3 🟩", user_id="U1", name="Alice (new)"),
            make_message(3, "chatter", user_id="U2", name="Bob"),
            make_message(2, "Framed #2 🟥🟩", user_id="U2", name="Bob"),
            make_message(1, "Framed #1 🟩", user_id="U1", name="Alice (old)"),
        ]
    )
    assert aggregator.framed_results == 3
    assert aggregator.display_names == {"U1": "Alice (new)", "U2": "Bob"}
    assert list(aggregator.stats()) == ["U1", "U2"]
    assert aggregator.render().startswith("Scores:\n\nAlice (new): \n    score: 12\n")


def test_aggregator_ignores_users_with_only_malformed_results():
    aggregator = stats_mod.StatsAggregator()
    aggregator.add(make_message(1, "Framed #", user_id="U3", name="Eve"))
    assert aggregator.histories == {}
    assert aggregator.display_names == {}
    assert aggregator.render() == "Scores:\n"


def test_aggregator_counts_only_well_formed_results():
    aggregator = stats_mod.StatsAggregator().extend(
        [
            make_message(3, "Framed #", user_id="U1", name="Alice"),
            make_message(2, "Framed #abc 🟩", user_id="U1", name="Alice"),
            make_message(1, "Framed #7 🟩", user_id="U1", name="Alice"),
        ]
    )
    assert aggregator.framed_results == 1
    assert aggregator.histories == {"U1": {7: DayRecord(failed_attempts=0)}}
