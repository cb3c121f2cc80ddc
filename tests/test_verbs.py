"""Tests for `framed_stats.verbs` (background half of `/stats`)."""

from __future__ import annotations

import pytest

from conftest import FakeDiscordClient, make_message
from framed_stats import verbs
from framed_stats.connections.discord_client import DiscordAPIError
from framed_stats.helper_functions import MAX_MESSAGE_LENGTH
from framed_stats.models import UserStats


def _payload(**overrides):
    payload = {
        "id": "I1",
        "type": 2,
        "application_id": "APP",
        "token": "tok",
        "channel": {"id": "C1", "last_message_id": "999"},
        "data": {"name": "stats"},
    }
    payload.update(overrides)
    return payload


def _channel():
    return [
        make_message(5, "Framed #13 🟩", user_id="U1", name="Alice"),
        make_message(4, "gg", user_id="U2", name="Bob"),
        make_message(3, "Framed #13 🟥🟥🟥🟥🟩", user_id="U2", name="Bob"),
        make_message(2, "Framed #12 🟥🟥🟩", user_id="U1", name="Alice"),
        make_message(1, "Framed #", user_id="U2", name="Bob"),
    ]


def test_build_stats_report_scans_whole_channel():
    client = FakeDiscordClient(_channel())
    stats, message = verbs.build_stats_report(client, "C1", sleep=lambda _: None)

    assert stats == {"U1": UserStats(days_played=2, score=10), "U2": UserStats(days_played=1, score=2)}
    assert message == (
        "Scores:\n"
        "\nAlice: \n    score: 10\n    days played: 2\n"
        "\nBob: \n    score: 2\n    days played: 1\n"
    )


def test_process_stats_interaction_delivers_follow_up():
    client = FakeDiscordClient(_channel())
    content = verbs.process_stats_interaction(_payload(), client, sleep=lambda _: None)

    assert client.edits == [("APP", "tok", content)]
    assert content.startswith("Scores:\n\nAlice: ")
    # The scan starts at the newest message rather than before last_message_id.
    assert client.calls[0]["before"] is None


def test_process_stats_interaction_accepts_channel_id_field():
    client = FakeDiscordClient(_channel())
    payload = _payload(channel=None, channel_id="C7")
    verbs.process_stats_interaction(payload, client, sleep=lambda _: None)
    assert client.calls[0]["channel_id"] == "C7"


def test_process_stats_interaction_truncates_long_reports():
    messages = [
        make_message(i, f"Framed #{i} 🟩", user_id=f"U{i}", name="x" * 60) for i in range(1, 80)
    ]
    client = FakeDiscordClient(messages)
    content = verbs.process_stats_interaction(_payload(), client, sleep=lambda _: None)
    assert len(content) <= MAX_MESSAGE_LENGTH
    assert content.endswith("…")


def test_process_stats_interaction_failure_sends_notice_and_raises():
    client = FakeDiscordClient(_channel(), fail_on_call=1)
    with pytest.raises(DiscordAPIError):
        verbs.process_stats_interaction(_payload(), client, sleep=lambda _: None)
    # No partial stats, only the failure notice.
    assert client.edits == [("APP", "tok", verbs.STATS_FAILURE_MESSAGE)]


@pytest.mark.parametrize(
    "overrides",
    [
        {"channel": None},
        {"token": None},
        {"application_id": ""},
    ],
)
def test_process_stats_interaction_rejects_incomplete_payload(overrides):
    client = FakeDiscordClient(_channel())
    with pytest.raises(verbs.InvalidInteractionPayload):
        verbs.process_stats_interaction(_payload(**overrides), client, sleep=lambda _: None)
    assert client.calls == []
    assert client.edits == []
