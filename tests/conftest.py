import json
import sys
from pathlib import Path

import pytest

# Ensure the repository root (parent directory of this file) is on the import path.
# This allows test modules to do `import framed_stats...` even when pytest is executed
# from a sub-directory or when the working directory is not the project root.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from nacl.signing import SigningKey  # noqa: E402

from framed_stats.config import Settings  # noqa: E402
from framed_stats.models import Author, Message, MessagePage, RateLimit  # noqa: E402


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_message(message_id, content, user_id="U1", name=None):
    return Message(id=str(message_id), content=content, author=Author(id=user_id, display_name=name or user_id))


class FakeDiscordClient:
    """In-memory stand-in for `DiscordClient` backed by a newest-first message list."""

    def __init__(self, messages=(), rate_limits=None, fail_on_call=None):
        # Message ids are numeric strings; newest first like the real API.
        self.messages = sorted(messages, key=lambda m: int(m.id), reverse=True)
        self.rate_limits = list(rate_limits or [])
        self.fail_on_call = fail_on_call
        self.calls = []
        self.edits = []

    def list_channel_messages(self, channel_id, *, before=None, limit=100):
        self.calls.append({"channel_id": channel_id, "before": before, "limit": limit})
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.fail_exception()
        older = [m for m in self.messages if before is None or int(m.id) < int(before)]
        rate_limit = self.rate_limits.pop(0) if self.rate_limits else RateLimit()
        return MessagePage(messages=older[:limit], rate_limit=rate_limit)

    def fail_exception(self):
        from framed_stats.connections.discord_client import DiscordAPIError

        return DiscordAPIError(401, "channels/x/messages", {"message": "401: Unauthorized"})

    def edit_original_response(self, application_id, token, content):
        self.edits.append((application_id, token, content))
        return {"content": content}


class ImmediateDispatcher:
    """Dispatcher double that records payloads instead of running anything."""

    def __init__(self):
        self.payloads = []
        self.ack_events = []

    def dispatch(self, payload, acknowledged=None):
        self.payloads.append(payload)
        self.ack_events.append(acknowledged)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def signing_key():
    return SigningKey.generate()


@pytest.fixture
def settings(signing_key):
    return Settings(
        discord_token="bot-token",
        application_id="APP",
        public_key=signing_key.verify_key.encode().hex(),
        rate_limit_enabled=False,
    )


@pytest.fixture
def fake_client():
    return FakeDiscordClient()


@pytest.fixture
def dispatcher():
    return ImmediateDispatcher()


@pytest.fixture
def flask_app(settings, fake_client, dispatcher):
    from framed_stats import create_app

    return create_app(settings, discord_client=fake_client, dispatcher=dispatcher, sleep=lambda _: None)


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def signed_post(client, signing_key):
    """POST *payload* to /interactions with a valid Discord signature."""

    def _post(payload, timestamp="1700000000", key=None):
        return post_interaction(client, key or signing_key, payload, timestamp)

    return _post


def post_interaction(test_client, key, payload, timestamp="1700000000"):
    """Sign and POST *payload*; the buffered response is closed like a real server's."""
    body = json.dumps(payload).encode()
    signature = key.sign(timestamp.encode() + body).signature.hex()
    return test_client.post(
        "/interactions",
        data=body,
        content_type="application/json",
        headers={
            "X-Signature-Ed25519": signature,
            "X-Signature-Timestamp": timestamp,
        },
        buffered=True,
    )
