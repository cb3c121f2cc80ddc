import random


# Discord rejects message content longer than this.
MAX_MESSAGE_LENGTH = 2000

EMOJI_LIST = [
    "😭",
    "😄",
    "😌",
    "🤓",
    "😎",
    "😤",
    "🤖",
    "😶‍🌫️",
    "🌏",
    "📸",
    "💿",
    "👋",
    "🌊",
    "✨",
]


def get_random_emoji(rng=random):
    """
    Pick a random emoji for light-hearted replies.

    Parameters
    ----------
    rng : random.Random, optional
        Source of randomness, defaults to the ``random`` module. Tests pass a
        seeded ``random.Random`` instance.

    Returns
    -------
    str
        One entry of ``EMOJI_LIST``
    """
    return rng.choice(EMOJI_LIST)


def truncate_message(content: str, limit: int = MAX_MESSAGE_LENGTH, suffix: str = "\n…") -> str:
    """
    Shorten *content* so Discord accepts it as a single message.

    Parameters
    ----------
    content : str
        The message body
    limit : int, optional
        Maximum number of characters allowed, defaults to ``MAX_MESSAGE_LENGTH``
    suffix : str, optional
        Marker appended when the body had to be cut

    Returns
    -------
    str
        *content* unchanged when it fits, otherwise its head followed by *suffix*,
        at most *limit* characters in total

    Notes
    -----
    Cuts happen at the last line break that still fits so that a user's
    score block is never split halfway through.
    """
    if len(content) <= limit:
        return content

    head = content[: limit - len(suffix)]
    newline = head.rfind("\n")
    if newline > 0:
        head = head[:newline]
    return head + suffix
