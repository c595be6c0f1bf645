from __future__ import annotations

from adapters.notification_formatting import (
    SPAM_HEADER,
    SUMMARY_TOO_LONG,
    clip_summary,
    format_notification,
    topic_hashtag,
)
from core.config import DispatchConfig
from core.models import Proposal


def _proposal(**overrides) -> Proposal:
    fields = dict(
        proposal_id=12345,
        title="Upgrade <subnet>",
        topic="Governance",
        summary="Do the thing & more",
        proposer="42",
        spam=False,
    )
    fields.update(overrides)
    return Proposal(**fields)


def test_format_notification_layout_and_escaping() -> None:
    text = format_notification(_proposal(), DispatchConfig())

    assert text == (
        "<b>Upgrade &lt;subnet&gt;</b>\n"
        "\n"
        "Proposer: 42\n"
        "\n"
        "Do the thing &amp; more\n"
        "\n"
        "#Governance\n"
        "\n"
        "https://dashboard.internetcomputer.org/proposal/12345"
    )


def test_long_summary_replaced_with_placeholder() -> None:
    config = DispatchConfig(max_summary_chars=20)
    text = format_notification(_proposal(summary="x" * 19), config)

    assert SUMMARY_TOO_LONG in text
    assert "x" * 19 not in text


def test_clip_summary_boundary() -> None:
    assert clip_summary("x" * 18, 20) == "x" * 18
    assert clip_summary("x" * 19, 20) == SUMMARY_TOO_LONG


def test_empty_summary_is_omitted() -> None:
    text = format_notification(_proposal(summary=""), DispatchConfig())
    assert "Proposer: 42\n\n#Governance" in text


def test_spam_proposal_short_notice() -> None:
    text = format_notification(_proposal(spam=True), DispatchConfig(proposal_url="https://x/{id}"))
    assert text == f"{SPAM_HEADER}\n\nhttps://x/12345"


def test_topic_hashtag_removes_spaces() -> None:
    assert topic_hashtag("Node Admin") == "#NodeAdmin"
    assert topic_hashtag("") == ""
