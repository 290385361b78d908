from __future__ import annotations

import hashlib
import hmac

import pytest

from deploybot.slack.signature import compute_signature, verify_slack_request

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"
NOW = 1_531_420_618
BODY = (
    "token=xyzz0WbapA4vBCDEFasx0q6G&team_id=T1DC2JH3J&team_domain=testteamnow"
    "&channel_id=G8PSS9T3V&channel_name=foobar&user_id=U2CERLKJA&user_name=roadrunner"
    "&command=%2Fwebhook-collect&text=&response_url=https%3A%2F%2Fhooks.slack.com"
    "%2Fcommands%2FT1DC2JH3J%2F397700885554%2F96rGlfmibIGlgcZRskXaIFfN"
    "&trigger_id=398738663015.47445629121.803a0bc887a14d10d2c447fce8b6703c"
)


def _expected(secret: str, timestamp: int, body: str) -> str:
    base = f"v0:{timestamp}:{body}".encode("utf-8")
    return "v0=" + hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()


def test_compute_signature_matches_v0_scheme() -> None:
    assert compute_signature(SECRET, NOW, BODY) == _expected(SECRET, NOW, BODY)
    assert compute_signature(SECRET.encode(), str(NOW), BODY.encode()) == _expected(
        SECRET, NOW, BODY
    )


@pytest.mark.parametrize("body", [BODY, BODY.encode("utf-8")])
def test_verify_accepts_valid_request(body) -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp=str(NOW),
        body=body,
        now=NOW + 10,
    )

    assert result.valid is True
    assert result.reason is None
    assert bool(result) is True


@pytest.mark.parametrize("skew", [-301, 301, 3600])
def test_verify_rejects_timestamps_outside_window(skew: int) -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp=str(NOW),
        body=BODY,
        now=NOW + skew,
    )

    assert result.valid is False
    assert "too old" in (result.reason or "")


def test_verify_accepts_edge_of_window() -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp=str(NOW),
        body=BODY,
        now=NOW + 300,
    )

    assert result.valid is True


def test_verify_rejects_non_numeric_timestamp() -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp="yesterday",
        body=BODY,
        now=NOW,
    )

    assert result.valid is False
    assert result.reason == "Invalid timestamp format"


def test_verify_rejects_tampered_body() -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp=str(NOW),
        body=BODY.replace("roadrunner", "coyote"),
        now=NOW,
    )

    assert result.valid is False
    assert result.reason == "Signature verification failed"


def test_verify_rejects_wrong_length_signature() -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature="v0=deadbeef",
        timestamp=str(NOW),
        body=BODY,
        now=NOW,
    )

    assert result.valid is False
    assert result.reason == "Signature length mismatch"


@pytest.mark.parametrize(
    "secret, signature, timestamp",
    [
        ("", "v0=abc", str(NOW)),
        (None, "v0=abc", str(NOW)),
        (SECRET, None, str(NOW)),
        (SECRET, "", str(NOW)),
        (SECRET, "v0=abc", None),
    ],
)
def test_verify_rejects_missing_inputs(secret, signature, timestamp) -> None:
    result = verify_slack_request(
        signing_secret=secret,
        signature=signature,
        timestamp=timestamp,
        body=BODY,
        now=NOW,
    )

    assert result.valid is False


def test_verify_honours_custom_window() -> None:
    result = verify_slack_request(
        signing_secret=SECRET,
        signature=_expected(SECRET, NOW, BODY),
        timestamp=str(NOW),
        body=BODY,
        now=NOW + 61,
        max_age=60,
    )

    assert result.valid is False
