import jwt
import pytest

from roomgate.services import rtc


def _decode(token: str, settings) -> dict:
    return jwt.decode(
        token,
        settings.livekit_api_secret,
        algorithms=["HS256"],
        options={"verify_aud": False},
    )


def test_issue_token_grants_join_publish_subscribe(settings) -> None:
    result = rtc.issue_token(settings, "alice-20250101120000", "human", "alice")
    claims = _decode(result.token, settings)

    assert result.expires_in == 3600
    assert claims["iss"] == "test-key"
    assert claims["sub"] == "human"
    assert claims["name"] == "alice"
    assert claims["video"]["roomJoin"] is True
    assert claims["video"]["room"] == "alice-20250101120000"
    assert claims["video"]["canPublish"] is True
    assert claims["video"]["canSubscribe"] is True
    assert abs((claims["exp"] - claims["nbf"]) - 3600) <= 1


def test_issue_token_defaults_name_to_identity(settings) -> None:
    claims = _decode(rtc.issue_token(settings, "room-1", "nox").token, settings)
    assert claims["name"] == "nox"


def test_issue_token_wraps_signing_failures(settings, monkeypatch) -> None:
    class BrokenAccessToken:
        def __init__(self, *args, **kwargs) -> None:
            raise ValueError("api_key and api_secret must be set")

    monkeypatch.setattr(rtc.api, "AccessToken", BrokenAccessToken)

    with pytest.raises(rtc.TokenIssueError) as exc:
        rtc.issue_token(settings, "room-1", "human")

    assert "test-secret" not in str(exc.value)
