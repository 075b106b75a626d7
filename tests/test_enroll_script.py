import importlib.util
from pathlib import Path

import httpx
import pytest

from src.enrollment.controller import ActionState, GatedActionResult
from src.enrollment.errors import (
    PermanentError,
    ServerRejectedError,
    SessionRequiredError,
    TransportError,
)
from src.enrollment.models import Message, MessageKind
from src.enrollment.session import ActionResult

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "enroll.py"


@pytest.fixture
def enroll():
    spec = importlib.util.spec_from_file_location("enroll_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_parse_signup(enroll):
    args = enroll._parse_args(
        ["--base-url", "http://x", "-u", "alice", "-p", "pw", "signup", "Chess Club", "a@x.com"]
    )
    assert args.command == "signup"
    assert args.activity == "Chess Club"
    assert args.base_url == "http://x"


def test_check_raises_server_rejected(enroll):
    result = ActionResult(
        ok=False, message=Message(text="Nope", kind=MessageKind.ERROR), status=400
    )
    with pytest.raises(ServerRejectedError) as excinfo:
        enroll._check(result)
    assert excinfo.value.status == 400
    assert excinfo.value.detail == "Nope"
    assert isinstance(excinfo.value, PermanentError)


def test_check_passes_success(enroll):
    enroll._check(ActionResult(ok=True))


async def test_main_signup_prints_roster(enroll, server, monkeypatch, capsys):
    transport = httpx.MockTransport(server.handler)
    original = enroll.EnrollmentAPI
    monkeypatch.setattr(
        enroll,
        "EnrollmentAPI",
        lambda base_url: original(base_url, transport=transport),
    )
    args = enroll._parse_args(
        ["--base-url", "http://test", "-u", "alice", "-p", "secret", "signup", "Chess Club", "b@x.com"]
    )

    await enroll.main(args)

    out = capsys.readouterr().out
    assert "Signed up b@x.com for Chess Club" in out
    assert "Availability: 0 spots left" in out


async def test_main_denied_signup_raises(enroll, server, monkeypatch):
    transport = httpx.MockTransport(server.handler)
    original = enroll.EnrollmentAPI
    monkeypatch.setattr(
        enroll,
        "EnrollmentAPI",
        lambda base_url: original(base_url, transport=transport),
    )
    args = enroll._parse_args(
        ["--base-url", "http://test", "-u", "", "-p", "", "unregister", "Chess Club", "a@x.com"]
    )

    with pytest.raises(SessionRequiredError, match="Please log in to unregister."):
        await enroll.main(args)
    assert not server.hits("DELETE")


def test_check_denied_gated_action_requires_session(enroll):
    result = GatedActionResult(
        ok=False,
        message=Message(text="Please log in to sign up.", kind=MessageKind.ERROR),
        state=ActionState.DENIED,
    )
    with pytest.raises(SessionRequiredError):
        enroll._check(result)


def test_check_missing_status_is_transport_error(enroll):
    result = GatedActionResult(
        ok=False,
        message=Message(
            text="Failed to sign up. Please try again.", kind=MessageKind.ERROR
        ),
        state=ActionState.FAILED,
    )
    with pytest.raises(TransportError, match="Failed to sign up"):
        enroll._check(result)


async def test_main_unreachable_signup_is_transport_error(enroll, server, monkeypatch):
    server.fail_paths.add("/activities/Chess Club/signup")
    transport = httpx.MockTransport(server.handler)
    original = enroll.EnrollmentAPI
    monkeypatch.setattr(
        enroll,
        "EnrollmentAPI",
        lambda base_url: original(base_url, transport=transport),
    )
    args = enroll._parse_args(
        ["--base-url", "http://test", "-u", "alice", "-p", "secret", "signup", "Chess Club", "b@x.com"]
    )

    with pytest.raises(TransportError):
        await enroll.main(args)
