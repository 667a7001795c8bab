# framez/services/test_identity_service.py
from unittest.mock import MagicMock

import pytest
from marshmallow import ValidationError

from framez.core.errors import AuthenticationFailedError
from framez.models.user import Session
from framez.services.identity_service import FirebaseAuthClient, FirebaseIdentity


def _response(status_code, body):
    response = MagicMock()
    response.ok = status_code < 400
    response.json.return_value = body
    return response


def test_sign_in_with_password_builds_session():
    http = MagicMock()
    http.post.return_value = _response(200, {"localId": "uid-1", "email": "a@framez.app", "displayName": "Ada"})
    client = FirebaseAuthClient("web-key", http=http)

    session = client.sign_in_with_password("a@framez.app", "secret")

    assert session == Session(account_id="uid-1", email="a@framez.app", display_name="Ada")
    args, kwargs = http.post.call_args
    assert args[0].endswith("accounts:signInWithPassword")
    assert kwargs["params"] == {"key": "web-key"}


def test_sign_up_sets_display_name():
    http = MagicMock()
    http.post.side_effect = [
        _response(200, {"localId": "uid-9", "email": "n@framez.app", "idToken": "token"}),
        _response(200, {"localId": "uid-9"}),
    ]
    client = FirebaseAuthClient("web-key", http=http)

    session = client.sign_up("n@framez.app", "secret", "New User")

    assert session.display_name == "New User"
    update_call = http.post.call_args_list[1]
    assert update_call.args[0].endswith("accounts:update")
    assert update_call.kwargs["json"]["displayName"] == "New User"


def test_rejected_credentials():
    http = MagicMock()
    http.post.return_value = _response(400, {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}})
    client = FirebaseAuthClient("web-key", http=http)

    with pytest.raises(AuthenticationFailedError) as exc_info:
        client.sign_in_with_password("a@framez.app", "wrong")
    assert "INVALID_LOGIN_CREDENTIALS" in exc_info.value.message


def test_session_change_callbacks(auth_client):
    auth_client.sign_up("a@framez.app", "secret", "Ada")
    identity = FirebaseIdentity(auth_client)
    seen = []

    unregister = identity.on_session_change(seen.append)
    session = identity.sign_in("a@framez.app", "secret")
    identity.sign_out()
    unregister()
    identity.sign_in("a@framez.app", "secret")

    # 등록 즉시 한 번, 로그인, 로그아웃 (해제 후 로그인은 알리지 않음)
    assert seen == [None, session, None]
    assert identity.current_session() == session


def test_missing_credentials_fail_before_network():
    client = MagicMock()
    identity = FirebaseIdentity(client)

    with pytest.raises(ValidationError):
        identity.sign_in("", "secret")
    with pytest.raises(ValidationError):
        identity.sign_up("a@framez.app", "secret", "  ")
    client.sign_in_with_password.assert_not_called()
    client.sign_up.assert_not_called()
