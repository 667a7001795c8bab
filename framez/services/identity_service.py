# framez/services/identity_service.py
import logging
import threading
from typing import Optional, Callable, List

import requests
from flask import Flask
from marshmallow import ValidationError

from framez.core.errors import AuthenticationFailedError
from framez.models.user import Session

SessionCallback = Callable[[Optional[Session]], None]


class FirebaseAuthClient:
    """
    Firebase Authentication(Identity Toolkit) REST API 와 통신하는 서비스 클래스입니다.
    상태를 갖지 않으므로 HTTP 요청마다 공유해서 사용할 수 있습니다.
    """
    _base_url = "https://identitytoolkit.googleapis.com/v1/accounts:{method}"

    def __init__(self, api_key: Optional[str] = None, http: Optional[requests.Session] = None):
        self.api_key = api_key
        self.http = http or requests.Session()

    def init_app(self, app: Flask):
        self.api_key = app.config.get('FIREBASE_WEB_API_KEY')
        if not self.api_key:
            raise ValueError("FIREBASE_WEB_API_KEY 설정이 .env 또는 설정 파일에 필요합니다.")
        logging.info("FirebaseAuthClient: Firebase 인증 클라이언트가 성공적으로 초기화되었습니다.")

    def _call(self, method: str, payload: dict) -> dict:
        if not self.api_key:
            raise RuntimeError("FirebaseAuthClient가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")
        try:
            response = self.http.post(
                self._base_url.format(method=method),
                params={"key": self.api_key},
                json=payload,
            )
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logging.error(f"Firebase Auth 요청 실패 ({method}): {e}", exc_info=True)
            raise AuthenticationFailedError("인증 서버와 통신하지 못했습니다.") from e

        if not response.ok:
            reason = (body.get("error") or {}).get("message", "UNKNOWN")
            logging.warning(f"Firebase Auth 거부 ({method}): {reason}")
            raise AuthenticationFailedError(f"인증에 실패했습니다: {reason}")
        return body

    def sign_in_with_password(self, email: str, password: str) -> Session:
        body = self._call("signInWithPassword", {
            "email": email, "password": password, "returnSecureToken": True,
        })
        return Session(account_id=body["localId"], email=body.get("email", email),
                       display_name=body.get("displayName") or None)

    def sign_up(self, email: str, password: str, display_name: str) -> Session:
        body = self._call("signUp", {
            "email": email, "password": password, "returnSecureToken": True,
        })
        # 가입 직후 표시 이름을 프로필에 설정
        self._call("update", {
            "idToken": body["idToken"], "displayName": display_name, "returnSecureToken": False,
        })
        logging.info(f"신규 계정 생성 완료 (user_id: {body['localId']})")
        return Session(account_id=body["localId"], email=body.get("email", email), display_name=display_name)


def validate_credentials(email: Optional[str], password: Optional[str], display_name: Optional[str] = None,
                         require_display_name: bool = False) -> None:
    """네트워크 호출 전에 필수 입력값을 확인합니다."""
    errors = {}
    if not (email or "").strip():
        errors["email"] = ["이메일은 필수입니다."]
    if not password:
        errors["password"] = ["비밀번호는 필수입니다."]
    if require_display_name and not (display_name or "").strip():
        errors["display_name"] = ["이름은 필수입니다."]
    if errors:
        raise ValidationError(errors)


class FirebaseIdentity:
    """
    단일 사용자 클라이언트(CLI 등)를 위한 세션 보관자.
    현재 세션을 보관하고, 로그인/로그아웃 시 등록된 콜백에 알립니다.
    """
    def __init__(self, client: FirebaseAuthClient):
        self.client = client
        self._session: Optional[Session] = None
        self._callbacks: List[SessionCallback] = []
        self._lock = threading.Lock()

    def current_session(self) -> Optional[Session]:
        return self._session

    def sign_in(self, email: str, password: str) -> Session:
        validate_credentials(email, password)
        session = self.client.sign_in_with_password(email.strip(), password)
        self._set_session(session)
        return session

    def sign_up(self, email: str, password: str, display_name: str) -> Session:
        validate_credentials(email, password, display_name, require_display_name=True)
        session = self.client.sign_up(email.strip(), password, display_name.strip())
        self._set_session(session)
        return session

    def sign_out(self) -> None:
        self._set_session(None)

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """
        세션 변경 콜백을 등록합니다. 등록 즉시 현재 상태로 한 번 호출됩니다.
        반환값은 등록을 해제하는 함수입니다.
        """
        with self._lock:
            self._callbacks.append(callback)
        callback(self._session)

        def _unregister():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
        return _unregister

    def _set_session(self, session: Optional[Session]) -> None:
        with self._lock:
            self._session = session
            callbacks = list(self._callbacks)
        logging.info(f"세션 변경: {session.account_id if session else '로그아웃'}")
        for callback in callbacks:
            callback(session)
