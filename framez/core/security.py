# framez/core/security.py
from typing import Optional

from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity

from framez.models.user import Session


def create_session_token(session: Session) -> str:
    """Firebase uid 를 identity 로, 표시 이름과 이메일을 추가 클레임으로 담은 액세스 토큰을 발급합니다."""
    return create_access_token(
        identity=session.account_id,
        additional_claims={"display_name": session.display_name, "email": session.email},
    )


def current_session() -> Optional[Session]:
    """
    현재 요청의 JWT 에서 Session 을 복원합니다.
    jwt_required(optional=True) 라우트에서 토큰이 없으면 None 을 반환합니다.
    """
    account_id = get_jwt_identity()
    if not account_id:
        return None
    claims = get_jwt()
    return Session(account_id=account_id, email=claims.get("email"), display_name=claims.get("display_name"))
