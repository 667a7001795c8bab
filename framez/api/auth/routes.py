# framez/api/auth/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from framez.api.auth.schemas import LoginSchema, SignupSchema, SessionResponseSchema
from framez.core.security import create_session_token, current_session

auth_bp = Blueprint('auth', __name__)


def _session_response(session, status: int):
    return jsonify({
        "access_token": create_session_token(session),
        "session": SessionResponseSchema().dump(session),
    }), status


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """
    이메일/비밀번호/이름으로 Firebase 계정을 만들고 액세스 토큰을 발급합니다.
    - 입력값 오류는 전역 ValidationError 핸들러가 400 으로 응답합니다.
    - Firebase 거부(중복 이메일 등)는 AUTHENTICATION_FAILED 로 응답합니다.
    """
    data = SignupSchema().load(request.get_json() or {})
    session = current_app.services['auth_client'].sign_up(data['email'], data['password'], data['display_name'].strip())
    logging.info(f"회원가입 성공 (user_id: {session.account_id})")
    return _session_response(session, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    """이메일/비밀번호로 로그인하고 액세스 토큰을 발급합니다."""
    data = LoginSchema().load(request.get_json() or {})
    session = current_app.services['auth_client'].sign_in_with_password(data['email'], data['password'])
    logging.info(f"로그인 성공 (user_id: {session.account_id})")
    return _session_response(session, 200)


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """토큰은 상태가 없으므로 클라이언트가 폐기합니다. 서버는 로그만 남깁니다."""
    session = current_session()
    logging.info(f"로그아웃 (user_id: {session.account_id})")
    return jsonify({"message": "로그아웃되었습니다."}), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    return jsonify(SessionResponseSchema().dump(current_session())), 200
