# framez/api/users/routes.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from framez.api.posts.routes import global_feed
from framez.api.posts.schemas import PostResponseSchema, GridItemSchema, ProfileHeaderSchema
from framez.core.security import current_session
from framez.feed.profile import build_profile

users_bp = Blueprint('users_bp', __name__)


def _posts_by(author_id: str):
    # 전체 피드 뷰가 이미 정렬되어 있으므로 작성자로 거르기만 합니다.
    return [post for post in global_feed().posts if post.author_id == author_id]


@users_bp.route('/<string:author_id>/posts', methods=['GET'])
@jwt_required(optional=True)
def get_user_posts(author_id: str):
    """특정 사용자가 작성한 게시물 목록을 최신순으로 조회합니다."""
    session = current_session()
    schema = PostResponseSchema(many=True, account_id=session.account_id if session else None)
    return jsonify({"posts": schema.dump(_posts_by(author_id))}), 200


@users_bp.route('/me/profile', methods=['GET'])
@jwt_required()
def get_my_profile():
    """
    내 프로필 화면 데이터를 조회합니다.
    - view=grid (기본): 이미지 또는 텍스트 타일
    - view=feed: 게시글 카드 목록
    """
    session = current_session()
    view_mode = request.args.get('view', 'grid')
    try:
        profile = build_profile(session, _posts_by(session.account_id), view_mode)
    except ValueError as e:
        return jsonify({"error_code": "INVALID_VIEW_MODE", "message": str(e)}), 400

    if view_mode == 'grid':
        items = GridItemSchema(many=True).dump(profile['items'])
    else:
        items = PostResponseSchema(many=True, account_id=session.account_id).dump(profile['items'])

    return jsonify({
        "header": ProfileHeaderSchema().dump(profile['header']),
        "view_mode": profile['view_mode'],
        "items": items,
    }), 200
