# framez/api/posts/routes.py
import logging
import os
import queue
import tempfile
from flask import Blueprint, request, jsonify, Response, current_app, json, stream_with_context
from flask_jwt_extended import jwt_required

from framez.api.posts.schemas import PostCreateSchema, PostResponseSchema
from framez.core.errors import SubscriptionError
from framez.core.security import current_session
from framez.feed.synchronizer import SubscriptionStatus
from framez.models.post import PostDraft

posts_bp = Blueprint('posts_bp', __name__)


def global_feed():
    """
    앱 전체에서 공유하는 전체 피드 구독을 반환합니다.
    구독이 오류로 종료된 경우 새로 구독하고, 이번 요청에는 오류를 알립니다.
    """
    feed = current_app.services['global_feed']
    if feed.status is SubscriptionStatus.ERROR:
        error = feed.error
        logging.warning(f"전체 피드 구독이 종료되어 다시 구독합니다: {error}")
        feed.release()
        current_app.services['global_feed'] = current_app.services['feed'].subscribe()
        raise error or SubscriptionError()
    return feed


@posts_bp.route('', methods=['GET'])
@jwt_required(optional=True) # 비로그인 사용자도 피드는 볼 수 있도록 허용
def get_posts():
    """
    전체 피드의 현재 동기화 뷰를 반환합니다 (createdAt 내림차순).
    첫 스냅샷 전에는 status 가 'loading' 입니다.
    """
    session = current_session()
    feed = global_feed()
    schema = PostResponseSchema(many=True, account_id=session.account_id if session else None)
    return jsonify({"status": feed.status.value, "posts": schema.dump(feed.posts)}), 200


@posts_bp.route('/stream', methods=['GET'])
@jwt_required(optional=True)
def stream_posts():
    """
    피드 변경을 server-sent events 로 전달합니다. 이벤트마다 전체 게시글 목록이 담깁니다.
    - author_id 쿼리 파라미터가 있으면 해당 작성자 피드만 구독합니다.
    - 클라이언트 연결이 끊기면 구독을 해제합니다.
    """
    session = current_session()
    author_id = request.args.get('author_id') or None
    events = queue.Queue()
    subscription = current_app.services['feed'].subscribe(
        author_id,
        on_update=lambda posts: events.put(('update', posts)),
        on_error=lambda error: events.put(('error', error)),
    )
    schema = PostResponseSchema(many=True, account_id=session.account_id if session else None)
    keepalive = current_app.config['SSE_KEEPALIVE_SECONDS']

    def generate():
        try:
            # 첫 청크를 바로 보내 응답을 시작하고, 이후 주기적인 keepalive 로 끊긴 연결을 감지합니다.
            yield ": connected\n\n"
            while True:
                try:
                    kind, payload = events.get(timeout=keepalive)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                if kind == 'error':
                    yield f"event: error\ndata: {json.dumps(payload.to_dict())}\n\n"
                    return
                yield f"data: {json.dumps({'posts': schema.dump(payload)})}\n\n"
        finally:
            subscription.release()

    return Response(stream_with_context(generate()), mimetype='text/event-stream')


@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    """
    새로운 게시글을 생성합니다 (multipart/form-data: text, image).
    - 텍스트와 이미지가 모두 없으면 EMPTY_POST, 이미지가 5MB 를 넘으면 IMAGE_TOO_LARGE.
    - 성공 시 생성된 게시글 ID 를 201 Created 로 반환합니다. 피드에는 다음 푸시로 반영됩니다.
    """
    feed_service = current_app.services['feed']
    data = PostCreateSchema().load(request.form.to_dict())
    image = request.files.get('image')

    image_path = None
    try:
        if image and image.filename:
            suffix = os.path.splitext(image.filename)[1]
            with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
                image.save(tmp)
                image_path = tmp.name
        post_id = feed_service.create_post(PostDraft(text=data['text'], image_uri=image_path), current_session())
    finally:
        if image_path and os.path.exists(image_path):
            os.remove(image_path)

    return jsonify({"post_id": post_id}), 201


@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def toggle_post_like(post_id: str):
    """게시글의 좋아요를 누르거나 취소합니다. 응답의 liked 는 요청한 결과 상태입니다."""
    liked = current_app.services['feed'].toggle_like(post_id, current_session())
    return jsonify({"post_id": post_id, "liked": liked}), 200


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """
    게시글을 삭제합니다. 작성자 권한은 Firestore 보안 규칙이 검사합니다.
    클라이언트는 호출 전에 사용자 확인을 받아야 합니다.
    """
    current_app.services['feed'].delete_post(post_id, current_session())
    return Response(status=204)
