# framez/feed/service.py
import logging
import mimetypes
import os
import threading
import weakref
from typing import Optional, List, Dict, Tuple, Any
from urllib.parse import urlparse, unquote

from google.api_core import exceptions as google_exceptions

from framez.core.errors import (
    UnauthenticatedError, EmptyPostError, ImageTooLargeError, UploadFailedError,
    MutationFailedError, PermissionDeniedError,
)
from framez.feed.synchronizer import FeedSynchronizer, UpdateCallback, ErrorCallback
from framez.models.post import (
    Post, PostDraft,
    FIELD_AUTHOR_ID, FIELD_AUTHOR_EMAIL, FIELD_AUTHOR_NAME, FIELD_CONTENT,
    FIELD_IMAGE_URL, FIELD_CREATED_AT, FIELD_LIKES, FIELD_COMMENTS,
)
from framez.models.user import Session

MAX_IMAGE_BYTES = 5 * 1024 * 1024


class FeedService:
    """
    피드 구독과 게시글 변경(좋아요 토글, 삭제, 생성)을 담당하는 서비스 클래스.
    - 로컬 뷰는 절대 직접 수정하지 않습니다. 모든 변경은 저장소로 보내고 푸시로 돌아옵니다.
    - 세션은 전역에서 읽지 않고 모든 변경 작업에 명시적으로 전달받습니다.
    """

    def __init__(self, store, image_host, max_image_bytes: int = MAX_IMAGE_BYTES):
        self.store = store
        self.image_host = image_host
        self.max_image_bytes = max_image_bytes
        self._lock = threading.Lock()
        self._synchronizers = weakref.WeakSet()
        # (post_id, account_id) -> 이미 요청했지만 아직 푸시로 확인되지 않은 좋아요 의도
        self._pending_likes: Dict[Tuple[str, str], bool] = {}

    # =====================================================================================
    # 구독
    # =====================================================================================
    def subscribe(self, author_id: Optional[str] = None,
                  on_update: Optional[UpdateCallback] = None,
                  on_error: Optional[ErrorCallback] = None) -> FeedSynchronizer:
        """전체 피드(author_id=None) 또는 특정 작성자 피드를 구독하고 핸들을 반환합니다."""
        def _publish(posts: List[Post]):
            self._settle_pending_likes(posts, complete_feed=author_id is None)
            if on_update:
                on_update(posts)

        synchronizer = FeedSynchronizer(self.store, author_id, on_update=_publish, on_error=on_error)
        with self._lock:
            self._synchronizers.add(synchronizer)
        return synchronizer.start()

    def _find_local(self, post_id: str) -> Optional[Post]:
        with self._lock:
            synchronizers = [s for s in self._synchronizers if s.is_active]
        for synchronizer in synchronizers:
            post = synchronizer.find(post_id)
            if post:
                return post
        return None

    def _settle_pending_likes(self, posts: List[Post], complete_feed: bool = False) -> None:
        # 푸시에 포함된 게시글은 서버 상태가 기준이 되므로 대기 중인 의도를 제거합니다.
        # 전체 피드 푸시에 없는 게시글은 삭제된 것이므로 그 의도도 함께 제거합니다.
        post_ids = {post.id for post in posts}
        with self._lock:
            for key in [k for k in self._pending_likes if complete_feed or k[0] in post_ids]:
                del self._pending_likes[key]

    # =====================================================================================
    # 좋아요 토글
    # =====================================================================================
    def toggle_like(self, post_id: str, session: Optional[Session]) -> bool:
        """
        현재 계정의 좋아요 여부를 뒤집습니다. 변경 후 의도한 좋아요 상태를 반환합니다.
        - 현재 상태는 최신 로컬 뷰(및 아직 반영되지 않은 요청)에서 읽습니다.
        - 저장소에는 원자적 집합 추가/제거 하나만 보냅니다.
        """
        if session is None:
            raise UnauthenticatedError("좋아요를 누르려면 로그인이 필요합니다.")

        key = (post_id, session.account_id)
        with self._lock:
            currently_liked = self._pending_likes.get(key)
        if currently_liked is None:
            currently_liked = self._current_post(post_id).is_liked_by(session.account_id)

        with self._lock:
            self._pending_likes[key] = not currently_liked
        try:
            if currently_liked:
                self.store.remove_like(post_id, session.account_id)
            else:
                self.store.add_like(post_id, session.account_id)
        except Exception as e:
            with self._lock:
                self._pending_likes.pop(key, None)
            logging.error(f"좋아요 토글 실패 (user_id: {session.account_id}, post_id: {post_id}): {e}")
            raise self._mutation_error(e, "좋아요 상태를 변경하지 못했습니다. 다시 시도해주세요.") from e

        logging.info(f"좋아요 {'취소' if currently_liked else '추가'} 요청 완료 (post_id: {post_id})")
        return not currently_liked

    def _current_post(self, post_id: str) -> Post:
        post = self._find_local(post_id)
        if post:
            return post
        # 라이브 뷰에 없는 게시글만 저장소에서 한 번 읽습니다.
        try:
            data = self.store.get_post(post_id)
        except Exception as e:
            logging.error(f"게시글 조회 실패 (post_id: {post_id}): {e}")
            raise self._mutation_error(e, "게시글을 불러오지 못했습니다.") from e
        if data is None:
            raise MutationFailedError("게시글을 찾을 수 없습니다.")
        return Post.from_document(post_id, data)

    # =====================================================================================
    # 삭제
    # =====================================================================================
    def delete_post(self, post_id: str, session: Optional[Session]) -> None:
        """
        게시글을 삭제합니다. 작성자 확인은 저장소 보안 규칙에 맡기며 로컬에서 차단하지 않습니다.
        성공해도 로컬 뷰에서 즉시 제거하지 않고 다음 푸시를 기다립니다.
        """
        if session is None:
            raise UnauthenticatedError("게시글을 삭제하려면 로그인이 필요합니다.")

        local = self._find_local(post_id)
        if local and local.author_id != session.account_id:
            logging.warning(f"작성자가 아닌 사용자의 삭제 요청 (user_id: {session.account_id}, post_id: {post_id})")

        try:
            self.store.delete_post(post_id)
        except Exception as e:
            logging.error(f"게시글 삭제 실패 (post_id: {post_id}): {e}")
            raise self._mutation_error(e, "게시글을 삭제하지 못했습니다.") from e
        logging.info(f"게시글 삭제 요청 완료 (post_id: {post_id})")

    # =====================================================================================
    # 생성
    # =====================================================================================
    def create_post(self, draft: PostDraft, session: Optional[Session]) -> str:
        """
        새 게시글을 생성하고 문서 ID 를 반환합니다.
        1. 로컬 검증 (빈 게시글, 이미지 크기) - 네트워크 호출 전
        2. 이미지가 있으면 먼저 업로드 (실패 시 게시글 생성 전체 중단)
        3. 서버 시간으로 문서 생성
        """
        if session is None:
            raise UnauthenticatedError("게시글을 작성하려면 로그인이 필요합니다.")
        if draft.is_empty():
            raise EmptyPostError()

        image_url = None
        if draft.image_uri:
            filename, content, content_type = self._read_image(draft.image_uri)
            image_url = self.image_host.upload(filename, content, content_type)

        post_data: Dict[str, Any] = {
            FIELD_AUTHOR_ID: session.account_id,
            FIELD_AUTHOR_EMAIL: session.email,
            FIELD_AUTHOR_NAME: session.author_name,
            FIELD_CONTENT: draft.trimmed_text,
            FIELD_IMAGE_URL: image_url,
            FIELD_CREATED_AT: self.store.server_timestamp(),
            FIELD_LIKES: [],
            FIELD_COMMENTS: 0,
        }
        try:
            post_id = self.store.create_post(post_data)
        except Exception as e:
            logging.error(f"게시글 생성 실패 (user_id: {session.account_id}): {e}", exc_info=True)
            raise self._mutation_error(e, "게시글 생성에 실패했습니다. 다시 시도해주세요.") from e

        logging.info(f"게시글 생성 완료 (user_id: {session.account_id}, post_id: {post_id})")
        return post_id

    def _read_image(self, image_uri: str) -> Tuple[str, bytes, str]:
        """로컬 이미지 파일을 읽습니다. 크기 제한은 읽기 전에 확인합니다."""
        parsed = urlparse(image_uri)
        path = unquote(parsed.path) if parsed.scheme == 'file' else image_uri

        try:
            size = os.path.getsize(path)
        except OSError as e:
            logging.warning(f"이미지 파일을 읽을 수 없음 (uri: {image_uri}): {e}")
            raise UploadFailedError("이미지 파일을 읽을 수 없습니다.") from e
        if size > self.max_image_bytes:
            raise ImageTooLargeError()

        with open(path, 'rb') as f:
            content = f.read()
        filename = os.path.basename(path)
        content_type = mimetypes.guess_type(filename)[0] or 'image'
        return filename, content, content_type

    @staticmethod
    def _mutation_error(exc: Exception, message: str) -> MutationFailedError:
        if isinstance(exc, google_exceptions.PermissionDenied):
            return PermissionDeniedError(message)
        return MutationFailedError(message)
