# framez/feed/synchronizer.py
"""
실시간 피드 동기화 모듈

문서 저장소의 스냅샷 리스너를 구독하여 게시글 컬렉션의 로컬 정렬 뷰를 유지합니다.
- 저장소는 알림마다 전체 결과 집합(full snapshot)을 전달하며, 동기화기는 매번 뷰를 새로 만듭니다.
- 뷰는 동기화기 인스턴스가 단독 소유하며, 변경은 오직 저장소 푸시를 통해서만 반영됩니다.
- Firestore SDK 는 별도 스레드에서 콜백을 호출하므로 상태 전이는 RLock 으로 직렬화합니다.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Dict, Any

from framez.core.errors import SubscriptionError
from framez.models.post import Post, sort_newest_first

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[Post]], None]
ErrorCallback = Callable[[SubscriptionError], None]


class SubscriptionStatus(Enum):
    LOADING = "loading"
    LIVE = "live"
    ERROR = "error"
    RELEASED = "released"


class FeedSynchronizer:
    """
    하나의 구독(전체 피드 또는 특정 작성자 피드)을 담당하는 동기화기이자 구독 핸들.

    :param store: listen(author_id, on_next, on_error) -> unsubscribe 를 제공하는 문서 저장소 어댑터
    :param author_id: None 이면 전체 피드, 값이 있으면 해당 작성자의 게시글만
    :param on_update: 정규화/정렬된 뷰가 갱신될 때마다 호출
    :param on_error: 구독이 오류로 종료될 때 한 번 호출
    """

    def __init__(self, store, author_id: Optional[str] = None,
                 on_update: Optional[UpdateCallback] = None,
                 on_error: Optional[ErrorCallback] = None):
        self.store = store
        self.author_id = author_id
        self._on_update = on_update
        self._on_error = on_error
        self._lock = threading.RLock()
        self._posts: List[Post] = []
        self._status = SubscriptionStatus.LOADING
        self._error: Optional[SubscriptionError] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- 조회용 프로퍼티 ---

    @property
    def posts(self) -> List[Post]:
        with self._lock:
            return list(self._posts)

    @property
    def status(self) -> SubscriptionStatus:
        return self._status

    @property
    def error(self) -> Optional[SubscriptionError]:
        return self._error

    @property
    def is_active(self) -> bool:
        return self._status in (SubscriptionStatus.LOADING, SubscriptionStatus.LIVE)

    def find(self, post_id: str) -> Optional[Post]:
        """가장 최근에 동기화된 뷰에서 게시글을 찾습니다."""
        with self._lock:
            return next((post for post in self._posts if post.id == post_id), None)

    # --- 생명주기 ---

    def start(self) -> "FeedSynchronizer":
        unsubscribe = self.store.listen(self.author_id, self._handle_snapshot, self._handle_error)
        with self._lock:
            if self._status is SubscriptionStatus.RELEASED:
                # start 도중 release 된 경우 리스너를 즉시 정리
                unsubscribe()
            else:
                self._unsubscribe = unsubscribe
        logger.info(f"피드 구독 시작 (author_id: {self.author_id or 'ALL'})")
        return self

    def release(self) -> None:
        """
        구독을 해제합니다. 반환 이후에는 이미 전달 중이던 알림이 있어도 옵저버가 호출되지 않습니다.
        두 번 이상 호출해도 안전합니다.
        """
        with self._lock:
            if self._status is SubscriptionStatus.RELEASED:
                return
            self._status = SubscriptionStatus.RELEASED
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe:
            try:
                unsubscribe()
            except Exception as e:
                logger.warning(f"리스너 해제 중 오류 (author_id: {self.author_id}): {e}")
        logger.info(f"피드 구독 해제 (author_id: {self.author_id or 'ALL'})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    # --- 저장소 콜백 ---

    def _handle_snapshot(self, documents: Iterable[Tuple[str, Dict[str, Any]]]) -> None:
        with self._lock:
            if not self.is_active:
                return
            try:
                posts = sort_newest_first(Post.from_document(doc_id, data) for doc_id, data in documents)
            except Exception as e:
                logger.error(f"스냅샷 정규화 실패 (author_id: {self.author_id}): {e}", exc_info=True)
                self._fail(e)
                return
            self._posts = posts
            self._status = SubscriptionStatus.LIVE
            if self._on_update:
                try:
                    self._on_update(list(posts))
                except Exception as e:
                    # 옵저버 오류가 저장소 리스너 스레드를 중단시키지 않도록 기록만 합니다.
                    logger.error(f"피드 옵저버 처리 실패 (author_id: {self.author_id}): {e}", exc_info=True)

    def _handle_error(self, exc: Exception) -> None:
        with self._lock:
            if not self.is_active:
                return
            logger.error(f"피드 구독 오류 (author_id: {self.author_id}): {exc}")
            self._fail(exc)

    def _fail(self, exc: Exception) -> None:
        # 종료 상태로 전환. 자동 재구독은 하지 않으며 기존 뷰는 그대로 유지합니다.
        error = exc if isinstance(exc, SubscriptionError) else SubscriptionError()
        if error is not exc:
            error.__cause__ = exc
        self._error = error
        self._status = SubscriptionStatus.ERROR
        if self._on_error:
            try:
                self._on_error(self._error)
            except Exception as e:
                logger.error(f"피드 오류 옵저버 처리 실패 (author_id: {self.author_id}): {e}", exc_info=True)
