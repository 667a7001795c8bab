# framez/services/post_store.py
import logging
from typing import Optional, Dict, Any, Callable, List, Tuple

from firebase_admin import firestore

from framez.models.post import FIELD_AUTHOR_ID, FIELD_CREATED_AT, FIELD_LIKES

class FirestorePostStore:
    """
    Firestore 'posts' 컬렉션에 대한 얇은 어댑터.
    쿼리/리스너/원자적 배열 갱신 등 저장소 기능만 노출하며, 도메인 규칙은 FeedService 가 담당합니다.
    """
    def __init__(self, collection_name: str = 'posts'):
        self.db = firestore.client()
        self.posts_ref = self.db.collection(collection_name)

    def _feed_query(self, author_id: Optional[str]):
        query = self.posts_ref
        if author_id:
            query = query.where(FIELD_AUTHOR_ID, '==', author_id)
        return query.order_by(FIELD_CREATED_AT, direction=firestore.Query.DESCENDING)

    def listen(self, author_id: Optional[str],
               on_next: Callable[[List[Tuple[str, Dict[str, Any]]]], None],
               on_error: Callable[[Exception], None]) -> Callable[[], None]:
        """
        실시간 리스너를 등록합니다. 알림마다 전체 결과 집합을 (doc_id, data) 리스트로 전달합니다.
        반환값은 리스너를 해제하는 함수입니다.
        """
        def _on_snapshot(docs, changes, read_time):
            try:
                documents = [(doc.id, doc.to_dict() or {}) for doc in docs]
            except Exception as e:
                on_error(e)
                return
            on_next(documents)

        try:
            watch = self._feed_query(author_id).on_snapshot(_on_snapshot)
        except Exception as e:
            logging.error(f"Firestore 리스너 등록 실패 (author_id: {author_id}): {e}", exc_info=True)
            on_error(e)
            return lambda: None

        # Python SDK 에는 오류 콜백이 없습니다. 스트림이 실패하면 SDK 스레드가
        # watch.close(reason=exc) 를 호출하고 그 안에서 reason 을 다시 던지므로, 이를 on_error 로 전달합니다.
        sdk_close = watch.close

        def _close(reason=None):
            try:
                sdk_close(reason=reason)
            except Exception as e:
                logging.error(f"Firestore 리스너 스트림 종료 (author_id: {author_id}): {e}")
                on_error(e)

        watch.close = _close
        return watch.unsubscribe

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        doc = self.posts_ref.document(post_id).get()
        if not doc.exists:
            return None
        return doc.to_dict()

    def add_like(self, post_id: str, account_id: str) -> None:
        self.posts_ref.document(post_id).update({FIELD_LIKES: firestore.ArrayUnion([account_id])})

    def remove_like(self, post_id: str, account_id: str) -> None:
        self.posts_ref.document(post_id).update({FIELD_LIKES: firestore.ArrayRemove([account_id])})

    def create_post(self, data: Dict[str, Any]) -> str:
        doc_ref = self.posts_ref.document()
        doc_ref.set(data)
        logging.info(f"Firestore 저장 성공 (Collection: {self.posts_ref.id}, Doc ID: {doc_ref.id})")
        return doc_ref.id

    def delete_post(self, post_id: str) -> None:
        self.posts_ref.document(post_id).delete()

    @staticmethod
    def server_timestamp():
        return firestore.SERVER_TIMESTAMP
