# framez/models/post.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, FrozenSet, Dict, Any

from framez.utils.datetime_utils import DateTimeUtils

# Firestore 'posts' 문서의 필드 이름. 모바일 클라이언트와 공유하는 형식이므로 변경하지 않습니다.
FIELD_AUTHOR_ID = 'userId'
FIELD_AUTHOR_EMAIL = 'userEmail'
FIELD_AUTHOR_NAME = 'userDisplayName'
FIELD_CONTENT = 'content'
FIELD_IMAGE_URL = 'imageUrl'
FIELD_CREATED_AT = 'createdAt'
FIELD_LIKES = 'likes'
FIELD_COMMENTS = 'comments'


@dataclass(frozen=True)
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 하나를 정규화한 불변 레코드.
    로컬 뷰는 이 객체의 리스트이며, 호출자가 직접 수정할 수 없습니다.
    """
    id: str
    author_id: str
    author_display_name: str
    text_content: str = ""
    image_url: Optional[str] = None
    author_email: Optional[str] = None
    created_at: Optional[datetime] = None
    liked_by: FrozenSet[str] = field(default_factory=frozenset)
    comment_count: int = 0

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Post":
        """
        스냅샷 문서를 Post 로 변환합니다.
        - 방금 생성된 문서는 일부 필드가 아직 없을 수 있으므로 likes 는 빈 집합, comments 는 0 으로 정규화합니다.
        """
        data = data or {}
        created_at = DateTimeUtils.from_firestore(data.get(FIELD_CREATED_AT))
        if not isinstance(created_at, datetime):
            # 서버 시간 미확정
            created_at = None
        return cls(
            id=doc_id,
            author_id=data.get(FIELD_AUTHOR_ID, ""),
            author_display_name=data.get(FIELD_AUTHOR_NAME) or data.get(FIELD_AUTHOR_EMAIL) or "",
            author_email=data.get(FIELD_AUTHOR_EMAIL),
            text_content=data.get(FIELD_CONTENT) or "",
            image_url=data.get(FIELD_IMAGE_URL) or None,
            created_at=created_at,
            liked_by=frozenset(data.get(FIELD_LIKES) or ()),
            comment_count=max(0, int(data.get(FIELD_COMMENTS) or 0)),
        )

    def is_liked_by(self, account_id: Optional[str]) -> bool:
        return bool(account_id) and account_id in self.liked_by

    @property
    def like_count(self) -> int:
        return len(self.liked_by)


@dataclass
class PostDraft:
    """게시글 작성 화면에서 넘어오는 입력값. image_uri 는 로컬 경로 또는 file:// URI."""
    text: Optional[str] = None
    image_uri: Optional[str] = None

    @property
    def trimmed_text(self) -> str:
        return (self.text or "").strip()

    def is_empty(self) -> bool:
        return not self.trimmed_text and not self.image_uri


def sort_newest_first(posts):
    """createdAt 내림차순 정렬. 서버 시간이 아직 확정되지 않은 게시글은 가장 최신으로 취급합니다."""
    return sorted(posts, key=lambda p: p.created_at or DateTimeUtils.MAX, reverse=True)
