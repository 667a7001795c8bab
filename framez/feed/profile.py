# framez/feed/profile.py
from typing import List, Dict, Any, Optional

from framez.models.post import Post
from framez.models.user import Session

VIEW_MODES = ('grid', 'feed')


def initials_for(display_name: Optional[str]) -> str:
    """표시 이름의 앞 두 단어 첫 글자를 대문자로 (이름이 없으면 'NN')."""
    words = (display_name or '').split()
    return ''.join(word[0] for word in words).upper()[:2] or 'NN'


def build_profile(session: Session, posts: List[Post], view_mode: str = 'grid') -> Dict[str, Any]:
    """
    프로필 화면 데이터를 구성합니다.
    - grid: 이미지가 있으면 이미지, 없으면 본문 텍스트만 담은 타일
    - feed: 게시글 전체 (직렬화는 라우트의 스키마가 담당)
    """
    if view_mode not in VIEW_MODES:
        raise ValueError(f"'{view_mode}'은(는) 유효한 보기 방식이 아닙니다.")

    header = {
        "account_id": session.account_id,
        "display_name": session.display_name,
        "email": session.email,
        "initials": initials_for(session.display_name),
        "post_count": len(posts),
        # 팔로우 기능은 아직 없음
        "followers": 0,
        "following": 0,
    }

    if view_mode == 'grid':
        items = [
            {"id": post.id, "image_url": post.image_url, "text": None if post.image_url else post.text_content}
            for post in posts
        ]
    else:
        items = list(posts)

    return {"header": header, "view_mode": view_mode, "items": items}
