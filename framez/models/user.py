# framez/models/user.py
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Session:
    """
    현재 인증된 계정 정보. 신원 서비스(Firebase Auth)가 소유하며 코어는 읽기만 합니다.
    """
    account_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def author_name(self) -> str:
        """게시글에 비정규화되어 저장될 작성자 이름 (표시 이름이 없으면 이메일)."""
        return self.display_name or self.email or ""
