# framez/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

이 모듈의 목적:
1. 모든 datetime 을 UTC timezone-aware 로 통일
2. Firestore Timestamp 읽기 변환
3. 피드 카드에 표시할 상대 시간("5 minutes ago") 생성
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    # 서버 시간이 아직 없는 게시글의 정렬 키 (항상 가장 최신)
    MAX = datetime.max.replace(tzinfo=timezone.utc)

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
        """datetime 객체를 'Z' 접미사 ISO 문자열로 변환 (None 은 그대로)"""
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 시간 값을 UTC datetime 으로 변환

        변환 규칙:
        - datetime (DatetimeWithNanoseconds 포함) -> UTC timezone-aware datetime
        - Firestore Timestamp 류 (timestamp() 메서드 보유) -> UTC datetime
        - dict/list 내부 재귀적 변환
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif hasattr(obj, 'timestamp'):
                return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]

            return obj

        except Exception as e:
            logger.error(f"Firestore 읽기 변환 실패: {obj} ({type(obj)}) - {e}")
            # 변환 실패 시 원본 객체 반환 (로그만 남김)
            return obj

    @staticmethod
    def time_ago(dt: Optional[datetime], reference: Optional[datetime] = None) -> str:
        """
        피드 카드에 표시할 상대 시간 문자열을 생성합니다.
        서버 시간이 아직 확정되지 않은 게시글(dt=None)은 'just now' 로 표시합니다.
        """
        if dt is None:
            return "just now"

        reference = reference or DateTimeUtils.now()
        dt = DateTimeUtils.from_firestore(dt)
        seconds = (reference - dt).total_seconds()
        if seconds < 60:
            return "just now"

        delta = relativedelta(reference, dt)
        for unit in ('years', 'months', 'days', 'hours', 'minutes'):
            value = getattr(delta, unit)
            if value:
                label = unit if value > 1 else unit[:-1]
                return f"{value} {label} ago"
        return "just now"

