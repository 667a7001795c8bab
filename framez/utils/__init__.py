# framez/utils/__init__.py
"""
유틸리티 모듈 패키지
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
