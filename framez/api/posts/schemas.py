# framez/api/posts/schemas.py
from marshmallow import Schema, fields, validate

from framez.utils.datetime_utils import DateTimeUtils

# --- API 요청/응답 스키마 ---

class PostCreateSchema(Schema):
    """POST /api/posts 폼 필드의 유효성을 검사합니다. 빈 게시글 여부는 서비스 계층이 판단합니다."""
    text = fields.Str(load_default="", validate=validate.Length(max=2000))


class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    id = fields.Str(dump_only=True)
    author_id = fields.Str()
    author_display_name = fields.Str()
    text_content = fields.Str(data_key="text")
    image_url = fields.Str(allow_none=True)
    created_at = fields.Method("get_created_at")
    time_ago = fields.Method("get_time_ago")
    like_count = fields.Int()
    comment_count = fields.Int()
    is_liked = fields.Method("get_is_liked")

    def __init__(self, *args, account_id=None, **kwargs):
        # 좋아요 여부를 계산할 요청자 계정 (비로그인 시 None)
        super().__init__(*args, **kwargs)
        self.account_id = account_id

    def get_created_at(self, post):
        return DateTimeUtils.to_iso_string(post.created_at)

    def get_time_ago(self, post):
        return DateTimeUtils.time_ago(post.created_at)

    def get_is_liked(self, post):
        return post.is_liked_by(self.account_id)


class GridItemSchema(Schema):
    """프로필 그리드 타일."""
    id = fields.Str()
    image_url = fields.Str(allow_none=True)
    text = fields.Str(allow_none=True)


class ProfileHeaderSchema(Schema):
    account_id = fields.Str()
    display_name = fields.Str(allow_none=True)
    email = fields.Str(allow_none=True)
    initials = fields.Str()
    post_count = fields.Int()
    followers = fields.Int()
    following = fields.Int()
