# framez/api/auth/schemas.py
from marshmallow import Schema, fields, validate

class LoginSchema(Schema):
    """POST /api/auth/login 요청 본문"""
    email = fields.Email(required=True, error_messages={"required": "이메일은 필수입니다."})
    password = fields.Str(required=True, validate=validate.Length(min=1),
                          error_messages={"required": "비밀번호는 필수입니다."})

class SignupSchema(LoginSchema):
    """POST /api/auth/signup 요청 본문"""
    display_name = fields.Str(required=True, validate=validate.Length(min=1, max=100),
                              error_messages={"required": "이름은 필수입니다."})

class SessionResponseSchema(Schema):
    account_id = fields.Str()
    email = fields.Str(allow_none=True)
    display_name = fields.Str(allow_none=True)
