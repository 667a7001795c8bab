# framez/core/errors.py

class FramezError(Exception):
    """
    피드 코어에서 발생하는 모든 도메인 예외의 기반 클래스.
    라우트와 전역 에러 핸들러는 error_code / status_code 를 그대로 JSON 응답으로 변환합니다.
    """
    error_code = "FRAMEZ_ERROR"
    status_code = 500
    default_message = "요청을 처리하는 중 오류가 발생했습니다."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error_code": self.error_code, "message": self.message}


class UnauthenticatedError(FramezError):
    error_code = "UNAUTHENTICATED"
    status_code = 401
    default_message = "로그인이 필요한 작업입니다."


class AuthenticationFailedError(FramezError):
    error_code = "AUTHENTICATION_FAILED"
    status_code = 401
    default_message = "이메일 또는 비밀번호가 올바르지 않습니다."


# --- 네트워크 호출 전에 검출되는 클라이언트 측 검증 오류 ---

class EmptyPostError(FramezError):
    error_code = "EMPTY_POST"
    status_code = 400
    default_message = "내용 또는 이미지를 추가해주세요."


class ImageTooLargeError(FramezError):
    error_code = "IMAGE_TOO_LARGE"
    status_code = 413
    default_message = "이미지는 5MB 이하여야 합니다."


# --- 외부 협력 서비스(이미지 호스트, 문서 저장소) 오류 ---

class UploadFailedError(FramezError):
    error_code = "UPLOAD_FAILED"
    status_code = 502
    default_message = "이미지 업로드에 실패했습니다."


class MutationFailedError(FramezError):
    error_code = "MUTATION_FAILED"
    status_code = 502
    default_message = "게시글 변경 요청이 거부되었습니다."


class PermissionDeniedError(MutationFailedError):
    """저장소 보안 규칙에 의한 거부. 코어는 사유를 구분하지 않으므로 MutationFailed 와 동일하게 노출됩니다."""


class SubscriptionError(FramezError):
    error_code = "SUBSCRIPTION_ERROR"
    status_code = 502
    default_message = "게시글을 불러오지 못했습니다. 다시 시도해주세요."
