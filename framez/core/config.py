# framez/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # 우리 서버가 발급하는 JWT 액세스 토큰의 서명 키
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    # Firebase Auth REST API 호출에 사용하는 웹 API 키 (이메일/비밀번호 로그인)
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')
    # 게시글 문서를 저장하는 Firestore 컬렉션 이름
    POSTS_COLLECTION = os.getenv('POSTS_COLLECTION', 'posts')

    # Cloudinary 비서명 업로드 설정
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_UPLOAD_PRESET = os.getenv('CLOUDINARY_UPLOAD_PRESET')
    # 업로드 전에 클라이언트 측에서 확인하는 이미지 최대 크기 (5MB)
    MAX_IMAGE_BYTES = int(os.getenv('MAX_IMAGE_BYTES', 5 * 1024 * 1024))
    # multipart 요청 본문 상한. 이미지 제한보다 약간 크게 두어 IMAGE_TOO_LARGE 로 응답할 수 있게 합니다.
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    # 피드 스트림(SSE)에서 변경이 없을 때 keepalive 주석을 보내는 간격 (초)
    SSE_KEEPALIVE_SECONDS = float(os.getenv('SSE_KEEPALIVE_SECONDS', 15))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'framez-testing-secret-key-0123456789abcdef')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    CLOUDINARY_CLOUD_NAME = 'framez-test'
    CLOUDINARY_UPLOAD_PRESET = 'framez_uploads'
    SSE_KEEPALIVE_SECONDS = 0.05

# FLASK_ENV 값에 따라 create_app 에서 적절한 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    production=ProductionConfig,
    testing=TestingConfig
)
