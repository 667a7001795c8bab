# framez/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException
import firebase_admin
from firebase_admin import credentials

# - 설정 / 도메인 예외
from framez.core.config import config_by_name
from framez.core.errors import FramezError

# - API 블루프린트
from framez.api.auth.routes import auth_bp
from framez.api.posts.routes import posts_bp
from framez.api.users.routes import users_bp

# - 서비스 모듈
from framez.services.post_store import FirestorePostStore
from framez.services.image_host import CloudinaryImageHost
from framez.services.identity_service import FirebaseAuthClient
from framez.feed.service import FeedService

# - CLI
from framez.cli import feed_cli


def create_app(config_name=None, services=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' / 'production' / 'testing' (기본값은 FLASK_ENV)
    :param services: 테스트에서 주입할 서비스 딕셔너리. 주어지면 Firebase 를 초기화하지 않습니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    if services is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            firebase_admin.initialize_app(credentials.Certificate(cred_path))

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    if services is not None:
        app.services = dict(services)
    else:
        app.services = {}

        # 5-1. 외부 협력 서비스 어댑터
        try:
            image_host = CloudinaryImageHost()
            image_host.init_app(app)
            app.services['image_host'] = image_host
            logging.info("Image host initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize image host: {e}")
            raise

        try:
            auth_client = FirebaseAuthClient()
            auth_client.init_app(app)
            app.services['auth_client'] = auth_client
            logging.info("Auth client initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize auth client: {e}")
            raise

        app.services['post_store'] = FirestorePostStore(app.config['POSTS_COLLECTION'])

        # 5-2. 다른 서비스를 주입받는 도메인 서비스
        app.services['feed'] = FeedService(
            store=app.services['post_store'],
            image_host=app.services['image_host'],
            max_image_bytes=app.config['MAX_IMAGE_BYTES'],
        )

    # 5-3. 앱 전체가 공유하는 전체 피드 구독 (GET /api/posts, 프로필 조회, 좋아요 상태 판단에 사용)
    if 'global_feed' not in app.services:
        app.services['global_feed'] = app.services['feed'].subscribe()

    # =====================================================================================
    # 6. 블루프린트 / CLI 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.cli.add_command(feed_cli)

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(FramezError)
    def handle_framez_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return jsonify({"error_code": err.name.upper().replace(" ", "_"), "message": err.description}), err.code
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
