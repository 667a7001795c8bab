# conftest.py
"""
테스트 공용 fixture 와 외부 협력 서비스(Firestore, Cloudinary, Firebase Auth) 대역.

사용법: python -m pytest -v
"""

from datetime import datetime, timezone, timedelta

import pytest

from framez.core.errors import UploadFailedError, AuthenticationFailedError
from framez.feed.service import FeedService
from framez.models.user import Session

BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def minutes_after_base(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


class FakeListener:
    def __init__(self, author_id, on_next, on_error):
        self.author_id = author_id
        self.on_next = on_next
        self.on_error = on_error
        self.active = True

    def unsubscribe(self):
        self.active = False


class FakePostStore:
    """
    메모리 기반 문서 저장소 대역.
    - 변경 작업은 documents 에 반영되지만, push() 를 호출하기 전까지 리스너에 알리지 않습니다.
    - calls 에 저장소로 나간 모든 변경 요청을 기록합니다.
    """
    SERVER_TIMESTAMP = object()

    def __init__(self):
        self.documents = {}
        self.listeners = []
        self.calls = []
        self.fail_with = None
        self._next_id = 1

    # --- 테스트 보조 ---

    def seed(self, post_id, **fields):
        data = {'userId': 'author-1', 'userDisplayName': 'Author One', 'content': 'hello',
                'createdAt': BASE_TIME, 'likes': [], 'comments': 0}
        data.update(fields)
        self.documents[post_id] = data
        return data

    def snapshot(self, author_id=None):
        return [(doc_id, dict(data)) for doc_id, data in self.documents.items()
                if author_id is None or data.get('userId') == author_id]

    def push(self):
        """활성 리스너 모두에게 현재 전체 스냅샷을 전달합니다."""
        for listener in list(self.listeners):
            if listener.active:
                listener.on_next(self.snapshot(listener.author_id))

    def fail_listeners(self, exc):
        for listener in list(self.listeners):
            if listener.active:
                listener.on_error(exc)

    def _check_failure(self):
        if self.fail_with is not None:
            raise self.fail_with

    # --- 저장소 인터페이스 ---

    def listen(self, author_id, on_next, on_error):
        listener = FakeListener(author_id, on_next, on_error)
        self.listeners.append(listener)
        return listener.unsubscribe

    def get_post(self, post_id):
        self.calls.append(('get_post', post_id))
        self._check_failure()
        data = self.documents.get(post_id)
        return dict(data) if data is not None else None

    def add_like(self, post_id, account_id):
        self.calls.append(('add_like', post_id, account_id))
        self._check_failure()
        likes = self.documents[post_id].setdefault('likes', [])
        if account_id not in likes:
            likes.append(account_id)

    def remove_like(self, post_id, account_id):
        self.calls.append(('remove_like', post_id, account_id))
        self._check_failure()
        likes = self.documents[post_id].setdefault('likes', [])
        if account_id in likes:
            likes.remove(account_id)

    def create_post(self, data):
        self.calls.append(('create_post', data))
        self._check_failure()
        post_id = f"post-{self._next_id}"
        self._next_id += 1
        self.documents[post_id] = dict(data)
        return post_id

    def delete_post(self, post_id):
        self.calls.append(('delete_post', post_id))
        self._check_failure()
        self.documents.pop(post_id, None)

    def server_timestamp(self):
        return self.SERVER_TIMESTAMP


class FakeImageHost:
    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload(self, filename, content, content_type):
        self.uploads.append((filename, len(content), content_type))
        if self.fail:
            raise UploadFailedError("Upload preset not found")
        return f"https://res.cloudinary.com/framez-test/image/upload/{filename}"


class FakeAuthClient:
    def __init__(self):
        self.accounts = {}

    def sign_up(self, email, password, display_name):
        if email in self.accounts:
            raise AuthenticationFailedError("인증에 실패했습니다: EMAIL_EXISTS")
        session = Session(account_id=f"uid-{len(self.accounts) + 1}", email=email, display_name=display_name)
        self.accounts[email] = (password, session)
        return session

    def sign_in_with_password(self, email, password):
        stored = self.accounts.get(email)
        if not stored or stored[0] != password:
            raise AuthenticationFailedError("인증에 실패했습니다: INVALID_LOGIN_CREDENTIALS")
        return stored[1]


@pytest.fixture
def store():
    return FakePostStore()


@pytest.fixture
def image_host():
    return FakeImageHost()


@pytest.fixture
def feed_service(store, image_host):
    return FeedService(store, image_host)


@pytest.fixture
def session():
    return Session(account_id='viewer-1', email='viewer@framez.app', display_name='Jane Viewer')


@pytest.fixture
def author_session():
    return Session(account_id='author-1', email='author@framez.app', display_name='Author One')


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def app(feed_service, auth_client):
    from framez import create_app
    app = create_app('testing', services={'feed': feed_service, 'auth_client': auth_client})
    yield app
    app.services['global_feed'].release()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Session 으로 발급한 Bearer 헤더를 만드는 함수를 반환합니다."""
    from framez.core.security import create_session_token

    def _headers(session):
        with app.app_context():
            return {"Authorization": f"Bearer {create_session_token(session)}"}
    return _headers
