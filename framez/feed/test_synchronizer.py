# framez/feed/test_synchronizer.py
"""
실시간 피드 동기화기 테스트

사용법: python -m pytest framez/feed/test_synchronizer.py -v
"""

from conftest import minutes_after_base
from framez.core.errors import SubscriptionError
from framez.feed.synchronizer import FeedSynchronizer, SubscriptionStatus


def _collect(store, author_id=None):
    updates, errors = [], []
    synchronizer = FeedSynchronizer(store, author_id, on_update=updates.append, on_error=errors.append).start()
    return synchronizer, updates, errors


def test_view_is_sorted_newest_first_for_every_notification(store):
    """알림이 어떤 순서로 오더라도 발행되는 뷰는 createdAt 내림차순"""
    store.seed('old', createdAt=minutes_after_base(0))
    store.seed('new', createdAt=minutes_after_base(10))
    synchronizer, updates, _ = _collect(store)

    store.push()
    store.seed('middle', createdAt=minutes_after_base(5))
    store.push()
    store.seed('newest', createdAt=minutes_after_base(20))
    store.push()

    assert len(updates) == 3
    for view in updates:
        timestamps = [post.created_at for post in view]
        assert timestamps == sorted(timestamps, reverse=True)
    assert [post.id for post in updates[-1]] == ['newest', 'new', 'middle', 'old']
    assert synchronizer.status is SubscriptionStatus.LIVE


def test_missing_likes_and_comments_are_normalized(store):
    """방금 생성되어 likes / comments 필드가 없는 문서도 빈 집합과 0 으로 정규화"""
    store.documents['fresh'] = {'userId': 'author-1', 'content': 'hi', 'createdAt': minutes_after_base(1)}
    _, updates, _ = _collect(store)

    store.push()

    post = updates[-1][0]
    assert post.liked_by == frozenset()
    assert post.comment_count == 0


def test_pending_server_timestamp_is_treated_as_newest(store):
    store.seed('settled', createdAt=minutes_after_base(30))
    store.seed('pending', createdAt=None)
    _, updates, _ = _collect(store)

    store.push()

    assert [post.id for post in updates[-1]] == ['pending', 'settled']


def test_author_filter_only_receives_that_authors_posts(store):
    store.seed('mine', userId='author-1')
    store.seed('theirs', userId='author-2')
    synchronizer, updates, _ = _collect(store, author_id='author-1')

    store.push()

    assert [post.id for post in updates[-1]] == ['mine']
    assert synchronizer.find('theirs') is None


def test_loading_until_first_snapshot(store):
    synchronizer, updates, _ = _collect(store)
    assert synchronizer.status is SubscriptionStatus.LOADING
    assert synchronizer.posts == []
    assert updates == []


def test_release_blocks_late_notifications(store):
    """구독 해제 후 늦게 도착한 알림은 옵저버를 호출하지 않음"""
    store.seed('p1')
    synchronizer, updates, errors = _collect(store)
    store.push()
    listener = store.listeners[0]

    synchronizer.release()
    # 해제 요청 이전에 이미 전달 중이던 알림을 흉내냄
    listener.on_next(store.snapshot())
    listener.on_error(RuntimeError("late failure"))

    assert len(updates) == 1
    assert errors == []
    assert listener.active is False
    assert synchronizer.status is SubscriptionStatus.RELEASED


def test_release_is_idempotent(store):
    synchronizer, _, _ = _collect(store)
    synchronizer.release()
    synchronizer.release()
    assert synchronizer.status is SubscriptionStatus.RELEASED


def test_context_manager_releases(store):
    with FeedSynchronizer(store).start() as synchronizer:
        assert synchronizer.is_active
    assert store.listeners[0].active is False


def test_delivery_error_is_terminal_and_reported_once(store):
    store.seed('p1')
    synchronizer, updates, errors = _collect(store)
    store.push()

    store.fail_listeners(PermissionError("permission-denied"))
    store.fail_listeners(PermissionError("again"))
    store.push()

    assert len(errors) == 1
    assert isinstance(errors[0], SubscriptionError)
    assert isinstance(errors[0].__cause__, PermissionError)
    assert synchronizer.status is SubscriptionStatus.ERROR
    # 오류 후에도 마지막 정상 뷰는 그대로 유지되고, 더 이상 갱신되지 않음
    assert len(updates) == 1
    assert [post.id for post in synchronizer.posts] == ['p1']


def test_observer_failure_does_not_break_subscription(store):
    calls = []

    def flaky_observer(posts):
        calls.append(posts)
        raise RuntimeError("render failed")

    store.seed('p1')
    synchronizer = FeedSynchronizer(store, on_update=flaky_observer).start()
    store.push()
    store.push()

    assert len(calls) == 2
    assert synchronizer.status is SubscriptionStatus.LIVE


def test_error_observer_failure_stays_inside_synchronizer(store):
    """오류 옵저버의 예외가 저장소 리스너 스레드로 전파되지 않음"""
    def broken_observer(error):
        raise RuntimeError("render failed")

    synchronizer = FeedSynchronizer(store, on_error=broken_observer).start()
    store.fail_listeners(PermissionError("permission-denied"))

    assert synchronizer.status is SubscriptionStatus.ERROR
    assert isinstance(synchronizer.error, SubscriptionError)
