# framez/cli.py
"""
터미널용 피드 클라이언트 명령 (flask feed ...)

예시:
    flask --app run feed watch --mine
    flask --app run feed post --text "hello" --image ./photo.jpg
    flask --app run feed delete <post_id>
"""

import threading

import click
from flask import current_app
from flask.cli import AppGroup
from marshmallow import ValidationError

from framez.core.errors import FramezError
from framez.feed.profile import initials_for
from framez.models.post import PostDraft
from framez.services.identity_service import FirebaseIdentity
from framez.utils.datetime_utils import DateTimeUtils

feed_cli = AppGroup('feed', help="Framez 피드 클라이언트 명령")

credential_options = [
    click.option('--email', envvar='FRAMEZ_EMAIL', required=True, help="로그인 이메일"),
    click.option('--password', envvar='FRAMEZ_PASSWORD', required=True, hide_input=True, help="비밀번호"),
]


def with_credentials(f):
    for option in reversed(credential_options):
        f = option(f)
    return f


def _sign_in(email, password):
    identity = FirebaseIdentity(current_app.services['auth_client'])
    try:
        return identity, identity.sign_in(email, password)
    except ValidationError as e:
        raise click.UsageError(str(e.messages))
    except FramezError as e:
        raise click.ClickException(e.message)


def format_post(post, account_id=None) -> str:
    """게시글 한 개를 터미널 출력용 문자열로 만듭니다."""
    heart = '♥' if post.is_liked_by(account_id) else '♡'
    lines = [f"[{post.id}] {post.author_display_name} · {DateTimeUtils.time_ago(post.created_at)}"]
    if post.text_content:
        lines.append(f"  {post.text_content}")
    if post.image_url:
        lines.append(f"  🖼  {post.image_url}")
    lines.append(f"  {heart} {post.like_count}   💬 {post.comment_count}")
    return "\n".join(lines)


@feed_cli.command('watch')
@with_credentials
@click.option('--mine', is_flag=True, help="내 게시글만 구독")
def watch(email, password, mine):
    """피드를 실시간으로 구독하여 변경될 때마다 다시 출력합니다 (Ctrl-C 로 종료)."""
    identity, session = _sign_in(email, password)
    stopped = threading.Event()

    def on_update(posts):
        click.clear()
        if mine:
            click.echo(f"{initials_for(session.display_name)}  {session.display_name} <{session.email}>  posts: {len(posts)}")
        click.echo("\n\n".join(format_post(post, session.account_id) for post in posts) or "No posts yet.")

    def on_error(error):
        click.echo(f"오류: {error.message}", err=True)
        stopped.set()

    subscription = current_app.services['feed'].subscribe(
        session.account_id if mine else None, on_update=on_update, on_error=on_error,
    )
    try:
        stopped.wait()
    except KeyboardInterrupt:
        pass
    finally:
        subscription.release()
        identity.sign_out()
    if subscription.error:
        raise SystemExit(1)


@feed_cli.command('post')
@with_credentials
@click.option('--text', default="", help="게시글 본문")
@click.option('--image', type=click.Path(dir_okay=False), default=None, help="첨부할 이미지 파일")
def post(email, password, text, image):
    """새 게시글을 작성합니다."""
    _, session = _sign_in(email, password)
    try:
        post_id = current_app.services['feed'].create_post(PostDraft(text=text, image_uri=image), session)
    except FramezError as e:
        raise click.ClickException(e.message)
    click.echo(f"게시글이 작성되었습니다: {post_id}")


@feed_cli.command('like')
@with_credentials
@click.argument('post_id')
def like(email, password, post_id):
    """게시글 좋아요를 토글합니다."""
    _, session = _sign_in(email, password)
    try:
        liked = current_app.services['feed'].toggle_like(post_id, session)
    except FramezError as e:
        raise click.ClickException(e.message)
    click.echo("좋아요를 눌렀습니다." if liked else "좋아요를 취소했습니다.")


@feed_cli.command('delete')
@with_credentials
@click.argument('post_id')
@click.confirmation_option(prompt="정말 이 게시글을 삭제하시겠습니까?")
def delete(email, password, post_id):
    """게시글을 삭제합니다 (확인 필요)."""
    _, session = _sign_in(email, password)
    try:
        current_app.services['feed'].delete_post(post_id, session)
    except FramezError as e:
        raise click.ClickException(e.message)
    click.echo("삭제 요청을 보냈습니다.")
