import pytest
from pymongo.errors import ServerSelectionTimeoutError

from jouwblog.errors import ValidationError, NotFoundError
from jouwblog.models import User, Post, Comment


@pytest.fixture
def author(user_service):
    return user_service.create_user(User(username='writer', name='Writer', email='writer@example.com'))


@pytest.fixture
def reader(user_service):
    return user_service.create_user(User(username='reader', name='Reader', email='reader@example.com'))


@pytest.fixture
def post(post_service, author):
    return post_service.save_post(Post(user_id=author.user_id, title='Hello', text='World'))


def seed_comments(fake_db, post_id, count):
    comments = []
    for n in range(1, count + 1):
        comment = Comment(comment_id=f'c{n}', post_id=post_id, user_id='someone',
                          comment_text=f'Comment {n}', comment_timestamp=n)
        fake_db.insert_one('comments', comment.to_dict())
        comments.append(comment)
    return comments


def test_create_comment_bumps_replies(comment_service, post_service, post, reader, comment_redis, author):
    comment = comment_service.create_comment(
        Comment(post_id=post.post_id, user_id=reader.user_id, comment_text='Nice post', likes=4)
    )

    assert comment.comment_id
    assert comment.comment_timestamp is not None
    assert comment.likes == 0
    assert comment_redis.find_comment(post.post_id, comment.comment_id) == comment
    assert post_service.find_post(post.post_id, author.user_id).replies == 1


def test_create_comment_requires_post_and_user(comment_service, post, reader):
    with pytest.raises(NotFoundError):
        comment_service.create_comment(Comment(post_id='missing', user_id=reader.user_id, comment_text='hi'))
    with pytest.raises(NotFoundError):
        comment_service.create_comment(Comment(post_id=post.post_id, user_id='ghost', comment_text='hi'))


def test_create_comment_validates(comment_service, post, reader, fake_db):
    with pytest.raises(ValidationError):
        comment_service.create_comment(Comment(post_id=post.post_id, user_id=reader.user_id, comment_text=' '))
    with pytest.raises(ValidationError):
        comment_service.create_comment(
            Comment(post_id=post.post_id, user_id=reader.user_id, comment_text='x' * 2001)
        )
    assert fake_db.count('comments', {}) == 0


def test_page_from_mongo_backfills_redis(comment_service, fake_db, comment_redis):
    seed_comments(fake_db, 'p1', 5)

    page = comment_service.find_comments_page('p1', 2, 1)

    assert [c.comment_id for c in page] == ['c5', 'c4']
    assert sorted(c.comment_id for c in comment_redis.find_comments('p1')) == ['c4', 'c5']


def test_page_served_from_redis_when_complete(comment_service, fake_db, comment_redis):
    for comment in seed_comments(fake_db, 'p1', 5):
        comment_redis.save_comment(comment)

    assert [c.comment_id for c in comment_service.find_comments_page('p1', 2, 2)] == ['c3', 'c2']
    assert [c.comment_id for c in comment_service.find_comments_page('p1', 2, 4)] == []
    assert fake_db.find_many_calls == 0


def test_later_comment_page_first_keeps_order(comment_service, fake_db):
    seed_comments(fake_db, 'p1', 5)

    assert [c.comment_id for c in comment_service.find_comments_page('p1', 2, 2)] == ['c3', 'c2']
    assert [c.comment_id for c in comment_service.find_comments_page('p1', 2, 1)] == ['c5', 'c4']


def test_single_comment_read_does_not_become_a_page(comment_service, fake_db):
    seed_comments(fake_db, 'p1', 3)
    comment_service.find_comment('p1', 'c1')

    assert [c.comment_id for c in comment_service.find_comments_page('p1', 1, 1)] == ['c3']


def test_incomplete_redis_comments_fall_through(comment_service, fake_db, comment_redis):
    comments = seed_comments(fake_db, 'p1', 3)
    for comment in comments[:2]:
        comment_redis.save_comment(comment)

    assert [c.comment_id for c in comment_service.find_comments_page('p1', 2, 1)] == ['c3', 'c2']
    assert fake_db.find_many_calls == 1


def test_invalid_comment_paging(comment_service):
    with pytest.raises(ValidationError):
        comment_service.find_comments_page('p1', 0, 1)


def test_find_single_comment(comment_service, fake_db, comment_redis):
    seed_comments(fake_db, 'p1', 1)

    found = comment_service.find_comment('p1', 'c1')
    assert found.comment_text == 'Comment 1'
    assert comment_redis.find_comment('p1', 'c1') == found
    assert comment_service.find_comment('p1', 'c9') is None


def test_delete_comment_drops_replies(comment_service, post_service, post, reader, author, comment_redis):
    comment = comment_service.create_comment(
        Comment(post_id=post.post_id, user_id=reader.user_id, comment_text='Nice post')
    )

    assert comment_service.delete_comment(post.post_id, comment.comment_id)

    assert comment_redis.find_comments(post.post_id) == []
    assert comment_service.count_post_comments(post.post_id) == 0
    assert post_service.find_post(post.post_id, author.user_id).replies == 0
    assert not comment_service.delete_comment(post.post_id, comment.comment_id)


def test_delete_post_comments(comment_service, fake_db, comment_redis):
    for comment in seed_comments(fake_db, 'p1', 3):
        comment_redis.save_comment(comment)
    seed_comments(fake_db, 'p2', 1)

    assert comment_service.delete_post_comments('p1') == 3
    assert comment_redis.find_comments('p1') == []
    assert comment_service.count_post_comments('p2') == 1
