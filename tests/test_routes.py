import pytest

from jouwblog.app import create_app
from jouwblog.routes import health
from jouwblog.services import registry


@pytest.fixture
def client(monkeypatch, services):
    user_service, post_service, comment_service = services
    monkeypatch.setattr(registry, 'user_service', user_service)
    monkeypatch.setattr(registry, 'post_service', post_service)
    monkeypatch.setattr(registry, 'comment_service', comment_service)

    app = create_app()
    app.config['TESTING'] = True
    return app.test_client()


def create_user(client, username='alice'):
    response = client.post('/user/', json={
        'username': username, 'name': username.title(), 'email': f'{username}@example.com'
    })
    assert response.status_code == 201
    return response.get_json()


def create_post(client, user_id, title='Hello'):
    response = client.post('/posts/', json={'user_id': user_id, 'title': title, 'text': 'World'})
    assert response.status_code == 201
    return response.get_json()


class TestHealth:
    def test_root_and_example(self, client):
        assert client.get('/').get_json()['service'] == 'JouwBlog Backend'

        response = client.get('/jouwBlog/')
        assert response.status_code == 200
        assert response.mimetype == 'text/plain'
        assert response.get_data(as_text=True) == 'Example Response'

    def test_health(self, client):
        assert client.get('/health').get_json()['status'] == 'healthy'

    @pytest.mark.parametrize('mongo, redis_status, expected, code', [
        ('healthy', 'healthy', 'healthy', 200),
        ('healthy', 'unhealthy', 'degraded', 200),
        ('unhealthy', 'healthy', 'unhealthy', 503),
    ])
    def test_status(self, client, monkeypatch, mongo, redis_status, expected, code):
        monkeypatch.setattr(health.db_service, 'check_health', lambda: {'status': mongo})
        monkeypatch.setattr(health.redis_cache, 'check_health', lambda: {'status': redis_status})

        response = client.get('/status')

        assert response.status_code == code
        body = response.get_json()
        assert body['status'] == expected
        assert {s['name'] for s in body['local_caches']['posts']} == {'posts', 'user_posts'}

    def test_unknown_endpoint(self, client):
        response = client.get('/nowhere')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Endpoint not found'}


class TestUsers:
    def test_create_and_get(self, client):
        user = create_user(client)

        response = client.get(f"/user/{user['user_id']}")
        assert response.status_code == 200
        assert response.get_json() == user

        assert client.get('/user/by-username/alice').get_json()['user_id'] == user['user_id']

    def test_get_missing(self, client):
        assert client.get('/user/nobody').status_code == 404
        assert client.get('/user/by-username/nobody').status_code == 404

    def test_create_errors(self, client):
        assert client.post('/user/', json={}).status_code == 400
        assert client.post('/user/', data='not json', content_type='text/plain').status_code == 400
        assert client.post('/user/', json={'username': 'x', 'name': 'X', 'email': 'x@x.io'}).status_code == 400

        create_user(client)
        response = client.post('/user/', json={'username': 'alice', 'name': 'A', 'email': 'other@x.io'})
        assert response.status_code == 409

    def test_update(self, client):
        user = create_user(client)

        response = client.put(f"/user/{user['user_id']}", json={'name': 'Alice Cooper'})
        assert response.status_code == 200
        assert response.get_json()['name'] == 'Alice Cooper'

        assert client.put('/user/nobody', json={'name': 'x'}).status_code == 404

    def test_delete(self, client):
        user = create_user(client)

        assert client.delete(f"/user/{user['user_id']}").status_code == 200
        assert client.delete(f"/user/{user['user_id']}").status_code == 404
        assert client.get(f"/user/{user['user_id']}").status_code == 404


class TestPosts:
    def test_create_and_read(self, client):
        user = create_user(client)
        post = create_post(client, user['user_id'])

        assert post['likes'] == 0
        response = client.get(f"/posts/single/{user['user_id']}/{post['post_id']}")
        assert response.status_code == 200
        assert response.get_json() == post

    def test_create_for_unknown_user(self, client):
        response = client.post('/posts/', json={'user_id': 'ghost', 'title': 'a', 'text': 'b'})
        assert response.status_code == 404

    def test_update(self, client):
        user = create_user(client)
        post = create_post(client, user['user_id'])

        response = client.post('/posts/', json={
            'post_id': post['post_id'], 'user_id': user['user_id'], 'title': 'Edited', 'text': 'World'
        })
        assert response.status_code == 200
        assert response.get_json()['title'] == 'Edited'

        response = client.post('/posts/', json={
            'post_id': 'missing', 'user_id': user['user_id'], 'title': 'Edited', 'text': 'World'
        })
        assert response.status_code == 404

    def test_paging(self, client):
        user = create_user(client)
        for n in range(3):
            create_post(client, user['user_id'], title=f'Post {n}')

        response = client.get(f"/posts/all/{user['user_id']}/2/1")
        body = response.get_json()
        assert response.status_code == 200
        assert (body['count'], body['total_count'], body['page'], body['size']) == (2, 3, 1, 2)

        assert client.get(f"/posts/all/{user['user_id']}/2/2").get_json()['count'] == 1
        assert client.get(f"/posts/all/{user['user_id']}/2/5").get_json()['posts'] == []

    @pytest.mark.parametrize('size, page', [(0, 1), (2, 0), (-1, 1), (2, -3), (101, 1)])
    def test_paging_rejects_bad_arguments(self, client, size, page):
        assert client.get(f'/posts/all/u1/{size}/{page}').status_code == 400

    def test_like_and_delete(self, client):
        user = create_user(client)
        post = create_post(client, user['user_id'])

        response = client.post(f"/posts/{user['user_id']}/{post['post_id']}/like")
        assert response.get_json()['likes'] == 1
        assert client.post(f"/posts/{user['user_id']}/missing/like").status_code == 404

        assert client.delete(f"/posts/{user['user_id']}/{post['post_id']}").status_code == 200
        assert client.get(f"/posts/single/{user['user_id']}/{post['post_id']}").status_code == 404
        assert client.delete(f"/posts/{user['user_id']}/{post['post_id']}").status_code == 404


class TestComments:
    def test_comment_lifecycle(self, client):
        author = create_user(client)
        reader = create_user(client, 'bob')
        post = create_post(client, author['user_id'])

        response = client.post('/comments/', json={
            'post_id': post['post_id'], 'user_id': reader['user_id'], 'comment_text': 'Great read'
        })
        assert response.status_code == 201
        comment = response.get_json()

        page = client.get(f"/comments/{post['post_id']}/10/1").get_json()
        assert page['count'] == 1
        assert page['comments'][0]['comment_id'] == comment['comment_id']

        assert client.get(f"/comments/{post['post_id']}/{comment['comment_id']}").get_json() == comment
        assert client.get(f"/posts/single/{author['user_id']}/{post['post_id']}").get_json()['replies'] == 1

        assert client.delete(f"/comments/{post['post_id']}/{comment['comment_id']}").status_code == 200
        assert client.get(f"/comments/{post['post_id']}/{comment['comment_id']}").status_code == 404
        assert client.delete(f"/comments/{post['post_id']}/{comment['comment_id']}").status_code == 404

    def test_comment_on_missing_post(self, client):
        reader = create_user(client)
        response = client.post('/comments/', json={
            'post_id': 'missing', 'user_id': reader['user_id'], 'comment_text': 'Hello?'
        })
        assert response.status_code == 404

    def test_comment_paging_rejects_bad_arguments(self, client):
        assert client.get('/comments/p1/0/1').status_code == 400


class TestMalformedBodies:
    def test_non_object_bodies_are_rejected(self, client):
        user = create_user(client)

        assert client.post('/user/', json=['alice']).status_code == 400
        assert client.put(f"/user/{user['user_id']}", json='Alice Cooper').status_code == 400
        assert client.post('/posts/', json=[user['user_id'], 'title']).status_code == 400
        assert client.post('/comments/', json='hello').status_code == 400

    def test_non_string_fields_are_rejected(self, client):
        user = create_user(client)
        post = create_post(client, user['user_id'])

        response = client.post('/posts/', json={'user_id': user['user_id'], 'title': 123, 'text': 'b'})
        assert response.status_code == 400
        assert response.get_json() == {'error': 'Title is required'}

        assert client.post('/posts/', json={'user_id': 7, 'title': 'a', 'text': 'b'}).status_code == 400
        assert client.post('/posts/', json={
            'post_id': 5, 'user_id': user['user_id'], 'title': 'a', 'text': 'b'
        }).status_code == 400
        assert client.post('/user/', json={'username': 42, 'name': 'N', 'email': 'n@x.io'}).status_code == 400
        assert client.put(f"/user/{user['user_id']}", json={'name': ['Alice']}).status_code == 400
        assert client.post('/comments/', json={
            'post_id': post['post_id'], 'user_id': user['user_id'], 'comment_text': 5
        }).status_code == 400
