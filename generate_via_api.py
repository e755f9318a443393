"""
Generate users, posts and comments through the backend API.
Going through the API fills MongoDB and Redis the same way real traffic does.
"""
import argparse
import random
import sys
import time

import requests
from faker import Faker

DEFAULT_BACKEND = 'http://localhost:8080'


def create_user(backend_url: str, faker: Faker):
    user_data = {
        'username': f"{faker.user_name()}_{random.randint(1000, 9999)}"[:32],
        'name': faker.name(),
        'email': faker.unique.email()
    }

    try:
        response = requests.post(f"{backend_url}/user/", json=user_data, timeout=5)

        if response.status_code == 201:
            return response.json()
        else:
            print(f"  Error: {response.status_code} - {response.text[:100]}")
            return None
    except requests.RequestException as e:
        print(f"  Error creating user: {e}")
        return None


def create_post(backend_url: str, faker: Faker, user_id: str):
    post_data = {
        'user_id': user_id,
        'title': faker.sentence(nb_words=6).rstrip('.'),
        'text': '\n\n'.join(faker.paragraphs(nb=3))
    }

    try:
        response = requests.post(f"{backend_url}/posts/", json=post_data, timeout=5)

        if response.status_code == 201:
            return response.json()
        else:
            print(f"  Error: {response.status_code} - {response.text[:100]}")
            return None
    except requests.RequestException as e:
        print(f"  Error creating post: {e}")
        return None


def create_comment(backend_url: str, faker: Faker, post_id: str, user_id: str) -> bool:
    comment_data = {
        'post_id': post_id,
        'user_id': user_id,
        'comment_text': faker.sentence(nb_words=12)
    }

    try:
        response = requests.post(f"{backend_url}/comments/", json=comment_data, timeout=5)
        return response.status_code == 201
    except requests.RequestException as e:
        print(f"  Error creating comment: {e}")
        return False


def main():
    parser = argparse.ArgumentParser(description='Generate JouwBlog data through the API')
    parser.add_argument('--backend', '-b', default=DEFAULT_BACKEND, help='Backend base URL')
    parser.add_argument('--users', '-u', type=int, default=20, help='Number of users')
    parser.add_argument('--posts-per-user', '-p', type=int, default=5, help='Posts per user')
    parser.add_argument('--comments-per-post', '-c', type=int, default=3, help='Comments per post')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    args = parser.parse_args()

    faker = Faker()
    Faker.seed(args.seed)
    random.seed(args.seed)

    print("=" * 60)
    print("API-based Data Generator")
    print("=" * 60)
    print(f"Backend: {args.backend}")
    print(f"Users: {args.users}")
    print(f"Posts per user: {args.posts_per_user}")
    print(f"Comments per post: {args.comments_per_post}")
    print("=" * 60)

    try:
        requests.get(f"{args.backend}/health", timeout=5).raise_for_status()
    except requests.RequestException as e:
        print(f"Backend not reachable: {e}")
        sys.exit(1)

    users = []
    for i in range(args.users):
        user = create_user(args.backend, faker)
        if user:
            users.append(user)
        if (i + 1) % 10 == 0:
            print(f"  Users: {i + 1}/{args.users} ({len(users)} created)")

    if not users:
        print("No users created, stopping")
        sys.exit(1)

    posts = []
    for user in users:
        for _ in range(args.posts_per_user):
            post = create_post(args.backend, faker, user['user_id'])
            if post:
                posts.append(post)
            # Small delay to avoid overwhelming the API
            time.sleep(0.01)
    print(f"  Posts: {len(posts)} created")

    comments = 0
    for post in posts:
        for _ in range(args.comments_per_post):
            commenter = random.choice(users)
            if create_comment(args.backend, faker, post['post_id'], commenter['user_id']):
                comments += 1
    print(f"  Comments: {comments} created")

    print("\n" + "=" * 60)
    print("DATA GENERATION COMPLETE")
    print("=" * 60)
    print(f"Try: {args.backend}/posts/all/{users[0]['user_id']}/10/1")


if __name__ == '__main__':
    main()
