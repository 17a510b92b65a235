"""Tests for the post and comment endpoints."""

import pytest

from bson import ObjectId

from conftest import ANOTHER_USER, bearer


@pytest.fixture
def author(registered) -> dict:
    return {"id": registered["user"]["id"], "headers": bearer(registered["accessToken"])}


@pytest.fixture
def other(client) -> dict:
    body = client.post("/api/users/register", json=ANOTHER_USER).json()
    return {"id": body["user"]["id"], "headers": bearer(body["accessToken"])}


@pytest.fixture
def post(client, author) -> dict:
    response = client.post(
        "/api/posts",
        headers=author["headers"],
        json={"title": "First post", "content": "Hello world"},
    )
    assert response.status_code == 201
    return response.json()["post"]


class TestPosts:
    def test_create_post(self, client, author):
        response = client.post(
            "/api/posts",
            headers=author["headers"],
            json={"title": "  Title  ", "content": "Body"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Post created successfully"
        assert body["post"]["title"] == "Title"
        assert "createdAt" in body["post"]
        assert body["post"]["author"]["id"] == author["id"]

    def test_posts_require_authentication(self, client):
        assert client.get("/api/posts").status_code == 401
        assert client.post("/api/posts", json={"title": "t", "content": "c"}).status_code == 401

    def test_title_and_content_are_validated(self, client, author):
        missing = client.post("/api/posts", headers=author["headers"], json={"title": "t"})
        long_title = client.post(
            "/api/posts", headers=author["headers"], json={"title": "t" * 201, "content": "c"}
        )
        blank = client.post("/api/posts", headers=author["headers"], json={"title": "t", "content": "   "})

        assert missing.status_code == long_title.status_code == blank.status_code == 400
        assert blank.json() == {"message": "Content is required"}

    def test_list_is_newest_first_with_authors(self, client, author, post):
        client.post("/api/posts", headers=author["headers"], json={"title": "Second", "content": "c"})

        response = client.get("/api/posts", headers=author["headers"])

        assert response.status_code == 200
        posts = response.json()
        assert [p["title"] for p in posts] == ["Second", "First post"]
        assert posts[0]["author"]["id"] == author["id"]

    def test_get_post_includes_comments(self, client, author, other, post):
        client.post(f"/api/posts/{post['id']}/comments", headers=other["headers"], json={"content": "Nice"})

        response = client.get(f"/api/posts/{post['id']}", headers=author["headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["author"]["id"] == author["id"]
        assert [c["content"] for c in body["comments"]] == ["Nice"]
        assert body["comments"][0]["author"]["id"] == other["id"]

    def test_get_post_errors(self, client, author):
        malformed = client.get("/api/posts/not-an-id", headers=author["headers"])
        missing = client.get(f"/api/posts/{ObjectId()}", headers=author["headers"])

        assert malformed.status_code == 400
        assert malformed.json() == {"message": "Invalid post ID"}
        assert missing.status_code == 404
        assert missing.json() == {"message": "Post not found"}

    def test_author_can_update(self, client, author, post):
        response = client.put(
            f"/api/posts/{post['id']}", headers=author["headers"], json={"content": "Edited"}
        )

        assert response.status_code == 200
        assert response.json()["post"]["content"] == "Edited"
        assert response.json()["post"]["title"] == "First post"
        assert response.json()["post"]["author"]["id"] == author["id"]

    def test_only_author_can_update_or_delete(self, client, other, post):
        update = client.put(f"/api/posts/{post['id']}", headers=other["headers"], json={"title": "Mine"})
        delete = client.delete(f"/api/posts/{post['id']}", headers=other["headers"])

        assert update.status_code == delete.status_code == 403
        assert update.json() == {"message": "Not authorized to update this post"}
        assert delete.json() == {"message": "Not authorized to delete this post"}

    def test_author_can_delete(self, client, author, post):
        response = client.delete(f"/api/posts/{post['id']}", headers=author["headers"])

        assert response.status_code == 200
        assert client.get(f"/api/posts/{post['id']}", headers=author["headers"]).status_code == 404

    def test_post_survives_author_deletion(self, client, author, other, post):
        client.delete(f"/api/users/{author['id']}", headers=author["headers"])

        response = client.get(f"/api/posts/{post['id']}", headers=other["headers"])

        assert response.status_code == 200
        assert response.json()["author"] is None


class TestComments:
    def test_create_and_list_comments(self, client, author, other, post):
        created = client.post(
            f"/api/posts/{post['id']}/comments", headers=other["headers"], json={"content": "First!"}
        )
        client.post(f"/api/posts/{post['id']}/comments", headers=author["headers"], json={"content": "Thanks"})

        response = client.get(f"/api/posts/{post['id']}/comments", headers=author["headers"])

        assert created.status_code == 201
        assert created.json()["message"] == "Comment created successfully"
        assert created.json()["comment"]["author"]["id"] == other["id"]
        assert [c["content"] for c in response.json()] == ["First!", "Thanks"]

    def test_comment_on_missing_post(self, client, author):
        response = client.post(
            f"/api/posts/{ObjectId()}/comments", headers=author["headers"], json={"content": "Hi"}
        )

        assert response.status_code == 404

    def test_only_comment_author_can_edit_or_delete(self, client, author, other, post):
        comment = client.post(
            f"/api/posts/{post['id']}/comments", headers=other["headers"], json={"content": "Hi"}
        ).json()["comment"]
        url = f"/api/posts/{post['id']}/comments/{comment['id']}"

        assert client.put(url, headers=author["headers"], json={"content": "Edited"}).status_code == 403
        assert client.delete(url, headers=author["headers"]).status_code == 403

        edited = client.put(url, headers=other["headers"], json={"content": "Edited"})
        assert edited.status_code == 200
        assert edited.json()["comment"]["content"] == "Edited"
        assert edited.json()["comment"]["author"]["id"] == other["id"]

        deleted = client.delete(url, headers=other["headers"])
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Comment deleted successfully"}
        assert client.get(f"/api/posts/{post['id']}/comments", headers=other["headers"]).json() == []

    def test_comment_must_belong_to_post(self, client, author, post):
        second = client.post(
            "/api/posts", headers=author["headers"], json={"title": "Second", "content": "c"}
        ).json()["post"]
        comment = client.post(
            f"/api/posts/{post['id']}/comments", headers=author["headers"], json={"content": "Hi"}
        ).json()["comment"]

        response = client.put(
            f"/api/posts/{second['id']}/comments/{comment['id']}",
            headers=author["headers"],
            json={"content": "Moved"},
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Comment not found"}

    def test_malformed_comment_id(self, client, author, post):
        response = client.delete(f"/api/posts/{post['id']}/comments/nope", headers=author["headers"])

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid comment ID"}
