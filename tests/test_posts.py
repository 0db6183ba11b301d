"""Posts module — CRUD by slug, ownership, tags, favorites, filters."""

from __future__ import annotations

from sqlalchemy import func, select

from fluxstack.posts.models import Post, PostFavorite, PostTag
from tests.conftest import TestSessionFactory

POSTS = "/api/posts"


async def _create(client, headers, title="Hello World", **extra):
    payload = {"title": title, "content": "Some body text", **extra}
    resp = await client.post(POSTS, json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ── Create ──────────────────────────────────────────────────────────


async def test_create_post(client, test_user, auth_headers):
    data = await _create(
        client, auth_headers, title="My First Post!", description="Intro", tags=["Python", "python", "Web"],
    )
    assert data["slug"] == "my-first-post"
    assert data["title"] == "My First Post!"
    assert data["is_published"] is False
    assert data["tags"] == ["python", "web"]
    assert data["author"]["email"] == test_user["email"]
    assert data["favorites_count"] == 0
    assert data["favorited"] is False


async def test_create_post_duplicate_title_gets_suffix(client, auth_headers):
    first = await _create(client, auth_headers)
    second = await _create(client, auth_headers)
    assert first["slug"] == "hello-world"
    assert second["slug"].startswith("hello-world-")
    assert len(second["slug"]) == len("hello-world-") + 6


async def test_create_post_symbol_title_uses_fallback_slug(client, auth_headers):
    data = await _create(client, auth_headers, title="!!!???")
    assert data["slug"] == "post"


async def test_create_post_requires_auth(client):
    resp = await client.post(POSTS, json={"title": "Hello", "content": "x"})
    assert resp.status_code == 401


async def test_create_post_validation(client, auth_headers):
    resp = await client.post(POSTS, json={"title": "Hi", "content": "x"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["errors"][0]["path"] == "title"


async def test_create_post_too_many_tags(client, auth_headers):
    tags = [f"t{i}" for i in range(11)]
    resp = await client.post(
        POSTS, json={"title": "Tagged", "content": "x", "tags": tags}, headers=auth_headers,
    )
    assert resp.status_code == 400


# ── Read ────────────────────────────────────────────────────────────


async def test_get_post_by_slug_is_public(client, auth_headers):
    created = await _create(client, auth_headers)
    resp = await client.get(f"{POSTS}/{created['slug']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == created["id"]


async def test_get_missing_post(client):
    resp = await client.get(f"{POSTS}/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == {"code": "NOT_FOUND", "message": "Post not found"}


async def test_list_posts_paginated_newest_first(client, auth_headers):
    for i in range(3):
        await _create(client, auth_headers, title=f"Post number {i}")

    resp = await client.get(POSTS, params={"page": 1, "limit": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert [p["title"] for p in body["data"]] == ["Post number 2", "Post number 1"]
    assert body["meta"]["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    resp = await client.get(POSTS, params={"page": 2, "limit": 2})
    assert [p["title"] for p in resp.json()["data"]] == ["Post number 0"]


async def test_list_posts_limit_capped(client):
    resp = await client.get(POSTS, params={"limit": 101})
    assert resp.status_code == 400


async def test_list_filter_by_tag(client, auth_headers):
    await _create(client, auth_headers, title="Tagged one", tags=["rust"])
    await _create(client, auth_headers, title="Other one", tags=["go"])

    resp = await client.get(POSTS, params={"tag": "Rust"})
    assert [p["title"] for p in resp.json()["data"]] == ["Tagged one"]


async def test_list_filter_by_author(client, auth_headers, other_headers, other_user):
    await _create(client, auth_headers, title="Mine")
    await _create(client, other_headers, title="Theirs")

    resp = await client.get(POSTS, params={"author": other_user["email"]})
    assert [p["title"] for p in resp.json()["data"]] == ["Theirs"]

    resp = await client.get(POSTS, params={"author": other_user["name"]})
    assert [p["title"] for p in resp.json()["data"]] == ["Theirs"]


async def test_list_filter_by_favorited(client, auth_headers, other_headers, other_user):
    liked = await _create(client, auth_headers, title="Liked post")
    await _create(client, auth_headers, title="Ignored post")
    await client.post(f"{POSTS}/{liked['slug']}/favorite", headers=other_headers)

    resp = await client.get(POSTS, params={"favorited": other_user["email"]})
    assert [p["title"] for p in resp.json()["data"]] == ["Liked post"]


async def test_list_search(client, auth_headers):
    await _create(client, auth_headers, title="Async Python tips")
    await _create(client, auth_headers, title="Gardening", content="tomatoes and python snakes")
    await _create(client, auth_headers, title="Cooking")

    resp = await client.get(POSTS, params={"search": "python"})
    assert resp.json()["meta"]["pagination"]["total"] == 2


# ── Update ──────────────────────────────────────────────────────────


async def test_update_title_regenerates_slug(client, auth_headers):
    created = await _create(client, auth_headers, title="Old title")
    resp = await client.patch(
        f"{POSTS}/{created['slug']}", json={"title": "New title"}, headers=auth_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["slug"] == "new-title"
    assert (await client.get(f"{POSTS}/old-title")).status_code == 404


async def test_update_same_title_keeps_slug(client, auth_headers):
    created = await _create(client, auth_headers, title="Stable title")
    resp = await client.patch(
        f"{POSTS}/{created['slug']}",
        json={"title": "Stable title", "content": "Edited"},
        headers=auth_headers,
    )
    data = resp.json()["data"]
    assert data["slug"] == "stable-title"
    assert data["content"] == "Edited"


async def test_update_publish_and_tags(client, auth_headers):
    created = await _create(client, auth_headers, tags=["a", "b"])
    resp = await client.patch(
        f"{POSTS}/{created['slug']}",
        json={"is_published": True, "tags": ["B", "c"]},
        headers=auth_headers,
    )
    data = resp.json()["data"]
    assert data["is_published"] is True
    assert data["tags"] == ["b", "c"]


async def test_update_empty_tags_clears(client, auth_headers):
    created = await _create(client, auth_headers, tags=["a"])
    resp = await client.patch(
        f"{POSTS}/{created['slug']}", json={"tags": []}, headers=auth_headers,
    )
    assert resp.json()["data"]["tags"] == []


async def test_update_by_non_owner_forbidden(client, auth_headers, other_headers):
    created = await _create(client, auth_headers)
    resp = await client.patch(
        f"{POSTS}/{created['slug']}", json={"title": "Hijacked"}, headers=other_headers,
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


# ── Delete ──────────────────────────────────────────────────────────


async def test_delete_post_removes_associations(client, auth_headers, other_headers):
    created = await _create(client, auth_headers, tags=["gone"])
    await client.post(f"{POSTS}/{created['slug']}/favorite", headers=other_headers)

    resp = await client.delete(f"{POSTS}/{created['slug']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "Post deleted successfully"

    async with TestSessionFactory() as s:
        assert (await s.execute(select(func.count()).select_from(Post))).scalar() == 0
        assert (await s.execute(select(func.count()).select_from(PostTag))).scalar() == 0
        assert (await s.execute(select(func.count()).select_from(PostFavorite))).scalar() == 0


async def test_delete_by_non_owner_forbidden(client, auth_headers, other_headers):
    created = await _create(client, auth_headers)
    resp = await client.delete(f"{POSTS}/{created['slug']}", headers=other_headers)
    assert resp.status_code == 403


# ── Favorites ───────────────────────────────────────────────────────


async def test_favorite_is_idempotent(client, auth_headers, other_headers):
    created = await _create(client, auth_headers)
    url = f"{POSTS}/{created['slug']}/favorite"

    first = await client.post(url, headers=other_headers)
    second = await client.post(url, headers=other_headers)
    assert first.status_code == second.status_code == 200
    assert second.json()["data"]["favorites_count"] == 1
    assert second.json()["data"]["favorited"] is True

    # Author sees the count but not their own favorite flag
    resp = await client.get(f"{POSTS}/{created['slug']}", headers=auth_headers)
    assert resp.json()["data"]["favorites_count"] == 1
    assert resp.json()["data"]["favorited"] is False


async def test_unfavorite(client, auth_headers, other_headers):
    created = await _create(client, auth_headers)
    url = f"{POSTS}/{created['slug']}/favorite"
    await client.post(url, headers=other_headers)

    resp = await client.delete(url, headers=other_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["favorites_count"] == 0
    assert resp.json()["data"]["favorited"] is False

    # Removing again is harmless
    assert (await client.delete(url, headers=other_headers)).status_code == 200


async def test_favorite_requires_auth(client, auth_headers):
    created = await _create(client, auth_headers)
    resp = await client.post(f"{POSTS}/{created['slug']}/favorite")
    assert resp.status_code == 401


async def test_favorite_missing_post(client, auth_headers):
    resp = await client.post(f"{POSTS}/missing/favorite", headers=auth_headers)
    assert resp.status_code == 404


# ── Tags ────────────────────────────────────────────────────────────


async def test_list_all_tags_with_counts(client, auth_headers):
    await _create(client, auth_headers, title="First tagged", tags=["python", "web"])
    await _create(client, auth_headers, title="Second tagged", tags=["Python"])

    resp = await client.get(f"{POSTS}/tags/all")
    assert resp.status_code == 200
    assert resp.json()["data"]["tags"] == [
        {"name": "python", "posts_count": 2},
        {"name": "web", "posts_count": 1},
    ]
