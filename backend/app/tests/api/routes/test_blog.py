import uuid

from fastapi.testclient import TestClient

from app.core.config import settings
from app.tests.utils.utils import blog_payload

BLOG_URL = f"{settings.API_V1_STR}/blog/"


def _create_blog(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    r = client.post(BLOG_URL, json=blog_payload(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["blog"]


def test_create_blog_derives_slug_and_seo(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    title = "Hello, World! Building APIs -- with FastAPI"
    blog = _create_blog(client, admin_headers, title=title, excerpt="e" * 300)
    assert blog["slug"] == "hello-world-building-apis-with-fastapi"
    assert blog["seo_title"] == title[:60]
    assert blog["seo_description"] == "e" * 160
    assert blog["author"] == settings.SITE_OWNER_NAME
    assert blog["tags"] == ["python", "fastapi"]
    assert blog["published"] is True
    assert blog["published_at"] is not None
    assert blog["views"] == 0
    assert blog["likes"] == 0


def test_create_blog_slug_conflict(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    _create_blog(client, admin_headers, title="Same Title")
    r = client.post(BLOG_URL, json=blog_payload(title="Same title!"), headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Blog with this slug already exists"}


def test_create_blog_rejects_empty_slug(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    r = client.post(BLOG_URL, json=blog_payload(title="!!!"), headers=admin_headers)
    assert r.status_code == 400


def test_create_blog_requires_admin_and_valid_image(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    assert client.post(BLOG_URL, json=blog_payload()).status_code == 401
    r = client.post(BLOG_URL, json=blog_payload(image="ftp://x"), headers=admin_headers)
    assert r.status_code == 400
    assert any(e["field"] == "image" for e in r.json()["errors"])


def test_pagination(client: TestClient, admin_headers: dict[str, str]) -> None:
    for _ in range(15):
        _create_blog(client, admin_headers)

    r = client.get(BLOG_URL, params={"page": 2, "limit": 10})
    assert r.status_code == 200
    body = r.json()
    assert len(body["blogs"]) == 5
    assert body["pagination"] == {
        "page": 2,
        "limit": 10,
        "total": 15,
        "pages": 2,
        "has_next": False,
        "has_prev": True,
    }
    assert "content" not in body["blogs"][0]


def test_list_rejects_bad_paging(client: TestClient) -> None:
    assert client.get(BLOG_URL, params={"page": 0}).status_code == 400
    assert client.get(BLOG_URL, params={"limit": 51}).status_code == 400


def test_unpublished_posts_are_hidden(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    draft = _create_blog(client, admin_headers, published=False)
    assert draft["published_at"] is None
    published = _create_blog(client, admin_headers)

    r = client.get(BLOG_URL)
    assert [b["id"] for b in r.json()["blogs"]] == [published["id"]]
    assert client.get(f"{BLOG_URL}slug/{draft['slug']}").status_code == 404

    r = client.get(f"{BLOG_URL}admin/all", headers=admin_headers)
    assert r.status_code == 200
    assert draft["id"] in [b["id"] for b in r.json()["blogs"]]


def test_filters_and_search(client: TestClient, admin_headers: dict[str, str]) -> None:
    in_title = _create_blog(
        client, admin_headers, title="Async Python patterns", category="python"
    )
    in_content = _create_blog(
        client,
        admin_headers,
        title="Notes from the week",
        content="A few words about async code.",
        category="python",
    )
    _create_blog(client, admin_headers, title="Gardening", tags=["plants"], category="life")

    r = client.get(BLOG_URL, params={"search": "async"})
    ids = [b["id"] for b in r.json()["blogs"]]
    assert ids == [in_title["id"], in_content["id"]]

    r = client.get(BLOG_URL, params={"category": "life"})
    assert [b["title"] for b in r.json()["blogs"]] == ["Gardening"]

    r = client.get(BLOG_URL, params={"search": "async", "category": "life"})
    assert r.json()["blogs"] == []


def test_view_by_slug_increments_views(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    blog = _create_blog(client, admin_headers)
    url = f"{BLOG_URL}slug/{blog['slug']}"
    assert client.get(url).json()["blog"]["views"] == 1
    assert client.get(url).json()["blog"]["views"] == 2


def test_like_increments_likes(client: TestClient, admin_headers: dict[str, str]) -> None:
    blog = _create_blog(client, admin_headers)
    r = client.post(f"{BLOG_URL}{blog['id']}/like")
    assert r.status_code == 200
    assert r.json()["likes"] == 1
    assert client.post(f"{BLOG_URL}{blog['id']}/like").json()["likes"] == 2
    assert client.post(f"{BLOG_URL}{uuid.uuid4()}/like").status_code == 404


def test_drafts_cannot_be_liked(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    draft = _create_blog(client, admin_headers, published=False)
    r = client.post(f"{BLOG_URL}{draft['id']}/like")
    assert r.status_code == 404
    r = client.get(f"{BLOG_URL}{draft['id']}", headers=admin_headers)
    assert r.json()["blog"]["likes"] == 0


def test_featured_latest_stats_categories(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    assert client.get(f"{BLOG_URL}latest").status_code == 404
    for _ in range(4):
        _create_blog(client, admin_headers, featured=True, category="python")
    _create_blog(client, admin_headers, category="life")
    _create_blog(client, admin_headers, published=False, category="drafts")

    assert len(client.get(f"{BLOG_URL}featured").json()["blogs"]) == 3
    assert client.get(f"{BLOG_URL}latest").status_code == 200

    stats = client.get(f"{BLOG_URL}stats").json()
    assert stats["total_count"] == 6
    assert stats["published_count"] == 5

    categories = client.get(f"{BLOG_URL}categories").json()["categories"]
    assert categories == [
        {"category": "python", "count": 4},
        {"category": "life", "count": 1},
    ]


def test_update_blog(client: TestClient, admin_headers: dict[str, str]) -> None:
    blog = _create_blog(client, admin_headers, title="Original title", published=False)
    other = _create_blog(client, admin_headers, title="Other post")
    url = f"{BLOG_URL}{blog['id']}"

    r = client.put(url, json={"title": "Renamed title"}, headers=admin_headers)
    assert r.status_code == 200
    updated = r.json()["blog"]
    assert updated["title"] == "Renamed title"
    assert updated["slug"] == "original-title"

    r = client.put(url, json={"slug": other["slug"]}, headers=admin_headers)
    assert r.status_code == 400

    r = client.put(
        url, json={"slug": "Fresh Slug", "published": True}, headers=admin_headers
    )
    updated = r.json()["blog"]
    assert updated["slug"] == "fresh-slug"
    assert updated["published_at"] is not None


def test_read_and_delete_blog(client: TestClient, admin_headers: dict[str, str]) -> None:
    blog = _create_blog(client, admin_headers)
    url = f"{BLOG_URL}{blog['id']}"
    assert client.get(url).status_code == 401
    r = client.get(url, headers=admin_headers)
    assert r.json()["blog"]["content"] == "The full body of the post."
    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 404
