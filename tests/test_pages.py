"""
Public pages: rendering, listing, search, random pick and response headers.
"""

import uuid

from fastapi.testclient import TestClient

from hackdb.db_handlers import HackDBHandler
from tests.helpers import create_hack


def test_index_and_about_render_for_guests(client):
    for path in ("/", "/about", "/search"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")


def test_navigation_reflects_session(client, editor_client):
    assert 'href="/admin"' in editor_client.get("/").text

    editor_client.get("/session/destroy")
    page = client.get("/").text
    assert 'href="/admin"' not in page
    assert 'href="/accounts/auth"' in page


def test_all_lists_hacks_sorted_by_title(editor_client):
    for title in ("Zelda Mode", "alpha run", "Mario Plus"):
        create_hack(editor_client, title=title)

    page = editor_client.get("/all").text

    positions = [page.index(title) for title in ("Mario Plus", "Zelda Mode")]
    assert positions == sorted(positions)
    assert "alpha run" in page


def test_all_with_no_hacks(client):
    response = client.get("/all")

    assert response.status_code == 200
    assert "No hacks found." in response.text


def test_search_matches_title_or_author(editor_client):
    create_hack(editor_client, title="Star Road", author="Skelux")
    create_hack(editor_client, title="Kaizo", author="Someone")
    create_hack(editor_client, title="Unrelated", author="Nobody")

    by_title = editor_client.post("/search", data={"query": "road"})
    by_either = editor_client.post("/search", data={"query": "kaizo skelux"})

    assert by_title.status_code == 200
    assert "Star Road" in by_title.text
    assert "Unrelated" not in by_title.text
    assert "Star Road" in by_either.text
    assert "Kaizo" in by_either.text
    assert "Unrelated" not in by_either.text


def test_search_with_empty_or_symbol_only_query_finds_nothing(editor_client):
    create_hack(editor_client)

    for query in ("", "  ", "%_&"):
        response = editor_client.post("/search", data={"query": query})
        assert response.status_code == 200
        assert "No hacks found." in response.text


def test_search_treats_like_wildcards_literally(editor_client):
    create_hack(editor_client, title="Plain Title")

    response = editor_client.post("/search", data={"query": "_"})

    assert "Plain Title" not in response.text


def test_search_query_is_escaped_in_output(client):
    response = client.post("/search", data={"query": "<script>x</script>"})

    assert "<script>x</script>" not in response.text
    assert "&lt;script&gt;" in response.text


def test_random_redirects_to_an_existing_hack(editor_client):
    ids = {create_hack(editor_client, title=f"Hack {n}") for n in range(3)}

    response = editor_client.get("/random")

    assert response.status_code == 302
    location = response.headers["location"]
    assert location.removeprefix("/view/") in ids


def test_random_with_no_hacks_is_not_found(client):
    response = client.get("/random")

    assert response.status_code == 404
    assert response.json() == {"error": "No such hack!"}


def test_view_unknown_or_malformed_id_is_not_found(client):
    for hack_id in (str(uuid.uuid4()), "nope"):
        response = client.get(f"/view/{hack_id}")
        assert response.status_code == 404
        assert response.json() == {"error": "No such hack!"}


def test_view_hides_edit_links_from_viewers(editor_client):
    hack_id = create_hack(editor_client)
    assert f'href="/edit/{hack_id}"' in editor_client.get(f"/view/{hack_id}").text

    editor_client.get("/session/destroy")
    assert f'href="/edit/{hack_id}"' not in editor_client.get(f"/view/{hack_id}").text


def test_stored_markup_is_rendered_escaped(editor_client):
    hack_id = create_hack(editor_client, description="<b>bold</b>")

    page = editor_client.get(f"/view/{hack_id}").text

    assert "<b>bold</b>" not in page
    assert "&lt;b&gt;bold&lt;/b&gt;" in page


def test_security_headers_on_pages_and_errors(client):
    for response in (client.get("/"), client.get("/random")):
        assert "default-src 'self'" in response.headers["content-security-policy"]
        assert response.headers["referrer-policy"] == "same-origin"
        assert response.headers["x-content-type-options"] == "nosniff"


def test_static_stylesheet_is_served(client):
    response = client.get("/static/style.css")

    assert response.status_code == 200
    assert "text/css" in response.headers["content-type"]


def test_security_headers_on_unhandled_errors(app, monkeypatch):
    async def broken_list_all(self, *, db=None):
        raise RuntimeError("listing exploded")

    monkeypatch.setattr(HackDBHandler, "list_all", broken_list_all)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/all")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "default-src 'self'" in response.headers["content-security-policy"]
    assert response.headers["referrer-policy"] == "same-origin"
    assert response.headers["x-content-type-options"] == "nosniff"


def test_view_embeds_youtube_video_without_cookies(editor_client):
    video = create_hack(
        editor_client, youtube="https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    )
    plain = create_hack(editor_client)

    page = editor_client.get(f"/view/{video}").text

    assert '<iframe src="https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ"' in page
    assert "<iframe" not in editor_client.get(f"/view/{plain}").text
