"""Request helpers and sample data shared by the route tests."""

from fastapi.testclient import TestClient

EDITOR_EMAIL = "editor@example.com"
EDITOR_USERNAME = "editor"
VIEWER_EMAIL = "viewer@example.com"
VIEWER_USERNAME = "viewer"
PASSWORD = "correct horse battery"

VALID_HACK = {
    "title": "Speedrun",
    "author": "A",
    "description": "d",
    "youtube": "http://x",
    "requiredstars": "1",
    "totalstars": "3",
    "difficulty": "2",
}


def register(client: TestClient, email: str, username: str, password: str = PASSWORD):
    return client.post(
        "/api/register",
        data={
            "email": email,
            "username": username,
            "password": password,
            "confirmpassword": password,
        },
    )


def login(client: TestClient, email: str, password: str = PASSWORD):
    return client.post("/api/auth", data={"email": email, "password": password})


def logout(client: TestClient):
    return client.get("/session/destroy")


def create_hack(client: TestClient, **overrides) -> str:
    """Create a hack through the add form and return its id."""
    response = client.post("/add", data={**VALID_HACK, **overrides})
    assert response.status_code == 302, response.text
    location = response.headers["location"]
    assert location.startswith("/view/")
    return location.removeprefix("/view/")
