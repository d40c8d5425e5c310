import httpx
import pytest

from app.core.config import settings
from app.core.errors import ImageUploadError, NetworkFailure
from app.services.image_host import upload_image


@pytest.fixture(autouse=True)
def image_key(monkeypatch):
    monkeypatch.setattr(settings, "IMGBB_API_KEY", "test-key")


def _transport(handler):
    return httpx.MockTransport(handler)


async def test_upload_returns_hosted_url():
    seen = {}

    def handler(request: httpx.Request):
        seen["key"] = request.url.params["key"]
        seen["body"] = request.content
        return httpx.Response(200, json={"success": True, "data": {"url": "https://i.ibb.co/abc/logo.png"}})

    url = await upload_image(b"\x89PNG", "logo.png", "image/png", transport=_transport(handler))

    assert url == "https://i.ibb.co/abc/logo.png"
    assert seen["key"] == "test-key"
    assert b'name="image"' in seen["body"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"success": False, "error": {"message": "bad image"}}),
        httpx.Response(200, json={"success": True, "data": {}}),
        httpx.Response(400, json={"success": True, "data": {"url": "https://x"}}),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json=["unexpected"]),
    ],
    ids=["rejected", "missing-url", "http-error", "invalid-json", "not-an-object"],
)
async def test_upload_failures(response):
    with pytest.raises(ImageUploadError):
        await upload_image(b"data", "a.png", transport=_transport(lambda request: response))


async def test_transport_error_is_network_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(NetworkFailure):
        await upload_image(b"data", "a.png", transport=_transport(handler))


async def test_missing_key(monkeypatch):
    monkeypatch.setattr(settings, "IMGBB_API_KEY", "")
    with pytest.raises(ImageUploadError):
        await upload_image(b"data", "a.png")
