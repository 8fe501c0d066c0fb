import pytest

from config import Settings
from gateway.errors import ImageSearchError
from gateway.services import image_search as image_search_module
from gateway.services.image_search import ImageSearchService
from gateway.utils import retry


class DummyTavily:
    def __init__(self, responses):
        self.responses = list(responses)
        self.kwargs = []

    def search(self, **kwargs):
        self.kwargs.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: None)


def _service(monkeypatch, responses):
    dummy = DummyTavily(responses)
    monkeypatch.setattr(image_search_module, "TavilyClient", lambda api_key: dummy)
    return ImageSearchService(Settings(tavily_api_key="tvly-test")), dummy


def test_unconfigured_service_raises():
    service = ImageSearchService(Settings(tavily_api_key=""))
    with pytest.raises(ImageSearchError, match="not configured"):
        service.search("cats")


def test_first_image_url_is_returned(monkeypatch):
    service, dummy = _service(monkeypatch, [{"images": ["https://a/1.jpg", "https://a/2.jpg"]}])
    assert service.search("cats") == "https://a/1.jpg"
    assert dummy.kwargs[0]["include_images"] is True
    assert dummy.kwargs[0]["query"] == "cats"


def test_image_dicts_are_supported(monkeypatch):
    service, _ = _service(monkeypatch, [{"images": [{"url": "https://a/1.jpg", "description": "cat"}]}])
    assert service.search("cats") == "https://a/1.jpg"


def test_no_images_returns_none(monkeypatch):
    service, _ = _service(monkeypatch, [{"results": [], "images": []}])
    assert service.search("nothing") is None


def test_transient_errors_are_retried(monkeypatch):
    service, dummy = _service(monkeypatch, [RuntimeError("429"), {"images": ["https://a/1.jpg"]}])
    assert service.search("cats") == "https://a/1.jpg"
    assert len(dummy.kwargs) == 2


def test_persistent_errors_raise(monkeypatch):
    service, dummy = _service(monkeypatch, [RuntimeError("down")] * 3)
    with pytest.raises(ImageSearchError, match="down"):
        service.search("cats")
    assert len(dummy.kwargs) == 3
