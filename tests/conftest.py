"""Shared pytest fixtures for the social proxy tests."""

import sys
from pathlib import Path

import pytest

# Add the repo root to the path so `api` imports resolve
sys.path.insert(0, str(Path(__file__).parent.parent))

from api._shared import load_settings  # noqa: E402


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason='OK', text=None):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason
        self._text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._text is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeGraph:
    """Routes requests.get calls by URL suffix and records them."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, suffix, response):
        self.routes[suffix] = response

    def __call__(self, url, params=None, timeout=None, **kwargs):
        self.calls.append({'url': url, 'params': dict(params or {}), 'timeout': timeout})
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse({'error': {'message': f'no route for {url}'}}, 404, 'Not Found')


@pytest.fixture
def fake_graph(monkeypatch):
    graph = FakeGraph()
    monkeypatch.setattr("api._graph.requests.get", graph)
    return graph


@pytest.fixture
def settings():
    return load_settings({
        'FB_PAGE_TOKEN': 'test-token',
        'ALLOWED_ORIGINS': 'https://exploride.pl,https://www.exploride.pl',
        'STATIC_CONTENT_MANIFEST': '["gallery/2-b.png", "gallery/1-a.jpg", "css/site.css"]',
    })


@pytest.fixture
def client(settings):
    from api.index import create_app

    app = create_app(settings)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def fake_response():
    return FakeResponse
