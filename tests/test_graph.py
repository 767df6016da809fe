"""Tests for the Graph API client against a faked requests.get."""

import pytest

from api._graph import GraphClient, UpstreamError, graph_url


@pytest.fixture
def graph_client():
    return GraphClient('tok', 'v19.0', timeout=5)


def test_graph_url_quotes_segments():
    assert graph_url('v19.0', 'my page', 'posts') == 'https://graph.facebook.com/v19.0/my%20page/posts'


def test_ig_user_id_lookup(fake_graph, graph_client, fake_response):
    fake_graph.add('/v19.0/123', fake_response({'instagram_business_account': {'id': 987, 'username': 'x'}}))
    assert graph_client.get_ig_user_id('123') == '987'
    call = fake_graph.calls[0]
    assert call['params']['fields'] == 'instagram_business_account{id,username}'
    assert call['params']['access_token'] == 'tok'
    assert call['timeout'] == 5


def test_ig_user_id_failure_means_no_data(fake_graph, graph_client, fake_response):
    fake_graph.add('/v19.0/123', fake_response({'error': {'message': 'nope'}}, 400, 'Bad Request'))
    assert graph_client.get_ig_user_id('123') is None


def test_ig_user_id_missing_account(fake_graph, graph_client, fake_response):
    fake_graph.add('/v19.0/123', fake_response({'id': '123'}))
    assert graph_client.get_ig_user_id('123') is None


def test_ig_media_normalizes_payload(fake_graph, graph_client, fake_response):
    fake_graph.add('/987/media', fake_response({'data': [
        {'id': 'a', 'media_type': 'IMAGE', 'media_url': 'https://x/a.jpg', 'timestamp': '2024-01-01T00:00:00+0000'},
        {'id': 'b', 'media_type': 'IMAGE'},
        {'id': 'c', 'media_type': 'VIDEO', 'thumbnail_url': 'https://x/c.jpg', 'timestamp': '2024-02-01T00:00:00+0000'},
    ]}))
    items = graph_client.get_ig_media('987', 9)
    assert [m.id for m in items] == ['c', 'a']
    assert fake_graph.calls[0]['params']['limit'] == '9'


def test_ig_media_upstream_error(fake_graph, graph_client, fake_response):
    fake_graph.add('/987/media', fake_response({'error': {'message': 'Invalid OAuth access token'}}, 400, 'Bad Request'))
    with pytest.raises(UpstreamError) as excinfo:
        graph_client.get_ig_media('987', 9)
    err = excinfo.value
    assert 'Invalid OAuth access token' in err.message
    assert err.status == 400
    assert err.status_text == 'Bad Request'


def test_malformed_json_is_treated_as_empty(fake_graph, graph_client, fake_response):
    fake_graph.add('/page/posts', fake_response(text='<html>'))
    assert graph_client.get_fb_posts('page', 6) == []


def test_malformed_json_with_error_status_uses_status_message(fake_graph, graph_client, fake_response):
    fake_graph.add('/page/posts', fake_response(text='<html>', status_code=503, reason='Service Unavailable'))
    with pytest.raises(UpstreamError) as excinfo:
        graph_client.get_fb_posts('page', 6)
    assert 'Unexpected status 503' in excinfo.value.message


def test_fb_posts_applies_limit(fake_graph, graph_client, fake_response):
    fake_graph.add('/page/posts', fake_response({'data': [
        {'id': str(i), 'permalink_url': f'https://fb.com/{i}'} for i in range(10)
    ]}))
    posts = graph_client.get_fb_posts('page', 3)
    assert [p.id for p in posts] == ['0', '1', '2']
    assert fake_graph.calls[0]['params']['limit'] == '3'


@pytest.mark.parametrize("target, endpoint", [
    ('https://www.facebook.com/page/videos/123/', '/oembed_video'),
    ('https://www.facebook.com/reel/456', '/oembed_video'),
    ('https://www.facebook.com/page/posts/789', '/oembed_post'),
])
def test_embed_endpoint_selection(fake_graph, graph_client, fake_response, target, endpoint):
    fake_graph.add(endpoint, fake_response({'html': '<div>embed</div>'}))
    assert graph_client.get_embed_html(target, maxwidth=500, omitscript=True) == '<div>embed</div>'
    params = fake_graph.calls[0]['params']
    assert fake_graph.calls[0]['url'].endswith(endpoint)
    assert params['url'] == target
    assert params['maxwidth'] == '500'
    assert params['omitscript'] == 'true'


def test_embed_without_html_is_an_error(fake_graph, graph_client, fake_response):
    fake_graph.add('/oembed_post', fake_response({'width': 500}))
    with pytest.raises(UpstreamError):
        graph_client.get_embed_html('https://www.facebook.com/page/posts/1')
