import threading

import pytest

from jsonresult import BufferResponse, Invocation, Request, ValueStack


def start_thread(func, *args, **kwargs):
    t = threading.Thread(target=func, args=args, kwargs=kwargs)
    t.daemon = True
    t.start()
    return t


def make_request(params=None, headers=None, uri=''):
    return Request(
        params={k: [v] for k, v in (params or {}).items()},
        headers=headers or {},
        uri=uri,
    )


@pytest.fixture(name='make_request')
def make_request_fixture():
    return make_request


@pytest.fixture
def response():
    return BufferResponse()


@pytest.fixture
def invoke(response):
    """Execute a result against `root` and return the buffered response."""

    def invoke(result, root, params=None, headers=None, uri=''):
        request = make_request(params, headers, uri)
        result.execute(Invocation(ValueStack(root), request, response))
        return response

    return invoke


@pytest.fixture
def serve():
    """Start JSON HTTP servers in the background, stopping them afterwards."""
    servers = []

    def serve(server):
        server.bind()
        start_thread(server.serve)
        servers.append(server)
        return server

    yield serve

    for server in servers:
        server.stop()
