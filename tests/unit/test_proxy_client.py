"""
Unit tests for ProxyClient against an in-process fake proxy.
"""
import json

import httpx
import pytest

from oiosds.application.models import ChunkInfo, ListOptions, ObjectInfo, OioUrl
from oiosds.application.proxy_client import ProxyClient
from oiosds.infrastructure.config import ProxySettings
from oiosds.infrastructure.http.client import ProxyHttp
from oiosds.infrastructure.http.transport import HttpxTransport
from oiosds.shared.exceptions import (
    BodyDecodingError,
    ConfigurationError,
    ContainerExistsError,
    ContainerNotEmptyError,
    DeadlineExceededError,
    HostUnavailableError,
    InvalidArgumentError,
    ObjectNotFoundError,
)

CONTAINER = OioUrl(account="acct", container="box")
OBJECT = OioUrl(account="acct", container="box", object="photo.jpg")

CHUNKS = [{"url": "http://10.0.0.5:6201/AAAA", "pos": "0", "size": 1024, "hash": "00FF"}]


class FakeProxy:
    """Records requests and answers them with a handler per path."""

    def __init__(self):
        self.requests = []
        self.routes = {}
        self.down = set()

    def route(self, path, response):
        self.routes[path] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = f"{request.url.host}:{request.url.port}"
        if host in self.down:
            return httpx.Response(503)
        response = self.routes[request.url.path]
        return response(request) if callable(response) else response

    def paths(self):
        return [r.url.path for r in self.requests]


class ChunkedBody(httpx.SyncByteStream):
    """Body stream yielding chunks one by one, then optionally failing."""

    def __init__(self, chunks, on_chunk=None, error=None):
        self.chunks = chunks
        self.on_chunk = on_chunk
        self.error = error

    def __iter__(self):
        for chunk in self.chunks:
            if self.on_chunk is not None:
                self.on_chunk()
            yield chunk
        if self.error is not None:
            raise self.error


@pytest.fixture
def proxy():
    return FakeProxy()


@pytest.fixture
def make_client(proxy):
    def factory(**overrides):
        settings = ProxySettings(
            url="127.0.0.1:6000",
            ns="OPENIO",
            hosts=["127.0.0.2:6000"],
            **overrides,
        )
        transport = HttpxTransport(httpx.Client(transport=httpx.MockTransport(proxy)))
        return ProxyClient(ProxyHttp(transport), settings)
    return factory


class TestConscience:
    """Test cases for conscience operations."""

    def test_namespace_info(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/conscience/info",
            httpx.Response(200, json={"ns": "OPENIO", "chunksize": 1048576, "options": {"k": "v"}}),
        )

        info = make_client().get_namespace_info(ctx=ctx)

        assert info.name == "OPENIO"
        assert info.chunk_size == 1048576
        assert info.options == {"k": "v"}

    def test_get_services(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/conscience/list",
            httpx.Response(200, json=[{"addr": "10.0.0.5:6201", "score": 90, "tags": {"tag.up": True}}]),
        )

        services = make_client().get_services("rawx", ctx=ctx)

        assert [s.addr for s in services] == ["10.0.0.5:6201"]
        assert proxy.requests[0].url.params["type"] == "rawx"

    def test_get_services_requires_type(self, proxy, make_client, ctx):
        with pytest.raises(InvalidArgumentError, match="Missing type"):
            make_client().get_services("", ctx=ctx)
        assert proxy.requests == []

    def test_garbage_body_is_decoding_error(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/conscience/info", httpx.Response(200, content=b"]["))

        with pytest.raises(BodyDecodingError):
            make_client().get_namespace_info(ctx=ctx)

    def test_wrong_shape_is_decoding_error(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/conscience/info", httpx.Response(200, json=["not", "a", "dict"]))

        with pytest.raises(BodyDecodingError):
            make_client().get_namespace_info(ctx=ctx)

    def test_read_timeout_mid_body_is_deadline_exceeded(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/conscience/info",
            httpx.Response(200, stream=ChunkedBody([b'{"ns": '], error=httpx.ReadTimeout("slow body"))),
        )

        with pytest.raises(DeadlineExceededError) as exc_info:
            make_client().get_namespace_info(ctx=ctx)

        assert exc_info.value.hosts == ["127.0.0.1:6000"]
        assert len(proxy.requests) == 1

    def test_broken_connection_mid_body_is_decoding_error(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/conscience/info",
            httpx.Response(200, stream=ChunkedBody([b'{"ns": '], error=httpx.ReadError("reset"))),
        )

        with pytest.raises(BodyDecodingError, match="Body read failed"):
            make_client().get_namespace_info(ctx=ctx)

    def test_slow_body_cannot_outlive_deadline(self, proxy, make_client, ctx, clock):
        ctx.with_timeout(200)
        body = ChunkedBody(
            [b'{"ns": ', b'"OPEN', b'IO"', b"}", b" "],
            on_chunk=lambda: clock.advance(150),
        )
        proxy.route("/v3.0/OPENIO/conscience/info", httpx.Response(200, stream=body))

        with pytest.raises(DeadlineExceededError):
            make_client().get_namespace_info(ctx=ctx)

        assert clock.now() - ctx.start < 450
        assert len(proxy.requests) == 1

    def test_body_read_within_deadline(self, proxy, make_client, ctx, clock):
        ctx.with_timeout(1_000)
        body = ChunkedBody([b'{"ns": ', b'"OPENIO"}'], on_chunk=lambda: clock.advance(100))
        proxy.route("/v3.0/OPENIO/conscience/info", httpx.Response(200, stream=body))

        assert make_client().get_namespace_info(ctx=ctx).name == "OPENIO"


class TestDirectory:
    """Test cases for reference operations."""

    def test_link_service(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/reference/link",
            httpx.Response(200, json=[{"seq": 1, "type": "meta2", "host": "10.0.0.6:6120", "args": ""}]),
        )

        linked = make_client().link_service(CONTAINER, "meta2", ctx=ctx)

        assert linked[0].host == "10.0.0.6:6120"
        params = proxy.requests[0].url.params
        assert (params["acct"], params["ref"], params["type"]) == ("acct", "box", "meta2")

    def test_list_services(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/reference/show",
            httpx.Response(200, json={"dir": [], "srv": [{"seq": 1, "type": "meta2", "host": "h:1"}]}),
        )

        services = make_client().list_services(CONTAINER, "meta2", ctx=ctx)

        assert [s.type for s in services] == ["meta2"]

    def test_invalid_url_rejected_before_network(self, proxy, make_client, ctx):
        with pytest.raises(InvalidArgumentError, match="Invalid url"):
            make_client().create_reference(None, ctx=ctx)
        assert proxy.requests == []


class TestContainers:
    """Test cases for container operations."""

    def test_create_container(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/container/create", httpx.Response(201))

        info = make_client().create_container(CONTAINER, {"owner": "me"}, ctx=ctx)

        assert info.name == "box"
        request = proxy.requests[0]
        assert request.method == "POST"
        assert request.headers["X-oio-action-mode"] == "autocreate"
        assert json.loads(request.content) == {"properties": {"owner": "me"}}
        assert request.headers["X-oio-req-id"] == ctx.request_id

    def test_create_existing_container(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/container/create", httpx.Response(204))

        with pytest.raises(ContainerExistsError):
            make_client().create_container(CONTAINER, ctx=ctx)

    def test_create_fails_over_to_next_proxy(self, proxy, make_client, ctx):
        proxy.down.add("127.0.0.1:6000")
        proxy.route("/v3.0/OPENIO/container/create", httpx.Response(201))

        make_client().create_container(CONTAINER, ctx=ctx)

        assert [r.url.host for r in proxy.requests] == ["127.0.0.1", "127.0.0.2"]

    def test_all_proxies_down(self, proxy, make_client, ctx):
        proxy.down.update({"127.0.0.1:6000", "127.0.0.2:6000"})

        with pytest.raises(HostUnavailableError):
            make_client().delete_container(CONTAINER, ctx=ctx)

    def test_delete_non_empty_container(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/container/destroy",
            httpx.Response(409, json={"status": 438, "message": "Container not empty"}),
        )

        with pytest.raises(ContainerNotEmptyError, match="Container not empty"):
            make_client().delete_container(CONTAINER, ctx=ctx)
        assert len(proxy.requests) == 1

    def test_container_info_from_headers(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/container/show",
            httpx.Response(200, headers={
                "X-oio-container-meta-sys-account": "acct",
                "X-oio-container-meta-sys-m2-usage": "2048",
                "X-oio-container-meta-sys-m2-ctime": "1500000000",
                "X-oio-container-meta-sys-ns": "OPENIO",
            }),
        )

        info = make_client().get_container_info(CONTAINER, ctx=ctx)

        assert info.account == "acct"
        assert info.usage == 2048
        assert info.ctime == 1500000000
        assert info.ns == "OPENIO"
        assert info.version is None

    def test_list_objects(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/container/list",
            httpx.Response(
                200,
                json={"objects": [{"name": "a", "ver": 1, "size": 3, "mime-type": "text/plain"}], "prefixes": []},
                headers={"X-oio-list-truncated": "true", "X-oio-list-marker": "a"},
            ),
        )

        listing = make_client().list_objects(CONTAINER, ListOptions(prefix="a", limit=1), ctx=ctx)

        assert listing.truncated is True
        assert listing.next_marker == "a"
        assert listing.objects[0].version == 1
        assert listing.objects[0].mime_type == "text/plain"
        params = proxy.requests[0].url.params
        assert params["max"] == "1"
        assert params["prefix"] == "a"
        assert "marker" not in params

    def test_list_objects_without_limit(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/container/list", httpx.Response(200, json={"objects": []}))

        listing = make_client().list_objects(CONTAINER, ListOptions(), ctx=ctx)

        assert listing.truncated is False
        assert "max" not in proxy.requests[0].url.params

    def test_container_properties(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/container/set_properties", httpx.Response(204))
        proxy.route(
            "/v3.0/OPENIO/container/get_properties",
            httpx.Response(200, json={"properties": {"owner": "me"}, "system": {"sys.m2.usage": "0"}}),
        )
        client = make_client()

        client.set_container_properties(CONTAINER, {"owner": "me"}, clear=True, ctx=ctx)
        props = client.get_container_properties(CONTAINER, ctx=ctx)

        assert props == {"owner": "me"}
        assert proxy.requests[0].url.params["flush"] == "1"

    def test_set_properties_requires_properties(self, make_client, ctx):
        with pytest.raises(InvalidArgumentError, match="Invalid properties"):
            make_client().set_container_properties(CONTAINER, {}, ctx=ctx)


class TestObjects:
    """Test cases for object operations."""

    def _object_headers(self, chunk_method="plain/nb_copy=1"):
        return {
            "X-oio-content-meta-id": "0123ABCD",
            "X-oio-content-meta-length": "1024",
            "X-oio-content-meta-chunk-method": chunk_method,
            "X-oio-content-meta-policy": "SINGLE",
            "X-oio-content-meta-version": "1500000000000000",
            "X-oio-content-meta-x-color": "blue",
        }

    def test_prepare_put_object(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/prepare", httpx.Response(200, json=CHUNKS, headers=self._object_headers()))

        info = make_client(autocreate=True).prepare_put_object(OBJECT, 1024, ctx=ctx)

        assert info.oid == "0123ABCD"
        assert info.size == 1024
        assert info.chunks[0].size == 1024
        request = proxy.requests[0]
        assert json.loads(request.content) == {"size": 1024}
        assert request.headers["X-oio-action-mode"] == "autocreate"
        assert request.url.params["path"] == "photo.jpg"

    def test_prepare_ec_object_without_ecd(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/content/prepare",
            httpx.Response(200, json=CHUNKS, headers=self._object_headers("ec/algo=liberasurecode_rs_vand,k=6,m=3")),
        )

        with pytest.raises(ConfigurationError):
            make_client().prepare_put_object(OBJECT, 1024, ctx=ctx)

        with pytest.raises(ConfigurationError, match="Missing proxy#ecd"):
            make_client(ecdrain=True).prepare_put_object(OBJECT, 1024, ctx=ctx)

    def test_prepare_requires_object_name(self, proxy, make_client, ctx):
        with pytest.raises(InvalidArgumentError):
            make_client().prepare_put_object(CONTAINER, 10, ctx=ctx)
        assert proxy.requests == []

    def test_put_object(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/create", httpx.Response(204))
        info = ObjectInfo(
            url=OBJECT,
            oid="0123ABCD",
            size=1024,
            hash="00FF",
            policy="SINGLE",
            chunk_method="plain/nb_copy=1",
            version=7,
            chunks=[ChunkInfo(**CHUNKS[0])],
            properties={"color": "blue"},
        )

        make_client().put_object(info, ctx=ctx)

        request = proxy.requests[0]
        assert request.headers["X-oio-content-meta-length"] == "1024"
        assert request.headers["X-oio-content-meta-version"] == "7"
        body = json.loads(request.content)
        assert body["properties"] == {"color": "blue"}
        assert body["chunks"][0]["url"] == CHUNKS[0]["url"]

    def test_get_object_info_with_properties(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/show", httpx.Response(200, json=CHUNKS, headers=self._object_headers()))
        proxy.route(
            "/v3.0/OPENIO/content/get_properties",
            httpx.Response(200, json={"properties": {"color": "red"}}),
        )

        info = make_client().get_object_info(OBJECT, version=3, ctx=ctx)

        assert info.version == 1500000000000000
        assert info.properties == {"color": "red"}
        assert proxy.paths() == ["/v3.0/OPENIO/content/show", "/v3.0/OPENIO/content/get_properties"]
        assert proxy.requests[0].url.params["version"] == "3"

    def test_get_object_info_header_properties(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/show", httpx.Response(200, json=CHUNKS, headers=self._object_headers()))

        info = make_client().get_object_info(OBJECT, load_properties=False, ctx=ctx)

        assert info.properties == {"color": "blue"}
        assert len(proxy.requests) == 1

    def test_get_ec_object_needs_ecd(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/content/show",
            httpx.Response(200, json=CHUNKS, headers=self._object_headers("ec/algo=isa_l_rs_vand,k=6,m=3")),
        )

        with pytest.raises(ConfigurationError, match="without ecd"):
            make_client(ecdrain=True).get_object_info(OBJECT, load_properties=False, ctx=ctx)

        info = make_client(ecdrain=True, ecd="127.0.0.1:5000").get_object_info(OBJECT, load_properties=False, ctx=ctx)
        assert info.is_ec()

    def test_missing_object(self, proxy, make_client, ctx):
        proxy.route(
            "/v3.0/OPENIO/content/show",
            httpx.Response(404, json={"status": 420, "message": "Content not found"}),
        )

        with pytest.raises(ObjectNotFoundError):
            make_client().get_object_info(OBJECT, ctx=ctx)
        assert len(proxy.requests) == 1

    def test_delete_object_with_version(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/delete", httpx.Response(204))

        make_client().delete_object(OBJECT, version=12, ctx=ctx)

        assert proxy.requests[0].headers["X-oio-content-meta-version"] == "12"

    def test_delete_all_object_properties(self, proxy, make_client, ctx):
        proxy.route("/v3.0/OPENIO/content/del_properties", httpx.Response(204))

        make_client().delete_object_properties(OBJECT, ctx=ctx)

        assert json.loads(proxy.requests[0].content) == []
