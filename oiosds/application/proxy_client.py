"""
Proxy client: conscience, directory, container, object and property operations.

Each operation builds a request for the proxy's v3.0 API, runs it through
the failover executor with the verifier of its resource kind and decodes
the accepted response. Every operation takes a mandatory request context.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from oiosds.application.models import (
    BeansRequest,
    ChunkInfo,
    ContainerInfo,
    LinkedServiceInfo,
    ListOptions,
    NamespaceInfo,
    ObjectInfo,
    ObjectList,
    OioUrl,
    ReferenceInfo,
    ServiceInfo,
)
from oiosds.core.context import RequestContext
from oiosds.infrastructure.config import ProxySettings
from oiosds.infrastructure.http.client import ProxyHttp
from oiosds.infrastructure.http.request import RequestBuilder, decode_model
from oiosds.infrastructure.http.response import ResponseHandle
from oiosds.infrastructure.http.verifiers import (
    CONTAINER_VERIFIER,
    OBJECT_VERIFIER,
    REFERENCE_VERIFIER,
    STANDALONE_VERIFIER,
    Verifier,
)
from oiosds.shared import constants as c
from oiosds.shared.contracts import INVALID_URL_MSG, check_argument, non_empty_string, require
from oiosds.shared.exceptions import ConfigurationError, ContainerExistsError

logger = structlog.get_logger(__name__)


def _valid_url(url: Optional[OioUrl] = None, **_) -> bool:
    return url is not None


def _valid_object_url(url: Optional[OioUrl] = None, **_) -> bool:
    return url is not None and url.object is not None


class ProxyClient:
    """Client of the proxy HTTP API, failing over between proxy instances."""

    def __init__(self, http: ProxyHttp, settings: ProxySettings):
        self.http = http
        self.settings = settings
        self.hosts = tuple(settings.all_hosts())

    # -- Request helpers ----------------------------------------------------

    def _path(self, path: str) -> str:
        return f"/v3.0/{self.settings.ns}{path}"

    def _request(
        self,
        method: str,
        path: str,
        verifier: Verifier,
        ctx: RequestContext,
        url: Optional[OioUrl] = None,
    ) -> RequestBuilder:
        builder = self.http.get(self._path(path)) if method == "GET" else self.http.post(self._path(path))
        if url is not None:
            builder.query(c.ACCOUNT_PARAM, url.account).query(c.REFERENCE_PARAM, url.container)
            builder.query(c.PATH_PARAM, url.object)
        return builder.hosts(self.hosts).verifier(verifier).with_request_context(ctx)

    # -- Conscience ---------------------------------------------------------

    def get_namespace_info(self, *, ctx: RequestContext) -> NamespaceInfo:
        """Retrieve technical information about the namespace."""
        return self._request("GET", c.CS_NSINFO_PATH, STANDALONE_VERIFIER, ctx).execute_as(NamespaceInfo)

    @require(lambda type, **_: non_empty_string(type), "Missing type")
    def get_services(self, type: str, *, ctx: RequestContext) -> List[ServiceInfo]:
        """Return the available services of the specified type."""
        return (
            self._request("GET", c.CS_GETSRV_PATH, STANDALONE_VERIFIER, ctx)
            .query(c.TYPE_PARAM, type)
            .execute_as(List[ServiceInfo])
        )

    # -- Directory ----------------------------------------------------------

    @require(_valid_url, INVALID_URL_MSG)
    def create_reference(self, url: OioUrl, *, ctx: RequestContext) -> None:
        self._request("POST", c.DIR_REF_CREATE_PATH, REFERENCE_VERIFIER, ctx, url).execute().close()

    @require(_valid_url, INVALID_URL_MSG)
    def show_reference(self, url: OioUrl, *, ctx: RequestContext) -> ReferenceInfo:
        return self._request("GET", c.DIR_REF_SHOW_PATH, REFERENCE_VERIFIER, ctx, url).execute_as(ReferenceInfo)

    @require(_valid_url, INVALID_URL_MSG)
    def delete_reference(self, url: OioUrl, *, ctx: RequestContext) -> None:
        """Delete a reference. It must not be linked to any service."""
        self._request("POST", c.DIR_REF_DELETE_PATH, REFERENCE_VERIFIER, ctx, url).execute().close()

    @require(_valid_url, INVALID_URL_MSG)
    def link_service(self, url: OioUrl, type: str, *, ctx: RequestContext) -> List[LinkedServiceInfo]:
        """Attach a service of the specified type to a reference."""
        check_argument(non_empty_string(type), "Missing type", argument="type")
        return (
            self._request("POST", c.DIR_LINK_SRV_PATH, REFERENCE_VERIFIER, ctx, url)
            .query(c.TYPE_PARAM, type)
            .execute_as(List[LinkedServiceInfo])
        )

    @require(_valid_url, INVALID_URL_MSG)
    def list_services(self, url: OioUrl, type: str, *, ctx: RequestContext) -> List[LinkedServiceInfo]:
        """Return the services of the specified type linked to a reference."""
        check_argument(non_empty_string(type), "Missing type", argument="type")
        info = (
            self._request("GET", c.DIR_REF_SHOW_PATH, REFERENCE_VERIFIER, ctx, url)
            .query(c.TYPE_PARAM, type)
            .execute_as(ReferenceInfo)
        )
        return info.srv

    @require(_valid_url, INVALID_URL_MSG)
    def unlink_service(self, url: OioUrl, type: str, *, ctx: RequestContext) -> None:
        check_argument(non_empty_string(type), "Missing type", argument="type")
        (
            self._request("POST", c.DIR_UNLINK_SRV_PATH, REFERENCE_VERIFIER, ctx, url)
            .query(c.TYPE_PARAM, type)
            .execute()
            .close()
        )

    # -- Containers ---------------------------------------------------------

    @require(_valid_url, INVALID_URL_MSG)
    def create_container(
        self,
        url: OioUrl,
        properties: Optional[Mapping[str, str]] = None,
        *,
        ctx: RequestContext,
    ) -> ContainerInfo:
        """
        Create a container.

        Raises:
            ContainerExistsError: If the container is already present
        """
        resp = (
            self._request("POST", c.CREATE_CONTAINER_PATH, CONTAINER_VERIFIER, ctx, url)
            .header(c.ACTION_MODE_HEADER, c.AUTOCREATE_ACTION_MODE)
            .json({"properties": dict(properties or {})})
            .execute()
        )
        resp.close()
        if resp.status_code == 204:
            raise ContainerExistsError(
                "Container already present",
                status_code=resp.status_code,
                resource_kind=CONTAINER_VERIFIER.kind,
            )
        logger.info("Container created", container=str(url), request_id=ctx.request_id)
        return ContainerInfo(name=url.container)

    @require(_valid_url, INVALID_URL_MSG)
    def get_container_info(self, url: OioUrl, *, ctx: RequestContext) -> ContainerInfo:
        """Read container metadata from the response headers."""
        with self._request("GET", c.GET_CONTAINER_INFO_PATH, CONTAINER_VERIFIER, ctx, url).execute() as r:
            return ContainerInfo(
                name=url.container,
                account=r.header(c.ACCOUNT_HEADER),
                ctime=r.int_header(c.M2_CTIME_HEADER),
                init=r.int_header(c.M2_INIT_HEADER),
                usage=r.int_header(c.M2_USAGE_HEADER),
                version=r.int_header(c.M2_VERSION_HEADER),
                id=r.header(c.CONTAINER_SYS_NAME_HEADER),
                ns=r.header(c.NS_HEADER),
                type=r.header(c.TYPE_HEADER),
                user=r.header(c.USER_NAME_HEADER),
                schema_version=r.header(c.SCHEMA_VERSION_HEADER),
                version_main_admin=r.header(c.VERSION_MAIN_ADMIN_HEADER),
                version_main_aliases=r.header(c.VERSION_MAIN_ALIASES_HEADER),
                version_main_chunks=r.header(c.VERSION_MAIN_CHUNKS_HEADER),
                version_main_contents=r.header(c.VERSION_MAIN_CONTENTS_HEADER),
                version_main_properties=r.header(c.VERSION_MAIN_PROPERTIES_HEADER),
            )

    @require(lambda url=None, options=None, **_: url is not None and options is not None, "Invalid url or options")
    def list_objects(self, url: OioUrl, options: ListOptions, *, ctx: RequestContext) -> ObjectList:
        resp = (
            self._request("GET", c.LIST_OBJECTS_PATH, CONTAINER_VERIFIER, ctx, url)
            .query(c.MAX_PARAM, options.limit if options.limit > 0 else None)
            .query(c.PREFIX_PARAM, options.prefix)
            .query(c.MARKER_PARAM, options.marker)
            .query(c.DELIMITER_PARAM, options.delimiter)
            .execute()
        )
        truncated = resp.header(c.LIST_TRUNCATED_HEADER)
        next_marker = resp.header(c.LIST_MARKER_HEADER)
        listing = decode_model(resp, ObjectList)
        if truncated is not None:
            listing.truncated = truncated.strip().lower() == "true"
            listing.next_marker = next_marker
        return listing

    @require(_valid_url, INVALID_URL_MSG)
    def delete_container(self, url: OioUrl, *, ctx: RequestContext) -> None:
        self._request("POST", c.DELETE_CONTAINER_PATH, CONTAINER_VERIFIER, ctx, url).execute().close()

    # -- Objects ------------------------------------------------------------

    @require(_valid_object_url, INVALID_URL_MSG)
    def prepare_put_object(self, url: OioUrl, size: int, *, ctx: RequestContext) -> ObjectInfo:
        """Ask the proxy where to upload the chunks of a new object."""
        check_argument(size >= 0, "size cannot be negative", argument="size", value=size)
        resp = (
            self._request("POST", c.GET_BEANS_PATH, OBJECT_VERIFIER, ctx, url)
            .header(c.ACTION_MODE_HEADER, c.AUTOCREATE_ACTION_MODE if self.settings.autocreate else None)
            .json(BeansRequest(size=size).model_dump(exclude_none=True))
            .execute()
        )
        info = self._object_info(url, resp)
        chunks = decode_model(resp, List[ChunkInfo])
        if info.is_ec():
            if not self.settings.ecdrain:
                raise ConfigurationError("Invalid configuration, cannot do EC without ecd")
            if not self.settings.ecd:
                raise ConfigurationError("Missing proxy#ecd configuration")
        info.chunks = chunks
        return info

    def put_object(self, info: ObjectInfo, version: Optional[int] = None, *, ctx: RequestContext) -> ObjectInfo:
        """Commit an object whose chunks have been uploaded."""
        check_argument(info is not None, "Invalid object info", argument="info")
        check_argument(info.url.object is not None, INVALID_URL_MSG, argument="info")
        if version is None:
            version = info.version
        body = {
            "chunks": [chunk.model_dump(exclude_none=True) for chunk in info.chunks],
            "properties": dict(info.properties or {}),
        }
        (
            self._request("POST", c.PUT_OBJECT_PATH, OBJECT_VERIFIER, ctx, info.url)
            .header(c.CONTENT_META_LENGTH_HEADER, info.size)
            .header(c.CONTENT_META_HASH_HEADER, info.hash)
            .header(c.CONTENT_META_POLICY_HEADER, info.policy)
            .header(c.CONTENT_META_CHUNK_METHOD_HEADER, info.chunk_method)
            .header(c.CONTENT_META_VERSION_HEADER, version)
            .header(c.CONTENT_META_ID_HEADER, info.oid)
            .json(body)
            .execute()
            .close()
        )
        return info

    @require(_valid_object_url, INVALID_URL_MSG)
    def get_object_info(
        self,
        url: OioUrl,
        version: Optional[int] = None,
        load_properties: bool = True,
        *,
        ctx: RequestContext,
    ) -> ObjectInfo:
        resp = (
            self._request("GET", c.GET_OBJECT_PATH, OBJECT_VERIFIER, ctx, url)
            .query(c.VERSION_PARAM, version)
            .execute()
        )
        info = self._object_info(url, resp)
        chunks = decode_model(resp, List[ChunkInfo])
        if info.is_ec() and (not self.settings.ecdrain or not self.settings.ecd):
            raise ConfigurationError("Unable to decode EC encoded object without ecd")
        info.chunks = chunks
        if load_properties:
            info.properties = self.get_object_properties(url, ctx=ctx)
        return info

    @require(_valid_object_url, INVALID_URL_MSG)
    def delete_object(self, url: OioUrl, version: Optional[int] = None, *, ctx: RequestContext) -> None:
        (
            self._request("POST", c.DELETE_OBJECT_PATH, OBJECT_VERIFIER, ctx, url)
            .header(c.CONTENT_META_VERSION_HEADER, version)
            .execute()
            .close()
        )

    # -- Properties ---------------------------------------------------------

    @require(_valid_url, INVALID_URL_MSG)
    def set_container_properties(
        self,
        url: OioUrl,
        properties: Mapping[str, str],
        clear: bool = False,
        *,
        ctx: RequestContext,
    ) -> None:
        """Set container properties; ``clear`` drops the existing ones first."""
        check_argument(bool(properties), "Invalid properties", argument="properties")
        (
            self._request("POST", c.CONTAINER_SET_PROP_PATH, CONTAINER_VERIFIER, ctx, url)
            .query(c.FLUSH_PARAM, "1" if clear else None)
            .json({"properties": dict(properties)})
            .execute()
            .close()
        )

    @require(_valid_url, INVALID_URL_MSG)
    def get_container_properties(self, url: OioUrl, *, ctx: RequestContext) -> Dict[str, str]:
        resp = self._request("POST", c.CONTAINER_GET_PROP_PATH, CONTAINER_VERIFIER, ctx, url).execute()
        return self._properties(resp)

    @require(_valid_url, INVALID_URL_MSG)
    def delete_container_properties(self, url: OioUrl, keys: Sequence[str], *, ctx: RequestContext) -> None:
        check_argument(bool(keys), "Invalid keys", argument="keys")
        (
            self._request("POST", c.CONTAINER_DEL_PROP_PATH, CONTAINER_VERIFIER, ctx, url)
            .json(list(keys))
            .execute()
            .close()
        )

    @require(_valid_object_url, INVALID_URL_MSG)
    def set_object_properties(
        self,
        url: OioUrl,
        properties: Mapping[str, str],
        clear: bool = False,
        *,
        ctx: RequestContext,
    ) -> None:
        """Set object properties; ``clear`` drops the existing ones first."""
        check_argument(bool(properties), "Invalid properties", argument="properties")
        (
            self._request("POST", c.OBJECT_SET_PROP_PATH, OBJECT_VERIFIER, ctx, url)
            .query(c.FLUSH_PARAM, "1" if clear else None)
            .json({"properties": dict(properties)})
            .execute()
            .close()
        )

    @require(_valid_object_url, INVALID_URL_MSG)
    def get_object_properties(self, url: OioUrl, *, ctx: RequestContext) -> Dict[str, str]:
        resp = self._request("POST", c.OBJECT_GET_PROP_PATH, OBJECT_VERIFIER, ctx, url).execute()
        return self._properties(resp)

    @require(_valid_object_url, INVALID_URL_MSG)
    def delete_object_properties(
        self,
        url: OioUrl,
        keys: Optional[Sequence[str]] = None,
        *,
        ctx: RequestContext,
    ) -> None:
        """Delete object properties; no keys means all of them."""
        (
            self._request("POST", c.OBJECT_DEL_PROP_PATH, OBJECT_VERIFIER, ctx, url)
            .json(list(keys or []))
            .execute()
            .close()
        )

    # -- Internals ----------------------------------------------------------

    @staticmethod
    def _properties(resp: ResponseHandle) -> Dict[str, str]:
        body = decode_model(resp, Dict[str, Any])
        return {str(k): str(v) for k, v in (body.get("properties") or {}).items()}

    @staticmethod
    def _object_info(url: OioUrl, r: ResponseHandle) -> ObjectInfo:
        prefix = c.PROP_HEADER_PREFIX.lower()
        properties = {
            key[len(prefix):]: value
            for key, value in r.headers.items()
            if key.lower().startswith(prefix)
        }
        return ObjectInfo(
            url=url,
            oid=r.header(c.CONTENT_META_ID_HEADER),
            size=r.int_header(c.CONTENT_META_LENGTH_HEADER),
            ctime=r.int_header(c.CONTENT_META_CTIME_HEADER),
            chunk_method=r.header(c.CONTENT_META_CHUNK_METHOD_HEADER),
            policy=r.header(c.CONTENT_META_POLICY_HEADER),
            version=r.int_header(c.CONTENT_META_VERSION_HEADER),
            hash=r.header(c.CONTENT_META_HASH_HEADER),
            hash_method=r.header(c.CONTENT_META_HASH_METHOD_HEADER),
            mime_type=r.header(c.CONTENT_META_MIME_TYPE_HEADER),
            properties=properties,
        )
