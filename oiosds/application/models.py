"""
Pydantic models for proxy requests and responses.

These models decode accepted proxy bodies and headers into typed objects.
Unknown fields sent by the proxy are kept rather than rejected, so a newer
proxy does not break an older client.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from oiosds.shared.constants import EC_PREFIX


class ProxyModel(BaseModel):
    """Base model for proxy payloads."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class OioUrl(BaseModel):
    """Address of a reference, container or object."""
    model_config = ConfigDict(frozen=True)

    account: str
    container: str
    object: Optional[str] = None

    def __str__(self):
        parts = [self.account, self.container]
        if self.object is not None:
            parts.append(self.object)
        return "/".join(parts)


# Conscience
class NamespaceInfo(ProxyModel):
    """Technical information about the namespace served by the proxy."""
    name: str = Field(alias="ns")
    chunk_size: Optional[int] = Field(default=None, alias="chunksize")
    options: Dict[str, Any] = Field(default_factory=dict)
    storage_policy: Dict[str, Any] = Field(default_factory=dict)
    data_security: Dict[str, Any] = Field(default_factory=dict)
    data_treatments: Dict[str, Any] = Field(default_factory=dict)
    storage_class: Dict[str, Any] = Field(default_factory=dict)


class ServiceInfo(ProxyModel):
    """A service registered in the conscience."""
    addr: str
    score: int = 0
    tags: Dict[str, Any] = Field(default_factory=dict)


# Directory
class LinkedServiceInfo(ProxyModel):
    """A service linked to a reference."""
    seq: int = 0
    type: str
    host: str
    args: str = ""


class ReferenceInfo(ProxyModel):
    """Services linked to a reference."""
    dir: List[LinkedServiceInfo] = Field(default_factory=list)
    srv: List[LinkedServiceInfo] = Field(default_factory=list)


# Containers
class ContainerInfo(ProxyModel):
    """Container metadata, read from the proxy's response headers."""
    name: str
    account: Optional[str] = None
    ctime: Optional[int] = None
    init: Optional[int] = None
    usage: Optional[int] = None
    version: Optional[int] = None
    id: Optional[str] = None
    ns: Optional[str] = None
    type: Optional[str] = None
    user: Optional[str] = None
    schema_version: Optional[str] = None
    version_main_admin: Optional[str] = None
    version_main_aliases: Optional[str] = None
    version_main_chunks: Optional[str] = None
    version_main_contents: Optional[str] = None
    version_main_properties: Optional[str] = None


class ListOptions(BaseModel):
    """Options of an object listing."""
    limit: int = 0
    prefix: Optional[str] = None
    marker: Optional[str] = None
    delimiter: Optional[str] = None


class ObjectView(ProxyModel):
    """One entry of an object listing."""
    name: str
    version: Optional[int] = Field(default=None, alias="ver")
    ctime: Optional[int] = None
    mtime: Optional[int] = None
    deleted: bool = False
    content: Optional[str] = None
    policy: Optional[str] = None
    size: int = 0
    hash: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mime-type")
    chunk_method: Optional[str] = Field(default=None, alias="chunk-method")


class ObjectList(ProxyModel):
    """Result of an object listing."""
    objects: List[ObjectView] = Field(default_factory=list)
    prefixes: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    truncated: bool = False
    next_marker: Optional[str] = None


# Objects
class BeansRequest(BaseModel):
    """Body of a content preparation request."""
    size: int
    policy: Optional[str] = None


class ChunkInfo(ProxyModel):
    """Location of one chunk of an object."""
    url: str
    pos: str
    size: int
    hash: Optional[str] = None
    score: Optional[int] = None


class ObjectInfo(ProxyModel):
    """Object metadata, from headers, plus its chunk list."""
    url: OioUrl
    oid: Optional[str] = None
    size: Optional[int] = None
    ctime: Optional[int] = None
    chunk_method: Optional[str] = None
    policy: Optional[str] = None
    version: Optional[int] = None
    hash: Optional[str] = None
    hash_method: Optional[str] = None
    mime_type: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    chunks: List[ChunkInfo] = Field(default_factory=list)

    def is_ec(self) -> bool:
        """True when the object is erasure coded."""
        return bool(self.chunk_method) and self.chunk_method.startswith(EC_PREFIX)
