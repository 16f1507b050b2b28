"""
Operation layer: proxy client and the models it decodes.
"""

from .models import (
    BeansRequest,
    ChunkInfo,
    ContainerInfo,
    LinkedServiceInfo,
    ListOptions,
    NamespaceInfo,
    ObjectInfo,
    ObjectList,
    ObjectView,
    OioUrl,
    ReferenceInfo,
    ServiceInfo,
)
from .proxy_client import ProxyClient

__all__ = [
    "BeansRequest",
    "ChunkInfo",
    "ContainerInfo",
    "LinkedServiceInfo",
    "ListOptions",
    "NamespaceInfo",
    "ObjectInfo",
    "ObjectList",
    "ObjectView",
    "OioUrl",
    "ReferenceInfo",
    "ServiceInfo",
    "ProxyClient",
]
