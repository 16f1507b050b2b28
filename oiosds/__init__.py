"""
Python client for the OpenIO SDS proxy.

Typical use::

    settings = ProxySettings.from_environment()
    client = ProxyClient(ProxyHttp.from_settings(settings), settings)
    ctx = settings.new_context()
    info = client.get_namespace_info(ctx=ctx)
"""

from oiosds.application import ListOptions, OioUrl, ProxyClient
from oiosds.core import DeadlineManager, RequestContext
from oiosds.infrastructure.config import ProxySettings
from oiosds.infrastructure.http import ProxyHttp

__version__ = "0.1.0"

__all__ = [
    "ListOptions",
    "OioUrl",
    "ProxyClient",
    "DeadlineManager",
    "RequestContext",
    "ProxySettings",
    "ProxyHttp",
]
