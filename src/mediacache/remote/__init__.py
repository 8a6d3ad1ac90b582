"""Remote content store clients."""

from mediacache.remote.base import RemoteClient, RemoteDownload
from mediacache.remote.dropbox import DropboxClient, HttpDownload, header_safe_json

__all__ = [
    "RemoteClient",
    "RemoteDownload",
    "DropboxClient",
    "HttpDownload",
    "header_safe_json",
]
