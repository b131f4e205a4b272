"""Browser links to a file at a commit on the remote host."""

import logging
import re
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

from vcsflow.lib.errors import VcsflowError

logger = logging.getLogger(__name__)

# git@host:owner/repo(.git) and ssh://git@host[:port]/owner/repo(.git)
SCP_URL = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?!//)(?P<path>.+?)(?:\.git)?/?$")
SSH_URL = re.compile(r"^ssh://(?:[\w.-]+@)?(?P<host>[\w.-]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$")
HTTP_URL = re.compile(r"^(?P<scheme>https?)://(?:[^@/]+@)?(?P<host>[^/]+)/(?P<path>.+?)(?:\.git)?/?$")


def web_base(remote_url: str) -> Optional[str]:
    """https://host/owner/repo for a clone URL, or None if it isn't recognized."""
    url = remote_url.strip()
    match = HTTP_URL.match(url)
    if match:
        return f"{match['scheme']}://{match['host']}/{match['path']}"
    match = SSH_URL.match(url) or SCP_URL.match(url)
    if match:
        return f"https://{match['host']}/{match['path']}"
    return None


def blob_url(remote_url: str, commit_sha: str, filename: str) -> Optional[str]:
    base = web_base(remote_url)
    if base is None:
        return None
    return f"{base}/blob/{commit_sha}/{quote(filename)}"


class GitRemoteLinks:
    """RemoteLinkApi from the repository's remote URL."""

    def __init__(self, remote_url: Callable[[], Awaitable[Optional[str]]]):
        self.remote_url = remote_url

    async def get_remote_url(self, commit_sha: str, filename: str) -> str:
        remote = await self.remote_url()
        if not remote:
            raise VcsflowError("Repository has no remote URL")
        url = blob_url(remote, commit_sha, filename)
        if url is None:
            raise VcsflowError(f"Cannot build a web link from remote URL: {remote}")
        logger.debug(f"[LINK] {filename}@{commit_sha[:8]} -> {url}")
        return url
