import logging
from dataclasses import dataclass
from urllib.parse import quote

import requests
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

RAW_HOST = "raw.githubusercontent.com"

# request headers passed on to the raw host, everything else is dropped
FORWARDED_HEADERS = ("user-agent", "accept", "range")

PLAYLIST_CONTENT_TYPE = "application/vnd.apple.mpegurl; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

USAGE_FORMAT = "/:owner/:repo/blob/:ref/:path"

# characters RFC 3986 allows unescaped inside a path segment
SEGMENT_SAFE = "!$&'()*+,;=:@"


class BlobPathError(ValueError):
    """Raised when a request path is not a usable blob path.

    The message is the plain-text body sent back to the client.
    """


@dataclass(frozen=True)
class PathSpec:
    owner: str
    repo: str
    blob_keyword: str
    ref: str
    file_path: str


def parse_blob_path(path:str) -> PathSpec:
    """
    Split /owner/repo/blob/ref/some/file.txt into its parts.
    Empty segments are ignored, so repeated slashes collapse.
    """
    parts = [part for part in path.split("/") if part]
    if len(parts) < 5:
        raise BlobPathError(f"Invalid URL Format. Use: {USAGE_FORMAT}")

    owner, repo, blob_keyword, ref = parts[:4]
    if blob_keyword != "blob":
        raise BlobPathError('Not Found: Missing "blob" in path')

    file_path = "/".join(parts[4:])
    if not file_path:
        raise BlobPathError("Not Found: File path is empty")

    return PathSpec(owner, repo, blob_keyword, ref, file_path)


def quote_segment(segment:str) -> str:
    return quote(segment, safe=SEGMENT_SAFE)


def guess_content_type(file_path:str) -> str:
    if file_path.endswith(".m3u") or file_path.endswith(".m3u8"):
        return PLAYLIST_CONTENT_TYPE
    return TEXT_CONTENT_TYPE


def select_forward_headers(headers) -> dict:
    selected = {}
    for name in FORWARDED_HEADERS:
        value = headers.get(name)
        if value:
            selected[name] = value
    return selected


def iter_raw(upstream, chunk_size:int):
    """Yield the upstream body exactly as it came off the wire."""
    raw = upstream.raw
    if hasattr(raw, "stream"):
        yield from raw.stream(chunk_size, decode_content=False)
    else:
        while True:
            chunk = raw.read(chunk_size)
            if not chunk:
                break
            yield chunk


class GithubHandler:
    def __init__(self, upstream_host = RAW_HOST, timeout = None):

        self.upstream_host = upstream_host
        self.timeout = timeout

        self.session = requests.Session()
        # only the forwarded headers go upstream, no library defaults
        self.session.headers = CaseInsensitiveDict()

    def raw_url(self, spec:PathSpec) -> str:
        """
        The flask path arrives percent-decoded, so every segment is quoted
        again before it goes into the URL and the x-proxy-raw-url header.
        """
        segments = [spec.owner, spec.repo, spec.ref] + spec.file_path.split("/")
        path = "/".join(quote_segment(segment) for segment in segments)
        return f"https://{self.upstream_host}/{path}"

    def fetch(self, method, url, headers):
        """
        Issue one request to the raw host and return the streaming response.
        Redirects are followed. Transport failures raise requests.RequestException.
        """
        logger.debug("fetching %s %s", method, url)
        return self.session.request(
            method,
            url,
            headers=headers,
            stream=True,
            allow_redirects=True,
            timeout=self.timeout,
        )

    def close(self):
        self.session.close()
