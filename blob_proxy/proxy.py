import logging

import requests
from flask import Flask, Response, request
from werkzeug.datastructures import Headers

from blob_proxy.env import env_class
from blob_proxy.github_handler import (
    TEXT_CONTENT_TYPE,
    USAGE_FORMAT,
    BlobPathError,
    GithubHandler,
    guess_content_type,
    iter_raw,
    parse_blob_path,
    select_forward_headers,
)

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET,HEAD,OPTIONS",
    "access-control-allow-headers": "*",
    "access-control-max-age": "86400",
}

STRIPPED_HEADERS = {"set-cookie", "set-cookie2"}

# a WSGI application must not send these
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

ALL_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]

EXAMPLE_PATH = "/Guovin/iptv-api/blob/master/output/result.m3u"


def with_cors(headers:Headers) -> Headers:
    for name, value in CORS_HEADERS.items():
        headers.set(name, value)
    return headers


def make_text_response(body, status=200):
    headers = with_cors(Headers({"content-type": TEXT_CONTENT_TYPE}))
    return Response(body, status=status, headers=headers)


def usage_message(origin):
    return (
        "GitHub Proxy is running\n\n"
        "Usage:\n"
        f"{origin}{USAGE_FORMAT}\n\n"
        "Example:\n"
        f"{origin}{EXAMPLE_PATH}"
    )


def transform_headers(upstream_headers, file_path, raw_url, upstream_host, cache_ttl):
    out_headers = Headers()
    for name, value in upstream_headers.items():
        lowered = name.lower()
        if lowered in STRIPPED_HEADERS or lowered in HOP_BY_HOP_HEADERS:
            continue
        out_headers.add(name, value)

    if "content-type" not in out_headers:
        out_headers.set("content-type", guess_content_type(file_path))

    out_headers.set("cache-control", f"public, max-age={cache_ttl}")
    out_headers.set("x-proxy-upstream", upstream_host)
    out_headers.set("x-proxy-raw-url", raw_url)

    return with_cors(out_headers)


def handle(req, fetcher:GithubHandler, config:env_class):
    """
    Turn one inbound request into one response.

    /owner/repo/blob/ref/path is fetched from the raw host and streamed back,
    everything else is answered locally with a plain-text message.
    """
    method = req.method.upper()

    if method == "OPTIONS":
        response = Response(None, status=204, headers=with_cors(Headers()))
        del response.headers["content-type"]
        return response

    if method not in ("GET", "HEAD"):
        return make_text_response("Method Not Allowed", 405)

    if req.path in ("", "/"):
        return make_text_response(usage_message(req.host_url.rstrip("/")), 200)

    try:
        spec = parse_blob_path(req.path)
    except BlobPathError as e:
        logger.debug("rejected %s: %s", req.path, e)
        return make_text_response(str(e), 404)

    raw_url = fetcher.raw_url(spec)
    upstream_headers = select_forward_headers(req.headers)

    try:
        upstream = fetcher.fetch(method, raw_url, upstream_headers)
    except requests.RequestException as e:
        logger.warning("upstream fetch failed for %s: %s", raw_url, e)
        return make_text_response(f"Upstream fetch failed: {e}", 502)

    logger.info("%s %s -> %s", method, raw_url, upstream.status_code)

    try:
        out_headers = transform_headers(
            upstream.headers, spec.file_path, raw_url, fetcher.upstream_host, config.cache_ttl
        )

        response = Response(iter_raw(upstream, config.chunk_size), headers=out_headers)
        if upstream.reason:
            response.status = f"{upstream.status_code} {upstream.reason}"
        else:
            response.status_code = upstream.status_code
    except Exception:
        upstream.close()
        raise

    # releases the upstream connection when the client goes away too
    response.call_on_close(upstream.close)
    return response


def create_app(config = None, fetcher = None):
    if config is None:
        config = env_class()
    if fetcher is None:
        fetcher = GithubHandler(config.upstream_host, config.timeout)

    app = Flask(__name__)
    # /o//r/blob/... must reach the handler instead of being redirected
    app.url_map.merge_slashes = False

    app.config["BLOB_PROXY"] = config
    app.extensions["blob_proxy_fetcher"] = fetcher

    @app.route("/", defaults={"subpath": ""}, methods=ALL_METHODS)
    @app.route("/<path:subpath>", methods=ALL_METHODS)
    def github_proxy(subpath):
        return handle(request, fetcher, config)

    # paths and methods the router refuses still get a CORS-enabled answer
    @app.errorhandler(404)
    @app.errorhandler(405)
    def unrouted(e):
        return handle(request, fetcher, config)

    return app
