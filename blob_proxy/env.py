import os


def _read_int(name, default):
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _read_float(name, default=None):
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


class env_class():
    """
    Settings for the proxy, read from BLOB_PROXY_* environment variables.
    """
    def __init__(self) -> None:
        self.cache_ttl:int = _read_int("BLOB_PROXY_CACHE_TTL", 300)
        self.upstream_host:str = os.environ.get("BLOB_PROXY_UPSTREAM_HOST", "raw.githubusercontent.com")

        self.host:str = os.environ.get("BLOB_PROXY_HOST", "127.0.0.1")
        self.port:int = _read_int("BLOB_PROXY_PORT", 8080)

        # None leaves the timeout to the transport
        self.timeout = _read_float("BLOB_PROXY_TIMEOUT")
        self.chunk_size:int = _read_int("BLOB_PROXY_CHUNK_SIZE", 1024 * 10)

        self.log_level:str = os.environ.get("BLOB_PROXY_LOG_LEVEL", "INFO").upper()

        if self.cache_ttl < 0:
            raise ValueError("BLOB_PROXY_CACHE_TTL must not be negative")
        if self.chunk_size <= 0:
            raise ValueError("BLOB_PROXY_CHUNK_SIZE must be positive")


if __name__ == "__main__":
    env = env_class()
    print(vars(env))
