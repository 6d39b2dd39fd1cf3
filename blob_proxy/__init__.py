from blob_proxy.proxy import create_app, handle

__all__ = ["create_app", "handle"]
