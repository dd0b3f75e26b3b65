from hbs.core.api.router_factory import create_hbs_router, to_http_exception

__all__ = ["create_hbs_router", "to_http_exception"]
