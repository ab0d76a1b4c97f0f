"""Proxy configuration and rotation."""

from instaleads.proxy.rotating import ProxyProvider, resolve_geo_constraints, to_playwright_proxy, validate_proxy_url

__all__ = ["ProxyProvider", "resolve_geo_constraints", "to_playwright_proxy", "validate_proxy_url"]
