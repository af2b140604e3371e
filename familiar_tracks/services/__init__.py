"""Service layer wrapping route grouping with activity loading and memoisation."""

from .route_service import RouteService, RouteServiceConfig

__all__ = ["RouteService", "RouteServiceConfig"]
