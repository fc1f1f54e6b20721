"""lazyroutes: migrate Angular routes to lazy-loaded standalone components."""

__version__ = "0.1.0"
