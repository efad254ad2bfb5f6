"""Core pipeline engine: outcomes, the middleware interface and the rack."""
