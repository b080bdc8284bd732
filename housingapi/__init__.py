"""Records, storage, service clients and Flask views for a housing listings API."""

__version__ = "0.1.0"