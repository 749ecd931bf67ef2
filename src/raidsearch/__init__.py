"""RAiD search: federated catalogue search with highlighting and paced artifact downloads."""

__version__ = "0.1.0"
