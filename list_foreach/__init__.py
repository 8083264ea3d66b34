"""list-foreach: fetch every page of paginated list APIs concurrently."""

__version__ = "0.1.0"
