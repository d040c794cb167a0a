"""SiteChat: a retrieval- and tool-augmented assistant for a site owner's content and data."""

__version__ = "0.1.0"
