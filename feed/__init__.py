"""Upstream CAD feed access (external collaborator injected into the engine)."""

from feed.client import CADFeedClient, FeedError

__all__ = ["CADFeedClient", "FeedError"]
