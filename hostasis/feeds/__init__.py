"""hostasis.feeds

Feed updates: decide who signs, at which index, with which depth, then hand
the request to a writer.
"""

from .orchestrator import FeedUpdateOptions, FeedUpdateOrchestrator, FeedUpdatePlan
from .writer import FeedWriter, FeedWriteRequest, RecordingFeedWriter, load_feed_writer

__all__ = [
    "FeedUpdateOptions",
    "FeedUpdateOrchestrator",
    "FeedUpdatePlan",
    "FeedWriteRequest",
    "FeedWriter",
    "RecordingFeedWriter",
    "load_feed_writer",
]
