"""Feed writers importable by path, for CLI and loader tests."""

from __future__ import annotations

from hostasis.feeds.writer import FeedWriteRequest, RecordingFeedWriter

RECORDER = RecordingFeedWriter()

CALLS: list[FeedWriteRequest] = []


def record_call(request: FeedWriteRequest) -> None:
    CALLS.append(request)


class ClassWriter:
    instances: list[ClassWriter] = []

    def __init__(self) -> None:
        self.seen: list[FeedWriteRequest] = []
        ClassWriter.instances.append(self)

    def write_feed_update(self, request: FeedWriteRequest) -> None:
        self.seen.append(request)


def failing_writer(request: FeedWriteRequest) -> None:
    raise RuntimeError("gateway rejected chunk")


NOT_A_WRITER = 42
