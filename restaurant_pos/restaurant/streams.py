"""
Server-Sent-Events feeds for the chef and delivery screens.

A feed is a poll loop bound to one response: it sends the current snapshot
straight away, then re-runs the query every ``STREAM_POLL_SECONDS`` and
only writes when the canonical JSON differs from the last frame. When the
client goes away the server closes the iterator, which ends the loop.
"""
import json
import logging
import time

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.http import StreamingHttpResponse
from rest_framework.renderers import BaseRenderer

logger = logging.getLogger(__name__)


def encode(payload):
    return json.dumps(payload, cls=DjangoJSONEncoder, sort_keys=True, ensure_ascii=False)


def frame(body):
    return f"data: {body}\n\n"


class PollingEventStream:
    heartbeat = ": keep-alive\n\n"

    def __init__(self, fetch, name='stream', interval=None, heartbeat_polls=None, sleep=time.sleep):
        config = settings.RESTAURANT
        self.fetch = fetch
        self.name = name
        self.interval = config['STREAM_POLL_SECONDS'] if interval is None else interval
        self.heartbeat_polls = config['STREAM_HEARTBEAT_POLLS'] if heartbeat_polls is None else heartbeat_polls
        self.sleep = sleep
        self.closed = False
        self.last_body = None

    def poll(self):
        """One query; returns a frame to send or None when nothing changed."""
        try:
            body = encode({"items": self.fetch()})
        except Exception as exc:
            logger.warning("%s poll failed: %s", self.name, exc)
            # resend the next good snapshot even if it matches the one before the error
            self.last_body = None
            return frame(encode({"error": str(exc) or "Failed to fetch items"}))
        if body == self.last_body:
            return None
        self.last_body = body
        return frame(body)

    def __iter__(self):
        logger.info("%s opened", self.name)
        idle = 0
        try:
            while not self.closed:
                message = self.poll()
                if message is not None:
                    idle = 0
                    yield message
                else:
                    idle += 1
                    if self.heartbeat_polls and idle >= self.heartbeat_polls:
                        idle = 0
                        yield self.heartbeat
                self.sleep(self.interval)
        finally:
            self.closed = True
            logger.info("%s closed", self.name)

    def close(self):
        self.closed = True


class EventStreamRenderer(BaseRenderer):
    """
    Lets content negotiation accept ``Accept: text/event-stream``.

    The feed itself is a ``StreamingHttpResponse`` and never goes through a
    renderer; only envelopes raised before ``get()`` (401, 403, 400) land
    here, and they are written as a single data frame.
    """
    media_type = 'text/event-stream'
    format = 'event-stream'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''
        return frame(encode(data)).encode(self.charset)


def event_stream_response(stream):
    response = StreamingHttpResponse(iter(stream), content_type='text/event-stream')
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response
