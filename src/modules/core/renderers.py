import json

from rest_framework.renderers import BaseRenderer


class EventStreamRenderer(BaseRenderer):
    """Lets ``Accept: text/event-stream`` pass DRF content negotiation.

    The view returns a ``StreamingHttpResponse`` that writes its own frames;
    this renderer only renders error bodies raised before streaming starts.
    """

    media_type = "text/event-stream"
    format = "event-stream"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return f"event: error\ndata: {json.dumps(data, default=str)}\n\n".encode()
