from rest_framework.renderers import JSONRenderer


class EnvelopeJSONRenderer(JSONRenderer):
    """Wrap bare successful payloads as `{success: true, data}`."""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get("response")
        already_wrapped = isinstance(data, dict) and "success" in data
        if response is not None and not response.exception and not already_wrapped:
            data = {"success": True, "data": data}
        return super().render(data, accepted_media_type, renderer_context)
