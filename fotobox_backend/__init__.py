"""Backend for the fotobox gallery: photo sessions served over HTTP.

The FastAPI route in server.py stays thin; the work happens here:
- path resolution and session code validation
- session listing through a Jinja2 template
- streaming ZIP downloads of a session's photos
- on-demand JPEG thumbnails with Pillow

Session codes name directories under the data root. They are validated before
any filesystem access, and filesystem paths never appear in responses.
"""
