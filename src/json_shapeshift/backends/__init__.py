"""Backends subpackage for json-shapeshift.

The base install provides ``StaticBackend``, a hashed n-gram backend that
needs only numpy.  Optional backends are available via extras:

    pip install json-shapeshift[fastembed]   # local ONNX models
    pip install json-shapeshift[openai]      # OpenAI embeddings API

All backends satisfy the ``EmbeddingBackend`` Protocol structurally.  The
optional modules import their SDKs lazily, so they are always importable;
the SDK is only required when the backend is instantiated.
"""

from json_shapeshift.backends.fastembed import FastEmbedBackend
from json_shapeshift.backends.openai import OpenAIBackend
from json_shapeshift.backends.static import StaticBackend

__all__ = ["FastEmbedBackend", "OpenAIBackend", "StaticBackend"]
