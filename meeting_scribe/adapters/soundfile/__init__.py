"""libsndfile-backed adapters for in-process decoding and chunking."""

from .chunker import InProcessChunker
from .decoder import SoundFileDecoder

__all__ = ["InProcessChunker", "SoundFileDecoder"]
