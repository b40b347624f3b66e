"""Meeting transcription: chunked file pipeline, dual-model merge and realtime streaming."""

__version__ = "0.1.0"
