"""RealtimeSession — live microphone-to-transcript streaming session.

Outgoing messages: audio (base64 16-bit PCM), flush, close.
Incoming messages: session_started, session_ended, transcript (final or
partial), vad, error.

A background reader thread applies incoming messages to the
RealtimeTranscript; callers read snapshots through `transcript`.
"""

import json
import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Union
from urllib.parse import urlencode

import numpy as np

from meeting_scribe.domain.models import DEFAULT_SPEAKER, RealtimeTranscript, TranscriptSegment
from meeting_scribe.errors import ErrorCode, TranscriptionError
from meeting_scribe.pcm import encode_audio
from meeting_scribe.ports.realtime import RealtimeTransportPort
from meeting_scribe.post_processing import segment_id

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
DEFAULT_SOURCE_SAMPLE_RATE = 48000


def _seconds(value, default: float = 0.0) -> float:
    """Timestamp from a message field; missing or malformed values become the default."""
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ENDED = "ended"
    ERROR = "error"


@dataclass(frozen=True)
class RealtimeConfig:
    model_id: str = "scribe_v1"
    language_code: Optional[str] = None
    sample_rate: int = 16000
    encoding: str = "pcm_s16le"
    endpointing: Optional[int] = None  # VAD silence threshold in ms (50-500)
    max_segment_duration_secs: Optional[float] = None


def build_realtime_url(base_url: str, config: RealtimeConfig) -> str:
    params = {"model_id": config.model_id}
    if config.language_code:
        params["language_code"] = config.language_code
    params["sample_rate"] = str(config.sample_rate)
    params["encoding"] = config.encoding
    if config.endpointing:
        params["endpointing"] = str(config.endpointing)
    if config.max_segment_duration_secs:
        params["max_segment_duration_secs"] = str(config.max_segment_duration_secs)
    return f"{base_url}?{urlencode(params)}"


class RealtimeSession:
    def __init__(
        self,
        api_key: str,
        transport: RealtimeTransportPort,
        url: str,
        config: Optional[RealtimeConfig] = None,
        on_transcript: Optional[Callable[[str, bool], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_session_start: Optional[Callable[[str], None]] = None,
        on_session_end: Optional[Callable[[], None]] = None,
        on_update: Optional[Callable[[RealtimeTranscript], None]] = None,
    ):
        self._api_key = api_key
        self._transport = transport
        self._base_url = url
        self._config = config or RealtimeConfig()
        self._on_transcript = on_transcript
        self._on_error = on_error
        self._on_session_start = on_session_start
        self._on_session_end = on_session_end
        self._on_update = on_update

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._transcript = RealtimeTranscript()
        self._session_id: Optional[str] = None
        self._segment_count = 0
        self._closing = False
        self._reader: Optional[threading.Thread] = None

    # --- observable state ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def transcript(self) -> RealtimeTranscript:
        with self._lock:
            return replace(self._transcript, segments=list(self._transcript.segments))

    @property
    def is_connected(self) -> bool:
        return self._state == SessionState.CONNECTED and self._transport.is_open()

    # --- lifecycle ---

    def connect(self) -> None:
        if not self._api_key:
            self._fail("API key is required")
            raise TranscriptionError(ErrorCode.MISSING_API_KEY, "API key is required")

        if self.is_connected:
            logger.info("Realtime session already connected")
            return

        url = build_realtime_url(self._base_url, self._config)
        logger.info(f"Connecting realtime session: {url}")
        self._state = SessionState.CONNECTING
        self._closing = False
        self._set(error=None)

        try:
            self._transport.open(url, {"xi-api-key": self._api_key})
        except Exception as e:
            self._fail(f"Failed to connect: {e}")
            raise TranscriptionError(
                ErrorCode.NETWORK_ERROR, f"Failed to connect to realtime transcription: {e}"
            ) from e

        self._state = SessionState.CONNECTED
        self._reader = threading.Thread(target=self._read_loop, name="realtime-reader", daemon=True)
        self._reader.start()

    def send_audio(
        self,
        audio: Union[np.ndarray, bytes, bytearray],
        source_sample_rate: int = DEFAULT_SOURCE_SAMPLE_RATE,
    ) -> bool:
        """Resample, quantize and send one captured buffer. False if not connected."""
        if not self.is_connected:
            logger.warning("Cannot send audio: not connected")
            return False
        payload = encode_audio(audio, source_sample_rate, self._config.sample_rate)
        self._transport.send(json.dumps({"type": "audio", "audio": payload}))
        return True

    def flush(self) -> None:
        if not self.is_connected:
            return
        self._transport.send(json.dumps({"type": "flush"}))

    def disconnect(self) -> None:
        """Best-effort close message, then unconditional teardown."""
        self._closing = True
        if self._transport.is_open():
            try:
                self._transport.send(json.dumps({"type": "close"}))
            except Exception as e:
                logger.debug(f"Close message not sent: {e}")
        self._transport.close(NORMAL_CLOSURE, "User disconnected")

        if self._state != SessionState.IDLE:
            self._state = SessionState.ENDED
        self._session_id = None
        self._set(is_listening=False)

        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=2.0)
        self._reader = None

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the incoming stream ends."""
        if self._reader is not None:
            self._reader.join(timeout)

    # --- incoming messages ---

    def _read_loop(self) -> None:
        try:
            for raw in self._transport.messages():
                self.handle_message(raw)
        except Exception as e:
            logger.exception("Realtime reader failed")
            if not self._closing:
                self._fail(f"WebSocket connection error: {e}")
            return

        code, reason = self._transport.close_info()
        logger.info(f"Realtime stream closed: code={code} reason={reason!r}")
        self._set(is_listening=False)
        if self._closing:
            return
        if code is not None and code != NORMAL_CLOSURE:
            self._fail(reason or f"Connection closed with code {code}")
        elif self._state != SessionState.ERROR:
            self._state = SessionState.ENDED

    def handle_message(self, raw: str) -> None:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse realtime message: {e}")
            return
        if not isinstance(data, dict):
            logger.error(f"Unexpected realtime message: {raw[:200]}")
            return

        try:
            self._dispatch(data)
        except Exception:
            logger.exception(f"Failed to handle realtime message type {data.get('type')!r}")

    def _dispatch(self, data: dict) -> None:
        kind = data.get("type")
        if kind == "session_started":
            self._session_id = data.get("session_id")
            self._set(is_listening=True)
            logger.info(f"Realtime session started: {self._session_id}")
            if self._on_session_start:
                self._on_session_start(self._session_id or "")

        elif kind == "session_ended":
            self._set(is_listening=False)
            logger.info("Realtime session ended")
            if self._on_session_end:
                self._on_session_end()

        elif kind == "transcript":
            self._apply_transcript(data)

        elif kind == "vad":
            logger.debug(f"VAD event: {data.get('status')}")

        elif kind == "error":
            self._fail(data.get("message") or data.get("error") or "Unknown error")

        else:
            logger.debug(f"Ignoring realtime message type {kind!r}")

    def _apply_transcript(self, data: dict) -> None:
        text = data.get("transcript", data.get("text", "")) or ""
        is_final = data.get("channel") == "final"

        with self._lock:
            if is_final:
                start = _seconds(data.get("start"))
                end = _seconds(data.get("end"), default=start)
                segment = TranscriptSegment(
                    id=segment_id(self._segment_count),
                    speaker=DEFAULT_SPEAKER,  # live stream is not diarized
                    text=text,
                    start=start,
                    end=max(end, start),
                )
                self._segment_count += 1
                final_text = self._transcript.final_text
                self._transcript.final_text = final_text + (" " if final_text else "") + text
                self._transcript.partial_text = ""
                self._transcript.segments.append(segment)
            else:
                self._transcript.partial_text = text
        self._notify()

        if self._on_transcript:
            self._on_transcript(text, is_final)

    # --- helpers ---

    def _set(self, **changes) -> None:
        with self._lock:
            for name, value in changes.items():
                setattr(self._transcript, name, value)
        self._notify()

    def _fail(self, message: str) -> None:
        logger.error(f"Realtime error: {message}")
        self._state = SessionState.ERROR
        self._set(error=message, is_listening=False)
        if self._on_error:
            self._on_error(message)

    def _notify(self) -> None:
        if self._on_update:
            self._on_update(self.transcript)
