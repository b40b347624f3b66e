"""WebSocketTransport — realtime transport over the `websockets` sync client."""

import logging
import threading
from typing import Iterator, Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException
from websockets.sync.client import ClientConnection, connect

from meeting_scribe.ports.realtime import RealtimeTransportPort

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


class WebSocketTransport(RealtimeTransportPort):
    def __init__(self, open_timeout: float = 10.0):
        self._open_timeout = open_timeout
        self._ws: Optional[ClientConnection] = None
        self._lock = threading.Lock()
        self._open = False
        self._close_code: Optional[int] = None
        self._close_reason = ""

    def open(self, url: str, headers: dict[str, str]) -> None:
        self._ws = connect(url, additional_headers=headers, open_timeout=self._open_timeout)
        self._open = True
        self._close_code = None
        self._close_reason = ""
        logger.info("WebSocket connected")

    def send(self, message: str) -> None:
        if self._ws is None:
            raise ConnectionError("WebSocket is not connected")
        with self._lock:
            self._ws.send(message)

    def messages(self) -> Iterator[str]:
        if self._ws is None:
            return
        try:
            for message in self._ws:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                yield message
            self._record_close(NORMAL_CLOSURE, "")
        except ConnectionClosedError as e:
            rcvd = e.rcvd
            self._record_close(rcvd.code if rcvd else ABNORMAL_CLOSURE, rcvd.reason if rcvd else str(e))
        except ConnectionClosed as e:
            rcvd = e.rcvd
            self._record_close(rcvd.code if rcvd else NORMAL_CLOSURE, rcvd.reason if rcvd else "")

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        ws, self._ws = self._ws, None
        if ws is None:
            return
        try:
            ws.close(code=code, reason=reason)
        except WebSocketException as e:
            logger.debug(f"Ignoring error while closing WebSocket: {e}")
        if self._close_code is None:
            self._record_close(code, reason)

    def is_open(self) -> bool:
        return self._ws is not None and self._open

    def close_info(self) -> tuple[Optional[int], str]:
        return self._close_code, self._close_reason

    def _record_close(self, code: int, reason: str) -> None:
        self._open = False
        if self._close_code is None:
            self._close_code = code
            self._close_reason = reason
        logger.info(f"WebSocket closed: code={code} reason={reason!r}")
