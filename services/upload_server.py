"""TCP server accepting raw tick transmissions from sensor controllers."""

from __future__ import annotations

import logging
import socketserver
import threading
import time
from functools import lru_cache
from typing import Optional, Tuple

from datastore.oplog import OperationalLog
from services.framing import read_transmission
from services.ingestion import IngestionPipeline, PipelineError, build_default_pipeline
from settings import get_settings
from storage.base import StoreError
from storage.redis_store import build_default_store

logger = logging.getLogger(__name__)


class _TransmissionHandler(socketserver.BaseRequestHandler):
    server: "UploadServer"

    def handle(self) -> None:
        peer = "%s:%s" % self.client_address[:2]
        logger.info("New connection", extra={"peer": peer})
        try:
            frames = read_transmission(self.request.recv, self.server.read_size)
        except OSError as exc:
            logger.warning("Read failed, dropping connection", extra={"peer": peer, "reason": str(exc)})
            return
        self.server.ingest(frames.text(), peer=peer, bytes_received=frames.bytes_received)


class UploadServer(socketserver.ThreadingTCPServer):
    """One thread per connection; connections share nothing but the store.

    Devices get no acknowledgement: the connection is closed once the
    transmission has been ingested or rejected.
    """

    daemon_threads = True
    allow_reuse_address = True

    def __init__(
        self,
        address: Tuple[str, int],
        pipeline: IngestionPipeline,
        oplog: OperationalLog,
        read_size: int = 256,
    ) -> None:
        super().__init__(address, _TransmissionHandler)
        self.pipeline = pipeline
        self.oplog = oplog
        self.read_size = read_size
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server_address[1]

    def ingest(self, payload: str, peer: str = "-", bytes_received: int = 0) -> Optional[int]:
        """Log and process one transmission; return the tick count or None on failure."""
        try:
            self.oplog.record(payload)
        except StoreError as exc:
            logger.warning("Could not append to operational log", extra={"peer": peer, "reason": str(exc)})

        start = time.perf_counter()
        try:
            processed = self.pipeline.process(payload)
        except PipelineError as exc:
            logger.error(
                "Error while processing ticks",
                extra={
                    "peer": peer,
                    "reason": str(exc),
                    "processed_count": exc.processed_count,
                    "record": exc.record,
                },
            )
            return None

        logger.info(
            "Processed ticks",
            extra={
                "peer": peer,
                "processed_count": processed,
                "processing_ms": int((time.perf_counter() - start) * 1000),
                "bytes_received": bytes_received,
            },
        )
        return processed

    def start(self) -> None:
        """Serve connections from a background daemon thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.serve_forever, name="upload-server", daemon=True
        )
        self._thread.start()
        logger.info("Upload server started on port %s", self.port)

    def stop(self) -> None:
        if self._thread is not None:
            self.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self.server_close()
        logger.info("Upload server stopped")


@lru_cache
def build_default_upload_server() -> UploadServer:
    """Factory binding the upload port with default wiring."""
    settings = get_settings()
    store = build_default_store()
    return UploadServer(
        (settings.upload_host, settings.upload_port),
        pipeline=build_default_pipeline(),
        oplog=OperationalLog(store, max_entries=settings.operational_log_size),
        read_size=settings.upload_read_size,
    )
