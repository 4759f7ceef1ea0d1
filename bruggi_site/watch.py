"""Watch the site sources, rebuild on change and serve the output locally."""

from __future__ import annotations

import functools
import http.server
import logging
import queue
import threading
from pathlib import Path
from typing import List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildOrchestrator
from .config import SiteConfig

logger = logging.getLogger("bruggi_site.watch")

_STOP = object()


class RebuildWorker:
    """Single consumer that runs rebuild requests one at a time.

    Requests that pile up while a build is running are drained and served by
    one extra build, since every build reconstructs the whole output anyway.
    """

    def __init__(self, orchestrator: BuildOrchestrator) -> None:
        self.orchestrator = orchestrator
        self.requests: "queue.Queue[object]" = queue.Queue()
        self.builds = 0
        self._thread: Optional[threading.Thread] = None

    def request(self, reason: str) -> None:
        self.requests.put(reason)

    def _drain(self) -> List[object]:
        pending = []
        while True:
            try:
                pending.append(self.requests.get_nowait())
            except queue.Empty:
                return pending

    def run_once(self, first: object) -> bool:
        """Handle one request plus anything already queued; False means stop."""
        batch = [first, *self._drain()]
        reasons = [item for item in batch if item is not _STOP]
        if reasons:
            logger.info("Change detected (%s); rebuilding", reasons[0])
            if len(reasons) > 1:
                logger.debug("Coalesced %d pending change events", len(reasons) - 1)
            try:
                self.orchestrator.build()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Rebuild failed")
            self.builds += 1
        return len(reasons) == len(batch)

    def _loop(self) -> None:
        while self.run_once(self.requests.get()):
            pass

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name="rebuild-worker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self.requests.put(_STOP)
        if self._thread:
            self._thread.join()


class ChangeHandler(FileSystemEventHandler):
    """Forwards create/modify/delete events on source files to the worker."""

    def __init__(self, worker: RebuildWorker, ignored: List[Path]) -> None:
        self.worker = worker
        self.ignored = [path.resolve() for path in ignored]

    def _should_ignore(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return True
        path = Path(str(event.src_path)).resolve()
        return any(path == root or root in path.parents for root in self.ignored)

    def _forward(self, event: FileSystemEvent) -> None:
        if not self._should_ignore(event):
            self.worker.request(str(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event)


def watch_paths(config: SiteConfig) -> List[Path]:
    return [config.content_dir, config.templates_dir, config.static_dir]


def start_watching(orchestrator: BuildOrchestrator) -> tuple:
    """Start the observer and rebuild worker; returns both for shutdown."""
    config = orchestrator.config
    worker = RebuildWorker(orchestrator)
    # Thumbnails are written by the build itself.
    handler = ChangeHandler(worker, ignored=[config.thumbs_dir])
    observer = Observer()
    for path in watch_paths(config):
        if path.exists():
            observer.schedule(handler, str(path), recursive=True)
            logger.info("Watching %s", path)
        else:
            logger.warning("Cannot watch %s: directory does not exist", path)
    worker.start()
    observer.start()
    return observer, worker


def serve(orchestrator: BuildOrchestrator) -> None:
    """Build once, then rebuild on change while serving the output over HTTP."""
    config = orchestrator.config
    orchestrator.build()
    observer, worker = start_watching(orchestrator)

    class QuietHandler(http.server.SimpleHTTPRequestHandler):
        def log_message(self, format, *args):  # noqa: A002 - stdlib signature
            logger.debug("%s - %s", self.address_string(), format % args)

    handler = functools.partial(QuietHandler, directory=str(config.output_dir))
    with http.server.ThreadingHTTPServer(("", config.port), handler) as httpd:
        logger.info("Serving on http://localhost:%d", config.port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping")
        finally:
            observer.stop()
            observer.join()
            worker.stop()
