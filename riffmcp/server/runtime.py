"""Primary process lifecycle: elect, bind, publish, serve, clean up."""

from __future__ import annotations

import socket

import uvicorn
from loguru import logger

from riffmcp.cli.shared.network_utils import bind_listening_socket
from riffmcp.config.schema import Settings
from riffmcp.coordination.election import Election, ElectionOutcome, Role
from riffmcp.coordination.liveness import LivenessOracle
from riffmcp.coordination.record import PrimaryRecord
from riffmcp.coordination.store import ConfigStore
from riffmcp.scores import ScoreCache
from riffmcp.server.activity import ActivityLog
from riffmcp.server.app import create_app
from riffmcp.server.collaborators import AudioPlayer, NotationRenderer
from riffmcp.server.dispatcher import RequestDispatcher
from riffmcp.server.images import cleanup_old_images


class PrimaryServer:
    """
    Runs the primary-candidate path and, when elected, the HTTP server.

    The listening socket is bound before the record is published so proxies
    never see a port nobody listens on; uvicorn then serves on that socket.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        audio: AudioPlayer | None = None,
        renderer: NotationRenderer | None = None,
        election: Election | None = None,
    ):
        self.settings = settings
        self.store = ConfigStore(settings.record_path)
        self.election = election or Election(
            self.store,
            LivenessOracle(self.store),
            discovery_timeout=settings.discovery_timeout_seconds,
            poll_interval=settings.discovery_poll_interval_seconds,
        )
        self.dispatcher = RequestDispatcher(
            scores=ScoreCache(settings.score_capacity),
            image_dir=settings.image_dir,
            audio=audio,
            renderer=renderer,
            activity=ActivityLog(),
            host=settings.host,
            port=settings.port,
        )
        self.app = create_app(self.dispatcher)
        self.record: PrimaryRecord | None = None
        self._socket: socket.socket | None = None

    def bind(self) -> tuple[str, int]:
        self._socket = bind_listening_socket(self.settings.host, self.settings.port)
        host, port = self._socket.getsockname()[:2]
        self.dispatcher.update_port(port)
        logger.info("Listening on {}:{}", host, port)
        return host, port

    def start(self) -> ElectionOutcome:
        try:
            outcome = self.election.run_primary_candidate(self.bind)
        except Exception:
            self.close_socket()
            raise
        if outcome.role == Role.PRIMARY:
            self.record = outcome.record
            self.settings.image_dir.mkdir(parents=True, exist_ok=True)
            cleanup_old_images(self.settings.image_dir, self.settings.image_max_age_hours)
        return outcome

    def serve(self) -> None:
        if self._socket is None or self.record is None:
            raise RuntimeError("start() must elect this process as primary before serve()")
        config = uvicorn.Config(
            self.app,
            log_level="warning",
            timeout_keep_alive=30,
            timeout_graceful_shutdown=10,
        )
        server = uvicorn.Server(config)
        try:
            server.run(sockets=[self._socket])
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        if self.record is not None:
            if self.store.remove_if_owned(self.record.instance):
                logger.info("Removed server record on shutdown")
            self.record = None
        self.close_socket()

    def close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
