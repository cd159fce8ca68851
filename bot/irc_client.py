"""Bind a session ``Connection`` to a miniirc transport."""

import asyncio
import concurrent.futures
import logging
from typing import List, Optional

import miniirc

from session import Connection, EventTranslator

logger = logging.getLogger(__name__)


class SessionBot:
    """Runs a miniirc connection and feeds every line into the session layer."""

    def __init__(
        self,
        server: str,
        port: int,
        nick: str,
        channels: List[str],
        use_ssl: bool = False,
        request_modes: bool = True
    ):
        """
        Initialize the runner.

        Args:
            server: IRC server address
            port: IRC server port
            nick: Nickname to register with
            channels: Channels to join once registered
            use_ssl: Use SSL/TLS connection
            request_modes: Ask for channel modes after each join
        """
        self.server = server
        self.port = port
        self.nick = nick
        self.channels = channels
        self.use_ssl = use_ssl

        self.connection = Connection(
            nickname=nick,
            request_modes=request_modes,
            send=self.send_raw,
            server_hostname=server
        )
        self.translator = EventTranslator(self.connection)
        self.irc: Optional[miniirc.IRC] = None
        self.running = False
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.executor: Optional[concurrent.futures.ThreadPoolExecutor] = None

    async def connect(self):
        """Connect to the IRC server."""
        logger.info("Connecting to %s:%s...", self.server, self.port)

        # miniirc calls handlers from its own threads; translation happens on this loop
        self.loop = asyncio.get_running_loop()
        # A single worker runs miniirc handlers in the order lines arrive
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)

        self.irc = miniirc.IRC(
            ip=self.server,
            port=self.port,
            nick=self.nick,
            channels=self.channels,
            ssl=self.use_ssl,
            persist=False,
            auto_connect=False,
            executor=self.executor
        )

        @self.irc.CmdHandler(colon=False)
        def handle_any(irc, command, hostmask, args):
            future = asyncio.run_coroutine_threadsafe(
                self._process(hostmask, command, args),
                self.loop
            )
            future.add_done_callback(self._process_done)

        self.connection.mark_connecting()
        try:
            self.irc.connect()
            self.running = True
        except Exception as e:
            logger.error("Connection failed: %s", e)
            self.translator.connection_lost()
            self.executor.shutdown(wait=False)
            raise

    async def _process(self, hostmask, command: str, args: List[str]):
        """Translate one message on the event loop thread."""
        self.translator.handle(hostmask, command, args)

    @staticmethod
    def _process_done(future: concurrent.futures.Future):
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to process inbound message: %s", exc,
                         exc_info=(type(exc), exc, exc.__traceback__))

    def send_raw(self, *parts: str):
        """Send a raw command, e.g. ``send_raw('MODE', '#chan')``."""
        if self.irc is None:
            logger.warning("Not connected, dropping %s", ' '.join(parts))
            return
        self.irc.quote(*parts)

    async def run_forever(self, poll_interval: float = 1.0):
        """Run until the transport drops or shutdown is requested."""
        await self.connect()

        try:
            while self.running:
                await asyncio.sleep(poll_interval)
                if self.irc is not None and self.irc.connected is False:
                    logger.warning("Transport closed by server")
                    self.running = False
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Disconnect and report the connection as lost."""
        self.running = False
        if self.irc is not None and self.irc.connected:
            self.irc.disconnect()
        self.translator.connection_lost()
        if self.executor is not None:
            self.executor.shutdown(wait=False)
        logger.info("Session closed.")
