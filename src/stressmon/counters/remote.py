"""
Counters collection in a separate process.

Running the collector in its own process keeps its cpu and memory cost out
of the process being measured. The parent talks to the child over a
multiprocessing pipe: it sends CollectorMessage requests and waits for a
CollectorReply to each one.
"""

import asyncio
import logging
import multiprocessing
import os
from multiprocessing.connection import Connection
from typing import List, Optional

from ..config import get_root_pid
from ..models.config import CountersOptions
from ..models.messages import CollectorMessage, CollectorReply, CollectorResponse, MessageKind
from ..models.process import ProcessInfo
from ..system import get_children_tree
from .collector import CountersCollector

logger = logging.getLogger(__name__)


class RemoteCollectorError(RuntimeError):
    """Raised in the parent when the collector process reports a failure."""


def _tree_without_pid(excluded_pid: int):
    def resolve(pid: int, include_parent: bool) -> List[ProcessInfo]:
        return [p for p in get_children_tree(pid, include_parent) if p.pid != excluded_pid]
    return resolve


class CollectorHost:
    """Child-side dispatcher holding the collector between requests."""

    def __init__(self):
        self.collector: Optional[CountersCollector] = None

    async def handle(self, message: CollectorMessage) -> CollectorReply:
        try:
            if message.kind is MessageKind.CONSTRUCT:
                kwargs = {}
                if message.skip_current:
                    kwargs["tree_resolver"] = _tree_without_pid(os.getpid())
                self.collector = CountersCollector(
                    message.name, message.pid, message.include_parent, message.options, **kwargs
                )
                logger.info(f"Counters collector '{message.name}' constructed")
                return CollectorReply(CollectorResponse.CONSTRUCTION_DONE)
            if self.collector is None:
                raise RemoteCollectorError(f"'{message.kind.value}' received before construct")
            if message.kind is MessageKind.START:
                await self.collector.start()
                return CollectorReply(CollectorResponse.START_DONE)
            if message.kind is MessageKind.STOP:
                await self.collector.stop()
                return CollectorReply(CollectorResponse.STOP_DONE)
            raise RemoteCollectorError(f"Unknown message kind: {message.kind!r}")
        except Exception as e:
            logger.error(f"Collector process failed handling {message.kind}: {e}", exc_info=True)
            return CollectorReply(CollectorResponse.ERROR, f"{type(e).__name__}: {e}")


async def _serve(conn: Connection) -> None:
    host = CollectorHost()
    loop = asyncio.get_running_loop()
    while True:
        try:
            # recv blocks, so it runs in the executor to keep the collector's timers going.
            message = await loop.run_in_executor(None, conn.recv)
        except EOFError:
            logger.info("Parent closed the connection; collector process exiting")
            return
        reply = await host.handle(message)
        conn.send(reply)
        if message.kind is MessageKind.STOP:
            return


def collector_process_main(conn: Connection) -> None:
    """Entry point of the collector process."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        asyncio.run(_serve(conn))
    finally:
        conn.close()


class RemoteCollector:
    """
    Parent-side handle for a CountersCollector running in a child process.

    The child process is spawned lazily by the first start(). The leading
    parameters match CountersCollector, so either class can serve as a
    StressOrchestrator collector factory.
    """

    def __init__(
        self,
        name: str,
        pid: Optional[int] = None,
        include_parent: bool = True,
        options: Optional[CountersOptions] = None,
        skip_current: bool = True,
        join_timeout: float = 10.0,
    ):
        self.name = name
        self.pid = get_root_pid(pid)
        self.join_timeout = join_timeout
        self._construct = CollectorMessage.construct(
            name, self.pid, include_parent, skip_current, options
        )
        ctx = multiprocessing.get_context("spawn")
        self._conn, child_conn = ctx.Pipe()
        self._child_conn = child_conn
        self._process = ctx.Process(
            target=collector_process_main, args=(child_conn,), name=f"collector-{name}", daemon=True
        )
        self._constructed = False
        self._closed = False

    async def _request(self, message: CollectorMessage, expected: CollectorResponse) -> None:
        loop = asyncio.get_running_loop()
        logger.debug(f"Sending {message.kind.value} to collector process '{self.name}'")
        await loop.run_in_executor(None, self._conn.send, message)
        reply: CollectorReply = await loop.run_in_executor(None, self._conn.recv)
        logger.debug(f"Collector process '{self.name}' replied {reply.response.value}")
        if reply.response is CollectorResponse.ERROR:
            raise RemoteCollectorError(reply.detail or "collector process failed")
        if reply.response is not expected:
            raise RemoteCollectorError(
                f"Expected {expected.value} from collector process, got {reply.response.value}"
            )

    async def start(self) -> None:
        if self._closed:
            raise RemoteCollectorError(f"Collector process '{self.name}' was already stopped")
        try:
            if self._process.pid is None:
                self._process.start()
                # The child owns its end of the pipe now.
                self._child_conn.close()
            if not self._constructed:
                await self._request(self._construct, CollectorResponse.CONSTRUCTION_DONE)
                self._constructed = True
            await self._request(CollectorMessage.start(), CollectorResponse.START_DONE)
        except BaseException:
            self.close()
            raise

    async def stop(self) -> None:
        if self._closed or self._process.pid is None or not self._constructed:
            self.close()
            return
        try:
            await self._request(CollectorMessage.stop(), CollectorResponse.STOP_DONE)
        finally:
            self.close()

    def close(self) -> None:
        self._closed = True
        self._conn.close()
        if self._process.pid is None:
            self._child_conn.close()
            return
        self._process.join(self.join_timeout)
        if self._process.is_alive():
            logger.warning(f"Collector process '{self.name}' did not exit; terminating")
            self._process.terminate()
            self._process.join()
