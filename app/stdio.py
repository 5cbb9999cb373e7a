"""
Pipe transport: newline-delimited JSON-RPC over stdin/stdout.

One implicit session for the life of the process, no authentication.
stdout carries protocol messages only; logs go to stderr.
"""
import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

from app.protocol import RequestRouter, error_response

log = logging.getLogger(__name__)

PARSE_ERROR = -32700


class StdioTransport:
    def __init__(self, router: RequestRouter, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.router = router
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    async def serve(self) -> None:
        """
        Read requests until stdin is closed, answering each on stdout.

        Each request runs in its own task, so a slow tool call does not hold
        up later requests. Responses are written in completion order.
        """
        log.info("stdio_transport_start", extra={"tools": [t.name for t in self.router.registry.list_tools()]})
        pending = set()
        while True:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            task = asyncio.create_task(self._answer(line))
            pending.add(task)
            task.add_done_callback(pending.discard)
        if pending:
            await asyncio.gather(*pending)
        log.info("stdio_transport_stop")

    async def _answer(self, line: str) -> None:
        response = await self.handle_line(line)
        if response is not None:
            self._write(response)

    async def handle_line(self, line: str) -> Optional[dict]:
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            return error_response(None, PARSE_ERROR, f"Parse error: {e}")
        return await self.router.handle_message(message)

    def _write(self, response: dict) -> None:
        # Runs on the loop thread only, one whole line per call.
        self._stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
        self._stdout.flush()


async def serve_stdio(router: RequestRouter) -> None:
    await StdioTransport(router).serve()
