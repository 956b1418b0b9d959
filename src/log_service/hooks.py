"""
Process-wide hooks for failures nobody caught.

Covers uncaught exceptions on the main thread (``sys.excepthook``), in other
threads (``threading.excepthook``) and inside an asyncio event loop (loop
exception handler: never-retrieved task exceptions, failing callbacks).
Every hook reports the failure and then chains to whatever was installed
before, so the interpreter's default output is preserved.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
import weakref
from typing import Any, Callable, Optional

_diagnostics = logging.getLogger(__name__)

Reporter = Callable[..., None]


class UnhandledErrorHooks:
    """Installs the hooks at most once; event loop handlers once per loop."""

    def __init__(self, report: Reporter):
        self._report = report
        self._installed = False
        self._loops: "weakref.WeakSet[asyncio.AbstractEventLoop]" = weakref.WeakSet()

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if not self._installed:
            self._install_excepthook()
            self._install_thread_excepthook()
            self._installed = True

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                _diagnostics.debug("No running event loop; asyncio exception handler not installed")
                return
        if loop not in self._loops:
            self._install_loop_handler(loop)
            self._loops.add(loop)

    def _install_excepthook(self) -> None:
        previous = sys.excepthook

        def excepthook(exc_type, exc_value, exc_traceback) -> None:
            if not issubclass(exc_type, KeyboardInterrupt):
                self._report("Uncaught Exception thrown", (exc_type, exc_value, exc_traceback))
            previous(exc_type, exc_value, exc_traceback)

        sys.excepthook = excepthook

    def _install_thread_excepthook(self) -> None:
        previous = threading.excepthook

        def thread_excepthook(args: Any) -> None:
            # The default hook ignores SystemExit in threads; so do we.
            if args.exc_type is not SystemExit:
                fields = {"thread": args.thread.name} if args.thread is not None else {}
                self._report(
                    "Uncaught Exception thrown in thread",
                    (args.exc_type, args.exc_value, args.exc_traceback),
                    **fields,
                )
            previous(args)

        threading.excepthook = thread_excepthook

    def _install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        previous = loop.get_exception_handler()

        def exception_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
            message = context.get("message", "Unhandled exception in event loop")
            self._report(f"Unhandled Rejection: {message}", context.get("exception"))
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)

        loop.set_exception_handler(exception_handler)
