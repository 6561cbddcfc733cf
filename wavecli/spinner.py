"""wavecli spinner - progress indicator shown while a request is in flight."""

import contextlib
import itertools
import sys
import threading

import click

FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]
INTERVAL = 0.1


class Spinner:
    """Ticks on stderr from a daemon thread until stop() is called."""

    def __init__(self, message: str, stream=None, interval: float = INTERVAL):
        self.message = message
        self.stream = stream if stream is not None else sys.stderr
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._width = 0

    def start(self) -> None:
        frames = itertools.cycle(FRAMES)
        self._draw(next(frames))
        self._thread = threading.Thread(target=self._run, args=(frames,), daemon=True)
        self._thread.start()

    def _draw(self, frame: str) -> None:
        line = f"{frame} {self.message}"
        self._width = max(self._width, len(line))
        click.echo(f"\r{line}", file=self.stream, nl=False)

    def _run(self, frames) -> None:
        while not self._stop.wait(self.interval):
            self._draw(next(frames))

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._width:
            click.echo("\r" + " " * self._width + "\r", file=self.stream, nl=False)

    @property
    def running(self) -> bool:
        return self._thread is not None


@contextlib.contextmanager
def spinner(message: str, enabled: bool | None = None, stream=None):
    """Show a spinner for the duration of the block; always cleared on exit.

    Disabled by default when stderr is not a terminal.
    """
    stream = stream if stream is not None else sys.stderr
    if enabled is None:
        enabled = stream.isatty()
    if not enabled:
        yield None
        return
    spin = Spinner(message, stream=stream)
    spin.start()
    try:
        yield spin
    finally:
        spin.stop()
