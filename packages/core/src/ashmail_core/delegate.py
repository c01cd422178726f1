"""Running external programs on behalf of the helper.

Two programs are ever started: the review tool (``ash <review-url> review``)
with a doctored environment, and the user's fallback command when the
notification holds no comment link. Both inherit stdin so they stay
interactive; the review tool's output can additionally be copied into a
cache sink as it is produced.
"""

from __future__ import annotations

import enum
import logging
import os
import selectors
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import BinaryIO, Protocol

logger = logging.getLogger(__name__)

# ash exits with 2 when the reviewer quits without posting anything.
BENIGN_REVIEW_EXIT_CODE = 2

FALLBACK_SHELL = "/bin/sh"
DEFAULT_REVIEW_COMMAND = "ash"

_CHUNK_SIZE = 64 * 1024


class OutcomeKind(enum.Enum):
    START_FAILED = "start_failed"
    EXITED = "exited"
    SIGNALED = "signaled"


@dataclass(frozen=True)
class ProcessOutcome:
    """How a delegated process ended.

    ``code`` is the exit status for EXITED, the signal number for SIGNALED
    and None for START_FAILED, where ``error`` carries the reason instead.
    """

    kind: OutcomeKind
    code: int | None = None
    error: str | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ProcessOutcome:
        if returncode < 0:
            return cls(OutcomeKind.SIGNALED, code=-returncode)
        return cls(OutcomeKind.EXITED, code=returncode)

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.EXITED and self.code == 0

    def describe(self) -> str:
        if self.kind is OutcomeKind.START_FAILED:
            return f"failed to start: {self.error}"
        if self.kind is OutcomeKind.SIGNALED:
            return f"killed by signal {self.code}"
        return f"exit status {self.code}"


class Sink(Protocol):
    def write(self, data: bytes) -> object: ...

    def flush(self) -> None: ...


def build_environment(base: Mapping[str, str], overrides: Mapping[str, str]) -> dict[str, str]:
    """Copy ``base`` and apply ``overrides`` on top of it."""
    env = dict(base)
    env.update(overrides)
    return env


def review_environment(editor_path: str, base: Mapping[str, str] | None = None) -> dict[str, str]:
    base = os.environ if base is None else base
    return build_environment(
        base,
        {
            "EDITOR": editor_path,
            "HOME": base.get("HOME") or os.path.expanduser("~"),
        },
    )


def run_fallback(cmdline: str) -> ProcessOutcome:
    """Run ``cmdline`` through the shell with the helper's own stdio."""
    logger.debug("Running fallback command: %s", cmdline)
    try:
        result = subprocess.run([FALLBACK_SHELL, "-c", cmdline])
    except OSError as e:
        return ProcessOutcome(OutcomeKind.START_FAILED, error=str(e))
    return ProcessOutcome.from_returncode(result.returncode)


def run_review_tool(
    review_url: str,
    editor_path: str,
    cache: Sink | None = None,
    command: str = DEFAULT_REVIEW_COMMAND,
    env: Mapping[str, str] | None = None,
    stdout: Sink | None = None,
    stderr: Sink | None = None,
) -> ProcessOutcome:
    """Open ``review_url`` in the review tool with ``EDITOR=editor_path``.

    Without a cache sink the tool talks to the terminal directly. With one,
    stdout and stderr go through pipes and every chunk is written both to
    ``cache`` and to the matching stream of this process (``stdout`` and
    ``stderr``, by default the binary buffers of ``sys.stdout``/``sys.stderr``).
    """
    argv = [command, review_url, "review"]
    environment = review_environment(editor_path, env)
    piped = subprocess.PIPE if cache is not None else None

    logger.debug("Running %s with EDITOR=%s", " ".join(argv), editor_path)
    try:
        proc = subprocess.Popen(argv, env=environment, stdout=piped, stderr=piped)
    except OSError as e:
        return ProcessOutcome(OutcomeKind.START_FAILED, error=str(e))

    if cache is not None:
        stdout = sys.stdout.buffer if stdout is None else stdout
        stderr = sys.stderr.buffer if stderr is None else stderr
        with proc:
            _tee(proc, {"stdout": [cache, stdout], "stderr": [cache, stderr]})
    else:
        proc.wait()
    return ProcessOutcome.from_returncode(proc.returncode)


def _tee(proc: subprocess.Popen, sinks: dict[str, list[BinaryIO | Sink]]) -> None:
    """Copy the child's stdout/stderr into their sinks until both pipes close.

    A sink that fails (the reader of our stdout quit, say) is dropped after
    one warning; the pipes keep draining into the remaining sinks so the
    child never blocks and the cache still gets the full output.
    """
    targets = {proc.stdout: sinks["stdout"], proc.stderr: sinks["stderr"]}
    dropped: list[BinaryIO | Sink] = []
    with selectors.DefaultSelector() as selector:
        for pipe in targets:
            selector.register(pipe, selectors.EVENT_READ)
        while selector.get_map():
            for key, _ in selector.select():
                chunk = os.read(key.fd, _CHUNK_SIZE)
                if not chunk:
                    selector.unregister(key.fileobj)
                    continue
                for sink in targets[key.fileobj]:
                    if any(sink is d for d in dropped):
                        continue
                    try:
                        sink.write(chunk)
                        sink.flush()
                    except OSError as e:
                        dropped.append(sink)
                        logger.warning(
                            "can't copy review output to %s, no longer writing to it: %s",
                            getattr(sink, "name", sink),
                            e,
                        )
    proc.wait()


def report_review_outcome(outcome: ProcessOutcome, command: str = DEFAULT_REVIEW_COMMAND) -> None:
    """Log a review tool failure unless it is the benign exit status."""
    if outcome.kind is OutcomeKind.START_FAILED:
        logger.error("can't run %s: %s", command, outcome.error)
    elif outcome.kind is OutcomeKind.SIGNALED:
        logger.error("%s was %s", command, outcome.describe())
    elif outcome.code not in (0, BENIGN_REVIEW_EXIT_CODE):
        logger.error("%s exited with %s", command, outcome.describe())
