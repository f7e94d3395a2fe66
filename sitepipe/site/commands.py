"""Sequential shell command execution."""

import os
import subprocess
import time

import structlog

from sitepipe.site.constants import (
    COMMAND_POLL_INTERVAL_S,
    COMMAND_TERMINATE_GRACE_S,
    FALLBACK_SHELL,
)
from sitepipe.site.context import BuildContext
from sitepipe.site.errors import CommandError


logger = structlog.get_logger()


def resolve_shell(shell: str | None = None) -> str:
    """Pick the shell used to interpret build commands.

    Args:
        shell: Explicit override.

    Returns:
        The override, else ``$SHELL``, else ``sh``.
    """
    return shell or os.environ.get("SHELL") or FALLBACK_SHELL


class CommandRunner:
    """Runs build commands one at a time through the shell.

    Commands inherit this process's stdout and stderr. The first command that
    cannot be spawned, exits non-zero, times out or is cancelled stops the
    run.
    """

    def __init__(
        self,
        shell: str | None = None,
        timeout: float | None = None,
        build_id: str | None = None,
    ) -> None:
        """Initialize the command runner.

        Args:
            shell: Shell executable; see ``resolve_shell``.
            timeout: Optional per-command timeout in seconds.
            build_id: Optional build ID for logging context.
        """
        self._shell = resolve_shell(shell)
        self._timeout = timeout
        self._log = logger.bind(component="commands", shell=self._shell)
        if build_id:
            self._log = self._log.bind(build_id=build_id)

    @property
    def shell(self) -> str:
        """Get the shell executable."""
        return self._shell

    def run_all(self, commands: list[str] | tuple[str, ...], ctx: BuildContext) -> int:
        """Run commands in order.

        Args:
            commands: Shell command strings.
            ctx: Build context; cancellation terminates the active command.

        Returns:
            Number of commands that ran successfully.

        Raises:
            CommandError: On the first failing command.
        """
        for command in commands:
            self.run(command, ctx)
        return len(commands)

    def run(self, command: str, ctx: BuildContext) -> None:
        """Run a single command and wait for it to exit.

        Raises:
            CommandError: If the command cannot be spawned, exits non-zero,
                times out or the context is cancelled.
        """
        if ctx.cancelled:
            raise CommandError(command, reason="cancelled")

        self._log.info("command_started", command=command)
        start_time = time.perf_counter()
        try:
            process = subprocess.Popen([self._shell, "-c", command])  # noqa: S603
        except (OSError, ValueError) as e:
            raise CommandError(command, reason=str(e)) from e

        returncode = self._wait(process, command, ctx)
        duration_ms = (time.perf_counter() - start_time) * 1000

        if returncode != 0:
            self._log.error(
                "command_failed",
                command=command,
                returncode=returncode,
                duration_ms=round(duration_ms, 2),
            )
            raise CommandError(command, returncode=returncode)

        self._log.info(
            "command_complete", command=command, duration_ms=round(duration_ms, 2)
        )

    def _wait(
        self, process: subprocess.Popen[bytes], command: str, ctx: BuildContext
    ) -> int:
        deadline = None
        if self._timeout is not None:
            deadline = time.monotonic() + self._timeout

        while True:
            try:
                return process.wait(timeout=COMMAND_POLL_INTERVAL_S)
            except subprocess.TimeoutExpired:
                pass

            if ctx.cancelled:
                self._log.warning("command_cancelled", command=command)
                self._terminate(process)
                raise CommandError(command, reason="cancelled")

            if deadline is not None and time.monotonic() >= deadline:
                self._log.warning(
                    "command_timed_out", command=command, timeout_s=self._timeout
                )
                self._terminate(process)
                raise CommandError(command, reason=f"timed out after {self._timeout}s")

    def _terminate(self, process: subprocess.Popen[bytes]) -> None:
        process.terminate()
        try:
            process.wait(timeout=COMMAND_TERMINATE_GRACE_S)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
