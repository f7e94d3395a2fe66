"""Self-extending configuration queue."""

from collections import deque
from typing import TYPE_CHECKING

import structlog

from sitepipe.site.context import BuildContext
from sitepipe.site.errors import ConfigurationError
from sitepipe.site.models import ConfigureStep


if TYPE_CHECKING:
    from sitepipe.site.site import Site


logger = structlog.get_logger()


def step_name(step: ConfigureStep) -> str:
    """Get a readable name for a configuration step."""
    return getattr(step, "__qualname__", None) or type(step).__qualname__


class ConfigurationQueue:
    """FIFO queue of configuration steps, drained to a fixed point.

    Steps may push more steps while they run. New steps go to the tail, so
    every step of one generation runs before any step it scheduled.
    """

    def __init__(self) -> None:
        self._pending: deque[ConfigureStep] = deque()
        self._completed = 0

    def push(self, step: ConfigureStep) -> None:
        """Append a step to the tail of the queue."""
        self._pending.append(step)

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def completed(self) -> int:
        """Get the number of steps that ran successfully."""
        return self._completed

    def drain(self, ctx: BuildContext, site: "Site") -> int:
        """Run steps until the queue is empty.

        Args:
            ctx: Build context passed to every step.
            site: Site passed to every step.

        Returns:
            Number of steps that ran.

        Raises:
            ConfigurationError: If a step raises or the context is cancelled.
                The remaining steps are discarded.
        """
        log = logger.bind(component="configure")
        ran = 0
        while self._pending:
            step = self._pending.popleft()
            name = step_name(step)
            try:
                ctx.raise_if_cancelled()
                step(ctx, site)
            except Exception as e:
                self._pending.clear()
                log.error(
                    "configure_step_failed",
                    step=name,
                    error=f"{type(e).__name__}: {e}",
                )
                raise ConfigurationError(name, e) from e
            ran += 1
            self._completed += 1
            log.debug("configure_step_complete", step=name, pending=len(self._pending))
        return ran
