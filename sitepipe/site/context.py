"""Cancellation-aware execution context passed to every build callback."""

import threading
from typing import TYPE_CHECKING

from sitepipe.site.errors import AssetNotFoundError, BuildCancelledError


if TYPE_CHECKING:
    from sitepipe.site.assets import AssetTable


class BuildContext:
    """Execution context threaded through configuration, commands and renders.

    Cancellation is cooperative: ``cancel()`` may be called from any thread.
    The command runner terminates its active subprocess when it notices,
    and the build fails before entering its next phase. Configuration
    steps and renderers may poll ``cancelled`` themselves.

    During the render phase the site hands renderers a context bound to the
    frozen asset table, so ``ctx.asset(name)`` resolves fingerprinted URLs.
    """

    __slots__ = ("_assets", "_cancel_event")

    def __init__(
        self,
        cancel_event: threading.Event | None = None,
        assets: "AssetTable | None" = None,
    ) -> None:
        """Initialize the context.

        Args:
            cancel_event: Event shared with derived contexts. A fresh one is
                created when omitted.
            assets: Asset table to resolve names against.
        """
        self._cancel_event = cancel_event or threading.Event()
        self._assets = assets

    @property
    def cancelled(self) -> bool:
        """Check whether the context was cancelled."""
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation of the build."""
        self._cancel_event.set()

    def raise_if_cancelled(self) -> None:
        """Raise if the context was cancelled.

        Raises:
            BuildCancelledError: If ``cancel()`` was called.
        """
        if self.cancelled:
            raise BuildCancelledError

    def wait_cancelled(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds for cancellation.

        Returns:
            True if the context is cancelled.
        """
        return self._cancel_event.wait(timeout)

    def with_assets(self, assets: "AssetTable") -> "BuildContext":
        """Derive a context that shares cancellation and resolves assets."""
        return BuildContext(cancel_event=self._cancel_event, assets=assets)

    @property
    def assets(self) -> "AssetTable | None":
        """Get the bound asset table, if any."""
        return self._assets

    def asset(self, name: str) -> str:
        """Resolve a logical asset name to its fingerprinted URL path.

        Args:
            name: Path of the file relative to the assets directory.

        Returns:
            URL path such as ``/assets/image.6105d6c.png``.

        Raises:
            AssetNotFoundError: If no asset table is bound or the name
                was never fingerprinted.
        """
        if self._assets is None:
            raise AssetNotFoundError(name)
        return self._assets.url(name)
