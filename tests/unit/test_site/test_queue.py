"""Tests for the configuration queue."""

import pytest

from sitepipe.site.context import BuildContext
from sitepipe.site.errors import ConfigurationError
from sitepipe.site.queue import ConfigurationQueue, step_name
from sitepipe.site.site import Site


class TestConfigurationQueue:
    """Tests for ConfigurationQueue."""

    def test_drains_in_fifo_order(self) -> None:
        """Steps run in the order they were pushed."""
        calls: list[str] = []
        queue = ConfigurationQueue()
        queue.push(lambda ctx, site: calls.append("a"))
        queue.push(lambda ctx, site: calls.append("b"))

        ran = queue.drain(BuildContext(), Site())

        assert calls == ["a", "b"]
        assert ran == 2
        assert queue.completed == 2
        assert len(queue) == 0

    def test_generations_run_breadth_first(self) -> None:
        """Steps scheduled during a step run after the current generation."""
        calls: list[str] = []

        def grandchild(ctx: BuildContext, site: Site) -> None:
            calls.append("grandchild")

        def child_one(ctx: BuildContext, site: Site) -> None:
            calls.append("child_one")
            site.configure(grandchild)

        def child_two(ctx: BuildContext, site: Site) -> None:
            calls.append("child_two")

        def root_one(ctx: BuildContext, site: Site) -> None:
            calls.append("root_one")
            site.configure(child_one)

        def root_two(ctx: BuildContext, site: Site) -> None:
            calls.append("root_two")
            site.configure(child_two)

        Site.new(root_one, root_two)

        assert calls == [
            "root_one",
            "root_two",
            "child_one",
            "child_two",
            "grandchild",
        ]

    def test_failure_abandons_queue(self) -> None:
        """A failing step raises and the remaining steps never run."""
        calls: list[str] = []

        def broken(ctx: BuildContext, site: Site) -> None:
            raise RuntimeError("boom")

        queue = ConfigurationQueue()
        queue.push(lambda ctx, site: calls.append("first"))
        queue.push(broken)
        queue.push(lambda ctx, site: calls.append("never"))

        with pytest.raises(ConfigurationError) as exc_info:
            queue.drain(BuildContext(), Site())

        assert calls == ["first"]
        assert len(queue) == 0
        assert exc_info.value.step.endswith("broken")
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "boom" in str(exc_info.value)

    def test_cancelled_context_stops_drain(self) -> None:
        """A cancelled context fails the drain before the next step."""
        calls: list[str] = []
        ctx = BuildContext()

        def cancel(ctx: BuildContext, site: Site) -> None:
            calls.append("cancel")
            ctx.cancel()

        queue = ConfigurationQueue()
        queue.push(cancel)
        queue.push(lambda ctx, site: calls.append("never"))

        with pytest.raises(ConfigurationError):
            queue.drain(ctx, Site())
        assert calls == ["cancel"]

    def test_step_name_for_function(self) -> None:
        """Functions are named by their qualified name."""

        def my_step(ctx: BuildContext, site: Site) -> None:
            pass

        assert step_name(my_step).endswith("my_step")

    def test_step_name_for_callable_object(self) -> None:
        """Callable objects are named by their class."""

        class Step:
            def __call__(self, ctx: BuildContext, site: Site) -> None:
                pass

        assert step_name(Step()).endswith("Step")
