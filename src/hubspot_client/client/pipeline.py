"""
Request pipeline: ordered stages composed over the transport.

The stage order (auth -> rate_limit -> retry -> transport) is data, not
an accident of closure nesting, so it can be inspected and tested via
``RequestPipeline.stage_names``.

The pipeline holds no per-call state. The only shared mutable resource
is the RateLimiter owned by the rate-limit stage.
"""

from typing import Sequence

from hubspot_client.client.middleware import Handler, Outcome, Stage
from hubspot_client.exceptions import RequestCancelledError
from hubspot_client.models.request import Request


class RequestPipeline:
    """
    Composes stages around a terminal handler.

    Per-attempt layers are applied first (innermost, around the
    transport), then per-call layers; both follow the stage order.

    Attributes:
        stages: Stages, outermost first
        terminal: Innermost handler (the transport)
    """

    def __init__(self, stages: Sequence[Stage], terminal: Handler, terminal_name: str = "transport"):
        names = [stage.name for stage in stages]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate stage names: {names}")
        self.stages = list(stages)
        self.terminal = terminal
        self.terminal_name = terminal_name

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages] + [self.terminal_name]

    def build(self) -> Handler:
        """Compose a fresh handler chain."""
        handler = self.terminal
        for stage in reversed(self.stages):
            handler = stage.wrap_attempt(handler)
        for stage in reversed(self.stages):
            handler = stage.wrap(handler)
        return handler

    async def execute(self, request: Request) -> Outcome:
        """
        Run one call through the pipeline.

        A context that is already cancelled or expired fails the call
        before any stage runs. The request is frozen once the first
        attempt starts.
        """
        try:
            request.context.check()
        except RequestCancelledError as exc:
            return None, exc

        request.freeze()
        return await self.build()(request)
