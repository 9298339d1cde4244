"""Latest-fetch-wins bookkeeping for concurrently refreshed streams.

Each fetch takes a token when it starts. A result may only be applied while
its token is still the newest one for that stream and was issued for the
same inputs the stream is currently keyed on, so a slow response to an
earlier request can never overwrite a newer one.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchToken:
    """Handle for one in-flight fetch."""

    stream: Hashable
    generation: int
    inputs: Hashable


class StreamGuard:
    """Issues per-stream generation tokens and tells callers whether theirs is still current."""

    def __init__(self) -> None:
        self._generations: dict[Hashable, int] = {}
        self._inputs: dict[Hashable, Hashable] = {}

    def begin(self, stream: Hashable, inputs: Hashable = None) -> FetchToken:
        """Start a fetch for ``stream``; every older token for it becomes stale."""
        generation = self._generations.get(stream, 0) + 1
        self._generations[stream] = generation
        self._inputs[stream] = inputs
        return FetchToken(stream=stream, generation=generation, inputs=inputs)

    def is_current(self, token: FetchToken) -> bool:
        return (
            self._generations.get(token.stream) == token.generation
            and self._inputs.get(token.stream) == token.inputs
        )

