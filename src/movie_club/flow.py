"""Single admin selection flow shared by every entry point."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

import structlog

from .forwarding import ForwardingError, ForwardResult, SelectionForwarder, SelectionPayload
from .models import Selection, SelectionState
from .store import SelectionStore

LOGGER = structlog.get_logger(__name__)


@dataclass
class FlowResult:
    """Stored state after a step, plus the forwarding outcome when one happened."""

    state: SelectionState
    forwarded: bool = False
    forward: Optional[ForwardResult] = None
    error: Optional[str] = None


def payload_for(selection: Selection) -> SelectionPayload:
    """Wire payload for a complete selection; identical whichever half was set last."""
    return SelectionPayload(
        movie_id=selection.movie_id,
        movie_title=selection.movie_title,
        show_date=selection.proposed_date.isoformat(),
    )


class SelectionFlow:
    """Save each half of the selection and forward once both halves exist."""

    def __init__(self, store: SelectionStore, forwarder: SelectionForwarder):
        self._store = store
        self._forwarder = forwarder

    async def select_movie(self, movie_id: int, title: str) -> FlowResult:
        self._store.save(movie_id, title)
        return await self._forward_if_complete()

    async def set_date(self, proposed: Union[date, str]) -> FlowResult:
        self._store.save_date(proposed)
        return await self._forward_if_complete()

    async def _forward_if_complete(self) -> FlowResult:
        state = self._store.state()
        selection = state.complete()
        if selection is None:
            return FlowResult(state=state)

        try:
            outcome = await self._forwarder.submit(payload_for(selection))
        except ForwardingError as exc:
            LOGGER.warning("flow.forward.failed", status_code=exc.status_code, error=exc.message)
            return FlowResult(state=state, forwarded=False, error=exc.message)

        if not outcome.ok:
            return FlowResult(
                state=state,
                forwarded=False,
                forward=outcome,
                error=f"Upstream rejected the selection with {outcome.status_code}",
            )
        return FlowResult(state=state, forwarded=True, forward=outcome)
