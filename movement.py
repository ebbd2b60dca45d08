"""
Movement queue for "Clear the Sector!"

Player move requests are queued and resolved strictly one at a time, in
request order. Between the reveal of a destination and its combat, the
controller waits for the presentation layer to finish animating the move.
"""

import logging
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional

from fog_of_war import FogOfWarController
from resolution import CombatResolver
from state import GameState, log_event

logger = logging.getLogger(__name__)

# (from_index, to_index) -> completion signal, or None to continue at once
Animator = Callable[[Optional[int], int], Optional[Future]]


class MovementController:
    """FIFO move queue with at most one resolution in flight."""

    def __init__(self, game_state: GameState, fog: FogOfWarController,
                 combat: CombatResolver, animator: Optional[Animator] = None):
        self.game_state = game_state
        self.fog = fog
        self.combat = combat
        self.animator = animator
        self.results: List[Dict[str, Any]] = []

    def request_move(self, index: int) -> bool:
        """
        Queue a move to a cell.

        Requests after game over, to an unknown cell, to the player's own
        cell or repeating the queue's last destination are ignored.

        Returns:
            True if the request was queued
        """
        gs = self.game_state
        if gs.is_game_over:
            logger.debug("Ignoring move to %s: game over", index)
            return False
        if gs.get_cell(index) is None:
            logger.debug("Ignoring move to %s: no such cell", index)
            return False
        if index == gs.player_cell_index:
            logger.debug("Ignoring move to %s: already there", index)
            return False
        if gs.movement_queue and gs.movement_queue[-1] == index:
            logger.debug("Ignoring move to %s: duplicate destination", index)
            return False

        gs.movement_queue.append(index)
        if not gs.move_in_flight:
            self.process_next()
        return True

    def process_next(self) -> None:
        """Start resolving the next queued destination, if any."""
        gs = self.game_state
        while True:
            if not gs.movement_queue:
                gs.move_in_flight = False
                return
            if gs.is_game_over:
                drained = gs.drain_queue()
                log_event(gs, f"Discarded {len(drained)} queued moves", type='queue_drained',
                          discarded=drained)
                return

            index = gs.movement_queue.pop(0)
            if index != gs.player_cell_index:
                break
            log_event(gs, f"Skipped move to current cell {index}", type='move_skipped',
                      cell_index=index)

        gs.move_in_flight = True
        self._begin(index)

    def _begin(self, index: int) -> None:
        gs = self.game_state
        origin = gs.player_cell_index
        log_event(gs, f"Moving from {origin} to {index}", type='move_started',
                  from_index=origin, cell_index=index)

        signal = None
        try:
            self.fog.reveal(index)
            if self.animator is not None:
                signal = self.animator(origin, index)
        except Exception as e:
            self._record_error(index, e)

        if signal is None:
            self._complete(index)
        else:
            # Any outcome of the animation, including cancellation, leads to combat
            signal.add_done_callback(lambda _: self._complete(index))

    def _complete(self, index: int) -> None:
        gs = self.game_state
        try:
            result = self.combat.resolve(index)
            self.results.append(result)
        except Exception as e:
            self._record_error(index, e)
        gs.moves_resolved += 1
        self.process_next()

    def _record_error(self, index: int, error: Exception) -> None:
        logger.exception("Error resolving move to %s", index)
        log_event(self.game_state, f"Unexpected error resolving move to {index}: {error}",
                  type='error', error_type='processing_error', cell_index=index)
