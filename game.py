"""
Game facade for "Clear the Sector!"
Wires the engine components around one GameState and exposes the calls a
presentation layer makes: moves, views, recharges, surges and annotations.
"""

from typing import Any, Callable, Dict, List, Optional

from fog_of_war import FogOfWarController
from movement import Animator, MovementController
from progression import ProgressionEconomy, WinLossEvaluator
from resolution import CombatResolver
from state import GameState, initialize_game, load_config, log_event


class Game:
    """One game session."""

    def __init__(self, game_state: GameState, config: Optional[Dict[str, Any]] = None,
                 animator: Optional[Animator] = None):
        self.config = config if config is not None else load_config()
        self.state = game_state
        self.fog = FogOfWarController(game_state)
        self.outcome = WinLossEvaluator(game_state)
        self.economy = ProgressionEconomy(game_state, self.config)
        self.combat = CombatResolver(game_state, self.fog, self.outcome)
        self.movement = MovementController(game_state, self.fog, self.combat, animator)

    @classmethod
    def new(cls, seed: int, config: Optional[Dict[str, Any]] = None,
            animator: Optional[Animator] = None, **kwargs) -> 'Game':
        """Start a fresh game. Extra keyword arguments go to initialize_game."""
        config = config if config is not None else load_config()
        return cls(initialize_game(seed, config=config, **kwargs), config, animator)

    @property
    def game_id(self) -> str:
        return self.state.game_id

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        """Receive every event entry as it is logged."""
        self.state.listeners.append(listener)

    def request_move(self, index: int) -> bool:
        return self.movement.request_move(index)

    def recharge(self) -> bool:
        return self.economy.recharge()

    def use_shield_surge(self) -> bool:
        return self.economy.use_shield_surge()

    def annotate(self, index: int, marker: str) -> bool:
        """Attach a cosmetic marker to a covered cell."""
        cell = self.state.get_cell(index)
        if cell is None or cell.revealed or self.state.is_game_over:
            return False
        self.state.annotations[index] = str(marker)
        log_event(self.state, f"Cell {index} marked {marker}", type='annotation',
                  cell_index=index, marker=str(marker))
        return True

    def clear_annotation(self, index: int) -> bool:
        if self.state.annotations.pop(index, None) is None:
            return False
        log_event(self.state, f"Cell {index} mark cleared", type='annotation',
                  cell_index=index, marker=None)
        return True

    def get_cell_view(self, index: int) -> Optional[Dict[str, Any]]:
        return self.fog.cell_view(index)

    def get_board_view(self) -> List[Dict[str, Any]]:
        return [self.fog.cell_view(cell.index) for cell in self.state.board]

    def shield_level(self) -> str:
        """Display band of the current shields: 'normal', 'warning' or 'critical'."""
        gs = self.state
        ratio = gs.shields / gs.max_shields if gs.max_shields else 0.0
        if ratio <= self.config['critical_ratio']:
            return 'critical'
        if ratio <= self.config['warning_ratio']:
            return 'warning'
        return 'normal'

    def get_status_view(self) -> Dict[str, Any]:
        gs = self.state
        total = gs.total_occupied_cells
        cleared_percent = round(100.0 * len(gs.cleared_cells) / total, 1) if total else 0.0
        return {
            'game_id': gs.game_id,
            'shields': gs.shields,
            'max_shields': gs.max_shields,
            'shield_level': self.shield_level(),
            'parts': gs.parts,
            'parts_needed_for_next_recharge': self.economy.parts_needed(),
            'recharge_count': gs.recharge_count,
            'shield_surge_inventory': gs.shield_surge_inventory,
            'cleared': len(gs.cleared_cells),
            'total_hostiles': total,
            'cleared_percent': cleared_percent,
            'player_cell_index': gs.player_cell_index,
            'queued_moves': list(gs.movement_queue),
            'move_in_flight': gs.move_in_flight,
            'is_alive': gs.is_alive,
            'has_won': gs.has_won,
        }

    def game_over_summary(self) -> Dict[str, Any]:
        return self.outcome.summary()
