import json

import pytest

from hex_grid import board_from_positions, build_hex_board
from map_gen import ConfigurationError
from catalog import build_catalog
from state import DEFAULT_CONFIG, GameState, initialize_game, load_config, log_event

from conftest import TEST_CATALOG


def test_initialize_game_basic():
    """Test that initialize_game sets up the game state correctly."""
    game_state = initialize_game(seed=42)

    assert isinstance(game_state, GameState), "GameState object not created"
    assert len(game_state.board) == 61, "Radius-4 board should have 61 hexes"
    assert game_state.shields == 5, "Shields should start at 5"
    assert game_state.max_shields == 5, "Max shields should start at 5"
    assert game_state.parts == 0, "Parts should start at 0"
    assert game_state.is_alive
    assert game_state.cleared_cells == set()
    assert game_state.seed == 42


def test_initialize_game_spawn():
    """The player starts on a revealed, empty cell with its neighbors revealed."""
    game_state = initialize_game(seed=42)
    spawn = game_state.player_cell_index
    cell = game_state.board[spawn]

    assert cell.revealed and cell.entity is None
    for neighbor in game_state.grid.neighbor_indices(spawn):
        assert game_state.board[neighbor].revealed
    revealed = sum(1 for c in game_state.board if c.revealed)
    assert revealed == 1 + len(game_state.grid.neighbor_indices(spawn))


def test_initialize_game_counts_hostiles():
    game_state = initialize_game(seed=7)
    hostiles = [c for c in game_state.board if c.entity is not None and not c.entity.shield_surge]
    assert len(hostiles) == game_state.total_occupied_cells
    assert sum(1 for c in hostiles if c.entity.id == "E11") == 1


def test_initialize_game_is_reproducible():
    a = initialize_game(seed=3)
    b = initialize_game(seed=3)
    assert [c.entity for c in a.board] == [c.entity for c in b.board]
    assert a.player_cell_index == b.player_cell_index
    assert a.game_id != b.game_id


def test_initialize_game_logs_start():
    game_state = initialize_game(seed=42)
    assert game_state.log[-1]['type'] == 'game_started'
    assert game_state.log[-1]['spawn_index'] == game_state.player_cell_index


def test_initialize_game_custom_config():
    config = dict(DEFAULT_CONFIG, board_radius=3, starting_shields=8)
    game_state = initialize_game(seed=1, config=config, catalog=TEST_CATALOG)
    assert len(game_state.board) == 37
    assert game_state.shields == 8 and game_state.max_shields == 8


def test_initialize_game_reports_geometry_fallback():
    cells = build_hex_board(3)
    positions = [c.center for c in cells]
    labels = [f"{c.coordinate.q},{c.coordinate.r},{c.coordinate.s}" for c in cells]
    labels[18] = "garbage"

    game_state = initialize_game(seed=1, catalog=TEST_CATALOG,
                                 cells=board_from_positions(positions, labels))

    fallback = [e for e in game_state.log if e['type'] == 'geometry_fallback']
    assert [e['cell_index'] for e in fallback] == [18]
    assert game_state.grid.in_fallback(18)


def test_initialize_game_missing_boss():
    catalog = build_catalog([{"id": "G", "sprite_name": "g"}], roles={"guard": "G"})
    with pytest.raises(ConfigurationError):
        initialize_game(seed=1, catalog=catalog)


def test_load_config_defaults_when_missing(tmp_path):
    config = load_config(str(tmp_path / "nope.json"))
    assert config == DEFAULT_CONFIG


def test_load_config_merges(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"starting_shields": 9}))
    config = load_config(str(path))
    assert config['starting_shields'] == 9
    assert config['recharge_costs'] == DEFAULT_CONFIG['recharge_costs']


def test_load_config_does_not_share_defaults(tmp_path):
    config = load_config(str(tmp_path / "nope.json"))
    config['recharge_costs'].append(99)
    assert 99 not in DEFAULT_CONFIG['recharge_costs']


def test_shipped_config_loads():
    config = load_config()
    assert len(config['recharge_costs']) == len(config['recharge_results'])
    assert config['recharge_costs'] == sorted(config['recharge_costs'])
    assert config['recharge_results'] == sorted(config['recharge_results'])


def test_modify_shields_clamped():
    gs = GameState(game_id="t", shields=3, max_shields=5)
    gs.modify_shields(10)
    assert gs.shields == 5
    gs.modify_shields(-20)
    assert gs.shields == 0


def test_modify_parts_clamped():
    gs = GameState(game_id="t", parts=2)
    gs.modify_parts(-5)
    assert gs.parts == 0
    gs.modify_parts(4)
    assert gs.parts == 4


def test_upgrade_max_shields_never_lowers():
    gs = GameState(game_id="t", max_shields=5)
    gs.upgrade_max_shields(2)
    assert gs.max_shields == 7
    gs.upgrade_max_shields(-3)
    assert gs.max_shields == 7


def test_log_event_reaches_listeners():
    gs = GameState(game_id="t")
    seen = []
    gs.listeners.append(seen.append)

    entry = log_event(gs, "hello", type='note', extra=1)

    assert seen == [entry]
    assert entry == {'move': 0, 'event': 'hello', 'type': 'note', 'extra': 1}
    assert gs.log == [entry]



def test_log_event_survives_failing_listener(caplog):
    gs = GameState(game_id="t")
    seen = []

    def explode(entry):
        raise ValueError("bad subscriber")

    gs.listeners.extend([explode, seen.append])

    entry = log_event(gs, "hello", type='note')

    assert gs.log == [entry]
    assert seen == [entry]  # Later listeners still run
    assert "Listener" in caplog.text and "note" in caplog.text


def test_drain_queue():
    gs = GameState(game_id="t", movement_queue=[1, 2], move_in_flight=True)
    assert gs.drain_queue() == [1, 2]
    assert gs.movement_queue == []
    assert gs.move_in_flight is False
