import logging
from flask import Flask, request, jsonify
from flask_cors import CORS
from game import Game
from map_gen import ConfigurationError
from typing import Dict, Optional, Tuple

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, Game] = {}  # In-memory storage for game sessions


def _find_game(game_id: str) -> Optional[Game]:
    return games.get(game_id)


def _cell_index_from_body() -> Tuple[Optional[int], Optional[str]]:
    """Read and validate `cell_index` from the JSON body."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, 'Invalid JSON data'
    if 'cell_index' not in data:
        return None, 'cell_index is required'
    try:
        return int(data['cell_index']), None
    except (ValueError, TypeError):
        return None, 'cell_index must be an integer'


def _status_response(game: Game, **extra):
    response_data = {'status': game.get_status_view(), **extra}
    if game.state.is_game_over:
        response_data['game_over'] = game.game_over_summary()
    return jsonify(response_data)


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new game with the provided seed."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400

        seed = data.get('seed', 42)  # Default seed if none provided

        # Validate seed is an integer
        try:
            seed = int(seed)
        except (ValueError, TypeError):
            return jsonify({'error': 'Seed must be an integer'}), 400

        game = Game.new(seed)
        games[game.game_id] = game

        return jsonify({'game_id': game.game_id, 'cell_count': len(game.state.board)})

    except ConfigurationError as e:
        return jsonify({'error': f'Cannot start game: {str(e)}'}), 400
    except Exception as e:
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the status panel and every cell view for the given game ID."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        return _status_response(game, game_id=game_id, cells=game.get_board_view())

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game state: {str(e)}'}), 500


@app.route('/api/game/<game_id>/cell/<int:cell_index>', methods=['GET'])
def get_cell(game_id: str, cell_index: int):
    """Retrieve what the player can see of one cell."""
    game = _find_game(game_id)
    if game is None:
        return jsonify({'error': 'Game not found'}), 404

    view = game.get_cell_view(cell_index)
    if view is None:
        return jsonify({'error': f'Cell {cell_index} not found'}), 404
    return jsonify(view)


@app.route('/api/game/<game_id>/move', methods=['POST'])
def move(game_id: str):
    """Queue a move; the HTTP adapter does not animate, so it resolves at once."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        cell_index, error = _cell_index_from_body()
        if error:
            return jsonify({'error': error}), 400

        log_start = len(game.state.log)
        accepted = game.request_move(cell_index)

        return _status_response(game, accepted=accepted, events=game.state.log[log_start:])

    except Exception as e:
        return jsonify({'error': f'Failed to move: {str(e)}'}), 500


@app.route('/api/game/<game_id>/recharge', methods=['POST'])
def recharge(game_id: str):
    """Spend parts on the next shield recharge."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        return _status_response(game, recharged=game.recharge())

    except Exception as e:
        return jsonify({'error': f'Failed to recharge: {str(e)}'}), 500


@app.route('/api/game/<game_id>/surge', methods=['POST'])
def shield_surge(game_id: str):
    """Use one shield surge."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        return _status_response(game, used=game.use_shield_surge())

    except Exception as e:
        return jsonify({'error': f'Failed to use shield surge: {str(e)}'}), 500


@app.route('/api/game/<game_id>/annotate', methods=['POST'])
def annotate(game_id: str):
    """Mark a covered cell with a cosmetic marker."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        cell_index, error = _cell_index_from_body()
        if error:
            return jsonify({'error': error}), 400
        marker = request.get_json(silent=True).get('marker')
        if marker is None:
            return jsonify({'error': 'marker is required'}), 400

        return jsonify({'annotated': game.annotate(cell_index, marker),
                        'cell': game.get_cell_view(cell_index)})

    except Exception as e:
        return jsonify({'error': f'Failed to annotate: {str(e)}'}), 500


@app.route('/api/game/<game_id>/annotate/<int:cell_index>', methods=['DELETE'])
def clear_annotation(game_id: str, cell_index: int):
    """Remove a cell's marker."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        return jsonify({'cleared': game.clear_annotation(cell_index),
                        'cell': game.get_cell_view(cell_index)})

    except Exception as e:
        return jsonify({'error': f'Failed to clear annotation: {str(e)}'}), 500


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the full game log for analysis."""
    try:
        game = _find_game(game_id)
        if game is None:
            return jsonify({'error': 'Game not found'}), 404

        log_response = {
            'game_id': game_id,
            'moves_resolved': game.state.moves_resolved,
            'log': game.state.log
        }

        return jsonify(log_response)

    except Exception as e:
        return jsonify({'error': f'Failed to retrieve game log: {str(e)}'}), 500


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
