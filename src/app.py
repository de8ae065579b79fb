"""
Flask web application for the padel draw engine.

Tournaments live under DATA_DIR/tournaments/<slug>/ as tournament.yaml
(couples, status and draw) plus settings.yaml. Identity and role come from
the session, filled in by the external auth provider. Every write to a
tournament happens under its file lock so results are advanced by one
writer at a time.
"""
import os
import random
import re
import uuid
import logging
import yaml
from datetime import datetime
from functools import wraps
from filelock import FileLock
from flask import Flask, jsonify, request, session

from padel.config import TournamentConfig, load_settings, save_settings
from padel.errors import InvalidConfiguration, MatchNotFound, TournamentError
from padel.models import Couple
from padel.roles import Role, tournament_view
from padel.tournament import Tournament

app = Flask(__name__)
app.logger.setLevel(logging.INFO)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')
LOCK_TIMEOUT = 10

app.secret_key = os.environ.get('SECRET_KEY') or os.urandom(24)


def _slugify(name: str) -> str:
    """Convert tournament name to filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'tournament'


def _tournament_dir(slug: str) -> str:
    return os.path.join(TOURNAMENTS_DIR, slug)


def _tournament_lock(slug: str) -> FileLock:
    """Single-writer lock for one tournament."""
    return FileLock(os.path.join(_tournament_dir(slug), '.lock'), timeout=LOCK_TIMEOUT)


def _valid_slug(slug: str) -> bool:
    return bool(slug) and re.match(r'^[a-z0-9-]+$', slug) is not None


def load_tournament(slug: str):
    """Load a tournament from disk, or None if it does not exist."""
    if not _valid_slug(slug):
        return None
    path = os.path.join(_tournament_dir(slug), 'tournament.yaml')
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return None
    if not data:
        return None
    try:
        tournament = Tournament.from_dict(data)
        tournament.config = load_settings(os.path.join(_tournament_dir(slug), 'settings.yaml'))
    except (TournamentError, yaml.YAMLError) as e:
        app.logger.warning(f'Skipping tournament {slug}: {e}')
        return None
    return tournament


def save_tournament(tournament: Tournament):
    """Save a tournament and its settings to disk."""
    tournament_path = _tournament_dir(tournament.id)
    os.makedirs(tournament_path, exist_ok=True)
    with open(os.path.join(tournament_path, 'tournament.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump(tournament.to_dict(), f, default_flow_style=False, sort_keys=False)
    save_settings(os.path.join(tournament_path, 'settings.yaml'), tournament.config)


def list_tournaments() -> list:
    if not os.path.isdir(TOURNAMENTS_DIR):
        return []
    result = []
    for slug in sorted(os.listdir(TOURNAMENTS_DIR)):
        tournament = load_tournament(slug)
        if tournament is not None:
            result.append({'slug': tournament.id, 'name': tournament.name,
                           'status': tournament.status.value, 'phase': tournament.phase})
    return result


def current_role() -> Role:
    return Role.from_value(session.get('role'))


def role_required(*roles):
    """Restrict an endpoint to the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if 'user' not in session:
                return jsonify({'error': 'Authentication required'}), 401
            if current_role() not in roles:
                return jsonify({'error': 'Not allowed for this role'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def _not_found(slug):
    return jsonify({'error': f'Tournament {slug} not found'}), 404


def _rng_from(data):
    if data.get('random_seed') is None:
        return None
    return random.Random(data['random_seed'])


@app.errorhandler(TournamentError)
def handle_tournament_error(e):
    status = 404 if isinstance(e, MatchNotFound) else 400
    app.logger.info(f'{e.code}: {e}')
    return jsonify({'error': str(e), 'code': e.code}), status


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """List all tournaments."""
    return jsonify({'tournaments': list_tournaments()})


@app.route('/api/tournaments', methods=['POST'])
@role_required(Role.CLUB)
def api_create_tournament():
    """Create a new tournament."""
    data = request.get_json(silent=True) or {}
    name = str(data.get('name', '')).strip()
    if not name:
        return jsonify({'error': 'Tournament name is required'}), 400

    slug = _slugify(name)
    if os.path.exists(os.path.join(_tournament_dir(slug), 'tournament.yaml')):
        return jsonify({'error': f'A tournament with a similar name already exists ("{slug}")'}), 409

    settings = data.get('settings')
    if settings is not None and not isinstance(settings, dict):
        raise InvalidConfiguration('settings must be a mapping')
    tournament = Tournament(slug, name, config=TournamentConfig.from_dict(settings))
    os.makedirs(_tournament_dir(slug), exist_ok=True)
    with _tournament_lock(slug):
        save_tournament(tournament)

    app.logger.info(f'Tournament {slug} created by {session.get("user")}')
    return jsonify({'success': True, 'slug': slug}), 201


@app.route('/api/tournaments/<slug>', methods=['GET'])
def api_tournament(slug):
    """Tournament as seen by the current role."""
    tournament = load_tournament(slug)
    if tournament is None:
        return _not_found(slug)
    return jsonify(tournament_view(current_role(), tournament, session.get('user')))


@app.route('/api/tournaments/<slug>/couples', methods=['GET'])
def api_list_couples(slug):
    tournament = load_tournament(slug)
    if tournament is None:
        return _not_found(slug)
    return jsonify({'couples': tournament_view(current_role(), tournament)['couples']})


@app.route('/api/tournaments/<slug>/couples', methods=['POST'])
@role_required(Role.CLUB, Role.PLAYER)
def api_register_couple(slug):
    """Register a couple. Players may only register couples they play in."""
    data = request.get_json(silent=True) or {}
    player1_id = data.get('player1_id')
    player2_id = data.get('player2_id')
    if not player1_id or not player2_id:
        return jsonify({'error': 'Both players are required'}), 400
    if player1_id == player2_id:
        return jsonify({'error': 'A couple needs two different players'}), 400
    if current_role() is Role.PLAYER and session['user'] not in (player1_id, player2_id):
        return jsonify({'error': 'Players can only register their own couple'}), 403

    try:
        couple = Couple(
            id=data.get('id') or uuid.uuid4().hex[:8],
            player1_id=player1_id,
            player2_id=player2_id,
            seed=data.get('seed'),
            category=data.get('category'),
            registered_at=data.get('registered_at') or datetime.now(),
            name=data.get('name'),
        )
    except (TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid couple data: {e}'}), 400

    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.register(couple)
        save_tournament(tournament)

    return jsonify({'success': True, 'couple': couple.to_dict()}), 201


@app.route('/api/tournaments/<slug>/start', methods=['POST'])
@role_required(Role.CLUB)
def api_start_tournament(slug):
    """Seed couples and generate zones or bracket."""
    data = request.get_json(silent=True) or {}
    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.start(rng=_rng_from(data))
        save_tournament(tournament)

    app.logger.info(f'Tournament {slug} started ({tournament.config.format.value})')
    return jsonify(tournament_view(Role.CLUB, tournament))


@app.route('/api/tournaments/<slug>/matches/<match_id>/start', methods=['POST'])
@role_required(Role.CLUB)
def api_start_match(slug, match_id):
    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.start_match(match_id)
        save_tournament(tournament)
    return jsonify({'success': True, 'match_id': match_id})


@app.route('/api/tournaments/<slug>/matches/<match_id>/result', methods=['POST'])
@role_required(Role.CLUB)
def api_record_result(slug, match_id):
    """Record a match result and advance the winner."""
    data = request.get_json(silent=True) or {}
    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.record_result(
            match_id,
            winner_id=data.get('winner_id'),
            scores=data.get('sets'),
            walkover=bool(data.get('walkover', False)),
            rng=_rng_from(data),
        )
        save_tournament(tournament)

    app.logger.info(f'Result recorded for {slug}/{match_id}')
    return jsonify({
        'success': True,
        'match_id': match_id,
        'status': tournament.status.value,
        'champion_id': tournament.champion_id,
    })


@app.route('/api/tournaments/<slug>/standings', methods=['GET'])
def api_standings(slug):
    tournament = load_tournament(slug)
    if tournament is None:
        return _not_found(slug)
    standings = tournament.zone_standings()
    return jsonify({'standings': {zone_id: [s.to_dict() for s in rows]
                                  for zone_id, rows in standings.items()}})


@app.route('/api/tournaments/<slug>/elimination', methods=['POST'])
@role_required(Role.CLUB)
def api_start_elimination(slug):
    """Seed the elimination bracket from finished zones."""
    data = request.get_json(silent=True) or {}
    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.start_elimination(rng=_rng_from(data))
        save_tournament(tournament)
    return jsonify(tournament_view(Role.CLUB, tournament))


@app.route('/api/tournaments/<slug>/cancel', methods=['POST'])
@role_required(Role.CLUB)
def api_cancel_tournament(slug):
    if load_tournament(slug) is None:
        return _not_found(slug)
    with _tournament_lock(slug):
        tournament = load_tournament(slug)
        tournament.cancel()
        save_tournament(tournament)
    return jsonify({'success': True, 'status': tournament.status.value})


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
