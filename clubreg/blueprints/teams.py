"""Team registry endpoints."""

from flask import Blueprint, jsonify, request

from clubreg.auth import admin_required
from clubreg.services import teams as team_service

teams_bp = Blueprint('teams', __name__, url_prefix='/teams')


@teams_bp.get('')
def list_teams():
    return jsonify(team_service.list_teams())


@teams_bp.get('/<team_id>')
def get_team(team_id):
    team = team_service.get_team(team_id)
    return jsonify(team_service.serialize_team(team, team_service.paid_count(team.id)))


@teams_bp.post('')
@admin_required
def create_team():
    team = team_service.create_team(request.get_json(silent=True))
    return jsonify(team_service.serialize_team(team, 0)), 201


@teams_bp.patch('/<team_id>')
@admin_required
def update_team(team_id):
    team = team_service.update_team(team_id, request.get_json(silent=True))
    return jsonify(team_service.serialize_team(team, team_service.paid_count(team.id)))


__all__ = ['teams_bp']
