"""API blueprint: /api/*

JSON endpoints for the CRM. No auth: the API sits behind the frontend.

Route Map:
  GET  /api/health                 Store readiness probe
  GET  /api/dashboard              All orgs, contacts, deals, projects, tasks
  POST /api/organizations          Create organization
  POST /api/contacts               Create contact
  POST /api/deals                  Create deal
  PUT  /api/deals/<id>/win         Win deal → project + starter tasks

Store failures come back as 500 with the raw error message.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from dealdesk.services import crm_service, deal_service
from dealdesk.services.deal_service import DealAlreadyWon, DealNotFound

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _store():
    return current_app.extensions["store"]


def _payload():
    return request.get_json(silent=True) or {}


def _failure(e, action):
    """Log a handler failure and turn it into the generic 500 response."""
    logger.error(f"{action} failed: {e}", exc_info=True)
    _store().session.rollback()
    return jsonify({"error": str(e)}), 500


# ─── Health ──────────────────────────────────────────────────────

@api_bp.route("/health")
def health():
    if _store().is_ready():
        return jsonify({"status": "ok", "database": "up"})
    return jsonify({"status": "unavailable", "database": "down"}), 503


# ─── Dashboard ───────────────────────────────────────────────────

@api_bp.route("/dashboard")
def dashboard():
    try:
        data = crm_service.dashboard(_store())
    except Exception as e:
        return _failure(e, "Dashboard load")
    return jsonify(data)


# ─── Create ──────────────────────────────────────────────────────

@api_bp.route("/organizations", methods=["POST"])
def create_organization():
    data = _payload()
    try:
        org_id = crm_service.create_organization(
            _store(),
            name=data.get("name"),
            industry=data.get("industry"),
        )
    except Exception as e:
        return _failure(e, "Organization create")
    return jsonify({"message": "Organization created", "id": org_id}), 201


@api_bp.route("/contacts", methods=["POST"])
def create_contact():
    data = _payload()
    try:
        contact_id = crm_service.create_contact(
            _store(),
            organization_id=data.get("organization_id"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
            phone=data.get("phone"),
        )
    except Exception as e:
        return _failure(e, "Contact create")
    return jsonify({"message": "Contact created", "id": contact_id}), 201


@api_bp.route("/deals", methods=["POST"])
def create_deal():
    data = _payload()
    try:
        deal_id = crm_service.create_deal(
            _store(),
            organization_id=data.get("organization_id"),
            title=data.get("title"),
            amount=data.get("amount"),
        )
    except Exception as e:
        return _failure(e, "Deal create")
    return jsonify({"message": "Deal created", "id": deal_id}), 201


# ─── Win ─────────────────────────────────────────────────────────

@api_bp.route("/deals/<deal_id>/win", methods=["PUT"])
def win_deal(deal_id):
    """Win a deal. The cascade rolls itself back before any error lands here."""
    try:
        result = deal_service.win_deal(_store(), deal_id)
    except DealNotFound as e:
        return jsonify({"error": str(e), "dealId": deal_id}), 404
    except DealAlreadyWon as e:
        return jsonify({"error": str(e), "dealId": deal_id}), 409
    except Exception as e:
        return _failure(e, f"Win for deal {deal_id}")

    return jsonify({
        "message": "Deal won!" if result.created else "Deal already won",
        "projectId": result.project_id,
        "taskIds": result.task_ids,
        "created": result.created,
    })
