"""
coparent-intake Lambda handler.

Routes:
  GET  /steps             → step registry and pick-lists
  POST /wizard            → apply one wizard action to a client-held state
  POST /report            → validate an incident and generate its report
  POST /draft             → draft an email to the user's lawyer
  POST /evidence/analyze  → relevance note for one evidence file
  POST /export            → email a finished report (and draft) via SES
"""
import json
import logging

from botocore.exceptions import ClientError

import ai_client
import config
import emailer
from evidence import analyze_evidence
from models import EvidenceFile, IncidentData, ReportData
from steps import JURISDICTIONS, PREDEFINED_CHILDREN, PREDEFINED_PARTIES, STEPS, WizardStep, get_step
from store import FormStore
from validation import validate_through
from wizard import Wizard

logger = logging.getLogger()
logger.setLevel(logging.INFO)

CONFIG = config.load_config()


def _model_client():
    return ai_client.ModelClient(CONFIG)


def _cors_headers() -> dict:
    return {
        "Access-Control-Allow-Origin":  "*",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    }


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {**_cors_headers(), "Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def _parse_body(event) -> dict:
    raw_body = event.get("body") or "{}"
    if isinstance(raw_body, str):
        body = json.loads(raw_body)
    else:
        body = raw_body
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object.")
    return body


def _api_error_response(e: ai_client.ApiError) -> dict:
    if not CONFIG.has_credential:
        status = 503
    elif e.retryable:
        status = 504
    else:
        status = 502
    return _response(status, {"error": e.message, "retryable": e.retryable})


def handle_steps():
    """GET /steps — registry for the progress bar plus form pick-lists."""
    return _response(200, {
        "steps": [s.to_dict() for s in STEPS],
        "parties": PREDEFINED_PARTIES,
        "children": PREDEFINED_CHILDREN,
        "jurisdictions": JURISDICTIONS,
    })


def handle_wizard(body: dict):
    """POST /wizard — run one navigation/store action on the posted state."""
    action = str(body.get("action", "")).strip().lower()
    try:
        store = FormStore.from_dict(body.get("state"))
    except (TypeError, ValueError) as e:
        logger.warning("Invalid wizard state | error=%s", str(e))
        return _response(400, {"error": str(e)})

    wizard = Wizard(store, _model_client())

    if action == "next":
        moved = wizard.next_step()
    elif action == "prev":
        moved = wizard.prev_step()
    elif action == "goto":
        if WizardStep.coerce(body.get("step")) is None:
            return _response(400, {"error": "'step' must be an integer between 1 and 6."})
        moved = wizard.go_to_step(body["step"])
    elif action == "validate":
        wizard.validate_current_step()
        moved = False
    elif action == "attach":
        try:
            file = EvidenceFile.from_dict(body.get("file"))
        except (TypeError, ValueError) as e:
            return _response(400, {"error": f"Invalid evidence file: {e}"})
        wizard.attach_evidence(file)
        moved = False
    elif action == "draft":
        wizard.generate_draft()
        moved = False
    elif action == "dismiss":
        store.clear_modal()
        moved = False
    elif action == "reset":
        wizard.reset()
        moved = False
    else:
        return _response(400, {"error": f"Unknown wizard action '{action}'."})

    logger.info("Wizard action | action=%s | step=%d | moved=%s", action, store.current_step, moved)
    return _response(200, {
        "state": store.to_dict(),
        "moved": moved,
        "step": get_step(store.current_step).to_dict(),
        "canProceed": wizard.can_proceed,
        "dirty": store.is_dirty,
    })


def handle_report(body: dict):
    """POST /report — full validation of steps 1-5, then one generation call."""
    try:
        incident = IncidentData.from_dict(body.get("incident", body))
    except (TypeError, ValueError) as e:
        return _response(400, {"error": f"Invalid incident data: {e}"})

    errors = validate_through(incident, WizardStep.EVIDENCE)
    if errors:
        logger.warning("Report request failed validation | fields=%s", sorted(errors))
        return _response(400, {"error": "Incident data is incomplete.", "errors": errors})

    try:
        report = _model_client().generate_report(incident)
    except ai_client.ApiError as e:
        logger.error("Report generation failed | error=%s", e.message)
        return _api_error_response(e)

    return _response(200, report.to_dict())


def handle_draft(body: dict):
    """POST /draft — lawyer email draft from a report's summary and insights."""
    summary = str(body.get("professionalSummary", "")).strip()
    insights = str(body.get("legalInsights", "")).strip()
    date = str(body.get("date", "")).strip()
    if not summary or not date:
        return _response(400, {"error": "Missing required fields: ['date', 'professionalSummary']"})

    try:
        draft = _model_client().generate_draft(summary, insights, date, body.get("caseNumber") or None)
    except ai_client.ApiError as e:
        logger.error("Draft generation failed | error=%s", e.message)
        return _api_error_response(e)

    return _response(200, {"draft": draft})


def handle_evidence(body: dict):
    """POST /evidence/analyze — one file, analysed against the narrative."""
    try:
        file = EvidenceFile.from_dict(body.get("file"))
    except (TypeError, ValueError) as e:
        return _response(400, {"error": f"Invalid evidence file: {e}"})

    try:
        analysis = analyze_evidence(_model_client(), file, str(body.get("narrative", "")))
    except ai_client.ApiError as e:
        logger.error("Evidence analysis failed | file=%s | error=%s", file.name, e.message)
        return _api_error_response(e)

    return _response(200, {"name": file.name, "aiAnalysis": analysis})


def handle_export(body: dict):
    """POST /export — email the report (and optional draft) to the user."""
    if not CONFIG.from_email:
        logger.warning("Export requested but FROM_EMAIL is not configured")
        return _response(503, {"error": "Email export is not configured."})

    to_email = str(body.get("toEmail", "")).strip()
    if "@" not in to_email:
        return _response(400, {"error": "A valid 'toEmail' is required."})

    try:
        report = ReportData.from_dict(body.get("report") or {})
        incident = IncidentData.from_dict(body["incident"]) if body.get("incident") else None
    except KeyError as e:
        return _response(400, {"error": f"Report is missing field {e}"})
    except (TypeError, ValueError) as e:
        return _response(400, {"error": f"Invalid export payload: {e}"})

    draft = str(body.get("draft") or "").strip()

    try:
        emailer.send_report(to_email, report, CONFIG.from_email, incident=incident, region=CONFIG.aws_region)
        if draft:
            emailer.send_draft(to_email, draft, CONFIG.from_email, region=CONFIG.aws_region)
    except ClientError as e:
        logger.error("Export failed | to=%s | error=%s", to_email, str(e))
        return _response(500, {"error": "Failed to send the report email."})

    return _response(200, {
        "message": f"Report sent to {to_email}.",
        "draftSent": bool(draft),
    })


def lambda_handler(event, context):
    """Main router — dispatches to correct handler based on path."""
    method = event.get("requestContext", {}).get("http", {}).get("method", "GET")
    path = event.get("rawPath", "/")

    logger.info("Request | method=%s | path=%s", method, path)

    # Handle CORS preflight
    if method == "OPTIONS":
        return _response(200, {})

    if path == "/steps" and method == "GET":
        return handle_steps()

    routes = {
        "/wizard": handle_wizard,
        "/report": handle_report,
        "/draft": handle_draft,
        "/evidence/analyze": handle_evidence,
        "/export": handle_export,
    }
    route = routes.get(path)
    if route is None or method != "POST":
        return _response(404, {"error": f"Route not found: {method} {path}"})

    try:
        body = _parse_body(event)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error("Invalid JSON body | error=%s", str(e))
        return _response(400, {"error": "Invalid JSON in request body."})

    return route(body)
