from datetime import datetime

from models import EVIDENCE_CATEGORIES, IncidentData, ValidationErrors
from steps import WizardStep

MIN_NARRATIVE_LENGTH = 20


def _parse_date(value: str):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_time(value: str):
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def _consent(incident: IncidentData, now: datetime) -> ValidationErrors:
    if not incident.consent_acknowledged:
        return {"consentAcknowledged": "You must acknowledge the disclaimer to continue."}
    return {}


def _date_time(incident: IncidentData, now: datetime) -> ValidationErrors:
    errors = {}

    if not incident.date.strip():
        errors["date"] = "Date of the incident is required."
    else:
        parsed = _parse_date(incident.date.strip())
        if parsed is None:
            errors["date"] = "Date must be in YYYY-MM-DD format."
        elif parsed > now.date():
            errors["date"] = "Date of the incident cannot be in the future."

    if not incident.time.strip():
        errors["time"] = "Time of the incident is required."
    elif _parse_time(incident.time.strip()) is None:
        errors["time"] = "Time must be in HH:MM format."

    return errors


def _narrative(incident: IncidentData, now: datetime) -> ValidationErrors:
    text = incident.narrative.strip()
    if not text:
        return {"narrative": "Please describe what happened."}
    if len(text) < MIN_NARRATIVE_LENGTH:
        return {"narrative": f"Please provide at least {MIN_NARRATIVE_LENGTH} characters describing what happened."}
    return {}


def _involved(incident: IncidentData, now: datetime) -> ValidationErrors:
    if not any(p.strip() for p in incident.parties):
        return {"parties": "Select or enter at least one party involved."}
    return {}


def _evidence(incident: IncidentData, now: datetime) -> ValidationErrors:
    for f in incident.evidence:
        if not f.category.strip():
            return {"evidence": f"Choose a category for '{f.name}'."}
        if f.category not in EVIDENCE_CATEGORIES:
            return {"evidence": f"Invalid category '{f.category}' for '{f.name}'."}
    return {}


def _review(incident: IncidentData, now: datetime) -> ValidationErrors:
    return {}


VALIDATORS = {
    WizardStep.CONSENT:   _consent,
    WizardStep.DATE_TIME: _date_time,
    WizardStep.NARRATIVE: _narrative,
    WizardStep.INVOLVED:  _involved,
    WizardStep.EVIDENCE:  _evidence,
    WizardStep.REVIEW:    _review,
}


def validate_step(incident: IncidentData, step: int, now: datetime | None = None) -> ValidationErrors:
    """
    Return field -> message for every requirement of `step` the incident misses.
    Pure: same incident, step and `now` always give the same mapping.
    """
    wizard_step = WizardStep.coerce(step)
    if wizard_step is None:
        raise ValueError(f"Unknown step: {step}")
    return VALIDATORS[wizard_step](incident, now or datetime.now())


def validate_through(incident: IncidentData, step: int, now: datetime | None = None) -> ValidationErrors:
    """Merge the errors of steps 1..step (inclusive)."""
    now = now or datetime.now()
    errors = {}
    for s in WizardStep:
        if s > step:
            break
        errors.update(validate_step(incident, s, now))
    return errors
