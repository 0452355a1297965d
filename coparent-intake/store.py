import logging
from dataclasses import fields, replace

from models import EvidenceFile, IncidentData, ModalInfo, ReportData, ValidationErrors
from steps import FIRST_STEP, LAST_STEP, WizardStep

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {f.name for f in fields(IncidentData)} - {"evidence"}
EVIDENCE_FIELDS = {"category", "description"}


class FormStore:
    """
    In-progress wizard state for one session: incident data, current step,
    validation errors, modal, and the generated report and draft.
    """

    def __init__(self, incident: IncidentData | None = None, current_step: WizardStep = FIRST_STEP):
        self.incident = incident or IncidentData()
        self.current_step = WizardStep(current_step)
        self.errors: ValidationErrors = {}
        self.modal: ModalInfo | None = None
        self.report: ReportData | None = None
        self.draft: str | None = None

    # -- incident data ---------------------------------------------------

    def update_incident(self, **changes) -> None:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown incident fields: {sorted(unknown)}")
        for name, value in changes.items():
            if name in ("parties", "children"):
                value = list(value)
            setattr(self.incident, name, value)

    def toggle_party(self, name: str) -> None:
        self._toggle(self.incident.parties, name)

    def toggle_child(self, name: str) -> None:
        self._toggle(self.incident.children, name)

    @staticmethod
    def _toggle(values: list[str], name: str) -> None:
        if name in values:
            values.remove(name)
        else:
            values.append(name)

    def add_evidence(self, file: EvidenceFile) -> int:
        self.incident.evidence.append(file)
        logger.info("Evidence attached | file=%s | type=%s | size=%d", file.name, file.type, file.size)
        return len(self.incident.evidence) - 1

    def update_evidence(self, index: int, **changes) -> None:
        unknown = set(changes) - EVIDENCE_FIELDS
        if unknown:
            raise ValueError(f"Unknown evidence fields: {sorted(unknown)}")
        self.incident.evidence[index] = replace(self.incident.evidence[index], **changes)

    def set_evidence_analysis(self, index: int, analysis: str) -> None:
        self.incident.evidence[index] = replace(self.incident.evidence[index], ai_analysis=analysis)

    def remove_evidence(self, index: int) -> EvidenceFile:
        return self.incident.evidence.pop(index)

    # -- wizard bookkeeping ----------------------------------------------

    def set_step(self, step: int) -> None:
        """Set the current step, clamped to the registry's range."""
        self.current_step = WizardStep(min(max(int(step), FIRST_STEP), LAST_STEP))

    def set_errors(self, errors: ValidationErrors) -> None:
        self.errors = dict(errors)

    def set_modal(self, modal: ModalInfo | None) -> None:
        self.modal = modal

    def clear_modal(self) -> None:
        self.modal = None

    def set_report(self, report: ReportData | None) -> None:
        self.report = report
        self.draft = None

    def set_draft(self, draft: str | None) -> None:
        self.draft = draft

    def reset(self) -> None:
        self.incident = IncidentData()
        self.current_step = FIRST_STEP
        self.errors = {}
        self.modal = None
        self.report = None
        self.draft = None

    @property
    def is_dirty(self) -> bool:
        """True once the user has entered anything worth warning about on unload."""
        return self.incident != IncidentData() or self.report is not None

    # -- wire format -----------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "incident": self.incident.to_dict(),
            "currentStep": int(self.current_step),
            "errors": dict(self.errors),
            "modal": self.modal.to_dict() if self.modal else None,
            "report": self.report.to_dict() if self.report else None,
            "draft": self.draft,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "FormStore":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("Wizard state must be a JSON object")
        step = WizardStep.coerce(data.get("currentStep", FIRST_STEP))
        if step is None:
            raise ValueError(f"Invalid currentStep: {data.get('currentStep')}")

        store = cls(IncidentData.from_dict(data.get("incident") or {}), step)
        errors = data.get("errors") or {}
        if not isinstance(errors, dict):
            raise ValueError("Wizard errors must be a JSON object")
        store.errors = {str(k): str(v) for k, v in errors.items()}
        store.modal = ModalInfo.from_dict(data.get("modal"))
        report = data.get("report")
        if report:
            try:
                store.report = ReportData.from_dict(report)
            except KeyError as e:
                raise ValueError(f"Report is missing field {e}") from e
        draft = data.get("draft")
        if draft is not None and not isinstance(draft, str):
            raise ValueError("Wizard draft must be a string")
        store.draft = draft or None
        return store
