"""
Navigation controller for the incident wizard.

Forward moves are gated by the step validators; leaving the evidence step
generates the report first and only commits the move when that succeeds.
Backward moves are never gated. ApiError never escapes this module: it is
turned into an error modal on the store.
"""
import logging
from datetime import datetime

from ai_client import ApiError
from evidence import analyze_evidence
from models import EvidenceFile, ModalInfo
from steps import TRANSITIONS, Effect, WizardStep
from validation import validate_step, validate_through

logger = logging.getLogger(__name__)


class Wizard:
    def __init__(self, store, client, clock=datetime.now):
        self.store = store
        self.client = client
        self.clock = clock

    @property
    def current_step(self) -> WizardStep:
        return self.store.current_step

    @property
    def can_proceed(self) -> bool:
        return not validate_step(self.store.incident, self.current_step, self.clock())

    def validate_current_step(self) -> bool:
        errors = validate_step(self.store.incident, self.current_step, self.clock())
        self.store.set_errors(errors)
        return not errors

    def next_step(self) -> bool:
        step = self.current_step
        transition = TRANSITIONS[step]
        if transition.next is None:
            return False

        if not self.validate_current_step():
            logger.info("Step blocked by validation | step=%d | fields=%s", step, sorted(self.store.errors))
            return False

        if not self._run_effect(transition.on_leave):
            return False

        self.store.set_step(transition.next)
        logger.info("Step advanced | from=%d | to=%d", step, transition.next)
        return True

    def prev_step(self) -> bool:
        transition = TRANSITIONS[self.current_step]
        if transition.prev is None:
            return False
        self.store.set_errors({})
        self.store.set_step(transition.prev)
        return True

    def go_to_step(self, step) -> bool:
        """
        Jump straight to `step`. Backward jumps are free; forward jumps need
        every earlier step to validate and run the effects of each step left.
        """
        target = WizardStep.coerce(step)
        if target is None or target == self.current_step:
            return False

        if target < self.current_step:
            self.store.set_errors({})
            self.store.set_step(target)
            return True

        errors = validate_through(self.store.incident, target - 1, self.clock())
        self.store.set_errors(errors)
        if errors:
            logger.info("Jump blocked by validation | to=%d | fields=%s", target, sorted(errors))
            return False

        for s in range(self.current_step, target):
            if not self._run_effect(TRANSITIONS[WizardStep(s)].on_leave):
                return False

        self.store.set_step(target)
        return True

    def _run_effect(self, effect: Effect) -> bool:
        if effect is Effect.GENERATE_REPORT:
            return self.generate_report()
        return True

    def generate_report(self) -> bool:
        incident = self.store.incident
        try:
            report = self.client.generate_report(incident)
        except ApiError as e:
            logger.error("Report generation failed | error=%s | retryable=%s", e.message, e.retryable)
            self.store.set_modal(ModalInfo(
                title="Report Generation Failed",
                message=f"{e.message} Your answers have been kept; you can try again.",
                kind="error",
            ))
            return False

        self.store.set_report(report)
        self.store.set_modal(ModalInfo(
            title="Report Generated",
            message="Your incident report is ready to review and export.",
            kind="success",
        ))
        return True

    def attach_evidence(self, file: EvidenceFile) -> EvidenceFile:
        """Attach a file, then fill in its AI analysis when the analyzer succeeds."""
        index = self.store.add_evidence(file)
        try:
            analysis = analyze_evidence(self.client, file, self.store.incident.narrative)
        except ApiError as e:
            logger.error("Evidence analysis failed | file=%s | error=%s", file.name, e.message)
            self.store.set_modal(ModalInfo(
                title="Evidence Analysis Failed",
                message=f"'{file.name}' was attached without analysis. {e.message}",
                kind="error",
            ))
            return self.store.incident.evidence[index]

        self.store.set_evidence_analysis(index, analysis)
        return self.store.incident.evidence[index]

    def generate_draft(self) -> str | None:
        report = self.store.report
        if report is None:
            self.store.set_modal(ModalInfo(
                title="No Report Yet",
                message="Generate the incident report before drafting a message to your lawyer.",
                kind="info",
            ))
            return None

        try:
            draft = self.client.generate_draft(
                report.professional_summary,
                report.legal_insights,
                self.store.incident.date,
                report.case_number,
            )
        except ApiError as e:
            logger.error("Draft generation failed | error=%s", e.message)
            self.store.set_modal(ModalInfo(title="Draft Generation Failed", message=e.message, kind="error"))
            return None

        self.store.set_draft(draft)
        return draft

    def reset(self) -> None:
        self.store.reset()
        logger.info("Wizard reset")
