"""
Step registry and transition table for the six-step incident wizard.

Consent -> Date & Time -> What Happened -> Who Was Involved
-> Location & Evidence -> Review & Export
"""
from dataclasses import dataclass
from enum import Enum, IntEnum


class WizardStep(IntEnum):
    CONSENT = 1
    DATE_TIME = 2
    NARRATIVE = 3
    INVOLVED = 4
    EVIDENCE = 5
    REVIEW = 6

    @classmethod
    def coerce(cls, value) -> "WizardStep | None":
        """Return the step for an int-like value, or None when out of range."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


FIRST_STEP = WizardStep.CONSENT
LAST_STEP = WizardStep.REVIEW


class Effect(Enum):
    NONE = "none"
    GENERATE_REPORT = "generate_report"


@dataclass(frozen=True)
class Transition:
    next: WizardStep | None
    prev: WizardStep | None
    on_leave: Effect = Effect.NONE


TRANSITIONS: dict[WizardStep, Transition] = {
    WizardStep.CONSENT:   Transition(next=WizardStep.DATE_TIME, prev=None),
    WizardStep.DATE_TIME: Transition(next=WizardStep.NARRATIVE, prev=WizardStep.CONSENT),
    WizardStep.NARRATIVE: Transition(next=WizardStep.INVOLVED, prev=WizardStep.DATE_TIME),
    WizardStep.INVOLVED:  Transition(next=WizardStep.EVIDENCE, prev=WizardStep.NARRATIVE),
    WizardStep.EVIDENCE:  Transition(next=WizardStep.REVIEW, prev=WizardStep.INVOLVED,
                                     on_leave=Effect.GENERATE_REPORT),
    WizardStep.REVIEW:    Transition(next=None, prev=WizardStep.EVIDENCE),
}


@dataclass(frozen=True)
class StepInfo:
    number: int
    title: str
    icon: str
    component: str

    def to_dict(self) -> dict:
        return {"number": self.number, "title": self.title, "icon": self.icon, "component": self.component}


STEPS: tuple[StepInfo, ...] = (
    StepInfo(1, "Consent",             "shield-check",   "Step0Consent"),
    StepInfo(2, "Date & Time",         "clock",          "Step1DateTime"),
    StepInfo(3, "What Happened",       "file-text",      "Step2Narrative"),
    StepInfo(4, "Who Was Involved",    "users",          "Step3Involved"),
    StepInfo(5, "Location & Evidence", "map-pin",        "Step4Evidence"),
    StepInfo(6, "Review & Export",     "check-square",   "Step5Review"),
)

PREDEFINED_PARTIES = [
    "Ex-spouse/Co-parent",
    "Their current partner",
    "Grandparent",
    "Other family member",
    "Police/First Responder",
    "Witness",
]

PREDEFINED_CHILDREN = ["Child A", "Child B", "Child C"]

JURISDICTIONS = [
    "Ontario, Canada",
    "British Columbia, Canada",
    "Alberta, Canada",
    "Quebec, Canada",
    "Other Canadian Province",
    "US State - Please specify",
]


def get_step(step: WizardStep) -> StepInfo:
    return STEPS[int(step) - 1]
