"""
Record shapes shared by the wizard, the validators and the AI client.

Python attributes are snake_case; to_dict()/from_dict() speak the camelCase
JSON the browser front end sends and renders.
"""
from dataclasses import dataclass, field, replace

EVIDENCE_CATEGORIES = ("Screenshot", "Document", "Audio", "Video", "Other")

REPORT_CATEGORIES = (
    "Child Safety & Welfare",
    "Communication Breakdown",
    "Parenting Time Violation",
    "Breach of Court Order (Non-Time Related)",
    "Parental Alienation Tactics",
    "Hostile/Disparaging Conduct",
    "Financial Disputes",
    "Medical/Educational Disagreements",
    "Property/Possession Issues",
    "Other",
)

SEVERITIES = ("Low", "Medium", "High")

MODAL_KINDS = {"success", "error", "info"}

LEGAL_DISCLAIMER = (
    "This is not legal advice and is for informational purposes only. "
    "You should consult with a qualified legal professional for advice tailored to your situation."
)

AI_NOTES_HEADINGS = (
    "**Evidence Analysis:**",
    "**Evidence Gaps & Recommendations:**",
    "**Communication Strategy:**",
    "**Documentation Best Practices:**",
)


def _str_list(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


@dataclass
class EvidenceFile:
    name: str
    size: int = 0
    type: str = ""
    category: str = "Other"
    description: str = ""
    payload: str | None = None  # base64, no data: prefix
    ai_analysis: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "EvidenceFile":
        if not isinstance(data, dict) or not data.get("name"):
            raise ValueError("Evidence file requires a 'name'")
        for key in ("base64", "aiAnalysis"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValueError(f"Evidence field '{key}' must be a string")
        payload = data.get("base64") or None
        if payload and payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        return cls(
            name=str(data["name"]),
            size=int(data.get("size") or 0),
            type=str(data.get("type") or ""),
            category=str(data.get("category") or ""),
            description=str(data.get("description") or ""),
            payload=payload,
            ai_analysis=data.get("aiAnalysis") or None,
        )

    def to_dict(self, include_payload: bool = True) -> dict:
        out = {
            "name": self.name,
            "size": self.size,
            "type": self.type,
            "category": self.category,
            "description": self.description,
        }
        if include_payload and self.payload:
            out["base64"] = self.payload
        if self.ai_analysis:
            out["aiAnalysis"] = self.ai_analysis
        return out


@dataclass
class IncidentData:
    consent_acknowledged: bool = False
    date: str = ""
    time: str = ""
    narrative: str = ""
    parties: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    jurisdiction: str = ""
    evidence: list[EvidenceFile] = field(default_factory=list)
    case_number: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "IncidentData":
        if not isinstance(data, dict):
            raise ValueError("Incident data must be a JSON object")
        return cls(
            consent_acknowledged=bool(data.get("consentAcknowledged", False)),
            date=str(data.get("date") or "").strip(),
            time=str(data.get("time") or "").strip(),
            narrative=str(data.get("narrative") or ""),
            parties=_str_list(data.get("parties")),
            children=_str_list(data.get("children")),
            jurisdiction=str(data.get("jurisdiction") or "").strip(),
            evidence=[EvidenceFile.from_dict(e) for e in data.get("evidence") or []],
            case_number=str(data.get("caseNumber") or "").strip(),
        )

    def to_dict(self, include_payloads: bool = True) -> dict:
        return {
            "consentAcknowledged": self.consent_acknowledged,
            "date": self.date,
            "time": self.time,
            "narrative": self.narrative,
            "parties": list(self.parties),
            "children": list(self.children),
            "jurisdiction": self.jurisdiction,
            "evidence": [e.to_dict(include_payloads) for e in self.evidence],
            "caseNumber": self.case_number,
        }


# camelCase key in model output / wire JSON -> ReportData attribute
REPORT_FIELDS = {
    "title": "title",
    "category": "category",
    "severity": "severity",
    "severityJustification": "severity_justification",
    "professionalSummary": "professional_summary",
    "observedImpact": "observed_impact",
    "legalInsights": "legal_insights",
    "sources": "sources",
    "aiNotes": "ai_notes",
}


@dataclass(frozen=True)
class ReportData:
    title: str
    category: str
    severity: str
    severity_justification: str
    professional_summary: str
    observed_impact: str
    legal_insights: str
    sources: tuple[str, ...]
    ai_notes: str
    case_number: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ReportData":
        """Build from camelCase JSON. Missing keys raise KeyError, mistyped ones ValueError."""
        kwargs = {attr: data[key] for key, attr in REPORT_FIELDS.items()}
        for key, attr in REPORT_FIELDS.items():
            if attr != "sources" and not isinstance(kwargs[attr], str):
                raise ValueError(f"Report field '{key}' must be a string")
        kwargs["sources"] = tuple(_str_list(kwargs["sources"]))
        case_number = data.get("caseNumber")
        return cls(**kwargs, case_number=str(case_number) if case_number else None)

    def to_dict(self) -> dict:
        out = {key: getattr(self, attr) for key, attr in REPORT_FIELDS.items()}
        out["sources"] = list(self.sources)
        if self.case_number:
            out["caseNumber"] = self.case_number
        return out

    def with_case_number(self, case_number: str | None) -> "ReportData":
        return replace(self, case_number=case_number or None)


@dataclass(frozen=True)
class ModalInfo:
    title: str
    message: str
    kind: str = "info"

    def __post_init__(self):
        if self.kind not in MODAL_KINDS:
            raise ValueError(f"Invalid modal kind: '{self.kind}'")

    @classmethod
    def from_dict(cls, data: dict | None) -> "ModalInfo | None":
        if not data:
            return None
        if not isinstance(data, dict):
            raise ValueError("Modal must be a JSON object")
        return cls(
            title=str(data.get("title") or ""),
            message=str(data.get("message") or ""),
            kind=str(data.get("type") or "info"),
        )

    def to_dict(self) -> dict:
        return {"title": self.title, "message": self.message, "type": self.kind}


# field name -> human readable message; replaced wholesale on each pass
ValidationErrors = dict[str, str]
