import json

from models import AI_NOTES_HEADINGS, LEGAL_DISCLAIMER, REPORT_CATEGORIES, SEVERITIES

REPORT_SYSTEM_PROMPT = """YOUR ENTIRE RESPONSE MUST BE A SINGLE RAW JSON OBJECT. BEGIN YOUR RESPONSE WITH { AND END WITH }. NOTHING BEFORE. NOTHING AFTER.

You are a meticulous, senior family law paralegal and certified mediator. Your task is to transmute a user's potentially emotional narrative into a sterile, factual, and comprehensive report suitable for a court filing. Respond with ONLY a valid JSON object that strictly adheres to the provided JSON Schema. Do not include any explanatory text before or after the JSON."""

REPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "A brief, factual title for the incident report. Example: 'Dispute Regarding Parenting Time Exchange on YYYY-MM-DD'.",
        },
        "professionalSummary": {
            "type": "string",
            "description": "A comprehensive, objective summary formatted as exactly three paragraphs separated by single newline characters ('\\n'). Paragraph 1: Context. Paragraph 2: Chronology. Paragraph 3: Outcome.",
        },
        "category": {
            "type": "string",
            "enum": list(REPORT_CATEGORIES),
            "description": "The single best category for the incident from the provided list.",
        },
        "severity": {
            "type": "string",
            "enum": list(SEVERITIES),
            "description": "The assigned severity level.",
        },
        "severityJustification": {
            "type": "string",
            "description": "Justification for the assigned severity level in one or two sentences, linking a fact from the narrative to the severity criteria.",
        },
        "legalInsights": {
            "type": "string",
            "description": f"A 2-3 paragraph analysis. Must begin with the disclaimer '{LEGAL_DISCLAIMER}'. Mentioned legal statutes must be formatted as markdown hyperlinks to official government sources for the specified jurisdiction.",
        },
        "sources": {
            "type": "array",
            "items": {"type": "string", "format": "uri"},
            "description": "An array of 2-3 full URL strings to official government or reputable legal aid organization pages relevant to family law in the specified jurisdiction.",
        },
        "observedImpact": {
            "type": "string",
            "description": "A 1-2 paragraph neutral, child-centric analysis of the potential or observed impact on the children, based strictly on the narrative.",
        },
        "aiNotes": {
            "type": "string",
            "description": "A markdown string with exactly four sections using these headings: "
            + ", ".join(f"'{h}'" for h in AI_NOTES_HEADINGS[:-1])
            + f", and '{AI_NOTES_HEADINGS[-1]}'. Provide concise, bulleted, actionable points under each.",
        },
    },
    "required": [
        "title",
        "professionalSummary",
        "category",
        "severity",
        "severityJustification",
        "legalInsights",
        "sources",
        "observedImpact",
        "aiNotes",
    ],
}

REPORT_USER_TEMPLATE = """Analyze the following incident details and use your knowledge to find relevant legal information for the specified jurisdiction: {jurisdiction}.

JSON Schema to follow:
{schema}

Incident Details to analyze:
{context}"""

INCIDENT_CONTEXT_TEMPLATE = """INCIDENT DETAILS:
- Date: {date}
- Time: {time}
- Jurisdiction: {jurisdiction}
- Case Number: {case_number}
- Parties Involved: {parties}
- Children Present/Affected: {children}
- Evidence Attached:
{evidence}
- Original Account: {narrative}"""

DRAFT_SYSTEM_PROMPT = """You are an assistant helping a user draft a clear, concise, and professional email to their lawyer. The goal is to provide an update on a recent co-parenting incident. The response should be only the draft email text itself, including a subject line, salutation, body, and closing. Do not use overly emotional language."""

DRAFT_USER_TEMPLATE = """Please draft an email to my lawyer summarizing a co-parenting incident that occurred on {date}{case_info}.

The email should have the following structure:
1.  **Subject Line:** {subject}
2.  **Salutation:** A professional opening (e.g., "Dear [Lawyer's Name],").
3.  **Body Paragraph 1 (Summary):** State the purpose is to document an incident and incorporate this professional summary:
    ---
    {summary}
    ---
4.  **Body Paragraph 2 (Key Insights):** Mention a software tool provided preliminary context and include these key insights (without the disclaimer):
    ---
    {insights}
    ---
5.  **Closing:** End with a call to action, like "Please let me know if you require any further information or if this documentation is sufficient. A more detailed report with evidence is available upon request."
6.  **Sign-off:** A professional closing (e.g., "Best regards," followed by "[Your Name]").

Use placeholders like [Lawyer's Name] and [Your Name]."""

IMAGE_ANALYSIS_TEMPLATE = """As a neutral, objective legal assistant, analyze the attached image evidence in the context of the following co-parenting incident narrative:
---
NARRATIVE: "{narrative}"
---
FILE DETAILS:
- Name: {name}
- User Description: {description}
---
INSTRUCTIONS: Provide a concise, one-sentence summary of this image's potential relevance and evidentiary value. Be factual and avoid speculation.

Example Analysis: "This screenshot appears to corroborate the user's claim of receiving a message at the specified time.\""""

DOCUMENT_ANALYSIS_TEMPLATE = """As a neutral, objective legal assistant, analyze the *potential relevance* of the attached document based on its metadata, in the context of the following co-parenting incident narrative:
---
NARRATIVE: "{narrative}"
---
DOCUMENT DETAILS:
- Name: {name}
- Type: {type}
- User Description: {description}
---
INSTRUCTIONS: Based *only* on the file name and user-provided description, provide a concise, one-sentence summary of this document's likely relevance and evidentiary value. Do not speculate about the document's specific contents, as you cannot read them.

Example Analysis: "A document named 'school_report.pdf' could be relevant if its contents detail the child's academic performance or behavior during the period of the incident.\""""


def build_incident_context(incident) -> str:
    if incident.evidence:
        evidence = "\n".join(
            f"- File: {e.name} (Category: {e.category})\n  Description: {e.description or 'N/A'}"
            for e in incident.evidence
        )
    else:
        evidence = "None specified"

    return INCIDENT_CONTEXT_TEMPLATE.format(
        date=incident.date,
        time=incident.time,
        jurisdiction=incident.jurisdiction,
        case_number=incident.case_number or "N/A",
        parties=", ".join(incident.parties),
        children=", ".join(incident.children) or "None specified",
        evidence=evidence,
        narrative=incident.narrative,
    )


def build_report_prompt(incident) -> str:
    return REPORT_USER_TEMPLATE.format(
        jurisdiction=incident.jurisdiction,
        schema=json.dumps(REPORT_SCHEMA, indent=2),
        context=build_incident_context(incident),
    )


def strip_disclaimer(legal_insights: str) -> str:
    return legal_insights.replace(LEGAL_DISCLAIMER, "", 1).strip()


def build_draft_prompt(summary: str, legal_insights: str, date: str, case_number: str | None = None) -> str:
    if case_number:
        case_info = f" for case file: {case_number}"
        subject = f"Incident Report for Case File: {case_number}"
    else:
        case_info = ""
        subject = f"Update re: Incident on {date}"

    return DRAFT_USER_TEMPLATE.format(
        date=date,
        case_info=case_info,
        subject=subject,
        summary=summary,
        insights=strip_disclaimer(legal_insights),
    )


def build_image_prompt(file, narrative: str) -> str:
    return IMAGE_ANALYSIS_TEMPLATE.format(
        narrative=narrative,
        name=file.name,
        description=file.description or "Not provided.",
    )


def build_document_prompt(file, narrative: str) -> str:
    return DOCUMENT_ANALYSIS_TEMPLATE.format(
        narrative=narrative,
        name=file.name,
        type=file.type,
        description=file.description or "Not provided.",
    )
