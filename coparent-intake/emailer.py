import html
import logging

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Severity badge colors for the exported report HTML
SEVERITY_COLORS = {
    "High":   "#DC2626",  # red
    "Medium": "#D97706",  # amber
    "Low":    "#16A34A",  # green
}

SEVERITY_LABELS = {
    "High":   "🔴 HIGH",
    "Medium": "🟡 MEDIUM",
    "Low":    "🟢 LOW",
}

DRAFT_DEFAULT_SUBJECT = "Co-parenting incident update"


def _ses_client(region: str = "us-east-1"):
    return boto3.client("ses", region_name=region)


def _paragraphs(text: str) -> str:
    return "".join(
        f"<p style='margin:0 0 10px; font-size:14px; line-height:1.6;'>{html.escape(p)}</p>"
        for p in text.split("\n") if p.strip()
    )


def _send(to_email: str, subject: str, body: dict, from_email: str, region: str) -> None:
    try:
        _ses_client(region).send_email(
            Source=from_email,
            Destination={"ToAddresses": [to_email]},
            Message={
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": body,
            },
        )
    except ClientError as e:
        logger.error(
            "Export email FAILED | to=%s | subject=%s | error=%s",
            to_email,
            subject,
            e.response["Error"]["Message"],
        )
        raise


def render_report_html(report, incident=None) -> str:
    """Render a finished report as a self-contained HTML email."""
    color = SEVERITY_COLORS.get(report.severity, "#6B7280")
    label = SEVERITY_LABELS.get(report.severity, report.severity.upper())
    case_number = html.escape(report.case_number or "N/A")

    details = ""
    if incident is not None:
        rows = [
            ("Date", incident.date),
            ("Time", incident.time),
            ("Jurisdiction", incident.jurisdiction or "N/A"),
            ("Parties Involved", ", ".join(incident.parties) or "N/A"),
            ("Children", ", ".join(incident.children) or "None specified"),
            ("Evidence Files", str(len(incident.evidence))),
        ]
        details = "".join(
            f"<tr><td style='padding:8px 16px; border-top:1px solid #E5E7EB; font-size:14px; color:#6B7280; width:35%;'>{k}</td>"
            f"<td style='padding:8px 16px; border-top:1px solid #E5E7EB; font-size:14px;'>{html.escape(v)}</td></tr>"
            for k, v in rows
        )
        details = f"<table style='width:100%; border-collapse:collapse; border:1px solid #E5E7EB; border-top:none;'>{details}</table>"

        evidence_items = "".join(
            f"<li style='margin-bottom:6px'><strong>{html.escape(e.name)}</strong> ({html.escape(e.category)})"
            f"{' - ' + html.escape(e.ai_analysis) if e.ai_analysis else ''}</li>"
            for e in incident.evidence
        )
        if evidence_items:
            details += (
                "<div style='border:1px solid #E5E7EB; border-top:none; padding:16px 20px;'>"
                "<h3 style='margin:0 0 10px; font-size:14px; text-transform:uppercase; color:#374151;'>Evidence</h3>"
                f"<ul style='margin:0; padding-left:20px; font-size:14px;'>{evidence_items}</ul></div>"
            )

    sources_html = "".join(
        f"<li><a href='{html.escape(url, quote=True)}' style='color:#2563EB;'>{html.escape(url)}</a></li>"
        for url in report.sources
    )

    def section(heading: str, text: str) -> str:
        return (
            "<div style='border:1px solid #E5E7EB; border-top:none; padding:16px 20px;'>"
            f"<h3 style='margin:0 0 10px; font-size:14px; text-transform:uppercase; letter-spacing:0.05em; color:#374151;'>{heading}</h3>"
            f"{_paragraphs(text)}</div>"
        )

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; max-width: 680px; margin: 0 auto; padding: 20px; color: #1F2937;">

  <div style="background-color: {color}; color: white; padding: 16px 20px; border-radius: 8px 8px 0 0;">
    <h1 style="margin:0; font-size:18px;">{html.escape(report.title)}</h1>
    <p style="margin:4px 0 0; font-size:14px; opacity:0.9;">Severity: {label} &nbsp;|&nbsp; Case: {case_number}</p>
  </div>

  <div style="background-color: #F9FAFB; border: 1px solid #E5E7EB; border-top: none; padding: 16px 20px;">
    <div style="font-size:13px; color:#6B7280; text-transform:uppercase; letter-spacing:0.05em;">Category</div>
    <div style="font-size:18px; font-weight:600; color:#111827;">{html.escape(report.category)}</div>
    <div style="font-size:14px; color:#6B7280;">{html.escape(report.severity_justification)}</div>
  </div>

  {details}
  {section("Professional Summary", report.professional_summary)}
  {section("Observed Impact", report.observed_impact)}
  {section("Legal Insights", report.legal_insights)}
  {section("Notes & Recommendations", report.ai_notes)}

  <div style="border:1px solid #E5E7EB; border-top:none; padding:16px 20px; border-radius:0 0 8px 8px;">
    <h3 style="margin:0 0 8px; font-size:14px; text-transform:uppercase; letter-spacing:0.05em; color:#374151;">Sources</h3>
    <ul style="margin:0; padding-left:20px; font-size:14px;">{sources_html}</ul>
  </div>

</body>
</html>"""


def send_report(to_email: str, report, from_email: str, incident=None, region: str = "us-east-1") -> None:
    """
    Email the rendered report as HTML.
    Raises on failure; export is the whole point of the request.
    """
    label = SEVERITY_LABELS.get(report.severity, report.severity.upper())
    subject = f"[{label}] Incident report: {report.title}"
    if report.case_number:
        subject += f" (Case {report.case_number})"

    _send(
        to_email,
        subject,
        {"Html": {"Data": render_report_html(report, incident), "Charset": "UTF-8"}},
        from_email,
        region,
    )
    logger.info("Report email sent | to=%s | severity=%s", to_email, report.severity)


def split_draft(draft: str) -> tuple[str, str]:
    """Pull a leading 'Subject:' line out of a draft; returns (subject, body)."""
    lines = draft.strip().splitlines()
    if lines:
        first = lines[0].strip().strip("*").strip()
        if first.lower().startswith("subject:"):
            subject = first.split(":", 1)[1].strip().strip("*").strip()
            return subject or DRAFT_DEFAULT_SUBJECT, "\n".join(lines[1:]).strip()
    return DRAFT_DEFAULT_SUBJECT, draft.strip()


def send_draft(to_email: str, draft: str, from_email: str, region: str = "us-east-1") -> None:
    """Send the lawyer draft as plain text so the user can forward or edit it."""
    subject, body = split_draft(draft)
    body += (
        "\n\n---\n"
        "This draft was generated automatically. Review it and replace the placeholders before sending it on."
    )
    _send(to_email, subject, {"Text": {"Data": body, "Charset": "UTF-8"}}, from_email, region)
    logger.info("Draft email sent | to=%s", to_email)
