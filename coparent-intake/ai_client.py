import json
import logging
import re

import anthropic

import prompt
from models import LEGAL_DISCLAIMER, REPORT_CATEGORIES, REPORT_FIELDS, SEVERITIES, ReportData

logger = logging.getLogger(__name__)

REPORT_MAX_TOKENS = 4096
DRAFT_MAX_TOKENS = 1024

# a reworded or shortened disclaimer sentence the model wrote in place of the fixed one
_LOOSE_DISCLAIMER = re.compile(r"^This is not legal advice\b[^.\n]*\.?\s*", re.IGNORECASE)


class ApiError(Exception):
    """Any failure to get a usable answer from the model API."""

    def __init__(self, message: str, cause: Exception | None = None, retryable: bool = False,
                 status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.retryable = retryable
        self.status_code = status_code


def _strip_fences(text: str) -> str:
    """Remove accidental markdown code fences from model output."""
    text = text.strip()
    if text.startswith("```"):
        parts = text.split("```")
        content = parts[1]
        if content.startswith("json"):
            content = content[4:]
        return content.strip()
    return text


def _validate_report(result: dict) -> None:
    """Raise ValueError on any schema violation."""
    missing = set(REPORT_FIELDS) - result.keys()
    if missing:
        raise ValueError(f"Missing required keys: {sorted(missing)}")

    if result["category"] not in REPORT_CATEGORIES:
        raise ValueError(f"Invalid category: '{result['category']}'")

    if result["severity"] not in SEVERITIES:
        raise ValueError(f"Invalid severity: '{result['severity']}'")

    sources = result["sources"]
    if not isinstance(sources, list) or not sources:
        raise ValueError("sources must be a non-empty list of URLs")
    for i, url in enumerate(sources):
        if not isinstance(url, str) or not url.strip():
            raise ValueError(f"sources[{i}] is not a string")

    for key in REPORT_FIELDS:
        if key == "sources":
            continue
        if not isinstance(result[key], str) or not result[key].strip():
            raise ValueError(f"'{key}' must be a non-empty string")


def _ensure_disclaimer(legal_insights: str) -> str:
    text = legal_insights.strip()
    if text.startswith(LEGAL_DISCLAIMER):
        return text
    logger.warning("legalInsights missing disclaimer, prepending it")
    body = _LOOSE_DISCLAIMER.sub("", text, count=1).strip()
    return f"{LEGAL_DISCLAIMER}\n\n{body}" if body else LEGAL_DISCLAIMER


class ModelClient:
    """
    Report, draft and evidence calls against the Anthropic Messages API.
    Every call goes through call_model(); there is no internal retry.
    """

    def __init__(self, config, client=None):
        self.config = config
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.config.anthropic_api_key,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def call_model(
        self,
        messages: list[dict],
        system: str | None = None,
        json_mode: bool = False,
        max_tokens: int = DRAFT_MAX_TOKENS,
    ):
        """
        Send one Messages request. Returns the response text, or the parsed
        JSON object when json_mode is set. Raises ApiError on any failure.
        """
        if not self.config.has_credential:
            raise ApiError("ANTHROPIC_API_KEY is not configured. Cannot call the AI service.")

        kwargs = {
            "model": self.config.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        try:
            response = self._get_client().messages.create(**kwargs)
        except anthropic.APITimeoutError as e:
            logger.error("Model call timed out | timeout=%ss", self.config.timeout_seconds)
            raise ApiError("The AI service timed out. Please try again.", cause=e, retryable=True) from e
        except anthropic.APIConnectionError as e:
            logger.error("Model call connection failed | error=%s", str(e))
            raise ApiError("Could not reach the AI service. Please try again.", cause=e, retryable=True) from e
        except anthropic.APIStatusError as e:
            logger.error("Model call failed | status=%s | error=%s", e.status_code, str(e))
            raise ApiError(
                f"AI service request failed with status {e.status_code}.",
                cause=e,
                status_code=e.status_code,
            ) from e

        raw_text = "".join(
            getattr(block, "text", "") for block in response.content
            if getattr(block, "type", "text") == "text"
        )
        logger.debug("Raw model response: %s", raw_text)

        if not json_mode:
            return raw_text

        try:
            result = json.loads(_strip_fences(raw_text))
        except json.JSONDecodeError as e:
            logger.error("JSON parse failed. Raw text was: %s", raw_text)
            raise ApiError("The AI service returned invalid JSON.", cause=e) from e

        if not isinstance(result, dict):
            raise ApiError("The AI service returned JSON that is not an object.")
        return result

    def generate_report(self, incident) -> ReportData:
        """Build the structured incident report. Raises ApiError on failure."""
        result = self.call_model(
            messages=[{"role": "user", "content": prompt.build_report_prompt(incident)}],
            system=prompt.REPORT_SYSTEM_PROMPT,
            json_mode=True,
            max_tokens=REPORT_MAX_TOKENS,
        )

        try:
            _validate_report(result)
        except ValueError as e:
            logger.error("Report schema check failed | error=%s", str(e))
            raise ApiError("The AI service returned an incomplete report.", cause=e) from e

        result["legalInsights"] = _ensure_disclaimer(result["legalInsights"])
        report = ReportData.from_dict(result).with_case_number(incident.case_number)

        logger.info(
            "Report generated | category=%s | severity=%s | sources=%d",
            report.category,
            report.severity,
            len(report.sources),
        )
        return report

    def generate_draft(self, summary: str, legal_insights: str, date: str,
                       case_number: str | None = None) -> str:
        """Draft a plain-text email to the user's lawyer."""
        draft = self.call_model(
            messages=[{"role": "user", "content": prompt.build_draft_prompt(summary, legal_insights, date, case_number)}],
            system=prompt.DRAFT_SYSTEM_PROMPT,
            max_tokens=DRAFT_MAX_TOKENS,
        ).strip()

        if not draft:
            logger.error("Draft response was empty | date=%s", date)
            raise ApiError("The AI service returned an empty communication draft.")

        logger.info("Draft generated | chars=%d", len(draft))
        return draft
