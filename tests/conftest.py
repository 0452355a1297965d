import json
import os
import sys
from datetime import datetime
from types import SimpleNamespace

import pytest

# Set env vars before handler is imported (it reads config at import time)
os.environ["ANTHROPIC_API_KEY"] = "test-key"
os.environ["FROM_EMAIL"] = "noreply@test.com"

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "coparent-intake"))

from config import Config  # noqa: E402
from models import LEGAL_DISCLAIMER, IncidentData  # noqa: E402


class FakeMessages:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=response)])


class FakeAnthropic:
    """Stands in for anthropic.Anthropic; replies with queued texts or raises queued errors."""

    def __init__(self, *responses):
        self.messages = FakeMessages(responses)

    @property
    def calls(self):
        return self.messages.calls


@pytest.fixture
def config():
    return Config(anthropic_api_key="test-key", model="test-model", timeout_seconds=5.0)


@pytest.fixture
def no_key_config():
    return Config(anthropic_api_key=None)


@pytest.fixture
def make_client(config):
    from ai_client import ModelClient

    def _make(*responses, cfg=None):
        fake = FakeAnthropic(*responses)
        return ModelClient(cfg or config, client=fake), fake

    return _make


@pytest.fixture
def report_payload():
    return {
        "title": "Late Arrival at Parenting Time Exchange on 2024-01-05",
        "professionalSummary": "Context paragraph.\nChronology paragraph.\nOutcome paragraph.",
        "category": "Parenting Time Violation",
        "severity": "Low",
        "severityJustification": "The delay caused inconvenience but no risk to the children.",
        "legalInsights": LEGAL_DISCLAIMER + "\n\nOntario's [Children's Law Reform Act](https://www.ontario.ca/laws/statute/90c12) applies.",
        "sources": [
            "https://www.ontario.ca/page/family-law",
            "https://www.justice.gc.ca/eng/fl-df/index.html",
        ],
        "observedImpact": "No direct impact on the children was described.",
        "aiNotes": (
            "**Evidence Analysis:**\n- None attached.\n"
            "**Evidence Gaps & Recommendations:**\n- Save text messages.\n"
            "**Communication Strategy:**\n- Keep messages brief.\n"
            "**Documentation Best Practices:**\n- Log times promptly."
        ),
    }


@pytest.fixture
def report_json(report_payload):
    return json.dumps(report_payload)


@pytest.fixture
def incident():
    return IncidentData(
        consent_acknowledged=True,
        date="2024-01-05",
        time="14:30",
        narrative="The other parent arrived 70 minutes late to pickup",
        parties=["Ex-spouse/Co-parent"],
        children=[],
        jurisdiction="Ontario, Canada",
    )


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0)
