import json

import pytest
from botocore.exceptions import ClientError

import emailer
import handler
from config import Config
from steps import STEPS


def _event(method, path, body=None):
    event = {"requestContext": {"http": {"method": method}}, "rawPath": path}
    if body is not None:
        event["body"] = body if isinstance(body, str) else json.dumps(body)
    return event


def _call(method, path, body=None):
    resp = handler.lambda_handler(_event(method, path, body), None)
    return resp["statusCode"], json.loads(resp["body"])


@pytest.fixture
def fake_model(monkeypatch, make_client, config):
    """Route handler model calls through a FakeAnthropic with queued replies."""

    def _install(*responses, cfg=None):
        cfg = cfg or config
        client, fake = make_client(*responses, cfg=cfg)
        monkeypatch.setattr(handler, "CONFIG", cfg)
        monkeypatch.setattr(handler, "_model_client", lambda: client)
        return fake

    return _install


class FakeSES:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_email(self, **kwargs):
        if self.error:
            raise self.error
        self.sent.append(kwargs)


@pytest.fixture
def ses(monkeypatch):
    fake = FakeSES()
    monkeypatch.setattr(emailer, "_ses_client", lambda region="us-east-1": fake)
    monkeypatch.setattr(handler, "CONFIG", Config(anthropic_api_key="k", from_email="noreply@test.com"))
    return fake


def _incident_body(incident):
    return {"incident": incident.to_dict()}


def test_options_preflight():
    status, body = _call("OPTIONS", "/report")
    assert status == 200
    assert body == {}


def test_unknown_route():
    status, body = _call("GET", "/nope")
    assert status == 404
    assert "Route not found" in body["error"]


def test_steps_route():
    status, body = _call("GET", "/steps")
    assert status == 200
    assert [s["number"] for s in body["steps"]] == [1, 2, 3, 4, 5, 6]
    assert "Ex-spouse/Co-parent" in body["parties"]
    assert "Ontario, Canada" in body["jurisdictions"]


def test_invalid_json_body():
    status, body = _call("POST", "/report", "{not json")
    assert status == 400
    assert body["error"] == "Invalid JSON in request body."


def test_report_success(fake_model, incident, report_json):
    fake = fake_model(report_json)
    incident.case_number = "FS-1"
    status, body = _call("POST", "/report", _incident_body(incident))
    assert status == 200
    assert body["category"] == "Parenting Time Violation"
    assert body["caseNumber"] == "FS-1"
    assert len(fake.calls) == 1


def test_report_validation_failure_makes_no_call(fake_model, incident):
    fake = fake_model()
    incident.consent_acknowledged = False
    incident.narrative = "too short"
    status, body = _call("POST", "/report", _incident_body(incident))
    assert status == 400
    assert set(body["errors"]) == {"consentAcknowledged", "narrative"}
    assert fake.calls == []


def test_report_without_credential_is_503(fake_model, no_key_config, incident):
    fake = fake_model(cfg=no_key_config)
    status, body = _call("POST", "/report", _incident_body(incident))
    assert status == 503
    assert fake.calls == []


def test_report_bad_model_output_is_502(fake_model, incident):
    fake_model("no json here")
    status, body = _call("POST", "/report", _incident_body(incident))
    assert status == 502
    assert body["retryable"] is False


def test_draft_route(fake_model):
    fake_model("Subject: Update\n\nBody")
    status, body = _call("POST", "/draft", {
        "professionalSummary": "Summary.",
        "legalInsights": "Insights.",
        "date": "2024-01-05",
    })
    assert status == 200
    assert body["draft"] == "Subject: Update\n\nBody"


def test_draft_requires_fields(fake_model):
    fake_model()
    status, _ = _call("POST", "/draft", {"legalInsights": "x"})
    assert status == 400


def test_evidence_route_placeholder(fake_model):
    fake = fake_model()
    status, body = _call("POST", "/evidence/analyze", {
        "file": {"name": "clip.mp4", "type": "video/mp4", "category": "Video"},
        "narrative": "x",
    })
    assert status == 200
    assert "video files is in development" in body["aiAnalysis"]
    assert fake.calls == []


def test_evidence_route_strips_data_uri(fake_model):
    fake = fake_model("Relevant.")
    status, body = _call("POST", "/evidence/analyze", {
        "file": {"name": "a.png", "type": "image/png", "category": "Screenshot",
                 "base64": "data:image/png;base64,QUJD"},
        "narrative": "x",
    })
    assert status == 200
    image = fake.calls[0]["messages"][0]["content"][1]
    assert image["source"]["data"] == "QUJD"


def test_evidence_route_requires_file(fake_model):
    fake_model()
    status, _ = _call("POST", "/evidence/analyze", {"narrative": "x"})
    assert status == 400


def test_wizard_next_and_errors(fake_model):
    fake_model()
    status, body = _call("POST", "/wizard", {"action": "next", "state": {}})
    assert status == 200
    assert body["moved"] is False
    assert body["state"]["currentStep"] == 1
    assert "consentAcknowledged" in body["state"]["errors"]
    assert body["canProceed"] is False


def test_wizard_generates_report_leaving_evidence(fake_model, incident, report_json):
    fake = fake_model(report_json)
    state = {"incident": incident.to_dict(), "currentStep": 5}
    status, body = _call("POST", "/wizard", {"action": "next", "state": state})
    assert status == 200
    assert body["moved"] is True
    assert body["state"]["currentStep"] == 6
    assert body["state"]["report"]["severity"] == "Low"
    assert body["state"]["modal"]["type"] == "success"
    assert len(fake.calls) == 1


def test_wizard_goto_validates_step_argument(fake_model):
    fake_model()
    status, _ = _call("POST", "/wizard", {"action": "goto", "step": 12, "state": {}})
    assert status == 400


def test_wizard_dismiss_clears_modal(fake_model):
    fake_model()
    state = {"modal": {"title": "t", "message": "m", "type": "error"}}
    status, body = _call("POST", "/wizard", {"action": "dismiss", "state": state})
    assert status == 200
    assert body["state"]["modal"] is None


def test_wizard_unknown_action(fake_model):
    fake_model()
    status, _ = _call("POST", "/wizard", {"action": "jump", "state": {}})
    assert status == 400


def test_wizard_invalid_state(fake_model):
    fake_model()
    status, _ = _call("POST", "/wizard", {"action": "next", "state": {"currentStep": 0}})
    assert status == 400


def test_export_sends_report_and_draft(ses, report_payload, incident):
    status, body = _call("POST", "/export", {
        "toEmail": "me@example.com",
        "report": report_payload,
        "incident": incident.to_dict(),
        "draft": "Subject: Update re: Incident on 2024-01-05\n\nDear [Lawyer's Name],",
    })
    assert status == 200
    assert body["draftSent"] is True
    assert len(ses.sent) == 2
    html_msg, text_msg = ses.sent
    assert html_msg["Destination"] == {"ToAddresses": ["me@example.com"]}
    assert "Parenting Time Violation" in html_msg["Message"]["Body"]["Html"]["Data"]
    assert text_msg["Message"]["Subject"]["Data"] == "Update re: Incident on 2024-01-05"


def test_export_requires_sender(monkeypatch, report_payload):
    monkeypatch.setattr(handler, "CONFIG", Config(anthropic_api_key="k", from_email=None))
    status, _ = _call("POST", "/export", {"toEmail": "me@example.com", "report": report_payload})
    assert status == 503


def test_export_rejects_incomplete_report(ses, report_payload):
    del report_payload["title"]
    status, body = _call("POST", "/export", {"toEmail": "me@example.com", "report": report_payload})
    assert status == 400
    assert ses.sent == []


def test_export_ses_failure(ses, report_payload):
    ses.error = ClientError({"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
                            "SendEmail")
    status, body = _call("POST", "/export", {"toEmail": "me@example.com", "report": report_payload})
    assert status == 500


@pytest.mark.parametrize("state", [
    {"modal": "oops"},
    {"errors": ["date"]},
    {"draft": 7},
    {"report": "not a report"},
    {"incident": {"evidence": [{"name": "a.png", "base64": 12}]}},
])
def test_wizard_malformed_state_is_400(fake_model, state):
    fake = fake_model()
    status, body = _call("POST", "/wizard", {"action": "next", "state": state})
    assert status == 400
    assert "error" in body
    assert fake.calls == []


@pytest.mark.parametrize("file", [
    {"name": "a.png", "type": "image/png", "category": "Screenshot", "base64": 12},
    {"name": "a.png", "type": "image/png", "category": "Screenshot", "aiAnalysis": ["x"]},
])
def test_evidence_route_rejects_non_string_fields(fake_model, file):
    fake = fake_model()
    status, _ = _call("POST", "/evidence/analyze", {"file": file, "narrative": "x"})
    assert status == 400
    assert fake.calls == []


def test_export_rejects_non_string_report_field(ses, report_payload):
    report_payload["title"] = {"text": "Late pickup"}
    status, _ = _call("POST", "/export", {"toEmail": "me@example.com", "report": report_payload})
    assert status == 400
    assert ses.sent == []


def test_wizard_response_carries_step_entry(fake_model):
    fake_model()
    status, body = _call("POST", "/wizard", {"action": "validate", "state": {"currentStep": 5}})
    assert status == 200
    assert body["step"]["component"] == "Step4Evidence"
    assert body["step"]["title"] == STEPS[4].title
