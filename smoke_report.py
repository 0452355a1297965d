"""
CoParent Intake report generation smoke run.

Run locally against the live API before deploying the Lambda:
    pip install -e .
    ANTHROPIC_API_KEY=sk-ant-... python smoke_report.py

Prints a pass/fail table for each scenario and writes smoke_results.json.
"""

import json
import os
import sys
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "coparent-intake"))

from ai_client import ApiError, ModelClient  # noqa: E402
from config import load_config  # noqa: E402
from models import IncidentData, REPORT_CATEGORIES, SEVERITIES  # noqa: E402
from validation import validate_through  # noqa: E402

CONFIG = load_config()
if not CONFIG.has_credential:
    sys.exit("ERROR: Set ANTHROPIC_API_KEY environment variable before running.")

SCENARIOS = [
    {
        "id": "SC01",
        "label": "Late pickup at exchange, no evidence",
        "incident": {
            "consentAcknowledged": True,
            "date": "2024-01-05",
            "time": "14:30",
            "narrative": "Pickup was scheduled at 2pm; the other parent arrived at 3:40pm.",
            "parties": ["Ex-spouse/Co-parent"],
            "children": [],
            "jurisdiction": "Ontario, Canada",
        },
        "expect_category": "Parenting Time Violation",
    },
    {
        "id": "SC02",
        "label": "Disparaging remarks in front of child",
        "incident": {
            "consentAcknowledged": True,
            "date": "2024-03-12",
            "time": "18:05",
            "narrative": (
                "During the handover at the school parking lot the other parent called me a liar "
                "and said I don't love the kids while Child A was standing next to us. Child A cried "
                "in the car afterwards and asked if it was true."
            ),
            "parties": ["Ex-spouse/Co-parent", "Witness"],
            "children": ["Child A"],
            "jurisdiction": "British Columbia, Canada",
        },
        "expect_category": "Hostile/Disparaging Conduct",
    },
    {
        "id": "SC03",
        "label": "Child left unsupervised, high severity",
        "incident": {
            "consentAcknowledged": True,
            "date": "2024-06-20",
            "time": "21:15",
            "narrative": (
                "A neighbour called me at 9pm to say both children, ages 4 and 6, were alone in the "
                "other parent's apartment. Police attended and stayed until the other parent returned "
                "at 11pm."
            ),
            "parties": ["Ex-spouse/Co-parent", "Police/First Responder"],
            "children": ["Child A", "Child B"],
            "jurisdiction": "Alberta, Canada",
            "caseNumber": "FS-24-0193",
        },
        "expect_category": "Child Safety & Welfare",
        "expect_severity": "High",
    },
    {
        "id": "SC04",
        "label": "Unpaid extracurricular expenses",
        "incident": {
            "consentAcknowledged": True,
            "date": "2024-02-01",
            "time": "09:00",
            "narrative": (
                "The other parent has refused for three months to pay their half of the hockey fees "
                "that our order says are shared 50/50. I have the invoices and their text refusing."
            ),
            "parties": ["Ex-spouse/Co-parent"],
            "children": ["Child B"],
            "jurisdiction": "Ontario, Canada",
            "evidence": [
                {"name": "hockey_invoice.pdf", "size": 48211, "type": "application/pdf",
                 "category": "Document", "description": "Invoice for winter season"},
            ],
        },
        "expect_category": "Financial Disputes",
    },
]

PASS = "\033[92mPASS\033[0m"
FAIL = "\033[91mFAIL\033[0m"
WARN = "\033[93mWARN\033[0m"


def check(report, sc: dict) -> list[str]:
    """Return list of failure reasons. Empty = pass."""
    failures = []

    if report.category not in REPORT_CATEGORIES:
        failures.append(f"category '{report.category}' not in enumerated list")
    if report.severity not in SEVERITIES:
        failures.append(f"severity '{report.severity}' not in enumerated list")

    if "expect_category" in sc and report.category != sc["expect_category"]:
        failures.append(f"category expected '{sc['expect_category']}', got '{report.category}'")

    if "expect_severity" in sc and report.severity != sc["expect_severity"]:
        failures.append(f"severity expected '{sc['expect_severity']}', got '{report.severity}'")

    if sc["incident"].get("caseNumber") and report.case_number != sc["incident"]["caseNumber"]:
        failures.append("case number was not merged into the report")

    return failures


def run_scenarios():
    client = ModelClient(CONFIG)
    results_log = []
    passed = 0
    failed = 0

    print(f"\n{'='*80}")
    print("  CoParent Intake — Report Generation Smoke Run")
    print(f"{'='*80}\n")

    for sc in SCENARIOS:
        print(f"[{sc['id']}] {sc['label']}")
        incident = IncidentData.from_dict(sc["incident"])

        errors = validate_through(incident, 5)
        if errors:
            print(f"  Status     : {FAIL} (VALIDATION)")
            print(f"  Errors     : {errors}")
            failed += 1
            results_log.append({"id": sc["id"], "passed": False, "failures": list(errors.values())})
            print()
            continue

        start = time.time()
        try:
            report = client.generate_report(incident)
            elapsed_ms = int((time.time() - start) * 1000)

            failures = check(report, sc)
            status = PASS if not failures else FAIL

            print(f"  Status     : {status}")
            print(f"  title      : {report.title}")
            print(f"  category   : {report.category}")
            print(f"  severity   : {report.severity}")
            print(f"  sources    : {len(report.sources)} urls")
            print(f"  time       : {elapsed_ms}ms")

            if failures:
                for f in failures:
                    print(f"  {FAIL}: {f}")
                failed += 1
            else:
                passed += 1

            results_log.append({
                "id": sc["id"],
                "label": sc["label"],
                "passed": not failures,
                "report": report.to_dict(),
                "elapsed_ms": elapsed_ms,
                "failures": failures,
            })

        except ApiError as e:
            elapsed_ms = int((time.time() - start) * 1000)
            print(f"  Status     : {FAIL} (API ERROR)")
            print(f"  Error      : {e.message} | retryable={e.retryable}")
            failed += 1
            results_log.append({
                "id": sc["id"],
                "label": sc["label"],
                "passed": False,
                "error": e.message,
                "elapsed_ms": elapsed_ms,
                "failures": [e.message],
            })

        print()

    print(f"{'='*80}")
    print(f"  Results: {passed} passed / {failed} failed / {len(SCENARIOS)} total")

    if failed == 0:
        print(f"  {PASS} All scenarios passed.")
    elif failed <= 1:
        print(f"  {WARN} {failed} failure — categories are model judgement calls; review before changing prompts.")
    else:
        print(f"  {FAIL} {failed} failures — review prompt and re-run failing scenarios.")

    print(f"{'='*80}\n")

    with open("smoke_results.json", "w") as f:
        json.dump(results_log, f, indent=2)
    print("  Full results written to smoke_results.json\n")


if __name__ == "__main__":
    run_scenarios()
