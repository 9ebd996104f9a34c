"""
Receivables audit vocabulary (PSAK 71 / IFRS 9) used for prompting and reporting.
"""

from typing import Dict, List

from audit_assistant.config import CONFIG

AUDIT_STANDARDS_MAP: List[Dict[str, str]] = [
    {
        "standard": "PSAK 71",
        "purpose": "Indonesian adoption of IFRS 9 for financial instruments and expected credit losses.",
        "focus": "Impairment of trade receivables using a forward-looking expected credit loss model.",
    },
    {
        "standard": "IFRS 9",
        "purpose": "Classification, measurement and impairment of financial assets.",
        "focus": "Simplified approach: lifetime ECL for trade receivables, often via a provision matrix by aging bucket.",
    },
]

BUCKET_GUIDANCE: Dict[str, str] = {
    "Current": "Within terms. Confirm subsequent receipts and cut-off.",
    "Overdue": "Past due but not impaired. Review collection correspondence and payment plans.",
    "Impaired": "Credit-impaired indicator. Assess lifetime expected credit loss and allowance adequacy.",
}

FINDING_RECOMMENDATIONS: Dict[str, str] = {
    "negative_balance": (
        "Reclassify credit balances to payables or customer deposits, and confirm whether they arise "
        "from overpayments, unapplied cash, or unrecorded credit notes."
    ),
    "impairment_risk": (
        "Perform a PSAK 71 / IFRS 9 expected credit loss assessment for these accounts and compare the "
        "required allowance with the recorded provision."
    ),
}


def aging_policy_text() -> str:
    """One-line description of the aging classification thresholds."""
    rules = CONFIG.rules
    return (
        f"Current: up to {rules.overdue_after_days} days; "
        f"Overdue: {rules.overdue_after_days + 1}-{rules.impaired_after_days} days; "
        f"Impaired: over {rules.impaired_after_days} days."
    )
