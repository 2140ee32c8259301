"""
utils.py

Short operator-facing messages for phase progress.
"""
from typing import Dict, Optional


def phase_success_message(title: str, details: Optional[Dict[str, str]] = None) -> str:
    summary = f" ({message_summary(details)})" if details else ""
    return f"✅ Step [{title}] completed successfully{summary}."


def phase_failure_message(title: str, error: Exception) -> str:
    return f"❌ Step [{title}] failed: {error}"


def message_summary(details: Optional[Dict[str, str]]) -> str:
    """
    One-line `key=value` summary of a phase result, highlighting the paths and addresses operators look for.
    """
    if not details:
        return ""

    keys_to_highlight = ["output", "input", "bridge", "mode"]
    summary_parts = [f"{key}={details[key]}" for key in keys_to_highlight if key in details]
    return " | ".join(summary_parts) or " | ".join(f"{k}={v}" for k, v in list(details.items())[:3])
