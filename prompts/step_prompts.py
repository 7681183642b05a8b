"""User-facing message templates for each verification step.

Shown with every step prompt in the flow. Failure messages name the
specific reason because the fix differs (re-check the number vs re-enter
it in the right format).
"""

from typing import Optional

STEP_PROMPTS: dict[str, str] = {
    "aadhaar": (
        "🪪 **Aadhaar Verification**\n\n"
        "Enter your 12-digit Aadhaar number to verify your identity."
    ),
    "passport": (
        "🛂 **Passport Verification**\n\n"
        "Enter your passport number (8 to 10 letters and digits)."
    ),
    "email": (
        "📧 **Email Verification**\n\n"
        "We sent a {length}-digit code to your email. Enter it below."
    ),
    "phone": (
        "📱 **Phone Verification**\n\n"
        "We sent a {length}-digit code to your phone. Enter it below."
    ),
    "face": (
        "🙂 **Face Verification**\n\n"
        "Look into the camera and capture a clear photo of your face."
    ),
    "party": (
        "🏛️ **Party Registration**\n\n"
        "As a candidate, select your political party affiliation:\n{parties}"
    ),
}

FAILURE_MESSAGES: dict[str, str] = {
    "not_found": "⚠️ We couldn't find a match for what you entered. Please check it and try again.",
    "malformed": "⚠️ That doesn't look right. Please re-enter it in the requested format.",
    "already_verified": "✅ This step was already completed.",
    "expired": "⌛ That code is no longer valid. We've sent you a new one.",
    "service_unavailable": "🔌 Verification is temporarily unavailable. Please try again shortly.",
}

SUCCESS_MESSAGES: dict[str, str] = {
    "aadhaar": "✅ Aadhaar verified successfully.",
    "passport": "✅ Passport verified successfully.",
    "email": "✅ Email verified successfully.",
    "phone": "✅ Phone verified successfully.",
    "face": "✅ Face verification successful.",
    "party": "✅ Party registration complete.",
}


def get_step_prompt(step_id: str, failure_reason: Optional[str] = None, **fields) -> str:
    """Build the prompt for a step, prefixed with the last failure if any."""
    base = STEP_PROMPTS.get(step_id, "Complete this step to continue your verification.")
    message = base.format(**fields) if fields else base
    if failure_reason:
        return f"{FAILURE_MESSAGES.get(failure_reason, FAILURE_MESSAGES['not_found'])}\n\n{message}"
    return message
