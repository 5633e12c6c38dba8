"""
Templated draft generation

Drafts are assembled from a fixed per-tone template and the user's objective,
split into segments that fill a three item checklist. Output only depends on
the inputs and the calendar day.
"""

import html
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .schemas import DraftRequest, Tone

SENDER_NAME_TOKEN = "{{sender_name}}"
MISSING_DETAIL = "Add detail here."

DEFAULT_INTRO = "I'm outlining the key points so you have everything you need at a glance."
DEFAULT_CHECKLIST = ("Current status", "Next recommended steps", "Timeline and owners")

_SEGMENT_SEPARATORS = re.compile(r"\r?\n|;")


@dataclass(frozen=True)
class ToneTemplate:
    greeting: str
    closing: str
    signoff: str
    intro: str = DEFAULT_INTRO
    checklist: tuple[str, str, str] = DEFAULT_CHECKLIST


TONE_TEMPLATES: dict[Tone, ToneTemplate] = {
    Tone.PROFESSIONAL: ToneTemplate(
        greeting="I hope you're well.",
        closing="Please let me know if you need anything else.",
        signoff="Best regards",
    ),
    Tone.FRIENDLY: ToneTemplate(
        greeting="Hope you've been doing great!",
        closing="Excited to hear your thoughts.",
        signoff="Cheers",
    ),
    Tone.PERSUASIVE: ToneTemplate(
        greeting="I appreciate your time.",
        closing="I'd love to move this forward together.",
        signoff="Warm regards",
        checklist=(
            "Why this matters now",
            "Key benefits you can expect",
            "What support we provide next",
        ),
    ),
    Tone.APOLOGETIC: ToneTemplate(
        greeting="I want to acknowledge what happened right away.",
        closing="Thanks for your patience and understanding.",
        signoff="Sincerely",
        intro=(
            "I take full responsibility for the inconvenience and I want to outline "
            "how we'll put this right immediately."
        ),
        checklist=(
            "What caused the issue",
            "Immediate steps we're taking",
            "How we'll prevent this going forward",
        ),
    ),
    Tone.URGENT: ToneTemplate(
        greeting="I'm reaching out with an urgent update.",
        closing="A quick reply would be incredibly helpful.",
        signoff="Thank you",
        intro="I'm sharing a concise overview so we can act on this without delay.",
    ),
}


def segment_objective(objective: Optional[str]) -> list[str]:
    """
    Split an objective into checklist details.

    Line breaks and semicolons separate segments. When that yields nothing
    and the text reads as sentences, it is split on periods instead.
    """
    objective = objective or ""
    segments = [s.strip() for s in _SEGMENT_SEPARATORS.split(objective) if s.strip()]
    if segments:
        return segments

    if ". " in objective:
        return [part.strip() for part in objective.split(".") if part.strip()]

    trimmed = objective.strip()
    return [trimmed] if trimmed else []


def pair_checklist(checklist: tuple[str, ...], segments: list[str]) -> list[tuple[str, str]]:
    """Match each label with its segment, reusing the last one when segments run out"""
    pairs = []
    for index, label in enumerate(checklist):
        if index < len(segments):
            detail = segments[index]
        elif segments:
            detail = segments[-1]
        else:
            detail = MISSING_DETAIL
        pairs.append((label, detail))
    return pairs


def escape_user_text(text: str) -> str:
    """Render user text literally, including braces that would form a sender token"""
    return html.escape(text, quote=False).replace("{", "&#123;").replace("}", "&#125;")


def weekday_phrase(today: date) -> str:
    return "Have a restful weekend!" if today.weekday() == 4 else "All the best"


def build_draft(request: DraftRequest, today: Optional[date] = None) -> str:
    """
    Generate the HTML body for a draft.

    Args:
        request: Objective, tone and optional context
        today: Calendar day used for the sign-off line (defaults to today)

    Returns:
        HTML with greeting, intro, optional context, a three item checklist,
        closing and a sign-off ending in the sender name token
    """
    today = today or date.today()
    template = TONE_TEMPLATES[request.tone]
    segments = [escape_user_text(s) for s in segment_objective(request.objective)]

    items = "".join(
        f"<li><strong>{label}:</strong> {detail}</li>"
        for label, detail in pair_checklist(template.checklist, segments)
    )

    blocks = [f"<p>{template.greeting}</p>", f"<p>{template.intro}</p>"]
    context = (request.context or "").strip()
    if context:
        blocks.append(f"<p><strong>Context</strong>: {escape_user_text(context)}</p>")
    blocks.append(f"<ul>{items}</ul>")
    blocks.append(f"<p>{template.closing}</p>")
    blocks.append(
        f"<p>{template.signoff},<br/>{weekday_phrase(today)},<br/>{SENDER_NAME_TOKEN}</p>"
    )
    return "\n".join(blocks)
