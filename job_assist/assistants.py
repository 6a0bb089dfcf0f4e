"""
AI-assisted features built on the pipeline.

Each feature is three things: a prompt builder that turns stored records into
a prompt, the shape the reply must match (see prompts.py), and a fallback
value returned whenever the model is down or answers nonsense. The public
functions here just wire those into `pipeline.run()`.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

import config
import prompts as _prompts

from .models import (
    Activity,
    Application,
    Company,
    Document,
    days_since_applied,
    days_since_last_interaction,
    days_until_deadline,
    last_interaction,
)
from .pipeline import CompletionClient, PipelineResult, PreconditionError, run
from .shapes import Shape, describe


# ── Fallbacks ─────────────────────────────────────────────────

MATCHING_FALLBACK = {
    "score": 50,
    "analysis": "The compatibility could not be analysed automatically.",
    "strengths": [],
    "gaps": [],
    "recommendations": [],
}

CV_ANALYSIS_FALLBACK = {
    "score": 50,
    "overall": "The CV could not be analysed automatically.",
    "strengths": [],
    "weaknesses": [],
    "recommendations": [],
    "missing_sections": [],
    "keywords": [],
}

SUGGESTIONS_FALLBACK = {
    "next_action": {
        "title": "Follow up on the application",
        "description": "Check the status of this application regularly.",
        "urgency": "medium",
        "suggested_date": None,
    },
    "tips": [
        "Check the status of the application regularly",
        "Prepare questions for a possible interview",
    ],
    "email_draft": None,
}

FOLLOW_UP_EMAIL_FALLBACK = {
    "subject": "Following up on my application",
    "body": (
        "Hello,\n\n"
        "I recently applied for a position with your team and wanted to follow up "
        "on my application. I remain very interested in the role and would be glad "
        "to hear about the next steps of the recruitment process.\n\n"
        "Thank you for your time and consideration.\n\n"
        "Kind regards,"
    ),
}

OFFER_FALLBACK = {name: None for name in _prompts.OFFER_SHAPE.fields}

CV_TEMPLATE = """\
# [Your Name]

**Email:** [your.email@example.com] | **Phone:** [+00 0 00 00 00 00] | **Location:** [City, Country]
**LinkedIn:** [linkedin.com/in/your-profile]

---

## Professional Summary

[Two or three sentences describing your profile, your experience and what you are looking for.]

---

## Skills

- **Technical:** [Skill 1, Skill 2, Skill 3]
- **Tools:** [Tool 1, Tool 2]
- **Soft skills:** [Skill 1, Skill 2]

---

## Experience

### [Job Title] – [Company]
*[Start date] – [End date]* | [Location]

- [Key achievement or responsibility]
- [Key achievement or responsibility]

---

## Education

### [Degree] – [School]
*[Year]*

---

## Languages

- [Language]: [Level]
"""

COVER_LETTER_TEMPLATE = """\
[Your Name]
[Address]
[Email] | [Phone]

[Company Name]
[Company Address]

[City], [Date]

**Subject: Application for the position of [Job Title]**

Dear Hiring Manager,

[Opening paragraph: the position you are applying for and how you found it.]

[Second paragraph: your relevant experience and skills, with one or two concrete examples.]

[Third paragraph: why this company, and what you would bring to the team.]

I would welcome the opportunity to discuss my application with you in an interview.

Yours sincerely,

[Your Name]
"""

DOCUMENT_FALLBACKS = {
    "cv": {"content": CV_TEMPLATE},
    "cover_letter": {"content": COVER_LETTER_TEMPLATE},
}


# ── Features ──────────────────────────────────────────────────

def score_matching(
    application: Optional[Application],
    cv: Optional[Document],
    *,
    client: CompletionClient,
    model: str,
) -> PipelineResult:
    """Compatibility score between the user's CV and one application."""

    def build() -> str:
        _require(application, "application")
        if cv is None or not cv.content.strip():
            raise PreconditionError("No CV found. Add a CV to compute a matching score.")
        return _compose(
            [
                ("CANDIDATE CV", cv.content[: config.CV_PROMPT_CHARS]),
                ("JOB OFFER", _job_context(application)),
            ],
            _prompts.MATCHING_INSTRUCTIONS,
            _prompts.MATCHING_SHAPE,
        )

    return run(
        _prompts.MATCHING_SHAPE, build, MATCHING_FALLBACK,
        client=client, model=model, system=_prompts.MATCHING_SYSTEM_PROMPT,
    )


def analyze_cv(
    document: Optional[Document],
    *,
    client: CompletionClient,
    model: str,
) -> PipelineResult:
    """Score a CV and list concrete improvements."""

    def build() -> str:
        _require(document, "document")
        if document.type != "cv":
            raise PreconditionError("Analysis is only available for CV documents")
        if not document.content.strip():
            raise PreconditionError("The CV is empty")
        return _compose(
            [("CV TO ANALYSE", document.content[: config.DOCUMENT_PROMPT_CHARS])],
            _prompts.CV_ANALYSIS_INSTRUCTIONS,
            _prompts.CV_ANALYSIS_SHAPE,
        )

    return run(
        _prompts.CV_ANALYSIS_SHAPE, build, CV_ANALYSIS_FALLBACK,
        client=client, model=model, system=_prompts.CV_ANALYSIS_SYSTEM_PROMPT,
    )


def suggest_next_steps(
    application: Optional[Application],
    activities: List[Activity],
    *,
    client: CompletionClient,
    model: str,
    company: Optional[Company] = None,
    now: Optional[datetime] = None,
) -> PipelineResult:
    """Next action, tips and an optional email draft for one application."""
    now = now or datetime.now(timezone.utc)

    def build() -> str:
        _require(application, "application")
        employer = company or application.company
        today = now.date()
        last = last_interaction(activities)
        since = days_since_last_interaction(activities, now)
        until = days_until_deadline(application, today)

        if last is not None:
            plural = "s" if since != 1 else ""
            last_line = f"{since} day{plural} ago ({last.description or last.kind or 'activity'})"
        else:
            last_line = "None"

        lines = [
            f"- Job title: {application.title or 'Not specified'}",
            f"- Company: {employer.name if employer and employer.name else 'Not specified'}",
            f"- Status: {application.status_label}",
            f"- Applied on: {_fmt_date(application.applied_at, 'Not specified')}",
            f"- Deadline: {_fmt_date(application.deadline, 'None')}",
            f"- Last interaction: {last_line}",
            f"- Days until deadline: {until if until is not None else 'N/A'}",
            f"- Today: {today.isoformat()}",
        ]
        lines += _optional_lines(application, notes_chars=300)
        if employer and employer.sector:
            lines.append(f"- Company sector: {employer.sector}")

        return _compose(
            [("APPLICATION", "\n".join(lines))],
            _prompts.SUGGESTIONS_INSTRUCTIONS,
            _prompts.SUGGESTIONS_SHAPE,
        )

    return run(
        _prompts.SUGGESTIONS_SHAPE, build, SUGGESTIONS_FALLBACK,
        client=client, model=model, system=_prompts.SUGGESTIONS_SYSTEM_PROMPT,
    )


def draft_follow_up_email(
    application: Optional[Application],
    *,
    client: CompletionClient,
    model: str,
    company: Optional[Company] = None,
    today: Optional[date] = None,
) -> PipelineResult:
    """Subject and body of a polite follow-up email."""
    today = today or date.today()

    def build() -> str:
        _require(application, "application")
        employer = company or application.company
        elapsed = days_since_applied(application, today)
        lines = [
            f"- Job title: {application.title or 'Not specified'}",
            f"- Company: {employer.name if employer and employer.name else 'Not specified'}",
            f"- Applied on: {_fmt_date(application.applied_at, 'Not specified')}",
            f"- Status: {application.status_label}",
            f"- Time since applying: {f'{elapsed} days' if elapsed is not None else 'Not specified'}",
        ]
        lines += _optional_lines(application, notes_chars=500)
        return _compose(
            [("APPLICATION", "\n".join(lines))],
            _prompts.FOLLOW_UP_INSTRUCTIONS,
            _prompts.FOLLOW_UP_EMAIL_SHAPE,
        )

    return run(
        _prompts.FOLLOW_UP_EMAIL_SHAPE, build, FOLLOW_UP_EMAIL_FALLBACK,
        client=client, model=model, system=_prompts.FOLLOW_UP_SYSTEM_PROMPT,
    )


def parse_offer(text: Optional[str], *, client: CompletionClient, model: str) -> PipelineResult:
    """Pull title, company, location … out of a pasted job offer."""

    def build() -> str:
        body = (text or "").strip()
        if len(body) < config.OFFER_MIN_CHARS:
            raise PreconditionError(
                f"The offer text must contain at least {config.OFFER_MIN_CHARS} characters"
            )
        return _compose(
            [("JOB OFFER", body[: config.OFFER_PROMPT_CHARS])],
            _prompts.OFFER_INSTRUCTIONS,
            _prompts.OFFER_SHAPE,
        )

    return run(
        _prompts.OFFER_SHAPE, build, OFFER_FALLBACK,
        client=client, model=model, system=_prompts.OFFER_SYSTEM_PROMPT,
    )


def generate_document(
    doc_type: str,
    *,
    client: CompletionClient,
    model: str,
    context: str = "",
    user_profile: str = "",
) -> PipelineResult:
    """Write a CV or a cover letter; falls back to the blank Markdown template."""
    if doc_type not in DOCUMENT_FALLBACKS:
        raise PreconditionError(
            f"type must be one of {sorted(DOCUMENT_FALLBACKS)!r} (got {doc_type!r})"
        )

    def build() -> str:
        sections = [("CONTEXT", context.strip() or "general")]
        if user_profile.strip():
            sections.append(("CANDIDATE PROFILE", user_profile.strip()))
        instructions = (
            _prompts.CV_GENERATION_INSTRUCTIONS if doc_type == "cv"
            else _prompts.COVER_LETTER_INSTRUCTIONS
        )
        return _compose(sections, instructions, _prompts.DOCUMENT_SHAPE)

    return run(
        _prompts.DOCUMENT_SHAPE, build, DOCUMENT_FALLBACKS[doc_type],
        client=client, model=model, system=_prompts.DOCUMENT_SYSTEM_PROMPT,
        feature=f"generate_{doc_type}",
    )


def default_document_title(doc_type: str, context: str = "") -> str:
    if doc_type == "cv":
        return "My CV"
    return f"Cover letter - {context.strip() or 'Application'}"


# ── prompt helpers ────────────────────────────────────────────

def _require(record, name: str) -> None:
    if record is None:
        raise PreconditionError(f"{name} is required")


def _compose(sections: list, instructions: str, shape: Shape) -> str:
    """Record context, then the feature rules, then the JSON template to fill."""
    parts = [f"{title}:\n{body}" for title, body in sections]
    parts.append("---")
    parts.append(instructions)
    parts.append(_prompts.JSON_RULES)
    parts.append(
        "─────────────────────────────────────────────────\n"
        "JSON TEMPLATE  (fill in every field and return only this object)\n"
        "─────────────────────────────────────────────────\n"
        + describe(shape)
    )
    return "\n\n".join(parts)


def _job_context(application: Application) -> str:
    lines = [f"Position: {application.title or 'Not specified'}"]
    if application.company_name:
        lines.append(f"Company: {application.company_name}")
    if application.location:
        lines.append(f"Location: {application.location}")
    if application.salary_range:
        lines.append(f"Salary range: {application.salary_range}")
    if application.notes:
        lines.append(f"Description: {application.notes[: config.NOTES_PROMPT_CHARS]}")
    if application.job_url:
        lines.append(f"Offer: {application.job_url}")
    return "\n".join(lines)


def _optional_lines(application: Application, notes_chars: int) -> List[str]:
    lines = []
    if application.location:
        lines.append(f"- Location: {application.location}")
    if application.salary_range:
        lines.append(f"- Salary: {application.salary_range}")
    if application.job_url:
        lines.append(f"- Offer link: {application.job_url}")
    if application.notes:
        lines.append(f"- Notes: {application.notes[:notes_chars]}")
    return lines


def _fmt_date(value: Optional[date], missing: str) -> str:
    return value.isoformat() if value else missing
