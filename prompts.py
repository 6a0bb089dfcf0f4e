"""
AI prompts and the shapes their replies are validated against.

Keeping the prompt text out of the feature code makes it easy to iterate on
wording without touching the pipeline.

*_SHAPE          — declarative description of the JSON object each feature
                   expects back. Rendered into the prompt as a template and
                   enforced by job_assist.shapes.validate().
*_SYSTEM_PROMPT  — the system message sent with the request.
*_INSTRUCTIONS   — feature-specific rules appended after the record context.
"""

from job_assist.shapes import Field, Shape

# ---------------------------------------------------------------------------
# Validation metadata (kept here alongside the prompts they describe)
# ---------------------------------------------------------------------------

URGENCIES: frozenset[str] = frozenset({"high", "medium", "low"})

CV_RECOMMENDATION_CATEGORIES: frozenset[str] = frozenset(
    {"structure", "content", "format", "keywords", "other"}
)

CONTRACT_TYPES: frozenset[str] = frozenset(
    {"permanent", "fixed_term", "internship", "apprenticeship", "freelance"}
)

OFFER_SOURCES: frozenset[str] = frozenset({
    "linkedin", "indeed", "welcome_to_the_jungle", "apec", "francetravail",
    "monster", "glassdoor", "company_site", "other",
})

_TEXT = Field(str)
_SCORE = Field(float, min_value=0, max_value=100, clamp=True)

MATCHING_SHAPE = Shape("matching", {
    "score":           _SCORE,
    "analysis":        _TEXT,
    "strengths":       Field(list, items=_TEXT, max_items=5),
    "gaps":            Field(list, items=_TEXT, max_items=5),
    "recommendations": Field(list, items=_TEXT, max_items=3),
})

CV_RECOMMENDATION_SHAPE = Shape("cv_recommendation", {
    "category":   Field(str, choices=CV_RECOMMENDATION_CATEGORIES),
    "priority":   Field(str, choices=URGENCIES),
    "suggestion": _TEXT,
})

CV_ANALYSIS_SHAPE = Shape("cv_analysis", {
    "score":            _SCORE,
    "overall":          _TEXT,
    "strengths":        Field(list, items=_TEXT, max_items=5),
    "weaknesses":       Field(list, items=_TEXT, max_items=5),
    "recommendations":  Field(list, items=Field(dict, shape=CV_RECOMMENDATION_SHAPE), max_items=8),
    "missing_sections": Field(list, items=_TEXT, required=False, default=[]),
    "keywords":         Field(list, items=_TEXT, required=False, default=[]),
})

NEXT_ACTION_SHAPE = Shape("next_action", {
    "title":          _TEXT,
    "description":    _TEXT,
    "urgency":        Field(str, choices=URGENCIES),
    "suggested_date": Field(str, required=False, nullable=True),
})

SUGGESTIONS_SHAPE = Shape("suggestions", {
    "next_action": Field(dict, shape=NEXT_ACTION_SHAPE),
    "tips":        Field(list, items=_TEXT, max_items=5),
    "email_draft": Field(str, required=False, nullable=True),
})

FOLLOW_UP_EMAIL_SHAPE = Shape("follow_up_email", {
    "subject": _TEXT,
    "body":    _TEXT,
})

_OPTIONAL_TEXT = Field(str, required=False, nullable=True)

OFFER_SHAPE = Shape("offer", {
    "title":         _OPTIONAL_TEXT,
    "company":       _OPTIONAL_TEXT,
    "location":      _OPTIONAL_TEXT,
    "contract_type": Field(str, required=False, nullable=True, choices=CONTRACT_TYPES),
    "salary_range":  _OPTIONAL_TEXT,
    "job_url":       _OPTIONAL_TEXT,
    "source":        Field(str, required=False, nullable=True, choices=OFFER_SOURCES),
    "description":   _OPTIONAL_TEXT,
    "summary":       _OPTIONAL_TEXT,
})

DOCUMENT_SHAPE = Shape("document", {
    "content": _TEXT,
})

# ---------------------------------------------------------------------------
# Shared output rules
# ---------------------------------------------------------------------------

JSON_RULES = """\
─────────────────────────────────────────────────
OUTPUT RULES
─────────────────────────────────────────────────
• Respond with ONLY the completed JSON object.
• Do NOT add any explanation, commentary or markdown code fences around it.
• Use exactly the field names of the template. Where the template lists
  allowed values separated by "|", pick one of them.
• Respect the maximum number of items given for each list.\
"""

# ---------------------------------------------------------------------------
# Matching score (CV vs. application)
# ---------------------------------------------------------------------------

MATCHING_SYSTEM_PROMPT = """\
You are an expert recruiter. You assess how well a candidate's CV fits a \
job they have applied for, objectively and concisely.\
"""

MATCHING_INSTRUCTIONS = """\
Compute a compatibility score between 0 and 100 and give a short analysis.

  score            0 = no overlap at all, 100 = the CV covers every
                   requirement of the offer.
  analysis         2–3 sentences, professional tone.
  strengths        what in the CV supports this application.
  gaps             missing skills or experience.
  recommendations  how to improve the CV or the application.\
"""

# ---------------------------------------------------------------------------
# CV analysis
# ---------------------------------------------------------------------------

CV_ANALYSIS_SYSTEM_PROMPT = """\
You are an expert in recruitment and CV writing. You review CVs and give \
practical, actionable feedback.\
"""

CV_ANALYSIS_INSTRUCTIONS = """\
Evaluate the CV above.

  score             overall quality between 0 and 100.
  overall           2–3 sentence assessment.
  strengths         what works well.
  weaknesses        what should be improved.
  recommendations   concrete suggestions, each with a category and priority.
  missing_sections  sections usually expected but absent.
  keywords          relevant keywords present in the CV.\
"""

# ---------------------------------------------------------------------------
# Next-action suggestions
# ---------------------------------------------------------------------------

SUGGESTIONS_SYSTEM_PROMPT = """\
You are an expert career assistant who helps candidates run an effective \
job search. Your suggestions are personal, concrete and actionable.\
"""

SUGGESTIONS_INSTRUCTIONS = """\
Suggest what the candidate should do next for this application.

  • Adapt the suggestion to the status, the dates and the context above.
  • If the deadline is less than 3 days away, urgency is "high".
  • If there has been no news for more than 7 days (pending) or more than
    5 days (in progress), suggest following up.
  • If the application has not been sent yet (no applied date), suggest
    sending it.
  • suggested_date is YYYY-MM-DD or null.
  • tips must be practical.
  • email_draft is a professional follow-up email of at most 150 words when
    one makes sense, otherwise null.\
"""

# ---------------------------------------------------------------------------
# Follow-up email
# ---------------------------------------------------------------------------

FOLLOW_UP_SYSTEM_PROMPT = """\
You help candidates write professional follow-up emails about their job \
applications.\
"""

FOLLOW_UP_INSTRUCTIONS = """\
Write a courteous, concise follow-up email (body of at most 200 words) that:
  1. Politely recalls the application (job title and company).
  2. Expresses continued interest in the role.
  3. Asks for news about the recruitment process.
  4. Stays positive without being pushy; adapt the tone to the time elapsed
     since applying.
  5. Ends with an appropriate closing.

  subject  short, professional subject line.
  body     the full email: greeting, message and closing.\
"""

# ---------------------------------------------------------------------------
# Job-offer parsing
# ---------------------------------------------------------------------------

OFFER_SYSTEM_PROMPT = """\
You are an expert at extracting structured information from job offers.\
"""

OFFER_INSTRUCTIONS = """\
Extract every piece of information available from the offer above. The job
title and the hiring company matter most.

  title          the position, usually in the first lines. Never the company
                 name or the location.
  company        the company that is hiring (not its partners). It may follow
                 "at", "Company:", or appear in a URL such as
                 linkedin.com/company/<name>.
  location       city or region, "Remote" when fully remote, "Hybrid" when
                 mixed.
  contract_type  only when stated.
  salary_range   as written in the offer, e.g. "45k-60k".
  job_url        the URL of the offer if present.
  source         detected from the URL or the context.
  description    2–3 sentence summary of the role.
  summary        3–5 lines each starting with "- ": tech stack, experience
                 required, location / remote, salary, key benefits.

Use null for anything the offer does not mention.\
"""

# ---------------------------------------------------------------------------
# Document generation
# ---------------------------------------------------------------------------

DOCUMENT_SYSTEM_PROMPT = """\
You write professional, modern, ready-to-use application documents in \
Markdown.\
"""

CV_GENERATION_INSTRUCTIONS = """\
Generate a complete, well-structured CV.

Expected sections:
  - Header with name and contact details (email, phone, location, LinkedIn)
  - Professional summary (3–4 lines)
  - Technical and professional skills
  - Experience (dates, title, company, key achievements)
  - Education and certifications
  - Languages
  - Interests (optional)

Put the whole CV, as Markdown, in the "content" field.\
"""

COVER_LETTER_INSTRUCTIONS = """\
Generate a cover letter that:
  - is addressed professionally (the recruiter's name if given),
  - opens with a relevant hook,
  - highlights the candidate's skills and experience,
  - shows motivation and fit for the role,
  - is organised in clear paragraphs, about one page long,
  - ends with a closing formula and a signature.

Put the whole letter, as Markdown, in the "content" field.\
"""
