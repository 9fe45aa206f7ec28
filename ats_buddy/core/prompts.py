"""Prompt templates and output schemas for each analysis stage.

Prompts are Jinja2 templates rendered with StrictUndefined so a missing
variable fails loudly instead of producing a half-empty prompt.
"""

from datetime import date
from typing import List, Optional

from jinja2 import DictLoader, Environment, StrictUndefined

from ..models import (
    CoverLetterStyle,
    NumberSchema,
    ObjectSchema,
    StringSchema,
)
from ..models.schema import string_list


# === Output Schemas ===

KEYWORD_SCHEMA = ObjectSchema(
    properties={
        "matchingKeywords": string_list(),
        "missingKeywords": string_list(),
        "suggestions": string_list(),
    },
    required=["matchingKeywords", "missingKeywords", "suggestions"],
)

# Also extracts job title and company so no separate job-posting call is needed
SCORING_SCHEMA = ObjectSchema(
    properties={
        "overall": NumberSchema(),
        "alignmentNotes": StringSchema(),
        "matchedKeywords": string_list(),
        "missingKeywords": string_list(),
        "jobTitle": StringSchema(),
        "company": StringSchema(),
    },
    required=["overall", "alignmentNotes", "matchedKeywords", "missingKeywords"],
)

# The optimizer also owns ATS formatting; there is no separate formatter call
OPTIMIZER_SCHEMA = ObjectSchema(
    properties={
        "markdown": StringSchema(),
        "rationale": StringSchema(),
    },
    required=["markdown", "rationale"],
)

COVER_LETTER_SCHEMA = ObjectSchema(
    properties={
        "markdown": StringSchema(),
    },
    required=["markdown"],
)


COVER_LETTER_STYLES: List[CoverLetterStyle] = [
    CoverLetterStyle(
        name="Professional & Direct",
        instruction=(
            "Adopt a standard, polished professional tone. Focus on clearly matching "
            "skills to the job requirements. Be concise and formal."
        ),
    ),
    CoverLetterStyle(
        name="Achievement Focused",
        instruction=(
            "Adopt a confident, results-oriented tone. Highlight specific metrics, "
            "achievements, and the rapid impact the candidate can make. Be bold."
        ),
    ),
    CoverLetterStyle(
        name="Passionate & Cultural",
        instruction=(
            "Adopt a softer, narrative tone. Focus on the candidate's passion for the "
            "mission, cultural fit, and personal connection to the industry. Be engaging."
        ),
    ),
]


# === Templates ===

_INPUTS = """JOB DESCRIPTION:
{{ job_text }}

RESUME:
{{ resume }}"""

TEMPLATES = {
    "inputs": _INPUTS,

    "keyword_analysis": """You are the Keyword Analyzer agent. Compare the Resume against the Job Description. Return matched/missing keywords and 3-5 concise suggestions.

{% include "inputs" %}""",

    "scoring": """You are the ATS Scorer agent. Compare the Resume against the Job Description.
1. Calculate an overall match score (0-100).
2. Provide alignment notes.
3. List matched and missing keywords.
4. EXTRACT the "Job Title" and "Company Name" from the Job Description.

{% include "inputs" %}""",

    "optimizer": """You are an expert Resume Optimizer. Rewrite the resume to align with the Job Description.

RULES:
1. Analyze the Job Description to identify key missing skills/keywords yourself.
2. Rewrite the resume to incorporate these missing elements naturally.
3. Use standard, clean Markdown formatting.
4. Do NOT fabricate experience.
5. Return the full optimized resume markdown and a brief rationale.

FORMATTING RULES (CRITICAL):
- Use "##" for Section Headers (e.g., ## EXPERIENCE). Always add a blank line after.
- For EXPERIENCE entries, use this EXACT structure:
  **Company Name** | Date
  **Job Title**
  * Bullet point...
  (Ensure Job Title is on a NEW LINE below Company)
- For EDUCATION entries, use this EXACT structure:
  **University Name** | Date
  **Degree**
  (Ensure Degree is on a NEW LINE below University)
- Do NOT merge Company and Job Title on the same line.

{% include "inputs" %}""",

    "cover_letter_variant": """You are an expert career coach and professional writer.
Task: Write a cover letter for a candidate based on their Resume and a Job Description.

STYLE INSTRUCTION: {{ style.instruction }}

REQUIREMENTS:
1. **Format**: Standard Business Letter.
   - **Header**: Candidate Name (Pascal Case, e.g. "John Doe"), Email, Phone. Do NOT include Portfolio or LinkedIn links.
   - **Date**: {{ today }}.
   - **Recipient**: Hiring Manager or specific name (from JD), Company Name.
   - **Salutation**: "Dear [Hiring Manager's Name/Team],"
   - **Body**: 3-4 distinct paragraphs.
   - **Sign-off**: "Sincerely," followed by Candidate Name.
2. **Length**: STRICTLY UNDER 300 WORDS. Must fit on a single page.
3. **Content**:
   - Analyze the Resume and Match it to the top 3 hard skills in the JD.
   - Do not use placeholders like "[Company Name]" if you can find the name. If unknown, use "Hiring Manager".
   - Do not invent facts.

RESUME:
{{ resume }}

JOB DESCRIPTION:
{{ job_text }}

OUTPUT FORMAT:
Return ONLY the markdown text of the letter. No introductory text.
IMPORTANT: Use double newlines between sections and paragraphs to ensure proper Markdown rendering. Do NOT produce a single block of text.""",

    "cover_letter": """You are an expert Cover Letter Writer. Write a professional cover letter for the candidate based on their Resume and the Job Description.

{% include "inputs" %}

REQUIREMENTS:
1. **Format**: Standard Business Letter.
   - **Header**: Candidate Name, Email, Phone, LinkedIn/Portfolio (extract from resume).
   - **Date**: {{ today }}.
   - **Recipient**: Hiring Manager or specific name (from JD), Company Name.
   - **Salutation**: "Dear [Hiring Manager's Name/Team],"
   - **Body**: 3-4 distinct paragraphs.
   - **Sign-off**: "Sincerely," followed by Candidate Name.
2. **Tone**: Professional, enthusiastic, and confident.
3. **Content**:
   - **Intro**: Value proposition and role interest.
   - **Body**: Connect specific resume achievements to JD requirements.
   - **Conclusion**: Call to action (interview request).
4. **Formatting**:
   - Use double newlines between paragraphs.
   - Do NOT produce one single block of text.
   - Output in Markdown.""",

    "chat_context": """CURRENT DATE: {{ today }}

CONTEXT ANALYSIS:
- Original Resume ATS Score: {{ overall }}/100
- Alignment Summary: {{ summary }}
- Matching Keywords from Original: {{ matching }}
- Missing Keywords from Original: {{ missing }}
- Improvement Suggestions:
- {{ suggestions }}

OPTIMIZED RESUME (AI-Generated Improved Version):
{{ optimized }}

ORIGINAL RESUME (User's Current Version):
{{ resume }}

JOB DESCRIPTION:
{{ job_text }}

IMPORTANT INSTRUCTIONS:
1. The ATS score of {{ overall }}/100 applies ONLY to the ORIGINAL resume.
2. The OPTIMIZED resume has been rewritten to address the missing keywords and gaps.
3. When asked to compare, score, or analyze the optimized resume against the job description, you MUST:
   a) Perform a fresh ATS analysis of the OPTIMIZED resume against the job description
   b) Count how many keywords from the job description appear in the optimized resume
   c) Evaluate alignment with job requirements, skills, and experience
   d) Provide a NEW ATS score (0-100) for the optimized resume with detailed justification
   e) Compare this new score to the original score of {{ overall }}/100
   f) Explain specifically which improvements (added keywords, better alignment, etc.) led to the score change
4. Your scoring should follow these criteria:
   - Keyword match rate (40%): How many JD keywords appear in the resume
   - Skills alignment (30%): How well skills match the requirements
   - Experience relevance (20%): How relevant is the experience to the role
   - Format & clarity (10%): ATS-friendly formatting and clear presentation
5. If the user asks you to modify their resume, respond with your explanation followed by "UPDATED_RESUME:" and then the complete updated resume text.
6. Always be specific and reference actual content from the resumes and job description.""",

    "chat": """{{ context }}

You are an expert resume assistant. Continue the conversation below and provide a helpful, concise reply that uses the analysis context above when relevant.

{{ conversation }}

ASSISTANT:""",
}


def create_prompt_env() -> Environment:
    """Create a Jinja2 environment for plain-text prompts."""
    return Environment(
        loader=DictLoader(TEMPLATES),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=False,
    )


_env = create_prompt_env()


def render_prompt(template_name: str, **context) -> str:
    return _env.get_template(template_name).render(**context)


def format_letter_date(day: Optional[date] = None) -> str:
    """Format a date the way letters are dated, e.g. "October 18, 2026"."""
    day = day or date.today()
    return f"{day:%B} {day.day}, {day.year}"


def keyword_analysis_prompt(resume: str, job_text: str) -> str:
    return render_prompt("keyword_analysis", resume=resume, job_text=job_text)


def scoring_prompt(resume: str, job_text: str) -> str:
    return render_prompt("scoring", resume=resume, job_text=job_text)


def optimizer_prompt(resume: str, job_text: str) -> str:
    return render_prompt("optimizer", resume=resume, job_text=job_text)


def cover_letter_variant_prompt(
    resume: str,
    job_text: str,
    style: CoverLetterStyle,
    excerpt_chars: int = 3000,
    today: Optional[date] = None,
) -> str:
    """Prompt for one styled variant; inputs are truncated to ``excerpt_chars``."""
    return render_prompt(
        "cover_letter_variant",
        resume=resume[:excerpt_chars],
        job_text=job_text[:excerpt_chars],
        style=style,
        today=format_letter_date(today),
    )


def cover_letter_prompt(
    resume: str,
    job_text: str,
    today: Optional[date] = None,
) -> str:
    return render_prompt(
        "cover_letter",
        resume=resume,
        job_text=job_text,
        today=format_letter_date(today),
    )
