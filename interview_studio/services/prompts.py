"""Prompt templates for the session summary and the derived-content types."""

from interview_studio.domain.content_types import DerivedContentType

SUMMARY_SYSTEM_PROMPT = """You are a marketing copywriter turning a structured customer interview
into a clear, factual description of the business offering.
Only use facts stated in the answers. Do not invent numbers, customers or prices.
If the answers do not cover a section, say so briefly instead of guessing."""

# Session content type -> what the summary should emphasise
SUMMARY_FOCUS: dict[str, str] = {
    "service": "Focus on what the service delivers, how engagements work, and who it is for.",
    "product": "Focus on the product's capabilities, differentiators, and who it is for.",
    "faq": "Focus on the questions customers ask most and the clearest answers to them.",
    "case_study": "Focus on the customer's situation, the solution applied, and the results.",
}

SUMMARY_SECTIONS = (
    "1. Summary (200 characters or fewer)",
    "2. Key points (bulleted)",
    "3. Features and strengths",
    "4. Target customer",
    "5. Pricing",
)

# ---------------------------------------------------------------------------
# Derived content
# ---------------------------------------------------------------------------

DERIVED_SYSTEM_PROMPTS: dict[DerivedContentType, str] = {
    DerivedContentType.BLOG: """You are a company's content marketer. Using the AI interview material
provided, write an engaging, easy-to-read blog article.

Requirements:
- Introduction, body and conclusion
- Information that is genuinely useful to the reader
- Natural keyword placement for search
- Roughly 800-1200 words
- Use ## headings for sections

Start with the title on its own line as "# <title>", then a line
"Summary: <one or two sentence summary>", then the article body.""",
    DerivedContentType.QNA: """You are a customer support expert. Using the AI interview material
provided, write one FAQ entry.

Requirements:
- A clear question a prospective customer would actually ask
- A specific, practical answer
- Plain language from the customer's point of view

Put the question on the first line as "# <question>", then the answer.""",
    DerivedContentType.CASE_STUDY: """You are a business analyst. Using the AI interview material provided,
write a persuasive case study.

Requirements:
- Background, challenge, solution and results sections
- Concrete figures and outcomes where the material provides them
- Content other companies can learn from
- Roughly 1000-1500 words

Start with the title on its own line as "# <title>", then a line
"Summary: <one or two sentence summary>", then the case study body.""",
}

DERIVED_TASKS: dict[DerivedContentType, str] = {
    DerivedContentType.BLOG: "Combine the information above into an engaging blog article.",
    DerivedContentType.QNA: (
        "From this information, write one question customers are likely to ask, "
        "together with an appropriate answer."
    ),
    DerivedContentType.CASE_STUDY: (
        "From this information, write a success story other companies can use as a reference."
    ),
}

DERIVED_USER_TEMPLATE = """Create a {label} from the following AI interview data.

## Interview answers
{answers}

## Generated summary
{summary}

## Key content sections
{units}

{task}"""
