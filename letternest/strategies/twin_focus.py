"""Twin Focus: every section shows two perspectives and a synthesis."""

from letternest.strategies.base import NewsletterTemplate, Palette

ANALYSIS_SYSTEM = """You are an expert analyst preparing the "{display_name}" newsletter.
Group the tweets into 3-4 main sections. For every section give:
- a concise title
- the most relevant image URL from the tweets, if any
- two contrasting perspectives (for example "Opportunity" and "Risk"), each
  with a short header and 2-3 points
- a synthesis paragraph reconciling both perspectives

Finish with 2-3 quick insights, each with a title, a one-sentence summary
and a short quote taken from a tweet. Open with a one-sentence hook.

Tweets:
{posts}"""

ANALYSIS_USER = """Produce the two-perspective analysis for the "{display_name}" newsletter:

{posts}"""

MARKDOWN_SYSTEM = """You format the "{display_name}" newsletter in Markdown.
Start with an H1 title and the hook in italics. For every section use an H2
title, the image if one exists, then the two perspectives as H3 headers with
bullet points, then the synthesis as a blockquote. End with a "Quick
Insights" H2 listing each insight with its quote. Output ONLY Markdown."""

MARKDOWN_USER = """Newsletter date: {date}

Analysis:
{analysis}"""

ENHANCEMENT_SYSTEM = """You polish two-perspective newsletters. Make the paired perspectives
parallel in length and tone, sharpen each synthesis to at most three
sentences and keep all images, links and quotes. Output only the polished
Markdown."""

ENHANCEMENT_USER = """Polish this newsletter:

{markdown}"""

TWIN_FOCUS = NewsletterTemplate(
    key="twin-focus",
    display_name="Twin Focus",
    sender_name="LetterNest",
    subject="Twin Focus: Your Newsletter from LetterNest",
    analysis_system_prompt=ANALYSIS_SYSTEM,
    analysis_user_prompt=ANALYSIS_USER,
    markdown_system_prompt=MARKDOWN_SYSTEM,
    markdown_user_prompt=MARKDOWN_USER,
    enhancement_system_prompt=ENHANCEMENT_SYSTEM,
    enhancement_user_prompt=ENHANCEMENT_USER,
    analysis_temperature=0.5,
    markdown_temperature=0.3,
    enhancement_temperature=0.2,
    enrichment_theme_limit=3,
    palette=Palette(
        text="#1f2937",
        heading="#0f766e",
        accent="#0d9488",
        muted="#4b5563",
        background="#f0fdfa",
    ),
    tagline="Two sides of every story you saved",
)
