"""Modern Clean: minimal, text-first layout."""

from letternest.strategies.base import NewsletterTemplate, Palette

ANALYSIS_SYSTEM = """You are an expert content analyst preparing the "{display_name}" newsletter.
Read the tweets and identify:
- main topics (3-5), each with a one-line description
- key insights worth a reader's attention
- trending themes across authors
- a short summary of the overall collection
- recommended newsletter sections

Refer to concrete tweets and authors where it helps. Write plain prose and
lists, no code fences.

Tweets:
{posts}"""

ANALYSIS_USER = """Analyze these bookmarked tweets for the "{display_name}" newsletter:

{posts}"""

MARKDOWN_SYSTEM = """You write the "{display_name}" newsletter: clean, modern and easy to scan.
Use a single H1 title, a two-sentence introduction, H2 sections for each
main topic with short paragraphs and bullet lists, a "Key Takeaways"
section, and a one-line sign-off. Include images only when the analysis
names an image URL. Output ONLY Markdown."""

MARKDOWN_USER = """Write the newsletter for {date} from this analysis:

{analysis}"""

ENHANCEMENT_SYSTEM = """You refine newsletters for readability. Tighten wording, make headings
consistent, bold the single most important phrase of each section and make
sure every section ends with a clear takeaway. Keep the Markdown structure
and all links and images. Output only the refined Markdown."""

ENHANCEMENT_USER = """Refine this newsletter:

{markdown}"""

MODERN_CLEAN = NewsletterTemplate(
    key="modern-clean",
    display_name="Modern Clean",
    sender_name="LetterNest",
    subject="Your Modern Clean Newsletter - {date}",
    analysis_system_prompt=ANALYSIS_SYSTEM,
    analysis_user_prompt=ANALYSIS_USER,
    markdown_system_prompt=MARKDOWN_SYSTEM,
    markdown_user_prompt=MARKDOWN_USER,
    enhancement_system_prompt=ENHANCEMENT_SYSTEM,
    enhancement_user_prompt=ENHANCEMENT_USER,
    analysis_temperature=0.7,
    markdown_temperature=0.8,
    enhancement_temperature=0.7,
    enrichment_theme_limit=3,
    palette=Palette(
        text="#111827",
        heading="#111827",
        accent="#2563eb",
        muted="#6b7280",
        background="#ffffff",
    ),
    tagline="The signal from your saved posts",
)
