"""Creative Showcase: visually varied layouts, one layout type per theme."""

from letternest.strategies.base import NewsletterTemplate, Palette

ANALYSIS_SYSTEM = """You are a creative content strategist preparing the "{display_name}" newsletter.
Analyze the tweet collection and plan a visually diverse issue.

Available layouts:
- LAYOUT A: image on the left, 3-4 concise bullets on the right
- LAYOUT B: full-width section with 4-6 detailed bullets (30-50 words each)
- LAYOUT C: two columns, "The Situation" and "The Impact"
- LAYOUT D: featured image followed by 2-3 substantial paragraphs
- LAYOUT E: grid of insight boxes, each with an emoji, a title and 2-3 sentences

Output structure:
1. HOOK: 1-2 engaging sentences
2. MAIN THEMES (4-5), each with a creative title (5-8 words), its assigned
   layout, the best image URL from the tweets, content written for that
   layout and short visual notes
3. QUICK BITES (2-3): short, punchy insights

Each main theme must use a different layout. Keep the tone conversational
but professional.

Tweet data to analyze:
{posts}"""

ANALYSIS_USER = """Create content for the "{display_name}" newsletter from the tweet collection below.
Give a hook, 4-5 main themes with distinct layouts (A-E), image URLs taken from
the tweet data, and 2-3 quick bites.

Tweet collection:
{posts}"""

MARKDOWN_SYSTEM = """You are a professional newsletter designer for "{display_name}" by LetterNest.
Turn the analysis into a Markdown newsletter that implements each theme's
assigned layout, using inline-styled HTML blocks where Markdown alone cannot
express the layout.

Structure: a header with title, date and hook; one section per theme in its
layout; a "Quick Bites" section; a short closing footer.

Palette: #1e293b and #3b82f6 for primary elements, #6366f1 and #8b5cf6 as
accents, #f59e0b for highlights. Output ONLY the newsletter."""

MARKDOWN_USER = """Date: {date}

ANALYSIS WITH LAYOUT SPECIFICATIONS:
{analysis}

Implement every layout exactly as assigned."""

ENHANCEMENT_SYSTEM = """You are a newsletter design specialist. Polish the "{display_name}" newsletter
into a publication-ready version: consistent typography, clear visual
hierarchy, card-style sections with subtle borders, and mobile-friendly
stacking. Keep every fact, link and image from the draft. Output only the
enhanced newsletter."""

ENHANCEMENT_USER = """Current newsletter draft:
<newsletter>
{markdown}
</newsletter>"""

CREATIVE_SHOWCASE = NewsletterTemplate(
    key="creative-showcase",
    display_name="Creative Showcase",
    sender_name="LetterNest Creative",
    subject="Creative Showcase: Your Visual Newsletter from LetterNest",
    analysis_system_prompt=ANALYSIS_SYSTEM,
    analysis_user_prompt=ANALYSIS_USER,
    markdown_system_prompt=MARKDOWN_SYSTEM,
    markdown_user_prompt=MARKDOWN_USER,
    enhancement_system_prompt=ENHANCEMENT_SYSTEM,
    enhancement_user_prompt=ENHANCEMENT_USER,
    analysis_temperature=0.6,
    markdown_temperature=0.2,
    enhancement_temperature=0.1,
    palette=Palette(
        text="#1a202c",
        heading="#2d3748",
        accent="#805ad5",
        muted="#4a5568",
        background="#f7fafc",
    ),
    tagline="A visual tour of what you saved this week",
)
