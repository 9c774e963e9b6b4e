"""Tweet draft generation in the user's own voice."""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from letternest.infrastructure.error_handling import PreconditionError
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.user import UserProfile
from letternest.services.openai_service import OpenAIService

TWEET_TAGS = ("tweet1", "tweet2", "tweet3")
MISSING_TWEET = "No tweet generated"

SYSTEM_PROMPT = """You are a highly engaged X (Twitter) user with a distinct writing style.
Write THREE distinct, high-quality tweet options about the given topic that
match the voice described below.

Study the voice profile for vocabulary, phrasing, sentence length, tone,
punctuation and emoji habits, and mirror them. Use the top tweets as
examples of what resonates with this audience. Each option must take a
different angle. Stay under 280 characters unless the voice profile shows
long-form posts.

Wrap the options exactly like this:
<tweet1>first option</tweet1>
<tweet2>second option</tweet2>
<tweet3>third option</tweet3>

## VOICE PROFILE ANALYSIS:
{voice_profile}

## TOP TWEETS:
{top_tweets}{trending}"""


class TrendingTopic(BaseModel):
    """A trending topic the user attached to the request."""

    header: str
    sentiment: Optional[str] = None
    context: Optional[str] = None
    sub_topics: List[str] = Field(default_factory=list, alias="subTopics")
    example_tweets: List[str] = Field(default_factory=list, alias="exampleTweets")


def extract_tweet_options(text: str) -> List[str]:
    """Pull ``<tweet1>``..``<tweet3>`` out of the completion; missing tags yield a placeholder."""
    options = []
    for tag in TWEET_TAGS:
        match = re.search(rf"<{tag}>([\s\S]*?)</{tag}>", text)
        options.append(match.group(1).strip() if match else MISSING_TWEET)
    return options


def format_trending_topics(topics: List[TrendingTopic]) -> str:
    if not topics:
        return ""

    lines = ["", "", "## ADDITIONAL TRENDING TOPIC INFORMATION:"]
    for index, topic in enumerate(topics, start=1):
        lines.append("")
        lines.append(f"TREND {index}: {topic.header}")
        lines.append(f"* Sentiment: {topic.sentiment or 'unknown'}")
        lines.append(f"* Context: {topic.context or 'none'}")
        if topic.sub_topics:
            lines.append("* Sub Topics:")
            lines.extend(f"  - {sub_topic}" for sub_topic in topic.sub_topics)
        if topic.example_tweets:
            lines.append("* Example Tweets:")
            lines.extend(
                f'  - Example {number}: "{tweet}"'
                for number, tweet in enumerate(topic.example_tweets, start=1)
            )
    return "\n".join(lines)


class TweetDraftService(LoggerMixin):
    """Generates three tweet options for a prompt."""

    def __init__(self, llm: OpenAIService, model: str = "gpt-4o"):
        self.llm = llm
        self.model = model

    async def generate(
        self,
        profile: Optional[UserProfile],
        prompt: str,
        topics: Optional[List[TrendingTopic]] = None,
    ) -> Dict[str, Any]:
        if profile is None:
            raise PreconditionError("User profile not found", 404, "PROFILE_NOT_FOUND")

        system_prompt = SYSTEM_PROMPT.format(
            voice_profile=profile.voice_profile_analysis or "No voice profile analysis available.",
            top_tweets=profile.personal_tweet_dataset or "No top tweets available.",
            trending=format_trending_topics(topics or []),
        )
        completion = await self.llm.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": f"Write three tweet options about: {prompt}"},
            ],
            temperature=0.7,
            max_tokens=1500,
            model=self.model,
            purpose="tweet drafts",
        )
        tweets = extract_tweet_options(completion)
        self.logger.info(
            "Tweet drafts generated",
            user_id=profile.user_id,
            missing=sum(1 for tweet in tweets if tweet == MISSING_TWEET),
        )
        return {"tweets": tweets, "raw": completion}
