"""Built-in site extractors.

Tried in this order: GitHub, X (Twitter), YouTube, Reddit, Hacker News,
then the chat transcripts of ChatGPT, Claude, Grok and Gemini.
"""

from .base import SiteExtractorBase
from .chatgpt import ChatGPTExtractor
from .claude import ClaudeExtractor
from .conversation import ConversationExtractorBase, ConversationMessage, Footnote
from .gemini import GeminiExtractor
from .github import GitHubExtractor
from .grok import GrokExtractor
from .hackernews import HackerNewsExtractor
from .reddit import RedditExtractor
from .twitter import TwitterExtractor
from .youtube import YouTubeExtractor

__all__ = [
    "ChatGPTExtractor",
    "ClaudeExtractor",
    "ConversationExtractorBase",
    "ConversationMessage",
    "Footnote",
    "GeminiExtractor",
    "GitHubExtractor",
    "GrokExtractor",
    "HackerNewsExtractor",
    "RedditExtractor",
    "SiteExtractorBase",
    "TwitterExtractor",
    "YouTubeExtractor",
]
