"""LetterNest: turns a user's bookmarked posts into an emailed newsletter."""

__version__ = "0.1.0"
