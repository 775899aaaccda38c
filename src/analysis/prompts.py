"""Prompt templates for artistic work analysis.

Each category has one template with a {title} and an {author} placeholder.
Only the first occurrence of each placeholder in the template is filled, and
text inserted for one placeholder is never scanned for the other, so a title
containing "{author}" stays literal.
"""

import re
from typing import Dict

from analysis.errors import InvalidCategoryError

# =============================================================================
# Category Prompts
# =============================================================================

FILM_PROMPT = (
    "Analyze the film or TV series '{title}' by {author}. Include a brief synopsis, "
    "discuss its themes, cinematography, and cultural impact. Evaluate its strengths "
    "and weaknesses, and explain its significance in the context of its genre and "
    "time period."
)

MUSIC_PROMPT = (
    "Analyze the musical work '{title}' by {author}. Discuss its genre, musical style, "
    "lyrical themes (if applicable), and production. Evaluate its cultural impact, "
    "critical reception, and place in the artist's discography. Consider its influence "
    "on other artists or the genre as a whole."
)

LITERATURE_PROMPT = (
    "Analyze the novel or short story collection '{title}' by {author}. Provide a brief "
    "plot summary, discuss major themes, character development, and writing style. "
    "Evaluate its literary merits, cultural significance, and impact on literature. "
    "Consider how it fits into the author's body of work and its genre."
)

VISUAL_ART_PROMPT = (
    "Analyze the visual artwork '{title}' by {author}. Describe its medium, style, and "
    "composition. Discuss the artist's techniques, the artwork's themes or subject "
    "matter, and its historical or cultural context. Evaluate its significance in the "
    "artist's career and its impact on the art world."
)

CATEGORY_PROMPTS: Dict[str, str] = {
    "film": FILM_PROMPT,
    "music": MUSIC_PROMPT,
    "literature": LITERATURE_PROMPT,
    "visual_art": VISUAL_ART_PROMPT,
}

CATEGORY_LABELS: Dict[str, str] = {
    "film": "Film / TV Series",
    "music": "Music",
    "literature": "Literature",
    "visual_art": "Visual Art",
}

KNOWN_CATEGORIES = tuple(CATEGORY_PROMPTS)

_PLACEHOLDER = re.compile(r"\{(title|author)\}")


def is_known_category(category: str) -> bool:
    return category in CATEGORY_PROMPTS


def render(category: str, title: str, author: str) -> str:
    """Build the analysis prompt for a work.

    Args:
        category: One of KNOWN_CATEGORIES
        title: Title of the work
        author: Author, artist or director

    Returns:
        Prompt text

    Raises:
        InvalidCategoryError: if the category has no template
    """
    if not is_known_category(category):
        raise InvalidCategoryError(category)

    values = {"title": title, "author": author}
    filled = set()

    def _fill(match: re.Match) -> str:
        name = match.group(1)
        if name in filled:
            return match.group(0)
        filled.add(name)
        return values[name]

    return _PLACEHOLDER.sub(_fill, CATEGORY_PROMPTS[category])


__all__ = [
    "CATEGORY_PROMPTS",
    "CATEGORY_LABELS",
    "KNOWN_CATEGORIES",
    "is_known_category",
    "render",
]
