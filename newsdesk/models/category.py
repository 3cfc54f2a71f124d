"""Topic categories used to classify articles."""

from enum import Enum


class Category(str, Enum):
    """Provider topic tags, in ingestion order."""

    ENTERTAINMENT = "entertainment"
    WORLD = "world"
    BUSINESS = "business"
    HEALTH = "health"
    SPORT = "sport"
    SCIENCE = "science"
    TECHNOLOGY = "technology"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Parse a category name, ignoring case."""
        return cls(value.strip().lower())
