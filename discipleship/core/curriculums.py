"""Bible study curricula and their lesson outlines."""

from enum import Enum


class Curriculum(str, Enum):
    """Curriculum a Bible study follows."""

    SEARCH_FOR_TRUTH = "search-for-truth"
    EXPLORING_GODS_WORD = "exploring-gods-word"
    FIRST_PRINCIPLES = "first-principles"
    CUSTOM = "custom"


# Lesson titles in teaching order; lesson numbers start at 1
CURRICULUM_LESSONS: dict[Curriculum, tuple[str, ...]] = {
    Curriculum.SEARCH_FOR_TRUTH: (
        "The Bible",
        "God",
        "Man",
        "Sin",
        "Jesus Christ",
        "Salvation",
        "Repentance",
        "Baptism",
        "The Holy Ghost",
        "The Church",
        "Holiness",
        "The Second Coming",
    ),
    Curriculum.EXPLORING_GODS_WORD: (
        "The Word of God",
        "One God",
        "The Name of Jesus",
        "New Birth",
        "Repentance",
        "Water Baptism",
        "Holy Spirit Baptism",
        "Living for God",
    ),
    Curriculum.FIRST_PRINCIPLES: (
        "The Bible",
        "God",
        "Jesus",
        "Sin",
        "Salvation",
        "Repentance",
        "Baptism",
        "Holy Ghost",
        "Church",
        "Christian Living",
    ),
    Curriculum.CUSTOM: (),
}


def lesson_outline(curriculum: Curriculum) -> list[tuple[int, str]]:
    """Numbered lesson titles for a curriculum."""
    return list(enumerate(CURRICULUM_LESSONS[Curriculum(curriculum)], start=1))
