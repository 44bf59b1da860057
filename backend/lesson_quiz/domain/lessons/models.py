"""Lesson domain models."""
from dataclasses import dataclass, field
from typing import Any, Optional

from lesson_quiz.domain.common.types import clean_str, parse_int


class SectionId:
    """Stable ids of the derived lesson sections."""
    INTRO = "intro"
    DEFINITION = "definition"
    USAGE = "usage"
    LORE = "lore"
    EVOLUTION = "evolution"
    COMPARISON = "comparison"


QUIZ_STOP_ID = "quiz"
SECTION_DURATION_MINUTES = 3

# (section id, title, lesson column) in display order
SECTION_SOURCES = (
    (SectionId.INTRO, "Origin", "origin_content"),
    (SectionId.DEFINITION, "Definition", "definition_content"),
    (SectionId.USAGE, "Usage Examples", "usage_examples"),
    (SectionId.LORE, "Lore", "lore_content"),
    (SectionId.EVOLUTION, "Evolution", "evolution_content"),
    (SectionId.COMPARISON, "Comparison", "comparison_content"),
)


@dataclass(frozen=True)
class LessonSection:
    """One readable stop of a lesson."""
    id: str
    title: str
    content: str
    order_index: int
    duration_minutes: int = SECTION_DURATION_MINUTES


@dataclass(frozen=True)
class Lesson:
    """Published lesson as the quiz sees it."""
    id: str
    title: Optional[str]
    xp_reward: int
    badge_name: Optional[str]
    completion_count: int = 0
    sections: list[LessonSection] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "Lesson":
        return cls(
            id=clean_str(row.get("id")),
            title=clean_str(row.get("title")),
            xp_reward=parse_int(row.get("xp_reward")) or 0,
            badge_name=clean_str(row.get("badge_name")),
            completion_count=parse_int(row.get("completion_count")) or 0,
            sections=build_sections(row),
        )


@dataclass(frozen=True)
class Quiz:
    """Active quiz attached to a lesson."""
    id: str
    lesson_id: str
    title: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Quiz":
        return cls(
            id=clean_str(row.get("id")),
            lesson_id=clean_str(row.get("lesson_id")),
            title=clean_str(row.get("title")),
        )


@dataclass(frozen=True)
class LessonProgressState:
    """Whether the learner enrolled and how many sections they finished."""
    is_enrolled: bool
    completed_sections: int


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value)
    return str(value)


def build_sections(row: dict) -> list[LessonSection]:
    """Sections for every non-blank content column, in display order."""
    sections = []
    for order, (section_id, title, column) in enumerate(SECTION_SOURCES, start=1):
        content = _stringify(row.get(column))
        if content is None or not content.strip():
            continue
        sections.append(LessonSection(id=section_id, title=title, content=content, order_index=order))
    return sections


def completed_section_count(
    progress_percentage: int,
    current_section: Optional[str],
    sections: list[LessonSection],
) -> int:
    """Sections done, from either the progress percentage or the current section marker."""
    if not sections:
        return 0
    clamped = max(0, min(progress_percentage, 100))
    by_progress = (clamped * len(sections)) // 100
    by_current = 0
    for position, section in enumerate(sections, start=1):
        if section.id == current_section:
            by_current = position
            break
    return max(0, min(len(sections), max(by_progress, by_current)))
