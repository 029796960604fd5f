"""Heuristic parsers that turn free-form model output into list items.

The tools prompt for plain text, so these never trust the layout: when no
recognisable sections are found they return a single fallback item carrying
the raw text. Swapping one for a structured-output parser leaves callers
untouched as long as it keeps the ``parse`` contract.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

EMPHASIS_RE = re.compile(r"\*\*|__|`")
LABEL_RE = re.compile(r"^[\w\s/()-]+?:\s*")
BULLET_RE = re.compile(r"^[-•*]\s*")
NUMBER_PREFIX_RE = re.compile(r"^\d+[.)]?\s*")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


class ProjectIdea(BaseModel):
    name: str
    description: str = ""
    features: list[str] = []
    tech_stack: str = ""
    bonus_feature: str = ""


class StartupName(BaseModel):
    name: str
    meaning: str = ""
    positioning: str = ""
    tagline: str = ""
    domain_style: str = ""


def clean_line(line: str) -> str:
    return EMPHASIS_RE.sub("", line).strip().lstrip("#").strip()


def strip_label(line: str) -> str:
    return LABEL_RE.sub("", line, count=1).strip()


def non_blank_lines(text: str) -> list[str]:
    return [clean_line(line) for line in text.splitlines() if line.strip()]


class BaseTextParser(ABC, Generic[T]):
    """Parse model text into items; ``parse`` never raises."""

    def parse(self, raw: str) -> list[T]:
        try:
            items = self._parse(raw or "")
        except Exception:
            logger.exception("%s failed, using fallback", type(self).__name__)
            items = []
        if not items:
            return [self.fallback(raw or "")]
        return items

    @abstractmethod
    def _parse(self, raw: str) -> list[T]:
        pass

    @abstractmethod
    def fallback(self, raw: str) -> T:
        pass


class ProjectIdeaParser(BaseTextParser[ProjectIdea]):
    SECTION_SPLIT_RE = re.compile(r"(?:^|\n)\s*(?:#+\s*)?(?:\d+\.|[Pp]roject\s+\d+:?)")

    def __init__(self, *, expected_count: int, technology: str = "") -> None:
        self.expected_count = expected_count
        self.technology = technology

    def _parse(self, raw: str) -> list[ProjectIdea]:
        sections = [s.strip() for s in self.SECTION_SPLIT_RE.split(raw) if s.strip()]
        return [
            self._parse_section(section, index)
            for index, section in enumerate(sections[: self.expected_count])
        ]

    def _parse_section(self, section: str, index: int) -> ProjectIdea:
        lines = non_blank_lines(section)
        lowered = [line.lower() for line in lines]

        name = ""
        for line, low in zip(lines, lowered):
            if low.startswith("name:") or low.startswith("project name:"):
                name = strip_label(line)
                break
        if not name and lines:
            name = lines[0].rstrip(":").strip()

        description = ""
        for line, low in zip(lines, lowered):
            if low.startswith("description:") or low.startswith("short description:"):
                description = strip_label(line)
                break
        else:
            if len(lines) > 1:
                second = BULLET_RE.sub("", lines[1]).strip()
                if second and ":" not in second:
                    description = second

        features = []
        for line, low in zip(lines, lowered):
            if BULLET_RE.match(line) or low.startswith("feature") or low.startswith("key feature"):
                feature = BULLET_RE.sub("", line)
                feature = re.sub(r"^(key\s+)?features?:?\s*", "", feature, flags=re.I)
                if feature:
                    features.append(feature)

        tech_stack = ""
        bonus_feature = ""
        for line, low in zip(lines, lowered):
            if not tech_stack and re.match(r"^(tech\s*stack|technolog)", low):
                tech_stack = strip_label(line)
            elif not bonus_feature and re.match(r"^(bonus|advanced)", low):
                bonus_feature = strip_label(line)

        if not description:
            sentences = [s.strip() for s in SENTENCE_SPLIT_RE.split(section) if s.strip()]
            description = ". ".join(sentences[:2])

        return ProjectIdea(
            name=name or f"Project {index + 1}",
            description=description,
            features=features,
            tech_stack=tech_stack,
            bonus_feature=bonus_feature,
        )

    def fallback(self, raw: str) -> ProjectIdea:
        return ProjectIdea(
            name="Generated Project",
            description=f"{raw[:200]}...",
            features=["See full description for details"],
            tech_stack=self.technology,
            bonus_feature="Explore advanced features",
        )


class StartupNameParser(BaseTextParser[StartupName]):
    SECTION_SPLIT_RE = re.compile(r"\n(?=\s*(?:#+\s*)?\**\d+[.)]?\s)")

    FIELD_KEYWORDS = (
        ("meaning", ("meaning", "origin", "concept")),
        ("positioning", ("positioning", "brand")),
        ("tagline", ("tagline",)),
        ("domain_style", ("domain",)),
    )

    def _parse(self, raw: str) -> list[StartupName]:
        names = []
        for section in self.SECTION_SPLIT_RE.split(raw):
            lines = non_blank_lines(section)
            # Preamble text before the numbered list is not a name.
            if not lines or not NUMBER_PREFIX_RE.match(lines[0]):
                continue
            name = strip_label(NUMBER_PREFIX_RE.sub("", lines[0], count=1))
            if not name:
                continue
            fields: dict[str, str] = {}
            for line in lines[1:]:
                low = line.lower()
                for field, keywords in self.FIELD_KEYWORDS:
                    if any(keyword in low for keyword in keywords):
                        fields.setdefault(field, strip_label(BULLET_RE.sub("", line)))
                        break
            names.append(StartupName(name=name, **fields))
        return names

    def fallback(self, raw: str) -> StartupName:
        return StartupName(
            name="Generated Name",
            meaning=raw[:150],
            positioning="See details above",
            tagline="",
            domain_style=".com",
        )
