"""Best-effort parsers turning free-text model replies into structured data.

All parsers are total: replies that ignore the requested layout degrade
into the most general bucket instead of raising.
"""
import json
import re
from enum import Enum
from typing import List, Optional, Tuple

import structlog
from pydantic import ValidationError

from app.models import Flashcard, KeyTerm, SolverData, SolverStep, SummaryData

logger = structlog.get_logger()


class Section(Enum):
    NONE = "none"
    MAIN = "main"
    TERMS = "terms"
    POINTS = "points"
    CONNECTIONS = "connections"


_MAIN_HEADER = re.compile(r"^(?:main idea|overview|summary)(?:[:\s]|$)", re.IGNORECASE)
_TERMS_HEADER = re.compile(r"^(?:key terms?|vocabulary|important terms?)[:\s]*", re.IGNORECASE)
_POINTS_HEADER = re.compile(r"^(?:key points?|main points?|important points?)[:\s]*", re.IGNORECASE)
_CONNECTIONS_HEADER = re.compile(r"^(?:connections?|how .+ connect|relationships?)[:\s]*", re.IGNORECASE)

_LIST_MARKER = re.compile(r"^(?:[-\u2022*]|\d+[.)])\s*")
_TERM_SPLIT = re.compile(r"^(.+?)\s*(?::|\s[-\u2013\u2014]\s)\s*(.*)$")

_STEP_HEADER = re.compile(r"^(?:step\s*)?(\d+)[.:]\s*(.+)?", re.IGNORECASE)
_STEP_FIELD = re.compile(r"^(goal|process|result|tip):\s*(.+)", re.IGNORECASE)
_FINAL_ANSWER = re.compile(r"^final\s*answer:\s*(.+)", re.IGNORECASE)

_CARD_BREAK = re.compile(r"(?=\b(?:(?:flash)?card\s*\d+|\d+[.)]\s*front))", re.IGNORECASE)
_CARD_HEADING = re.compile(r"^(?:(?:flash)?card\s*\d+[.):]?|\d+[.):])\s*", re.IGNORECASE)
_CARD_FRONT = re.compile(r"^(?:(?:front|question)[:\s]+|q:\s*)(.+)", re.IGNORECASE)
_CARD_BACK = re.compile(r"^(?:(?:back|answer)[:\s]+|a:\s*)(.+)", re.IGNORECASE)

# (pattern, replacement) applied in order by clean_text
_CLEANUPS = [
    (re.compile(r"\\\[[\s\S]*?\\\]"), ""),
    (re.compile(r"\\\([\s\S]*?\\\)"), ""),
    (re.compile(r"\\boxed\{([^}]*)\}"), r"\1"),
    (re.compile(r"\$([^$]+)\$"), r"\1"),
    (re.compile(r"^[ \t]*#{1,6}[ \t]*", re.MULTILINE), ""),
    (re.compile(r"\*\*([^*\n]+)\*\*"), r"\1"),
    (re.compile(r"__([^_\n]+)__"), r"\1"),
    (re.compile(r"(?<![\w*])\*(?!\s)([^*\n]+?)\*(?!\w)"), r"\1"),
    (re.compile(r"(?<!\w)_(?!\s)([^_\n]+?)_(?!\w)"), r"\1"),
    (re.compile(r"\*\*"), ""),
]


def clean_text(text: Optional[str]) -> str:
    """Strip emphasis, heading markers and LaTeX wrappers from a reply"""
    text = text or ""
    for pattern, replacement in _CLEANUPS:
        text = pattern.sub(replacement, text)
    return text.strip()


def _lines(text: Optional[str]) -> List[str]:
    return [line.strip() for line in clean_text(text).splitlines() if line.strip()]


def _split_term(text: str) -> Optional[Tuple[str, str]]:
    match = _TERM_SPLIT.match(text)
    if not match:
        return None
    term, definition = match.group(1).strip(), match.group(2).strip()
    if not term or not definition:
        return None
    return term, definition


def parse_summary(raw_text: Optional[str]) -> SummaryData:
    """Parse a summarizer reply into main idea, key terms, points and connections.

    Headers ("Main Idea:", "Key Terms:", "Key Points:", "Connections:" and their
    variants) switch the current section; bulleted or numbered lines are
    filed under it. Anything that cannot be placed ends up in ``points``.
    If no main idea was found, the first point is promoted to it.
    """
    main_idea = ""
    key_terms: List[KeyTerm] = []
    points: List[str] = []
    connections: List[str] = []
    section = Section.NONE

    for line in _lines(raw_text):
        header = _MAIN_HEADER.match(line)
        if header:
            section = Section.MAIN
            remainder = line[header.end():].lstrip(":").strip()
            if remainder:
                main_idea = remainder
            continue
        if _TERMS_HEADER.match(line):
            section = Section.TERMS
            continue
        if _POINTS_HEADER.match(line):
            section = Section.POINTS
            continue
        if _CONNECTIONS_HEADER.match(line):
            section = Section.CONNECTIONS
            continue

        marker = _LIST_MARKER.match(line)
        if marker:
            content = line[marker.end():].strip()
            if not content:
                continue
            if section == Section.TERMS:
                pair = _split_term(content)
                if pair:
                    key_terms.append(KeyTerm(term=pair[0], definition=pair[1]))
                else:
                    points.append(content)
            elif section == Section.CONNECTIONS:
                connections.append(content)
            else:
                points.append(content)
        elif section == Section.MAIN and not main_idea:
            main_idea = line
        elif section == Section.NONE and not main_idea:
            main_idea = line
            section = Section.MAIN
        elif section == Section.MAIN:
            main_idea = f"{main_idea} {line}"
        else:
            points.append(line)

    if not main_idea and points:
        main_idea = points.pop(0)

    return SummaryData(
        main_idea=main_idea,
        key_terms=key_terms,
        points=points,
        connections=connections,
    )


def serialize_summary(summary: SummaryData) -> str:
    """JSON form stored as a summarizer session's output_text"""
    return summary.model_dump_json(by_alias=True)


def load_summary(output_text: Optional[str]) -> SummaryData:
    """Rebuild a stored summary, re-parsing rows that hold a raw reply"""
    try:
        return SummaryData.model_validate(json.loads(output_text or ""))
    except (ValueError, TypeError, ValidationError):
        logger.debug("Stored summary is not serialized JSON, re-parsing")
        return parse_summary(output_text)


def parse_solver_steps(raw_text: Optional[str]) -> SolverData:
    """Parse a step-by-step solution into numbered steps and a final answer"""
    steps: List[SolverStep] = []
    current: Optional[dict] = None
    final_answer = ""

    def flush():
        if current is not None:
            current["explanation"] = " ".join(current["explanation"])
            steps.append(SolverStep(**current))

    for line in _lines(raw_text):
        final = _FINAL_ANSWER.match(line)
        if final:
            final_answer = final.group(1).strip()
            continue

        step = _STEP_HEADER.match(line)
        if step:
            flush()
            number = int(step.group(1))
            current = {
                "number": number,
                "title": (step.group(2) or "").strip() or f"Step {number}",
                "explanation": [],
            }
            continue

        if current is None:
            continue
        field = _STEP_FIELD.match(line)
        if field:
            current[field.group(1).lower()] = field.group(2).strip()
        else:
            current["explanation"].append(line)

    flush()
    return SolverData(steps=steps, final_answer=final_answer)


def parse_flashcards(raw_text: Optional[str]) -> List[Flashcard]:
    """Split a flashcards reply into numbered front/back cards.

    Blocks start at "Card N", "Flashcard N" or "N. Front". Inside a block,
    Front/Question/Q and Back/Answer/A labels fill the two sides; a block
    without labels uses its first line as the front and the rest as the back.
    Blocks that end up missing a side are dropped.
    """
    cards: List[Flashcard] = []
    for block in _CARD_BREAK.split(clean_text(raw_text)):
        lines = [line.strip() for line in block.splitlines() if line.strip()]
        front = back = ""
        for line in lines:
            bare = _CARD_HEADING.sub("", line)
            front_match = _CARD_FRONT.match(bare)
            back_match = _CARD_BACK.match(bare)
            if front_match:
                front = front_match.group(1).strip()
            elif back_match:
                back = back_match.group(1).strip()

        if not front and not back and lines:
            heading = _CARD_HEADING.sub("", lines[0]).strip()
            rest = lines[1:]
            if not heading and rest:
                heading, rest = rest[0], rest[1:]
            if heading and rest:
                front, back = heading, " ".join(rest)

        if front and back:
            cards.append(Flashcard(id=len(cards) + 1, front=front, back=back))

    logger.debug("Parsed flashcards", count=len(cards))
    return cards
