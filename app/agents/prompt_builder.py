"""Prompt templates for each study tool.

The summarizer template and ``response_parser.parse_summary`` are a matched
pair: the section headers and bullet style requested here are exactly the
ones the parser recognises, so change them together.
"""
from datetime import date
from typing import Optional, Union

from app.models import FeatureType, Subject, GradeLevel, SummaryLength, QuestionType

SUBJECT_NAMES = {
    Subject.MATH: "Math",
    Subject.SCIENCE: "Science",
    Subject.ELA: "English Language Arts",
    Subject.SOCIAL_STUDIES: "Social Studies",
}

GRADE_LEVEL_NAMES = {
    GradeLevel.ELEMENTARY: "elementary school (grades 3-5)",
    GradeLevel.MIDDLE: "middle school (grades 6-8)",
    GradeLevel.HIGH: "high school (grades 9-12)",
}

SUMMARY_INSTRUCTIONS = {
    SummaryLength.BRIEF: "Provide a brief summary in 2-3 sentences.",
    SummaryLength.DETAILED: "Provide a detailed summary covering all main points.",
    SummaryLength.KEY_POINTS: "List only the key points as bullet points.",
}

DEFAULT_QUESTION_COUNT = 5

SUMMARY_TEMPLATE = """Main Idea: [one or two sentences stating the central idea]

Key Terms:
- [term]: [short definition]

Key Points:
- [important point]

Connections:
- [how this connects to other ideas or topics]"""

SYSTEM_PROMPTS = {
    FeatureType.SOLVER: """You are an expert tutor helping students solve problems step-by-step.
Your role is to break down problems into clear, numbered steps that students can follow.

For EACH step, structure your response like this:
Step [number]: [Short title describing what we do]

Goal: [One sentence explaining what we want to achieve in this step]

Process: [Clear explanation of how to do it, broken into short sentences]

Result: [What we get after completing this step]

Tip: [Optional helpful hint or common mistake to avoid]

Rules:
- Use simple, plain language (no LaTeX, no special symbols like $ or \\boxed)
- Write numbers and equations in plain text (like "2x + 5 = 15" not "$2x + 5 = 15$")
- Keep each section short (1-2 sentences max)
- Make the final step extra clear with the complete answer
- End with "Final Answer: [the answer in plain text]\"""",

    FeatureType.EXPLAINER: """You are a patient and clear teacher who explains concepts to students.
Your role is to make complex topics easy to understand.
- Use simple, age-appropriate language
- Provide relatable examples and analogies
- Break down concepts into digestible parts
- Connect new ideas to things students already know
- Be encouraging and supportive""",

    FeatureType.SUMMARIZER: """You are an expert at condensing information into clear, concise summaries.
Your role is to help students understand key points from their study materials.
- Identify and highlight the main ideas
- Remove unnecessary details while keeping essential information
- Use bullet points for clarity
- Maintain the original meaning and accuracy
- Follow the requested section headings exactly""",

    FeatureType.QUESTIONS: """You are a test preparation expert who creates practice questions.
Your role is to help students test their knowledge.
- Create clear, well-written questions
- Include a mix of difficulty levels
- For multiple choice, include plausible distractors
- Provide correct answers with brief explanations
- Focus on key concepts and understanding""",

    FeatureType.PLANNER: """You are a smart scheduling assistant that parses natural language into structured task data.
Your role is to extract activity details from casual descriptions.
- Parse dates relative to today (tomorrow, next Monday, etc.)
- Extract times in 24-hour format
- Estimate reasonable durations if not specified
- Identify subject categories when mentioned
- Return ONLY valid JSON, no other text""",

    FeatureType.FLASHCARDS: "Create flashcards. Format: Front: [term] Back: [definition]. Be concise.",

    FeatureType.NOTES: "Create brief study notes with bullet points.",

    FeatureType.CHAT: "Be a helpful, concise study assistant. Give short, clear answers.",
}


def _coerce(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def get_system_prompt(feature: Union[FeatureType, str]) -> str:
    """System instruction sent alongside the prompt for ``feature``"""
    return SYSTEM_PROMPTS.get(_coerce(FeatureType, feature), "")


def build_prompt(
    feature: Union[FeatureType, str],
    input_text: str,
    subject: Optional[Union[Subject, str]] = None,
    grade_level: Optional[Union[GradeLevel, str]] = None,
    summary_length: Optional[Union[SummaryLength, str]] = None,
    question_count: Optional[int] = None,
    question_type: Optional[Union[QuestionType, str]] = None,
    today: Optional[date] = None,
) -> str:
    """Compose the instruction string sent to the completion service.

    Unknown features, and features whose input already is a full prompt
    (flashcards, notes), return ``input_text`` unchanged.
    """
    feature = _coerce(FeatureType, feature)
    subject = _coerce(Subject, subject)
    grade_level = _coerce(GradeLevel, grade_level)
    summary_length = _coerce(SummaryLength, summary_length) or SummaryLength.DETAILED
    question_type = _coerce(QuestionType, question_type) or QuestionType.MIXED

    subject_name = SUBJECT_NAMES.get(subject, "")
    grade_level_name = GRADE_LEVEL_NAMES.get(grade_level, "high school")

    if feature == FeatureType.SOLVER:
        subject_prefix = f"{subject_name} " if subject_name else ""
        return f"""Please solve this {subject_prefix}problem step-by-step:

{input_text}

For each step, include:
- Goal: What we want to achieve
- Process: How to do it (in simple terms)
- Result: What we get

Use plain text only - no special math symbols. End with the final answer."""

    if feature == FeatureType.EXPLAINER:
        return f"""Please explain this concept/text at a {grade_level_name} level:

{input_text}

Make it easy to understand with examples and analogies."""

    if feature == FeatureType.SUMMARIZER:
        return f"""Please summarize the following text. {SUMMARY_INSTRUCTIONS[summary_length]}

Format your summary exactly like this, keeping the section headings:
{SUMMARY_TEMPLATE}

Text:
{input_text}"""

    if feature == FeatureType.QUESTIONS:
        count = question_count or DEFAULT_QUESTION_COUNT
        return f"""Based on the following study material, generate {count} practice questions.
Question type: {question_type.value}
Subject: {subject_name or 'General'}

Study Material:
{input_text}

Include the correct answers with brief explanations after each question."""

    if feature == FeatureType.PLANNER:
        today = today or date.today()
        return f"""Parse this activity description into structured task data.
Today is {today.strftime('%A')}, {today.isoformat()}.

User input: "{input_text}"

Return ONLY a JSON object with these fields:
{{
  "title": "activity name (extracted or inferred)",
  "date": "YYYY-MM-DD format",
  "time": "HH:MM in 24-hour format (or null if not specified)",
  "duration": number in minutes (default 60 if not specified),
  "subject": "math" | "science" | "ela" | "social-studies" | "general",
  "confidence": number between 0 and 1
}}

Return ONLY the JSON, no explanation."""

    if feature == FeatureType.CHAT:
        return f"""You are a helpful, friendly AI study assistant. You help students learn, understand concepts, solve problems, and answer questions about any subject.

Be conversational, encouraging, and educational. When explaining concepts, use clear language and examples. If asked to solve problems, show your work step by step.

Student's question:
{input_text}

Provide a helpful, clear response."""

    return input_text
