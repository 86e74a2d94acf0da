from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class FeatureType(str, Enum):
    SOLVER = "solver"
    EXPLAINER = "explainer"
    SUMMARIZER = "summarizer"
    QUESTIONS = "questions"
    PLANNER = "planner"
    FLASHCARDS = "flashcards"
    NOTES = "notes"
    CHAT = "chat"


class Subject(str, Enum):
    MATH = "math"
    SCIENCE = "science"
    ELA = "ela"
    SOCIAL_STUDIES = "social-studies"


class GradeLevel(str, Enum):
    ELEMENTARY = "elementary"
    MIDDLE = "middle"
    HIGH = "high"


class SummaryLength(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"
    KEY_POINTS = "key-points"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    SHORT_ANSWER = "short-answer"
    TRUE_FALSE = "true-false"
    MIXED = "mixed"


class ToolRequest(BaseModel):
    """Input and modifiers for one study tool invocation"""
    model_config = ConfigDict(populate_by_name=True)

    input: str = Field(..., min_length=1)
    subject: Optional[Subject] = None
    grade_level: Optional[GradeLevel] = Field(default=None, alias="gradeLevel")
    summary_length: Optional[SummaryLength] = Field(default=None, alias="summaryLength")
    question_count: Optional[int] = Field(default=None, ge=1, le=50, alias="questionCount")
    question_type: Optional[QuestionType] = Field(default=None, alias="questionType")
    sequence: Optional[int] = Field(default=None, ge=0)

    @field_validator('input')
    def validate_input(cls, v):
        if not v.strip():
            raise ValueError('Input cannot be empty')
        return v


class CompletionRequest(ToolRequest):
    feature: FeatureType


class CompletionResponse(BaseModel):
    response: str


# Summarizer output
class KeyTerm(BaseModel):
    term: str
    definition: str


class SummaryData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    main_idea: str = Field(default="", alias="mainIdea")
    key_terms: List[KeyTerm] = Field(default_factory=list, alias="keyTerms")
    points: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)


# Solver output
class SolverStep(BaseModel):
    number: int
    title: str
    goal: Optional[str] = None
    process: Optional[str] = None
    result: Optional[str] = None
    tip: Optional[str] = None
    explanation: str = ""


class SolverData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    steps: List[SolverStep] = Field(default_factory=list)
    final_answer: str = Field(default="", alias="finalAnswer")


# Flashcards output
class Flashcard(BaseModel):
    id: int
    front: str
    back: str


class ToolResponse(BaseModel):
    success: bool
    message: str
    feature: FeatureType
    response: str
    processing_time: float
    session_saved: bool = False
    sequence: Optional[int] = None
    stale: bool = False


class SummaryToolResponse(ToolResponse):
    summary: SummaryData


class SolverToolResponse(ToolResponse):
    solution: SolverData


class FlashcardsToolResponse(ToolResponse):
    cards: List[Flashcard] = Field(default_factory=list)


# Persisted study sessions
class NewStudySession(BaseModel):
    feature_type: FeatureType
    subject: Optional[str] = None
    input_text: str
    output_text: str


class StudySession(BaseModel):
    id: str
    feature_type: str
    subject: Optional[str] = None
    input_text: str
    output_text: str
    created_at: datetime

    @field_validator('id', mode='before')
    def coerce_id(cls, v):
        return str(v)


class HistoryEntry(BaseModel):
    id: str
    feature_type: str
    feature_name: str
    subject_label: Optional[str] = None
    created_at: datetime
    created_at_display: str
    input_preview: str
    input_text: str
    output_text: str
    expanded: bool = False


class HistoryResponse(BaseModel):
    authenticated: bool
    feature: Optional[FeatureType] = None
    sessions: List[HistoryEntry] = Field(default_factory=list)
    total: int = 0
    error: Optional[str] = None


class DeleteSessionResponse(BaseModel):
    success: bool
    deleted_id: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class HealthCheckResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    components_status: Dict[str, str]
