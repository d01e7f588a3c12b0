"""
Request payloads accepted by the JSON API.

Field names are camelCase on the wire; every model also accepts the
snake_case names so tests and management commands can build them directly.
"""

from datetime import datetime
from typing import List, Literal, Optional

from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

Language = Literal['French', 'Spanish']
Mode = Literal['Read', 'Respond', 'TongueTwister', 'Slang']


class Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FeedbackIn(Payload):
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    detailed_analysis: str = Field('', alias='detailedAnalysis')


class SessionIn(Payload):
    """A practice session recorded by the client."""

    id: Optional[str] = None
    date: datetime = Field(default_factory=timezone.now)
    language: Language
    accent: str
    skill_level: Literal['Novice', 'Beginner', 'Intermediate', 'Advanced', 'Expert'] = Field(
        alias='skillLevel'
    )
    flavor: Literal['Casual', 'Academic', 'Conversational', 'Professional', 'Creative']
    mode: Mode
    prompt: str
    score: float = Field(ge=0, le=100)
    feedback: FeedbackIn = Field(default_factory=FeedbackIn)
    assistant_response: Optional[str] = Field(None, alias='assistantResponse')


class PassageIn(Payload):
    id: Optional[str] = None
    text: str = Field(min_length=1)
    date: datetime = Field(default_factory=timezone.now)
    language: Language


class SlangIn(Payload):
    id: Optional[str] = None
    term: str = Field(min_length=1)
    meaning: str = ''
    example: str = ''
    region: str = 'Universal'
    language: Language
    date_learned: datetime = Field(default_factory=timezone.now, alias='dateLearned')

    @field_validator('term')
    @classmethod
    def strip_term(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("term must not be blank")
        return value


class FocusSessionIn(Payload):
    id: Optional[str] = None
    date: datetime = Field(default_factory=timezone.now)
    minutes: int = Field(ge=1)


class CustomCardIn(Payload):
    word: str = Field(min_length=1)
    definition: str = ''
    word_type: str = Field('', alias='wordType')
    language: Optional[Language] = None


class StartPracticeIn(Payload):
    mode: Mode
    text: Optional[str] = None
    context: Optional[str] = None
    flavor: Optional[
        Literal['Casual', 'Academic', 'Conversational', 'Professional', 'Creative']
    ] = None


class StudyAnswerIn(Payload):
    card_id: str = Field(alias='cardId')
    is_correct: bool = Field(alias='isCorrect')
