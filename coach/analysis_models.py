"""
Pydantic models for structured output from the generation service.

Every Gemini response is validated against one of these schemas before the
practice flow uses it, so malformed output never reaches the database.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GatewayModel(BaseModel):
    """Base model accepting both camelCase (wire) and snake_case names."""

    model_config = ConfigDict(populate_by_name=True)


class VocabularyItem(GatewayModel):
    """An interesting word from a generated practice prompt."""

    word: str = Field(..., min_length=1, description="The word as it appears in the text")
    definition: str = Field(..., description="Simple definition in English")
    english_equivalent: str = Field(
        ...,
        alias='englishEquivalent',
        description="The word or phrase used for it in the English translation",
    )
    word_type: str = Field(
        default='word',
        alias='wordType',
        description="Part of speech (noun, verb, expression, ...)",
    )

    @field_validator('word')
    @classmethod
    def strip_word(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("word must not be blank")
        return value


class PracticePrompt(GatewayModel):
    """A generated phrase to read aloud or question to respond to."""

    text: str = Field(..., min_length=1, description="Prompt in the target language")
    translation: str = Field(
        ...,
        description="English translation with vocabulary equivalents in **bold**",
    )
    vocabulary: List[VocabularyItem] = Field(
        default=[], description="2-3 advanced or interesting words from the text"
    )


class SlangItem(GatewayModel):
    """A regional slang term used in a generated sentence."""

    term: str = Field(..., min_length=1, description="The slang word or phrase")
    meaning: str = Field(..., description="Simple explanation in English")
    word_type: str = Field(default='slang', alias='wordType')


class SlangBundle(GatewayModel):
    """A sentence built around one or two slang terms."""

    sentence: str = Field(
        ..., min_length=1, description="Full sentence with slang terms in **bold**"
    )
    terms: List[SlangItem] = Field(..., description="Slang terms used in the sentence")


class SpeechAnalysis(GatewayModel):
    """Acoustic feedback on a single recording."""

    score: float = Field(..., ge=0, le=100, description="Overall score from 0 to 100")
    strengths: List[str] = Field(..., description="2-3 things done well")
    improvements: List[str] = Field(..., description="2-3 specific areas to work on")
    detailed_analysis: str = Field(
        ...,
        alias='detailedAnalysis',
        description="Markdown explanation of phonetics and rhythm issues",
    )

    def feedback(self) -> dict:
        """Feedback payload as stored on a practice session."""
        return {
            'strengths': list(self.strengths),
            'improvements': list(self.improvements),
            'detailedAnalysis': self.detailed_analysis,
        }
