"""
AI service module using Pydantic AI with Logfire integration.

Wraps every Gemini call the practice flow needs: prompt and slang
generation, recording analysis, encouragement, translation (Pydantic AI
agents with validated structured output) and speech synthesis (google-genai
client, which returns raw PCM audio).

Any failure - network, quota, or output that does not match the expected
schema - is raised as :class:`coach.exceptions.GatewayError`.
"""

import logging
from functools import cached_property
from typing import List, Optional, Sequence, TypeVar

import httpx
from django.conf import settings
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel, ValidationError
from pydantic_ai import Agent, BinaryContent
from pydantic_ai.exceptions import AgentRunError
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from .analysis_models import PracticePrompt, SlangBundle, SpeechAnalysis
from .constants import LEVEL_DESCRIPTIONS
from .exceptions import GatewayError

logger = logging.getLogger(__name__)

OutputT = TypeVar('OutputT', bound=BaseModel)

_AGENT_ERRORS = (AgentRunError, ValidationError, httpx.HTTPError)


class AIService:
    """Service class for Gemini interactions with Pydantic AI and Logfire."""

    @cached_property
    def model(self) -> GoogleModel:
        """Gemini chat model, created on first use."""
        return GoogleModel(
            settings.GEMINI_MODEL,
            provider=GoogleProvider(api_key=settings.GEMINI_API_KEY),
        )

    @cached_property
    def client(self) -> genai.Client:
        """Raw google-genai client used for speech synthesis."""
        return genai.Client(api_key=settings.GEMINI_API_KEY)

    async def _run_structured(
        self,
        operation: str,
        output_type: type[OutputT],
        system_prompt: str,
        user_prompt: str | Sequence[str | BinaryContent],
    ) -> OutputT:
        """Run a one-shot agent whose output must validate as ``output_type``."""
        agent = Agent(
            model=self.model,
            output_type=output_type,
            system_prompt=system_prompt,
        )
        try:
            result = await agent.run(user_prompt)
        except _AGENT_ERRORS as e:
            logger.error("%s failed: %s", operation, e)
            raise GatewayError(f"{operation} failed") from e
        return result.output

    async def _run_text(self, operation: str, system_prompt: str, user_prompt: str) -> str:
        agent = Agent(model=self.model, system_prompt=system_prompt)
        try:
            result = await agent.run(user_prompt)
        except _AGENT_ERRORS as e:
            logger.error("%s failed: %s", operation, e)
            raise GatewayError(f"{operation} failed") from e
        text = str(result.output).strip()
        if not text:
            raise GatewayError(f"{operation} returned no text")
        return text

    async def generate_prompt(
        self,
        language: str,
        skill_level: str,
        flavor: str,
        mode: str,
        priority_words: Optional[List[str]] = None,
        context_text: str = '',
    ) -> PracticePrompt:
        """
        Generate a phrase to read aloud or an open-ended question.

        Args:
            language: Target language (French, Spanish)
            skill_level: Learner level, Novice through Expert
            flavor: Register of the prompt (Casual, Academic, ...)
            mode: ``Read`` for a phrase, anything else for a question
            priority_words: Flashcard words to weave in when natural
            context_text: Optional short scenario to set the scene

        Returns:
            Validated prompt with translation and vocabulary

        Raises:
            GatewayError: If Gemini fails or returns malformed output
        """
        kind = 'phrase to read aloud' if mode == 'Read' else 'open-ended question'
        level_description = LEVEL_DESCRIPTIONS.get(skill_level, skill_level)

        system_prompt = (
            f"You are a {language} pronunciation coach writing practice material. "
            f"Write for a {skill_level} learner ({level_description}). "
            "Keep the sentence relatively short and slightly easier than the typical "
            "level so the learner can succeed."
        )

        parts = [
            f"Generate a {kind} in {language}. The context should be {flavor}.",
        ]
        if context_text:
            parts.append(f"Scenario: {context_text}")
        if priority_words:
            parts.append(
                "If it reads naturally, use some of these words the learner is "
                f"reviewing: {', '.join(priority_words)}."
            )
        parts.append(
            "Return the text, an English translation in which the English "
            "equivalents of the vocabulary words are wrapped in **bold**, and 2-3 "
            "advanced or interesting vocabulary words from the text with word, "
            "definition (in English), englishEquivalent (the phrase used in the "
            "translation) and wordType."
        )

        return await self._run_structured(
            'Prompt generation', PracticePrompt, system_prompt, '\n'.join(parts)
        )

    async def generate_slang(
        self,
        language: str,
        accent_name: str,
        region: str,
        context_text: str = '',
    ) -> SlangBundle:
        """Generate a sentence that uses 1-2 regional slang terms."""
        system_prompt = (
            f"You are a {language} tutor who knows the everyday slang of the "
            f"{accent_name} accent region ({region or 'general'})."
        )
        prompt = (
            f"Generate a short, natural sentence in {language} that uses 1-2 slang "
            f"terms specific to the {accent_name} accent (Region: {region}). "
            f"If the accent is very specific, use local slang. If not, use common "
            f"{language} slang. Highlight the slang terms in the sentence using "
            "**bold** text. For each term give the term, its meaning as a simple "
            "English explanation, and its wordType."
        )
        if context_text:
            prompt += f"\nScenario: {context_text}"

        return await self._run_structured('Slang generation', SlangBundle, system_prompt, prompt)

    async def analyze_recording(
        self,
        audio: bytes,
        mime_type: str,
        prompt_text: str,
        language: str,
        accent: str,
        mode: str,
        skill_level: str,
    ) -> SpeechAnalysis:
        """
        Score a recording of the learner saying (or answering) ``prompt_text``.

        Args:
            audio: Raw recording bytes as uploaded by the browser
            mime_type: Media type of ``audio`` (e.g. ``audio/webm``)
            prompt_text: The literal prompt shown to the learner
            language: Target language
            accent: Human-readable accent name the learner is aiming for
            mode: Practice mode; ``Read`` means the prompt was read aloud
            skill_level: Learner level used to calibrate the score

        Returns:
            Score, strengths, improvements and a markdown analysis
        """
        action = 'reading' if mode == 'Read' else 'responding to'
        system_prompt = (
            f"You are an expert accent coach for {language}.\n"
            f"You are analyzing a student's recording of them {action} the prompt: "
            f"\"{prompt_text}\".\n"
            f"The student is a {skill_level} learner aiming for a {accent} accent.\n\n"
            "Analyze the audio for:\n"
            f"1. Pronunciation accuracy (relative to a {skill_level} level).\n"
            "2. Intonation and rhythm (prosody).\n"
            f"3. Specific accent features of {accent}.\n\n"
            "Give a score from 0 to 100, 2-3 strengths, 2-3 specific improvements "
            "and a detailedAnalysis in markdown explaining phonetics and rhythm."
        )
        return await self._run_structured(
            'Recording analysis',
            SpeechAnalysis,
            system_prompt,
            [
                'Analyze this speech recording.',
                BinaryContent(data=audio, media_type=mime_type),
            ],
        )

    async def generate_encouragement(
        self,
        feedback: dict,
        score: float,
        response_language: str,
        target_language: str,
        english_accent: str,
    ) -> str:
        """Short spoken-style summary of the feedback for the live assistant."""
        language_instruction = (
            target_language
            if response_language == 'Target'
            else f"English with a {english_accent} accent style"
        )
        prompt = (
            f"The student just completed a practice session in {target_language} "
            f"and got a score of {round(score)}/100.\n"
            f"Strengths: {', '.join(feedback.get('strengths', []))}\n"
            f"Improvements: {', '.join(feedback.get('improvements', []))}\n\n"
            "Generate a short, encouraging conversational response (2-3 sentences) "
            f"summarizing this feedback. The response MUST be in {language_instruction}. "
            "Provide ONLY the response text."
        )
        return await self._run_text(
            'Encouragement', "You are a friendly accent tutor.", prompt
        )

    async def translate_text(self, text: str, target_language: str) -> str:
        """Translate ``text`` into ``target_language``; returns only the translation."""
        return await self._run_text(
            'Translation',
            f"You translate short dictionary definitions into {target_language}. "
            "Reply with the translation only.",
            text,
        )

    async def synthesize_speech(
        self, text: str, voice_id: str = 'Kore', accent_name: str = ''
    ) -> bytes:
        """
        Speak ``text`` with a prebuilt Gemini voice.

        Returns:
            Raw mono 16-bit PCM at 24 kHz; wrap it with
            :func:`coach.audio.pcm_to_wav` before playback.
        """
        prompt = f"Say this in a natural {accent_name} accent: {text}" if accent_name else text
        try:
            response = await self.client.aio.models.generate_content(
                model=settings.GEMINI_TTS_MODEL,
                contents=prompt,
                config=genai_types.GenerateContentConfig(
                    response_modalities=['AUDIO'],
                    speech_config=genai_types.SpeechConfig(
                        voice_config=genai_types.VoiceConfig(
                            prebuilt_voice_config=genai_types.PrebuiltVoiceConfig(
                                voice_name=voice_id
                            )
                        )
                    ),
                ),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            logger.error("Speech synthesis failed: %s", e)
            raise GatewayError("Speech synthesis failed") from e

        try:
            data = response.candidates[0].content.parts[0].inline_data.data
        except (AttributeError, IndexError, TypeError):
            data = None
        if not data:
            raise GatewayError("Speech synthesis returned no audio")
        return data


# Default global AI service instance
ai_service = AIService()
