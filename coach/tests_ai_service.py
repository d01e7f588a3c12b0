"""
Tests for the Gemini service wrapper.

Agents are patched so no request leaves the process.
"""

from unittest.mock import AsyncMock, MagicMock, patch

from django.test import SimpleTestCase
from pydantic_ai import BinaryContent
from pydantic_ai.exceptions import UnexpectedModelBehavior

from .ai_service import AIService
from .analysis_models import PracticePrompt, SpeechAnalysis
from .exceptions import GatewayError


def service_with_agent(MockAgent: MagicMock, output) -> tuple[AIService, AsyncMock]:
    mock_agent_instance = AsyncMock()
    mock_result = MagicMock()
    mock_result.output = output
    mock_agent_instance.run.return_value = mock_result
    MockAgent.return_value = mock_agent_instance

    service = AIService()
    service.__dict__['model'] = MagicMock()
    return service, mock_agent_instance


class AIServiceTest(SimpleTestCase):
    """Test AI service functionality with mocked agents."""

    @patch('coach.ai_service.Agent')
    async def test_generate_prompt(self, MockAgent: MagicMock) -> None:
        prompt = PracticePrompt(text='Bonjour !', translation='Hello!', vocabulary=[])
        service, agent = service_with_agent(MockAgent, prompt)

        result = await service.generate_prompt(
            'French', 'Beginner', 'Casual', 'Read', ['chien', 'chat'], 'At the park'
        )

        self.assertEqual(result, prompt)
        self.assertIs(MockAgent.call_args.kwargs['output_type'], PracticePrompt)
        user_prompt = agent.run.call_args[0][0]
        self.assertIn('phrase to read aloud', user_prompt)
        self.assertIn('chien, chat', user_prompt)
        self.assertIn('Scenario: At the park', user_prompt)

    @patch('coach.ai_service.Agent')
    async def test_respond_mode_asks_for_question(self, MockAgent: MagicMock) -> None:
        prompt = PracticePrompt(text='¿Qué comiste hoy?', translation='What did you eat today?')
        service, agent = service_with_agent(MockAgent, prompt)

        await service.generate_prompt('Spanish', 'Novice', 'Conversational', 'Respond')

        user_prompt = agent.run.call_args[0][0]
        self.assertIn('open-ended question', user_prompt)
        self.assertNotIn('Scenario', user_prompt)

    @patch('coach.ai_service.Agent')
    async def test_analyze_recording_sends_audio(self, MockAgent: MagicMock) -> None:
        analysis = SpeechAnalysis(
            score=75, strengths=['a'], improvements=['b'], detailed_analysis='c'
        )
        service, agent = service_with_agent(MockAgent, analysis)

        result = await service.analyze_recording(
            b'audio-bytes', 'audio/webm', 'Bonjour', 'French', 'Québécois', 'Read', 'Beginner'
        )

        self.assertEqual(result.score, 75)
        parts = agent.run.call_args[0][0]
        self.assertIsInstance(parts[1], BinaryContent)
        self.assertEqual(parts[1].data, b'audio-bytes')
        self.assertEqual(parts[1].media_type, 'audio/webm')
        self.assertIn('Québécois', MockAgent.call_args.kwargs['system_prompt'])

    @patch('coach.ai_service.Agent')
    async def test_agent_failure_becomes_gateway_error(self, MockAgent: MagicMock) -> None:
        service, agent = service_with_agent(MockAgent, None)
        agent.run.side_effect = UnexpectedModelBehavior('output did not validate')

        with self.assertRaises(GatewayError):
            await service.generate_slang('French', 'Québécois', 'Canada')

    @patch('coach.ai_service.Agent')
    async def test_encouragement_language(self, MockAgent: MagicMock) -> None:
        service, agent = service_with_agent(MockAgent, '  Great job!  ')

        text = await service.generate_encouragement(
            {'strengths': ['rhythm'], 'improvements': ['vowels']},
            81.6,
            'English',
            'French',
            'British',
        )

        self.assertEqual(text, 'Great job!')
        user_prompt = agent.run.call_args[0][0]
        self.assertIn('82/100', user_prompt)
        self.assertIn('English with a British accent style', user_prompt)

    @patch('coach.ai_service.Agent')
    async def test_empty_translation_is_an_error(self, MockAgent: MagicMock) -> None:
        service, _ = service_with_agent(MockAgent, '   ')
        with self.assertRaises(GatewayError):
            await service.translate_text('dog', 'French')

    async def test_synthesize_speech_returns_pcm(self) -> None:
        service = AIService()
        part = MagicMock()
        part.inline_data.data = b'\x01\x02'
        response = MagicMock()
        response.candidates = [MagicMock()]
        response.candidates[0].content.parts = [part]
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response)
        service.__dict__['client'] = client

        pcm = await service.synthesize_speech('Bonjour', 'Puck', 'Québécois')

        self.assertEqual(pcm, b'\x01\x02')
        kwargs = client.aio.models.generate_content.call_args.kwargs
        self.assertIn('Québécois', kwargs['contents'])
        voice = kwargs['config'].speech_config.voice_config.prebuilt_voice_config
        self.assertEqual(voice.voice_name, 'Puck')

    async def test_synthesize_speech_without_audio_fails(self) -> None:
        service = AIService()
        response = MagicMock()
        response.candidates = []
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response)
        service.__dict__['client'] = client

        with self.assertRaises(GatewayError):
            await service.synthesize_speech('Bonjour')
