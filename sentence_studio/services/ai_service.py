import os
from typing import Dict, List, Optional

import httpx
from dotenv import load_dotenv

from sentence_studio.constants import prompts
from sentence_studio.schemas.ai_schema import AnalyzeAction, DeepSeekRequest

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "ai.log")

load_dotenv()


class AIServiceError(Exception):
    pass


class AIService:
    """English tutoring answers from the DeepSeek chat completions API."""

    def __init__(self, client: httpx.AsyncClient = None):
        self.api_key = os.getenv("DEEPSEEK_API_KEY")
        self.api_url = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions")
        self.client = client

    async def analyze(self, sentence: str, action: str, user_level: Optional[str] = None) -> str:
        if action == AnalyzeAction.ANALYZE.value:
            messages = [
                {"role": "system", "content": prompts.SENTENCE_ANALYZER},
                {"role": "user", "content": prompts.ANALYZE_TEMPLATE.format(sentence=sentence)},
            ]
        elif action == AnalyzeAction.TRANSLATE.value:
            messages = [
                {"role": "system", "content": prompts.TRANSLATOR},
                {"role": "user", "content": prompts.TRANSLATE_TEMPLATE.format(
                    sentence=sentence, target_lang=prompts.DEFAULT_TRANSLATE_TARGET)},
            ]
        elif action == AnalyzeAction.ADVICE.value:
            messages = [
                {"role": "system", "content": prompts.ENGLISH_TUTOR},
                {"role": "user", "content": prompts.ADVICE_TEMPLATE.format(
                    sentence=sentence, user_level=user_level or prompts.DEFAULT_USER_LEVEL)},
            ]
        else:
            raise ValueError(f"Unsupported action: {action}")

        return await self._complete(messages)

    async def chat(self, message: str, context: Optional[str] = None) -> str:
        messages = [{"role": "system", "content": prompts.ENGLISH_TUTOR}]
        if context:
            messages.append({"role": "user", "content": prompts.CONTEXT_TEMPLATE.format(context=context)})
        messages.append({"role": "user", "content": message})
        return await self._complete(messages)

    async def _complete(self, messages: List[Dict[str, str]]) -> str:
        if not self.api_key:
            logger.error("DeepSeek API key not configured")
            raise AIServiceError("AI service is not configured")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        payload = DeepSeekRequest(messages=messages).model_dump()

        try:
            if self.client is not None:
                response = await self.client.post(self.api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=60.0) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling DeepSeek API: {str(e)}")
            raise AIServiceError("AI service unavailable") from e

        if response.status_code != 200:
            logger.error(f"DeepSeek API error {response.status_code}: {response.text}")
            raise AIServiceError("AI service unavailable")

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"DeepSeek returned a non-JSON body: {str(e)}")
            raise AIServiceError("AI service returned no answer") from e

        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices or not isinstance(choices, list):
            logger.error("No choices in DeepSeek response")
            raise AIServiceError("AI service returned no answer")

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            logger.error(f"Malformed DeepSeek choice: {first}")
            raise AIServiceError("AI service returned no answer")

        return content


def get_ai_service() -> AIService:
    return AIService()
