import os
from typing import Optional

import httpx
from dotenv import load_dotenv

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "translate.log")

load_dotenv()

# DeepL wants a regional variant for English targets
TARGET_CODES = {"zh": "ZH", "en": "EN-US"}
SOURCE_CODES = {"zh": "EN", "en": "ZH"}


class TranslationError(Exception):
    pass


class TranslateService:

    def __init__(self, client: httpx.AsyncClient = None):
        self.auth_key = os.getenv("DEEPL_AUTH_KEY")
        self.api_url = os.getenv("DEEPL_API_URL", "https://api-free.deepl.com/v2/translate")
        self.client = client

    async def translate(self, text: str, target_lang: str) -> dict:
        if not self.auth_key:
            logger.error("DEEPL_AUTH_KEY is not set")
            raise TranslationError("Translation service is not configured")

        payload = {
            "text": [text],
            "source_lang": SOURCE_CODES[target_lang],
            "target_lang": TARGET_CODES[target_lang],
            "preserve_formatting": True,
        }
        headers = {"Authorization": f"DeepL-Auth-Key {self.auth_key}"}

        try:
            if self.client is not None:
                response = await self.client.post(self.api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling DeepL: {str(e)}")
            raise TranslationError("Translation service unavailable") from e

        if response.status_code != 200:
            logger.error(f"DeepL error {response.status_code}: {response.text}")
            raise TranslationError("Translation service unavailable")

        translations = response.json().get("translations") or []
        if not translations:
            raise TranslationError("Translation service returned no result")

        first = translations[0]
        detected: Optional[str] = first.get("detected_source_language")
        return {
            "translation": first.get("text", ""),
            "detected_lang": detected.lower() if detected else None,
        }


def get_translate_service() -> TranslateService:
    return TranslateService()
