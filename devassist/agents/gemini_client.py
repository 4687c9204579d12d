from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from devassist.config.app_config import TEMPERATURE, THINKING_BUDGET, get_model_name
from devassist.config.prompts import SYSTEM_INSTRUCTION
from devassist.utils.custom_exceptions import MissingCredentialError, QuotaExhaustedError
from devassist.utils.logging_utils import logger


def _is_quota_error(error: genai_errors.APIError) -> bool:
    return error.code == 429 or error.status == "RESOURCE_EXHAUSTED"


class GeminiClient:
    """
    Thin wrapper around the Google GenAI SDK exposing the two calls the
    session needs: a streamed chat turn and a one-shot analysis.
    """

    def __init__(self, api_key: Optional[str], model_name: Optional[str] = None,
                 temperature: float = TEMPERATURE, thinking_budget: int = THINKING_BUDGET):
        if not api_key:
            raise MissingCredentialError()
        self.model_name = model_name or get_model_name()
        self.temperature = temperature
        self.thinking_budget = thinking_budget
        self.client = genai.Client(api_key=api_key)
        logger.debug(f"GeminiClient initialized: model={self.model_name}, temp={temperature}")

    def _convert_history(self, history: Sequence[Tuple[str, str]]) -> List[Dict]:
        """
        Converts (role, text) turns to the SDK's content format, merging
        consecutive turns of the same role and skipping empty ones.
        """
        google_messages = []
        for role, text in history:
            if not text or not text.strip():
                continue
            if google_messages and google_messages[-1]['role'] == role:
                google_messages[-1]['parts'][0]['text'] += f"\n\n{text}"
            else:
                google_messages.append({'role': role, 'parts': [{'text': text}]})
        return google_messages

    async def stream_message(self, history: Sequence[Tuple[str, str]], message: str,
                             system_instruction: str = SYSTEM_INSTRUCTION) -> AsyncIterator[str]:
        """Send one chat turn and yield the response text as it arrives."""
        contents = self._convert_history(list(history) + [('user', message)])
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature,
        )
        logger.info(f"Calling {self.model_name} with {len(contents)} turns")
        try:
            response = await self.client.aio.models.generate_content_stream(
                model=self.model_name,
                contents=contents,
                config=config,
            )
            async for chunk in response:
                text = chunk.text
                if text:
                    yield text
        except genai_errors.APIError as e:
            if _is_quota_error(e):
                raise QuotaExhaustedError(str(e)) from e
            raise

    async def generate_analysis(self, context: str, query: str) -> str:
        """Run a non-streaming analysis of the whole file context."""
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget),
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=f"CONTEXT:\n{context}\n\nQUERY:\n{query}",
                config=config,
            )
        except genai_errors.APIError as e:
            if _is_quota_error(e):
                raise QuotaExhaustedError(str(e)) from e
            raise
        return response.text or ""
