import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from openai import APIConnectionError, AsyncOpenAI, InternalServerError, RateLimitError

from ..config import env
from ..errors import ProviderError, ProviderNotConfigured
from . import prompts


logger = logging.getLogger(__name__)

EXTRACTION_MODEL = "gpt-4o"
GENERATION_MODEL = "gpt-4o"
FORMATTING_MODEL = "gpt-4"
SIDEBAR_MODEL = "gpt-4"
CHATBOT_MODEL = "gpt-3.5-turbo"
ANALYSIS_MODEL = "gpt-4o"
EMAIL_MODEL = "gpt-4o"

CHAT_HISTORY_LIMIT = 10


def _parse_json(text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProviderError(f"Failed to parse AI response as JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ProviderError("Failed to parse AI response as JSON: expected an object")
    return parsed


class OpenAIClient:
    def __init__(self) -> None:
        api_key = env("OPENAI_API_KEY")
        self.configured = bool(api_key)
        self.client = AsyncOpenAI(api_key=api_key) if self.configured else None
        if not self.configured:
            logger.info("OpenAIClient initialized without OPENAI_API_KEY, AI endpoints are disabled")

    @retry(
        wait=wait_exponential(min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type((APIConnectionError, RateLimitError, InternalServerError)),
        reraise=True,
    )
    async def _complete(self, model: str, messages: List[Dict[str, str]], temperature: float,
                        max_tokens: int, json_mode: bool = False) -> str:
        if not self.configured:
            raise ProviderNotConfigured("OPENAI_API_KEY is not configured")
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            chat = await self.client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"OpenAI call failed ({model}): {type(e).__name__}: {e}")
            raise
        return chat.choices[0].message.content or ""

    async def extract_document_profile(self, extracted_text: str) -> Dict[str, Any]:
        content = await self._complete(
            EXTRACTION_MODEL,
            [
                {"role": "system", "content": prompts.DOCUMENT_EXTRACTOR_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.document_extraction_message(extracted_text)},
            ],
            temperature=0.2,
            max_tokens=2000,
            json_mode=True,
        )
        if not content:
            raise ProviderError("No response from OpenAI")
        result = _parse_json(content)
        return {"extractedProfile": result, "missingFields": result.get("missingFields") or []}

    async def generate_prompt_from_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        content = await self._complete(
            GENERATION_MODEL,
            [
                {"role": "system", "content": prompts.PROMPT_GENERATOR_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.prompt_generation_message(profile)},
            ],
            temperature=0.2,
            max_tokens=3000,
            json_mode=True,
        )
        if not content:
            raise ProviderError("No response from OpenAI")
        return _parse_json(content)

    async def format_raw_prompt(self, raw_prompt: str) -> str:
        content = await self._complete(
            FORMATTING_MODEL,
            [
                {"role": "system", "content": prompts.PROMPT_FORMATTER_SYSTEM_PROMPT},
                {"role": "user", "content": f"Format this prompt:\n\n{raw_prompt}"},
            ],
            temperature=0.5,
            max_tokens=2000,
        )
        if not content:
            raise ProviderError("No response from OpenAI")
        return content

    async def sidebar_generate(self, business_type: str, business_description: str) -> str:
        return await self._complete(
            SIDEBAR_MODEL,
            [
                {"role": "system", "content": prompts.SIDEBAR_GENERATE_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.sidebar_generate_message(business_type, business_description)},
            ],
            temperature=0.7,
            max_tokens=1000,
        )

    async def sidebar_format(self, prompt_to_format: str) -> str:
        return await self._complete(
            SIDEBAR_MODEL,
            [
                {"role": "system", "content": prompts.SIDEBAR_FORMAT_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.SIDEBAR_FORMAT_INSTRUCTIONS.format(prompt=prompt_to_format)},
            ],
            temperature=0.7,
            max_tokens=1500,
        )

    async def chat(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> str:
        messages = [{"role": "system", "content": prompts.CHATBOT_SYSTEM_PROMPT}]
        for item in (history or [])[-CHAT_HISTORY_LIMIT:]:
            if isinstance(item, dict) and item.get("role") and item.get("content") is not None:
                messages.append({"role": item["role"], "content": item["content"]})
        messages.append({"role": "user", "content": message})
        content = await self._complete(CHATBOT_MODEL, messages, temperature=0.7, max_tokens=500)
        return content or prompts.CHATBOT_FALLBACK_REPLY

    async def generate_email(self, lead_info: Optional[Dict[str, Any]], email_type: str = "follow-up",
                             tone: str = "professional", purpose: Optional[str] = None,
                             context: Optional[str] = None) -> Dict[str, str]:
        content = await self._complete(
            EMAIL_MODEL,
            [
                {"role": "system", "content": prompts.EMAIL_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.email_user_prompt(lead_info, email_type, tone, purpose, context)},
            ],
            temperature=0.7,
            max_tokens=1000,
            json_mode=True,
        )
        try:
            parsed = json.loads(content)
            return {
                "subject": parsed.get("subject") or "Follow-up Email",
                "body": (parsed.get("body") or "").replace("\\n", "\n"),
            }
        except (json.JSONDecodeError, AttributeError):
            # Plain-text answer: pull a "Subject:" line out if there is one
            subject = next(
                (line.split(":", 1)[-1].strip() for line in content.split("\n") if "subject" in line.lower()),
                "Follow-up Email",
            )
            body = "\n".join(line for line in content.split("\n") if "subject" not in line.lower()).strip()
            return {
                "subject": subject or "Follow-up Email",
                "body": body or "Thank you for your interest. We'd like to follow up with you.",
            }

    async def generate_email_template(self, name: str, description: Optional[str] = None,
                                      email_type: str = "follow-up", tone: str = "professional",
                                      purpose: Optional[str] = None) -> Dict[str, str]:
        content = await self._complete(
            EMAIL_MODEL,
            [
                {"role": "system", "content": prompts.EMAIL_TEMPLATE_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.template_user_prompt(name, description, email_type, tone, purpose)},
            ],
            temperature=0.7,
            max_tokens=1000,
            json_mode=True,
        )
        try:
            parsed = json.loads(content)
            return {
                "subject": parsed.get("subject") or "Follow-up: {{contact_name}}",
                "body": (parsed.get("body") or "").replace("\\n", "\n"),
            }
        except (json.JSONDecodeError, AttributeError):
            return {
                "subject": "Follow-up: {{contact_name}}",
                "body": (
                    "Hello {{contact_name}},\n\nThank you for your interest. We'd like to follow up regarding "
                    "our conversation on {{call_date}}.\n\nBest regards"
                ),
            }

    async def analyze_call(self, transcript: str) -> Dict[str, Any]:
        """Returns {"success": True, "analysis": ...} or {"success": False, "error": ..., "raw_response": ...}."""
        content = ""
        try:
            content = await self._complete(
                ANALYSIS_MODEL,
                [
                    {"role": "system", "content": prompts.CALL_ANALYSIS_SYSTEM_PROMPT},
                    {"role": "user", "content": f"Analyze this call transcript:\n\n{transcript}"},
                ],
                temperature=0.2,
                max_tokens=1500,
                json_mode=True,
            )
            analysis = _parse_json(content)
        except ProviderNotConfigured:
            raise
        except Exception as e:
            logger.error(f"Call analysis failed: {e}")
            return {"success": False, "error": str(e) or "Failed to analyze call", "raw_response": content or None}
        analysis.setdefault("analyzed_at", datetime.now(timezone.utc).isoformat())
        return {"success": True, "analysis": analysis}
