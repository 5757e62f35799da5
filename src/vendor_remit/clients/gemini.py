"""Gemini-backed extraction of vendor details from pasted text.

The parser is optional. ``init_vendor_parser`` returns ``None`` when no API
key is configured, and callers treat that value as "feature unavailable".
"""

import json
from typing import Any

import structlog
from google import genai
from google.genai import types

from vendor_remit.config import get_settings
from vendor_remit.models import ParsedVendorFields

logger = structlog.get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "Parse the text which contains vendor information into a JSON object. "
    "Extract the company name, bank name with branch, bank code, account number, "
    "and if available, also extract the Tax ID (統一編號), address, and any remarks."
)

REQUIRED_FIELDS = ("name", "bank", "bankCode", "accountNumber")

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {
            "type": "STRING",
            "description": "The full name of the company or person.",
        },
        "bank": {
            "type": "STRING",
            "description": "The full name of the bank, including the branch.",
        },
        "bankCode": {
            "type": "STRING",
            "description": "The bank's identification code.",
        },
        "accountNumber": {
            "type": "STRING",
            "description": (
                "The payee's bank account number. "
                "If not present in the text, return an empty string."
            ),
        },
        "taxId": {
            "type": "STRING",
            "description": "The company's Tax ID (統一編號). If not present, return an empty string.",
        },
        "address": {
            "type": "STRING",
            "description": "The company's address. If not present, return an empty string.",
        },
        "remarks": {
            "type": "STRING",
            "description": "Any remarks or notes. If not present, return an empty string.",
        },
    },
    "required": list(REQUIRED_FIELDS),
}


class VendorTextParser:
    """Extracts structured vendor fields from free text with Gemini."""

    def __init__(self, api_key: str, model: str | None = None):
        settings = get_settings()
        self._api_key = api_key
        self._model_name = model or settings.gemini_model
        self._client = genai.Client(api_key=self._api_key)
        self._logger = logger.bind(client="gemini", model=self._model_name)

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            response_mime_type="application/json",
            response_schema=types.Schema.model_validate(RESPONSE_SCHEMA),
        )

    @staticmethod
    def _decode(text: str) -> ParsedVendorFields | None:
        data = json.loads(text.strip())
        if not isinstance(data, dict):
            return None
        if any(field not in data for field in REQUIRED_FIELDS):
            return None
        return ParsedVendorFields.from_dict(data)

    async def parse(self, text: str) -> ParsedVendorFields | None:
        """Return the vendor fields found in `text`, or None if none could be read."""
        if not text.strip():
            return None

        self._logger.debug("parsing_vendor_text", length=len(text))
        try:
            response = self._client.models.generate_content(
                model=self._model_name,
                contents=text,
                config=self._build_config(),
            )
            parsed = self._decode(response.text or "")
        except Exception as e:
            self._logger.error("vendor_parse_failed", error=str(e))
            return None

        if parsed is None:
            self._logger.warning("vendor_parse_incomplete")
        else:
            self._logger.info("vendor_text_parsed", name=parsed.name)
        return parsed


def init_vendor_parser(
    api_key: str | None = None,
    model: str | None = None,
) -> VendorTextParser | None:
    """Build the parser if a Gemini key is available, else return None."""
    if api_key is None:
        secret = get_settings().google_api_key
        api_key = secret.get_secret_value() if secret else None
    if not api_key:
        logger.info("vendor_parser_disabled", reason="no_api_key")
        return None
    try:
        return VendorTextParser(api_key=api_key, model=model)
    except Exception as e:
        logger.error("vendor_parser_init_failed", error=str(e))
        return None
