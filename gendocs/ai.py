import json
from typing import Any, List

from google import genai
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .errors import GenerationError
from .logging import get_logger
from .models import DocumentType

log = get_logger("ai")

# ----------------------------
# Structured output schema
# ----------------------------
LINE_ITEMS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "lineItems": types.Schema(
            type=types.Type.ARRAY,
            description="A list of line items for the document.",
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "description": types.Schema(
                        type=types.Type.STRING,
                        description="Detailed description of the service or product.",
                    ),
                    "quantity": types.Schema(
                        type=types.Type.NUMBER,
                        description="The quantity or number of hours.",
                    ),
                    "unitPrice": types.Schema(
                        type=types.Type.NUMBER,
                        description="The price per unit or per hour.",
                    ),
                },
                required=["description", "quantity", "unitPrice"],
            ),
        ),
    },
    required=["lineItems"],
)


class LineItemDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(..., description="Detailed description of the service or product.")
    quantity: float = Field(..., description="The quantity or number of hours.")
    unit_price: float = Field(..., alias="unitPrice", description="The price per unit or per hour.")

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def _must_be_number(cls, v: Any) -> Any:
        # JSON numbers only; "10" or true are schema violations
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        return v


class LineItemsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    line_items: List[LineItemDraft] = Field(..., alias="lineItems")


def _extract_json(text: str):
    """Return the first JSON value in ``text``, even if other text surrounds it."""
    if text is None or not text.strip():
        raise ValueError("Empty model output.")

    s = text.strip()
    try:
        return json.loads(s)
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    i = s.find("{")
    if i != -1:
        try:
            obj, _ = decoder.raw_decode(s[i:])
            return obj
        except json.JSONDecodeError:
            pass

    raise ValueError("No valid JSON found in model output.")


def build_prompt(doc_type: DocumentType, prompt: str) -> str:
    return (
        f"Generate a list of line items for a {DocumentType(doc_type).value} "
        f'based on the following request: "{prompt}". '
        "Provide realistic quantities and prices."
    )


def parse_line_items(text: str) -> List[LineItemDraft]:
    try:
        data = _extract_json(text)
        return LineItemsResponse.model_validate(data).line_items
    except (ValueError, PydanticValidationError) as e:
        raise GenerationError(f"AI response did not match the line item schema: {e}") from e


# ----------------------------
# Generator
# ----------------------------
class LineItemGenerator:
    """Drafts line items for a document from a free-text request via Gemini."""

    def __init__(self, client: Any, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "LineItemGenerator":
        client = genai.Client(
            api_key=settings.api_key,
            http_options=types.HttpOptions(timeout=settings.timeout_ms),
        )
        return cls(client, settings.model)

    def generate(self, doc_type: DocumentType, prompt: str) -> List[LineItemDraft]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=LINE_ITEMS_SCHEMA,
        )
        try:
            resp = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(doc_type, prompt),
                config=config,
            )
        except Exception as e:
            log.exception("Error generating content with AI")
            raise GenerationError(f"AI request failed: {e}") from e

        try:
            items = parse_line_items(getattr(resp, "text", None) or "")
        except GenerationError:
            log.exception("Error parsing AI response")
            raise
        log.info("AI drafted %d line item(s) for a %s", len(items), DocumentType(doc_type).value)
        return items
