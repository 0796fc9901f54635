"""AI math solver collaborator.

The reply is free text. The only processing applied is stripping LaTeX
display delimiters the model sometimes emits despite the instructions; the
content itself is passed through untouched.
"""
import base64
import binascii
import logging
from typing import Any, List, Optional, Union

from google import genai
from google.genai import types

from calccore.config import Config
from calccore.domain import ImagePayload, SolveOutcome
from calccore.errors import ValidationError

logger = logging.getLogger(__name__)

NO_SOLUTION = "Sorry, I couldn't generate a solution."
CONNECTION_ERROR = "Connection error. Please check your API key."

TEXT_PROMPT = (
    'You are a friendly and smart AI math assistant. Solve this math problem or answer this question '
    'concisely: "{query}".\n'
    "IMPORTANT RULES:\n"
    "1. Handle measurement units (e.g., 5kg, 10m/s) intelligently and provide results with appropriate units.\n"
    "2. Do NOT use any currency symbols (like $, ₹, €) in your answer. Use general accounting numbers.\n"
    "3. Do NOT use LaTeX formatting (no $$ or $ delimiters). Use plain text for math formulas."
)
IMAGE_PROMPT_WITH_QUERY = (
    "Analyze this image and solve the math problem. {query}. Handle units (like kg, m, s) correctly if visible. "
    "IMPORTANT: Do NOT use currency symbols like $ or ₹. Do NOT use LaTeX formatting like $$ or $. "
    "Just use plain text and numbers."
)
IMAGE_PROMPT = (
    "Analyze this image and solve the math problem shown step-by-step. IMPORTANT: Do NOT use currency "
    "symbols like $ or ₹ in the final numeric answer or intermediate steps. Do NOT use LaTeX formatting "
    "like $$ or $. Use plain text and numbers."
)

_DELIMITERS = ("$$", "\\[", "\\]")


def clean_response(text: str) -> str:
    for token in _DELIMITERS:
        text = text.replace(token, "")
    return text


def build_contents(query: str, image: Optional[ImagePayload] = None) -> Union[str, List[Any]]:
    query = (query or "").strip()
    if image is None:
        if not query:
            raise ValidationError("empty_query", "Type a problem or attach an image", "query")
        return TEXT_PROMPT.format(query=query)

    try:
        raw = base64.b64decode(image.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("invalid_image", "Image payload is not valid base64", "image") from e
    instruction = IMAGE_PROMPT_WITH_QUERY.format(query=query) if query else IMAGE_PROMPT
    return [
        types.Part.from_bytes(data=raw, mime_type=image.mime_type),
        types.Part.from_text(text=instruction),
    ]


class MathSolver:
    def __init__(self, client: Any = None, model: Optional[str] = None):
        self._client = client
        self.model = model or Config.SOLVER_MODEL

    @property
    def client(self) -> Any:
        if self._client is None:
            Config.validate_solver()
            self._client = genai.Client(api_key=Config.SOLVER_API_KEY)
        return self._client

    async def solve(self, query: str, image: Optional[ImagePayload] = None) -> SolveOutcome:
        """Ask the model; failures come back as an apology outcome, never as an exception.

        Raises:
            ValidationError: nothing to solve, or an undecodable image.
        """
        contents = build_contents(query, image)
        try:
            result = await self.client.aio.models.generate_content(model=self.model, contents=contents)
        except Exception as e:
            logger.warning("AI solver call failed: %s", e)
            return SolveOutcome(text=CONNECTION_ERROR, solved=False)

        text = getattr(result, "text", None)
        if not text:
            logger.warning("AI solver returned an empty reply")
            return SolveOutcome(text=NO_SOLUTION, solved=False)
        return SolveOutcome(text=clean_response(text), solved=True)
