"""AI content generation for job records, resumes and the assistant chat."""
from __future__ import annotations

import base64
import json
import os
import zipfile
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional
from xml.etree import ElementTree

from .log import get_logger
from .notifier import ASSISTANT_NAME, Message, MessageRole

log = get_logger(__name__)


class GenerationDependencyError(RuntimeError):
    """Raised when the AI provider is missing or not configured."""


class GenerationError(RuntimeError):
    """Raised when the AI provider fails or returns unusable content."""


COVER_LETTER_PROMPT = """\
Write a professional and engaging cover letter for the position of {role} at {company}.

Job Description:
{description}

My Skills/Background:
{skills}

Keep it concise (under 300 words), professional, and enthusiastic.
Do not include placeholders like [Your Name] or [Address], start directly with "Dear Hiring Manager,".
"""

INTERVIEW_GUIDE_PROMPT = """\
Create a comprehensive interview preparation guide for the role of {role} at {company}.

Leverage your existing knowledge about {company} (culture, products, industry standing) combined with the Job Description below.

Job Description provided:
{description}

The guide must include:
1. **Company & Role Insight**: Brief analysis of {company}'s current focus and what they likely value in this {role} role.
2. **Key Technical/Soft Skills**: What specific skills from the description should be emphasized.
3. **5 Potential Interview Questions**: Specific to {company} and this role, with brief tips on how to answer.
4. **3 Questions to Ask the Interviewer**: Strategic questions showing deep interest in {company}.

Format the output clearly with headings and bullet points. Keep it practical and ready to use.
"""

RESUME_PARSE_PROMPT = """\
Analyze this resume document. Extract all the information and rewrite the content to be more
professional, impactful, and concise using strong action verbs.

Return ONLY a JSON object with these keys:
{
  "fullName": string, "email": string, "phone": string, "summary": string, "skills": string,
  "experience": [{"id": string, "title": string, "company": string, "date": string, "details": string}],
  "education": [{"id": string, "title": string, "company": string, "date": string, "details": string}],
  "projects": [{"id": string, "name": string, "technologies": string, "link": string, "description": string}]
}

Ensure dates are properly formatted. If a field is missing, use an empty string.
"""

AVATAR_PROMPT = """\
Transform this image into a professional LinkedIn profile picture headshot.
Maintain the person's identity but improve lighting, background, and attire to be professional.
Style details: {style}.
Output a high quality photorealistic image.
"""

DEFAULT_AVATAR_STYLE = "Professional business attire, neutral background, soft studio lighting"

CHAT_SYSTEM_PROMPT = (
    f"You are {ASSISTANT_NAME}, a friendly, encouraging, and highly knowledgeable job search assistant. "
    "You help users with career advice, resume tips, interview preparation, and staying motivated. "
    "Keep answers concise and helpful."
)


def _extract_docx(data: bytes) -> str:
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: List[str] = []
    with zipfile.ZipFile(BytesIO(data)) as zf:
        with zf.open("word/document.xml") as handle:
            tree = ElementTree.parse(handle)
            for para in tree.iter(f"{ns}p"):
                parts = [node.text for node in para.iter(f"{ns}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)


def _data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class AIContentGenerator:
    """Generate job documents and assistant replies with an OpenAI chat model."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        image_model: str = "gpt-image-1",
        temperature: float = 0.7,
        timeout: float = 60.0,
        skills: str = "general professional skills",
    ) -> None:
        self._explicit_api_key = api_key
        self.model = model
        self.image_model = image_model
        self.temperature = temperature
        self.timeout = timeout
        self.skills = skills
        self._client = None

    def _resolve_api_key(self) -> str:
        api_key = self._explicit_api_key or os.getenv("OPENAI_API_KEY") or os.getenv("JOBTRAIL_OPENAI_KEY")
        if not api_key:
            raise GenerationDependencyError(
                "Set OPENAI_API_KEY (or JOBTRAIL_OPENAI_KEY) or pass api_key to AIContentGenerator."
            )
        return api_key

    def _build_client(self):
        if self._client is None:
            api_key = self._resolve_api_key()
            try:
                from openai import AsyncOpenAI  # type: ignore
            except ModuleNotFoundError as exc:  # pragma: no cover - packaging issue
                raise GenerationDependencyError("The 'openai' package is required for AI generation.") from exc
            self._client = AsyncOpenAI(api_key=api_key, timeout=self.timeout)
        return self._client

    async def _complete(self, messages: List[Dict[str, Any]], **options: Any) -> str:
        client = self._build_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=messages,
                **options,
            )
            content = response.choices[0].message.content or ""
        except Exception as exc:  # pragma: no cover - depends on network/service
            raise GenerationError(f"AI generation failed: {exc}") from exc

        content = content.strip()
        if not content:
            raise GenerationError("AI provider returned an empty response")
        return content

    async def generate_cover_letter(
        self,
        company: str,
        role: str,
        description: str,
        skills: Optional[str] = None,
    ) -> str:
        prompt = COVER_LETTER_PROMPT.format(
            role=role,
            company=company,
            description=description,
            skills=skills or self.skills,
        )
        content = await self._complete([{"role": "user", "content": prompt}])
        log.info("Cover letter generated for %s @ %s", role, company)
        return content

    async def generate_interview_guide(self, company: str, role: str, description: str) -> str:
        prompt = INTERVIEW_GUIDE_PROMPT.format(role=role, company=company, description=description)
        content = await self._complete([{"role": "user", "content": prompt}])
        log.info("Interview guide generated for %s @ %s", role, company)
        return content

    async def parse_resume(self, file_bytes: bytes, mime_type: str) -> Dict[str, Any]:
        """Extract and polish resume fields from a PDF, image, DOCX or text file."""

        parts: List[Dict[str, Any]] = []
        if mime_type == "application/pdf":
            parts.append(
                {
                    "type": "file",
                    "file": {"filename": "resume.pdf", "file_data": _data_url(file_bytes, mime_type)},
                }
            )
        elif mime_type.startswith("image/"):
            parts.append({"type": "image_url", "image_url": {"url": _data_url(file_bytes, mime_type)}})
        else:
            if mime_type.endswith("wordprocessingml.document"):
                try:
                    text = _extract_docx(file_bytes)
                except (zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
                    raise GenerationError(f"Could not read DOCX resume: {exc}") from exc
            else:
                text = file_bytes.decode("utf-8", errors="ignore")
            parts.append({"type": "text", "text": f"Resume text:\n{text}"})
        parts.append({"type": "text", "text": RESUME_PARSE_PROMPT})

        content = await self._complete(
            [{"role": "user", "content": parts}],
            response_format={"type": "json_object"},
        )
        try:
            parsed = json.loads(content)
        except ValueError as exc:
            raise GenerationError("Resume parser returned malformed JSON") from exc
        if not isinstance(parsed, dict):
            raise GenerationError("Resume parser returned an unexpected payload")
        return parsed

    async def generate_avatar(
        self,
        image_bytes: bytes,
        style_prompt: str = "",
        *,
        mime_type: str = "image/png",
    ) -> bytes:
        """Return PNG bytes of a professional headshot derived from ``image_bytes``."""

        client = self._build_client()
        prompt = AVATAR_PROMPT.format(style=style_prompt.strip() or DEFAULT_AVATAR_STYLE)
        extension = mime_type.split("/")[-1] or "png"
        try:
            response = await client.images.edit(
                model=self.image_model,
                image=(f"photo.{extension}", image_bytes, mime_type),
                prompt=prompt,
            )
            encoded = response.data[0].b64_json if response.data else None
        except Exception as exc:  # pragma: no cover - depends on network/service
            raise GenerationError(f"Avatar generation failed: {exc}") from exc
        if not encoded:
            raise GenerationError("Avatar generation returned no image")
        return base64.b64decode(encoded)

    async def chat(self, history: Iterable[Message]) -> str:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        for message in history:
            role = "user" if message.role is MessageRole.USER else "assistant"
            messages.append({"role": role, "content": message.text})
        return await self._complete(messages)
