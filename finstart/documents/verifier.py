"""
KYC Document Verifier

One vision call per upload: the model decides whether the document is an
acceptable identity or address proof and reads its fields back as JSON.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from finstart.config import settings
from finstart.intent.parsing import decode_json_object
from finstart.services.langsmith_tracer import tracer

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("id", "address")

VERDICT_KEYS = ("is_valid", "document_type", "rejection_reason")

ID_FIELDS = ["name", "id_number", "dob", "gender", "expiry_date", "issuing_authority", "address"]
ADDRESS_FIELDS = ["name", "address", "pincode", "city", "state", "document_date", "issuer"]


class DocumentVerdict(BaseModel):
    success: bool = True
    is_valid: bool = False
    document_type: str = "Unknown"
    rejection_reason: str = ""
    data: Dict[str, Any] = {}


def build_verification_prompt(doc_type: str) -> str:
    """Instruction for the vision model, per accepted document class."""
    if doc_type == "id":
        subject = "an identity document"
        accepted = "a legitimate government-issued identity proof (Aadhaar, PAN, Passport, Driving Licence, Voter ID)"
        examples = '"Aadhaar Card", "PAN Card", "Passport"'
        fields = ID_FIELDS
        strictness = "reject non-ID documents, screenshots of websites, blank images, or unrecognizable content"
    else:
        subject = "an address proof document"
        accepted = ("a legitimate address proof (Utility Bill, Bank Statement, Rental Agreement, "
                    "Government Letter, Aadhaar with address)")
        examples = '"Electricity Bill", "Bank Statement"'
        fields = ADDRESS_FIELDS
        strictness = "reject identity cards (PAN/Aadhaar without address), screenshots, or unrecognizable content"

    prompt_lines: List[str] = [
        f"You are a KYC document verification engine. Analyze this upload of {subject}.",
        "",
        "Return a JSON object with these exact keys:",
        f'- "is_valid": boolean, true if this is {accepted}',
        f'- "document_type": string, the detected document type (e.g. {examples}) or "Unknown"',
        '- "rejection_reason": string, why the document was rejected. Empty string if valid.',
    ]
    prompt_lines.extend(f'- "{field}": string' for field in fields)
    prompt_lines.extend([
        "",
        f"Only include fields that are clearly visible. Be strict: {strictness}.",
    ])
    return "\n".join(prompt_lines)


def build_document_part(content: bytes, content_type: str, filename: Optional[str] = None) -> Dict[str, Any]:
    """Encode the upload as a multimodal content part."""
    b64 = base64.b64encode(content).decode()
    if content_type == "application/pdf":
        return {
            "type": "file",
            "file": {
                "filename": filename or "document.pdf",
                "file_data": f"data:application/pdf;base64,{b64}",
            },
        }
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{content_type};base64,{b64}"},
    }


def parse_verdict(text: str) -> DocumentVerdict:
    """
    Split the model's JSON into the verdict and the extracted fields.

    Null verdict values fall back to a rejection with an unknown type.

    Raises:
        MalformedOutput: If the text is not a single JSON object
    """
    parsed = decode_json_object(text)
    return DocumentVerdict(
        is_valid=bool(parsed.get("is_valid") or False),
        document_type=str(parsed.get("document_type") or "Unknown"),
        rejection_reason=str(parsed.get("rejection_reason") or ""),
        data={k: v for k, v in parsed.items() if k not in VERDICT_KEYS},
    )


class DocumentVerifier:
    """Validates KYC uploads and extracts their fields with a vision model."""

    def __init__(self, llm: Optional[ChatOpenAI] = None):
        self._llm = llm

    @property
    def llm(self):
        """Lazy initialization of LLM."""
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=settings.DOCUMENT_MODEL,
                temperature=0,
            ).bind(response_format={"type": "json_object"})
        return self._llm

    async def verify(
        self,
        doc_type: str,
        content: bytes,
        content_type: str,
        filename: Optional[str] = None,
    ) -> DocumentVerdict:
        """
        Check one uploaded document.

        Args:
            doc_type: "id" or "address"
            content: Raw file bytes
            content_type: MIME type of the upload (image/* or application/pdf)
            filename: Original filename, forwarded for PDFs

        Returns:
            DocumentVerdict with the extracted fields in `data`
        """
        message = HumanMessage(content=[
            {"type": "text", "text": build_verification_prompt(doc_type)},
            build_document_part(content, content_type, filename),
        ])
        response = await self.llm.ainvoke(
            [message],
            config=tracer.get_document_config(doc_type=doc_type, content_type=content_type),
        )
        verdict = parse_verdict(str(response.content))
        logger.info("Document check (%s): valid=%s type=%s", doc_type, verdict.is_valid, verdict.document_type)
        return verdict
