import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from finstart.config import settings
from finstart.documents import DOCUMENT_TYPES, DocumentVerdict, DocumentVerifier
from finstart.intent.errors import MalformedOutput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ocr"])

PDF_TYPE = "application/pdf"


@lru_cache(maxsize=1)
def _default_verifier() -> DocumentVerifier:
    return DocumentVerifier()


def get_verifier() -> DocumentVerifier:
    if not settings.OPENAI_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OpenAI API key not configured"
        )
    return _default_verifier()


@router.post("/ocr", response_model=DocumentVerdict)
async def verify_document(
    file: Optional[UploadFile] = File(None),
    docType: str = Form("id"),
    verifier: DocumentVerifier = Depends(get_verifier),
):
    """Validate an identity or address proof and extract its fields."""
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")
    if docType not in DOCUMENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="docType must be 'id' or 'address'"
        )

    content_type = file.content_type or ""
    if content_type != PDF_TYPE and not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Upload an image or a PDF"
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    try:
        return await verifier.verify(docType, content, content_type, filename=file.filename)
    except MalformedOutput as e:
        logger.warning("Unreadable verification reply for %s: %s", file.filename, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Document verification returned an unreadable result"
        )
    except Exception as e:
        logger.exception("Document verification failed for %s", file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Failed to process document"
        )
