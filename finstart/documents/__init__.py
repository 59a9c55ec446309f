from finstart.documents.verifier import (
    DOCUMENT_TYPES,
    DocumentVerdict,
    DocumentVerifier,
    build_verification_prompt,
    parse_verdict,
)

__all__ = [
    'DOCUMENT_TYPES',
    'DocumentVerdict',
    'DocumentVerifier',
    'build_verification_prompt',
    'parse_verdict',
]
