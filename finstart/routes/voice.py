from functools import lru_cache

from fastapi import APIRouter, Depends

from finstart.intent import IntentRequest, IntentResolver

router = APIRouter(prefix="/api/voice", tags=["voice"])


@lru_cache(maxsize=1)
def get_resolver() -> IntentResolver:
    return IntentResolver()


@router.post("/intent")
async def resolve_intent(request: IntentRequest, resolver: IntentResolver = Depends(get_resolver)):
    """Classify one utterance against the current form snapshot."""
    decision = await resolver.resolve(request)
    return decision.to_response()
