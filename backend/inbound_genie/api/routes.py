from fastapi import APIRouter
from .auth import router as auth_router
from .webhooks import router as webhooks_router
from .ai_prompt import router as ai_prompt_router
from .ai_email import router as ai_email_router
from .chatbot import router as chatbot_router
from .calls import router as calls_router
from .test_call import router as test_call_router
from .credits import router as credits_router
from .tour import router as tour_router
from .mail import router as mail_router

api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(webhooks_router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(ai_prompt_router, prefix="/ai-prompt", tags=["ai-prompt"])
api_router.include_router(ai_email_router, prefix="/ai-email", tags=["ai-email"])
api_router.include_router(chatbot_router, prefix="/chatbot", tags=["chatbot"])
api_router.include_router(calls_router, prefix="/calls", tags=["calls"])
api_router.include_router(test_call_router, prefix="/test-call", tags=["test-call"])
api_router.include_router(credits_router, prefix="/credits", tags=["credits"])
api_router.include_router(tour_router, prefix="/tour", tags=["tour"])
api_router.include_router(mail_router, tags=["email"])


@api_router.get("/health")
async def health():
    return {"status": "ok", "message": "Backend server is running"}
