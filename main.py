from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
import logging

from app.api.routes import router as review_router
from app.config.settings import settings
from app.prompts.prompt_registry import PromptRegistry

# Configure root logging once
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)
logger.info("StackSentinel service starting up")

PromptRegistry.load()

if not settings.has_credential:
    logger.warning("AZURE_OPENAI_API_KEY is not set; analyses will run in demo mode")

app = FastAPI(title="StackSentinel - Architecture Guardian")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(review_router)

logger.info("Routers registered and FastAPI app ready")
