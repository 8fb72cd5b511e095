import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .chat.state_machine import TurnProcessor
from .chat.store import ConversationStore
from .chat_routes import router as onboarding_router
from .config import settings
from .database import close_db_pool, init_db_pool
from .debug_routes import router as debug_router
from .services.onboarding_service import OnboardingService
from .services.profile_repository import InMemoryProfileRepository, PostgresProfileRepository

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    pool = await init_db_pool()
    repository = PostgresProfileRepository(pool) if pool is not None else InMemoryProfileRepository()
    store = ConversationStore()
    app.state.onboarding_service = OnboardingService(
        store=store,
        repository=repository,
        processor=TurnProcessor(settings.max_turns_before_escalation),
    )
    yield
    store.clear()
    await close_db_pool()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(onboarding_router)
app.include_router(debug_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
