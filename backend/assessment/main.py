import logging

from fastapi import FastAPI

from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import ai
from .routers import dashboard
from .routers import feedback
from .routers import questions

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CI/CD Maturity Assessment API")
app.include_router(questions.router)
app.include_router(feedback.router)
app.include_router(ai.router)
app.include_router(dashboard.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight additive migrations
	try:
		ensure_schema()
	except Exception:
		logger.exception("Schema migration failed")
