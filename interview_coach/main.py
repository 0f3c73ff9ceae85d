from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from interview_coach.config import settings
from interview_coach.utils.logging import configure_logging
from interview_coach.routers.sessions import router as sessions_router
from interview_coach.routers.agents import router as agents_router
from interview_coach.routers.analyze import router as analyze_router
from interview_coach.utils.audit import auditor
from interview_coach.services.llm_service import llm_service
from interview_coach.services.coach import coach


configure_logging(settings.log_level)
auditor.configure(settings.analytics_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
	await coach.startup()
	yield
	await coach.close()


app = FastAPI(title="AI Interview Coach Backend", version="0.1.0", lifespan=lifespan)

# CORS
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_allow_origins,
	# Browsers reject credentialed responses for a wildcard origin
	allow_credentials=False if settings.cors_allow_origins == ["*"] else True,
	allow_methods=["*"],
	allow_headers=["*"],
	expose_headers=["*"],
	max_age=3600,
)


@app.get("/health")
async def health() -> JSONResponse:
	return JSONResponse({
		"status": "ok",
		"version": app.version,
		"llm": {"provider": llm_service.provider, "enabled": llm_service.enabled}
	})


# Routers
app.include_router(agents_router, prefix="/api", tags=["agents"])
app.include_router(sessions_router, prefix="/api", tags=["sessions"])
app.include_router(analyze_router, prefix="/api", tags=["analysis"])
