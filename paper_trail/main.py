"""Main FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paper_trail.config import PaperTrailOptions
from paper_trail.database import engine, Base, SQLALCHEMY_DATABASE_URL
from paper_trail.api.routes import router
from paper_trail.models.domain import Note
from paper_trail.services.paper_trail import PaperTrail

options = PaperTrailOptions(
    enable_revision_change_model=True,
    # MySQL has no usable JSON column for this; store payloads as text
    constrained_storage=SQLALCHEMY_DATABASE_URL.startswith("mysql"),
    enable_migration=True
)

# Audit models live on the shared Base, so the engine is built once per process
trail = PaperTrail(Base, options)
trail.track(Note)


def create_app(bind=engine) -> FastAPI:
    """Assemble the app with revision tracking on the demo Note model."""
    # Existing notes tables get the revision column before create_all fills in the rest
    trail.migrate(bind)
    Base.metadata.create_all(bind=bind)

    app = FastAPI(
        title="Paper Trail - Revision History",
        description="Records a numbered revision, with per-field character diffs, for every tracked mutation.",
        version="0.1.0"
    )
    app.state.paper_trail = trail

    # Enable CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # For MVP - restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api", tags=["Paper Trail"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "Paper Trail"}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
