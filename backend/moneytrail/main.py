"""FastAPI application entry point."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moneytrail.config import Settings, get_settings
from moneytrail.database import create_engine, create_session_maker, init_db
from moneytrail.errors import register_exception_handlers
from moneytrail.logging_config import configure_logging
from moneytrail.routers import accounts, assets, auth, dashboard, insights, transactions, users
from moneytrail.services.audit_trail import AuditTrail
from moneytrail.services.dashboard import DashboardAggregator
from moneytrail.services.user_directory import UserDirectory


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and its components for one settings object."""
    settings = settings or get_settings()
    configure_logging(settings)

    engine = create_engine(settings)
    session_maker = create_session_maker(engine)
    audit_trail = AuditTrail()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(engine)
        yield
        await engine.dispose()

    app = FastAPI(
        title="Moneytrail",
        description="Personal and small-business finance tracking with an audited ledger",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.audit_trail = audit_trail
    app.state.user_directory = UserDirectory(audit_trail, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.dashboard = DashboardAggregator(session_maker, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(dashboard.router)
    app.include_router(insights.router)
    app.include_router(accounts.router)
    app.include_router(transactions.router)
    app.include_router(assets.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
