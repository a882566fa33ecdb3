from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from mealtickets.api.errors import register_exception_handlers
from mealtickets.api.routes import ping, tickets
from mealtickets.core.config import Settings, get_settings
from mealtickets.core.logging import configure_logging, init_tracer, shutdown_tracer
from mealtickets.owners.directory import InMemoryOwnerDirectory, SqlOwnerDirectory
from mealtickets.services.postgres import PostgresConnectionTester, to_sqlalchemy_url
from mealtickets.tickets.service import TicketService
from mealtickets.tickets.store import InMemoryTicketStore, SqlTicketStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    zone = ZoneInfo(settings.timezone)

    db_engine = None
    postgres_tester = None
    if settings.store_backend == "memory":
        store = InMemoryTicketStore()
        owners = InMemoryOwnerDirectory()
    else:
        db_engine = create_async_engine(to_sqlalchemy_url(settings.database_url), pool_pre_ping=True)
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        store = SqlTicketStore(session_factory, engine=db_engine)
        owners = SqlOwnerDirectory(session_factory)
        if settings.create_schema:
            await store.ensure_schema()
        if settings.database_url.startswith("postgresql"):
            postgres_tester = PostgresConnectionTester(dsn=settings.database_url)

    app.state.owner_directory = owners
    app.state.postgres_tester = postgres_tester
    app.state.ticket_service = TicketService.build(
        store,
        owners,
        zone=zone,
        max_quantity=settings.max_batch_quantity,
    )
    logger.info("Ticket service started with %s backend", settings.store_backend)
    try:
        yield
    finally:
        app.state.ticket_service = None
        if postgres_tester is not None:
            await postgres_tester.close()
        if db_engine is not None:
            await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    register_exception_handlers(app)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    return app


app = create_app()
