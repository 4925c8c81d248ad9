import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings
from db.init import build_engine, build_session_factory, init_db
from db.store import SubscriptionStore
from routers import subscription
from utils.board import SubscriptionBoard
from utils.notify import NotificationSender
from utils.renewals import RenewalWatcher, run_in_thread

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(settings.database_url)
    store = SubscriptionStore(build_session_factory(engine))
    watcher = RenewalWatcher(
        NotificationSender(settings.notification),
        settings.notification.email,
        window=timedelta(hours=settings.renewal_window_hours),
        store=store,
        deduplicate=settings.notification.deduplicate,
    )

    app = FastAPI(title="Subscription Tracker")
    app.state.settings = settings
    app.state.engine = engine
    app.state.board = SubscriptionBoard(store, watcher)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup():
        init_db(engine)
        # Initial load also runs the renewal check; reminders go out off the startup path
        app.state.board.refresh(schedule=run_in_thread)
        logger.info(f"Loaded {len(app.state.board.subscriptions)} subscription(s)")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {"message": "Subscription Tracker running successfully"}

    # Routers
    app.include_router(subscription.router, prefix="/subscriptions", tags=["Subscriptions"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
