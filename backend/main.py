import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import Base, engine, ensure_landing_page_schema, ensure_appointment_schema
from backend.models import appointment, customer, landing_page, notification, user  # noqa: F401
from backend.routes import (
    appointment_routes,
    auth_routes,
    calendar_routes,
    customer_routes,
    landing_page_routes,
    notification_routes,
    public_routes,
    stats_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Mi Agenda Online API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_landing_page_schema()
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Mi Agenda Online API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(calendar_routes.router, prefix='/calendar')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(customer_routes.router, prefix='/customers')
app.include_router(landing_page_routes.router, prefix='/landing-page')
app.include_router(notification_routes.router, prefix='/notifications')
app.include_router(stats_routes.router, prefix='/stats')
app.include_router(public_routes.router, prefix='/public')
