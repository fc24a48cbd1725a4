import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from lms_backend.core import config
from lms_backend.database import Base, engine, ensure_lms_schema
from lms_backend.models import course, enrollment, user  # noqa: F401
from lms_backend.routes import analytics_routes, auth_routes, course_routes, user_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='LMS API', version='1.0.0')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PATCH', 'DELETE'],
    allow_headers=['Content-Type', 'Authorization'],
)


@app.middleware('http')
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info('%s %s %s %.1f ms', request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_lms_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {
        'message': 'Welcome to the LMS API',
        'version': app.version,
        'endpoints': {
            'health': '/api/health',
            'courses': '/api/courses',
            'users': '/api/users',
            'analytics': '/api/analytics',
        },
    }


@app.get('/api/health')
def health():
    return {'status': 'ok', 'message': 'LMS API is running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(user_routes.router, prefix='/api/users')
app.include_router(course_routes.router, prefix='/api/courses')
app.include_router(analytics_routes.router, prefix='/api/analytics')
