import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from task_manager.core import config
from task_manager.core.responses import request_validation_error_response
from task_manager.database import Base, engine
from task_manager.models import task, user  # noqa: F401  registers tables on Base.metadata
from task_manager.routes import task_routes, user_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='Task Manager API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Task Manager API Running'}


app.include_router(user_routes.router, prefix='/users')
app.include_router(task_routes.router, prefix='/tasks')


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    # Login failures share one empty response, whatever was wrong with the request.
    if request.url.path == app.url_path_for('login'):
        return Response(status_code=status.HTTP_400_BAD_REQUEST)
    return request_validation_error_response(exc.errors())
