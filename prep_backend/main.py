import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from prep_backend.ai.client import GeminiClient
from prep_backend.core import config
from prep_backend.database import init_db
from prep_backend.routes import ai_routes, auth_routes, question_routes, session_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate_runtime_config()
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')
        raise
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    app.state.ai_client = GeminiClient(api_key=config.GEMINI_API_KEY, model=config.GEMINI_MODEL)
    logger.info('Startup complete, AI model %s', config.GEMINI_MODEL)
    yield


app = FastAPI(title='Interview Prep API', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials='*' not in config.CORS_ORIGINS,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE'],
    allow_headers=['Content-Type', 'Authorization'],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {'message': exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, 'headers', None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {'field': '.'.join(str(part) for part in error['loc'][1:]), 'message': error['msg']}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'message': 'Missing required fields', 'error': errors},
    )


@app.get('/')
def root():
    return {'status': 'Interview Prep API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(session_routes.router, prefix='/api/sessions')
app.include_router(question_routes.router, prefix='/api/questions')
app.include_router(ai_routes.router, prefix='/api/ai')

# The directory is created by lifespan; it may not exist yet at import.
app.mount('/uploads', StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name='uploads')


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=config.PORT)
