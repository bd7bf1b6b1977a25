# projecthub/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from projecthub.config import FRONTEND_ORIGIN, LOG_LEVEL, is_development
from projecthub.responses import error_body

# ---------------- LOGGING ----------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("projecthub")

app = FastAPI(title="ProjectHub Backend")

# ---------------- CORS ----------------
origins = [
    "http://localhost:5500",
    "http://127.0.0.1:5500",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

if FRONTEND_ORIGIN:
    origins.append(FRONTEND_ORIGIN)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------- ERRORS ----------------
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        body = error_body(detail.pop("message", "Error"), **detail)
    else:
        body = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        if first.get("type") == "missing":
            message = f"{first['loc'][-1]} is required"
        else:
            message = str(first.get("msg", message)).removeprefix("Value error, ")
    return JSONResponse(status_code=400, content=error_body(message))


@app.exception_handler(SQLAlchemyError)
async def storage_error(request: Request, exc: SQLAlchemyError):
    logger.exception("storage_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=error_body("Something went wrong!", str(exc) if is_development() else None),
    )


# ---------------- DATABASE INIT ----------------
from projecthub.database import Base, engine  # noqa: E402
from projecthub.models import comment, message, notification, project, social, todo, user  # noqa: E402,F401

logger.info("Checking database models...")
Base.metadata.create_all(bind=engine)
logger.info("Database ready.")

# ---------------- ROUTERS ----------------
from projecthub.auth.auth_router import router as auth_router  # noqa: E402
from projecthub.collaborator.collaborator_router import router as collaborator_router  # noqa: E402
from projecthub.message.message_router import router as message_router  # noqa: E402
from projecthub.notification.notification_router import router as notification_router  # noqa: E402
from projecthub.profile.profile_router import router as profile_router  # noqa: E402
from projecthub.project.project_router import router as project_router  # noqa: E402
from projecthub.todo.todo_router import router as todo_router  # noqa: E402
from projecthub.user.user_router import router as user_router  # noqa: E402

app.include_router(auth_router, prefix="/api")
# the other routers carry their own resource prefix
for r in (
    profile_router,
    project_router,
    notification_router,
    message_router,
    user_router,
    collaborator_router,
    todo_router,
):
    app.include_router(r, prefix="/api")


# ---------------- HEALTH ----------------
@app.get("/api/health")
def health():
    return {"status": "OK", "message": "Server is running"}
