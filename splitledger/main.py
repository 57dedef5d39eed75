import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from splitledger.core.config import settings
from splitledger.core.db_check import wait_for_db
from splitledger.core.errors import InvalidArgument
from splitledger.core.logging import configure_logging
from splitledger.api.v1.routes.system import router as system_router
from splitledger.api.v1.routes.user import router as user_router
from splitledger.api.v1.routes.group import router as group_router
from splitledger.api.v1.routes.expense import router as expense_router
from splitledger.api.v1.routes.settlement import router as settlement_router

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_db()
    yield


app = FastAPI(title=settings.APP_TITLE, lifespan=lifespan)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    logger.error("Invalid argument on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/")
async def root():
    return {"message": "Splitledger Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(user_router, prefix="/api/v1/users")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/expenses")
app.include_router(settlement_router, prefix="/api/v1/settlements")
