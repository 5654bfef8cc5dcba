# hrm/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc
from hrm.database import engine, Base
from hrm.core.errors import HrmError, InvalidInput
from hrm.core.logging import setup_logging
from hrm.models import person, assignment, criteria, week, submission, month, fund, notification  # noqa: F401
from hrm.routers import weeks, criteria as criteria_router, directory, marking, monthly, funds, notifications, cron

logger = setup_logging()

app = FastAPI(title="HRM - Performance Evaluation & Payroll", version="1.0")

# Include Routers
app.include_router(weeks.router)
app.include_router(criteria_router.router)
app.include_router(directory.router)
app.include_router(marking.router)
app.include_router(monthly.router)
app.include_router(funds.router)
app.include_router(notifications.router)
app.include_router(cron.router)


@app.exception_handler(HrmError)
async def hrm_error_handler(request: Request, exc: HrmError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    body = InvalidInput("Invalid request", errors)
    return JSONResponse(status_code=body.status_code, content=body.to_dict())


@app.exception_handler(sa_exc.SQLAlchemyError)
async def database_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Create DB Tables (use Alembic in prod)
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise


@app.get("/")
def read_root():
    return {"message": "Welcome to the HRM Backend"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hrm.main:app", host="0.0.0.0", port=8000, reload=True)
