# Main application file



import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pos_console.core.rate_limiter import limiter
from pos_console.core.config import settings
from pos_console.services.data_service import DataServiceError
from pos_console.routers import (
    auth,
    dashboard,
    sales,
    products,
    customers,
    credits,
    users,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("pos_console")


# APP INIT

app = FastAPI(
    title="POS Console API",
    description="Point-of-sale back office: checkout, catalog, store credit and dashboard",
    version="1.0.0",
    debug=settings.DEBUG,
)



# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# DATA SERVICE FAILURES

@app.exception_handler(DataServiceError)
async def data_service_error_handler(request: Request, exc: DataServiceError):
    # Already logged by the data service; the client gets a generic notice
    return JSONResponse(
        status_code=500,
        content={"detail": "Unable to reach the data service. Please try again."},
    )


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(sales.router)
app.include_router(products.router)
app.include_router(customers.router)
app.include_router(credits.router)
app.include_router(users.router)



# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "POS Console API is running"}
