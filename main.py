from fastapi import FastAPI, HTTPException, Request, Depends, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List, Optional
import logging
import structlog
import time
from contextlib import asynccontextmanager

from models import AccountResponse, ErrorResponse, HealthResponse
from services import AccountService, get_account_service
from repositories import AccountRepository, get_account_repository
from exceptions import AccountError, ErrorKind
from db import get_session, init_db
from config import get_settings

settings = get_settings()

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer() if settings.log_format == "text" else structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Error kind -> HTTP status
ERROR_STATUS = {
    ErrorKind.INSUFFICIENT_BALANCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.GENERAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"

# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Accounts API")
    init_db()
    yield
    # Shutdown
    logger.info("Shutting down Accounts API")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Minimal API for listing and creating accounts and transferring funds between them",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    # Log request
    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        client_ip=request.client.host if request.client else None
    )

    response = await call_next(request)

    # Log response
    process_time = time.time() - start_time
    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time=round(process_time, 4)
    )

    return response

# Dependency injection
def get_repository(session: Session = Depends(get_session)) -> AccountRepository:
    return get_account_repository(session)


def get_service(account_repo: AccountRepository = Depends(get_repository)) -> AccountService:
    return get_account_service(account_repo, settings.allow_same_account_transfer)

# Health check endpoint
@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check API health and get the number of stored accounts"
)
def health_check(account_repo: AccountRepository = Depends(get_repository)):
    try:
        return HealthResponse(
            status="healthy",
            accounts_count=account_repo.count()
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        raise HTTPException(
            status_code=500,
            detail="Health check failed"
        )

# List accounts
@app.get(
    "/",
    response_model=List[AccountResponse],
    summary="List Accounts",
    description="Return every stored account"
)
def list_accounts(service: AccountService = Depends(get_service)):
    try:
        return [AccountResponse.model_validate(account) for account in service.list_accounts()]
    except Exception as e:
        logger.error("Listing accounts failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

# Create account
@app.post(
    "/crear",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Account",
    description="Create an account for an owner with an initial balance",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Empty owner name or negative initial balance"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Internal server error"}
    }
)
@limiter.limit(RATE_LIMIT)
def create_account(
    request: Request,
    nombre: Optional[str] = Query(None, description="Account owner name"),
    cantidadInicial: Optional[Decimal] = Query(None, description="Initial balance"),
    service: AccountService = Depends(get_service)
):
    try:
        account = service.create_account(nombre, cantidadInicial)
        return AccountResponse.model_validate(account)

    except AccountError as e:
        logger.warning(
            "Account creation rejected",
            kind=e.kind.value,
            detail=e.message
        )
        return PlainTextResponse(
            f"Error creating account: {e.message}",
            status_code=status.HTTP_400_BAD_REQUEST
        )

    except Exception as e:
        logger.error(
            "Account creation failed with unexpected error",
            error=str(e),
            exc_info=True
        )
        return PlainTextResponse(
            "Unexpected error while creating the account",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

# Transfer endpoint
@app.post(
    "/transferir",
    response_class=PlainTextResponse,
    summary="Transfer Funds",
    description="Move an amount from a source account to a destination account",
    responses={
        200: {"description": "Transfer completed"},
        400: {"description": "Invalid amount or insufficient balance"},
        404: {"description": "Account not found"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Internal server error"}
    }
)
@limiter.limit(RATE_LIMIT)
def transfer(
    request: Request,
    origen: int = Query(..., description="Source account id"),
    destino: int = Query(..., description="Destination account id"),
    cantidad: Decimal = Query(..., description="Amount to transfer"),
    service: AccountService = Depends(get_service)
):
    try:
        # Owners are looked up first for the confirmation message
        source = service.get_account(origen)
        destination = service.get_account(destino)

        service.transfer(origen, destino, cantidad)

        return PlainTextResponse(
            f"Transfer completed successfully. {cantidad} was transferred "
            f"from the account of {source.nombre} to the account of {destination.nombre}."
        )

    except AccountError as e:
        status_code = ERROR_STATUS.get(e.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.warning(
            "Transfer rejected",
            kind=e.kind.value,
            status_code=status_code,
            detail=e.message,
            origen=origen,
            destino=destino
        )
        return PlainTextResponse(f"Error: {e.message}", status_code=status_code)

    except Exception as e:
        logger.error(
            "Transfer failed with unexpected error",
            error=str(e),
            origen=origen,
            destino=destino,
            exc_info=True
        )
        return PlainTextResponse(
            "Unexpected error while processing the transfer",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

# Global exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            detail=exc.detail,
            error_code=f"HTTP_{exc.status_code}"
        ).model_dump(mode="json")
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or unparsable request parameters are a bad request
    logger.warning(
        "Request validation failed",
        url=str(request.url),
        errors=str(exc.errors())
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            detail="Invalid request parameters",
            error_code="VALIDATION_ERROR"
        ).model_dump(mode="json")
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        error=str(exc),
        url=str(request.url),
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            detail="Internal server error",
            error_code="INTERNAL_ERROR"
        ).model_dump(mode="json")
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
