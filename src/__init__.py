import logging
from fastapi import FastAPI, HTTPException, Request, status
from contextlib import asynccontextmanager
from src.config import Config
from src.db.main import init_db
from src.db.redis import check_redis_connection, close_redis_connection
from src.utils.logger import setup_logging

from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.auth.routes import authRouter
from src.customers.routes import customer_router
from src.categories.routes import category_router
from src.parts.routes import part_router
from src.pricing.routes import price_structure_router
from src.inquiries.routes import inquiry_router
from src.quotations.routes import quotation_router
from src.orders.routes import order_router
from src.invoices.routes import invoice_router
from src.returns.routes import return_router
from src.challans.routes import challan_router
from src.receivables.routes import receivable_router
from src.reports.routes import report_router
from src.utils.limiter import limiter

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("---Server Started---")

    # 1. Initialize the database
    await init_db()

    # 2. Check Redis Connection
    await check_redis_connection()

    yield

    # 3. Clean up Redis connections on shutdown
    logger.info("---Closing Redis Connection---")
    await close_redis_connection()
    logger.info("---Server Closed---")

app = FastAPI(
    title="Auto Parts ERP API",
    description="the API behind the sales, delivery and receivables screens of the auto parts ERP",
    lifespan = lifespan
)

# Required for SlowAPI to function correctly on routes
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def health_check():
    return{
        "status": "Success",
        "message": "Server Working"
    }

@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "data": None
        },
        headers=getattr(exc, "headers", None)
    )

def format_validation_errors(errors):
    formatted = []
    for err in errors:
        # Skip the first element if it's "body", "query", etc.
        loc = err["loc"]
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[0])
        formatted.append({
            "field": field,
            "message": err["msg"]
        })
    return formatted

def is_body_unreadable(errors) -> bool:
    """True when the body is missing or is not valid JSON at all."""
    for err in errors:
        if err.get("type") == "json_invalid":
            return True
        if err.get("type") == "missing" and tuple(err.get("loc", ())) == ("body",):
            return True
    return False

@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request:Request, exc: RequestValidationError):
    errors = exc.errors()

    if is_body_unreadable(errors):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": "Invalid request body",
                "errors": format_validation_errors(errors),
                "data": None
            }
        )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content={
            "success": False,
            "message": "Validation error",
            "errors": format_validation_errors(errors),
            "data": None
        }
    )

# Register all routers
app.include_router(authRouter, prefix="/api/auth", tags=["Authentication"])
app.include_router(customer_router, prefix="/api/customers", tags=["Customers"])
app.include_router(category_router, prefix="/api/categories", tags=["Categories"])
app.include_router(part_router, prefix="/api/parts", tags=["Parts"])
app.include_router(price_structure_router, prefix="/api/customer-price-structures", tags=["Price Structures"])
app.include_router(inquiry_router, prefix="/api/sales-inquiries", tags=["Sales Inquiries"])
app.include_router(quotation_router, prefix="/api/sales-quotations", tags=["Sales Quotations"])
app.include_router(order_router, prefix="/api/sales-orders", tags=["Sales Orders"])
app.include_router(invoice_router, prefix="/api/sales-invoices", tags=["Sales Invoices"])
app.include_router(return_router, prefix="/api/sales-returns", tags=["Sales Returns"])
app.include_router(challan_router, prefix="/api/delivery-challans", tags=["Delivery Challans"])
app.include_router(receivable_router, prefix="/api/receivables", tags=["Receivables"])
app.include_router(report_router, prefix="/api/reports", tags=["Reports"])
