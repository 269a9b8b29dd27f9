import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from budgeteer.config import get_settings
from budgeteer.dependencies import NotAuthenticated
from budgeteer.middleware import LoggingMiddleware
from budgeteer.routers.accounts_router import accounts_router
from budgeteer.routers.auth_router import auth_router
from budgeteer.routers.banks_router import banks_router
from budgeteer.routers.budgets_router import budgets_router
from budgeteer.routers.categories_router import categories_router
from budgeteer.routers.transactions_router import transactions_router
from budgeteer.utils.gocardless_client import GoCardlessError, configure_call_log
from budgeteer.utils.google_oauth import OAuthError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
configure_call_log(settings.gocardless_log_file)
logger = logging.getLogger("budgeteer")

app = FastAPI(title="Budgeteer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(NotAuthenticated)
def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    return RedirectResponse("/auth/login", status_code=303)


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(GoCardlessError)
def gocardless_error_handler(request: Request, exc: GoCardlessError):
    logger.error("GoCardless call failed on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "The banking service could not complete the request"})


@app.exception_handler(OAuthError)
def oauth_error_handler(request: Request, exc: OAuthError):
    logger.error("Google sign-in failed: %s", exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Sign-in failed"})


# Register routers
app.include_router(auth_router)
app.include_router(banks_router)
app.include_router(accounts_router)
app.include_router(categories_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
