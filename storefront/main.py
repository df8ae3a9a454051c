# storefront/main.py

"""
Entry point for the API.
Wires the routers, the error handlers and CORS onto one FastAPI app.

Request flow: auth guard -> (role guard) -> body validation -> handler -> database
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

# For Middleware block so browser can access the API
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import get_settings
from storefront.errors import register_error_handlers
from storefront.routers import auth, orders, products, users
from storefront.utils.db import create_db_and_tables
from storefront.utils.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    create_db_and_tables()
    yield


def create_app(lifespan=lifespan) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Storefront API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(orders.router)
    app.include_router(users.router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    # If running directly, this allows 'python storefront/main.py' to work
    # BUT standard usage is 'uvicorn storefront.main:app --reload' from terminal
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=True)
