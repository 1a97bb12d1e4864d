from fastapi import FastAPI
from config.logging import configure_logging
from .routers import health, imports

configure_logging()

app = FastAPI(title="Catalog Products Importer")

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(imports.router, prefix="", tags=["import"])
