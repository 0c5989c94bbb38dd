import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoice_app.config import get_settings
from invoice_app.routers import invoice_route

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="Invoice Processor")

app.include_router(invoice_route.router, tags=["Invoices"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

@app.get("/")
def read_root():
    return {"message": "Welcome to the Invoice Processing Service"}

@app.get("/health")
def health_check():
    return {"status": "ok"}
