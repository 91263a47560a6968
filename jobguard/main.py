import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from jobguard.routers import companies
from jobguard.routers import risk
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)

app = FastAPI(title="Jobguard API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(companies.router)
app.include_router(risk.router)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "jobguard"}
