# main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Config
from app.routes import maps

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Tactical Map Generator", debug=Config.DEBUG)

# --- CORS for the map editor front end ---
origins = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",  # Create React App
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(maps.router)


@app.get("/health")
def health():
    return {"status": "ok"}
