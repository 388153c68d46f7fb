# backend/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from config import settings
from database import init_db
from utils.errors import register_exception_handlers

# Router imports; auth comes before users so /me is not taken for a user id
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.tours import router as tours_router
from routes.reviews import router as reviews_router
from routes.bookings import router as bookings_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

init_db()

app = FastAPI(title="Tours App API", version="1.0.0")

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(tours_router)
app.include_router(reviews_router)
app.include_router(bookings_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Tours App API is running"}
