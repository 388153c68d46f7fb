import argparse
import json
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv

load_dotenv()

from database import SessionLocal, init_db
from models.tour import Tour, TourStartDate, slugify
from models.users import User
from schemas.tour import TourCreate
from utils.credentials import set_password

# Configuration
DATA_DIR = os.path.join(os.path.dirname(__file__), "data_source")
TOURS_FILE = os.path.join(DATA_DIR, "tours.json")
# End Configuration


def ensure_admin(session, email: str, password: str) -> User:
    """Creates the admin account unless a user with that e-mail already exists."""
    email = email.strip().lower()
    admin = session.query(User).filter(User.email == email).first()
    if admin:
        print(f"Admin {email} already exists, skipping.")
        return admin

    admin = User(name="Admin", email=email, role="admin")
    set_password(admin, password, password, is_new=True)
    session.add(admin)
    session.commit()
    print(f"Created admin account {email}.")
    return admin


def load_tours(session, path: str = TOURS_FILE) -> int:
    """Loads tours from JSON, validating each entry like the API does. Returns the number inserted."""
    try:
        with open(path, encoding="utf-8") as fh:
            raw_tours = json.load(fh)
    except FileNotFoundError:
        print(f"Error: file {path} not found.")
        return 0

    inserted = 0
    for raw in raw_tours:
        ratings = {k: raw.pop(k) for k in ("ratings_average", "ratings_quantity") if k in raw}
        payload = TourCreate.model_validate(raw)

        if session.query(Tour).filter(Tour.name == payload.name).first():
            continue

        tour = Tour(slug=slugify(payload.name), **payload.model_dump(exclude={"start_location", "start_dates"}), **ratings)
        if payload.start_location:
            tour.start_lat = payload.start_location.lat
            tour.start_lng = payload.start_location.lng
            tour.start_address = payload.start_location.address
            tour.start_description = payload.start_location.description
        tour.start_dates = [TourStartDate(start_date=d) for d in payload.start_dates]
        session.add(tour)
        inserted += 1

    session.commit()
    return inserted


def delete_tours(session) -> int:
    count = 0
    for tour in session.query(Tour).all():
        session.delete(tour)
        count += 1
    session.commit()
    return count


def main():
    parser = argparse.ArgumentParser(description="Seed the tours database.")
    parser.add_argument("--delete", action="store_true", help="remove all tours instead of importing")
    parser.add_argument("--file", default=TOURS_FILE, help="JSON file with tours")
    args = parser.parse_args()

    init_db()
    session = SessionLocal()
    try:
        if args.delete:
            print(f"Deleted {delete_tours(session)} tours.")
            return

        admin_email = os.getenv("SEED_ADMIN_EMAIL")
        admin_password = os.getenv("SEED_ADMIN_PASSWORD")
        if admin_email and admin_password:
            ensure_admin(session, admin_email, admin_password)

        print(f"Imported {load_tours(session, args.file)} tours.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
