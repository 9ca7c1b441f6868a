import os
from dotenv import load_dotenv

load_dotenv()

# --- Globals ---
DATA_DIR = os.getenv("HOTEL_DATA_DIR", "data")
ADMIN_DEFAULT_PASSWORD = os.getenv("HOTEL_ADMIN_DEFAULT_PASSWORD", "admin123")
LOG_LEVEL = os.getenv("HOTEL_LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# --- Tables ---
ROOM_FILE = "rooms.txt"
BOOKING_FILE = "bookings.txt"
USER_FILE = "users.txt"
USER_PROFILE_FILE = "user_profiles.txt"
ADMIN_PASS_FILE = "admin_pass.txt"

MIN_ADMIN_PASSWORD_LENGTH = 6
