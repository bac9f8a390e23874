import os

from dotenv import load_dotenv


load_dotenv()


_BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    DATA_DIR = os.getenv("DATA_DIR", _BASE_DIR)

    # Flat JSON documents backing the record store
    POSTS_FILE = os.getenv("POSTS_FILE", os.path.join(DATA_DIR, "posts.json"))
    CHATS_FILE = os.getenv("CHATS_FILE", os.path.join(DATA_DIR, "roommate-chats.json"))

    # Uploaded photos are spooled here before being forwarded to Cloudinary
    TMP_UPLOAD_DIR = os.getenv("TMP_UPLOAD_DIR", os.path.join(DATA_DIR, "tmp_uploads"))
    PUBLIC_DIR = os.getenv("PUBLIC_DIR", os.path.join(DATA_DIR, "public"))

    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "change-me")

    CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET", "")
    CLOUDINARY_FOLDER = os.getenv("CLOUDINARY_FOLDER", "find_near_room")

    MAX_PHOTOS = int(os.getenv("MAX_PHOTOS", "12"))

    # Comma-separated list of CORS origins; '*' means allow all
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT = int(os.getenv("PORT", "8000"))
