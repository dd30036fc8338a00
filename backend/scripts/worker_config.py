"""
Worker Configuration
Configuration settings for the prediction worker script.
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fixturecast.db")

# API Keys
API_FOOTBALL_KEY = os.getenv("API_FOOTBALL_KEY")

# Worker Configuration
PREDICTION_DAYS = int(os.getenv("PREDICTION_DAYS", "7"))  # Look-ahead window
SKIP_SYNC = os.getenv("SKIP_SYNC", "").lower() in ("1", "true", "yes")

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
