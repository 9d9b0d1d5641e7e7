import os
from dotenv import load_dotenv

load_dotenv()

# Backend API configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
REQUEST_TIMEOUT = float(os.getenv("API_TIMEOUT_SECONDS", "30"))

# Streamlit configuration
PAGE_TITLE = "Trip Board"
PAGE_ICON = "🧳"
LAYOUT = "wide"

# Shown when a trip has no usable image
PLACEHOLDER_IMAGE = os.getenv("PLACEHOLDER_IMAGE", "https://placehold.co/600x450?text=Trip")

# Trip board layout
CARDS_PER_ROW = 3
GALLERY_COLUMNS = 3

# Colors and styling
PRIMARY_COLOR = "#1f77b4"
PRICE_COLOR = "#059669"
