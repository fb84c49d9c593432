import os

API_BASE_URL = os.environ.get("SPACEBOOK_API_URL", "http://localhost:3001/api/v1")

REQUEST_TIMEOUT = float(os.environ.get("SPACEBOOK_REQUEST_TIMEOUT", "30"))
RETRY_ATTEMPTS = int(os.environ.get("SPACEBOOK_RETRY_ATTEMPTS", "3"))
RETRY_DELAY = float(os.environ.get("SPACEBOOK_RETRY_DELAY", "1.0"))

# refresh this many seconds before the access token expires
TOKEN_REFRESH_THRESHOLD = int(os.environ.get("SPACEBOOK_TOKEN_REFRESH_THRESHOLD", "300"))
TOKEN_TABLE_NAME = os.environ.get("SPACEBOOK_TOKEN_TABLE")

RAZORPAY_KEY = os.environ.get("RAZORPAY_KEY", "")
APP_NAME = os.environ.get("SPACEBOOK_APP_NAME", "Spacebook")
RAZORPAY_CHECKOUT_SRC = "https://checkout.razorpay.com/v1/checkout.js"

DEFAULT_CURRENCY = "INR"
TAX_RATE = "0.18"
