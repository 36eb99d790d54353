# Utility modules for the ordering app
from .sanitizer import clean_text, sanitize_name, sanitize_phone
