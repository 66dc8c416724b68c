import os

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("uploads", "documents"))
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
PDF_EXTENSIONS = {"pdf"}
