# Web Layer
# =========
# FastAPI dashboard and JSON API over the review pipeline.
