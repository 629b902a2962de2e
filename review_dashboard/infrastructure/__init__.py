# Infrastructure Layer
# ====================
# Contains the review pipeline and all external service integrations:
# - importer/: spreadsheet reading and per-row field normalization
# - analysis/: sentiment labeling, keywords/categories, aggregation, filtering
# - llm/: chat context builder and OpenAI-compatible chat service
# - apple/: Apple App Store review import backend client
# - config/: Environment and settings management
