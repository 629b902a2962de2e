# Review Dashboard - App Store Review Analytics
# ==============================================
# Ingests App Store / Google Play review exports and turns them into the
# aggregated snapshot every dashboard view reads from.
#
# ARCHITECTURE LAYERS:
# - Domain:         Review and AggregatedData shapes (no external dependencies)
# - Infrastructure: Spreadsheet import, analysis pipeline, LLM chat, Apple import
# - Web:            FastAPI dashboard and JSON API
#
# The analysis pipeline is pure and synchronous; only the web layer and the
# external clients do I/O.
