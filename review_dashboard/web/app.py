"""
FastAPI Web Application - Review Dashboard
===========================================

Upload an App Store / Google Play export (or import from App Store
Connect), then browse the aggregated ratings, sentiment, categories and
keywords, filter the review list, and chat with an LLM about the data.
"""

import html
import logging
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from ..domain.models import RATING_BUCKETS, AggregatedData
from ..infrastructure.analysis import (
    ReviewFilter,
    aggregate,
    deduplicate_reviews,
    filter_reviews,
    quick_stats,
)
from ..infrastructure.apple import AppleImportClient, AppleImportError
from ..infrastructure.config import get_settings
from ..infrastructure.importer import ReviewFileError, ReviewProcessor
from ..infrastructure.llm import (
    ChatRateLimitError,
    ChatService,
    ChatServiceError,
    InMemoryChatSessionStore,
)

logging.basicConfig(level=get_settings().dashboard.log_level)
logger = logging.getLogger(__name__)

INVALID_FILE_MESSAGE = "Please provide a valid Excel file (.xlsx, .xls or .csv)"

# ── Globals ────────────────────────────────────────────────────────
processor: Optional[ReviewProcessor] = None
chat_service: Optional[ChatService] = None
apple_client: Optional[AppleImportClient] = None
current_data: Optional[AggregatedData] = None


class ChatRequest(BaseModel):
    message: str


class ChatReply(BaseModel):
    session_id: str
    reply: str


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global processor, chat_service, apple_client, current_data
    settings = get_settings()
    for issue in settings.validate():
        logger.warning(issue)

    processor = ReviewProcessor()
    chat_service = ChatService(InMemoryChatSessionStore(), settings.llm)
    apple_client = AppleImportClient(settings.apple)
    current_data = None
    logger.info("Review pipeline ready")
    yield


app = FastAPI(title="Review Dashboard", description="App Store Review Analytics", lifespan=lifespan)


def _snapshot() -> AggregatedData:
    return current_data if current_data is not None else aggregate([])


def _load(data: AggregatedData) -> AggregatedData:
    global current_data
    current_data = data
    # Existing chat prompts describe the previous snapshot
    if chat_service is not None:
        chat_service.reset_sessions()
    return data


def _read_upload(content: bytes, filename: str) -> AggregatedData:
    ext = Path(filename or "").suffix.lower()
    if ext not in get_settings().dashboard.allowed_extensions:
        raise ReviewFileError(f"Unsupported file type: {ext or '(none)'}")
    return processor.process_upload(content, filename)


# ══════════════════════════════════════════════════════════════════
#  HTML rendering - plain tables, no charts
# ══════════════════════════════════════════════════════════════════

PAGE_CSS = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Inter', sans-serif;
           background: #0f1117; color: #e2e8f0; margin: 0; padding: 32px; }
    h1 { margin: 0 0 24px; font-weight: 700; }
    h2 { font-size: 15px; text-transform: uppercase; letter-spacing: 0.5px; color: #94a3b8; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(260px, 1fr)); gap: 16px; }
    .card { background: rgba(255,255,255,0.04); border: 1px solid rgba(255,255,255,0.08);
            border-radius: 12px; padding: 20px; }
    .stat { font-size: 32px; font-weight: 700; }
    table { width: 100%; border-collapse: collapse; font-size: 13px; }
    td, th { padding: 6px 8px; border-bottom: 1px solid rgba(255,255,255,0.06); text-align: left; }
    .alert { padding: 12px 16px; border-radius: 10px; margin-bottom: 16px; }
    .alert-info { background: rgba(124,58,237,0.15); }
    .alert-error { background: rgba(248,113,113,0.15); color: #fca5a5; }
    .badge { padding: 2px 8px; border-radius: 6px; font-size: 11px; font-weight: 600; }
    .badge.positive { background: rgba(52,211,153,0.15); color: #34d399; }
    .badge.neutral  { background: rgba(148,163,184,0.15); color: #94a3b8; }
    .badge.negative { background: rgba(252,165,165,0.15); color: #fca5a5; }
    .btn { background: #7c3aed; color: #fff; border: none; padding: 10px 20px;
           border-radius: 8px; font-weight: 600; cursor: pointer; }
"""


def _table(rows, headers) -> str:
    head = "".join(f"<th>{html.escape(str(h))}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows
    )
    return f"<table><tr>{head}</tr>{body}</table>"


def _distribution_table(counts: dict, label: str) -> str:
    if not counts:
        return "<p>No data</p>"
    rows = [(html.escape(str(key)), count) for key, count in counts.items()]
    return _table(rows, [label, "Reviews"])


def render_dashboard(data: AggregatedData, message: str = "", error: str = "") -> str:
    settings = get_settings().dashboard
    alert = ""
    if message:
        alert = f'<div class="alert alert-info">{html.escape(message)}</div>'
    if error:
        alert += f'<div class="alert alert-error">{html.escape(error)}</div>'

    rating_rows = [
        (f"{bucket} ★", data.rating_distribution.get(bucket, 0))
        for bucket in reversed(RATING_BUCKETS)
    ]
    keyword_rows = [(html.escape(k["word"]), k["count"]) for k in data.top_keywords]
    day_rows = [
        (p.date, p.count, f"{p.avg_rating:.2f}",
         p.sentiments["Positive"], p.sentiments["Neutral"], p.sentiments["Negative"])
        for p in data.time_series[-14:]
    ]
    review_rows = [
        (
            f"{r.date:%Y-%m-%d}" if r.date else "",
            r.rating or "-",
            f'<span class="badge {r.sentiment.value.lower()}">{r.sentiment.value}</span>',
            html.escape(r.category.value),
            html.escape(r.platform.value),
            html.escape(r.title),
            html.escape((r.content or "")[:240]),
        )
        for r in data.reviews[:settings.recent_reviews_shown]
    ]

    return f"""<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>Review Dashboard</title>
<style>{PAGE_CSS}</style></head>
<body>
<h1>Review Dashboard</h1>
{alert}
<div class="card" style="margin-bottom:16px">
  <form action="/upload" method="post" enctype="multipart/form-data">
    <input type="file" name="file" accept=".xlsx,.xls,.csv" required>
    <button class="btn" type="submit">Upload reviews</button>
  </form>
</div>
<div class="grid">
  <div class="card"><h2>Total reviews</h2><div class="stat">{data.total_reviews}</div></div>
  <div class="card"><h2>Average rating</h2><div class="stat">{data.avg_rating}</div></div>
  <div class="card"><h2>Response rate</h2><div class="stat">{data.response_rate}%</div></div>
  <div class="card"><h2>Ratings</h2>{_table(rating_rows, ["Stars", "Reviews"])}</div>
  <div class="card"><h2>Sentiment</h2>{_distribution_table(data.sentiment_distribution, "Sentiment")}</div>
  <div class="card"><h2>Categories</h2>{_distribution_table(data.category_distribution, "Category")}</div>
  <div class="card"><h2>Platforms</h2>{_distribution_table(data.platform_distribution, "Platform")}</div>
  <div class="card"><h2>Top keywords</h2>{_table(keyword_rows, ["Keyword", "Reviews"])}</div>
</div>
<div class="card" style="margin-top:16px"><h2>Daily activity</h2>
{_table(day_rows, ["Day", "Reviews", "Avg", "Positive", "Neutral", "Negative"])}</div>
<div class="card" style="margin-top:16px"><h2>Latest reviews</h2>
{_table(review_rows, ["Date", "Rating", "Sentiment", "Category", "Platform", "Title", "Review"])}</div>
</body></html>"""


# ── Dashboard ──────────────────────────────────────────────────

@app.get("/", response_class=HTMLResponse)
async def dashboard(message: str = "", error: str = ""):
    return HTMLResponse(render_dashboard(_snapshot(), message, error))


@app.post("/upload")
async def upload_reviews(file: UploadFile = File(...)):
    """Upload form target - parse, aggregate, then back to the dashboard."""
    if not file.filename:
        return RedirectResponse(url="/?error=No file selected", status_code=303)

    try:
        data = _load(_read_upload(await file.read(), file.filename))
    except ReviewFileError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        return RedirectResponse(url=f"/?error={quote(INVALID_FILE_MESSAGE)}", status_code=303)

    message = f"Loaded {data.total_reviews} reviews from {file.filename}"
    return RedirectResponse(url=f"/?message={quote(message)}", status_code=303)


# ── API Endpoints ──────────────────────────────────────────────

@app.post("/api/upload")
async def api_upload(file: UploadFile = File(...)):
    try:
        data = _load(_read_upload(await file.read(), file.filename or ""))
    except ReviewFileError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=INVALID_FILE_MESSAGE)
    return data.to_dict()


@app.get("/api/data")
async def api_data(include_reviews: bool = True):
    return _snapshot().to_dict(include_reviews=include_reviews)


@app.get("/api/reviews")
async def api_reviews(
    search: str = "",
    filter: str = "all",
    time_range: str = "all",
    start: Optional[date] = None,
    end: Optional[date] = None,
    app_name: str = "all",
    device: str = "all",
    version: str = "all",
    os: str = "all",
    platform: str = "all",
    category: str = "all",
    limit: int = 500,
):
    criteria = ReviewFilter(
        search=search,
        selected=filter,
        time_range=time_range,
        start_date=start,
        end_date=end,
        metadata={
            "app_name": app_name,
            "device": device,
            "version": version,
            "os": os,
            "platform": platform,
            "category": category,
        },
    )
    matched = filter_reviews(deduplicate_reviews(_snapshot().reviews), criteria)
    return {
        "stats": quick_stats(matched),
        "reviews": [r.to_dict() for r in matched[:max(limit, 0)]],
    }


@app.post("/api/import/apple")
async def api_import_apple(
    app_id: str = Form(...),
    issuer_id: str = Form(""),
    private_key: Optional[UploadFile] = File(None),
    use_server_credentials: bool = Form(False),
):
    key_text = None
    if private_key is not None:
        key_text = (await private_key.read()).decode("utf-8", errors="replace")

    try:
        result = await run_in_threadpool(
            apple_client.import_reviews,
            app_id,
            issuer_id=issuer_id or None,
            private_key=key_text,
            use_server_credentials=use_server_credentials,
        )
    except AppleImportError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if not result.reviews:
        raise HTTPException(status_code=404, detail="No reviews found for the specified app")

    data = _load(aggregate(processor.process_rows(result.reviews)))
    payload = data.to_dict()
    payload["fromCache"] = result.from_cache
    payload["sources"] = result.sources
    return payload


@app.post("/api/chat/{session_id}", response_model=ChatReply)
def api_chat(session_id: str, request: ChatRequest):
    if current_data is None:
        raise HTTPException(status_code=409, detail="Upload reviews before starting a chat")

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is empty")

    if not chat_service.has_session(session_id):
        chat_service.start_session(session_id, current_data)

    try:
        reply = chat_service.send_message(session_id, request.message)
    except ChatRateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ChatServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ChatReply(session_id=session_id, reply=reply)


@app.delete("/api/chat/{session_id}")
async def api_end_chat(session_id: str):
    return {"ended": chat_service.end_session(session_id)}


@app.get("/health")
async def health():
    return {"status": "ok", "reviews_loaded": _snapshot().total_reviews}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
