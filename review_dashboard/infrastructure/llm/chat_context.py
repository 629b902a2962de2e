"""
Chat Context Builder
====================

Summarizes an AggregatedData snapshot into the plain-text blob injected
into the chat system prompt: headline numbers, rating distribution,
platform mix, sentiment split, categories, top keywords, and a bounded
sample of review lines.
"""

from typing import Dict, List

from ...domain.models import RATING_BUCKETS, AggregatedData, Review

SYSTEM_PROMPT_TEMPLATE = """You are Rivue, an assistant that analyzes app store reviews.
You have access to {total} reviews summarized below.

RULES:
1. Answer only from the data below. If the data cannot answer a question, say so.
2. Quote reviews verbatim when giving examples.
3. Be concise and data-driven; give numbers and percentages where possible.

{context}"""

REVIEW_TEXT_LIMIT = 300


def _percent(count: int, total: int) -> str:
    return f"{count / total * 100:.1f}%" if total else "0.0%"


def _distribution_lines(counts: Dict, total: int) -> List[str]:
    return [f"- {key}: {count} ({_percent(count, total)})" for key, count in counts.items()]


def date_range(reviews: List[Review]) -> str:
    dates = sorted(r.date for r in reviews if r.date is not None)
    if not dates:
        return "No dates available"
    start, end = dates[0], dates[-1]
    return f"{start:%Y-%m-%d} to {end:%Y-%m-%d} ({(end - start).days} days)"


def format_review_line(index: int, review: Review) -> str:
    text = (review.content or review.title or "").replace("\n", " ")
    if len(text) > REVIEW_TEXT_LIMIT:
        text = text[:REVIEW_TEXT_LIMIT] + "..."
    stamp = f"{review.date:%Y-%m-%d}" if review.date else "unknown date"
    return (
        f"[Review {index}] {review.rating}/5 | {review.sentiment.value} | "
        f"{review.platform.value} | {review.category.value} | {stamp} | \"{text}\""
    )


def build_chat_context(data: AggregatedData, max_reviews: int = 50) -> str:
    """Render the snapshot as prompt text. Reviews are newest first."""
    total = data.total_reviews
    rated = sum(data.rating_distribution.values())

    sections = [
        "DATA SUMMARY:",
        f"- Total reviews: {total}",
        f"- Average rating: {data.avg_rating} / 5 (over {rated} rated reviews)",
        f"- Date range: {date_range(data.reviews)}",
        f"- Developer response rate: {data.response_rate}%",
        "",
        "RATING DISTRIBUTION:",
        *[
            f"- {bucket} stars: {data.rating_distribution.get(bucket, 0)} "
            f"({_percent(data.rating_distribution.get(bucket, 0), rated)})"
            for bucket in reversed(RATING_BUCKETS)
        ],
        "",
        "PLATFORM MIX:",
        *(_distribution_lines(data.platform_distribution, total) or ["- none"]),
        "",
        "SENTIMENT:",
        *_distribution_lines(data.sentiment_distribution, total),
        "",
        "CATEGORIES:",
        *(_distribution_lines(data.category_distribution, total) or ["- none"]),
        "",
        "TOP KEYWORDS:",
        ", ".join(f"{k['word']} ({k['count']})" for k in data.top_keywords) or "none",
    ]

    sample = data.reviews[:max_reviews]
    if sample:
        sections += ["", f"SAMPLE REVIEWS ({len(sample)} of {total}, newest first):"]
        sections += [format_review_line(i + 1, r) for i, r in enumerate(sample)]

    return "\n".join(sections)


def build_system_prompt(data: AggregatedData, max_reviews: int = 50) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        total=data.total_reviews,
        context=build_chat_context(data, max_reviews=max_reviews),
    )
