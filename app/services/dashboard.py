"""Admin dashboard: entity counts and revenue split over completed payments."""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from app.config import GST_RATE, PLATFORM_COMMISSION_RATE
from app.db.base import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevenueSplit:
    amount: float
    gst: float
    commission: float
    author_earnings: float


def _money(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def split_payment(payment: dict) -> RevenueSplit:
    """
    GST, platform commission and author share of one payment.

    Stored non-zero values win. Otherwise the amount is treated as GST-inclusive:
    base = amount / (1 + GST), commission is a share of base, the author gets the rest.
    """
    amount = _money(payment.get("amount"))
    base = amount / (1 + GST_RATE)
    gst = _money(payment.get("gst_amount")) or amount - base
    commission = _money(payment.get("platform_commission")) or base * PLATFORM_COMMISSION_RATE
    author = _money(payment.get("author_earnings")) or base - commission
    return RevenueSplit(
        amount=round(amount, 2),
        gst=round(gst, 2),
        commission=round(commission, 2),
        author_earnings=round(author, 2),
    )


def summarize_revenue(payments: list[dict]) -> dict:
    totals = {"revenue": 0.0, "gst": 0.0, "commission": 0.0, "author": 0.0}
    per_author: dict[str, dict] = defaultdict(lambda: {"revenue": 0.0, "earnings": 0.0, "payments": 0})
    for payment in payments:
        split = split_payment(payment)
        totals["revenue"] += split.amount
        totals["gst"] += split.gst
        totals["commission"] += split.commission
        totals["author"] += split.author_earnings
        author_id = payment.get("author_id")
        if author_id:
            entry = per_author[author_id]
            entry["revenue"] = round(entry["revenue"] + split.amount, 2)
            entry["earnings"] = round(entry["earnings"] + split.author_earnings, 2)
            entry["payments"] += 1
    return {
        "totalRevenue": round(totals["revenue"], 2),
        "totalPayments": len(payments),
        "totalGST": round(totals["gst"], 2),
        "totalPlatformCommission": round(totals["commission"], 2),
        "totalAuthorEarnings": round(totals["author"], 2),
        # GST is passed on, so the platform keeps its commission only
        "platformProfit": round(totals["commission"], 2),
        "authorRevenue": [{"authorId": author_id, **entry} for author_id, entry in per_author.items()],
    }


async def get_dashboard(
    db: Database,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> dict:
    (
        total_books,
        total_audio_books,
        total_authors,
        total_users,
        pending_books,
        pending_audio_books,
        active_users,
    ) = await asyncio.gather(
        db.table("books").count(),
        db.table("audio_books").count(),
        db.table("authors").count(),
        db.table("users").count(),
        db.table("books").count({"status": "pending"}),
        db.table("audio_books").count({"status": "pending"}),
        db.table("users").count({"status": "active"}),
    )

    created_at: dict = {}
    if start_date:
        created_at["gte"] = start_date
    if end_date:
        created_at["lte"] = end_date
    where: dict = {"status": "completed"}
    if created_at:
        where["created_at"] = created_at
    payments = await db.table("payments").find_many(where)
    logger.debug("Dashboard over %d completed payments", len(payments.rows))

    return {
        "totalBooks": total_books,
        "totalAudioBooks": total_audio_books,
        "totalAuthors": total_authors,
        "totalUsers": total_users,
        "pendingBooks": pending_books,
        "pendingAudioBooks": pending_audio_books,
        "activeUsers": active_users,
        **summarize_revenue(payments.rows),
    }
