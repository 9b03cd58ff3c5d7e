"""FastAPI main application."""
import base64
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from finsight.config import settings
from finsight.logging_config import configure_logging
from finsight.models.automation import AutomationRunResponse
from finsight.models.budget import Budget, BudgetUpdate
from finsight.models.category import Category, TransactionType, check_category
from finsight.models.insight import (
    AIInsight,
    CategorizeRequest,
    CategorizeResponse,
    InsightsResponse,
    ReceiptExtraction,
)
from finsight.models.recurring import RecurringRule, RecurringRuleCreate, UpcomingCharge
from finsight.models.summary import BudgetProgress, MonthlyView, SummaryResponse
from finsight.models.transaction import Transaction, TransactionDraft
from finsight.services import aggregates
from finsight.services.insights import NO_INSIGHTS_MESSAGE, InsightService
from finsight.services.ledger import LedgerSession, SessionRegistry
from finsight.services.schedule import next_due_date
from finsight.storage.database import get_store

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests may preset a store, a clock or an insight service on app.state
    store = getattr(app.state, "store", None) or get_store()
    app.state.registry = SessionRegistry(store, clock=getattr(app.state, "clock", None))
    if getattr(app.state, "insight_service", None) is None:
        app.state.insight_service = InsightService()
    logger.info("API started", extra={"database": getattr(store, "db_path", None)})
    yield
    await app.state.registry.close_all()


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

async def get_session(user_id: str, request: Request) -> LedgerSession:
    """The user's open session with every pending snapshot applied."""
    session = await request.app.state.registry.get(user_id)
    await session.wait_idle()
    return session


def get_insight_service(request: Request) -> InsightService:
    return request.app.state.insight_service


def _now(session: LedgerSession) -> datetime:
    return session.clock()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "FinSight Finance API", "version": "1.0.0"}


@app.post("/sessions/{user_id}")
async def open_session(session: LedgerSession = Depends(get_session)):
    """
    Sign a user in: start live queries and run automation on the first snapshot.
    """
    return {
        "user_id": session.user_id,
        "rules": len(session.rules),
        "transactions": len(session.transactions),
        "budgets": len(session.budgets),
    }


@app.delete("/sessions/{user_id}", status_code=204)
async def close_session(user_id: str, request: Request):
    """Sign a user out and tear down their subscriptions."""
    if not await request.app.state.registry.close(user_id):
        raise HTTPException(status_code=404, detail=f"No open session for user {user_id}")


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@app.get("/users/{user_id}/transactions", response_model=List[Transaction])
async def list_transactions(session: LedgerSession = Depends(get_session)):
    return sorted(session.transactions, key=lambda t: t.date, reverse=True)


@app.post("/users/{user_id}/transactions", response_model=Transaction, status_code=201)
async def add_transaction(draft: TransactionDraft, session: LedgerSession = Depends(get_session)):
    tx_id = await session.add_transaction(draft)
    if not tx_id:
        raise HTTPException(status_code=503, detail="Failed to save transaction")
    await session.wait_idle()
    for t in session.transactions:
        if t.id == tx_id:
            return t
    raise HTTPException(status_code=503, detail="Transaction saved but not yet visible")


@app.get("/users/{user_id}/transactions/monthly", response_model=MonthlyView)
async def monthly_transactions(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    search: Optional[str] = Query(None, description="Matches note, category or amount"),
    session: LedgerSession = Depends(get_session),
):
    """Transactions of one month (default: the current one), newest first."""
    now = _now(session)
    year = year or now.year
    month = month or now.month
    filtered = aggregates.filter_month(session.transactions, year, month, search)
    return MonthlyView(
        user_id=session.user_id,
        year=year,
        month=month,
        search=search,
        stats=aggregates.monthly_stats(filtered),
        transactions=filtered,
    )


@app.delete("/users/{user_id}/transactions/{transaction_id}", status_code=204)
async def delete_transaction(transaction_id: str, session: LedgerSession = Depends(get_session)):
    if not await session.delete_transaction(transaction_id):
        raise HTTPException(status_code=404, detail=f"Transaction {transaction_id} not found")


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

@app.get("/users/{user_id}/budgets", response_model=List[Budget])
async def list_budgets(session: LedgerSession = Depends(get_session)):
    return session.budgets


@app.put("/users/{user_id}/budgets/{category}", response_model=Budget)
async def update_budget(
    category: Category,
    body: BudgetUpdate,
    session: LedgerSession = Depends(get_session),
):
    """Set the monthly limit of an expense category; saving again overwrites."""
    try:
        check_category(TransactionType.EXPENSE, category)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not await session.update_budget(category, body.limit):
        raise HTTPException(status_code=503, detail="Failed to save budget")
    return Budget(category=category, limit=body.limit)


@app.get("/users/{user_id}/budgets/progress", response_model=List[BudgetProgress])
async def budget_progress(session: LedgerSession = Depends(get_session)):
    return aggregates.budget_progress(session.transactions, session.budgets)


# ---------------------------------------------------------------------------
# Recurring rules and automation
# ---------------------------------------------------------------------------

@app.get("/users/{user_id}/rules", response_model=List[RecurringRule])
async def list_rules(session: LedgerSession = Depends(get_session)):
    return session.rules


@app.post("/users/{user_id}/rules", response_model=RecurringRule, status_code=201)
async def add_rule(rule: RecurringRuleCreate, session: LedgerSession = Depends(get_session)):
    """Create a rule. If it is already due, its transaction is created right away."""
    rule_id = await session.add_rule(rule)
    if not rule_id:
        raise HTTPException(status_code=503, detail="Failed to save recurring rule")
    await session.wait_idle()
    for r in session.rules:
        if r.id == rule_id:
            return r
    raise HTTPException(status_code=503, detail="Rule saved but not yet visible")


@app.get("/users/{user_id}/rules/upcoming", response_model=List[UpcomingCharge])
async def upcoming_charges(session: LedgerSession = Depends(get_session)):
    now = _now(session)
    charges = [
        UpcomingCharge(
            rule_id=r.id,
            next_due_date=next_due_date(r, now),
            type=r.type,
            category=r.category,
            amount=r.amount,
            note=r.note,
        )
        for r in session.rules
    ]
    return sorted(charges, key=lambda c: c.next_due_date)


@app.delete("/users/{user_id}/rules/{rule_id}", status_code=204)
async def delete_rule(rule_id: str, session: LedgerSession = Depends(get_session)):
    if not await session.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")


@app.post("/users/{user_id}/automation/run", response_model=AutomationRunResponse)
async def run_automation(session: LedgerSession = Depends(get_session)):
    """Run a pass over the current rule snapshot outside of a change notification."""
    rules = list(session.rules)
    effects = await session.driver.run(rules)
    await session.wait_idle()
    return AutomationRunResponse(
        user_id=session.user_id,
        evaluated_at=_now(session),
        rules_evaluated=len(rules),
        effects=effects,
    )


# ---------------------------------------------------------------------------
# Analytics and AI
# ---------------------------------------------------------------------------

@app.get("/users/{user_id}/summary", response_model=SummaryResponse)
async def summary(
    days: int = Query(7, ge=1, le=366, description="Number of most recent days in the daily series"),
    session: LedgerSession = Depends(get_session),
):
    return SummaryResponse(
        user_id=session.user_id,
        totals=aggregates.totals(session.transactions),
        expenses_by_category=aggregates.expenses_by_category(session.transactions),
        daily=aggregates.daily_series(session.transactions, days=days),
    )


@app.get("/users/{user_id}/insights", response_model=InsightsResponse)
async def insights(
    session: LedgerSession = Depends(get_session),
    insight_service: InsightService = Depends(get_insight_service),
):
    messages = await insight_service.generate_insights(session.transactions)
    return InsightsResponse(
        user_id=session.user_id,
        insights=[AIInsight(message=m) for m in messages],
        message=None if messages else NO_INSIGHTS_MESSAGE,
    )


@app.post("/users/{user_id}/receipts", response_model=ReceiptExtraction)
async def analyze_receipt(
    user_id: str,
    file: UploadFile = File(...),
    insight_service: InsightService = Depends(get_insight_service),
):
    """Read a receipt image; the result pre-fills a transaction form."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    mime_type = file.content_type or "image/jpeg"
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    result = await insight_service.analyze_receipt(base64.b64encode(content).decode("ascii"), mime_type)
    if result is None:
        raise HTTPException(status_code=422, detail="Could not read receipt")
    return result


@app.post("/users/{user_id}/categorize", response_model=CategorizeResponse)
async def categorize(
    user_id: str,
    body: CategorizeRequest,
    insight_service: InsightService = Depends(get_insight_service),
):
    category = await insight_service.suggest_category(body.note, body.amount)
    return CategorizeResponse(category=category)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
