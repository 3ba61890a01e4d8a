"""
FastAPI REST API Module

REST endpoints for recording transactions, defining interest rules and
fetching monthly statements. Amounts and rates travel as decimal strings.
"""

from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, HTTPException, Depends, Query, Request, Response, status
from pydantic import BaseModel, Field
import uvicorn

from .amounts import parse_amount, parse_rate, format_amount
from .config import get_config
from .ledger import Transaction, TransactionKind
from .periods import YearMonth, format_date, parse_date
from .rules import InterestRule
from .statements import StatementFormat
from .system import LedgerSystem


# Pydantic models for API requests
class CreateTransactionRequest(BaseModel):
    date: str = Field(..., description="Transaction date as YYYYMMDD")
    account: str = Field(..., min_length=1)
    type: str = Field(..., description="D for deposit, W for withdrawal")
    amount: str = Field(..., description="Positive decimal amount as string")


class CreateRuleRequest(BaseModel):
    date: str = Field(..., description="Effective date as YYYYMMDD")
    rule_id: str = Field(..., min_length=1)
    rate: str = Field(..., description="Annual rate in percent, 0 < rate <= 100")


def _transaction_to_response(transaction: Transaction) -> dict:
    return {
        "txn_id": transaction.id,
        "account": transaction.account,
        "date": format_date(transaction.date),
        "type": transaction.kind.value,
        "amount": format_amount(transaction.amount)
    }


def _rule_to_response(rule: InterestRule) -> dict:
    return {
        "rule_id": rule.id,
        "date": format_date(rule.effective_date),
        "rate": format_amount(rule.rate_percent)
    }


STATEMENT_MEDIA_TYPES = {
    StatementFormat.JSON: "application/json",
    StatementFormat.CSV: "text/csv",
    StatementFormat.TEXT: "text/plain",
}


# Dependency to get the ledger system bound to the app
def get_ledger_system(request: Request) -> LedgerSystem:
    return request.app.state.ledger_system


def create_app(system: Optional[LedgerSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Accrual Ledger API",
        description="Deposits, withdrawals, interest rules and monthly statements",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.ledger_system = system or LedgerSystem()

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/transactions", status_code=status.HTTP_201_CREATED)
    async def create_transaction(
        request: CreateTransactionRequest,
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """Record a deposit or withdrawal"""
        try:
            transaction = system.ledger.append(
                account=request.account,
                txn_date=parse_date(request.date),
                kind=TransactionKind.parse(request.type),
                amount=parse_amount(request.amount)
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return _transaction_to_response(transaction)

    @app.get("/accounts/{account}/transactions")
    async def list_transactions(
        account: str,
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """List an account's transactions in (date, id) order"""
        return {
            "account": account,
            "transactions": [
                _transaction_to_response(t) for t in system.ledger.transactions_for(account)
            ]
        }

    @app.post("/interest-rules", status_code=status.HTTP_201_CREATED)
    async def create_interest_rule(
        request: CreateRuleRequest,
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """Define an interest rule, replacing any rule on the same date"""
        try:
            rule = system.rules.define(
                effective_date=parse_date(request.date),
                rule_id=request.rule_id,
                rate_percent=parse_rate(request.rate)
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return _rule_to_response(rule)

    @app.get("/interest-rules")
    async def list_interest_rules(system: LedgerSystem = Depends(get_ledger_system)):
        """List interest rules by effective date"""
        return {"rules": [_rule_to_response(r) for r in system.rules.rules()]}

    @app.get("/accounts/{account}/statements/{month}")
    async def get_statement(
        account: str,
        month: str,
        format: StatementFormat = Query(StatementFormat.JSON, description="json, csv or text"),
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """Monthly statement with the month-end interest line"""
        try:
            year_month = YearMonth.parse(month)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        statement = system.statements.build(account, year_month)
        return Response(
            content=system.statements.export(statement, format),
            media_type=STATEMENT_MEDIA_TYPES[format]
        )

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "accrual_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
