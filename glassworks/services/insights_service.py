"""
Business advice from Gemini.

Only a small aggregate of the book leaves the machine: payment revenue,
credit-line totals, expenses, the expense categories in use, the customer
count and the number of open orders. No names, no line descriptions.
"""
from __future__ import annotations

import json
import logging
from typing import List, Optional

import google.generativeai as genai
from pydantic import Field

from glassworks.config import AppConfig
from glassworks.engine.calculations import is_debit_code
from glassworks.models.common import Record
from glassworks.models.state import AppState
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a professional financial advisor for small craft businesses. "
    "Provide strategic advice based on financial data."
)
PROMPT = (
    "Analyze this financial summary for a Stained Glass business and provide "
    "3-4 concise, actionable business insights: {summary}"
)

NO_DATA = "Record some transactions to get AI-powered business growth advice."
NO_INSIGHTS = "No insights available at this time."
FAILED = "Failed to fetch AI insights. Check your internet connection."


class BusinessSummary(Record):
    revenue: float = 0.0
    # sum of credit lines across all invoices, before payments
    outstanding: float = 0.0
    expenses: float = 0.0
    categories: List[str] = Field(default_factory=list)
    customer_count: int = 0
    active_orders: int = 0


def business_summary(state: AppState) -> BusinessSummary:
    categories: List[str] = []
    for e in state.expenses:
        if e.category not in categories:
            categories.append(e.category)
    return BusinessSummary(
        revenue=sum(p.amount for p in state.payments),
        outstanding=sum(
            i.qty * i.price for inv in state.invoices for i in inv.items if not is_debit_code(i.account)
        ),
        expenses=sum(e.amount for e in state.expenses),
        categories=categories,
        customer_count=len(state.customers),
        active_orders=sum(1 for o in state.orders if o.status != "Completed"),
    )


class InsightsService:
    def __init__(self, store: Optional[StateStore] = None, config: Optional[AppConfig] = None):
        self.store = store or StateStore()
        self.config = config or self.store.config

    def summary(self) -> BusinessSummary:
        return business_summary(self.store.state)

    def _model(self) -> genai.GenerativeModel:
        genai.configure(api_key=self.config.gemini_api_key)
        return genai.GenerativeModel(
            model_name=self.config.gemini_model,
            system_instruction=SYSTEM_INSTRUCTION,
        )

    def insights(self) -> str:
        """
        Three or four pieces of advice as plain text.

        Returns a fixed message instead of raising when there is nothing to
        analyse, no API key is configured, or the request fails.
        """
        s = self.store.state
        if not s.invoices and not s.expenses:
            return NO_DATA
        if not self.config.gemini_api_key:
            logger.warning("No Gemini API key configured (GEMINI_API_KEY or settings.json ai.api_key)")
            return FAILED

        payload = json.dumps(business_summary(s).model_dump(by_alias=True))
        try:
            response = self._model().generate_content(PROMPT.format(summary=payload))
            text = response.text
        except Exception as e:
            logger.warning("Gemini insight request failed: %s", e)
            return FAILED
        return text or NO_INSIGHTS
