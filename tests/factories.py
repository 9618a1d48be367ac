"""Scripted completion clients and payload factories shared by the test suites."""

import asyncio
import json
import uuid
from typing import Optional

from rwalens.schemas.project import ProjectCreate
from rwalens.services.llm_gateway import LLMError


# ── Completion clients ───────────────────────────────────────────────────


def model_reply(
    overall: float = 82,
    risk_level: str = "low",
    scores: Optional[dict] = None,
    recommendations: Optional[dict] = None,
    **analysis_overrides,
) -> dict:
    """A well-formed model reply, overridable per field."""
    analysis = {
        "overallScore": overall,
        "financialHealthScore": 80,
        "teamCredibilityScore": 85,
        "marketViabilityScore": 78,
        "regulatoryComplianceScore": 88,
        "technicalImplementationScore": 74,
        "riskLevel": risk_level,
        "summary": "Solid asset backing with an experienced team.",
        "strengths": ["Prime location", "Audited financials"],
        "weaknesses": ["Single asset concentration"],
        "recommendations": ["Diversify holdings"],
    }
    analysis.update(scores or {})
    analysis.update(analysis_overrides)
    if recommendations is None:
        recommendations = {
            "conservative": {"recommendation": "buy", "suggestedAllocation": 5, "reasoning": "Stable income."},
            "moderate": {"recommendation": "strong_buy", "suggestedAllocation": 10, "reasoning": "Good yield."},
            "aggressive": {"recommendation": "strong_buy", "suggestedAllocation": 15, "reasoning": "Upside."},
        }
    return {"riskAnalysis": analysis, "investmentRecommendations": recommendations}


class ScriptedClient:
    """
    Completion client that replays canned replies.

    Each reply is a dict (sent as JSON), a raw string, or an exception to
    raise. The last reply repeats once the script runs out.
    """

    def __init__(self, *replies, model: str = "gpt-test"):
        self.model = model
        self.replies = list(replies) or [model_reply()]
        self.prompts: list[str] = []

    async def complete_json(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class FailingClient(ScriptedClient):
    def __init__(self):
        super().__init__(LLMError("upstream unavailable"))


class HangingClient(ScriptedClient):
    """Never answers within a test's lifetime."""

    async def complete_json(self, prompt: str) -> str:
        self.prompts.append(prompt)
        await asyncio.sleep(10)
        return json.dumps(model_reply())


# ── Payloads ─────────────────────────────────────────────────────────────


def project_payload(**overrides) -> dict:
    """Wire-format (camelCase) project submission."""
    payload = {
        "name": "Harbor View Apartments",
        "description": "Tokenized residential building with 120 units.",
        "assetType": "real_estate",
        "totalValue": 1_000_000,
        "tokenSymbol": "hva",
        "tokenSupply": 100_000,
        "yieldPercentage": 8.5,
        "teamInfo": "Property managers with 15 years of experience.",
        "tokenomics": "100k tokens, quarterly rent distributions.",
        "complianceInfo": "Reg D 506(c), KYC required.",
    }
    payload.update(overrides)
    return payload


def project_create(**overrides) -> ProjectCreate:
    return ProjectCreate.model_validate(project_payload(**overrides))


def random_id() -> str:
    return str(uuid.uuid4())
