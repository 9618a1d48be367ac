"""Prompt construction for RWA risk analysis."""

from rwalens.schemas.project import ProjectRead

# Highest allocation (%) the model may suggest for each tolerance band
ALLOCATION_CEILINGS = {
    "conservative": 20.0,
    "moderate": 30.0,
    "aggressive": 40.0,
}

RESPONSE_SHAPE = """{
  "riskAnalysis": {
    "overallScore": <number 0-100, higher is safer>,
    "financialHealthScore": <number 0-100>,
    "teamCredibilityScore": <number 0-100>,
    "marketViabilityScore": <number 0-100>,
    "regulatoryComplianceScore": <number 0-100>,
    "technicalImplementationScore": <number 0-100>,
    "riskLevel": "<low|medium|high|critical>",
    "summary": "<2-3 sentence summary of the overall assessment>",
    "strengths": ["<strength 1>", "<strength 2>", "<strength 3>"],
    "weaknesses": ["<weakness 1>", "<weakness 2>", "<weakness 3>"],
    "recommendations": ["<recommendation 1>", "<recommendation 2>", "<recommendation 3>"]
  },
  "investmentRecommendations": {
    "conservative": {
      "recommendation": "<strong_buy|buy|hold|sell|strong_sell>",
      "suggestedAllocation": <percentage 0-20>,
      "reasoning": "<brief reasoning>"
    },
    "moderate": {
      "recommendation": "<strong_buy|buy|hold|sell|strong_sell>",
      "suggestedAllocation": <percentage 0-30>,
      "reasoning": "<brief reasoning>"
    },
    "aggressive": {
      "recommendation": "<strong_buy|buy|hold|sell|strong_sell>",
      "suggestedAllocation": <percentage 0-40>,
      "reasoning": "<brief reasoning>"
    }
  }
}"""

GUIDELINES = """Scoring Guidelines:
- 75-100: Low Risk (solid fundamentals, experienced team, strong compliance)
- 50-74: Medium Risk (some concerns but manageable)
- 25-49: High Risk (significant concerns, limited track record)
- 0-24: Critical Risk (major red flags, avoid)

Consider these factors:
1. Financial Health: Asset valuation, yield sustainability, liquidity
2. Team Credibility: Experience, track record, transparency
3. Market Viability: Market size, competition, growth potential
4. Regulatory Compliance: Licenses, KYC/AML, jurisdiction risks
5. Technical Implementation: Smart contract security, infrastructure"""


def _amount(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


def build_analysis_prompt(project: ProjectRead) -> str:
    """Render every project field into the analysis prompt."""
    return f"""You are an expert RWA (Real World Asset) analyst specializing in tokenized assets. Analyze the following RWA project and provide a comprehensive risk assessment.

PROJECT DETAILS:
Name: {project.name}
Asset Type: {project.asset_type}
Description: {project.description}
Total Value: ${_amount(project.total_value)}
Token Symbol: {project.token_symbol}
Token Supply: {project.token_supply:,}
Expected Yield: {project.yield_percentage}%
Contract Address: {project.contract_address or "Not deployed yet"}
Website: {project.website_url or "Not provided"}
Whitepaper: {project.whitepaper_url or "Not provided"}

TEAM INFORMATION:
{project.team_info}

TOKENOMICS:
{project.tokenomics}

COMPLIANCE INFORMATION:
{project.compliance_info}

Provide your analysis in the following JSON format:
{RESPONSE_SHAPE}

{GUIDELINES}

Respond ONLY with valid JSON."""
