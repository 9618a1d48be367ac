"""
Sample data for demos and local development.

Loaded at startup when ``seed_sample_data`` is enabled. Seeding is skipped
when the store already holds projects, so restarts do not duplicate it.
"""

import structlog

from rwalens.analysis.recommendations import derive_from_score
from rwalens.schemas.alert import AlertDraft, AlertSeverity, AlertType
from rwalens.schemas.analysis import AnalysisResult, RiskAnalysisDraft, RiskTolerance
from rwalens.schemas.market import MarketDataUpsert
from rwalens.schemas.project import AssetType, ProjectCreate
from rwalens.storage.base import ProjectStore

logger = structlog.get_logger(__name__)

SEED_MODEL = "gpt-5"

MARKET_DATA = [
    MarketDataUpsert(asset_type=AssetType.REAL_ESTATE, symbol="RE-INDEX", price=245.67,
                     price_change_24h=1.23, volume_24h=15_600_000, market_cap=2_450_000_000),
    MarketDataUpsert(asset_type=AssetType.BONDS, symbol="BOND-ETF", price=98.45,
                     price_change_24h=-0.15, volume_24h=8_900_000, market_cap=985_000_000),
    MarketDataUpsert(asset_type=AssetType.INVOICES, symbol="INV-POOL", price=1.02,
                     price_change_24h=0.05, volume_24h=2_300_000, market_cap=120_000_000),
    MarketDataUpsert(asset_type=AssetType.COMMODITIES, symbol="GOLD-TKN", price=1945.30,
                     price_change_24h=0.82, volume_24h=45_000_000, market_cap=9_800_000_000),
]

# (project, analysis fields, alert)
SAMPLE_PROJECTS = [
    (
        ProjectCreate(
            name="Manhattan Prime Real Estate Token",
            description=(
                "Tokenized ownership of premium commercial real estate in Manhattan's financial "
                "district. The property includes a 45-story office building with Fortune 500 "
                "tenants on long-term leases."
            ),
            asset_type=AssetType.REAL_ESTATE,
            total_value=125_000_000,
            token_symbol="MPRE",
            token_supply=12_500_000,
            yield_percentage=7.5,
            contract_address="0x1234567890abcdef1234567890abcdef12345678",
            website_url="https://example.com",
            whitepaper_url="https://example.com/whitepaper.pdf",
            team_info=(
                "Led by John Smith, former Goldman Sachs real estate executive with 20+ years of "
                "experience. Team includes licensed real estate professionals and blockchain developers."
            ),
            tokenomics=(
                "12.5M tokens at $10 each. 70% public sale, 15% team (4-year vesting), 10% reserve, "
                "5% advisors. Quarterly dividend distributions from rental income."
            ),
            compliance_info=(
                "SEC Regulation D 506(c) compliant. KYC/AML required. Accredited investors only in "
                "US. Property fully insured and audited annually."
            ),
        ),
        dict(
            overall_score=82,
            financial_health_score=88,
            team_credibility_score=85,
            market_viability_score=78,
            regulatory_compliance_score=90,
            technical_implementation_score=70,
            risk_level="low",
            summary=(
                "Strong fundamentals with experienced team and solid compliance framework. The "
                "Manhattan prime location provides stability, though yield may compress in a "
                "rising rate environment."
            ),
            strengths=[
                "Prime Manhattan location with Fortune 500 tenants",
                "Experienced team with proven track record",
                "Strong regulatory compliance framework",
                "Long-term lease agreements providing stable income",
            ],
            weaknesses=[
                "High entry barrier limits retail participation",
                "Interest rate sensitivity may affect valuations",
                "Single property concentration risk",
            ],
            recommendations=[
                "Consider diversifying across multiple properties",
                "Monitor interest rate environment closely",
                "Establish secondary market liquidity provisions",
            ],
        ),
        AlertDraft(
            alert_type=AlertType.RISK_INCREASE,
            severity=AlertSeverity.WARNING,
            title="Market Volatility Detected",
            message=(
                "Real estate sector showing increased volatility. Monitor closely for potential "
                "impact on asset valuation."
            ),
            previous_value=82,
            new_value=78,
        ),
    ),
    (
        ProjectCreate(
            name="Green Energy Bond Portfolio",
            description=(
                "A diversified portfolio of investment-grade green bonds from renewable energy "
                "projects across Europe and North America. Includes solar, wind, and hydroelectric projects."
            ),
            asset_type=AssetType.BONDS,
            total_value=50_000_000,
            token_symbol="GEBO",
            token_supply=5_000_000,
            yield_percentage=5.2,
            contract_address="0xabcdef1234567890abcdef1234567890abcdef12",
            website_url="https://example.com",
            team_info=(
                "Founded by Sarah Chen, former fixed-income portfolio manager at BlackRock. Advisory "
                "board includes climate finance experts and ESG specialists."
            ),
            tokenomics=(
                "5M tokens at $10 each. 80% public, 10% team, 5% liquidity, 5% operations. "
                "Monthly yield distributions."
            ),
            compliance_info=(
                "EU Green Bond Standard compliant. Third-party ESG verification. Open to global "
                "investors with basic KYC."
            ),
        ),
        dict(
            overall_score=75,
            financial_health_score=78,
            team_credibility_score=80,
            market_viability_score=72,
            regulatory_compliance_score=85,
            technical_implementation_score=65,
            risk_level="medium",
            summary=(
                "Well-structured green bond portfolio with experienced management. ESG focus "
                "attracts institutional interest. Technical implementation could be more robust."
            ),
            strengths=[
                "Diversified across multiple projects and geographies",
                "Strong ESG credentials",
                "Experienced fixed-income management team",
                "Growing institutional demand for green assets",
            ],
            weaknesses=[
                "Lower yield compared to traditional bonds",
                "Currency exposure across multiple jurisdictions",
                "Smart contract audit pending",
            ],
            recommendations=[
                "Complete smart contract security audit",
                "Implement currency hedging strategy",
                "Consider expanding to emerging market green bonds",
            ],
        ),
        AlertDraft(
            alert_type=AlertType.YIELD_CHANGE,
            severity=AlertSeverity.INFO,
            title="Yield Update",
            message="Monthly yield distribution processed. Current APY remains stable at 5.2%.",
            previous_value=5.2,
            new_value=5.2,
        ),
    ),
    (
        ProjectCreate(
            name="Trade Finance Invoice Pool",
            description=(
                "Tokenized pool of verified trade finance invoices from SMEs in Southeast Asia. "
                "Provides working capital financing to businesses with established trade relationships."
            ),
            asset_type=AssetType.INVOICES,
            total_value=15_000_000,
            token_symbol="TFIP",
            token_supply=15_000_000,
            yield_percentage=12.8,
            team_info=(
                "Operating team based in Singapore with backgrounds in trade finance and fintech. "
                "Partnerships with major banks for invoice verification."
            ),
            tokenomics=(
                "15M tokens at $1 each. 75% public, 15% reserve for bad debt, 10% operations. "
                "Weekly yield distributions."
            ),
            compliance_info=(
                "Licensed by MAS Singapore. Anti-fraud measures include blockchain verification "
                "and bank confirmations."
            ),
        ),
        dict(
            overall_score=58,
            financial_health_score=55,
            team_credibility_score=60,
            market_viability_score=65,
            regulatory_compliance_score=70,
            technical_implementation_score=45,
            risk_level="high",
            summary=(
                "High yield reflects higher risk profile. Invoice fraud and default risk require "
                "careful monitoring. Early stage platform with limited track record."
            ),
            strengths=[
                "High yield potential attractive to risk-tolerant investors",
                "Growing SME financing gap in target markets",
                "Strong regulatory environment in Singapore",
            ],
            weaknesses=[
                "Limited operating history",
                "Invoice fraud risk in emerging markets",
                "Concentration in single region",
                "Technical infrastructure needs improvement",
            ],
            recommendations=[
                "Expand invoice verification processes",
                "Diversify geography to reduce concentration",
                "Implement real-time monitoring dashboard",
                "Increase bad debt reserve ratio",
            ],
        ),
        AlertDraft(
            alert_type=AlertType.RISK_INCREASE,
            severity=AlertSeverity.CRITICAL,
            title="Default Risk Elevated",
            message="Invoice default rate increased in Q4. Bad debt reserve may need adjustment.",
            previous_value=2.1,
            new_value=3.8,
        ),
    ),
]


async def seed_sample_data(store: ProjectStore) -> bool:
    """
    Load demo market data, projects, analyses and alerts.

    Returns:
        True if data was written, False if the store already had projects
    """
    if await store.list_projects():
        logger.info("seed_skipped", reason="store not empty")
        return False

    for row in MARKET_DATA:
        await store.upsert_market_data(row)

    for project_in, analysis_fields, alert in SAMPLE_PROJECTS:
        project = await store.create_project(project_in)
        analysis = RiskAnalysisDraft(**analysis_fields, ai_model=SEED_MODEL)
        result = AnalysisResult(
            analysis=analysis,
            recommendations=[derive_from_score(analysis.overall_score, band) for band in RiskTolerance],
        )
        await store.record_analysis(project.id, result, alert)

    logger.info("seed_loaded", projects=len(SAMPLE_PROJECTS), market_data=len(MARKET_DATA))
    return True
