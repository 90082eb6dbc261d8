"""
Solscope analytics engine.

Turns chain data into a bounded reputability score with factor attribution
and into capped, annotated fund-flow graphs.
Modules: wallet_metrics, reputability_engine, fund_flow, fund_sources,
developer_network, deployer_network, token_info, analytics_pipeline.
"""

from backend_solscope.analytics.analytics_pipeline import run_reputability_analysis
from backend_solscope.analytics.deployer_network import analyze_deployer_network
from backend_solscope.analytics.developer_network import analyze_developer_network
from backend_solscope.analytics.fund_flow import analyze_fund_flows
from backend_solscope.analytics.fund_sources import analyze_fund_sources
from backend_solscope.analytics.reputability_engine import calculate_reputability
from backend_solscope.analytics.token_info import get_token_info
from backend_solscope.analytics.wallet_metrics import analyze_wallet_data

__all__ = [
    "analyze_deployer_network",
    "analyze_developer_network",
    "analyze_fund_flows",
    "analyze_fund_sources",
    "analyze_wallet_data",
    "calculate_reputability",
    "get_token_info",
    "run_reputability_analysis",
]
