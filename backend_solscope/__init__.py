"""
Backend Solscope: Solana wallet reputability and fund-flow analysis.

Fetches a wallet's or token mint's on-chain history from Helius, derives a
0-100 reputability score with itemized factors, and builds capped fund-flow
graphs around developer, deployer and mint addresses. Modular layout with
ingestion, analytics and API server kept separate.
"""

__version__ = "0.1.0"
