"""
AlphIQ backend: on-chain scoring, quests and wallet insights for Alephium.

Serves the dashboard's server-side API: wallet score breakdowns, AI wallet
summaries, the blog feed proxy, network statistics, quests, XP levels and
the leaderboard. Glue over the Alephium explorer, an LLM completion API, an
RSS feed, and a Postgres-compatible database.
"""

__version__ = "1.0.0"
